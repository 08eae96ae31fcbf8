#!/usr/bin/env python3
"""
Act protocol of the router's /cgi_gdpr endpoint

An act batch is a line-oriented text body:

    1&5\r\n
    [IGD_DEV_INFO#0,0,0,0,0,0#0,0,0,0,0,0]0,2\r\n
    modelName\r\n
    softwareVersion\r\n
    [WAN_IP_CONN#0,0,0,0,0,0#0,0,0,0,0,0]1,0\r\n

The decrypted answer holds one section per request, each one opened by a
"[stack]index" marker line:

    [0,0,0,0,0,0]0\r\n
    modelName=Archer VR600\r\n
    softwareVersion=1.2.0\r\n
    [1,1,0,0,0,0]1\r\n
    ...
"""

import logging
import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import ActParseError

_LOGGER = logging.getLogger(__name__)

DEFAULT_STACK = "0,0,0,0,0,0"

# Firmware does not answer shorter bodies
MIN_BODY_LENGTH = 64

SECTION_MARKER = re.compile(r"\[(?:\d,?){6}\](\d+)")

# Parsed section: key/value map, or None when the act type has no parser
ActSection = Optional[Dict[str, str]]


class ActType(IntEnum):
    """
    Act codes understood by this client

    The firmware also knows SET=2, ADD=3, DEL=4, GS=6, OP=7 and CGI=8;
    they are not supported here.
    """
    GET = 1
    GL = 5


KEY_VALUE_TYPES = (ActType.GET, ActType.GL)


@dataclass(frozen=True)
class ActRequest:
    """One query of an act batch"""
    act_type: ActType
    oid: str
    attrs: Tuple[str, ...] = field(default_factory=tuple)
    stack: str = DEFAULT_STACK
    parent_stack: str = DEFAULT_STACK

    def __post_init__(self):
        object.__setattr__(self, 'act_type', ActType(self.act_type))
        object.__setattr__(self, 'attrs', tuple(self.attrs))

    def marker(self, index: int) -> str:
        return f"[{self.oid}#{self.stack}#{self.parent_stack}]{index},{len(self.attrs)}"


def serialize_act_body(requests: Sequence[ActRequest]) -> str:
    """
    Build the plaintext body of an act batch

    Args:
        requests: Queries, their position is the section index

    Returns:
        CRLF separated body, space padded to at least 64 bytes
    """
    header = '&'.join(str(int(req.act_type)) for req in requests)

    lines = []
    for index, req in enumerate(requests):
        lines.append(req.marker(index))
        lines.extend(req.attrs)

    body = ''.join(f"{line}\r\n" for line in [header] + lines)

    length = len(body.encode('utf-8'))
    if length < MIN_BODY_LENGTH:
        head, rest = body.split("\r\n", 1)
        body = f"{head}\r\n{' ' * (MIN_BODY_LENGTH - length)}{rest}"

    return body


def wrap_act_body(data: str, signature: str) -> str:
    """Wire format of an encrypted act body"""
    return f"sign={signature}\r\ndata={data}\r\n"


def parse_act_response(text: str, requests: Sequence[ActRequest]) -> List[ActSection]:
    """
    Split a decrypted act answer into one section per request

    Args:
        text: Decrypted response body
        requests: The batch that produced it

    Returns:
        Sections in request order, None for types without a parser or
        for requests the device did not answer

    Raises:
        ActParseError: On a section index out of range or seen twice
    """
    sections: Dict[int, ActSection] = {}
    current: ActSection = None

    for line in text.split('\n'):
        line = line[:-1] if line.endswith('\r') else line
        match = SECTION_MARKER.search(line)
        if match:
            index = int(match.group(1))
            if index >= len(requests):
                raise ActParseError(f"Section index {index} out of range for {len(requests)} requests")
            if index in sections:
                raise ActParseError(f"Section index {index} appears twice")

            current = {} if requests[index].act_type in KEY_VALUE_TYPES else None
            sections[index] = current
            continue

        if current is None:
            continue

        key, sep, value = line.partition('=')
        if sep:
            current[key] = value

    _LOGGER.debug("Parsed %d of %d act sections", len(sections), len(requests))
    return [sections.get(index) for index in range(len(requests))]


def section_to_map(section: ActSection) -> Dict[str, str]:
    """Copy of the section's values, empty for unparsed sections"""
    return dict(section) if section else {}


def build_requests(queries: Iterable[Tuple[str, Iterable[str]]],
                   act_type: ActType = ActType.GET) -> List[ActRequest]:
    """Shortcut for batches of (oid, attrs) pairs with default stacks"""
    return [ActRequest(act_type, oid, tuple(attrs)) for oid, attrs in queries]
