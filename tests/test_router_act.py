"""Unit tests for the act protocol serializer and parser."""

from types import SimpleNamespace

import pytest

from archer_api.errors import ActParseError
from archer_api.router_act import (
    MIN_BODY_LENGTH,
    ActRequest,
    ActType,
    build_requests,
    parse_act_response,
    section_to_map,
    serialize_act_body,
    wrap_act_body,
)


def test_act_request_defaults():
    req = ActRequest(ActType.GET, "IGD_DEV_INFO", ["modelName"])

    assert req.stack == "0,0,0,0,0,0"
    assert req.parent_stack == "0,0,0,0,0,0"
    assert req.attrs == ("modelName",)


def test_act_request_is_immutable():
    req = ActRequest(ActType.GET, "IGD_DEV_INFO")
    with pytest.raises(AttributeError):
        req.oid = "OTHER"


def test_act_request_accepts_numeric_type():
    assert ActRequest(5, "LAN_HOST_ENTRY").act_type is ActType.GL


@pytest.mark.parametrize("code", [2, 3, 4, 6, 7, 8])
def test_reserved_act_types_are_unsupported(code):
    with pytest.raises(ValueError):
        ActType(code)


def test_serialize_body():
    requests = [
        ActRequest(ActType.GET, "IGD_DEV_INFO", ("modelName", "softwareVersion")),
        ActRequest(ActType.GL, "WAN_IP_CONN", ("name",), stack="1,1,1,0,0,0", parent_stack="1,1,0,0,0,0"),
    ]

    body = serialize_act_body(requests)

    assert body == (
        "1&5\r\n"
        "[IGD_DEV_INFO#0,0,0,0,0,0#0,0,0,0,0,0]0,2\r\n"
        "modelName\r\n"
        "softwareVersion\r\n"
        "[WAN_IP_CONN#1,1,1,0,0,0#1,1,0,0,0,0]1,1\r\n"
        "name\r\n"
    )


def test_serialize_pads_short_body():
    """Short bodies get spaces right after the header line."""
    body = serialize_act_body([ActRequest(ActType.GET, "A")])

    assert len(body) == MIN_BODY_LENGTH
    assert body.startswith("1\r\n ")
    assert body.endswith("[A#0,0,0,0,0,0#0,0,0,0,0,0]0,0\r\n")
    assert body.replace(" ", "") == "1\r\n[A#0,0,0,0,0,0#0,0,0,0,0,0]0,0\r\n"


@pytest.mark.parametrize("oid", ["A", "ABCDEF", "X" * 20])
def test_serialize_padding_is_exact(oid):
    body = serialize_act_body([ActRequest(ActType.GET, oid)])
    assert len(body) == MIN_BODY_LENGTH
    assert body.split("\r\n", 1)[0] == "1"


def test_serialize_long_body_is_not_padded():
    req = ActRequest(ActType.GET, "WAN_DSL_INTF_CFG", ("status", "upstreamCurrRate", "downstreamCurrRate"))
    body = serialize_act_body([req])

    assert len(body) > MIN_BODY_LENGTH
    assert "  " not in body


def test_wrap_act_body():
    assert wrap_act_body("ZGF0YQ==", "abcd") == "sign=abcd\r\ndata=ZGF0YQ==\r\n"


def test_parse_two_sections():
    """One key/value section and one unsupported section."""
    requests = [
        ActRequest(ActType.GET, "IGD_DEV_INFO", ("modelName", "softwareVersion")),
        # CGI act (code 8), answered but not parsed
        SimpleNamespace(act_type=8, oid="/cgi/info"),
    ]

    text = (
        "[0,0,0,0,0,0]0\r\n"
        "modelName=Archer VR600\r\n"
        "softwareVersion=1.2.0 Build 200810\r\n"
        "malformed line\r\n"
        "url=http://a/?x=1\r\n"
        "[1,1,1,0,0,0]1\r\n"
        "name=ewan_pppoe\r\n"
        "[error]0\r\n"
    )

    sections = parse_act_response(text, requests)

    assert len(sections) == 2
    assert sections[0] == {
        "modelName": "Archer VR600",
        "softwareVersion": "1.2.0 Build 200810",
        "url": "http://a/?x=1",
    }
    assert sections[1] is None


def test_parse_keeps_request_order():
    requests = build_requests([("A", ["a"]), ("B", ["b"])])
    text = "[0,0,0,0,0,0]1\nb=2\n[0,0,0,0,0,0]0\na=1\n"

    assert parse_act_response(text, requests) == [{"a": "1"}, {"b": "2"}]


@pytest.mark.parametrize("value", [
    "my\x0cphone",
    "x\u2028b=injected",
    "a\x0bb\x1cc\x85d\u2029e",
])
def test_parse_splits_only_on_line_endings(value):
    """Only LF ends a line, other separators stay in the value."""
    requests = build_requests([("LAN_HOST_ENTRY", ["hostName"])])
    text = f"[0,0,0,0,0,0]0\r\nhostName={value}\r\n"

    assert parse_act_response(text, requests) == [{"hostName": value}]


def test_parse_strips_one_carriage_return():
    requests = build_requests([("A", ["a", "b"])])
    text = "[0,0,0,0,0,0]0\r\na=1\r\r\nb=2\n"

    assert parse_act_response(text, requests) == [{"a": "1\r", "b": "2"}]


def test_parse_missing_section_is_none():
    requests = build_requests([("A", ["a"]), ("B", ["b"])])

    assert parse_act_response("[0,0,0,0,0,0]0\r\na=1\r\n", requests) == [{"a": "1"}, None]


def test_parse_empty_section():
    requests = build_requests([("A", ["a"])])
    assert parse_act_response("[0,0,0,0,0,0]0\r\n", requests) == [{}]


def test_parse_ignores_lines_before_first_marker():
    requests = build_requests([("A", ["a"])])
    text = "stray=1\r\n[0,0,0,0,0,0]0\r\na=1\r\n"

    assert parse_act_response(text, requests) == [{"a": "1"}]


def test_parse_rejects_out_of_range_index():
    requests = build_requests([("A", ["a"])])
    with pytest.raises(ActParseError):
        parse_act_response("[0,0,0,0,0,0]1\r\na=1\r\n", requests)


def test_parse_rejects_duplicate_index():
    requests = build_requests([("A", ["a"]), ("B", ["b"])])
    text = "[0,0,0,0,0,0]0\r\na=1\r\n[1,0,0,0,0,0]0\r\na=2\r\n"

    with pytest.raises(ActParseError):
        parse_act_response(text, requests)


def test_section_to_map():
    section = {"a": "1"}
    copy = section_to_map(section)

    assert copy == section
    assert copy is not section
    assert section_to_map(None) == {}


def test_build_requests():
    requests = build_requests([("A", ["x", "y"]), ("B", [])], act_type=ActType.GL)

    assert [r.oid for r in requests] == ["A", "B"]
    assert requests[0].attrs == ("x", "y")
    assert all(r.act_type is ActType.GL for r in requests)
