#!/usr/bin/env python3
"""
Encrypted session with the router's web management firmware

Handles the parameter fetch, login handshake, session token and the
encrypted act exchange over a single cookie-bearing requests session.

Usage:
    from archer_api.router_session import RouterSession
    from archer_api.router_act import ActRequest, ActType

    session = RouterSession.connect("http://192.168.1.1", "admin", "password")
    sections = session.act([
        ActRequest(ActType.GET, "IGD_DEV_INFO", ("modelName", "softwareVersion")),
    ])
    print(sections[0]["modelName"])
"""

import logging
import re
import secrets
import time
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlencode, urlsplit

import requests
import urllib3

from .errors import (
    CannotCreateConnection,
    CannotLogin,
    EncodeError,
    MissingEncryptionData,
    MissingIdentificationHash,
    MissingToken,
    RouterError,
    TransportError,
)
from .router_act import (
    ActRequest,
    ActSection,
    parse_act_response,
    serialize_act_body,
    wrap_act_body,
)
from .router_crypto import AES_KEY_LEN, aes_decode, aes_encode, md5_hex, rsa_encode

# Management pages served over HTTPS use self-signed certificates
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

_LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10
USER_AGENT = 'Mozilla/5.0 (X11; Linux x86_64; rv:83.0) Gecko/20100101 Firefox/83.0'

PARM_PATTERN = re.compile(r'var (\w+)="((?:[^"\\]|\\.)*)";')
TOKEN_PATTERN = re.compile(r'var token="([0-9a-f]*)";')

SEQ_MASK = 0xFFFFFFFF

# Whitespace and control characters cannot appear in Origin/Referer
INVALID_ADDRESS_CHARS = re.compile(r'[\x00-\x20\x7f]')


@dataclass(frozen=True)
class EncryptionData:
    """Per-connection crypto parameters"""
    seq: int
    rsa_n: str
    rsa_e: str
    aes_key: str
    aes_iv: str
    hash: Optional[str] = None

    def __post_init__(self):
        for name in ('aes_key', 'aes_iv'):
            if len(getattr(self, name).encode('utf-8')) != AES_KEY_LEN:
                raise EncodeError(f"{name} must be exactly {AES_KEY_LEN} bytes")


def generate_aes_secret() -> str:
    """
    16 ASCII digits from the current epoch millis and a random u32

    Same derivation as the login page script, zero-padded on the right
    if the concatenation is ever shorter than 16 digits.
    """
    millis = int(time.time() * 1000)
    value = f"{millis}{secrets.randbits(32)}"[:AES_KEY_LEN]
    return value.ljust(AES_KEY_LEN, '0')


def parse_seq(value: str) -> int:
    """Sequence number as an unsigned 32-bit value, 0 if unparsable"""
    if not isinstance(value, str) or not value.isascii() or not value.isdigit():
        return 0
    seq = int(value)
    return seq if seq <= SEQ_MASK else 0


class RouterSession:
    """Encrypted session with one router"""

    def __init__(self, address: str, session: requests.Session,
                 timeout: float = DEFAULT_TIMEOUT):
        """
        Initialize session

        Args:
            address: Base URL of the router, e.g. http://192.168.1.1
            session: HTTP session carrying cookies and default headers
            timeout: Transport timeout in seconds for every request
        """
        self.address = address.rstrip('/')
        self.session = session
        self.timeout = timeout
        self.encryption: Optional[EncryptionData] = None
        self.token_id: Optional[str] = None

    # ========================================================================
    # Lifecycle
    # ========================================================================

    @classmethod
    def connect(cls, router_address: str, username: str, password: str,
                timeout: float = DEFAULT_TIMEOUT) -> 'RouterSession':
        """
        Create a session, fetch parameters and log in

        Raises:
            CannotCreateConnection: If the HTTP client cannot be set up
            CannotLogin: If the parameter fetch or the handshake fails
        """
        conn = from_address(router_address, timeout)
        try:
            conn.refresh_encryption()
            conn.login(username, password)
        except RouterError as e:
            raise CannotLogin(f"Login to {conn.address} failed: {e}") from e
        return conn

    @property
    def is_logged_in(self) -> bool:
        return self.token_id is not None

    def logout(self):
        """Forget token and credential hash"""
        self.token_id = None
        if self.encryption is not None:
            self.encryption = replace(self.encryption, hash=None)

    # ========================================================================
    # Transport
    # ========================================================================

    def _request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        url = f"{self.address}/{endpoint}"
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

    def get(self, endpoint: str) -> Optional[str]:
        """
        GET an endpoint

        Returns:
            Response body, or None on a non-2xx status or an empty body

        Raises:
            TransportError: On connection failure or timeout
        """
        response = self._request('GET', endpoint)
        if response.ok and response.text:
            return response.text
        _LOGGER.debug("GET /%s returned %s with %d bytes",
                      endpoint, response.status_code, len(response.text or ''))
        return None

    # ========================================================================
    # Handshake
    # ========================================================================

    def get_parm(self) -> Dict[str, str]:
        """Read the `var NAME="VALUE";` pairs of the parameter page"""
        body = self.get('cgi/getParm')
        if body is None:
            _LOGGER.warning("Router %s returned no encryption parameters", self.address)
            return {}
        return dict(PARM_PATTERN.findall(body))

    def refresh_encryption(self):
        """Fetch RSA parameters and derive a fresh AES key/iv"""
        current_hash = self.encryption.hash if self.encryption else None
        parm = self.get_parm()

        self.encryption = EncryptionData(
            seq=parse_seq(parm.get('seq', '0')),
            rsa_n=parm.get('nn', '0'),
            rsa_e=parm.get('ee', '0'),
            aes_key=generate_aes_secret(),
            aes_iv=generate_aes_secret(),
            hash=current_hash,
        )
        _LOGGER.debug("Encryption parameters refreshed (seq=%d, %d bit modulus)",
                      self.encryption.seq, len(self.encryption.rsa_n) * 4)

    def login(self, username: str, password: str):
        """
        Send the encrypted credentials, then fetch the session token

        Raises:
            MissingEncryptionData: If refresh_encryption was never called
            MissingToken: If no token is served after the login request
            TransportError: On network failure
        """
        if self.encryption is None:
            raise MissingEncryptionData("Call refresh_encryption() before login()")

        self.encryption = replace(self.encryption, hash=md5_hex(username + password))

        query = self.login_query(username, password)
        response = self._request('POST', f"cgi/login?{query}")
        _LOGGER.debug("Login request answered with status %s", response.status_code)

        self.update_token()

    def login_query(self, username: str, password: str) -> str:
        """Query string of the login request: data, sign, Action, LoginStatus"""
        data, sign = self.encrypt(f"{username}\n{password}", is_login=True)
        return urlencode([
            ('data', data),
            ('sign', sign),
            ('Action', '1'),
            ('LoginStatus', '0'),
        ])

    def update_token(self):
        """
        Extract the session token from the authenticated root page

        Raises:
            MissingToken: If the page carries no token
        """
        body = self._request('GET', '').text
        match = TOKEN_PATTERN.search(body or '')
        if not match or not match.group(1):
            self.token_id = None
            raise MissingToken("No session token in router page, wrong credentials?")
        self.token_id = match.group(1)

    # ========================================================================
    # Encrypted exchange
    # ========================================================================

    def encrypt(self, value: str, is_login: bool = False) -> Tuple[str, str]:
        """
        AES encrypt a value and RSA sign it

        Args:
            value: Plaintext
            is_login: Put the AES key/iv into the signature

        Returns:
            Tuple of (base64 data, hex signature)
        """
        encryption = self.encryption
        if encryption is None:
            raise MissingEncryptionData("Call refresh_encryption() first")
        if not encryption.hash:
            raise MissingIdentificationHash("Call login() before encrypting data")

        data = aes_encode(value, encryption.aes_key, encryption.aes_iv)
        sign = f"h={encryption.hash}&s={(encryption.seq + len(data)) & SEQ_MASK}"
        if is_login:
            sign = f"key={encryption.aes_key}&iv={encryption.aes_iv}&{sign}"

        return data, rsa_encode(sign, encryption.rsa_n, encryption.rsa_e)

    def decrypt(self, value: str) -> str:
        if self.encryption is None:
            raise MissingEncryptionData("Call refresh_encryption() first")
        return aes_decode(value, self.encryption.aes_key, self.encryption.aes_iv)

    def act(self, acts: Sequence[ActRequest]) -> List[ActSection]:
        """
        Run a batch of act requests

        Returns:
            One section per request, in request order

        Raises:
            MissingEncryptionData, MissingToken: If not logged in
            TransportError: On network failure or non-2xx status
            DecodeError: If the answer cannot be decrypted
            ActParseError: If the answer cannot be mapped to the requests
        """
        if self.encryption is None:
            raise MissingEncryptionData("Call refresh_encryption() first")
        if self.token_id is None:
            raise MissingToken("Call login() before act()")
        if not acts:
            return []

        data, sign = self.encrypt(serialize_act_body(acts))
        _LOGGER.debug("Sending act batch of %d requests", len(acts))

        response = self._request('POST', 'cgi_gdpr', data=wrap_act_body(data, sign),
                                 headers={'tokenid': self.token_id})
        if not response.ok:
            raise TransportError(f"Act request rejected with status {response.status_code}")

        return parse_act_response(self.decrypt(response.text), acts)


def from_address(router_address: str, timeout: float = DEFAULT_TIMEOUT) -> RouterSession:
    """
    Build a session with the headers the web interface sends

    Raises:
        CannotCreateConnection: On an address without scheme or host, or
            one that is not a valid header value
    """
    address = (router_address or '').rstrip('/')
    parts = urlsplit(address)
    if parts.scheme not in ('http', 'https') or not parts.netloc:
        raise CannotCreateConnection(f"Invalid router address: {router_address!r}")
    if INVALID_ADDRESS_CHARS.search(address):
        raise CannotCreateConnection(f"Router address is not a valid header value: {router_address!r}")

    session = requests.Session()
    session.verify = False
    session.headers.update({
        'Connection': 'keep-alive',
        'Accept': '*/*',
        'Accept-Encoding': 'gzip, deflate',
        'Accept-Language': 'en-US,en;q=0.5',
        'Origin': address,
        'Referer': f"{address}/",
        'User-Agent': USER_AGENT,
    })

    return RouterSession(address, session, timeout)
