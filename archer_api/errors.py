#!/usr/bin/env python3
"""
Error types raised by the Archer router API

Every failure of the encrypted session (transport, crypto, protocol or
session ordering) surfaces as a subclass of RouterError.
"""


class RouterError(Exception):
    """Base class for all router API errors"""


class CannotCreateConnection(RouterError):
    """HTTP client could not be set up for the router address"""


class CannotLogin(RouterError):
    """Credential handshake failed end-to-end"""


class MissingEncryptionData(RouterError):
    """Session parameters were not fetched yet (call refresh_encryption)"""


class MissingIdentificationHash(RouterError):
    """Encryption requested before login established the credential hash"""


class MissingToken(RouterError):
    """Session token is absent or could not be extracted"""


class TransportError(RouterError):
    """Network failure, timeout or unexpected HTTP status"""


class CryptoError(RouterError):
    """Base class for encoding and decoding failures"""


class EncodeError(CryptoError):
    """Value cannot be RSA or AES encoded"""


class DecodeError(CryptoError):
    """Invalid base64, bad padding or invalid UTF-8 in an encrypted payload"""


class ActParseError(RouterError):
    """Act response has a shape that cannot be mapped back to the requests"""
