#!/usr/bin/env python3
"""
Crypto primitives of the router web client

Replicates what the firmware's JavaScript encryptor does:
- RSA without padding, over a custom per-character byte encoding
- AES-128-CBC with PKCS#7 padding, base64 wrapped
- MD5 identification hash of the credentials
"""

import base64
import binascii

from Crypto.Cipher import AES
from Crypto.Hash import MD5
from Crypto.Util.number import bytes_to_long
from Crypto.Util.Padding import pad, unpad

from .errors import DecodeError, EncodeError

# Scratch buffer size of the reference client, padded ciphertext must fit
AES_BUFFER_SIZE = 4096
AES_KEY_LEN = 16


def modulus_byte_len(n: int) -> int:
    """Number of bytes needed to hold the modulus"""
    return (n.bit_length() + 7) >> 3


def encode_block(text: str, size: int) -> bytes:
    """
    Encode a block of characters into a zero-filled buffer

    Mirrors the device's JavaScript loop: low 6 bits come first for
    multi-byte characters, which is NOT UTF-8. Unused trailing bytes
    stay zero.

    Args:
        text: Characters of one block
        size: Buffer size (modulus byte length)

    Returns:
        Buffer of exactly `size` bytes

    Raises:
        EncodeError: If the encoded characters do not fit the buffer
    """
    encoded = []
    for char in text:
        c = ord(char)
        if c < 128:
            encoded.append(c)
        elif c < 2048:
            encoded.append((c & 0x3F) | 0x80)
            encoded.append((c >> 6) | 0xC0)
        else:
            encoded.append((c & 0x3F) | 0x80)
            encoded.append(((c >> 6) & 0x3F) | 0x80)
            encoded.append((c >> 12) | 0xE0)

    if len(encoded) > size:
        raise EncodeError(f"Message too long for RSA ({len(encoded)} > {size} bytes)")

    buffer = bytearray(size)
    buffer[:len(encoded)] = bytes(b & 0xFF for b in encoded)
    return bytes(buffer)


def _parse_hex(value: str, name: str) -> int:
    try:
        return int(value, 16)
    except (TypeError, ValueError) as e:
        raise EncodeError(f"Invalid RSA {name}: {value!r}") from e


def rsa_encode(text: str, modulus_hex: str, exponent_hex: str) -> str:
    """
    Chunked textbook RSA as done by the router login page

    Args:
        text: Plaintext to encode
        modulus_hex: RSA modulus as hex string ("nn" parameter)
        exponent_hex: RSA public exponent as hex string ("ee" parameter)

    Returns:
        Lowercase hex of all encrypted blocks, concatenated

    Raises:
        EncodeError: On invalid key material or a block that overflows
    """
    n = _parse_hex(modulus_hex, "modulus")
    e = _parse_hex(exponent_hex, "exponent")
    if n <= 0:
        raise EncodeError("RSA modulus is zero, session parameters missing?")

    step = modulus_byte_len(n)
    out = []
    for start in range(0, len(text), step):
        m = bytes_to_long(encode_block(text[start:start + step], step))
        h = format(pow(m, e, n), 'x')
        if len(h) & 1:
            h = '0' + h
        out.append(h)

    return ''.join(out)


def _make_aes_cipher(key: str, iv: str):
    key_bytes, iv_bytes = key.encode('utf-8'), iv.encode('utf-8')
    if len(key_bytes) != AES_KEY_LEN or len(iv_bytes) != AES_KEY_LEN:
        raise EncodeError("AES key and iv must be 16 bytes")
    return AES.new(key_bytes, AES.MODE_CBC, iv=iv_bytes)


def aes_encode(plaintext: str, key: str, iv: str) -> str:
    """
    Encrypt text with AES-128-CBC / PKCS#7 and base64 encode it

    Raises:
        EncodeError: If key/iv are not 16 bytes or the padded ciphertext
            would not fit the 4096 byte scratch buffer
    """
    data = pad(plaintext.encode('utf-8'), AES.block_size)
    if len(data) > AES_BUFFER_SIZE:
        raise EncodeError(f"Plaintext too long for AES buffer ({len(data)} > {AES_BUFFER_SIZE})")

    cipher = _make_aes_cipher(key, iv)
    return base64.b64encode(cipher.encrypt(data)).decode('ascii')


def aes_decode(value: str, key: str, iv: str) -> str:
    """
    Decode base64, decrypt AES-128-CBC and strip PKCS#7 padding

    Raises:
        DecodeError: On invalid base64, bad padding or invalid UTF-8
    """
    try:
        ct = base64.b64decode(value.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 payload: {e}") from e

    try:
        cipher = _make_aes_cipher(key, iv)
    except EncodeError as e:
        raise DecodeError(str(e)) from e

    try:
        pt = unpad(cipher.decrypt(ct), AES.block_size)
    except ValueError as e:
        raise DecodeError(f"Decryption failed: {e}") from e

    try:
        return pt.decode('utf-8')
    except UnicodeDecodeError as e:
        raise DecodeError(f"Decrypted payload is not UTF-8: {e}") from e


def md5_hex(text: str) -> str:
    """MD5 hex digest of the UTF-8 encoded text"""
    return MD5.new(text.encode('utf-8')).hexdigest()
