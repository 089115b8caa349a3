"""Small Ethereum helpers: hashing, address parsing and byte padding."""

from __future__ import annotations

import re

from Crypto.Hash import keccak

ADDRESS_LENGTH = 20
HASH_LENGTH = 32

_HEX_PREFIX = re.compile(r"[0-9a-fA-F]*")


def keccak256(data: bytes) -> bytes:
    """Return the 32-byte Keccak-256 digest of ``data``."""
    return keccak.new(digest_bits=256, data=bytes(data)).digest()


def _strip_prefix(value: str) -> str:
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def _from_hex(value: str) -> bytes:
    """Decode hex leniently: an odd length gets a leading zero, and decoding
    stops at the first pair that is not valid hex."""
    digits = _strip_prefix(value)
    if len(digits) % 2:
        digits = "0" + digits
    valid = _HEX_PREFIX.match(digits).end()
    valid -= valid % 2
    return bytes.fromhex(digits[:valid])


def hex_to_address(value: str) -> bytes:
    """Turn a hex string into a 20-byte address.

    Longer input keeps its last 20 bytes; shorter input is left-padded with zeros.
    """
    raw = _from_hex(value)
    if len(raw) > ADDRESS_LENGTH:
        raw = raw[-ADDRESS_LENGTH:]
    return left_pad_bytes(raw, ADDRESS_LENGTH)


def is_hex_address(value: str) -> bool:
    """Tell whether ``value`` is exactly 20 bytes of hex, with or without 0x."""
    digits = _strip_prefix(value)
    return len(digits) == 2 * ADDRESS_LENGTH and _HEX_PREFIX.fullmatch(digits) is not None


def left_pad_bytes(data: bytes, length: int) -> bytes:
    """Left-pad ``data`` with zero bytes up to ``length``; longer data is returned unchanged."""
    data = bytes(data)
    if len(data) >= length:
        return data
    return bytes(length - len(data)) + data


def int_to_bytes(value: int) -> bytes:
    """Big-endian bytes of the absolute value of ``value``, with no leading zeros.

    Zero encodes as the empty byte string.
    """
    value = abs(int(value))
    return value.to_bytes((value.bit_length() + 7) // 8, "big")