"""Validation of command-line flags for the transaction simulation command."""

from __future__ import annotations

import re

from relaybridge.ethutil import HASH_LENGTH, hex_to_address, is_hex_address, left_pad_bytes

_HEX = re.compile(r"[0-9a-fA-F]*")


class FlagError(ValueError):
    """Raised when a command-line flag holds an invalid value."""


def _is_prefixed_hex(value: str) -> bool:
    if value[:2] not in ("0x", "0X"):
        return False
    digits = value[2:]
    return len(digits) % 2 == 0 and _HEX.fullmatch(digits) is not None


def validate_simulate_flags(tx_hash: str, from_address: str) -> tuple[bytes, bytes]:
    """Check the transaction hash and sender flags.

    Returns the 32-byte transaction hash and the 20-byte sender address.
    """
    if not _is_prefixed_hex(tx_hash):
        raise FlagError(f"invalid tx hash {tx_hash}")
    if not is_hex_address(from_address):
        raise FlagError(f"invalid from address {from_address}")
    raw_hash = bytes.fromhex(tx_hash[2:])[-HASH_LENGTH:]
    return left_pad_bytes(raw_hash, HASH_LENGTH), hex_to_address(from_address)