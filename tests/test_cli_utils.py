import pytest

from relaybridge.cli_utils import FlagError, validate_simulate_flags

VALID_ADDR = "0xd606A00c1A39dA53EA7Bb3Ab570BBE40b156EB66"
INVALID_ADDR = "0xd606A00c1A39dA53EA7Bb3Ab570BBE40b156EXYZ"
VALID_TX_HASH = "0x455096e686c929229577767350d5c9151c609c2ba3e50a447e7092018d7f2dac"
INVALID_TX_HASH = "455096e686c929229577767350d5c9151c609c2ba3e50a447e7092018d7f2dac"


def test_validate_simulate_flags():
    tx_hash, sender = validate_simulate_flags(VALID_TX_HASH, VALID_ADDR)
    assert tx_hash == bytes.fromhex(VALID_TX_HASH[2:])
    assert sender == bytes.fromhex(VALID_ADDR[2:])


def test_validate_simulate_invalid_address():
    with pytest.raises(FlagError, match="invalid from address"):
        validate_simulate_flags(VALID_TX_HASH, INVALID_ADDR)


def test_validate_simulate_invalid_tx_hash():
    with pytest.raises(FlagError, match="invalid tx hash"):
        validate_simulate_flags(INVALID_TX_HASH, VALID_ADDR)


def test_validate_simulate_odd_length_tx_hash():
    with pytest.raises(FlagError, match="invalid tx hash"):
        validate_simulate_flags(VALID_TX_HASH[:-1], VALID_ADDR)


def test_short_tx_hash_is_left_padded():
    tx_hash, _ = validate_simulate_flags("0x01", VALID_ADDR)
    assert tx_hash == bytes(31) + b"\x01"