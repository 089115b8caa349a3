"""Turns deposit events read from an EVM bridge into relayable messages."""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from relaybridge.ethutil import hex_to_address
from relaybridge.message import Message, Metadata, TransferType

log = logging.getLogger(__name__)

DepositHandlerFunc = Callable[[int, int, int, bytes, bytes, bytes], Message]

_WORD = 32


class CalldataError(ValueError):
    """Raised when deposit calldata is too short or inconsistent with its lengths."""


class HandlerMatcher(Protocol):
    def get_handler_address_for_resource_id(self, resource_id: bytes) -> bytes: ...


class ETHDepositHandler:
    """Dispatches deposits to the handler function registered for their handler contract."""

    def __init__(self, handler_matcher: HandlerMatcher) -> None:
        self._handler_matcher = handler_matcher
        self._deposit_handlers: dict[bytes, DepositHandlerFunc] = {}

    def handle_deposit(
        self,
        source_id: int,
        dest_id: int,
        deposit_nonce: int,
        resource_id: bytes,
        calldata: bytes,
        handler_response: bytes,
    ) -> Message:
        """Build the message for a deposit with the handler matching its resource ID."""
        handler_addr = self._handler_matcher.get_handler_address_for_resource_id(resource_id)
        handler = self._match_address_with_handler_func(handler_addr)
        return handler(source_id, dest_id, deposit_nonce, resource_id, calldata, handler_response)

    def _match_address_with_handler_func(self, handler_address: bytes) -> DepositHandlerFunc:
        try:
            return self._deposit_handlers[bytes(handler_address)]
        except KeyError:
            raise LookupError("no corresponding deposit handler for this address exists") from None

    def register_deposit_handler(self, handler_address: str, handler: DepositHandlerFunc) -> None:
        """Associate ``handler`` with the hex ``handler_address``; an empty address is ignored."""
        if not handler_address:
            return
        log.debug("Registered deposit handler for address %s", handler_address)
        self._deposit_handlers[hex_to_address(handler_address)] = handler


def _take(calldata: bytes, start: int, length: int) -> bytes:
    end = start + length
    if length < 0 or end > len(calldata):
        raise CalldataError("calldata is shorter than its declared lengths")
    return calldata[start:end]


def _read_uint(calldata: bytes, start: int, length: int) -> int:
    return int.from_bytes(_take(calldata, start, length), "big")


def _read_priority(calldata: bytes, start: int) -> int:
    """Read a one-byte priority length at ``start`` followed by the priority bytes."""
    priority_length = _read_uint(calldata, start, 1)
    priority = _take(calldata, start + 1, priority_length)
    if not priority:
        raise CalldataError("priority data is empty")
    return priority[0]


def erc20_deposit_handler(
    source_id: int,
    dest_id: int,
    nonce: int,
    resource_id: bytes,
    calldata: bytes,
    handler_response: bytes,
) -> Message:
    """Parse amount, recipient and optional priority from ERC20 deposit calldata."""
    calldata = bytes(calldata)
    if len(calldata) < 84:
        raise CalldataError("invalid calldata length: less than 84 bytes")

    amount = calldata[:_WORD]
    recipient_length = _read_uint(calldata, _WORD, _WORD)
    recipient = _take(calldata, 2 * _WORD, recipient_length)

    metadata = Metadata()
    end = 2 * _WORD + recipient_length
    if end < len(calldata):
        metadata.priority = _read_priority(calldata, end)

    return Message(
        source=source_id,
        destination=dest_id,
        deposit_nonce=nonce,
        resource_id=resource_id,
        payload=[amount, recipient],
        metadata=metadata,
        transfer_type=TransferType.FUNGIBLE,
    )


def generic_deposit_handler(
    source_id: int,
    dest_id: int,
    nonce: int,
    resource_id: bytes,
    calldata: bytes,
    handler_response: bytes,
) -> Message:
    """Parse the metadata from generic deposit calldata."""
    calldata = bytes(calldata)
    if len(calldata) < _WORD:
        raise CalldataError("invalid calldata length: less than 32 bytes")

    metadata_length = _read_uint(calldata, 0, _WORD)
    metadata = _take(calldata, _WORD, metadata_length)

    return Message(
        source=source_id,
        destination=dest_id,
        deposit_nonce=nonce,
        resource_id=resource_id,
        payload=[metadata],
        metadata=Metadata(),
        transfer_type=TransferType.GENERIC,
    )


def erc721_deposit_handler(
    source_id: int,
    dest_id: int,
    nonce: int,
    resource_id: bytes,
    calldata: bytes,
    handler_response: bytes,
) -> Message:
    """Parse token ID, recipient, metadata and optional priority from ERC721 deposit calldata."""
    calldata = bytes(calldata)
    if len(calldata) < 2 * _WORD:
        raise CalldataError("invalid calldata length: less than 84 bytes")

    token_id = calldata[:_WORD]
    recipient_length = _read_uint(calldata, _WORD, _WORD)
    recipient = _take(calldata, 2 * _WORD, recipient_length)

    metadata_length_start = 2 * _WORD + recipient_length
    metadata_length = _read_uint(calldata, metadata_length_start, _WORD)
    metadata_start = metadata_length_start + _WORD
    token_metadata = b""
    if metadata_length > 0:
        token_metadata = _take(calldata, metadata_start, metadata_length)

    meta = Metadata()
    end = metadata_start + metadata_length
    if end < len(calldata):
        meta.priority = _read_priority(calldata, end)

    return Message(
        source=source_id,
        destination=dest_id,
        deposit_nonce=nonce,
        resource_id=resource_id,
        payload=[token_id, recipient, token_metadata],
        metadata=meta,
        transfer_type=TransferType.NON_FUNGIBLE,
    )