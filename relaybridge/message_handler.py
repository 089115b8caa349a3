"""Turns relayed messages into proposals for an EVM bridge contract."""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from relaybridge.ethutil import hex_to_address, int_to_bytes, left_pad_bytes
from relaybridge.message import Message
from relaybridge.proposal import Proposal

log = logging.getLogger(__name__)

MessageHandlerFunc = Callable[[Message, bytes, bytes], Proposal]


class PayloadError(ValueError):
    """Raised when a message payload does not have the expected shape."""


class HandlerMatcher(Protocol):
    def get_handler_address_for_resource_id(self, resource_id: bytes) -> bytes: ...

    def contract_address(self) -> bytes: ...


class EVMMessageHandler:
    """Dispatches messages to the handler function registered for their handler contract."""

    def __init__(self, handler_matcher: HandlerMatcher) -> None:
        self._handler_matcher = handler_matcher
        self._handlers: dict[bytes, MessageHandlerFunc] = {}

    def handle_message(self, m: Message) -> Proposal:
        """Build the proposal for ``m`` with the handler matching its resource ID."""
        addr = self._handler_matcher.get_handler_address_for_resource_id(m.resource_id)
        handler = self.match_address_with_handler_func(addr)
        log.info(
            "Handling new message type=%s src=%s dst=%s nonce=%s resourceID=%s",
            m.transfer_type.value if m.transfer_type else "",
            m.source, m.destination, m.deposit_nonce, bytes(m.resource_id).hex(),
        )
        return handler(m, addr, self._handler_matcher.contract_address())

    def match_address_with_handler_func(self, addr: bytes) -> MessageHandlerFunc:
        """Return the handler registered for ``addr``."""
        try:
            return self._handlers[bytes(addr)]
        except KeyError:
            raise LookupError(
                f"no corresponding message handler for this address 0x{bytes(addr).hex()} exists"
            ) from None

    def register_message_handler(self, address: str, handler: MessageHandlerFunc) -> None:
        """Associate ``handler`` with the hex ``address``; an empty address is ignored."""
        if not address:
            return
        log.debug("Registered message handler for address %s", address)
        self._handlers[hex_to_address(address)] = handler


def _payload_bytes(value: object, what: str) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise PayloadError(f"wrong payload {what} format")
    return bytes(value)


def _length_word(data: bytes) -> bytes:
    return left_pad_bytes(int_to_bytes(len(data)), 32)


def _proposal(m: Message, data: bytes, handler_addr: bytes, bridge_address: bytes) -> Proposal:
    return Proposal(
        source=m.source,
        destination=m.destination,
        deposit_nonce=m.deposit_nonce,
        resource_id=m.resource_id,
        data=data,
        handler_address=handler_addr,
        bridge_address=bridge_address,
        metadata=m.metadata,
    )


def erc20_message_handler(m: Message, handler_addr: bytes, bridge_address: bytes) -> Proposal:
    """Encode amount, recipient length and recipient for an ERC20 handler."""
    if len(m.payload) != 2:
        raise PayloadError("malformed payload. Len  of payload should be 2")
    amount = _payload_bytes(m.payload[0], "amount")
    recipient = _payload_bytes(m.payload[1], "recipient")
    data = left_pad_bytes(amount, 32) + _length_word(recipient) + recipient
    return _proposal(m, data, handler_addr, bridge_address)


def erc721_message_handler(m: Message, handler_addr: bytes, bridge_address: bytes) -> Proposal:
    """Encode token ID, recipient and metadata for an ERC721 handler."""
    if len(m.payload) != 3:
        raise PayloadError("malformed payload. Len  of payload should be 3")
    token_id = _payload_bytes(m.payload[0], "tokenID")
    recipient = _payload_bytes(m.payload[1], "recipient")
    metadata = _payload_bytes(m.payload[2], "metadata")
    data = (
        left_pad_bytes(token_id, 32)
        + _length_word(recipient)
        + recipient
        + _length_word(metadata)
        + metadata
    )
    return _proposal(m, data, handler_addr, bridge_address)


def generic_message_handler(m: Message, handler_addr: bytes, bridge_address: bytes) -> Proposal:
    """Encode metadata length and metadata for a generic handler."""
    if len(m.payload) != 1:
        raise PayloadError("malformed payload. Len  of payload should be 1")
    metadata = _payload_bytes(m.payload[0], "metadata")
    data = _length_word(metadata) + metadata
    return _proposal(m, data, handler_addr, bridge_address)