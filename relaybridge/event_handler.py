"""Reads deposit events from a bridge and forwards them as message batches."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Protocol

from relaybridge.ethutil import ADDRESS_LENGTH
from relaybridge.message import EMPTY_RESOURCE_ID, Message

log = logging.getLogger(__name__)


@dataclass
class Deposit:
    """A deposit event emitted by the bridge contract."""

    destination_domain_id: int = 0
    resource_id: bytes = EMPTY_RESOURCE_ID
    deposit_nonce: int = 0
    sender_address: bytes = bytes(ADDRESS_LENGTH)
    data: bytes = b""
    handler_response: bytes = field(default=b"")


class EventListener(Protocol):
    def fetch_deposits(self, address: bytes, start_block: int, end_block: int) -> list[Deposit]: ...


class DepositHandler(Protocol):
    def handle_deposit(
        self,
        source_id: int,
        dest_id: int,
        nonce: int,
        resource_id: bytes,
        calldata: bytes,
        handler_response: bytes,
    ) -> Message: ...


class DepositEventHandler:
    """Turns the deposits in a block range into messages grouped by destination."""

    def __init__(
        self,
        event_listener: EventListener,
        deposit_handler: DepositHandler,
        bridge_address: bytes,
        domain_id: int,
    ) -> None:
        self._event_listener = event_listener
        self._deposit_handler = deposit_handler
        self._bridge_address = bridge_address
        self._domain_id = domain_id

    def handle_event(
        self,
        start_block: int,
        end_block: int,
        msg_queue: "queue.Queue[list[Message]]",
    ) -> None:
        """Fetch deposits in the range and put one message batch per destination on the queue.

        Deposits that cannot be handled are logged and skipped.
        """
        try:
            deposits = self._event_listener.fetch_deposits(self._bridge_address, start_block, end_block)
        except Exception as err:
            raise RuntimeError(f"unable to fetch deposit events because of: {err}") from err

        by_destination: dict[int, list[Message]] = {}
        for d in deposits:
            try:
                m = self._deposit_handler.handle_deposit(
                    self._domain_id,
                    d.destination_domain_id,
                    d.deposit_nonce,
                    d.resource_id,
                    d.data,
                    d.handler_response,
                )
            except Exception as err:
                log.error(
                    "failed handling deposit %s in block range %s-%s on domain %s: %s",
                    d, start_block, end_block, self._domain_id, err,
                )
                continue
            log.debug("Resolved message %s in block range: %s-%s", m, start_block, end_block)
            by_destination.setdefault(m.destination, []).append(m)

        for batch in by_destination.values():
            threading.Thread(target=msg_queue.put, args=(batch,), daemon=True).start()