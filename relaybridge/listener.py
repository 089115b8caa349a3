"""Walks an EVM chain block range by block range and runs event handlers on it."""

from __future__ import annotations

import logging
import queue
import threading
from datetime import timedelta
from typing import Protocol, Sequence

from relaybridge.message import Message

log = logging.getLogger(__name__)


class EventHandler(Protocol):
    def handle_event(
        self, start_block: int, end_block: int, msg_queue: "queue.Queue[list[Message]]"
    ) -> None: ...


class ChainClient(Protocol):
    def latest_block(self) -> int: ...


class BlockDeltaMeter(Protocol):
    def track_block_delta(self, domain_id: int, head: int, current: int) -> None: ...


class BlockStorer(Protocol):
    def store_block(self, block: int, domain_id: int) -> None: ...


class EVMListener:
    """Listens for events on a chain and hands each block range to the event handlers."""

    def __init__(
        self,
        client: ChainClient,
        event_handlers: Sequence[EventHandler],
        blockstore: BlockStorer,
        metrics: BlockDeltaMeter,
        domain_id: int,
        block_retry_interval: timedelta | float,
        block_confirmations: int,
        block_interval: int,
    ) -> None:
        self._client = client
        self._event_handlers = list(event_handlers)
        self._blockstore = blockstore
        self._metrics = metrics
        self._domain_id = domain_id
        if isinstance(block_retry_interval, timedelta):
            block_retry_interval = block_retry_interval.total_seconds()
        self._retry_seconds = float(block_retry_interval)
        self._block_confirmations = block_confirmations
        self._block_interval = block_interval

    def _handle_range(
        self, start_block: int, end_block: int, msg_queue: "queue.Queue[list[Message]]"
    ) -> bool:
        for handler in self._event_handlers:
            try:
                handler.handle_event(start_block, end_block - 1, msg_queue)
            except Exception as err:
                log.warning("domain %s: Unable to handle events: %s", self._domain_id, err)
                return False
        return True

    def listen_to_events(
        self,
        stop_event: threading.Event,
        start_block: int | None,
        msg_queue: "queue.Queue[list[Message]]",
    ) -> None:
        """Process block ranges until ``stop_event`` is set.

        A ``start_block`` of ``None`` starts from the current chain head. A range
        is processed only once it has enough confirmations; a failing handler
        makes the same range be retried.
        """
        while not stop_event.is_set():
            try:
                head = self._client.latest_block()
            except Exception as err:
                log.error("domain %s: Unable to get latest block: %s", self._domain_id, err)
                stop_event.wait(self._retry_seconds)
                continue

            if start_block is None:
                start_block = head
            end_block = start_block + self._block_interval

            if head - end_block < self._block_confirmations:
                stop_event.wait(self._retry_seconds)
                continue

            self._metrics.track_block_delta(self._domain_id, head, end_block)
            log.debug(
                "domain %s: Fetching evm events for block range %s-%s",
                self._domain_id, start_block, end_block,
            )

            if not self._handle_range(start_block, end_block, msg_queue):
                continue

            try:
                self._blockstore.store_block(end_block, self._domain_id)
            except Exception as err:
                log.error(
                    "domain %s: Failed to write latest block %s to blockstore: %s",
                    self._domain_id, end_block, err,
                )

            start_block += self._block_interval