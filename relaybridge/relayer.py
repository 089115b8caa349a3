"""Routes messages from source chains to their destination chains."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Protocol, Sequence

from relaybridge.message import Message, MessageProcessor

log = logging.getLogger(__name__)

_POLL_TIMEOUT = 0.1


class DepositMeter(Protocol):
    def track_deposit_message(self, m: Message) -> None: ...

    def track_execution_error(self, m: Message) -> None: ...

    def track_successful_execution_latency(self, m: Message) -> None: ...


class RelayedChain(Protocol):
    domain_id: int

    def poll_events(
        self,
        stop_event: threading.Event,
        error_queue: "queue.Queue[BaseException]",
        msg_queue: "queue.Queue[list[Message]]",
    ) -> None: ...

    def write(self, messages: list[Message]) -> None: ...


class Relayer:
    """Starts every chain and delivers the messages they produce."""

    def __init__(
        self,
        chains: Sequence[RelayedChain],
        metrics: DepositMeter,
        *message_processors: MessageProcessor,
    ) -> None:
        self.relayed_chains = list(chains)
        self.metrics = metrics
        self.message_processors = list(message_processors)
        self.registry: dict[int, RelayedChain] = {}

    def start(
        self,
        stop_event: threading.Event,
        error_queue: "queue.Queue[BaseException]",
    ) -> None:
        """Start polling every chain and route messages until ``stop_event`` is set."""
        log.debug("Starting relayer")
        messages: "queue.Queue[list[Message]]" = queue.Queue()
        for chain in self.relayed_chains:
            log.debug("Starting chain %s", chain.domain_id)
            self.add_relayed_chain(chain)
            threading.Thread(
                target=chain.poll_events,
                args=(stop_event, error_queue, messages),
                daemon=True,
            ).start()

        while not stop_event.is_set():
            try:
                batch = messages.get(timeout=_POLL_TIMEOUT)
            except queue.Empty:
                continue
            threading.Thread(target=self.route, args=(batch,), daemon=True).start()

    def route(self, messages: list[Message]) -> None:
        """Process messages and write them to the chain registered for their destination."""
        destination = messages[0].destination
        dest_chain = self.registry.get(destination)
        if dest_chain is None:
            log.error("no resolver for destID %s to send message registered", destination)
            return

        for m in messages:
            self.metrics.track_deposit_message(m)
            for processor in self.message_processors:
                try:
                    processor(m)
                except Exception as err:
                    log.error("error %s processing message %s", err, m)
                    return

        log.debug("Sending messages %s to destination %s", messages, dest_chain.domain_id)
        try:
            dest_chain.write(messages)
        except Exception as err:
            for m in messages:
                log.error(
                    "Failed sending message %s to destination %s: %s",
                    m, dest_chain.domain_id, err,
                )
                self.metrics.track_execution_error(m)
            return

        for m in messages:
            self.metrics.track_successful_execution_latency(m)

    def add_relayed_chain(self, chain: RelayedChain) -> None:
        """Register ``chain`` as the writer for its domain."""
        self.registry[chain.domain_id] = chain