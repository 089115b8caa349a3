"""Votes for proposals on an EVM bridge contract."""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, Protocol

from relaybridge.message import (
    PROPOSAL_STATUS_CANCELED,
    PROPOSAL_STATUS_EXECUTED,
    Message,
    ProposalStatus,
)
from relaybridge.proposal import Proposal

log = logging.getLogger(__name__)

MAX_SIMULATE_VOTE_CHECKS = 5
MAX_SHOULD_VOTE_CHECKS = 40
SHOULD_VOTE_CHECK_PERIOD = 15


class VotingError(RuntimeError):
    """Raised when the vote transaction cannot be sent."""


class ChainClient(Protocol):
    def relayer_address(self) -> bytes: ...

    def wait_and_return_tx_receipt(self, tx_hash: bytes) -> object: ...


class MessageHandler(Protocol):
    def handle_message(self, m: Message) -> Proposal: ...


class BridgeContract(Protocol):
    def is_proposal_voted_by(self, by: bytes, p: Proposal) -> bool: ...

    def vote_proposal(self, proposal: Proposal, *, priority: int) -> bytes: ...

    def simulate_vote_proposal(self, proposal: Proposal) -> None: ...

    def proposal_status(self, p: Proposal) -> ProposalStatus: ...

    def get_threshold(self) -> int: ...


class EVMVoter:
    """Casts this relayer's vote for proposals that still need it."""

    def __init__(
        self,
        mh: MessageHandler,
        client: ChainClient,
        bridge_contract: BridgeContract,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._mh = mh
        self._client = client
        self._bridge_contract = bridge_contract
        self._sleep = sleep
        self._pending_proposal_votes: dict[bytes, int] = {}

    def execute(self, m: Message) -> None:
        """Vote for the proposal built from ``m`` unless already voted or the threshold is met."""
        prop = self._mh.handle_message(m)

        try:
            voted = self._bridge_contract.is_proposal_voted_by(
                self._client.relayer_address(), prop
            )
        except Exception as err:
            log.error("Fetching is proposal %s voted by relayer failed: %s", prop, err)
            raise
        if voted:
            return

        try:
            should_vote = self._should_vote_for_proposal(prop)
        except Exception as err:
            log.error("Should vote for proposal %s failed: %s", prop, err)
            raise
        if not should_vote:
            log.debug("Proposal %s already satisfies threshold", prop)
            return

        try:
            self._repetitive_simulate_vote(prop)
        except Exception as err:
            log.error("Simulating proposal %s vote failed: %s", prop, err)
            raise

        try:
            tx_hash = self._bridge_contract.vote_proposal(prop, priority=prop.metadata.priority)
        except Exception as err:
            log.error("voting for proposal %s failed: %s", prop, err)
            raise VotingError(f"voting failed. Err: {err}") from err

        log.debug("Voted hash=%s nonce=%s", bytes(tx_hash).hex(), prop.deposit_nonce)

    def _should_vote_for_proposal(self, prop: Proposal) -> bool:
        """Decide whether a vote is still needed, counting pending votes of other relayers."""
        prop_id = prop.id()
        try:
            tries = 0
            while True:
                # random delay so relayers do not all check and vote at once
                self._sleep(random.randrange(SHOULD_VOTE_CHECK_PERIOD))

                status = self._bridge_contract.proposal_status(prop)
                if status.status in (PROPOSAL_STATUS_EXECUTED, PROPOSAL_STATUS_CANCELED):
                    return False

                threshold = self._bridge_contract.get_threshold()
                votes = status.yes_votes_total + self._pending_proposal_votes.get(prop_id, 0)
                if votes >= threshold and tries < MAX_SHOULD_VOTE_CHECKS:
                    # wait for the status to settle in case pending votes get dropped
                    tries += 1
                    continue
                return True
        finally:
            self._pending_proposal_votes.pop(prop_id, None)

    def _repetitive_simulate_vote(self, prop: Proposal) -> None:
        """Simulate the vote, retrying until it succeeds or the retries run out."""
        for tries in range(MAX_SIMULATE_VOTE_CHECKS + 1):
            try:
                self._bridge_contract.simulate_vote_proposal(prop)
                return
            except Exception:
                if tries == MAX_SIMULATE_VOTE_CHECKS:
                    raise

    def _increase_proposal_vote_count(self, tx_hash: bytes, prop_id: bytes) -> None:
        """Count a pending vote of another relayer until its transaction is mined."""
        self._pending_proposal_votes[prop_id] = self._pending_proposal_votes.get(prop_id, 0) + 1
        try:
            self._client.wait_and_return_tx_receipt(tx_hash)
        except Exception as err:
            log.error("waiting for vote transaction failed: %s", err)
        self._pending_proposal_votes[prop_id] = self._pending_proposal_votes.get(prop_id, 0) - 1