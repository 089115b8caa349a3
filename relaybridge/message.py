"""Cross-chain messages and processors that rewrite them before delivery."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from relaybridge.ethutil import int_to_bytes

log = logging.getLogger(__name__)

RESOURCE_ID_LENGTH = 32
EMPTY_RESOURCE_ID = bytes(RESOURCE_ID_LENGTH)


class TransferType(str, Enum):
    """Kind of asset transfer a message carries."""

    FUNGIBLE = "FungibleTransfer"
    NON_FUNGIBLE = "NonFungibleTransfer"
    GENERIC = "GenericTransfer"


PROPOSAL_STATUS_INACTIVE = 0
PROPOSAL_STATUS_ACTIVE = 1
PROPOSAL_STATUS_PASSED = 2  # ready to be executed
PROPOSAL_STATUS_EXECUTED = 3
PROPOSAL_STATUS_CANCELED = 4

STATUS_MAP = {
    PROPOSAL_STATUS_INACTIVE: "inactive",
    PROPOSAL_STATUS_ACTIVE: "active",
    PROPOSAL_STATUS_PASSED: "passed",
    PROPOSAL_STATUS_EXECUTED: "executed",
    PROPOSAL_STATUS_CANCELED: "canceled",
}


@dataclass
class Metadata:
    """Arbitrary data the relayer may use, such as the gas priority."""

    priority: int = 0
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class ProposalStatus:
    """On-chain state of a proposal."""

    status: int = PROPOSAL_STATUS_INACTIVE
    yes_votes: int = 0
    yes_votes_total: int = 0
    proposed_block: int = 0


@dataclass
class Message:
    """A deposit on one chain, to be delivered to another."""

    source: int = 0
    destination: int = 0
    deposit_nonce: int = 0
    resource_id: bytes = EMPTY_RESOURCE_ID
    payload: list[Any] = field(default_factory=list)
    metadata: Metadata = field(default_factory=Metadata)
    transfer_type: TransferType | None = None

    def id(self) -> str:
        """Identifier unique per source chain and deposit nonce."""
        return f"{self.source}-{self.deposit_nonce}"


MessageProcessor = Callable[[Message], None]


def adjust_decimals_for_erc20_amount_message_processor(*args: Any) -> MessageProcessor:
    """Build a processor that rescales an ERC20 amount between chains.

    The first argument maps domain IDs to token decimals. Scaling down
    rounds towards zero.
    """

    def process(m: Message) -> None:
        if not args:
            raise ValueError("processor requires 1 argument")
        decimals_map = args[0]
        if not isinstance(decimals_map, dict):
            raise TypeError("no decimals map found in args")
        if m.source not in decimals_map:
            raise ValueError("no source decimals found at decimalsMap")
        if m.destination not in decimals_map:
            raise ValueError("no destination decimals found at decimalsMap")
        source_decimal = decimals_map[m.source]
        dest_decimal = decimals_map[m.destination]
        amount_bytes = m.payload[0]
        if not isinstance(amount_bytes, (bytes, bytearray)):
            raise TypeError("could not cast interface to byte slice")
        amount = int.from_bytes(amount_bytes, "big")
        if source_decimal > dest_decimal:
            rounded = amount // 10 ** (source_decimal - dest_decimal)
        elif source_decimal < dest_decimal:
            rounded = amount * 10 ** (dest_decimal - source_decimal)
        else:
            return
        log.info(
            "amount %s rounded to %s from chain %s to chain %s",
            amount, rounded, m.source, m.destination,
        )
        m.payload[0] = int_to_bytes(rounded)

    return process