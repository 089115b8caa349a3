"""Chain-specific proposals built from relayed messages."""

from __future__ import annotations

from dataclasses import dataclass, field

from relaybridge.ethutil import ADDRESS_LENGTH, keccak256
from relaybridge.message import EMPTY_RESOURCE_ID, Metadata


@dataclass
class Proposal:
    """A proposal to execute a deposit on the destination chain."""

    source: int = 0
    destination: int = 0
    deposit_nonce: int = 0
    resource_id: bytes = EMPTY_RESOURCE_ID
    data: bytes = b""
    handler_address: bytes = bytes(ADDRESS_LENGTH)
    bridge_address: bytes = bytes(ADDRESS_LENGTH)
    metadata: Metadata = field(default_factory=Metadata)

    def data_hash(self) -> bytes:
        """Keccak-256 of the handler address followed by the proposal data."""
        return keccak256(bytes(self.handler_address) + bytes(self.data))

    def id(self) -> bytes:
        """Identifier built from the source domain and the low byte of the nonce."""
        return keccak256(bytes([self.source & 0xFF, self.deposit_nonce & 0xFF]))