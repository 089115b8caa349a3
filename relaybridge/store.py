"""Key-value stores for the last processed block and the transaction nonce."""

from __future__ import annotations

from typing import Protocol

from relaybridge.ethutil import int_to_bytes


class KeyNotFoundError(LookupError):
    """Raised by a key-value store when a key holds no value."""

    def __init__(self, key: bytes | None = None) -> None:
        super().__init__("key not found")
        self.key = key


class KeyValueReaderWriter(Protocol):
    def get_by_key(self, key: bytes) -> bytes: ...

    def set_by_key(self, key: bytes, value: bytes) -> None: ...


class MemoryKeyValueStore:
    """A key-value store held in memory."""

    def __init__(self) -> None:
        self._data: dict[bytes, bytes] = {}

    def get_by_key(self, key: bytes) -> bytes:
        try:
            return self._data[bytes(key)]
        except KeyError:
            raise KeyNotFoundError(bytes(key)) from None

    def set_by_key(self, key: bytes, value: bytes) -> None:
        self._data[bytes(key)] = bytes(value)


def _read_int(db: KeyValueReaderWriter, key: bytes) -> int:
    try:
        value = db.get_by_key(key)
    except KeyNotFoundError:
        return 0
    return int.from_bytes(value, "big")


class BlockStore:
    """Remembers the latest processed block per domain."""

    def __init__(self, db: KeyValueReaderWriter) -> None:
        self._db = db

    @staticmethod
    def _key(domain_id: int) -> bytes:
        return f"chain:{domain_id}:block".encode()

    def store_block(self, block: int, domain_id: int) -> None:
        """Store ``block`` as the latest block for ``domain_id``."""
        self._db.set_by_key(self._key(domain_id), int_to_bytes(block))

    def get_last_stored_block(self, domain_id: int) -> int:
        """Return the latest stored block, or 0 if none is stored."""
        return _read_int(self._db, self._key(domain_id))

    def get_start_block(
        self, domain_id: int, start_block: int, latest: bool, fresh: bool
    ) -> int | None:
        """Pick the block to start from.

        ``None`` means start from the chain head. Otherwise the stored block
        wins over ``start_block`` when it is greater, unless ``fresh`` is set.
        """
        if latest:
            return None
        if fresh:
            return start_block
        return max(self.get_last_stored_block(domain_id), start_block)


class NonceStore:
    """Remembers the latest nonce per chain ID."""

    def __init__(self, db: KeyValueReaderWriter) -> None:
        self._db = db

    @staticmethod
    def _key(chain_id: int) -> bytes:
        return f"chain:{chain_id}:nonce".encode()

    def store_nonce(self, chain_id: int, nonce: int) -> None:
        """Store ``nonce`` for ``chain_id``."""
        self._db.set_by_key(self._key(chain_id), int_to_bytes(nonce))

    def get_nonce(self, chain_id: int) -> int:
        """Return the stored nonce, or 0 if none is stored."""
        return _read_int(self._db, self._key(chain_id))