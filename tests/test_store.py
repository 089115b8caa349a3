import pytest

from relaybridge.store import BlockStore, KeyNotFoundError, MemoryKeyValueStore, NonceStore


class FakeDB:
    def __init__(self, value=None, error=None):
        self.value = value
        self.error = error
        self.calls = []

    def get_by_key(self, key):
        self.calls.append(("get", key))
        if self.error is not None:
            raise self.error
        return self.value

    def set_by_key(self, key, value):
        self.calls.append(("set", key, value))
        if self.error is not None:
            raise self.error


BLOCK_KEY = b"chain:5:block"
NONCE_KEY = b"chain:1:nonce"


def test_store_block_failed_store():
    db = FakeDB(error=RuntimeError("error"))
    with pytest.raises(RuntimeError):
        BlockStore(db).store_block(1, 5)
    assert db.calls == [("set", BLOCK_KEY, b"\x01")]


def test_store_block_successful_store():
    db = FakeDB()
    BlockStore(db).store_block(1, 5)
    assert db.calls == [("set", BLOCK_KEY, b"\x01")]


def test_get_last_stored_block_failed_fetch():
    db = FakeDB(error=RuntimeError("error"))
    with pytest.raises(RuntimeError):
        BlockStore(db).get_last_stored_block(5)
    assert db.calls == [("get", BLOCK_KEY)]


def test_get_last_stored_block_not_found():
    db = FakeDB(error=KeyNotFoundError())
    assert BlockStore(db).get_last_stored_block(5) == 0


def test_get_last_stored_block_successful_fetch():
    db = FakeDB(value=bytes([5]))
    assert BlockStore(db).get_last_stored_block(5) == 5
    assert db.calls == [("get", BLOCK_KEY)]


def test_get_start_block_latest():
    db = FakeDB()
    assert BlockStore(db).get_start_block(5, 1, True, False) is None
    assert db.calls == []


def test_get_start_block_fresh():
    db = FakeDB()
    assert BlockStore(db).get_start_block(5, 1, False, True) == 1
    assert db.calls == []


def test_get_start_block_failed_fetch():
    db = FakeDB(error=RuntimeError("error"))
    with pytest.raises(RuntimeError):
        BlockStore(db).get_start_block(5, 1, False, False)


def test_get_start_block_start_block_greater_than_stored():
    db = FakeDB(value=bytes([5]))
    assert BlockStore(db).get_start_block(5, 10, False, False) == 10


def test_get_start_block_start_block_less_than_stored():
    db = FakeDB(value=bytes([5]))
    assert BlockStore(db).get_start_block(5, 2, False, False) == 5


def test_store_nonce_failed_store():
    db = FakeDB(error=RuntimeError("error"))
    with pytest.raises(RuntimeError):
        NonceStore(db).store_nonce(1, 5)
    assert db.calls == [("set", NONCE_KEY, bytes([5]))]


def test_store_nonce_successful_store():
    db = FakeDB()
    NonceStore(db).store_nonce(1, 5)
    assert db.calls == [("set", NONCE_KEY, bytes([5]))]


def test_get_nonce_failed_fetch():
    db = FakeDB(error=RuntimeError("error"))
    with pytest.raises(RuntimeError):
        NonceStore(db).get_nonce(1)


def test_get_nonce_not_found():
    db = FakeDB(error=KeyNotFoundError())
    assert NonceStore(db).get_nonce(1) == 0


def test_get_nonce_successful_fetch():
    db = FakeDB(value=bytes([5]))
    assert NonceStore(db).get_nonce(1) == 5
    assert db.calls == [("get", NONCE_KEY)]


def test_memory_store_missing_key():
    with pytest.raises(KeyNotFoundError):
        MemoryKeyValueStore().get_by_key(b"missing")


def test_memory_store_round_trip_with_block_store():
    store = BlockStore(MemoryKeyValueStore())
    assert store.get_last_stored_block(3) == 0
    store.store_block(123456789, 3)
    assert store.get_last_stored_block(3) == 123456789
    assert store.get_last_stored_block(4) == 0


def test_memory_store_round_trip_with_nonce_store():
    store = NonceStore(MemoryKeyValueStore())
    store.store_nonce(7, 300)
    assert store.get_nonce(7) == 300