import queue
import threading
from datetime import timedelta

from relaybridge.listener import EVMListener

DOMAIN_ID = 1


class _Client:
    """Returns scripted heads; the stop event is set when the last one is handed out."""

    def __init__(self, heads, stop_event):
        self.heads = list(heads)
        self.stop_event = stop_event
        self.calls = 0

    def latest_block(self):
        self.calls += 1
        head = self.heads.pop(0)
        if not self.heads:
            self.stop_event.set()
        if isinstance(head, BaseException):
            raise head
        return head


class _EventHandler:
    def __init__(self, failures=0):
        self.failures = failures
        self.calls = []

    def handle_event(self, start_block, end_block, msg_queue):
        self.calls.append((start_block, end_block))
        if self.failures:
            self.failures -= 1
            raise RuntimeError("error")


class _BlockStore:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def store_block(self, block, domain_id):
        self.calls.append((block, domain_id))
        if self.error is not None:
            raise self.error


class _Meter:
    def __init__(self):
        self.calls = []

    def track_block_delta(self, domain_id, head, current):
        self.calls.append((domain_id, head, current))


def _setup(heads, handler=None, store=None):
    stop_event = threading.Event()
    client = _Client(heads, stop_event)
    handler = handler or _EventHandler()
    store = store or _BlockStore()
    meter = _Meter()
    listener = EVMListener(
        client, [handler, handler], store, meter, DOMAIN_ID,
        timedelta(milliseconds=1), 5, 5,
    )
    return stop_event, client, handler, store, meter, listener


def test_retries_if_block_unavailable():
    stop_event, client, handler, store, meter, listener = _setup(
        [RuntimeError("error"), RuntimeError("error")]
    )
    listener.listen_to_events(stop_event, None, queue.Queue())
    assert client.calls == 2
    assert handler.calls == []
    assert store.calls == []
    assert meter.calls == []


def test_sleeps_if_block_too_new():
    stop_event, client, handler, store, meter, listener = _setup([109])
    listener.listen_to_events(stop_event, 100, queue.Queue())
    assert client.calls == 1
    assert meter.calls == []
    assert handler.calls == []
    assert store.calls == []


def test_retries_in_case_of_handler_failure():
    stop_event, client, handler, store, meter, listener = _setup(
        [110, 110, 110], handler=_EventHandler(failures=1)
    )
    listener.listen_to_events(stop_event, 100, queue.Queue())
    assert meter.calls == [(1, 110, 105), (1, 110, 105)]
    assert handler.calls == [(100, 104), (100, 104), (100, 104)]
    assert store.calls == [(105, DOMAIN_ID)]


def test_stores_block_if_event_handling_successful():
    stop_event, client, handler, store, meter, listener = _setup([110, 95])
    listener.listen_to_events(stop_event, 100, queue.Queue())
    assert meter.calls == [(1, 110, 105)]
    assert handler.calls == [(100, 104), (100, 104)]
    assert store.calls == [(105, DOMAIN_ID)]


def test_ignores_block_storer_error():
    stop_event, client, handler, store, meter, listener = _setup(
        [110, 120], store=_BlockStore(error=RuntimeError("error"))
    )
    listener.listen_to_events(stop_event, 100, queue.Queue())
    assert handler.calls == [(100, 104), (100, 104), (105, 109), (105, 109)]
    assert store.calls == [(105, DOMAIN_ID), (110, DOMAIN_ID)]


def test_uses_head_as_start_block_if_none_passed():
    stop_event, client, handler, store, meter, listener = _setup([110, 120, 65])
    listener.listen_to_events(stop_event, None, queue.Queue())
    assert meter.calls == [(1, 120, 115)]
    assert handler.calls == [(110, 114), (110, 114)]
    assert store.calls == [(115, DOMAIN_ID)]
    assert client.calls == 3


def test_handlers_receive_the_queue():
    received = []

    class _Recording:
        def handle_event(self, start_block, end_block, msg_queue):
            received.append(msg_queue)

    stop_event = threading.Event()
    client = _Client([110, 95], stop_event)
    msg_queue = queue.Queue()
    listener = EVMListener(client, [_Recording()], _BlockStore(), _Meter(), DOMAIN_ID, 0.001, 5, 5)
    listener.listen_to_events(stop_event, 100, msg_queue)
    assert received == [msg_queue]