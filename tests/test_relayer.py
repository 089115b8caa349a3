import queue
import threading

from relaybridge.message import Message, adjust_decimals_for_erc20_amount_message_processor
from relaybridge.relayer import Relayer


class FakeMetrics:
    def __init__(self):
        self.deposits = []
        self.errors = []
        self.successes = []

    def track_deposit_message(self, m):
        self.deposits.append(m)

    def track_execution_error(self, m):
        self.errors.append(m)

    def track_successful_execution_latency(self, m):
        self.successes.append(m)


class FakeChain:
    def __init__(self, domain_id, fail=False, outgoing=None):
        self.domain_id = domain_id
        self.fail = fail
        self.outgoing = outgoing or []
        self.written = []
        self.wrote = threading.Event()

    def poll_events(self, stop_event, error_queue, msg_queue):
        for batch in self.outgoing:
            msg_queue.put(batch)

    def write(self, messages):
        if self.fail:
            raise RuntimeError("error")
        self.written.append(messages)
        self.wrote.set()


def _failing_processor(m):
    raise ValueError("error")


def test_logs_error_if_destination_does_not_exist():
    metrics = FakeMetrics()
    relayer = Relayer([], metrics)
    relayer.route([Message()])
    assert metrics.deposits == []
    assert metrics.errors == []
    assert metrics.successes == []


def test_adjust_decimals_processor():
    msg = Message(source=1, destination=2, payload=[(145556700000000000000).to_bytes(9, "big")])
    adjust_decimals_for_erc20_amount_message_processor({1: 18, 2: 2})(msg)
    assert int.from_bytes(msg.payload[0], "big") == 14555


def test_stops_if_message_processor_raises():
    metrics = FakeMetrics()
    chain = FakeChain(1)
    relayer = Relayer([], metrics, _failing_processor)
    relayer.add_relayed_chain(chain)
    msg = Message(destination=1)
    relayer.route([msg])
    assert metrics.deposits == [msg]
    assert chain.written == []
    assert metrics.errors == []


def test_write_fail_tracks_execution_error():
    metrics = FakeMetrics()
    chain = FakeChain(1, fail=True)
    relayer = Relayer([], metrics, lambda m: None)
    relayer.add_relayed_chain(chain)
    msg = Message(destination=1)
    relayer.route([msg])
    assert metrics.deposits == [msg]
    assert metrics.errors == [msg]
    assert metrics.successes == []


def test_writes_to_destination_if_message_valid():
    metrics = FakeMetrics()
    chain = FakeChain(1)
    relayer = Relayer([], metrics, lambda m: None)
    relayer.add_relayed_chain(chain)
    msg = Message(destination=1)
    relayer.route([msg])
    assert chain.written == [[msg]]
    assert metrics.successes == [msg]
    assert metrics.errors == []


def test_add_relayed_chain_registers_by_domain():
    relayer = Relayer([], FakeMetrics())
    chain = FakeChain(7)
    relayer.add_relayed_chain(chain)
    assert relayer.registry == {7: chain}


def test_start_routes_polled_messages_and_stops():
    metrics = FakeMetrics()
    msg = Message(source=1, destination=2, deposit_nonce=3)
    source = FakeChain(1, outgoing=[[msg]])
    dest = FakeChain(2)
    relayer = Relayer([source, dest], metrics)
    stop = threading.Event()
    errors = queue.Queue()
    runner = threading.Thread(target=relayer.start, args=(stop, errors))
    runner.start()
    try:
        assert dest.wrote.wait(timeout=5)
    finally:
        stop.set()
        runner.join(timeout=5)
    assert not runner.is_alive()
    assert dest.written == [[msg]]
    assert set(relayer.registry) == {1, 2}