import io
import json
import logging

import pytest

from relaybridge.log_setup import configure_logger


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


def test_writes_json_line_to_every_writer(restore_root):
    first, second = io.StringIO(), io.StringIO()
    configure_logger(logging.INFO, first, second)
    logging.getLogger("relaybridge.sample").info("hello %s", "world")
    assert first.getvalue() == second.getvalue()
    entry = json.loads(first.getvalue())
    assert entry["message"] == "hello world"
    assert entry["level"] == "info"
    assert "time" in entry and entry["time"]


def test_level_filters_records(restore_root):
    out = io.StringIO()
    configure_logger(logging.WARNING, out)
    logger = logging.getLogger("relaybridge.sample")
    logger.info("hidden")
    logger.warning("shown")
    lines = out.getvalue().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["level"] == "warn"
    assert restore_root.level == logging.WARNING


def test_reconfiguring_replaces_previous_handler(restore_root):
    old, new = io.StringIO(), io.StringIO()
    first = configure_logger(logging.INFO, old)
    second = configure_logger(logging.INFO, new)
    logging.getLogger("relaybridge.sample").error("boom")
    assert old.getvalue() == ""
    assert json.loads(new.getvalue())["message"] == "boom"
    assert first not in restore_root.handlers
    assert second in restore_root.handlers


def test_binary_writer_receives_bytes(restore_root):
    out = io.BytesIO()
    configure_logger(logging.DEBUG, out)
    logging.getLogger("relaybridge.sample").debug("bytes")
    entry = json.loads(out.getvalue().decode())
    assert entry["message"] == "bytes"
    assert entry["level"] == "debug"