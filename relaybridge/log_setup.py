"""Logging setup writing JSON lines with a timestamp to several writers."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "fatal",
}
_TRACE = 5


def _level_name(levelno: int) -> str:
    if levelno <= _TRACE:
        return "trace"
    for threshold in sorted(_LEVEL_NAMES, reverse=True):
        if levelno >= threshold:
            return _LEVEL_NAMES[threshold]
    return "debug"


class _MultiWriterHandler(logging.Handler):
    """Writes each record as one JSON line to every writer."""

    def __init__(self, writers: tuple[Any, ...]) -> None:
        super().__init__()
        self.writers = writers

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "level": _level_name(record.levelno),
            "time": datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="seconds"),
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["error"] = str(record.exc_info[1])
        return json.dumps(entry) + "\n"

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
            for writer in self.writers:
                try:
                    writer.write(line)
                except TypeError:
                    writer.write(line.encode())
                flush = getattr(writer, "flush", None)
                if flush is not None:
                    flush()
        except Exception:
            self.handleError(record)


def configure_logger(level: int, *args: Any) -> logging.Handler:
    """Set the global log level and send every record to all the given writers.

    Replaces a handler installed by an earlier call. Returns the new handler.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, _MultiWriterHandler):
            root.removeHandler(handler)
    root.setLevel(level)
    handler = _MultiWriterHandler(args)
    root.addHandler(handler)
    return handler