"""
Log formatting and handler setup for dayblocks.

Two line formats share one set of fields:
- JSONFormatter: one object per line, for files and piped output
- HumanFormatter: one readable line, for a terminal

Both stamp the active operation (see context.py), so the lines a single
CLI command produced can be grouped. Anything passed via `extra=` (day,
block_id, completion) travels along in the JSON form.
"""

import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from typing import Any

from .context import current_operation

# LogRecord attributes that are plumbing, not payload
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def _operation_fields() -> dict[str, Any]:
    operation = current_operation()
    if operation is None:
        return {}
    fields: dict[str, Any] = {"operation_id": operation.operation_id}
    if operation.name:
        fields["command"] = operation.name
    return fields


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    {"timestamp": "2026-03-02T09:15:00.000Z", "level": "INFO",
     "logger": "dayblocks.time_truth.block_manager",
     "message": "Progress refreshed for 2026-03-02: 4 of 6 completed",
     "operation_id": "op-3f0c...", "command": "complete",
     "day": "2026-03-02", "completion": 0.6667}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_operation_fields())

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        payload.update((key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRS)
        return json.dumps(payload, default=str)


class HumanFormatter(logging.Formatter):
    """`2026-03-02 09:15:00 [INFO] logger: [op-3f0c1a2b complete] message`"""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        tag = ""
        operation = current_operation()
        if operation is not None:
            label = operation.operation_id[:11]
            if operation.name:
                label += f" {operation.name}"
            tag = f"[{label}] "

        line = f"{stamp} [{record.levelname}] {record.name}: {tag}{record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: str = "INFO", json_format: bool | None = None) -> None:
    """
    Replace the root logger's handlers with a single stderr handler.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (any case)
        json_format: Force JSON (True) or human (False). None picks human
            for a terminal and JSON otherwise.
    """
    if json_format is None:
        json_format = not sys.stderr.isatty()

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else HumanFormatter())
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def configure_log_rotation(
    log_file: str | None = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> RotatingFileHandler | None:
    """
    Also write JSON lines to *log_file*, rotating at *max_bytes*.

    Returns the added handler, or None when *log_file* is empty.
    """
    if not log_file:
        return None

    os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)

    file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    file_handler.setFormatter(JSONFormatter())
    logging.getLogger().addHandler(file_handler)
    return file_handler
