"""
FLOP - Structured Logging

Contracts log through plain module loggers and attach structured context
via ``extra={"event": ..., ...}``. This module renders those records:
- JSON log format for easy parsing (extra fields lifted to top level)
- Human-readable console format otherwise
- Correlation IDs for grouping the records of one CLI/API request
"""

import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

# Context variable for correlation ID
correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


class JSONFormatter(jsonlogger.JsonFormatter):
    """
    Formatter that outputs logs in JSON format

    Features:
    - Structured JSON output
    - UTC timestamps
    - Correlation ID support
    - Custom fields from ``extra`` (added by the base formatter)
    """

    def __init__(self, fmt: str = "%(message)s") -> None:
        super().__init__(fmt=fmt, json_default=str)

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add timestamp, level, logger and correlation id."""
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        corr_id = correlation_id.get()
        if corr_id:
            log_record["correlation_id"] = corr_id


class ConsoleFormatter(logging.Formatter):
    """Single-line formatter that appends the structured event name."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        event = getattr(record, "event", None)
        if event:
            line = f"{line} [{event}]"
        return line


def configure_logging(level: str = "INFO", json_output: bool = False, stream=None) -> logging.Handler:
    """
    Install a single handler on the ``flop`` logger.

    Args:
        level: Log level name
        json_output: Emit JSON lines instead of console text
        stream: Target stream (defaults to stderr)

    Returns:
        The installed handler
    """
    root = logging.getLogger("flop")
    for existing in list(root.handlers):
        if getattr(existing, "_flop_handler", False):
            root.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else ConsoleFormatter())
    handler._flop_handler = True
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
