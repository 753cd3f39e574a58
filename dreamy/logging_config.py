"""Structured JSON logging for the metric services.

Services attach metric context to a record with ``extra=log_context(...)``;
the formatter gathers those ``ctx_*`` attributes into a ``context`` object
so a log line carries the numbers behind a snapshot (workout counts,
fatigue, dropped stream points) without parsing the message text.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from dreamy.config import get_settings

CONTEXT_PREFIX = "ctx_"


def log_context(**fields: Any) -> dict[str, Any]:
    """Prefix fields for use as ``extra=`` so the formatter emits them as context."""
    return {f"{CONTEXT_PREFIX}{key}": value for key, value in fields.items()}


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with metric context under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = {
            key[len(CONTEXT_PREFIX):]: _plain(value)
            for key, value in record.__dict__.items()
            if key.startswith(CONTEXT_PREFIX)
        }
        if context:
            entry["context"] = context
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }
        return json.dumps(entry, default=str)


def setup_logging(level: str | None = None) -> None:
    """Send ``dreamy`` logs to stdout as JSON; the level defaults to settings."""
    logger = logging.getLogger("dreamy")
    if any(isinstance(h.formatter, JSONFormatter) for h in logger.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    level = level or get_settings().log_level
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # pandas pulls in numexpr, which logs its thread count at INFO
    logging.getLogger("numexpr").setLevel(logging.WARNING)
