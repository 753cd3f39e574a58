"""Tests for structured logging configuration."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime

import pytest

from dreamy.logging_config import JSONFormatter, log_context, setup_logging
from dreamy.services.recovery import FormStatus, recovery_status
from dreamy.services.streams import StreamData, normalize_stream


def _record(msg="snapshot", level=logging.INFO, exc_info=None, **attrs):
    record = logging.LogRecord(
        name="dreamy.test", level=level, pathname="test.py",
        lineno=1, msg=msg, args=(), exc_info=exc_info
    )
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def dreamy_logger():
    logger = logging.getLogger("dreamy")
    saved_handlers, saved_level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = saved_handlers
    logger.setLevel(saved_level)


def test_log_context_prefixes_fields():
    assert log_context(fatigue=40, workouts=2) == {"ctx_fatigue": 40, "ctx_workouts": 2}


def test_formatter_outputs_valid_json():
    parsed = json.loads(JSONFormatter().format(_record(msg="hello")))
    assert parsed["message"] == "hello"
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "dreamy.test"
    assert "timestamp" in parsed
    assert "context" not in parsed


def test_formatter_groups_context_fields():
    record = _record(**log_context(fatigue=42, form_status=FormStatus.NEUTRAL))
    record.other = "ignored"
    parsed = json.loads(JSONFormatter().format(record))
    assert parsed["context"] == {"fatigue": 42, "form_status": "neutral"}


def test_formatter_includes_exception():
    try:
        raise ValueError("Unknown distance: 50K")
    except ValueError:
        exc_info = sys.exc_info()
    parsed = json.loads(JSONFormatter().format(_record(level=logging.ERROR, exc_info=exc_info)))
    assert parsed["exception"] == {"type": "ValueError", "message": "Unknown distance: 50K"}


def test_recovery_snapshot_logs_context(caplog, monkeypatch):
    monkeypatch.delenv("RECOVERY_WINDOW_DAYS", raising=False)
    rows = [{"date": "2026-10-18", "training_load": 100, "workout_type": "easy"}]
    with caplog.at_level(logging.DEBUG, logger="dreamy.services.recovery"):
        recovery_status(rows, datetime(2026, 10, 19, 12, 0))

    (record,) = [r for r in caplog.records if r.name == "dreamy.services.recovery"]
    parsed = json.loads(JSONFormatter().format(record))
    assert parsed["context"] == {
        "workouts": 1,
        "fatigue": 25,
        "form_status": "fresh",
        "recovery_hours": 0,
    }


def test_dropped_stream_points_logged_with_counts(caplog):
    stream = StreamData(distance=[0.0, 0.1, 0.05, 0.2], time=[0, 30, 40, 60])
    with caplog.at_level(logging.DEBUG, logger="dreamy.services.streams"):
        normalize_stream(stream)

    (record,) = [r for r in caplog.records if r.name == "dreamy.services.streams"]
    assert json.loads(JSONFormatter().format(record))["context"] == {"dropped": 1, "points": 4}


def test_setup_logging_idempotent(dreamy_logger):
    dreamy_logger.handlers[:] = []
    setup_logging("INFO")
    setup_logging("INFO")
    json_handlers = [h for h in dreamy_logger.handlers if isinstance(h.formatter, JSONFormatter)]
    assert len(json_handlers) == 1
    assert dreamy_logger.level == logging.INFO


def test_setup_logging_level_from_settings(dreamy_logger, monkeypatch):
    dreamy_logger.handlers[:] = []
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    setup_logging()
    assert dreamy_logger.level == logging.WARNING
