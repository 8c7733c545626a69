"""
sipmeta — unit tests for structured logging

File: tests/unit/observability/test_logging.py

Purpose
- Validate structlog routing through stdlib handlers on the ``sipmeta`` logger.

What this test file should cover
- JSON line output with level, logger name and timestamp.
- Level filtering and the optional JSON log file.
- Object context binding.
"""

from __future__ import annotations

import io
import json
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

from sipmeta.observability.logging import (
    LoggingConfig,
    bind_object_context,
    get_active_logging_handle,
    setup_logging,
    setup_structured_logging,
    shutdown_logging,
)


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    shutdown_logging()
    structlog.reset_defaults()


def _json_lines(stream: io.StringIO) -> list[dict[str, object]]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


def test_json_events_carry_level_logger_and_timestamp() -> None:
    stream = io.StringIO()
    setup_logging({"level": "INFO", "format": "json"}, stream=stream)

    structlog.get_logger("sipmeta.assembly.batch").info("batch_loaded", objects=3)

    [event] = _json_lines(stream)
    assert event["event"] == "batch_loaded"
    assert event["objects"] == 3
    assert event["level"] == "info"
    assert event["logger"] == "sipmeta.assembly.batch"
    assert str(event["timestamp"]).endswith("Z")


def test_level_filtering() -> None:
    stream = io.StringIO()
    setup_logging({"level": "WARNING", "format": "json"}, stream=stream)
    logger = structlog.get_logger("sipmeta.test")

    logger.info("hidden")
    logger.warning("shown")

    assert [event["event"] for event in _json_lines(stream)] == ["shown"]


def test_console_format_is_plain_text() -> None:
    stream = io.StringIO()
    setup_logging({"format": "console"}, stream=stream)

    structlog.get_logger("sipmeta.test").info("progress", processed=1, total=2)

    text = stream.getvalue()
    assert "progress" in text
    assert "processed=1" in text
    assert "\x1b[" not in text


def test_log_dir_adds_json_file(tmp_path: Path) -> None:
    stream = io.StringIO()
    handle = setup_logging(
        {"level": "DEBUG", "format": "console", "log_dir": str(tmp_path / "logs")},
        stream=stream,
    )

    structlog.get_logger("sipmeta.test").debug("object_written", key="a/b.txt")
    shutdown_logging(handle)

    assert handle.is_shutdown
    assert handle.log_path == tmp_path / "logs" / "sipmeta.jsonl"
    [event] = [json.loads(line) for line in handle.log_path.read_text("utf-8").splitlines()]
    assert event["event"] == "object_written"
    assert event["key"] == "a/b.txt"


def test_object_context_is_bound_in_scope() -> None:
    stream = io.StringIO()
    setup_logging({"format": "json"}, stream=stream)
    logger = structlog.get_logger("sipmeta.test")

    with bind_object_context(4, "dir/file.pdf"):
        logger.info("inside")
    logger.info("outside")

    inside, outside = _json_lines(stream)
    assert inside["object_index"] == 4
    assert inside["object_key"] == "dir/file.pdf"
    assert "object_index" not in outside


def test_setup_replaces_active_handle() -> None:
    first = setup_logging({"format": "json"}, stream=io.StringIO())
    second = setup_logging({"format": "json"}, stream=io.StringIO())

    assert first.is_shutdown
    assert get_active_logging_handle() is second
    shutdown_logging()
    assert get_active_logging_handle() is None


def test_invalid_settings_are_rejected() -> None:
    with pytest.raises(ValueError, match="log format"):
        setup_structured_logging(LoggingConfig(log_format="xml"))
    with pytest.raises(ValueError, match="unsupported logging level"):
        setup_structured_logging(LoggingConfig(level="LOUD"))
