"""Unit tests for logging configuration."""

from __future__ import annotations

import json
import logging
import logging.handlers
from io import StringIO
from pathlib import Path
from typing import Any

import pytest
import structlog

from geodesk.config import LoggingConfig
from geodesk.logging import (
    add_correlation_id,
    bind_actor_context,
    clear_actor_context,
    get_correlation_id,
    get_logger,
    set_correlation_id,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_logging() -> None:
    """Reset logging configuration before each test."""
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    set_correlation_id(None)


@pytest.fixture
def capture_stream() -> StringIO:
    return StringIO()


def _capture(config: LoggingConfig, stream: StringIO) -> None:
    setup_logging(config)
    logging.getLogger().handlers[0].stream = stream  # type: ignore[attr-defined]


def _last_entry(stream: StringIO) -> dict[str, Any]:
    lines = [line for line in stream.getvalue().splitlines() if line.strip()]
    return json.loads(lines[-1])


def test_json_output_format(capture_stream: StringIO) -> None:
    _capture(LoggingConfig(level="INFO", format="json"), capture_stream)

    get_logger("test.module").info("quote_generated", total="1500.00", line_item_count=2)

    entry = _last_entry(capture_stream)
    assert entry["event"] == "quote_generated"
    assert entry["total"] == "1500.00"
    assert entry["line_item_count"] == 2
    assert entry["level"] == "info"
    assert entry["logger"] == "test.module"
    assert "timestamp" in entry


def test_console_output_is_not_json(capture_stream: StringIO) -> None:
    _capture(LoggingConfig(level="DEBUG", format="console"), capture_stream)

    get_logger("test.module").debug("outbox_idle", pending=0)

    output = capture_stream.getvalue()
    assert "outbox_idle" in output
    with pytest.raises(json.JSONDecodeError):
        json.loads(output.strip())


def test_log_level_filtering(capture_stream: StringIO) -> None:
    _capture(LoggingConfig(level="WARNING", format="json"), capture_stream)
    logger = get_logger("test.module")

    logger.info("ignored_event")
    assert capture_stream.getvalue() == ""

    logger.warning("kept_event")
    assert _last_entry(capture_stream)["event"] == "kept_event"


def test_correlation_id_added_and_cleared(capture_stream: StringIO) -> None:
    _capture(LoggingConfig(level="INFO", format="json"), capture_stream)
    logger = get_logger("test.module")

    set_correlation_id("corr-123")
    assert get_correlation_id() == "corr-123"
    logger.info("with_correlation")
    assert _last_entry(capture_stream)["correlation_id"] == "corr-123"

    set_correlation_id(None)
    logger.info("without_correlation")
    assert "correlation_id" not in _last_entry(capture_stream)


def test_correlation_id_processor() -> None:
    assert "correlation_id" not in add_correlation_id(None, "", {"event": "x"})

    set_correlation_id("abc")
    assert add_correlation_id(None, "", {"event": "x"})["correlation_id"] == "abc"


def test_actor_context_binding(capture_stream: StringIO) -> None:
    _capture(LoggingConfig(level="INFO", format="json"), capture_stream)
    logger = get_logger("test.module")

    bind_actor_context(actor_id="6f1c", role="admin")
    logger.info("status_changed")
    entry = _last_entry(capture_stream)
    assert entry["actor_id"] == "6f1c"
    assert entry["actor_role"] == "admin"

    clear_actor_context()
    logger.info("after_request")
    entry = _last_entry(capture_stream)
    assert "actor_id" not in entry
    assert "actor_role" not in entry


def test_file_output_uses_rotating_handler(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "geodesk.log"
    setup_logging(
        LoggingConfig(level="INFO", format="json", file=log_file, rotation_size_mb=1)
    )

    handler = logging.getLogger().handlers[0]
    assert isinstance(handler, logging.handlers.RotatingFileHandler)
    assert handler.maxBytes == 1024 * 1024

    get_logger("test.module").info("written_to_file")
    handler.flush()
    assert "written_to_file" in log_file.read_text()
    handler.close()
