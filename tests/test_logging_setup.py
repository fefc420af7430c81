# =============================================================================
# tests/test_logging_setup.py - Logger Construction Tests
# =============================================================================

import io
import json
import logging

import pytest
import structlog

from app.config import LoggingSettings
from lib.logging_setup import LOGGER_NAME, parse_level, setup_logging


class TestParseLevel:
    """Tests for level name parsing."""

    @pytest.mark.parametrize("name,expected", [
        ("debug", logging.DEBUG),
        ("INFO", logging.INFO),
        ("warn", logging.WARNING),
        ("Warning", logging.WARNING),
        ("error", logging.ERROR),
        ("verbose", logging.INFO),
        ("", logging.INFO),
    ])
    def test_levels(self, name, expected):
        assert parse_level(name) == expected


class TestSetupLogging:
    """Tests for the configured logger."""

    def test_text_format_with_fields(self):
        stream = io.StringIO()
        logger = setup_logging(LoggingSettings(level="info", format="text"), stream=stream)

        logger.info("Processing echo request", extra={"author": "Alice", "echo_message": "Hi"})

        line = stream.getvalue().strip()
        assert "[info" in line
        assert "Processing echo request" in line
        assert "[hello_echo]" in line
        assert "author=Alice" in line
        assert "echo_message=Hi" in line

    def test_text_format_includes_traceback(self):
        stream = io.StringIO()
        logger = setup_logging(LoggingSettings(level="info", format="text"), stream=stream)

        try:
            raise ValueError("bad value")
        except ValueError:
            logger.exception("Unhandled error", extra={"path": "/boom"})

        output = stream.getvalue()
        assert "path=/boom" in output
        assert "ValueError: bad value" in output

    def test_json_format(self):
        stream = io.StringIO()
        logger = setup_logging(LoggingSettings(level="info", format="json"), stream=stream)

        logger.warning("Disk almost full", extra={"free_mb": 12})

        record = json.loads(stream.getvalue())
        assert record["level"] == "warning"
        assert record["logger"] == LOGGER_NAME
        assert record["event"] == "Disk almost full"
        assert record["free_mb"] == 12
        assert "timestamp" in record

    def test_json_format_one_object_per_line(self):
        stream = io.StringIO()
        logger = setup_logging(LoggingSettings(level="info", format="json"), stream=stream)

        logger.info("first")
        logger.info("second")

        lines = stream.getvalue().splitlines()
        assert [json.loads(line)["event"] for line in lines] == ["first", "second"]

    def test_json_format_includes_traceback(self):
        stream = io.StringIO()
        logger = setup_logging(LoggingSettings(level="info", format="JSON"), stream=stream)

        try:
            raise ValueError("bad value")
        except ValueError:
            logger.exception("Unhandled error")

        record = json.loads(stream.getvalue())
        assert "ValueError: bad value" in record["exception"]

    def test_formatter_is_structlog_bridge(self):
        logger = setup_logging(LoggingSettings(format="json"), stream=io.StringIO())

        assert isinstance(logger.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_level_filters_records(self):
        stream = io.StringIO()
        logger = setup_logging(LoggingSettings(level="error", format="text"), stream=stream)

        logger.info("hidden")
        logger.error("shown")

        output = stream.getvalue()
        assert "hidden" not in output
        assert "shown" in output

    def test_repeated_setup_replaces_handler(self):
        first = io.StringIO()
        second = io.StringIO()
        setup_logging(LoggingSettings(), stream=first)
        logger = setup_logging(LoggingSettings(), stream=second)

        logger.info("once")

        assert len(logger.handlers) == 1
        assert first.getvalue() == ""
        assert second.getvalue().count("once") == 1

    def test_root_logger_untouched(self):
        root_handlers = list(logging.getLogger().handlers)

        logger = setup_logging(LoggingSettings(), stream=io.StringIO())

        assert logger.propagate is False
        assert logging.getLogger().handlers == root_handlers
