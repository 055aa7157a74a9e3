"""Tests for centralized logging."""

import json
import logging
import sys

from ticketsync.infrastructure.logging import configure_logging, JSONFormatter


class TestConfigureLogging:
    def test_default_level(self):
        configure_logging(level=logging.INFO)
        logger = logging.getLogger("ticketsync")
        assert logger.level == logging.INFO

    def test_debug_level(self):
        configure_logging(level=logging.DEBUG)
        logger = logging.getLogger("ticketsync")
        assert logger.level == logging.DEBUG

    def test_level_by_name(self):
        configure_logging(level="warning")
        logger = logging.getLogger("ticketsync")
        assert logger.level == logging.WARNING

    def test_unknown_level_name_falls_back_to_info(self):
        configure_logging(level="chatty")
        logger = logging.getLogger("ticketsync")
        assert logger.level == logging.INFO

    def test_json_format(self):
        configure_logging(level=logging.INFO, json_format=True)
        logger = logging.getLogger("ticketsync")
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_human_format(self):
        configure_logging(level=logging.INFO, json_format=False)
        logger = logging.getLogger("ticketsync")
        assert len(logger.handlers) == 1
        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_replaces_handlers(self):
        configure_logging(level=logging.INFO)
        configure_logging(level=logging.DEBUG)
        logger = logging.getLogger("ticketsync")
        assert len(logger.handlers) == 1


def _record(msg="hello world", level=logging.INFO, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestJSONFormatter:
    def test_format_basic(self):
        data = json.loads(JSONFormatter().format(_record()))
        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert "timestamp" in data

    def test_context_fields(self):
        record = _record()
        record.ticket_id = 42
        record.outcome = "created"
        data = json.loads(JSONFormatter().format(record))
        assert data["ticket_id"] == 42
        assert data["outcome"] == "created"
        assert "incident_id" not in data

    def test_format_with_exception(self):
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(_record("error occurred", logging.ERROR, exc_info)))
        assert "exception" in data
        assert "ValueError" in data["exception"]
