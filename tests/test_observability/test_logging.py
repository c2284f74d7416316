"""Tests for logging setup."""

import io
import logging

import structlog

from syllabus_sync.observability.logging import bind_context, clear_context, setup_logging


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_level_override(self):
        root = logging.getLogger()
        previous_level, previous_handlers = root.level, list(root.handlers)
        root.handlers = []
        try:
            setup_logging("DEBUG", stream=io.StringIO())
            assert root.level == logging.DEBUG
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers = previous_handlers
            root.setLevel(previous_level)
            structlog.reset_defaults()

    def test_stream_receives_output(self):
        root = logging.getLogger()
        previous_level, previous_handlers = root.level, list(root.handlers)
        root.handlers = []
        stream = io.StringIO()
        try:
            setup_logging("INFO", stream=stream)
            logging.getLogger("syllabus_sync.test").info("hello from test")
            assert "hello from test" in stream.getvalue()
        finally:
            root.handlers = previous_handlers
            root.setLevel(previous_level)
            structlog.reset_defaults()


class TestContext:
    """Tests for contextvar binding helpers."""

    def test_bind_and_clear(self):
        bind_context(request_id="req-1")
        assert structlog.contextvars.get_contextvars()["request_id"] == "req-1"
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}
