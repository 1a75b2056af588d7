"""
Tests for Logging Utilities
===========================
"""

import structlog

from app.utils.logger import LogContext, add_app_context, redact_screenshots
from tests.conftest import PNG_B64, call_output_item


class TestProcessors:
    def test_app_context(self):
        event = add_app_context(None, "info", {"event": "hello"})
        assert event["app"] == "browser-operator"
        assert "version" in event

    def test_screenshots_redacted_in_nested_items(self):
        event = redact_screenshots(None, "debug", {"event": "Model request", "input": [call_output_item()]})

        image_url = event["input"][0]["output"]["image_url"]
        assert PNG_B64 not in image_url
        assert image_url.startswith("<screenshot ")
        assert event["input"][0]["output"]["current_url"] == "https://example.com"

    def test_plain_values_untouched(self):
        event = {"event": "Step", "steps": 3, "goal": "Find flights"}
        assert redact_screenshots(None, "info", event) == event


class TestLogContext:
    def test_binds_and_unbinds(self):
        structlog.contextvars.clear_contextvars()

        with LogContext(session_id="sess-1"):
            assert structlog.contextvars.get_contextvars() == {"session_id": "sess-1"}

        assert structlog.contextvars.get_contextvars() == {}
