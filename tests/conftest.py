"""
Shared Test Fixtures
====================

Pytest fixtures used across all test modules.
Provides correctly-typed mocks matching the actual codebase APIs.
"""

import os

# Set required env vars BEFORE any app.* imports to avoid pydantic validation errors
os.environ.setdefault("OPENAI_API_KEY", "sk-test-key-for-testing")
os.environ.setdefault("BROWSERBASE_API_KEY", "bb_test-key-for-testing")
os.environ.setdefault("BROWSERBASE_PROJECT_ID", "test-project")

from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.agent.agent import Agent
from app.agent.items import Step
from app.browser.computer import Computer
from app.chat.reporter import ProgressReporter

# A 1x1 black PNG base64
PNG_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8/5+hHgAHggJ/PchI7wAAAABJRU5ErkJggg=="


# ---------------------------------------------------------------------------
# Item builders
# ---------------------------------------------------------------------------

def message_item(text: str) -> dict[str, Any]:
    return {
        "type": "message",
        "id": "msg_1",
        "role": "assistant",
        "content": [{"type": "output_text", "text": text}],
    }


def reasoning_item(text: Optional[str] = "Looking at the page") -> dict[str, Any]:
    summary = [{"type": "summary_text", "text": text}] if text is not None else []
    return {"type": "reasoning", "id": "rs_1", "summary": summary}


def computer_call_item(action: dict[str, Any], call_id: str = "call_1", checks=None) -> dict[str, Any]:
    return {
        "type": "computer_call",
        "id": "cu_1",
        "call_id": call_id,
        "action": action,
        "pending_safety_checks": checks or [],
    }


def call_output_item(call_id: str = "call_1", image: str = PNG_B64) -> dict[str, Any]:
    return {
        "type": "computer_call_output",
        "call_id": call_id,
        "acknowledged_safety_checks": [],
        "output": {
            "type": "input_image",
            "image_url": f"data:image/png;base64,{image}",
            "current_url": "https://example.com",
        },
    }


# ---------------------------------------------------------------------------
# Computer mock
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_computer() -> MagicMock:
    """Create a mock Computer with all abstract methods mocked."""
    computer = MagicMock(spec=Computer)

    computer.environment = "browser"
    computer.dimensions = (1024, 768)
    computer.is_connected = True

    computer.connect = AsyncMock(return_value=None)
    computer.disconnect = AsyncMock(return_value=None)
    computer.screenshot = AsyncMock(return_value=PNG_B64)
    computer.get_current_url = MagicMock(return_value="https://example.com")

    computer.click = AsyncMock()
    computer.double_click = AsyncMock()
    computer.scroll = AsyncMock()
    computer.type = AsyncMock()
    computer.wait = AsyncMock()
    computer.move = AsyncMock()
    computer.keypress = AsyncMock()
    computer.drag = AsyncMock()
    computer.goto = AsyncMock()
    computer.back = AsyncMock()

    return computer


# ---------------------------------------------------------------------------
# Agent mock
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_agent() -> MagicMock:
    """
    Create a mock Agent.

    Tests script ``get_action`` with ``side_effect`` lists of Steps.
    ``take_action`` returns one computer_call_output per computer_call and
    passes messages through, like the real adapter.
    """
    agent = MagicMock(spec=Agent)

    async def take_action(output):
        results = []
        for item in output:
            if item["type"] == "computer_call":
                results.append(call_output_item(item["call_id"]))
            elif item["type"] == "message":
                results.append(item)
        return results

    agent.get_action = AsyncMock(return_value=Step(output=[message_item("Done")], response_id="resp_1"))
    agent.take_action = AsyncMock(side_effect=take_action)
    agent.get_api_call_count = MagicMock(return_value=0)

    return agent


# ---------------------------------------------------------------------------
# Reporter mock
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_reporter() -> MagicMock:
    """Create a mock ProgressReporter recording every event."""
    reporter = MagicMock(spec=ProgressReporter)
    reporter.started = AsyncMock()
    reporter.reasoning = AsyncMock()
    reporter.action = AsyncMock()
    reporter.screenshot = AsyncMock()
    reporter.finished = AsyncMock()
    return reporter
