"""
Progress Reporters
==================

Where the agent loop announces what it is doing.

``LogReporter`` writes progress to the structured log and is used for
local and HTTP demo runs. ``SlackReporter`` (see ``app.chat.slack``)
posts the same progress into a Slack thread.
"""

import json
from abc import ABC, abstractmethod
from typing import Any

from app.utils.logger import get_logger

logger = get_logger(__name__)

LIVE_VIEW_URL = "https://www.browserbase.com/sessions/{session_id}"


def live_view_url(session_id: str) -> str:
    """URL where a human can watch or take over the browser session."""
    return LIVE_VIEW_URL.format(session_id=session_id)


class ProgressReporter(ABC):
    """Receives progress events from the agent loop."""

    @abstractmethod
    async def started(self, session_id: str) -> None:
        """The loop is starting a fresh run."""

    @abstractmethod
    async def reasoning(self, text: str) -> None:
        """The model produced a reasoning summary."""

    @abstractmethod
    async def action(self, action: dict[str, Any]) -> None:
        """The loop is about to execute a computer action."""

    @abstractmethod
    async def screenshot(self, image_b64: str) -> None:
        """A screenshot of the browser is available."""

    @abstractmethod
    async def finished(self, text: str, session_id: str) -> None:
        """The model answered with a final message."""


class LogReporter(ProgressReporter):
    """Reports progress to the structured log."""

    async def started(self, session_id: str) -> None:
        logger.info(
            f"🤖 Operator: Starting up to complete the task! "
            f"You can follow along at {live_view_url(session_id)}",
            session_id=session_id,
        )

    async def reasoning(self, text: str) -> None:
        logger.info(f"🧠 Reasoning: {text}")

    async def action(self, action: dict[str, Any]) -> None:
        logger.info(f"🖥️  Action: {json.dumps(action)}")

    async def screenshot(self, image_b64: str) -> None:
        logger.debug("Screenshot captured", size=len(image_b64))

    async def finished(self, text: str, session_id: str) -> None:
        logger.info(f"🤖 Operator: {text}", session_id=session_id)
