"""
Slack Reporter
==============

Posts agent progress into a Slack thread: a start notice with the live
view link, reasoning summaries, screenshots, and the operator's final
message.
"""

import base64
from typing import Any

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from app.agent.items import strip_data_uri
from app.chat.reporter import ProgressReporter, live_view_url
from app.utils.logger import get_logger

logger = get_logger(__name__)


class SlackReporter(ProgressReporter):
    """
    Reports progress into one Slack thread.

    Attributes:
        client: Slack web client.
        channel: Channel ID of the thread.
        thread_ts: Timestamp of the thread's parent message.
    """

    def __init__(self, client: AsyncWebClient, channel: str, thread_ts: str) -> None:
        self.client = client
        self.channel = channel
        self.thread_ts = thread_ts

    async def post(self, text: str) -> None:
        """Post a message into the thread."""
        try:
            await self.client.chat_postMessage(
                channel=self.channel,
                text=text,
                thread_ts=self.thread_ts,
            )
        except SlackApiError as e:
            logger.error("Failed to post Slack message", error=e.response.get("error"), channel=self.channel)
            raise

    async def upload_screenshot(self, image_b64: str) -> None:
        """Upload a base64 screenshot (data URI or raw) into the thread."""
        try:
            await self.client.files_upload_v2(
                channel=self.channel,
                thread_ts=self.thread_ts,
                file=base64.b64decode(strip_data_uri(image_b64)),
                filename="screenshot.png",
            )
        except SlackApiError as e:
            logger.error("Failed to upload screenshot", error=e.response.get("error"), channel=self.channel)
            raise

    async def started(self, session_id: str) -> None:
        await self.post(
            "🤖 Operator: Starting up to complete the task!\n\n"
            f"You can follow along at {live_view_url(session_id)}"
        )

    async def reasoning(self, text: str) -> None:
        await self.post(f"🧠 Reasoning: {text}")

    async def action(self, action: dict[str, Any]) -> None:
        # Individual actions are too noisy for a chat thread
        return None

    async def screenshot(self, image_b64: str) -> None:
        await self.upload_screenshot(image_b64)

    async def finished(self, text: str, session_id: str) -> None:
        await self.post(
            f"🤖 Operator: {text}\n\n"
            f" You can control the browser if needed at {live_view_url(session_id)}"
        )
