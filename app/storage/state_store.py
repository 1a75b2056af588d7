"""
State Store
===========

Checkpoint storage for agent loop state.

Each checkpoint is written as a new blob named after the session, so a
session accumulates timestamped checkpoints and the most recently
uploaded one wins on read. Reads never raise: a missing or unreadable
checkpoint is reported as ``None`` and the caller starts fresh.

Usage:
    store = BlobStateStore(token=settings.blob.blob_read_write_token)
    url = await store.save_state(session_id, AgentState(goal, step))
    state = await store.get_state(session_id)
"""

import asyncio
import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

import aiohttp

from app.agent.state import AgentState
from app.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_BLOB_API_URL = "https://blob.vercel-storage.com"


def state_prefix(session_id: str) -> str:
    return f"agent-{session_id}-state"


def thread_prefix(thread_key: str) -> str:
    return f"thread-{thread_key}-session"


class StateStore(ABC):
    """Persists agent state checkpoints keyed by session ID."""

    @abstractmethod
    async def save_state(self, session_id: str, state: AgentState) -> str:
        """
        Write a new checkpoint.

        Returns:
            Location of the written checkpoint.
        """

    @abstractmethod
    async def get_state(self, session_id: str) -> Optional[AgentState]:
        """Return the latest checkpoint of a session, or None."""

    @abstractmethod
    async def link_thread(self, thread_key: str, session_id: str) -> None:
        """Remember which session a chat thread started."""

    @abstractmethod
    async def session_for_thread(self, thread_key: str) -> Optional[str]:
        """Return the session a chat thread started, or None."""


class InMemoryStateStore(StateStore):
    """Process-local state store for development and tests."""

    def __init__(self) -> None:
        self._states: dict[str, list[str]] = {}
        self._threads: dict[str, str] = {}

    async def save_state(self, session_id: str, state: AgentState) -> str:
        checkpoints = self._states.setdefault(session_id, [])
        checkpoints.append(state.to_json())
        return f"memory://{state_prefix(session_id)}/{len(checkpoints)}"

    async def get_state(self, session_id: str) -> Optional[AgentState]:
        checkpoints = self._states.get(session_id)
        if not checkpoints:
            return None
        try:
            return AgentState.from_json(checkpoints[-1])
        except ValueError as e:
            logger.error("Error retrieving state", session_id=session_id, error=str(e))
            return None

    async def link_thread(self, thread_key: str, session_id: str) -> None:
        self._threads[thread_key] = session_id

    async def session_for_thread(self, thread_key: str) -> Optional[str]:
        return self._threads.get(thread_key)


class BlobStateStore(StateStore):
    """
    State store backed by the Vercel Blob REST API.

    Attributes:
        token: Blob read/write token.
        api_url: Blob API base URL.
    """

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_BLOB_API_URL,
        api_version: str = "7",
        timeout: float = 30.0,
    ) -> None:
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "authorization": f"Bearer {self.token}",
            "x-api-version": self.api_version,
        }

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def put(self, pathname: str, body: str) -> str:
        """
        Upload a JSON blob under a randomly suffixed pathname.

        Returns:
            Public URL of the blob.

        Raises:
            aiohttp.ClientError: On transport or HTTP errors.
        """
        session = await self._get_session()
        async with session.put(
            f"{self.api_url}/{pathname}",
            data=body.encode("utf-8"),
            headers={
                **self._headers,
                "x-add-random-suffix": "1",
                "x-content-type": "application/json",
            },
        ) as response:
            response.raise_for_status()
            data = await response.json()
        return data["url"]

    async def list_blobs(self, prefix: str) -> list[dict[str, Any]]:
        """List every blob whose pathname starts with ``prefix``."""
        session = await self._get_session()
        blobs: list[dict[str, Any]] = []
        cursor: Optional[str] = None
        while True:
            params = {"prefix": prefix}
            if cursor:
                params["cursor"] = cursor
            async with session.get(self.api_url, params=params, headers=self._headers) as response:
                response.raise_for_status()
                page = await response.json()
            blobs.extend(page.get("blobs", []))
            cursor = page.get("cursor")
            if not page.get("hasMore") or not cursor:
                return blobs

    async def fetch_latest(self, prefix: str) -> Optional[Any]:
        """Download and decode the most recently uploaded blob under a prefix."""
        blobs = await self.list_blobs(prefix)
        if not blobs:
            return None

        latest = max(blobs, key=lambda blob: _parse_uploaded_at(blob["uploadedAt"]))
        session = await self._get_session()
        async with session.get(latest["url"]) as response:
            response.raise_for_status()
            text = await response.text()
        return json.loads(text)

    async def save_state(self, session_id: str, state: AgentState) -> str:
        url = await self.put(f"{state_prefix(session_id)}.json", state.to_json())
        logger.info("State saved", session_id=session_id, url=url)
        return url

    async def get_state(self, session_id: str) -> Optional[AgentState]:
        try:
            data = await self.fetch_latest(state_prefix(session_id))
            if data is None:
                return None
            return AgentState.from_dict(data)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, KeyError) as e:
            logger.error("Error retrieving state", session_id=session_id, error=str(e))
            return None

    async def link_thread(self, thread_key: str, session_id: str) -> None:
        await self.put(f"{thread_prefix(thread_key)}.json", json.dumps({"sessionId": session_id}))

    async def session_for_thread(self, thread_key: str) -> Optional[str]:
        try:
            data = await self.fetch_latest(thread_prefix(thread_key))
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, KeyError) as e:
            logger.error("Error retrieving thread session", thread_key=thread_key, error=str(e))
            return None
        if not isinstance(data, dict):
            return None
        return data.get("sessionId")

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


def _parse_uploaded_at(value: str) -> datetime:
    # Blob timestamps are ISO 8601 with a trailing Z
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
