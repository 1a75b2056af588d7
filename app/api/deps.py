"""
Shared Route Dependencies
=========================

Builders for the clients and loop objects the routes need, so every
entry point wires the agent the same way.
"""

from functools import lru_cache
from typing import Optional

from openai import AsyncOpenAI

from app.agent import Agent, LoopConfig, OperatorLoop
from app.browser import BrowserbaseBrowser, BrowserbaseSessions, get_closest_region
from app.chat.reporter import ProgressReporter
from app.config import Settings, get_settings
from app.storage.state_store import BlobStateStore, InMemoryStateStore, StateStore


@lru_cache
def get_openai_client() -> AsyncOpenAI:
    settings = get_settings()
    return AsyncOpenAI(api_key=settings.openai.openai_api_key or None)


@lru_cache
def get_browser_sessions() -> BrowserbaseSessions:
    settings = get_settings()
    return BrowserbaseSessions(
        api_key=settings.browserbase.browserbase_api_key,
        project_id=settings.browserbase.browserbase_project_id,
    )


@lru_cache
def get_state_store() -> StateStore:
    """Blob store when a token is configured, otherwise process memory."""
    settings = get_settings()
    if settings.blob.blob_read_write_token:
        return BlobStateStore(
            token=settings.blob.blob_read_write_token,
            api_url=settings.blob.blob_api_url,
            api_version=settings.blob.blob_api_version,
        )
    return InMemoryStateStore()


def session_region(settings: Settings) -> str:
    return settings.browserbase.browserbase_region or get_closest_region(settings.browserbase.tz)


async def create_browser_session(settings: Settings, sessions: BrowserbaseSessions) -> str:
    """Create a Browserbase session with the configured browser settings."""
    return await sessions.create(
        region=session_region(settings),
        width=settings.browserbase.viewport_width,
        height=settings.browserbase.viewport_height,
        timeout=settings.browserbase.session_timeout,
        block_ads=settings.browserbase.block_ads,
    )


def build_loop(
    settings: Settings,
    session_id: str,
    goal: str,
    sessions: BrowserbaseSessions,
    openai_client: AsyncOpenAI,
    reporter: Optional[ProgressReporter] = None,
    state_store: Optional[StateStore] = None,
) -> OperatorLoop:
    """Wire a browser, model adapter and loop for one session."""
    computer = BrowserbaseBrowser(
        settings.browserbase.viewport_width,
        settings.browserbase.viewport_height,
        session_id,
        sessions=sessions,
    )
    agent = Agent(
        settings.openai.computer_use_model,
        computer,
        verbose=settings.agent.verbose,
        client=openai_client,
    )
    return OperatorLoop(
        computer,
        agent,
        goal,
        session_id,
        url_client=openai_client,
        reporter=reporter,
        state_store=state_store,
        config=LoopConfig(
            max_steps=settings.agent.max_steps,
            starting_url_model=settings.openai.starting_url_model,
            starting_url_timeout=settings.openai.starting_url_timeout,
            fallback_url=settings.openai.fallback_url,
        ),
    )
