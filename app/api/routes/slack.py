"""
Slack Routes
============

Slack Events API endpoint.

Mentioning the bot starts a new browser session for the mention's text
and reports progress in the mention's thread. Replying in that thread
resumes the session from its last checkpoint, passing the reply to the
model as the user's answer.
"""

import json
import re
from functools import lru_cache
from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from openai import AsyncOpenAI
from slack_sdk.signature import SignatureVerifier
from slack_sdk.web.async_client import AsyncWebClient

from app.agent import OperatorLoop
from app.api.deps import (
    build_loop,
    create_browser_session,
    get_browser_sessions,
    get_openai_client,
    get_state_store,
)
from app.browser import BrowserbaseSessions
from app.chat.slack import SlackReporter
from app.config import Settings, get_settings, validate_environment
from app.storage.state_store import StateStore
from app.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/slack", tags=["Slack"])

_MENTION = re.compile(r"<@[A-Z0-9]+>")


@lru_cache
def get_slack_client() -> AsyncWebClient:
    return AsyncWebClient(token=get_settings().slack.slack_bot_token)


def thread_key(channel: str, thread_ts: str) -> str:
    return f"{channel}-{thread_ts}"


def strip_mentions(text: str) -> str:
    return _MENTION.sub("", text or "").strip()


# Threads whose loop is running in this process
_active_threads: set[str] = set()


def is_thread_active(key: str) -> bool:
    return key in _active_threads


async def _detach(loop: Optional[OperatorLoop], session_id: Optional[str]) -> None:
    if loop is None:
        return
    try:
        await loop.computer.disconnect()
    except Exception as e:
        logger.error("Error detaching from session", session_id=session_id, error=str(e))


async def start_thread_run(
    settings: Settings,
    sessions: BrowserbaseSessions,
    openai_client: AsyncOpenAI,
    state_store: StateStore,
    slack_client: AsyncWebClient,
    channel: str,
    thread_ts: str,
    goal: str,
) -> None:
    """Open a session for a mention and run the goal in its thread."""
    key = thread_key(channel, thread_ts)
    if is_thread_active(key):
        logger.info("Thread already has a run in progress", thread_key=key)
        return
    _active_threads.add(key)

    reporter = SlackReporter(slack_client, channel, thread_ts)
    session_id = None
    loop = None
    try:
        validate_environment(settings)
        session_id = await create_browser_session(settings, sessions)
        await state_store.link_thread(key, session_id)

        loop = build_loop(
            settings,
            session_id,
            goal,
            sessions,
            openai_client,
            reporter=reporter,
            state_store=state_store,
        )
        await loop.run()
    except Exception as e:
        logger.exception("Slack run failed", channel=channel, thread_ts=thread_ts, error=str(e))
        await reporter.post("🤖 Operator: Sorry, something went wrong while working on this task.")
    finally:
        await _detach(loop, session_id)
        _active_threads.discard(key)


async def resume_thread_run(
    settings: Settings,
    sessions: BrowserbaseSessions,
    openai_client: AsyncOpenAI,
    state_store: StateStore,
    slack_client: AsyncWebClient,
    channel: str,
    thread_ts: str,
    session_id: str,
    reply: str,
) -> None:
    """Resume a thread's session with the user's reply."""
    key = thread_key(channel, thread_ts)
    if is_thread_active(key):
        logger.info("Ignoring reply while the thread's run is in progress", thread_key=key)
        return
    _active_threads.add(key)

    reporter = SlackReporter(slack_client, channel, thread_ts)
    loop = None
    try:
        saved_state = await state_store.get_state(session_id)
        if saved_state is None:
            logger.warning("No saved state for thread", session_id=session_id, channel=channel)
            await reporter.post("🤖 Operator: I couldn't find where we left off. Mention me to start a new task.")
            return

        loop = build_loop(
            settings,
            session_id,
            saved_state.goal,
            sessions,
            openai_client,
            reporter=reporter,
            state_store=state_store,
        )
        await loop.run(saved_state=saved_state, user_response=reply)
    except Exception as e:
        logger.exception("Slack resume failed", session_id=session_id, error=str(e))
        await reporter.post("🤖 Operator: Sorry, something went wrong while continuing this task.")
    finally:
        await _detach(loop, session_id)
        _active_threads.discard(key)


def _bot_user_id(payload: dict[str, Any]) -> Optional[str]:
    authorizations = payload.get("authorizations") or []
    if authorizations:
        return authorizations[0].get("user_id")
    return None


@router.post(
    "/events",
    summary="Slack Events API callback",
)
async def slack_events(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    sessions: BrowserbaseSessions = Depends(get_browser_sessions),
    openai_client: AsyncOpenAI = Depends(get_openai_client),
    state_store: StateStore = Depends(get_state_store),
) -> dict[str, Any]:
    """
    Handle a Slack event.

    Runs are scheduled in the background so Slack gets its acknowledgement
    within its three second window.

    Raises:
        HTTPException: If Slack is not configured or the signature is invalid.
    """
    if not settings.slack.enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Slack integration is not configured",
        )

    body = await request.body()
    verifier = SignatureVerifier(settings.slack.slack_signing_secret)
    if not verifier.is_valid_request(body, dict(request.headers)):
        logger.warning("Rejected Slack request with invalid signature")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Slack signature",
        )

    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON body",
        )

    if payload.get("type") == "url_verification":
        return {"challenge": payload.get("challenge")}

    # Slack redelivers events it thinks timed out; the first delivery already started the run
    if request.headers.get("x-slack-retry-num"):
        return {"ok": True}

    event = payload.get("event") or {}
    if event.get("bot_id") or event.get("subtype") == "bot_message":
        return {"ok": True}

    channel = event.get("channel", "")
    text = event.get("text", "")
    thread_ts = event.get("thread_ts")
    event_type = event.get("type")
    slack_client = get_slack_client()

    linked_session = None
    if thread_ts:
        linked_session = await state_store.session_for_thread(thread_key(channel, thread_ts))

    if event_type == "app_mention" and not linked_session:
        goal = strip_mentions(text)
        if not goal:
            return {"ok": True}
        run_ts = thread_ts or event.get("ts", "")
        logger.info("Starting Slack run", channel=channel, thread_ts=run_ts)
        background_tasks.add_task(
            start_thread_run,
            settings,
            sessions,
            openai_client,
            state_store,
            slack_client,
            channel,
            run_ts,
            goal,
        )
        return {"ok": True}

    if linked_session and event_type in ("app_mention", "message"):
        bot_user = _bot_user_id(payload)
        # A mention in a thread arrives as both app_mention and message
        if event_type == "message" and bot_user and f"<@{bot_user}>" in text:
            return {"ok": True}
        reply = strip_mentions(text)
        if not reply:
            return {"ok": True}
        if is_thread_active(thread_key(channel, thread_ts)):
            logger.info("Ignoring reply while the thread's run is in progress", channel=channel, thread_ts=thread_ts)
            return {"ok": True}
        logger.info("Resuming Slack run", channel=channel, session_id=linked_session)
        background_tasks.add_task(
            resume_thread_run,
            settings,
            sessions,
            openai_client,
            state_store,
            slack_client,
            channel,
            thread_ts,
            linked_session,
            reply,
        )

    return {"ok": True}
