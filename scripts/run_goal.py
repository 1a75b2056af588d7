#!/usr/bin/env python3
"""
Run a Goal Locally
==================

Drive a Browserbase session from the terminal.

The operator's final message is printed; if it asks a question you can
answer it and the loop resumes from its checkpoint, the same way a reply
in a Slack thread does.

Prerequisites:
    Set OPENAI_API_KEY, BROWSERBASE_API_KEY and BROWSERBASE_PROJECT_ID in .env

Usage:
    python scripts/run_goal.py --goal "Find the weather in Paris"

    # Reuse an existing session instead of creating one
    python scripts/run_goal.py --goal "..." --session-id <id>

    # Exit after the first answer
    python scripts/run_goal.py --goal "..." --no-interactive
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.api.deps import build_loop, create_browser_session, get_browser_sessions, get_openai_client
from app.chat.reporter import live_view_url
from app.config import get_settings, validate_environment
from app.errors import ConfigurationError, OperatorError
from app.storage.state_store import InMemoryStateStore
from app.utils.logger import get_logger, setup_logging


async def run(goal: str, session_id: str | None, interactive: bool, keep_session: bool) -> int:
    settings = get_settings()
    logger = get_logger(__name__)

    try:
        validate_environment(settings)
    except ConfigurationError as e:
        print(f"❌ {e}")
        return 1

    sessions = get_browser_sessions()
    openai_client = get_openai_client()
    state_store = InMemoryStateStore()

    created = session_id is None
    if session_id is None:
        session_id = await create_browser_session(settings, sessions)
    print(f"🌐 Session: {live_view_url(session_id)}")

    loop = build_loop(settings, session_id, goal, sessions, openai_client, state_store=state_store)
    exit_code = 0
    try:
        answer = await loop.run()
        while interactive and answer is not None:
            print(f"\n🤖 {answer}")
            reply = input("\n💬 Reply (empty to finish): ").strip()
            if not reply:
                break
            saved_state = await state_store.get_state(session_id)
            answer = await loop.run(saved_state=saved_state, user_response=reply)
        if not interactive and answer is not None:
            print(f"\n🤖 {answer}")
    except OperatorError as e:
        logger.error("Run failed", error=str(e))
        exit_code = 1
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted")
        exit_code = 130
    finally:
        await loop.computer.disconnect()
        if created and not keep_session:
            await sessions.release(session_id)
        await openai_client.close()

    return exit_code


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a goal with the browser operator")
    parser.add_argument("--goal", required=True, help="Natural language goal")
    parser.add_argument("--session-id", default=None, help="Existing Browserbase session to use")
    parser.add_argument("--no-interactive", action="store_true", help="Exit after the first answer")
    parser.add_argument("--keep-session", action="store_true", help="Do not release a created session")
    args = parser.parse_args()

    setup_logging()
    sys.exit(
        asyncio.run(
            run(
                args.goal,
                args.session_id,
                interactive=not args.no_interactive,
                keep_session=args.keep_session,
            )
        )
    )


if __name__ == "__main__":
    main()
