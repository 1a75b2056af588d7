"""
Demo Routes
===========

Run a goal end to end in a fresh Browserbase session.

The request blocks until the model answers; progress is written to the
log. The browser session is always released afterwards.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from app.api.deps import build_loop, create_browser_session, get_browser_sessions, get_openai_client
from app.browser import BrowserbaseSessions
from app.config import Settings, get_settings, validate_environment
from app.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/demo", tags=["Demo"])


class DemoRequest(BaseModel):
    """Request to run a goal."""

    goal: Optional[str] = Field(
        default=None,
        description="Natural language goal for the operator",
    )


class DemoResponse(BaseModel):
    """Response once the loop has finished."""

    completed: bool
    result: Optional[str] = None


@router.post(
    "",
    response_model=DemoResponse,
    summary="Run a goal in a new browser session",
)
async def run_demo(
    request: DemoRequest,
    settings: Settings = Depends(get_settings),
    sessions: BrowserbaseSessions = Depends(get_browser_sessions),
    openai_client: AsyncOpenAI = Depends(get_openai_client),
):
    """
    Run the operator loop for a goal.

    Returns:
        ``{"completed": true}`` with the final answer once the model is done.
    """
    if not request.goal:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Missing required field: goal"},
        )

    session_id: Optional[str] = None
    loop = None
    try:
        validate_environment(settings)
        session_id = await create_browser_session(settings, sessions)
        logger.info("Running demo goal", session_id=session_id, goal=request.goal)

        loop = build_loop(settings, session_id, request.goal, sessions, openai_client)
        result = await loop.run()

        return DemoResponse(completed=True, result=result)
    except Exception as e:
        logger.exception("Error handling demo request", session_id=session_id, error=str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
        )
    finally:
        try:
            if loop is not None:
                await loop.computer.disconnect()
            if session_id:
                await sessions.release(session_id)
        except Exception as e:
            logger.error("Error releasing session", session_id=session_id, error=str(e))
