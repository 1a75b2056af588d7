"""
Health Check Routes
===================

Endpoints for health monitoring and service status.

Includes:
- Basic health check
- Readiness probe
- Detailed status information
"""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from app.config import Settings, get_settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get(
    "",
    summary="Basic health check",
    response_description="Service health status",
)
async def health_check() -> dict[str, str]:
    """
    Basic health check endpoint.

    Returns:
        Simple status message indicating service is running.
    """
    return {"status": "healthy", "timestamp": _now()}


@router.get(
    "/ready",
    summary="Readiness probe",
    response_description="Service readiness status",
)
async def readiness_check(
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """
    Readiness probe for container orchestration.

    Checks that the credentials needed to run a goal are configured:
    - OpenAI API key
    - Browserbase API key and project

    Slack and blob storage are optional and reported but not required.

    Raises:
        HTTPException: If service is not ready.
    """
    checks: dict[str, bool] = {
        "openai_configured": bool(settings.openai.openai_api_key),
        "browserbase_configured": bool(
            settings.browserbase.browserbase_api_key and settings.browserbase.browserbase_project_id
        ),
    }
    optional = {
        "slack_configured": settings.slack.enabled,
        "blob_configured": bool(settings.blob.blob_read_write_token),
    }

    if not all(checks.values()):
        missing = [name for name, ok in checks.items() if not ok]
        logger.warning("Service not ready", missing=missing)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "status": "not_ready",
                "checks": {**checks, **optional},
            },
        )

    return {
        "status": "ready",
        "checks": {**checks, **optional},
        "timestamp": _now(),
    }


@router.get(
    "/live",
    summary="Liveness probe",
    response_description="Service liveness status",
)
async def liveness_check() -> dict[str, str]:
    """Liveness probe; returns quickly while the process is alive."""
    return {"status": "alive"}


@router.get(
    "/info",
    summary="Service information",
    response_description="Detailed service information",
)
async def service_info(
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """
    Get detailed service information.

    Returns:
        Service version, configuration, and environment info.
    """
    from app import __version__

    return {
        "service": "browser-operator",
        "version": __version__,
        "environment": settings.server.environment,
        "config": {
            "computer_use_model": settings.openai.computer_use_model,
            "viewport": f"{settings.browserbase.viewport_width}x{settings.browserbase.viewport_height}",
            "max_steps": settings.agent.max_steps,
            "debug_mode": settings.server.debug,
        },
        "timestamp": _now(),
    }
