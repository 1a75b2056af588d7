"""
API Routes Package
==================

REST API route definitions.
"""

from app.api.routes.demo import router as demo_router
from app.api.routes.health import router as health_router
from app.api.routes.slack import router as slack_router

__all__ = [
    "demo_router",
    "health_router",
    "slack_router",
]
