"""
API Module
==========

FastAPI routes for the Browser Operator.

This package contains:
    - routes/: REST endpoints (demo runner, Slack events, health)
    - deps: Shared client and loop builders
"""

from app.api.routes import demo, health, slack

__all__ = [
    "demo",
    "health",
    "slack",
]
