"""
Browser Integration Module
==========================

Remote browser abstraction for the computer-use agent.

This package contains:
    - computer: Abstract base class for computer-use environments
    - browserbase: Browserbase session lifecycle and Playwright-driven browser
"""

from app.browser.browserbase import (
    BrowserbaseBrowser,
    BrowserbaseSessions,
    get_closest_region,
    map_key,
)
from app.browser.computer import Computer, ConnectionState

__all__ = [
    "Computer",
    "ConnectionState",
    "BrowserbaseBrowser",
    "BrowserbaseSessions",
    "get_closest_region",
    "map_key",
]
