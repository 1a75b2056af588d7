"""
Computer Abstraction
====================

Abstract base class for the environments the computer-use model drives.
Every action the model can emit maps onto one coroutine here.

Usage:
    from app.browser import BrowserbaseBrowser

    computer = BrowserbaseBrowser(1024, 768, session_id)
    await computer.connect()
    await computer.goto("https://www.google.com")
    screenshot = await computer.screenshot()
    await computer.disconnect()
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class ConnectionState(Enum):
    """State of the remote browser connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class Computer(ABC):
    """
    Abstract base class for computer-use environments.

    Coordinates are in viewport pixels. Failures raise
    ``app.errors.BrowserError``.
    """

    environment: str = "browser"

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.state = ConnectionState.DISCONNECTED

    @property
    def dimensions(self) -> tuple[int, int]:
        return (self.width, self.height)

    @property
    def is_connected(self) -> bool:
        """Check if the browser is currently attached."""
        return self.state == ConnectionState.CONNECTED

    @abstractmethod
    async def connect(self) -> None:
        """
        Attach to the environment.

        Must be safe to call repeatedly; an attached computer is left as is.
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """Detach from the environment without ending the remote session."""

    @abstractmethod
    async def screenshot(self) -> str:
        """
        Capture the current viewport.

        Returns:
            Base64-encoded PNG screenshot.
        """

    @abstractmethod
    async def click(self, x: int, y: int, button: str = "left") -> None:
        """Click at coordinates with the given mouse button."""

    @abstractmethod
    async def double_click(self, x: int, y: int) -> None:
        """Double click at coordinates."""

    @abstractmethod
    async def scroll(self, x: int, y: int, scroll_x: int, scroll_y: int) -> None:
        """Scroll by the given deltas with the pointer at (x, y)."""

    @abstractmethod
    async def type(self, text: str) -> None:
        """Type text into the focused element."""

    @abstractmethod
    async def wait(self, ms: int = 1000) -> None:
        """Pause for the given number of milliseconds."""

    @abstractmethod
    async def move(self, x: int, y: int) -> None:
        """Move the pointer to coordinates."""

    @abstractmethod
    async def keypress(self, keys: list[str]) -> None:
        """Press a key combination."""

    @abstractmethod
    async def drag(self, path: list[dict[str, Any]]) -> None:
        """Drag the pointer along a path of ``{"x", "y"}`` points."""

    @abstractmethod
    async def goto(self, url: str) -> None:
        """Navigate to a URL."""

    @abstractmethod
    async def back(self) -> None:
        """Navigate back in history."""

    @abstractmethod
    def get_current_url(self) -> str:
        """Return the URL of the current page."""
