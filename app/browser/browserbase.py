"""
Browserbase Browser
===================

Computer implementation backed by a remote Browserbase session.

The session itself is created and released by ``BrowserbaseSessions``;
``BrowserbaseBrowser`` only attaches Playwright to it over CDP and
translates computer-use actions into Playwright calls.

Usage:
    sessions = BrowserbaseSessions(api_key, project_id)
    session_id = await sessions.create(region="us-west-2")

    computer = BrowserbaseBrowser(1024, 768, session_id, api_key=api_key)
    await computer.connect()
    await computer.click(100, 200)
"""

import asyncio
import base64
from typing import Any, Optional

from browserbase import AsyncBrowserbase
from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from app.browser.computer import Computer, ConnectionState
from app.errors import BrowserError
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Key names emitted by the computer-use model -> Playwright key names
CUA_KEY_TO_PLAYWRIGHT_KEY = {
    "/": "Divide",
    "\\": "Backslash",
    "alt": "Alt",
    "arrowdown": "ArrowDown",
    "arrowleft": "ArrowLeft",
    "arrowright": "ArrowRight",
    "arrowup": "ArrowUp",
    "backspace": "Backspace",
    "capslock": "CapsLock",
    "cmd": "Meta",
    "ctrl": "Control",
    "delete": "Delete",
    "end": "End",
    "enter": "Enter",
    "esc": "Escape",
    "home": "Home",
    "insert": "Insert",
    "option": "Alt",
    "pagedown": "PageDown",
    "pageup": "PageUp",
    "shift": "Shift",
    "space": " ",
    "super": "Meta",
    "tab": "Tab",
    "win": "Meta",
}

DEFAULT_REGION = "us-west-2"

_US_EAST_ZONES = {
    "America/New_York",
    "America/Detroit",
    "America/Toronto",
    "America/Montreal",
    "America/Nassau",
    "America/Havana",
    "America/Indiana/Indianapolis",
    "America/Kentucky/Louisville",
    "America/Chicago",
    "America/Sao_Paulo",
    "America/Argentina/Buenos_Aires",
    "America/Bogota",
    "America/Lima",
    "America/Santiago",
    "America/Caracas",
    "America/Halifax",
    "US/Eastern",
    "US/Central",
}


def map_key(key: str) -> str:
    """Translate a computer-use key name to its Playwright name."""
    return CUA_KEY_TO_PLAYWRIGHT_KEY.get(key.lower(), key)


def get_closest_region(timezone: Optional[str]) -> str:
    """
    Pick the Browserbase region closest to an IANA time zone.

    Args:
        timezone: Time zone name such as ``Europe/Berlin``.

    Returns:
        A Browserbase region identifier.
    """
    if not timezone:
        return DEFAULT_REGION

    if timezone in _US_EAST_ZONES:
        return "us-east-1"

    area = timezone.split("/", 1)[0]
    if area in ("Europe", "Africa", "Atlantic"):
        return "eu-central-1"
    if area in ("Asia", "Australia", "Pacific", "Indian"):
        return "ap-southeast-1"
    return DEFAULT_REGION


class BrowserbaseSessions:
    """Create and release Browserbase sessions."""

    def __init__(
        self,
        api_key: str,
        project_id: str,
        client: Optional[AsyncBrowserbase] = None,
    ) -> None:
        self.project_id = project_id
        self._client = client or AsyncBrowserbase(api_key=api_key)

    async def create(
        self,
        region: str = DEFAULT_REGION,
        width: int = 1024,
        height: int = 768,
        timeout: int = 3600,
        block_ads: bool = True,
    ) -> str:
        """
        Create a keep-alive session.

        Returns:
            The new session ID.
        """
        session = await self._client.sessions.create(
            project_id=self.project_id,
            keep_alive=True,
            proxies=False,
            region=region,
            browser_settings={
                "viewport": {"width": width, "height": height},
                "block_ads": block_ads,
            },
            timeout=timeout,
        )
        logger.info("Browserbase session created", session_id=session.id, region=region)
        return session.id

    async def release(self, session_id: str) -> None:
        """Ask Browserbase to end a session."""
        await self._client.sessions.update(
            session_id,
            project_id=self.project_id,
            status="REQUEST_RELEASE",
        )
        logger.info("Browserbase session release requested", session_id=session_id)

    async def connect_url(self, session_id: str) -> str:
        """Return the CDP URL of a running session."""
        session = await self._client.sessions.retrieve(session_id)
        url = getattr(session, "connect_url", None)
        if not url:
            raise BrowserError(f"Session {session_id} has no connect URL")
        return url


class BrowserbaseBrowser(Computer):
    """
    Browser running in a Browserbase session, driven through Playwright.

    Attributes:
        session_id: The Browserbase session to attach to.
    """

    environment = "browser"

    def __init__(
        self,
        width: int,
        height: int,
        session_id: str,
        sessions: Optional[BrowserbaseSessions] = None,
        api_key: str = "",
        project_id: str = "",
    ) -> None:
        super().__init__(width, height)
        self.session_id = session_id
        self._sessions = sessions or BrowserbaseSessions(api_key, project_id)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise BrowserError("Browser is not connected")
        return self._page

    async def connect(self) -> None:
        if self.is_connected and self._page is not None and not self._page.is_closed():
            return

        self.state = ConnectionState.CONNECTING
        try:
            connect_url = await self._sessions.connect_url(self.session_id)
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.connect_over_cdp(connect_url)

            context = (
                self._browser.contexts[0]
                if self._browser.contexts
                else await self._browser.new_context()
            )
            self._page = context.pages[0] if context.pages else await context.new_page()
            await self._page.set_viewport_size({"width": self.width, "height": self.height})
        except PlaywrightError as e:
            self.state = ConnectionState.ERROR
            raise BrowserError(f"Failed to attach to session {self.session_id}: {e}") from e

        self.state = ConnectionState.CONNECTED
        logger.debug("Attached to Browserbase session", session_id=self.session_id)

    async def disconnect(self) -> None:
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()
        self._browser = None
        self._playwright = None
        self._page = None
        self.state = ConnectionState.DISCONNECTED

    async def screenshot(self) -> str:
        data = await self.page.screenshot(full_page=False)
        return base64.b64encode(data).decode("ascii")

    async def click(self, x: int, y: int, button: str = "left") -> None:
        if button == "back":
            await self.back()
            return
        if button == "forward":
            await self.page.go_forward()
            return
        if button == "wheel":
            await self.page.mouse.wheel(x, y)
            return
        await self.page.mouse.click(x, y, button={"right": "right", "middle": "middle"}.get(button, "left"))

    async def double_click(self, x: int, y: int) -> None:
        await self.page.mouse.dblclick(x, y)

    async def scroll(self, x: int, y: int, scroll_x: int, scroll_y: int) -> None:
        await self.page.mouse.move(x, y)
        await self.page.evaluate(f"window.scrollBy({scroll_x}, {scroll_y})")

    async def type(self, text: str) -> None:
        await self.page.keyboard.type(text)

    async def wait(self, ms: int = 1000) -> None:
        await asyncio.sleep(ms / 1000)

    async def move(self, x: int, y: int) -> None:
        await self.page.mouse.move(x, y)

    async def keypress(self, keys: list[str]) -> None:
        mapped = [map_key(key) for key in keys]
        for key in mapped:
            await self.page.keyboard.down(key)
        for key in reversed(mapped):
            await self.page.keyboard.up(key)

    async def drag(self, path: list[dict[str, Any]]) -> None:
        if not path:
            return
        await self.page.mouse.move(path[0]["x"], path[0]["y"])
        await self.page.mouse.down()
        for point in path[1:]:
            await self.page.mouse.move(point["x"], point["y"])
        await self.page.mouse.up()

    async def goto(self, url: str) -> None:
        try:
            await self.page.goto(url)
        except PlaywrightError as e:
            raise BrowserError(f"Navigation to {url} failed: {e}") from e

    async def back(self) -> None:
        await self.page.go_back()

    def get_current_url(self) -> str:
        return self.page.url
