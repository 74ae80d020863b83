"""
Browser automation provider interface.

The session engine never talks to a browser directly: it consumes the small
surface described by the Protocols below. `PlaywrightProvider` is the production
implementation (Playwright's async API already matches this shape); tests plug in
fakes with the same methods.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable
from typing import Any, Protocol

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

logger = logging.getLogger("mcp.playwright.provider")


class LocatorHandle(Protocol):
    @property
    def first(self) -> LocatorHandle: ...

    def nth(self, index: int) -> LocatorHandle: ...

    async def count(self) -> int: ...

    async def click(self, *, timeout: float | None = None) -> None: ...

    async def fill(self, value: str, *, timeout: float | None = None) -> None: ...

    async def press_sequentially(self, text: str, *, delay: float | None = None, timeout: float | None = None) -> None: ...

    async def get_attribute(self, name: str, *, timeout: float | None = None) -> str | None: ...

    async def text_content(self, *, timeout: float | None = None) -> str | None: ...

    async def input_value(self, *, timeout: float | None = None) -> str: ...

    async def is_visible(self) -> bool: ...

    async def is_hidden(self) -> bool: ...

    async def is_checked(self, *, timeout: float | None = None) -> bool: ...

    async def is_enabled(self, *, timeout: float | None = None) -> bool: ...

    async def bounding_box(self, *, timeout: float | None = None) -> dict[str, float] | None: ...

    async def wait_for(self, *, state: str | None = None, timeout: float | None = None) -> None: ...

    async def evaluate(self, expression: str, arg: Any = None, *, timeout: float | None = None) -> Any: ...


class PageHandle(Protocol):
    @property
    def url(self) -> str: ...

    @property
    def viewport_size(self) -> dict[str, int] | None: ...

    async def goto(self, url: str, *, wait_until: str | None = None, timeout: float | None = None) -> Any: ...

    async def title(self) -> str: ...

    def locator(self, selector: str) -> LocatorHandle: ...

    async def screenshot(self, **options: Any) -> bytes: ...

    async def evaluate(self, expression: str, arg: Any = None) -> Any: ...

    async def wait_for_timeout(self, timeout: float) -> None: ...

    def set_default_timeout(self, timeout: float) -> None: ...

    def set_default_navigation_timeout(self, timeout: float) -> None: ...

    def is_closed(self) -> bool: ...

    async def close(self) -> None: ...


class BrowserHandle(Protocol):
    async def new_page(self) -> PageHandle: ...

    def is_connected(self) -> bool: ...

    def on(self, event: str, callback: Callable[..., Any]) -> None: ...

    async def close(self) -> None: ...


class BrowserProvider(Protocol):
    async def launch(self, *, headless: bool, args: list[str], timeout_ms: float) -> BrowserHandle: ...

    async def stop(self) -> None: ...


class PlaywrightProvider:
    """Launches browsers through a lazily started Playwright driver."""

    def __init__(self, browser_type: str = "chromium") -> None:
        self.browser_type = browser_type
        self._playwright: Any = None

    async def launch(self, *, headless: bool, args: list[str], timeout_ms: float) -> BrowserHandle:
        if self._playwright is None:
            from playwright.async_api import async_playwright

            self._playwright = await async_playwright().start()
            logger.info("playwright_started browser_type=%s", self.browser_type)
        launcher = getattr(self._playwright, self.browser_type)
        return await launcher.launch(headless=headless, args=args, timeout=timeout_ms)

    async def stop(self) -> None:
        driver = self._playwright
        self._playwright = None
        if driver is not None:
            await driver.stop()
            logger.info("playwright_stopped")


# Engine error classification. Messages are matched rather than exception types
# alone so that any provider raising Playwright-style messages is understood.

_STRICT_RE = re.compile(r"strict mode violation", re.IGNORECASE)
_RESOLVED_RE = re.compile(r"resolved to (\d+) elements", re.IGNORECASE)
_CLOSED_MARKERS = (
    "target page, context or browser has been closed",
    "target closed",
    "browser has been closed",
    "browser closed",
    "page closed",
    "connection closed",
    "has been disconnected",
)


def is_strict_mode_violation(exc: BaseException) -> bool:
    return bool(_STRICT_RE.search(str(exc)))


def strict_match_count(exc: BaseException) -> int | None:
    match = _RESOLVED_RE.search(str(exc))
    return int(match.group(1)) if match else None


def is_timeout_error(exc: BaseException) -> bool:
    return isinstance(exc, (PlaywrightTimeoutError, asyncio.TimeoutError, TimeoutError))


def is_target_closed_error(exc: BaseException) -> bool:
    if not isinstance(exc, PlaywrightError):
        return False
    message = str(exc).lower()
    return any(marker in message for marker in _CLOSED_MARKERS)


__all__ = [
    "BrowserHandle",
    "BrowserProvider",
    "LocatorHandle",
    "PageHandle",
    "PlaywrightError",
    "PlaywrightProvider",
    "PlaywrightTimeoutError",
    "is_strict_mode_violation",
    "is_target_closed_error",
    "is_timeout_error",
    "strict_match_count",
]
