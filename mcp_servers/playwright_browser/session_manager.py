"""Session subsystem.

One browser and one page are shared by every tool call in the process. The
SessionManager is the only owner of those handles: it launches lazily, recycles
aged browsers, recovers from disconnects and replaces dead pages.

Known limitation: page operations are not serialized. Two tool calls running
concurrently act on the same page and may interleave (e.g. a navigation racing a
scrape). Only session establishment (browser launch, page creation) is guarded,
so that concurrent first calls share one browser and one page.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import suppress
from dataclasses import dataclass
from typing import Any

from .config import BrowserConfig
from .launcher import BrowserLauncher, LaunchFailedError
from .provider import BrowserHandle, BrowserProvider, PageHandle
from .tools.base import SessionUnavailableError
from .tools.js_helpers import LOCATION_JS

logger = logging.getLogger("mcp.playwright.session")

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass
class Session:
    browser: BrowserHandle | None = None
    page: PageHandle | None = None
    launched_at: float | None = None
    launched_at_wall: float | None = None
    retry_count: int = 0
    available: bool = True


class SessionManager:
    def __init__(
        self,
        config: BrowserConfig,
        provider: BrowserProvider,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.config = config
        self.provider = provider
        self.launcher = BrowserLauncher(config, provider, sleep=sleep)
        self._clock = clock
        self._sleep = sleep
        self._session = Session()
        self._launch_lock = asyncio.Lock()
        self._page_lock = asyncio.Lock()
        self._unavailable_since: float | None = None
        self._last_error: str | None = None
        self.launch_count = 0

    @property
    def session(self) -> Session:
        return self._session

    @property
    def page(self) -> PageHandle | None:
        return self._session.page

    @property
    def sleep(self) -> SleepFunc:
        return self._sleep

    def age(self) -> float | None:
        """Seconds since the current browser was launched (None without a browser)."""
        launched_at = self._session.launched_at
        if self._session.browser is None or launched_at is None:
            return None
        return max(0.0, self._clock() - launched_at)

    # ── lifecycle ────────────────────────────────────────────────────────────

    async def ensure_session(self) -> BrowserHandle:
        await self.recycle_if_stale()

        browser = self._session.browser
        if browser is not None:
            if browser.is_connected():
                return browser
            logger.warning("browser_disconnected_detected; relaunching")
            self._drop_handles()

        async with self._launch_lock:
            # Another caller may have launched while we were waiting.
            if self._session.browser is not None:
                return self._session.browser

            if not self._session.available and self._unavailable_since is not None:
                waited = self._clock() - self._unavailable_since
                if waited < self.config.unavailable_cooldown:
                    raise SessionUnavailableError(
                        tool="session",
                        action="launch",
                        reason=f"Browser is unavailable (last error: {self._last_error})",
                        suggestion=(
                            f"Retry in {self.config.unavailable_cooldown - waited:.0f}s, "
                            "or call close_browser to reset the session"
                        ),
                        details={"retryCount": self._session.retry_count},
                    )

            try:
                result = await self.launcher.launch()
            except LaunchFailedError as exc:
                self._session.available = False
                self._session.retry_count = len(exc.errors)
                self._unavailable_since = self._clock()
                self._last_error = exc.errors[-1] if exc.errors else str(exc)
                logger.error("session_unavailable attempts=%s reason=%s", len(exc.errors), self._last_error)
                raise SessionUnavailableError(
                    tool="session",
                    action="launch",
                    reason=str(exc),
                    suggestion="Check that the browser engine is installed (playwright install chromium) and retry",
                    details={"errors": exc.errors, "delays": exc.delays},
                ) from exc

            browser = result.browser
            browser.on("disconnected", self._on_disconnected)
            self._session = Session(
                browser=browser,
                page=None,
                launched_at=self._clock(),
                launched_at_wall=time.time(),
                retry_count=0,
                available=True,
            )
            self._unavailable_since = None
            self._last_error = None
            self.launch_count += 1
            logger.info("session_launched count=%s attempts=%s", self.launch_count, result.attempts)
            return browser

    async def recycle_if_stale(self) -> bool:
        age = self.age()
        if age is None or age <= self.config.max_session_age:
            return False
        logger.info("session_recycle age=%.0fs max_age=%.0fs", age, self.config.max_session_age)
        await self._teardown()
        return True

    async def ensure_page(self) -> PageHandle:
        browser = await self.ensure_session()

        page = self._session.page
        if page is not None and await self._page_alive(page):
            return page

        async with self._page_lock:
            current = self._session.page
            if current is not None and current is not page and self._session.browser is browser:
                # Replaced by a concurrent caller while our probe was running.
                return current
            if current is not None and current is page:
                logger.warning("page_probe_failed; recreating page")
                self._session.page = None
                with suppress(Exception):
                    await asyncio.wait_for(page.close(), timeout=self.config.probe_timeout)
            return await self._open_page(browser)

    async def _open_page(self, browser: BrowserHandle) -> PageHandle:
        last_error: Exception | None = None
        for attempt in range(1, self.config.page_attempts + 1):
            try:
                page = await asyncio.wait_for(browser.new_page(), timeout=self.config.launch_timeout)
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                logger.warning("new_page_failed attempt=%s/%s reason=%s", attempt, self.config.page_attempts, exc)
                if attempt < self.config.page_attempts:
                    await self._sleep(self.config.page_retry_delay * attempt)
                continue
            page.set_default_timeout(self.config.default_timeout_ms)
            page.set_default_navigation_timeout(self.config.default_timeout_ms)
            self._session.page = page
            return page

        raise SessionUnavailableError(
            tool="session",
            action="new_page",
            reason=f"Could not open a page after {self.config.page_attempts} attempts: {last_error}",
            suggestion="Call close_browser to reset the session, then retry",
        )

    async def _page_alive(self, page: PageHandle) -> bool:
        try:
            if page.is_closed():
                return False
            await asyncio.wait_for(page.evaluate(LOCATION_JS), timeout=self.config.probe_timeout)
        except Exception:
            return False
        return True

    def _on_disconnected(self, browser: Any = None) -> None:
        if browser is not None and browser is not self._session.browser:
            return
        logger.warning("browser_disconnected")
        self._drop_handles()

    def invalidate(self, page: PageHandle | None = None) -> None:
        """Forget cached handles after an in-flight call saw a closed target."""
        if page is not None and page is not self._session.page:
            return
        browser = self._session.browser
        if browser is not None and not browser.is_connected():
            self._drop_handles()
        else:
            self._session.page = None

    def _drop_handles(self) -> None:
        self._session.browser = None
        self._session.page = None
        self._session.launched_at = None
        self._session.launched_at_wall = None

    async def _teardown(self) -> None:
        browser = self._session.browser
        page = self._session.page
        self._drop_handles()
        if page is not None:
            with suppress(Exception):
                await asyncio.wait_for(page.close(), timeout=self.config.probe_timeout)
        if browser is not None:
            with suppress(Exception):
                await asyncio.wait_for(browser.close(), timeout=self.config.launch_timeout)

    async def close(self) -> bool:
        """Close the browser. Idempotent; returns False when nothing was open."""
        had_browser = self._session.browser is not None
        await self._teardown()
        self._session.available = True
        self._unavailable_since = None
        self._last_error = None
        if had_browser:
            logger.info("session_closed")
        return had_browser

    async def shutdown(self) -> None:
        await self.close()
        with suppress(Exception):
            await self.provider.stop()

    # ── introspection ────────────────────────────────────────────────────────

    def status(self) -> dict[str, Any]:
        session = self._session
        browser = session.browser
        page = session.page
        browser_connected = False
        if browser is not None:
            with suppress(Exception):
                browser_connected = bool(browser.is_connected())
        page_connected = False
        url = None
        if page is not None:
            with suppress(Exception):
                page_connected = not page.is_closed()
                url = page.url
        age = self.age()
        return {
            "browserConnected": browser_connected,
            "pageConnected": page_connected,
            "browserAge": int(age * 1000) if age is not None else 0,
            "retryCount": session.retry_count,
            "available": session.available,
            "launchCount": self.launch_count,
            "maxAgeMs": int(self.config.max_session_age * 1000),
            "url": url,
            **({"lastError": self._last_error} if self._last_error else {}),
        }
