"""
Navigation tools for browser automation.

Provides:
- goto_with_fallback: page.goto with the networkidle -> domcontentloaded fallback
- navigate: allowlist check + navigation
- get_url: current page URL
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress
from typing import TYPE_CHECKING, Any

from ..provider import is_target_closed_error
from .base import NavigationError, SessionInterruptedError, ensure_allowed_navigation

if TYPE_CHECKING:
    from ..config import BrowserConfig
    from ..provider import PageHandle
    from ..session_manager import SessionManager

logger = logging.getLogger("mcp.playwright.navigation")

SETTLE_DELAY = 2.0


def _first_line(exc: BaseException) -> str:
    text = str(exc)
    return text.splitlines()[0] if text else exc.__class__.__name__


def _navigation_failure(
    sessions: SessionManager, page: PageHandle, exc: Exception, *, tool: str, url: str, wait_until: str
) -> Exception:
    if is_target_closed_error(exc):
        sessions.invalidate(page)
        return SessionInterruptedError(
            tool=tool,
            action="navigate",
            reason="Browser page was closed during navigation",
            suggestion="Retry the call; a fresh browser session will be created",
        )
    return NavigationError(
        tool=tool,
        action="navigate",
        reason=_first_line(exc),
        suggestion="Check the URL is reachable, raise the timeout, or use waitUntil=domcontentloaded",
        details={"url": url, "waitUntil": wait_until},
    )


async def goto_with_fallback(
    sessions: SessionManager,
    page: PageHandle,
    *,
    url: str,
    wait_until: str = "load",
    timeout_ms: int | None = None,
    tool: str = "navigate",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> dict[str, Any]:
    """Navigate the page; a failing networkidle wait is retried as domcontentloaded plus a settle delay."""
    timeout = timeout_ms if timeout_ms is not None else sessions.config.default_timeout_ms
    used = wait_until
    try:
        response = await page.goto(url, wait_until=wait_until, timeout=timeout)
    except Exception as exc:
        if wait_until != "networkidle" or is_target_closed_error(exc):
            raise _navigation_failure(sessions, page, exc, tool=tool, url=url, wait_until=wait_until) from exc
        logger.warning("networkidle_fallback url=%s reason=%s", url, _first_line(exc))
        used = "domcontentloaded"
        try:
            response = await page.goto(url, wait_until=used, timeout=timeout)
        except Exception as retry_exc:
            raise _navigation_failure(sessions, page, retry_exc, tool=tool, url=url, wait_until=used) from retry_exc
        await sleep(SETTLE_DELAY)

    title = ""
    with suppress(Exception):
        title = await page.title()
    result: dict[str, Any] = {
        "url": page.url,
        "title": title,
        "status": getattr(response, "status", None),
        "waitUntil": used,
    }
    if used != wait_until:
        result["fallback"] = True
    return result


async def navigate(
    config: BrowserConfig,
    sessions: SessionManager,
    page: PageHandle,
    *,
    url: str,
    wait_until: str = "load",
    timeout_ms: int | None = None,
) -> dict[str, Any]:
    """Navigate to a URL after checking the host allowlist."""
    ensure_allowed_navigation(url, config)
    result = await goto_with_fallback(
        sessions, page, url=url, wait_until=wait_until, timeout_ms=timeout_ms, sleep=sessions.sleep
    )
    logger.info("navigated url=%s status=%s", result["url"], result["status"])
    return result


def get_url(page: PageHandle) -> dict[str, Any]:
    return {"url": page.url}
