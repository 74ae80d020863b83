"""
Element interaction tools.

Provides:
- click: Click the single element matching a selector
- type_text: Fill an input, or type key by key with a delay
- scrape: Text or attribute from one element or every match
- wait_for: Wait for an element state, or a fixed delay
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .base import engine_errors

if TYPE_CHECKING:
    from ..provider import PageHandle
    from ..session_manager import SessionManager

DEFAULT_WAIT_MS = 1000


async def click(sessions: SessionManager, page: PageHandle, *, selector: str, timeout_ms: int | None = None) -> dict[str, Any]:
    async with engine_errors(sessions, page, tool="click", action="click", selector=selector):
        await page.locator(selector).click(timeout=timeout_ms)
    return {"clicked": selector}


async def type_text(
    sessions: SessionManager,
    page: PageHandle,
    *,
    selector: str,
    text: str,
    delay_ms: float | None = None,
) -> dict[str, Any]:
    async with engine_errors(sessions, page, tool="type", action="type", selector=selector):
        locator = page.locator(selector)
        if delay_ms is None:
            await locator.fill(text)
        else:
            await locator.fill("")
            await locator.press_sequentially(text, delay=delay_ms)
    return {"typed": len(text), "selector": selector}


async def _read(locator: Any, attribute: str | None) -> str | None:
    if attribute:
        return await locator.get_attribute(attribute)
    content = await locator.text_content()
    return content.strip() if content is not None else None


async def scrape(
    sessions: SessionManager,
    page: PageHandle,
    *,
    selector: str = "body",
    attribute: str | None = None,
    multiple: bool = False,
) -> str | list[str | None] | None:
    """Text content (or `attribute`) of the match; with `multiple`, of every match."""
    async with engine_errors(sessions, page, tool="scrape", action="scrape", selector=selector):
        locator = page.locator(selector)
        if not multiple:
            return await _read(locator, attribute)
        total = await locator.count()
        return [await _read(locator.nth(i), attribute) for i in range(total)]


async def wait_for(
    sessions: SessionManager,
    page: PageHandle,
    *,
    selector: str | None = None,
    state: str = "visible",
    timeout_ms: int | None = None,
) -> dict[str, Any]:
    if selector is None:
        waited = timeout_ms if timeout_ms is not None else DEFAULT_WAIT_MS
        await page.wait_for_timeout(waited)
        return {"waited": waited}
    async with engine_errors(sessions, page, tool="wait_for", action=f"wait for {state}", selector=selector):
        await page.locator(selector).wait_for(state=state, timeout=timeout_ms)
    return {"selector": selector, "state": state}
