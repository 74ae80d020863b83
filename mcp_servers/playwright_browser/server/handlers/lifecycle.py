"""
Browser lifecycle handlers - close, health, status.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..types import ToolResult

if TYPE_CHECKING:
    from ...provider import PageHandle
    from ..definitions import EmptyArgs
    from ..types import ToolContext


async def handle_close_browser(ctx: ToolContext, args: EmptyArgs, page: PageHandle | None) -> ToolResult:
    closed = await ctx.sessions.close()
    message = "Browser closed" if closed else "No browser was running"
    return ToolResult.text(message, data={"closed": closed})


async def handle_browser_health(ctx: ToolContext, args: EmptyArgs, page: PageHandle | None) -> ToolResult:
    """Starts the browser when needed (the registry ensures a page first)."""
    status = ctx.sessions.status()
    status["healthy"] = bool(status["browserConnected"] and status["pageConnected"])
    return ToolResult.json(status)


async def handle_browser_status(ctx: ToolContext, args: EmptyArgs, page: PageHandle | None) -> ToolResult:
    return ToolResult.json(ctx.sessions.status())


LIFECYCLE_HANDLERS: dict[str, tuple] = {
    "close_browser": (handle_close_browser, False),
    "browser_health": (handle_browser_health, True),
    "browser_status": (handle_browser_status, False),
}
