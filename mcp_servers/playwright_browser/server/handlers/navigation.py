"""
Navigation tool handlers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...tools import navigation as nav_tools
from ..types import ToolResult

if TYPE_CHECKING:
    from ...provider import PageHandle
    from ..definitions import EmptyArgs, NavigateArgs
    from ..types import ToolContext


async def handle_navigate(ctx: ToolContext, args: NavigateArgs, page: PageHandle | None) -> ToolResult:
    assert page is not None
    result = await nav_tools.navigate(
        ctx.config,
        ctx.sessions,
        page,
        url=args.url,
        wait_until=args.wait_until,
        timeout_ms=args.timeout,
    )
    return ToolResult.json(result)


async def handle_get_url(ctx: ToolContext, args: EmptyArgs, page: PageHandle | None) -> ToolResult:
    assert page is not None
    result = nav_tools.get_url(page)
    return ToolResult.text(result["url"], data=result)


NAVIGATION_HANDLERS: dict[str, tuple] = {
    "navigate": (handle_navigate, True),
    "get_url": (handle_get_url, True),
}
