"""
Screenshot tool handler.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...provider import PageHandle
    from ..definitions import ScreenshotArgs
    from ..types import ToolContext, ToolResult


async def handle_screenshot(ctx: ToolContext, args: ScreenshotArgs, page: PageHandle | None) -> ToolResult:
    assert page is not None
    return await ctx.screenshots.screenshot(ctx.sessions, page, args)


SCREENSHOT_HANDLERS: dict[str, tuple] = {
    "screenshot": (handle_screenshot, True),
}
