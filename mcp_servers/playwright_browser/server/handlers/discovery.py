"""
Element discovery handler.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...provider import PageHandle
    from ..definitions import DiscoverArgs
    from ..types import ToolContext, ToolResult


async def handle_discover_elements(ctx: ToolContext, args: DiscoverArgs, page: PageHandle | None) -> ToolResult:
    assert page is not None
    return await ctx.enricher.discover(page, args.selector, args.limit)


DISCOVERY_HANDLERS: dict[str, tuple] = {
    "discover_elements": (handle_discover_elements, True),
}
