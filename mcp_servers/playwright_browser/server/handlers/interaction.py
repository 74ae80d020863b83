"""
Interaction tool handlers - click, type, scrape, wait.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...tools import interaction
from ..types import ToolResult

if TYPE_CHECKING:
    from ...provider import PageHandle
    from ..definitions import ClickArgs, ScrapeArgs, TypeArgs, WaitForArgs
    from ..types import ToolContext


async def handle_click(ctx: ToolContext, args: ClickArgs, page: PageHandle | None) -> ToolResult:
    assert page is not None
    result = await interaction.click(ctx.sessions, page, selector=args.selector, timeout_ms=args.timeout)
    return ToolResult.text(f"Clicked {args.selector}", data=result)


async def handle_type(ctx: ToolContext, args: TypeArgs, page: PageHandle | None) -> ToolResult:
    assert page is not None
    result = await interaction.type_text(
        ctx.sessions, page, selector=args.selector, text=args.text, delay_ms=args.delay
    )
    return ToolResult.text(f"Typed {len(args.text)} characters into {args.selector}", data=result)


async def handle_scrape(ctx: ToolContext, args: ScrapeArgs, page: PageHandle | None) -> ToolResult:
    assert page is not None
    value = await interaction.scrape(
        ctx.sessions, page, selector=args.selector, attribute=args.attribute, multiple=args.multiple
    )
    if args.multiple:
        return ToolResult.json(value)
    return ToolResult.text(value or "", data=value)


async def handle_wait_for(ctx: ToolContext, args: WaitForArgs, page: PageHandle | None) -> ToolResult:
    assert page is not None
    result = await interaction.wait_for(
        ctx.sessions, page, selector=args.selector, state=args.state, timeout_ms=args.timeout
    )
    if args.selector is None:
        return ToolResult.text(f"Waited {result['waited']}ms", data=result)
    return ToolResult.text(f"Element {args.selector} is {args.state}", data=result)


INTERACTION_HANDLERS: dict[str, tuple] = {
    "click": (handle_click, True),
    "type": (handle_type, True),
    "scrape": (handle_scrape, True),
    "wait_for": (handle_wait_for, True),
}
