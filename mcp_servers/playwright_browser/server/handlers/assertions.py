"""
Assertion template handler.

Failed assertions are reported in the summary; the result itself is never an error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..types import ToolResult

if TYPE_CHECKING:
    from ...provider import PageHandle
    from ..definitions import AssertTemplateArgs
    from ..types import ToolContext


async def handle_assert_template(ctx: ToolContext, args: AssertTemplateArgs, page: PageHandle | None) -> ToolResult:
    assert page is not None
    summary = await ctx.assertions.evaluate(page, args.assertions, navigate=args.navigate)
    return ToolResult.json(summary.to_dict())


ASSERTION_HANDLERS: dict[str, tuple] = {
    "assert_template": (handle_assert_template, True),
}
