"""
Tool registry with dispatch table for MCP server.

Every registered tool pairs a pydantic argument model with its handler, so the
schema published by `list_tools` is exactly the one `call_tool` validates against.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from ..tools.base import (
    AmbiguousSelectorError,
    InternalToolError,
    SessionUnavailableError,
    SmartToolError,
)
from .definitions import field_errors
from .types import HandlerFunc, ToolContext, ToolResult, ToolSpec

if TYPE_CHECKING:
    from ..config import BrowserConfig
    from ..provider import BrowserProvider

logger = logging.getLogger("mcp.playwright.registry")


class ToolRegistry:
    """Registry for tool specs with automatic session management."""

    def __init__(self, context: ToolContext) -> None:
        self.context = context
        self._tools: dict[str, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> None:
        """Register a tool spec."""
        self._tools[spec.name] = spec

    def register_many(self, specs: list[ToolSpec]) -> None:
        """Register multiple specs at once."""
        for spec in specs:
            self.register(spec)

    def get(self, name: str) -> ToolSpec | None:
        return self._tools.get(name)

    def list_tools(self) -> list[dict[str, Any]]:
        """Tool descriptors derived from the registered argument models."""
        return [spec.descriptor() for spec in self._tools.values()]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """
        Validate and dispatch a tool call.

        Recoverable failures come back as results; SessionUnavailableError and
        InternalToolError are raised to the transport as hard failures.
        """
        spec = self._tools.get(name)
        if spec is None:
            available = ", ".join(sorted(self._tools))
            return ToolResult.error(
                f"Unknown tool: {name}",
                code="not_found",
                tool=name or None,
                suggestion=f"Use one of: {available}",
                details={"available": sorted(self._tools)},
            )

        try:
            args = spec.arguments.model_validate(arguments or {})
        except ValidationError as exc:
            errors = field_errors(exc.errors())
            first = errors[0] if errors else {"field": "(arguments)", "message": "invalid"}
            return ToolResult.error(
                f"Invalid arguments: {first['field']}: {first['message']}",
                code="invalid_arguments",
                tool=name,
                suggestion="Fix the listed fields; see tools/list for the parameter schema",
                details={"errors": errors},
            )

        ctx = self.context
        try:
            page = await ctx.sessions.ensure_page() if spec.requires_page else None
            return await spec.handler(ctx, args, page)
        except AmbiguousSelectorError as exc:
            logger.info("ambiguous_selector tool=%s selector=%s count=%s", exc.tool, exc.selector, exc.match_count)
            return await ctx.enricher.enrich(exc)
        except (SessionUnavailableError, InternalToolError):
            raise
        except SmartToolError as exc:
            logger.info("tool_error tool=%s code=%s reason=%s", exc.tool, exc.code, exc.reason)
            return ToolResult.error(
                exc.reason,
                code=exc.code,
                tool=exc.tool,
                suggestion=exc.suggestion,
                details=exc.details or None,
                retryable=exc.retryable,
            )
        except Exception as exc:
            logger.exception("tool_call_failed tool=%s", name)
            text = str(exc)
            raise InternalToolError(
                tool=name,
                action="call",
                reason=text.splitlines()[0] if text else exc.__class__.__name__,
                suggestion="Retry the call; if it keeps failing, call close_browser to reset the session",
                details={"exception": exc.__class__.__name__},
            ) from exc

    @property
    def tool_names(self) -> list[str]:
        """Get list of registered tool names."""
        return list(self._tools.keys())

    def __len__(self) -> int:
        return len(self._tools)


def build_specs(handlers: dict[str, tuple[HandlerFunc, bool]]) -> list[ToolSpec]:
    from .definitions import TOOL_ARGUMENTS

    specs: list[ToolSpec] = []
    for name, (model, description) in TOOL_ARGUMENTS.items():
        if name not in handlers:
            raise KeyError(f"No handler registered for tool: {name}")
        handler, requires_page = handlers[name]
        specs.append(
            ToolSpec(
                name=name,
                description=description,
                arguments=model,
                handler=handler,
                requires_page=requires_page,
            )
        )
    return specs


def create_default_registry(
    config: BrowserConfig,
    provider: BrowserProvider | None = None,
    **session_kwargs: Any,
) -> ToolRegistry:
    """Wire the session manager, enricher, evaluator and screenshot manager into a registry.

    `session_kwargs` (clock, sleep) are shared with the assertion evaluator.
    """
    from ..provider import PlaywrightProvider
    from ..session_manager import SessionManager
    from ..tools.assertions import AssertionEvaluator
    from ..tools.elements import ErrorEnricher
    from ..tools.screenshot import ScreenshotManager
    from .artifacts import ScreenshotStore
    from .handlers import ALL_HANDLERS

    if provider is None:
        provider = PlaywrightProvider(config.browser_type)
    sessions = SessionManager(config, provider, **session_kwargs)
    context = ToolContext(
        config=config,
        sessions=sessions,
        enricher=ErrorEnricher(),
        assertions=AssertionEvaluator(config, sessions, **session_kwargs),
        screenshots=ScreenshotManager(
            config,
            ScreenshotStore(config.artifacts_dir, config.artifacts_base_url),
        ),
    )
    registry = ToolRegistry(context)
    registry.register_many(build_specs(ALL_HANDLERS))
    return registry
