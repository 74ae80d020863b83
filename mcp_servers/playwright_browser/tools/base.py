"""
Base utilities for browser automation tools.

Provides:
- SmartToolError: Structured errors for AI agents (one subclass per failure kind)
- engine_errors: translation of raw engine exceptions into that taxonomy
- URL validation for navigation
"""

from __future__ import annotations

import logging
import urllib.parse
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from ..provider import is_strict_mode_violation, is_target_closed_error, is_timeout_error, strict_match_count

if TYPE_CHECKING:
    from ..config import BrowserConfig
    from ..provider import PageHandle
    from ..session_manager import SessionManager

logger = logging.getLogger("mcp.playwright.tools")


# Error Handling
@dataclass
class SmartToolError(Exception):
    """Structured error with context for AI agents."""

    code: ClassVar[str] = "error"
    retryable: ClassVar[bool] = False

    tool: str
    action: str
    reason: str
    suggestion: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.tool}] {self.action} failed: {self.reason}. Suggestion: {self.suggestion}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": True,
            "code": self.code,
            "tool": self.tool,
            "action": self.action,
            "reason": self.reason,
            "suggestion": self.suggestion,
            "retryable": self.retryable,
            "details": self.details,
        }


@dataclass
class AmbiguousSelectorError(SmartToolError):
    """A singular-element operation matched more than one element."""

    code: ClassVar[str] = "ambiguous"

    selector: str = ""
    match_count: int | None = None
    page: Any = field(default=None, repr=False, compare=False)


class ElementNotFoundError(SmartToolError):
    code: ClassVar[str] = "element_not_found"


class OperationTimeoutError(SmartToolError):
    code: ClassVar[str] = "timeout"


class NavigationError(SmartToolError):
    code: ClassVar[str] = "navigation_failed"


class NavigationBlockedError(SmartToolError):
    code: ClassVar[str] = "blocked"


class SessionInterruptedError(SmartToolError):
    """The session handle was invalidated while a call was in flight."""

    code: ClassVar[str] = "session_interrupted"
    retryable: ClassVar[bool] = True


class SessionUnavailableError(SmartToolError):
    """The browser could not be launched after exhausting retries (hard failure)."""

    code: ClassVar[str] = "unavailable"
    retryable: ClassVar[bool] = True


class InternalToolError(SmartToolError):
    """Uncaught handler fault (hard failure)."""

    code: ClassVar[str] = "internal"


@asynccontextmanager
async def engine_errors(
    sessions: SessionManager,
    page: PageHandle,
    *,
    tool: str,
    action: str,
    selector: str | None = None,
) -> AsyncIterator[None]:
    """Translate raw engine exceptions raised inside the block.

    Usage:
        async with engine_errors(ctx.sessions, page, tool="click", action="click", selector=sel):
            await page.locator(sel).click(timeout=timeout)
    """
    try:
        yield
    except SmartToolError:
        raise
    except Exception as exc:
        if selector is not None and is_strict_mode_violation(exc):
            raise AmbiguousSelectorError(
                tool=tool,
                action=action,
                reason=f"Selector '{selector}' matched multiple elements",
                suggestion=f'Use a more specific selector or call discover_elements(selector="{selector}")',
                selector=selector,
                match_count=strict_match_count(exc),
                page=page,
            ) from exc
        if is_target_closed_error(exc):
            sessions.invalidate(page)
            raise SessionInterruptedError(
                tool=tool,
                action=action,
                reason="Browser page was closed while the operation was running",
                suggestion="Retry the call; a fresh browser session will be created",
                details={"engine": str(exc).splitlines()[0] if str(exc) else ""},
            ) from exc
        if is_timeout_error(exc):
            if selector is not None and await _match_count(page, selector) == 0:
                raise ElementNotFoundError(
                    tool=tool,
                    action=action,
                    reason=f"No element matches selector '{selector}'",
                    suggestion=f'Check the selector, or call discover_elements(selector="{selector}") after the page settles',
                    details={"selector": selector},
                ) from exc
            raise OperationTimeoutError(
                tool=tool,
                action=action,
                reason=str(exc).splitlines()[0] if str(exc) else "Operation timed out",
                suggestion="Increase the timeout parameter or wait_for the element before acting",
                details={"selector": selector} if selector else {},
            ) from exc
        raise


async def _match_count(page: PageHandle, selector: str) -> int | None:
    try:
        return await page.locator(selector).count()
    except Exception:
        logger.debug("match_count_failed selector=%s", selector, exc_info=True)
        return None


# URL Validation
def ensure_allowed_navigation(url: str, config: BrowserConfig, *, tool: str = "navigate") -> None:
    """Relaxed check for browser navigation - allows about:, data:, file: schemes."""
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme in ("about", "data", "blob", "file"):
        return
    if parsed.scheme not in ("http", "https"):
        raise NavigationBlockedError(
            tool=tool,
            action="validate",
            reason=f"Unsupported scheme: {parsed.scheme or '(none)'}",
            suggestion="Use an absolute http(s) URL, e.g. https://example.com",
        )
    if not config.is_host_allowed(parsed.hostname or ""):
        raise NavigationBlockedError(
            tool=tool,
            action="validate",
            reason=f"Host {parsed.hostname} is not in allowlist",
            suggestion="Navigate to an allowed host or extend MCP_ALLOW_HOSTS",
            details={"allowHosts": list(config.allow_hosts)},
        )
