"""
Browser automation tools organized by domain.

Each module provides focused functionality:
- base: Error taxonomy, engine error translation, URL validation
- js_helpers: JavaScript snippets evaluated in the page
- navigation: navigate / get_url
- interaction: click, type, scrape, wait_for
- elements: Element candidates, selector suggestions, ambiguity enrichment
- screenshot: Size-managed screenshots
- assertions: Declarative assertion templates

Keep this module import light: the session manager imports `tools.base`.
"""

from .base import (
    AmbiguousSelectorError,
    ElementNotFoundError,
    InternalToolError,
    NavigationBlockedError,
    NavigationError,
    OperationTimeoutError,
    SessionInterruptedError,
    SessionUnavailableError,
    SmartToolError,
    engine_errors,
    ensure_allowed_navigation,
)

__all__ = [
    "AmbiguousSelectorError",
    "ElementNotFoundError",
    "InternalToolError",
    "NavigationBlockedError",
    "NavigationError",
    "OperationTimeoutError",
    "SessionInterruptedError",
    "SessionUnavailableError",
    "SmartToolError",
    "engine_errors",
    "ensure_allowed_navigation",
]
