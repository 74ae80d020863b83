"""
Tool handlers organized by domain.

All handlers follow the signature: (ctx, args, page) -> ToolResult, where `args` is
the validated argument model and `page` is the live page (None when the tool does
not require one). Each module exports a `*_HANDLERS` dict: name -> (handler, requires_page).
"""

from .assertions import ASSERTION_HANDLERS
from .discovery import DISCOVERY_HANDLERS
from .interaction import INTERACTION_HANDLERS
from .lifecycle import LIFECYCLE_HANDLERS
from .navigation import NAVIGATION_HANDLERS
from .screenshot import SCREENSHOT_HANDLERS

# Aggregate all handlers
ALL_HANDLERS: dict[str, tuple] = {
    **NAVIGATION_HANDLERS,
    **SCREENSHOT_HANDLERS,
    **INTERACTION_HANDLERS,
    **LIFECYCLE_HANDLERS,
    **DISCOVERY_HANDLERS,
    **ASSERTION_HANDLERS,
}

__all__ = [
    "ALL_HANDLERS",
    "ASSERTION_HANDLERS",
    "DISCOVERY_HANDLERS",
    "INTERACTION_HANDLERS",
    "LIFECYCLE_HANDLERS",
    "NAVIGATION_HANDLERS",
    "SCREENSHOT_HANDLERS",
]
