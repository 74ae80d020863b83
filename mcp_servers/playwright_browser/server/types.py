"""
Type definitions for MCP server responses and handlers.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

if TYPE_CHECKING:
    from ..config import BrowserConfig
    from ..provider import PageHandle
    from ..session_manager import SessionManager
    from ..tools.assertions.evaluator import AssertionEvaluator
    from ..tools.elements import ErrorEnricher
    from ..tools.screenshot import ScreenshotManager


@dataclass(slots=True)
class ToolContent:
    """Single content item in tool response."""

    type: str  # "text" or "image"
    text: str | None = None
    data: str | None = None  # base64 for images
    mime_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to MCP content format."""
        if self.type == "image":
            return {"type": "image", "data": self.data, "mimeType": self.mime_type}
        return {"type": "text", "text": self.text}


@dataclass(slots=True)
class ToolResult:
    """Result of a tool execution."""

    content: list[ToolContent] = field(default_factory=list)
    is_error: bool = False
    # Raw payload for in-process callers and tests; not part of the MCP wire format.
    data: Any | None = None

    @classmethod
    def text(cls, text: str, data: Any | None = None) -> ToolResult:
        return cls(content=[ToolContent(type="text", text=text or "")], data=data)

    @classmethod
    def json(cls, data: Any) -> ToolResult:
        return cls(content=[ToolContent(type="text", text=json.dumps(data, indent=2, ensure_ascii=False))], data=data)

    @classmethod
    def error(
        cls,
        message: str,
        *,
        code: str = "error",
        tool: str | None = None,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> ToolResult:
        """Create error result: readable summary first, no stack traces."""
        payload: dict[str, Any] = {"ok": False, "code": code, "error": message}
        if tool:
            payload["tool"] = tool
        if suggestion:
            payload["suggestion"] = suggestion
        if retryable:
            payload["retryable"] = True
        if details:
            payload["details"] = details
        lines = [f"Error [{code}]: {message}"]
        if suggestion:
            lines.append(f"Suggestion: {suggestion}")
        if details:
            lines.append("Details: " + json.dumps(details, ensure_ascii=False, default=str))
        return cls(content=[ToolContent(type="text", text="\n".join(lines))], is_error=True, data=payload)

    @classmethod
    def image(cls, data_b64: str, mime_type: str = "image/png") -> ToolResult:
        """Create result with single image content. Falls back to text if data is empty."""
        if not data_b64:
            return cls.error("Screenshot data is empty", code="internal")
        return cls(content=[ToolContent(type="image", data=data_b64, mime_type=mime_type)])

    @classmethod
    def with_image(cls, text: str, data_b64: str, mime_type: str = "image/png", data: Any | None = None) -> ToolResult:
        """Create result with text and image content. Omits image if data is empty."""
        if not data_b64:
            return cls(content=[ToolContent(type="text", text=text or "")], data=data)
        return cls(
            content=[
                ToolContent(type="text", text=text or ""),
                ToolContent(type="image", data=data_b64, mime_type=mime_type),
            ],
            data=data,
        )

    @property
    def first_text(self) -> str:
        return next((c.text or "" for c in self.content if c.type == "text"), "")

    def to_content_list(self) -> list[dict[str, Any]]:
        """Convert to MCP content list format."""
        return [c.to_dict() for c in self.content]


@dataclass(slots=True)
class ToolContext:
    """Collaborators shared by every handler, wired once at registry construction."""

    config: BrowserConfig
    sessions: SessionManager
    enricher: ErrorEnricher
    assertions: AssertionEvaluator
    screenshots: ScreenshotManager


HandlerFunc = Callable[["ToolContext", Any, "PageHandle | None"], Awaitable[ToolResult]]


@dataclass(slots=True, frozen=True)
class ToolSpec:
    """Specification for a registered tool."""

    name: str
    description: str
    arguments: type[BaseModel]
    handler: HandlerFunc
    requires_page: bool = True  # Whether to call ensure_page before handler

    def descriptor(self) -> dict[str, Any]:
        schema = self.arguments.model_json_schema(by_alias=True)
        schema.pop("title", None)
        return {"name": self.name, "description": self.description, "inputSchema": schema}
