"""Tool argument models and descriptions.

Each pydantic model is the single source of truth for a tool's parameters: the
registry validates calls with it and `tools/list` publishes its JSON schema.
"""

from __future__ import annotations

import urllib.parse
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

WaitUntil = Literal["load", "domcontentloaded", "networkidle", "commit"]
ElementState = Literal["attached", "detached", "visible", "hidden"]
ImageFormat = Literal["png", "jpeg"]

ASSERTION_KINDS: tuple[str, ...] = (
    "page_title",
    "page_url",
    "visible",
    "attached",
    "hidden",
    "detached",
    "text",
    "attribute",
    "count",
    "css",
    "value",
    "checked",
    "enabled",
    "in_viewport",
)

AssertionKind = Literal[
    "page_title",
    "page_url",
    "visible",
    "attached",
    "hidden",
    "detached",
    "text",
    "attribute",
    "count",
    "css",
    "value",
    "checked",
    "enabled",
    "in_viewport",
]

Comparator = Literal["equals", "contains", "matches", "gt", "gte", "lt", "lte"]


class ToolArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class EmptyArgs(ToolArgs):
    pass


class NavigateArgs(ToolArgs):
    url: str = Field(..., description="URL to navigate to")
    wait_until: WaitUntil = Field(
        "load",
        alias="waitUntil",
        description="When to consider navigation successful (default: load)",
    )
    timeout: int | None = Field(None, ge=1, le=300_000, description="Timeout in milliseconds (default: 30000)")

    @field_validator("url")
    @classmethod
    def _absolute_url(cls, value: str) -> str:
        value = value.strip()
        parsed = urllib.parse.urlparse(value)
        if not parsed.scheme:
            raise ValueError("must be an absolute URL such as https://example.com")
        if parsed.scheme in ("http", "https") and not parsed.netloc:
            raise ValueError("http(s) URL is missing a host")
        return value


class ScreenshotArgs(ToolArgs):
    full_page: bool = Field(False, alias="fullPage", description="Capture the full scrollable page")
    quality: int | None = Field(None, ge=0, le=100, description="JPEG quality (ignored for png)")
    image_type: ImageFormat | None = Field(None, alias="type", description="Image format (default: png)")
    format: ImageFormat | None = Field(None, description="Alias of type")
    max_size: int | None = Field(
        None,
        alias="maxSize",
        gt=0,
        description="Size budget in bytes for inline images (default: MCP_SCREENSHOT_MAX_BYTES)",
    )
    compress: bool = Field(True, description="Step down JPEG quality until the image fits the budget")
    save_to_file: bool = Field(
        False,
        alias="saveToFile",
        description="Persist an over-budget image to disk and return its path/URL instead",
    )

    @property
    def image_format(self) -> str:
        return self.image_type or self.format or "png"


class ScrapeArgs(ToolArgs):
    selector: str = Field("body", min_length=1, description="CSS selector (default: body)")
    attribute: str | None = Field(None, description="Attribute to extract (default: text content)")
    multiple: bool = Field(False, description="Extract from every matching element (JSON array)")


class ClickArgs(ToolArgs):
    selector: str = Field(..., min_length=1, description="Selector of the element to click")
    timeout: int | None = Field(None, ge=1, le=300_000, description="Timeout in milliseconds")


class TypeArgs(ToolArgs):
    selector: str = Field(..., min_length=1, description="Selector of the input element")
    text: str = Field(..., description="Text to type")
    delay: float | None = Field(None, ge=0, le=5_000, description="Delay between keystrokes in milliseconds")


class WaitForArgs(ToolArgs):
    selector: str | None = Field(None, min_length=1, description="Selector to wait for")
    state: ElementState = Field("visible", description="Element state to wait for (default: visible)")
    timeout: int | None = Field(None, ge=1, le=300_000, description="Timeout in milliseconds")


class DiscoverArgs(ToolArgs):
    selector: str = Field(..., min_length=1, description="Selector to enumerate")
    limit: int = Field(10, ge=1, le=50, description="Maximum number of elements to describe")


class AssertionArgs(ToolArgs):
    type: AssertionKind = Field(..., description="Assertion kind")
    selector: str | None = Field(None, description="Element selector (element assertions)")
    expected: str | int | float | bool | None = Field(None, description="Expected value")
    pattern: str | None = Field(None, description="Pattern, either /body/flags or a raw expression")
    comparator: Comparator | None = Field(
        None,
        description="equals|contains|matches for strings; equals|gt|gte|lt|lte for count",
    )
    attribute: str | None = Field(None, description="Attribute name (type=attribute)")
    css_property: str | None = Field(None, alias="property", description="CSS property name (type=css)")
    ratio: float | None = Field(None, ge=0, le=1, description="Minimum visible ratio (type=in_viewport)")
    timeout: int | None = Field(None, ge=0, le=120_000, description="Per-assertion timeout in ms (default: 5000)")


class AssertTemplateArgs(ToolArgs):
    navigate: NavigateArgs | None = Field(None, description="Optional navigation performed once before assertions")
    assertions: list[AssertionArgs] = Field(..., min_length=1, description="Ordered assertions to evaluate")


TOOL_ARGUMENTS: dict[str, tuple[type[ToolArgs], str]] = {
    "navigate": (
        NavigateArgs,
        """Navigate to a URL with bounded timeout handling.
USAGE:
- navigate(url="https://example.com")
- navigate(url="https://example.com", waitUntil="networkidle", timeout=15000)""",
    ),
    "screenshot": (
        ScreenshotArgs,
        """Take a screenshot of the current page with size management.
Images larger than maxSize are re-captured as JPEG at decreasing quality (compress=true).
If still too large: saveToFile=true stores the image and returns its path/URL,
otherwise a notice explains how to get a smaller image.""",
    ),
    "scrape": (
        ScrapeArgs,
        """Extract text or attributes from page elements.
USAGE:
- scrape(selector="h1")
- scrape(selector="a", attribute="href", multiple=true)""",
    ),
    "click": (
        ClickArgs,
        """Click on an element. If the selector matches several elements, the response lists
them with suggested unique selectors instead of failing.""",
    ),
    "type": (
        TypeArgs,
        """Type text into an input element (fills it; with delay, types key by key).""",
    ),
    "wait_for": (
        WaitForArgs,
        """Wait for an element state, or for a fixed time when no selector is given.""",
    ),
    "get_url": (EmptyArgs, "Get the current page URL"),
    "close_browser": (EmptyArgs, "Close the browser instance (a new one starts on the next call)"),
    "browser_health": (
        EmptyArgs,
        "Check browser health (starts the browser if needed): connection, age, retry count",
    ),
    "browser_status": (EmptyArgs, "Report browser status without starting it"),
    "discover_elements": (
        DiscoverArgs,
        """List the elements matching a selector with suggested unique selectors.
USAGE:
- discover_elements(selector="button", limit=5)""",
    ),
    "assert_template": (
        AssertTemplateArgs,
        """Evaluate an ordered list of assertions against the current page.
Each assertion polls every 200ms until it passes or its timeout (default 5000ms) elapses.
Kinds: page_title, page_url, visible, attached, hidden, detached, text, attribute, count,
css, value, checked, enabled, in_viewport.
EXAMPLE:
assert_template(navigate={"url": "https://example.com"},
                assertions=[{"type": "page_title", "expected": "Example", "comparator": "contains"},
                            {"type": "count", "selector": "p", "expected": 1, "comparator": "gte"}])
RESPONSE: {"total": 2, "passed": 2, "failed": 0, "results": [...]}""",
    ),
}


def field_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic error dicts into {field, message} pairs."""
    out: list[dict[str, str]] = []
    for err in errors:
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "__root__")
        out.append({"field": loc or "(arguments)", "message": str(err.get("msg", "invalid value"))})
    return out
