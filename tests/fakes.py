"""Fake browser provider objects shared by the tests (Playwright-shaped, in-memory)."""

from __future__ import annotations

import asyncio
import urllib.parse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from mcp_servers.playwright_browser.config import BrowserConfig
from mcp_servers.playwright_browser.provider import PlaywrightError, PlaywrightTimeoutError
from mcp_servers.playwright_browser.tools.js_helpers import (
    COMPUTED_STYLE_JS,
    DESCRIBE_ELEMENT_JS,
    LOCATION_JS,
    VIEWPORT_JS,
)


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


@dataclass
class FakeElement:
    tag: str = "div"
    text: str = ""
    id: str | None = None
    classes: list[str] = field(default_factory=list)
    attrs: dict[str, str] = field(default_factory=dict)
    visible: bool = True
    checked: bool = False
    enabled: bool = True
    value: str | None = None
    box: dict[str, float] | None = field(default_factory=lambda: {"x": 10, "y": 10, "width": 100, "height": 20})
    styles: dict[str, str] = field(default_factory=dict)
    clicks: int = 0
    typed_delays: list[float | None] = field(default_factory=list)

    def attribute(self, name: str) -> str | None:
        if name == "id":
            return self.id
        if name == "class":
            return " ".join(self.classes) or None
        return self.attrs.get(name)

    def describe(self) -> dict[str, Any]:
        return {
            "tag": self.tag,
            "text": self.text[:100],
            "id": self.id,
            "classes": list(self.classes),
            "testId": self.attrs.get("data-testid"),
            "ariaLabel": self.attrs.get("aria-label"),
            "role": self.attrs.get("role"),
            "type": self.attrs.get("type"),
            "href": self.attrs.get("href"),
        }


def _strict(selector: str, n: int) -> PlaywrightError:
    return PlaywrightError(
        f'Error: strict mode violation: locator("{selector}") resolved to {n} elements:\n'
        f"    1) <...>\n    2) <...>"
    )


def _timeout(selector: str, timeout: float | None) -> PlaywrightTimeoutError:
    return PlaywrightTimeoutError(f'Timeout {timeout or 30000}ms exceeded.\nwaiting for locator("{selector}")')


class FakeLocator:
    def __init__(self, page: FakePage, selector: str, index: int | None = None) -> None:
        self.page = page
        self.selector = selector
        self.index = index

    def _matches(self) -> list[FakeElement]:
        self.page.check_open()
        return list(self.page.elements.get(self.selector, []))

    def _resolve(self, timeout: float | None = None) -> FakeElement:
        matches = self._matches()
        if self.index is None:
            if len(matches) > 1:
                raise _strict(self.selector, len(matches))
            if not matches:
                raise _timeout(self.selector, timeout)
            return matches[0]
        if self.index < len(matches):
            return matches[self.index]
        raise _timeout(self.selector, timeout)

    @property
    def first(self) -> FakeLocator:
        return FakeLocator(self.page, self.selector, 0)

    def nth(self, index: int) -> FakeLocator:
        return FakeLocator(self.page, self.selector, index)

    async def count(self) -> int:
        return len(self._matches())

    async def click(self, *, timeout: float | None = None) -> None:
        self._resolve(timeout).clicks += 1

    async def fill(self, value: str, *, timeout: float | None = None) -> None:
        self._resolve(timeout).value = value

    async def press_sequentially(self, text: str, *, delay: float | None = None, timeout: float | None = None) -> None:
        el = self._resolve(timeout)
        el.value = (el.value or "") + text
        el.typed_delays.append(delay)

    async def get_attribute(self, name: str, *, timeout: float | None = None) -> str | None:
        return self._resolve(timeout).attribute(name)

    async def text_content(self, *, timeout: float | None = None) -> str | None:
        return self._resolve(timeout).text

    async def input_value(self, *, timeout: float | None = None) -> str:
        el = self._resolve(timeout)
        if el.value is None:
            raise PlaywrightError("Error: Node is not an <input>, <textarea> or <select> element")
        return el.value

    async def is_visible(self) -> bool:
        matches = self._matches()
        if self.index is None and len(matches) > 1:
            raise _strict(self.selector, len(matches))
        idx = self.index or 0
        return idx < len(matches) and matches[idx].visible

    async def is_hidden(self) -> bool:
        return not await self.is_visible()

    async def is_checked(self, *, timeout: float | None = None) -> bool:
        return self._resolve(timeout).checked

    async def is_enabled(self, *, timeout: float | None = None) -> bool:
        return self._resolve(timeout).enabled

    async def bounding_box(self, *, timeout: float | None = None) -> dict[str, float] | None:
        return self._resolve(timeout).box

    async def wait_for(self, *, state: str | None = None, timeout: float | None = None) -> None:
        matches = self._matches()
        if self.index is None and len(matches) > 1:
            raise _strict(self.selector, len(matches))
        state = state or "visible"
        present = bool(matches)
        visible = present and matches[self.index or 0].visible
        satisfied = {
            "attached": present,
            "detached": not present,
            "visible": visible,
            "hidden": not visible,
        }[state]
        if not satisfied:
            raise _timeout(self.selector, timeout)

    async def evaluate(self, expression: str, arg: Any = None, *, timeout: float | None = None) -> Any:
        el = self._resolve(timeout)
        if expression == DESCRIBE_ELEMENT_JS:
            return el.describe()
        if expression == COMPUTED_STYLE_JS:
            return el.styles.get(arg, "")
        raise PlaywrightError(f"unexpected expression: {expression[:40]}")


class FakeResponse:
    def __init__(self, status: int = 200) -> None:
        self.status = status


def _normalize_url(url: str) -> str:
    parts = urllib.parse.urlsplit(url)
    if parts.scheme in ("http", "https") and not parts.path:
        return urllib.parse.urlunsplit((parts.scheme, parts.netloc, "/", parts.query, parts.fragment))
    return url


class FakePage:
    def __init__(self, site: dict[str, dict[str, Any]] | None = None) -> None:
        self.site = site or {}
        self._url = "about:blank"
        self._title = ""
        self.elements: dict[str, list[FakeElement]] = {}
        self.closed = False
        self.probe_error: Exception | None = None
        self.probe_delays: list[float] = []
        self.goto_errors: dict[str, Exception] = {}
        self.goto_calls: list[tuple[str, str | None, float | None]] = []
        self.screenshot_calls: list[dict[str, Any]] = []
        self.screenshot_size: Callable[[str, int | None], int] = lambda fmt, quality: 1000
        self.waited: list[float] = []
        self.default_timeout: float | None = None
        self.default_navigation_timeout: float | None = None
        self.viewport: dict[str, int] | None = {"width": 1280, "height": 720}

    def check_open(self) -> None:
        if self.closed:
            raise PlaywrightError("Target page, context or browser has been closed")

    def load(self, title: str = "", elements: dict[str, list[FakeElement]] | None = None) -> None:
        self._title = title
        self.elements = elements or {}

    @property
    def url(self) -> str:
        return self._url

    @property
    def viewport_size(self) -> dict[str, int] | None:
        return self.viewport

    async def goto(self, url: str, *, wait_until: str | None = None, timeout: float | None = None) -> Any:
        self.check_open()
        self.goto_calls.append((url, wait_until, timeout))
        if wait_until in self.goto_errors:
            raise self.goto_errors[wait_until]
        self._url = _normalize_url(url)
        content = self.site.get(self._url, {})
        self.load(content.get("title", ""), content.get("elements"))
        return FakeResponse(content.get("status", 200))

    async def title(self) -> str:
        self.check_open()
        return self._title

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def screenshot(self, **options: Any) -> bytes:
        self.check_open()
        self.screenshot_calls.append(options)
        size = self.screenshot_size(options.get("type", "png"), options.get("quality"))
        return b"\x89" * size

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.check_open()
        if expression == LOCATION_JS:
            if self.probe_delays:
                await asyncio.sleep(self.probe_delays.pop(0))
            if self.probe_error is not None:
                raise self.probe_error
            return self._url
        if expression == VIEWPORT_JS:
            return self.viewport
        raise PlaywrightError(f"unexpected expression: {expression[:40]}")

    async def wait_for_timeout(self, timeout: float) -> None:
        self.waited.append(timeout)

    def set_default_timeout(self, timeout: float) -> None:
        self.default_timeout = timeout

    def set_default_navigation_timeout(self, timeout: float) -> None:
        self.default_navigation_timeout = timeout

    def is_closed(self) -> bool:
        return self.closed

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, site: dict[str, dict[str, Any]] | None = None) -> None:
        self.site = site
        self.connected = True
        self.pages: list[FakePage] = []
        self.listeners: dict[str, list[Callable[..., Any]]] = {}
        self.new_page_errors: list[Exception] = []
        self.closed = False

    async def new_page(self) -> FakePage:
        if self.new_page_errors:
            raise self.new_page_errors.pop(0)
        page = FakePage(self.site)
        self.pages.append(page)
        return page

    def is_connected(self) -> bool:
        return self.connected

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        self.listeners.setdefault(event, []).append(callback)

    def disconnect(self) -> None:
        self.connected = False
        for page in self.pages:
            page.closed = True
        for cb in self.listeners.get("disconnected", []):
            cb(self)

    async def close(self) -> None:
        self.closed = True
        self.connected = False


class FakeProvider:
    def __init__(self, site: dict[str, dict[str, Any]] | None = None) -> None:
        self.site = site or {}
        self.launch_errors: list[Exception] = []
        self.launch_calls: list[dict[str, Any]] = []
        self.browsers: list[FakeBrowser] = []
        self.stopped = False

    async def launch(self, *, headless: bool, args: list[str], timeout_ms: float) -> FakeBrowser:
        self.launch_calls.append({"headless": headless, "args": args, "timeout_ms": timeout_ms})
        if self.launch_errors:
            raise self.launch_errors.pop(0)
        browser = FakeBrowser(self.site)
        self.browsers.append(browser)
        return browser

    async def stop(self) -> None:
        self.stopped = True

    @property
    def browser(self) -> FakeBrowser:
        return self.browsers[-1]

    @property
    def page(self) -> FakePage:
        return self.browsers[-1].pages[-1]


EXAMPLE_URL = "https://example.test/"


def example_site() -> dict[str, dict[str, Any]]:
    return {
        EXAMPLE_URL: {
            "title": "Example Domain",
            "elements": {
                "h1": [FakeElement(tag="h1", text="Example Domain", styles={"color": "rgb(0, 0, 0)"})],
                "p": [FakeElement(tag="p", text=f"Paragraph {i}") for i in range(3)],
                "a": [
                    FakeElement(tag="a", text="More", attrs={"href": "https://www.iana.org/domains/example"}),
                ],
                "button": [
                    FakeElement(tag="button", text="Save", id="save", classes=["btn", "primary"]),
                    FakeElement(tag="button", text="Cancel", classes=["btn"], attrs={"data-testid": "cancel"}),
                ],
                "#email": [FakeElement(tag="input", value="", attrs={"type": "email"})],
            },
        }
    }


def make_config(tmp_path: Path, **overrides: Any) -> BrowserConfig:
    values: dict[str, Any] = {"artifacts_dir": str(tmp_path / "screenshots")}
    values.update(overrides)
    return BrowserConfig(**values)


