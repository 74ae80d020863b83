"""
Assertion template evaluator.

Conditions run strictly in order. Each one polls its predicate every 200 ms until
it holds or its own timeout elapses; a probe that raises counts as "not yet".
A failing condition never stops the ones after it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..base import ensure_allowed_navigation
from ..js_helpers import COMPUTED_STYLE_JS, VIEWPORT_JS
from ..navigation import goto_with_fallback
from .conditions import AssertionCondition, ConditionSetupError, build_condition, compare_count

if TYPE_CHECKING:
    from ...config import BrowserConfig
    from ...provider import PageHandle
    from ...server.definitions import AssertionArgs, NavigateArgs
    from ...session_manager import SessionManager

logger = logging.getLogger("mcp.playwright.assertions")

POLL_INTERVAL = 0.2

Probe = Callable[[float], Awaitable[tuple[bool, Any]]]


@dataclass
class AssertionResult:
    index: int
    type: str
    selector: str | None
    passed: bool
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"index": self.index, "type": self.type, "passed": self.passed, "message": self.message}
        if self.selector:
            out["selector"] = self.selector
        if self.details:
            out["details"] = self.details
        return out


@dataclass
class AssertionSummary:
    results: list[AssertionResult] = field(default_factory=list)
    navigation: dict[str, Any] | None = None

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }
        if self.navigation is not None:
            out["navigation"] = self.navigation
        return out


@dataclass
class _PollOutcome:
    passed: bool
    observed: Any = None
    last_error: str | None = None
    attempts: int = 0
    elapsed: float = 0.0


def _visible_ratio(box: dict[str, float] | None, viewport: dict[str, Any] | None) -> float:
    if not box or not viewport:
        return 0.0
    width = float(box.get("width") or 0.0)
    height = float(box.get("height") or 0.0)
    if width <= 0 or height <= 0:
        return 0.0
    x, y = float(box.get("x") or 0.0), float(box.get("y") or 0.0)
    vw, vh = float(viewport.get("width") or 0.0), float(viewport.get("height") or 0.0)
    overlap_w = max(0.0, min(x + width, vw) - max(x, 0.0))
    overlap_h = max(0.0, min(y + height, vh) - max(y, 0.0))
    return (overlap_w * overlap_h) / (width * height)


class AssertionEvaluator:
    """Evaluates assertion templates against the session page."""

    def __init__(
        self,
        config: BrowserConfig,
        sessions: SessionManager,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        interval: float = POLL_INTERVAL,
    ) -> None:
        self.config = config
        self.sessions = sessions
        self.interval = interval
        self._clock = clock
        self._sleep = sleep

    async def evaluate(
        self,
        page: PageHandle,
        assertions: list[AssertionArgs],
        navigate: NavigateArgs | None = None,
    ) -> AssertionSummary:
        # Parse everything first so malformed patterns fail before any polling.
        prepared: list[AssertionCondition | ConditionSetupError] = []
        for index, args in enumerate(assertions):
            try:
                prepared.append(build_condition(index, args))
            except ConditionSetupError as exc:
                prepared.append(exc)

        summary = AssertionSummary()
        if navigate is not None:
            ensure_allowed_navigation(navigate.url, self.config, tool="assert_template")
            summary.navigation = await goto_with_fallback(
                self.sessions,
                page,
                url=navigate.url,
                wait_until=navigate.wait_until,
                timeout_ms=navigate.timeout,
                tool="assert_template",
                sleep=self._sleep,
            )

        for index, item in enumerate(prepared):
            if isinstance(item, ConditionSetupError):
                args = assertions[index]
                summary.results.append(
                    AssertionResult(
                        index=index,
                        type=args.type,
                        selector=args.selector,
                        passed=False,
                        message=f"Invalid assertion: {item}",
                        details={"setupError": True},
                    )
                )
                continue
            summary.results.append(await self.check(page, item))

        logger.info("assert_template total=%s passed=%s failed=%s", summary.total, summary.passed, summary.failed)
        return summary

    async def check(self, page: PageHandle, condition: AssertionCondition) -> AssertionResult:
        outcome = await self._poll(self._probe_for(page, condition), condition.timeout)
        details: dict[str, Any] = {
            "expected": condition.describe_expected(),
            "actual": outcome.observed,
            "attempts": outcome.attempts,
            "elapsedMs": int(outcome.elapsed * 1000),
        }
        if outcome.passed:
            message = f"{condition.kind} assertion passed"
        else:
            message = (
                f"{condition.kind} assertion failed after {condition.timeout_ms}ms: "
                f"expected {condition.describe_expected()}, got {outcome.observed!r}"
            )
            if outcome.last_error:
                details["lastError"] = outcome.last_error
        return AssertionResult(
            index=condition.index,
            type=condition.kind,
            selector=condition.selector,
            passed=outcome.passed,
            message=message,
            details=details,
        )

    async def _poll(self, probe: Probe, timeout: float) -> _PollOutcome:
        started = self._clock()
        deadline = started + timeout
        outcome = _PollOutcome(passed=False)
        while True:
            remaining = deadline - self._clock()
            budget = max(remaining, self.interval)
            outcome.attempts += 1
            try:
                ok, observed = await asyncio.wait_for(probe(budget), timeout=budget)
                outcome.observed = observed
                outcome.last_error = None
                if ok:
                    outcome.passed = True
                    break
            except Exception as exc:  # noqa: BLE001
                text = str(exc)
                outcome.last_error = text.splitlines()[0] if text else exc.__class__.__name__
            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            await self._sleep(min(self.interval, remaining))
        outcome.elapsed = self._clock() - started
        return outcome

    def _probe_for(self, page: PageHandle, c: AssertionCondition) -> Probe:
        kind = c.kind
        selector = c.selector or ""

        async def probe(budget: float) -> tuple[bool, Any]:
            timeout_ms = budget * 1000
            if kind == "page_title":
                title = await page.title()
                return c.matcher.matches(title), title  # type: ignore[union-attr]
            if kind == "page_url":
                url = page.url
                return c.matcher.matches(url), url  # type: ignore[union-attr]

            locator = page.locator(selector)
            if kind == "count":
                n = await locator.count()
                return compare_count(n, c.comparator or "equals", c.expected), n
            if kind == "attached":
                n = await locator.count()
                return n > 0, n
            if kind == "detached":
                n = await locator.count()
                return n == 0, n
            if kind == "hidden":
                if await locator.count() == 0:
                    return True, "no match"
                visible = await locator.first.is_visible()
                return not visible, {"visible": visible}
            if kind == "visible":
                visible = await locator.first.is_visible()
                return visible, {"visible": visible}

            first = locator.first
            if kind == "text":
                text = (await first.text_content(timeout=timeout_ms) or "").strip()
                return c.matcher.matches(text), text  # type: ignore[union-attr]
            if kind == "attribute":
                value = await first.get_attribute(c.attribute or "", timeout=timeout_ms)
                if value is None:
                    return False, None
                return c.matcher.matches(value), value  # type: ignore[union-attr]
            if kind == "value":
                try:
                    value = await first.input_value(timeout=timeout_ms)
                except Exception:
                    value = (await first.text_content(timeout=timeout_ms) or "").strip()
                return c.matcher.matches(value), value  # type: ignore[union-attr]
            if kind == "css":
                value = str(await first.evaluate(COMPUTED_STYLE_JS, c.css_property, timeout=timeout_ms) or "").strip()
                return c.matcher.matches(value), value  # type: ignore[union-attr]
            if kind == "checked":
                checked = await first.is_checked(timeout=timeout_ms)
                return checked == c.expected, checked
            if kind == "enabled":
                enabled = await first.is_enabled(timeout=timeout_ms)
                return enabled == c.expected, enabled
            if kind == "in_viewport":
                box = await first.bounding_box(timeout=timeout_ms)
                viewport = page.viewport_size or await page.evaluate(VIEWPORT_JS)
                ratio = round(_visible_ratio(box, viewport), 4)
                return ratio > 0 and ratio >= c.ratio, {"ratio": ratio}
            raise ConditionSetupError(f"Unsupported assertion kind: {kind}")

        return probe
