"""
Element discovery and ambiguity enrichment.

When an operation that needs exactly one element resolves a selector to several,
the enricher re-queries the selector, describes up to 10 matches and proposes
alternate selectors for each, so the caller can retry with a unique one.
This path is read-only and never raises.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..server.hints import discover_elements_hint, retry_hint
from ..server.types import ToolResult
from .js_helpers import DESCRIBE_ELEMENT_JS

if TYPE_CHECKING:
    from ..provider import PageHandle
    from .base import AmbiguousSelectorError

logger = logging.getLogger("mcp.playwright.elements")

MAX_CANDIDATES = 10
MAX_SUGGESTIONS = 3

_CSS_IDENT_RE = re.compile(r"^-?[A-Za-z_][A-Za-z0-9_-]*$")


def _attr_value(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


@dataclass
class ElementCandidate:
    index: int
    tag: str
    text: str = ""
    id: str | None = None
    classes: list[str] = field(default_factory=list)
    test_id: str | None = None
    aria_label: str | None = None
    role: str | None = None
    type: str | None = None
    href: str | None = None
    suggested_selectors: list[str] = field(default_factory=list)

    @classmethod
    def from_info(cls, index: int, info: dict[str, Any]) -> ElementCandidate:
        classes = info.get("classes") or []
        return cls(
            index=index,
            tag=str(info.get("tag") or "").lower() or "unknown",
            text=str(info.get("text") or "").strip()[:100],
            id=info.get("id") or None,
            classes=[str(c) for c in classes if c],
            test_id=info.get("testId") or None,
            aria_label=info.get("ariaLabel") or None,
            role=info.get("role") or None,
            type=info.get("type") or None,
            href=info.get("href") or None,
        )

    def label(self) -> str:
        out = f"<{self.tag}"
        if self.id:
            out += f"#{self.id}"
        if self.classes:
            out += "".join(f".{c}" for c in self.classes[:3])
        out += ">"
        if self.text:
            out += f' "{self.text[:60]}"'
        return out

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"index": self.index, "tag": self.tag}
        for key, value in (
            ("text", self.text),
            ("id", self.id),
            ("classes", self.classes),
            ("testId", self.test_id),
            ("ariaLabel", self.aria_label),
            ("role", self.role),
            ("type", self.type),
            ("href", self.href),
        ):
            if value:
                out[key] = value
        out["suggestedSelectors"] = list(self.suggested_selectors)
        return out


def suggest_selectors(candidate: ElementCandidate, *, selector: str | None = None) -> list[str]:
    """Up to 3 alternate selectors: id > test-id > class(es) > aria-label > role > type > href."""
    tag = candidate.tag if candidate.tag != "unknown" else ""
    out: list[str] = []
    if candidate.id:
        out.append(f"#{candidate.id}" if _CSS_IDENT_RE.match(candidate.id) else f"[id={_attr_value(candidate.id)}]")
    if candidate.test_id:
        out.append(f"[data-testid={_attr_value(candidate.test_id)}]")
    idents = [c for c in candidate.classes if _CSS_IDENT_RE.match(c)]
    if idents:
        out.append(tag + "".join(f".{c}" for c in idents[:2]))
    if candidate.aria_label:
        out.append(f"{tag}[aria-label={_attr_value(candidate.aria_label)}]")
    if candidate.role:
        out.append(f"{tag}[role={_attr_value(candidate.role)}]")
    if candidate.type:
        out.append(f"{tag}[type={_attr_value(candidate.type)}]")
    if candidate.href:
        out.append(f"{tag}[href={_attr_value(candidate.href)}]")

    unique: list[str] = []
    for item in out:
        if item not in unique:
            unique.append(item)
    if not unique and selector:
        unique.append(f"{selector} >> nth={candidate.index}")
    return unique[:MAX_SUGGESTIONS]


class ErrorEnricher:
    """Turns strict-match faults into enumerated candidates; also backs discover_elements."""

    def __init__(self, *, max_candidates: int = MAX_CANDIDATES, describe_timeout: float = 2.0) -> None:
        self.max_candidates = max_candidates
        self.describe_timeout = describe_timeout

    async def collect(self, page: PageHandle, selector: str, limit: int | None = None) -> tuple[int, list[ElementCandidate]]:
        """Count matches and describe the first `limit` of them (one evaluate per element)."""
        cap = max(1, limit if limit is not None else self.max_candidates)
        locator = page.locator(selector)
        total = await asyncio.wait_for(locator.count(), timeout=self.describe_timeout)
        candidates: list[ElementCandidate] = []
        for index in range(min(total, cap)):
            try:
                info = await asyncio.wait_for(
                    locator.nth(index).evaluate(DESCRIBE_ELEMENT_JS, timeout=self.describe_timeout * 1000),
                    timeout=self.describe_timeout,
                )
                candidate = ElementCandidate.from_info(index, info if isinstance(info, dict) else {})
            except Exception as exc:  # noqa: BLE001
                logger.debug("describe_failed selector=%s index=%s reason=%s", selector, index, exc)
                candidate = ElementCandidate(index=index, tag="unknown")
            candidate.suggested_selectors = suggest_selectors(candidate, selector=selector)
            candidates.append(candidate)
        return total, candidates

    async def enrich(self, error: AmbiguousSelectorError, page: PageHandle | None = None) -> ToolResult:
        selector = error.selector
        page = page if page is not None else error.page
        tool = error.tool
        count_hint = f"{error.match_count} elements" if error.match_count else "multiple elements"
        summary = f'Selector "{selector}" matched {count_hint}; {tool} needs exactly one.'
        next_hint = f"Next: {discover_elements_hint(selector=selector)} to list matches, then retry with a suggested selector."

        total: int | None = error.match_count
        candidates: list[ElementCandidate] = []
        if page is not None:
            try:
                total, candidates = await self.collect(page, selector)
            except Exception as exc:  # noqa: BLE001
                logger.warning("enrich_failed selector=%s reason=%s", selector, exc)

        if total and total != error.match_count:
            summary = f'Selector "{selector}" matched {total} elements; {tool} needs exactly one.'

        lines = [summary]
        if candidates:
            lines.append("Candidates:")
            lines.extend(self._format_candidates(candidates))
            first = next((c.suggested_selectors[0] for c in candidates if c.suggested_selectors), None)
            if first:
                lines.append(f"Example: {retry_hint(tool=tool, selector=first)}")
        lines.append(next_hint)

        data = {
            "ok": False,
            "code": error.code,
            "tool": tool,
            "selector": selector,
            "matchCount": total,
            "candidates": [c.to_dict() for c in candidates],
            "suggestion": next_hint,
        }
        return ToolResult.text("\n".join(lines), data=data)

    async def discover(self, page: PageHandle, selector: str, limit: int = MAX_CANDIDATES) -> ToolResult:
        try:
            total, candidates = await self.collect(page, selector, limit)
        except Exception as exc:  # noqa: BLE001
            logger.warning("discover_failed selector=%s reason=%s", selector, exc)
            text = str(exc)
            reason = text.splitlines()[0] if text else exc.__class__.__name__
            return ToolResult.text(
                f'Could not enumerate elements for "{selector}": {reason}\n'
                "Suggestion: check the selector syntax or wait_for the page to settle, then retry.",
                data={"selector": selector, "total": None, "candidates": [], "error": reason},
            )

        if total == 0:
            lines = [f'No elements match "{selector}".', "Suggestion: try a broader selector such as a tag name."]
        else:
            shown = len(candidates)
            lines = [f'Found {total} element(s) matching "{selector}"' + (f" (showing {shown})" if shown < total else "") + ":"]
            lines.extend(self._format_candidates(candidates))
        data = {"selector": selector, "total": total, "candidates": [c.to_dict() for c in candidates]}
        return ToolResult.text("\n".join(lines), data=data)

    @staticmethod
    def _format_candidates(candidates: list[ElementCandidate]) -> list[str]:
        lines: list[str] = []
        for c in candidates:
            lines.append(f"{c.index + 1}. {c.label()}")
            if c.suggested_selectors:
                lines.append("   suggested: " + " | ".join(c.suggested_selectors))
        return lines
