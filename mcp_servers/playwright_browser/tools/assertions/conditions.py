"""
Assertion conditions: validated, ready-to-poll form of one template entry.

`build_condition` performs every per-kind check up front. Anything it rejects is
reported as a failed result with the setup message; later conditions still run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .patterns import LiteralMatcher, PatternError, TextMatcher, parse_pattern

if TYPE_CHECKING:
    from ...server.definitions import AssertionArgs

DEFAULT_TIMEOUT_MS = 5000

PAGE_KINDS = frozenset({"page_title", "page_url"})
STRING_KINDS = frozenset({"page_title", "page_url", "text", "attribute", "value", "css"})
BOOLEAN_KINDS = frozenset({"checked", "enabled"})
COUNT_COMPARATORS = frozenset({"equals", "gt", "gte", "lt", "lte"})
STRING_COMPARATORS = frozenset({"equals", "contains", "matches"})


class ConditionSetupError(ValueError):
    """The condition cannot be evaluated as written."""


@dataclass(frozen=True)
class AssertionCondition:
    index: int
    kind: str
    selector: str | None = None
    attribute: str | None = None
    css_property: str | None = None
    expected: Any = None
    matcher: TextMatcher | None = None
    comparator: str | None = None
    ratio: float = 0.0
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    @property
    def timeout(self) -> float:
        return self.timeout_ms / 1000.0

    def describe_expected(self) -> str:
        if self.matcher is not None:
            return self.matcher.describe()
        if self.kind == "count":
            return f"count {self.comparator} {self.expected}"
        if self.kind == "in_viewport":
            return f"visible ratio >= {self.ratio}"
        if self.kind in BOOLEAN_KINDS:
            return f"{self.kind} == {str(self.expected).lower()}"
        return self.kind


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _string_matcher(args: AssertionArgs) -> TextMatcher:
    comparator = args.comparator
    if comparator is not None and comparator not in STRING_COMPARATORS:
        raise ConditionSetupError(
            f"comparator '{comparator}' is not valid for {args.type} (use equals, contains or matches)"
        )
    try:
        if args.pattern is not None:
            return parse_pattern(args.pattern)
        if args.expected is None:
            raise ConditionSetupError(f"{args.type} assertion requires 'expected' or 'pattern'")
        if comparator == "matches":
            return parse_pattern(_as_text(args.expected))
    except PatternError as exc:
        raise ConditionSetupError(str(exc)) from exc
    return LiteralMatcher(value=_as_text(args.expected), mode=comparator or "equals")


def build_condition(index: int, args: AssertionArgs) -> AssertionCondition:
    kind = args.type
    timeout_ms = args.timeout if args.timeout is not None else DEFAULT_TIMEOUT_MS

    if kind not in PAGE_KINDS and not (args.selector or "").strip():
        raise ConditionSetupError(f"{kind} assertion requires 'selector'")

    base: dict[str, Any] = {
        "index": index,
        "kind": kind,
        "selector": args.selector,
        "timeout_ms": timeout_ms,
    }

    if kind in STRING_KINDS:
        if kind == "attribute" and not args.attribute:
            raise ConditionSetupError("attribute assertion requires 'attribute'")
        if kind == "css" and not args.css_property:
            raise ConditionSetupError("css assertion requires 'property'")
        matcher = _string_matcher(args)
        comparator = matcher.mode if isinstance(matcher, LiteralMatcher) else "matches"
        return AssertionCondition(
            **base,
            attribute=args.attribute,
            css_property=args.css_property,
            expected=args.expected if args.expected is not None else args.pattern,
            matcher=matcher,
            comparator=comparator,
        )

    if kind == "count":
        expected = args.expected
        if isinstance(expected, bool) or not isinstance(expected, (int, float)) or int(expected) != expected:
            raise ConditionSetupError("count assertion requires an integer 'expected'")
        comparator = args.comparator or "equals"
        if comparator not in COUNT_COMPARATORS:
            raise ConditionSetupError(f"comparator '{comparator}' is not valid for count (use equals, gt, gte, lt, lte)")
        return AssertionCondition(**base, expected=int(expected), comparator=comparator)

    if kind in BOOLEAN_KINDS:
        expected = True if args.expected is None else args.expected
        if not isinstance(expected, bool):
            raise ConditionSetupError(f"{kind} assertion expects a boolean 'expected'")
        return AssertionCondition(**base, expected=expected)

    if kind == "in_viewport":
        return AssertionCondition(**base, ratio=args.ratio or 0.0)

    # visible / attached / hidden / detached
    return AssertionCondition(**base)


def compare_count(actual: int, comparator: str, expected: int) -> bool:
    if comparator == "gt":
        return actual > expected
    if comparator == "gte":
        return actual >= expected
    if comparator == "lt":
        return actual < expected
    if comparator == "lte":
        return actual <= expected
    return actual == expected
