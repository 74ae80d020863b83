"""
String matchers for assertion templates.

Expected strings are parsed once, when the template is loaded, into either a
literal (equals / contains) or a compiled pattern. Pattern strings use the
`/body/flags` form or are taken as a raw expression.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Protocol

_SLASHED_RE = re.compile(r"^/(.*)/([A-Za-z]*)$", re.DOTALL)
# JS named groups: (?<name>...) -> (?P<name>...)
_JS_NAMED_GROUP_RE = re.compile(r"\(\?<(?=[A-Za-z_])")

_FLAG_MAP = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}
_IGNORED_FLAGS = frozenset("guy")


class PatternError(ValueError):
    """Malformed pattern string (bad flag or uncompilable body)."""


class TextMatcher(Protocol):
    def matches(self, actual: str) -> bool: ...

    def describe(self) -> str: ...


@dataclass(frozen=True)
class LiteralMatcher:
    value: str
    mode: str = "equals"  # equals | contains

    def matches(self, actual: str) -> bool:
        if self.mode == "contains":
            return self.value in actual
        return actual == self.value

    def describe(self) -> str:
        return f"{self.mode} {self.value!r}"


@dataclass(frozen=True)
class PatternMatcher:
    body: str
    flags: str = ""
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "regex", compile_pattern(self.body, self.flags))

    def matches(self, actual: str) -> bool:
        return self.regex.search(actual) is not None

    def describe(self) -> str:
        return f"matches /{self.body}/{self.flags}"


def compile_pattern(body: str, flags: str = "") -> re.Pattern[str]:
    re_flags = 0
    for flag in flags:
        if flag in _FLAG_MAP:
            re_flags |= _FLAG_MAP[flag]
        elif flag not in _IGNORED_FLAGS:
            raise PatternError(f"Unsupported pattern flag '{flag}' (supported: i, m, s; ignored: g, u, y)")
    try:
        return re.compile(_JS_NAMED_GROUP_RE.sub("(?P<", body), re_flags)
    except re.error as exc:
        raise PatternError(f"Invalid pattern /{body}/{flags}: {exc}") from exc


def parse_pattern(raw: str) -> PatternMatcher:
    """Parse `/body/flags` or a raw expression into a compiled matcher."""
    if not isinstance(raw, str):
        raise PatternError("Pattern must be a string")
    match = _SLASHED_RE.match(raw)
    if match and match.group(1):
        return PatternMatcher(body=match.group(1), flags=match.group(2))
    return PatternMatcher(body=raw)
