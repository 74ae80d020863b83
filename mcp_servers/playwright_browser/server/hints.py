"""Small helpers for producing tool-call hints ("next" actions).

These strings are agent-visible and must stay compatible with the registered toolset.
"""

from __future__ import annotations

import json


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def discover_elements_hint(*, selector: str, limit: int = 10) -> str:
    limit_i = int(limit) if isinstance(limit, int) else 10
    limit_i = max(1, min(limit_i, 50))
    if limit_i == 10:
        return f"discover_elements(selector={_quote(selector)})"
    return f"discover_elements(selector={_quote(selector)}, limit={limit_i})"


def retry_hint(*, tool: str, selector: str) -> str:
    return f"{tool}(selector={_quote(selector)})"


def screenshot_hint(**overrides: object) -> str:
    if not overrides:
        return "screenshot()"
    parts = ", ".join(f"{k}={json.dumps(v)}" for k, v in overrides.items())
    return f"screenshot({parts})"
