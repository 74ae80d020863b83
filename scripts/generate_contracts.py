#!/usr/bin/env python3

from __future__ import annotations

import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from mcp_servers.playwright_browser.config import BrowserConfig  # noqa: E402
from mcp_servers.playwright_browser.server.contract import contract_snapshot  # noqa: E402
from mcp_servers.playwright_browser.server.registry import create_default_registry  # noqa: E402


def main() -> int:
    # Building the registry does not start a browser.
    snapshot = contract_snapshot(create_default_registry(BrowserConfig()))

    out_dir = ROOT / "contracts"
    out_dir.mkdir(parents=True, exist_ok=True)

    out_json = out_dir / "tools.json"
    out_json.write_text(json.dumps(snapshot, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")

    print(f"Wrote: {out_json}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
