#!/usr/bin/env python3
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

print(
    f"[mcp] browser={os.environ.get('MCP_BROWSER_TYPE', 'chromium')} | "
    f"headless={os.environ.get('MCP_HEADLESS', '1')} | "
    f"max_age={os.environ.get('MCP_SESSION_MAX_AGE', '1800')}s | "
    f"allowlist={os.environ.get('MCP_ALLOW_HOSTS', '*')}",
    file=sys.stderr,
)

from mcp_servers.playwright_browser.main import main  # noqa: E402

if __name__ == "__main__":
    main()
