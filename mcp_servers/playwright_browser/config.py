from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_LAUNCH_FLAGS: list[str] = ["--no-sandbox", "--disable-setuid-sandbox"]

SUPPORTED_BROWSER_TYPES = ("chromium", "firefox", "webkit")


def expand_path(raw: str) -> str:
    return str(Path(raw).expanduser())


def _repo_root() -> Path:
    # mcp_servers/playwright_browser/config.py -> repo root is parents[2]
    return Path(__file__).resolve().parents[2]


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass
class BrowserConfig:
    headless: bool = True
    browser_type: str = "chromium"
    launch_flags: list[str] = field(default_factory=lambda: list(DEFAULT_LAUNCH_FLAGS))
    allow_hosts: list[str] = field(default_factory=list)

    # Session lifecycle
    max_session_age: float = 30 * 60.0
    launch_attempts: int = 3
    launch_backoff: float = 1.0
    launch_backoff_max: float = 10.0
    launch_timeout: float = 60.0
    page_attempts: int = 3
    page_retry_delay: float = 1.0
    probe_timeout: float = 2.0
    default_timeout_ms: int = 30_000
    unavailable_cooldown: float = 60.0

    # Screenshots
    screenshot_max_bytes: int = 1_000_000
    artifacts_dir: str = field(default_factory=lambda: str(_repo_root() / "data" / "screenshots"))
    artifacts_base_url: str | None = None

    # Background maintenance
    heartbeat_interval: float = 30.0
    self_check_interval: float = 300.0

    @staticmethod
    def normalize_browser_type(raw: str | None) -> str:
        value = (raw or "").strip().lower()
        if value in {"chrome", "chromium", ""}:
            return "chromium"
        if value in {"firefox", "ff"}:
            return "firefox"
        if value in {"webkit", "safari"}:
            return "webkit"
        return "chromium"

    @classmethod
    def from_env(cls) -> BrowserConfig:
        headless = os.environ.get("MCP_HEADLESS", "1") != "0"
        flags_raw = os.environ.get("MCP_BROWSER_FLAGS")
        if flags_raw is None:
            launch_flags = list(DEFAULT_LAUNCH_FLAGS)
        else:
            launch_flags = [flag.strip() for flag in flags_raw.split(",") if flag.strip()]
        allow_raw = os.environ.get("MCP_ALLOW_HOSTS", "")
        allow_hosts = [host.strip().lower() for host in allow_raw.split(",") if host.strip() and host.strip() != "*"]
        artifacts_dir = os.environ.get("MCP_ARTIFACTS_DIR")
        base_url = (os.environ.get("MCP_ARTIFACTS_BASE_URL") or "").strip().rstrip("/") or None
        return cls(
            headless=headless,
            browser_type=cls.normalize_browser_type(os.environ.get("MCP_BROWSER_TYPE")),
            launch_flags=launch_flags,
            allow_hosts=allow_hosts,
            max_session_age=_env_float("MCP_SESSION_MAX_AGE", 30 * 60.0),
            launch_attempts=max(1, _env_int("MCP_LAUNCH_ATTEMPTS", 3)),
            launch_backoff=_env_float("MCP_LAUNCH_BACKOFF", 1.0),
            launch_backoff_max=_env_float("MCP_LAUNCH_BACKOFF_MAX", 10.0),
            launch_timeout=_env_float("MCP_LAUNCH_TIMEOUT", 60.0),
            page_attempts=max(1, _env_int("MCP_PAGE_ATTEMPTS", 3)),
            page_retry_delay=_env_float("MCP_PAGE_RETRY_DELAY", 1.0),
            default_timeout_ms=_env_int("MCP_DEFAULT_TIMEOUT_MS", 30_000),
            unavailable_cooldown=_env_float("MCP_UNAVAILABLE_COOLDOWN", 60.0),
            screenshot_max_bytes=_env_int("MCP_SCREENSHOT_MAX_BYTES", 1_000_000),
            artifacts_dir=expand_path(artifacts_dir) if artifacts_dir else str(_repo_root() / "data" / "screenshots"),
            artifacts_base_url=base_url,
            heartbeat_interval=_env_float("MCP_HEARTBEAT_INTERVAL", 30.0),
            self_check_interval=_env_float("MCP_SELF_CHECK_INTERVAL", 300.0),
        )

    def is_host_allowed(self, host: str) -> bool:
        host = (host or "").strip().lower().rstrip(".")
        if not self.allow_hosts:
            return True
        for raw_allowed in self.allow_hosts:
            allowed = (raw_allowed or "").strip().lower().lstrip(".").rstrip(".")
            if not allowed:
                continue
            if host == allowed:
                return True
            if host.endswith("." + allowed):
                return True
        return False
