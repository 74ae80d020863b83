from __future__ import annotations

from pathlib import Path

import pytest

from mcp_servers.playwright_browser.config import DEFAULT_LAUNCH_FLAGS, BrowserConfig

_ENV = (
    "MCP_HEADLESS",
    "MCP_BROWSER_TYPE",
    "MCP_BROWSER_FLAGS",
    "MCP_ALLOW_HOSTS",
    "MCP_SESSION_MAX_AGE",
    "MCP_LAUNCH_ATTEMPTS",
    "MCP_SCREENSHOT_MAX_BYTES",
    "MCP_ARTIFACTS_DIR",
    "MCP_ARTIFACTS_BASE_URL",
    "MCP_UNAVAILABLE_COOLDOWN",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_from_env_defaults() -> None:
    cfg = BrowserConfig.from_env()
    assert cfg.headless is True
    assert cfg.browser_type == "chromium"
    assert cfg.launch_flags == DEFAULT_LAUNCH_FLAGS
    assert cfg.allow_hosts == []
    assert cfg.max_session_age == 1800.0
    assert cfg.launch_attempts == 3
    assert cfg.default_timeout_ms == 30_000
    assert cfg.screenshot_max_bytes == 1_000_000
    assert cfg.artifacts_base_url is None
    assert cfg.artifacts_dir.endswith(str(Path("data") / "screenshots"))


def test_from_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("MCP_HEADLESS", "0")
    monkeypatch.setenv("MCP_BROWSER_TYPE", "ff")
    monkeypatch.setenv("MCP_BROWSER_FLAGS", "--a, --b,")
    monkeypatch.setenv("MCP_ALLOW_HOSTS", "Example.test, docs.example.test")
    monkeypatch.setenv("MCP_SESSION_MAX_AGE", "60")
    monkeypatch.setenv("MCP_LAUNCH_ATTEMPTS", "0")
    monkeypatch.setenv("MCP_SCREENSHOT_MAX_BYTES", "50000")
    monkeypatch.setenv("MCP_ARTIFACTS_DIR", str(tmp_path / "shots"))
    monkeypatch.setenv("MCP_ARTIFACTS_BASE_URL", "https://files.example.test/")

    cfg = BrowserConfig.from_env()
    assert cfg.headless is False
    assert cfg.browser_type == "firefox"
    assert cfg.launch_flags == ["--a", "--b"]
    assert cfg.allow_hosts == ["example.test", "docs.example.test"]
    assert cfg.max_session_age == 60.0
    assert cfg.launch_attempts == 1
    assert cfg.screenshot_max_bytes == 50_000
    assert cfg.artifacts_dir == str(tmp_path / "shots")
    assert cfg.artifacts_base_url == "https://files.example.test"


def test_unknown_browser_type_falls_back_to_chromium() -> None:
    assert BrowserConfig.normalize_browser_type("netscape") == "chromium"
    assert BrowserConfig.normalize_browser_type("Safari") == "webkit"


def test_host_allowlist_matches_subdomains() -> None:
    cfg = BrowserConfig(allow_hosts=["example.test"])
    assert cfg.is_host_allowed("example.test")
    assert cfg.is_host_allowed("www.example.test")
    assert not cfg.is_host_allowed("example.test.evil")
    assert BrowserConfig().is_host_allowed("anything.test")
