from __future__ import annotations

from pathlib import Path

import pytest
from fakes import FakeClock, FakeProvider, example_site, make_config

from mcp_servers.playwright_browser.server.registry import create_default_registry


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider(example_site())


@pytest.fixture
def registry(tmp_path: Path, provider: FakeProvider, clock: FakeClock):
    return create_default_registry(make_config(tmp_path), provider, clock=clock, sleep=clock.sleep)
