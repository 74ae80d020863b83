from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from .config import BrowserConfig
from .provider import BrowserHandle, BrowserProvider

logger = logging.getLogger("mcp.playwright.launcher")

SleepFunc = Callable[[float], Awaitable[None]]


def backoff_delays(attempts: int, base: float = 1.0, cap: float = 10.0) -> list[float]:
    """Delays slept between consecutive launch attempts (doubling, capped)."""
    return [min(base * (2**i), cap) for i in range(max(0, attempts - 1))]


@dataclass
class LaunchResult:
    browser: BrowserHandle
    attempts: int
    delays: list[float] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    elapsed: float = 0.0


class LaunchFailedError(RuntimeError):
    def __init__(self, errors: list[str], delays: list[float]) -> None:
        self.errors = errors
        self.delays = delays
        last = errors[-1] if errors else "unknown error"
        super().__init__(f"Browser launch failed after {len(errors)} attempt(s): {last}")


class BrowserLauncher:
    def __init__(
        self,
        config: BrowserConfig,
        provider: BrowserProvider,
        *,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.config = config
        self.provider = provider
        self._sleep = sleep

    async def launch(self) -> LaunchResult:
        """Launch the browser with bounded retries and exponential backoff."""
        schedule = backoff_delays(self.config.launch_attempts, self.config.launch_backoff, self.config.launch_backoff_max)
        errors: list[str] = []
        slept: list[float] = []
        started = time.monotonic()
        for attempt in range(1, self.config.launch_attempts + 1):
            try:
                browser = await asyncio.wait_for(
                    self.provider.launch(
                        headless=self.config.headless,
                        args=list(self.config.launch_flags),
                        timeout_ms=self.config.launch_timeout * 1000,
                    ),
                    timeout=self.config.launch_timeout,
                )
            except Exception as exc:  # noqa: BLE001
                message = str(exc).splitlines()[0] if str(exc) else exc.__class__.__name__
                errors.append(message)
                logger.warning("launch_failed attempt=%s/%s reason=%s", attempt, self.config.launch_attempts, message)
                if attempt <= len(schedule):
                    delay = schedule[attempt - 1]
                    slept.append(delay)
                    await self._sleep(delay)
                continue
            elapsed = time.monotonic() - started
            logger.info("launch_ok attempt=%s elapsed=%.2fs", attempt, elapsed)
            return LaunchResult(browser=browser, attempts=attempt, delays=slept, errors=errors, elapsed=elapsed)
        raise LaunchFailedError(errors, slept)
