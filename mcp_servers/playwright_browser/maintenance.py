"""Background maintenance: periodic heartbeat and self-check.

Both loops only read session state (`status()` is a lock-free snapshot) and never
launch a browser, so they cannot delay request handling.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import suppress
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .server.registry import ToolRegistry

_LOGGER = logging.getLogger("mcp.playwright.maintenance")


class MaintenanceTasks:
    def __init__(
        self,
        registry: ToolRegistry,
        *,
        heartbeat_interval: float = 30.0,
        self_check_interval: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.registry = registry
        self.heartbeat_interval = heartbeat_interval
        self.self_check_interval = self_check_interval
        self._clock = clock
        self._sleep = sleep
        self._started_at = clock()
        self._tasks: list[asyncio.Task[None]] = []
        self.heartbeats = 0
        self.last_check: dict[str, Any] | None = None

    def uptime(self) -> float:
        return self._clock() - self._started_at

    def heartbeat(self) -> dict[str, Any]:
        status = self.registry.context.sessions.status()
        self.heartbeats += 1
        _LOGGER.info(
            "heartbeat uptime=%.0fs browser=%s age_ms=%s",
            self.uptime(),
            "up" if status["browserConnected"] else "down",
            status["browserAge"],
        )
        return status

    async def self_check(self) -> dict[str, Any]:
        """Call browser_status through the registry, as a client would."""
        started = self._clock()
        try:
            result = await self.registry.call_tool("browser_status", {})
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning("self_check_failed reason=%s", exc)
            self.last_check = {"ok": False, "error": str(exc)}
            return self.last_check
        ok = not result.is_error
        self.last_check = {"ok": ok, "elapsedMs": int((self._clock() - started) * 1000)}
        if ok:
            _LOGGER.info("self_check_ok elapsed_ms=%s", self.last_check["elapsedMs"])
        else:
            _LOGGER.warning("self_check_error result=%s", result.first_text)
        return self.last_check

    async def _heartbeat_loop(self) -> None:
        while True:
            await self._sleep(self.heartbeat_interval)
            try:
                self.heartbeat()
            except Exception:
                _LOGGER.exception("heartbeat_failed")

    async def _self_check_loop(self) -> None:
        while True:
            await self._sleep(self.self_check_interval)
            await self.self_check()

    def start(self) -> None:
        if self._tasks:
            return
        if self.heartbeat_interval > 0:
            self._tasks.append(asyncio.create_task(self._heartbeat_loop(), name="mcp-heartbeat"))
        if self.self_check_interval > 0:
            self._tasks.append(asyncio.create_task(self._self_check_loop(), name="mcp-self-check"))

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)
