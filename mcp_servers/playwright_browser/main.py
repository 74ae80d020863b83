"""
MCP Server for browser automation via Playwright.

This module provides the stdio entry point and JSON-RPC protocol handling.
Tool dispatch is handled via registry pattern in server/registry.py.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from collections.abc import Callable
from typing import Any

from .config import BrowserConfig
from .maintenance import MaintenanceTasks
from .server.contract import (
    DEFAULT_PROTOCOL_VERSION,
    LATEST_PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    initialize_result,
    select_protocol,
)
from .server.redaction import redact_jsonrpc_for_log, redact_tool_arguments
from .server.registry import ToolRegistry, create_default_registry
from .tools.base import InternalToolError, SessionUnavailableError

logger = logging.getLogger("mcp.playwright")

__all__ = [
    "SUPPORTED_PROTOCOL_VERSIONS",
    "LATEST_PROTOCOL_VERSION",
    "DEFAULT_PROTOCOL_VERSION",
    "McpServer",
    "main",
]

# JSON-RPC error codes for hard failures.
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SESSION_UNAVAILABLE = -32001


def configure_logging() -> None:
    # stdout carries JSON-RPC frames; logs go to stderr.
    logging.basicConfig(
        level=logging.DEBUG if os.environ.get("MCP_TRACE") else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )


def _write_message(payload: dict[str, Any]) -> None:
    """Write JSON-RPC message to stdout."""
    data = json.dumps(payload, ensure_ascii=False)
    if os.environ.get("MCP_TRACE"):
        logger.debug("send %s", redact_jsonrpc_for_log(payload))
    sys.stdout.buffer.write((data + "\n").encode())
    sys.stdout.buffer.flush()


def _parse_message(line: bytes) -> dict[str, Any] | None:
    line = line.strip()
    if not line:
        return None
    msg = json.loads(line.decode())
    if os.environ.get("MCP_TRACE"):
        logger.debug("recv %s", redact_jsonrpc_for_log(msg))
    return msg if isinstance(msg, dict) else None


class McpServer:
    """MCP Server with registry-based tool dispatch."""

    def __init__(
        self,
        config: BrowserConfig | None = None,
        registry: ToolRegistry | None = None,
        *,
        write: Callable[[dict[str, Any]], None] = _write_message,
    ) -> None:
        self.config = config or BrowserConfig.from_env()
        self.registry = registry or create_default_registry(self.config)
        self._write = write
        self._pending: set[asyncio.Task[None]] = set()

    def _respond(self, request_id: Any, result: dict[str, Any]) -> None:
        self._write({"jsonrpc": "2.0", "id": request_id, "result": result})

    def _error(self, request_id: Any, code: int, message: str, data: Any | None = None) -> None:
        error: dict[str, Any] = {"code": code, "message": message}
        if data is not None:
            error["data"] = data
        self._write({"jsonrpc": "2.0", "id": request_id, "error": error})

    def handle_initialize(self, request_id: Any, params: dict[str, Any] | None = None) -> None:
        """Handle initialize request."""
        requested = (params or {}).get("protocolVersion") if isinstance(params, dict) else None
        self._respond(request_id, initialize_result(select_protocol(requested)))

    def handle_list_tools(self, request_id: Any) -> None:
        """Handle tools/list request."""
        self._respond(request_id, {"tools": self.registry.list_tools()})

    def _log_call(self, name: str, arguments: dict[str, Any]) -> None:
        """Log tool call with sanitized arguments."""
        logger.info("tool=%s args=%s", name, redact_tool_arguments(name, arguments))

    async def handle_call_tool(self, request_id: Any, name: str, arguments: dict[str, Any]) -> None:
        """Handle tool call via registry dispatch; hard failures become JSON-RPC errors."""
        self._log_call(name, arguments)
        try:
            result = await self.registry.call_tool(name, arguments)
        except SessionUnavailableError as exc:
            logger.error("session_unavailable tool=%s reason=%s", name, exc.reason)
            self._error(request_id, SESSION_UNAVAILABLE, exc.reason, exc.to_dict())
            return
        except InternalToolError as exc:
            self._error(request_id, INTERNAL_ERROR, exc.reason, exc.to_dict())
            return
        self._respond(request_id, {"content": result.to_content_list(), "isError": result.is_error})

    async def dispatch(self, message: dict[str, Any]) -> None:
        """Dispatch incoming JSON-RPC message to appropriate handler."""
        if not message:
            return

        method = message.get("method")
        request_id = message.get("id")
        params = message.get("params") or {}
        if not isinstance(params, dict):
            if request_id is not None:
                self._error(request_id, INVALID_PARAMS, "params must be an object")
            return

        if method == "initialize":
            self.handle_initialize(request_id, params)
        elif method in ("notifications/initialized", "notifications/cancelled"):
            return
        elif method in ("tools/list", "list_tools"):
            self.handle_list_tools(request_id)
        elif method in ("tools/call", "call_tool"):
            name = params.get("name")
            arguments = params.get("arguments") or {}
            await self.handle_call_tool(request_id, name or "", arguments if isinstance(arguments, dict) else {})
        elif method == "ping":
            self._respond(request_id, {})
        else:
            self._error(request_id, METHOD_NOT_FOUND, f"Method {method} not found")

    def submit(self, message: dict[str, Any]) -> asyncio.Task[None]:
        """Schedule a message; tool calls run concurrently against the shared session."""
        task = asyncio.create_task(self.dispatch(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def shutdown(self) -> None:
        await self.drain()
        await self.registry.context.sessions.shutdown()


async def serve(server: McpServer | None = None) -> None:
    server = server or McpServer()
    maintenance = MaintenanceTasks(
        server.registry,
        heartbeat_interval=server.config.heartbeat_interval,
        self_check_interval=server.config.self_check_interval,
    )
    maintenance.start()
    loop = asyncio.get_running_loop()
    try:
        while True:
            line = await loop.run_in_executor(None, sys.stdin.buffer.readline)
            if not line:
                break
            try:
                message = _parse_message(line)
            except ValueError as exc:
                logger.warning("invalid_frame reason=%s", exc)
                continue
            if message is not None:
                server.submit(message)
    finally:
        await maintenance.stop()
        await server.shutdown()


def main() -> None:
    """Main entry point for MCP server."""
    configure_logging()
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
