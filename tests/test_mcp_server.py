from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from fakes import EXAMPLE_URL, FakeClock, FakeProvider, make_config

from mcp_servers.playwright_browser import main as mcp_server
from mcp_servers.playwright_browser.maintenance import MaintenanceTasks
from mcp_servers.playwright_browser.server.definitions import EmptyArgs
from mcp_servers.playwright_browser.server.registry import ToolRegistry
from mcp_servers.playwright_browser.server.types import ToolSpec


def _server(tmp_path: Path, registry: ToolRegistry) -> tuple[mcp_server.McpServer, list[dict]]:
    sent: list[dict] = []
    srv = mcp_server.McpServer(make_config(tmp_path), registry, write=sent.append)
    return srv, sent


def _dispatch(srv: mcp_server.McpServer, message: dict) -> None:
    asyncio.run(srv.dispatch(message))


def test_server_list_tools_output(tmp_path: Path, registry: ToolRegistry) -> None:
    srv, sent = _server(tmp_path, registry)
    srv.handle_list_tools(request_id="1")

    tools = sent[0]["result"]["tools"]
    names = [t["name"] for t in tools]
    assert "navigate" in names
    assert "assert_template" in names
    assert len(tools) == 12
    assert all("inputSchema" in t and t["description"] for t in tools)


def test_server_initialize(tmp_path: Path, registry: ToolRegistry) -> None:
    srv, sent = _server(tmp_path, registry)
    srv.handle_initialize(request_id="init")

    result = sent[0]["result"]
    assert result["serverInfo"]["name"] == "playwright-browser"
    assert result["protocolVersion"] == mcp_server.LATEST_PROTOCOL_VERSION
    assert "tools" in result["capabilities"]
    assert result["instructions"]


def test_initialize_respects_client_protocol(tmp_path: Path, registry: ToolRegistry) -> None:
    srv, sent = _server(tmp_path, registry)
    srv.handle_initialize(request_id="init", params={"protocolVersion": "2024-11-05"})
    assert sent[0]["result"]["protocolVersion"] == "2024-11-05"


def test_initialize_falls_back_to_latest(tmp_path: Path, registry: ToolRegistry) -> None:
    srv, sent = _server(tmp_path, registry)
    srv.handle_initialize(request_id="init", params={"protocolVersion": "0.0.1"})
    assert sent[0]["result"]["protocolVersion"] == mcp_server.LATEST_PROTOCOL_VERSION


def test_server_unknown_method_error(tmp_path: Path, registry: ToolRegistry) -> None:
    srv, sent = _server(tmp_path, registry)
    _dispatch(srv, {"id": "x", "method": "unknown"})
    assert sent[0]["error"]["code"] == -32601


def test_non_object_params_are_rejected(tmp_path: Path, registry: ToolRegistry, provider: FakeProvider) -> None:
    srv, sent = _server(tmp_path, registry)
    _dispatch(srv, {"jsonrpc": "2.0", "id": 7, "method": "tools/call", "params": ["navigate"]})
    _dispatch(srv, {"jsonrpc": "2.0", "method": "tools/call", "params": "navigate"})

    assert len(sent) == 1
    assert sent[0]["id"] == 7
    assert sent[0]["error"]["code"] == -32602
    assert provider.launch_calls == []


def test_ping_and_notifications(tmp_path: Path, registry: ToolRegistry) -> None:
    srv, sent = _server(tmp_path, registry)
    _dispatch(srv, {"jsonrpc": "2.0", "method": "notifications/initialized"})
    assert sent == []

    _dispatch(srv, {"jsonrpc": "2.0", "id": 7, "method": "ping"})
    assert sent == [{"jsonrpc": "2.0", "id": 7, "result": {}}]


def test_tools_call_returns_content(tmp_path: Path, registry: ToolRegistry) -> None:
    srv, sent = _server(tmp_path, registry)
    _dispatch(
        srv,
        {"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "navigate", "arguments": {"url": EXAMPLE_URL}}},
    )

    result = sent[0]["result"]
    assert result["isError"] is False
    assert "Example Domain" in result["content"][0]["text"]


def test_recoverable_errors_stay_tool_results(tmp_path: Path, registry: ToolRegistry) -> None:
    srv, sent = _server(tmp_path, registry)
    _dispatch(srv, {"id": 2, "method": "tools/call", "params": {"name": "navigate", "arguments": {}}})
    _dispatch(srv, {"id": 3, "method": "call_tool", "params": {"name": "missing"}})

    assert [m["result"]["isError"] for m in sent] == [True, True]
    assert "invalid_arguments" in sent[0]["result"]["content"][0]["text"]
    assert "not_found" in sent[1]["result"]["content"][0]["text"]


def test_launch_failure_is_a_jsonrpc_error(tmp_path: Path, registry: ToolRegistry, provider: FakeProvider) -> None:
    provider.launch_errors = [RuntimeError("no browser")] * 3
    srv, sent = _server(tmp_path, registry)

    _dispatch(srv, {"id": 4, "method": "tools/call", "params": {"name": "get_url", "arguments": {}}})

    error = sent[0]["error"]
    assert error["code"] == -32001
    assert error["data"]["code"] == "unavailable"
    assert error["data"]["retryable"] is True
    assert "result" not in sent[0]


def test_handler_fault_is_a_jsonrpc_internal_error(tmp_path: Path, registry: ToolRegistry) -> None:
    async def explode(ctx, args, page):
        raise KeyError("boom")

    registry.register(ToolSpec(name="explode", description="", arguments=EmptyArgs, handler=explode, requires_page=False))
    srv, sent = _server(tmp_path, registry)

    _dispatch(srv, {"id": 5, "method": "tools/call", "params": {"name": "explode"}})

    assert sent[0]["error"]["code"] == -32603
    assert sent[0]["error"]["data"]["code"] == "internal"


def test_submitted_calls_share_one_session(tmp_path: Path, registry: ToolRegistry, provider: FakeProvider) -> None:
    srv, sent = _server(tmp_path, registry)

    async def scenario() -> None:
        srv.submit({"id": 1, "method": "tools/call", "params": {"name": "get_url"}})
        srv.submit({"id": 2, "method": "tools/call", "params": {"name": "browser_health"}})
        await srv.drain()
        await srv.shutdown()

    asyncio.run(scenario())

    assert sorted(m["id"] for m in sent) == [1, 2]
    assert all(m["result"]["isError"] is False for m in sent)
    assert len(provider.launch_calls) == 1
    assert provider.stopped is True


@pytest.mark.parametrize(
    "line, expected",
    [
        (b"\n", None),
        (b'{"jsonrpc": "2.0", "id": 1, "method": "ping"}\n', {"jsonrpc": "2.0", "id": 1, "method": "ping"}),
        (b"[1, 2]\n", None),
    ],
)
def test_parse_message(line: bytes, expected: dict | None) -> None:
    assert mcp_server._parse_message(line) == expected


def test_parse_message_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        mcp_server._parse_message(b"{not json\n")


def test_maintenance_heartbeat_and_self_check_do_not_launch(registry: ToolRegistry, provider: FakeProvider) -> None:
    clock = FakeClock()
    tasks = MaintenanceTasks(registry, clock=clock, sleep=clock.sleep)

    status = tasks.heartbeat()
    clock.now += 5
    check = asyncio.run(tasks.self_check())

    assert status["browserConnected"] is False
    assert tasks.heartbeats == 1
    assert tasks.uptime() == 5
    assert check == {"ok": True, "elapsedMs": 0}
    assert provider.launch_calls == []


def test_maintenance_loops_start_and_stop(registry: ToolRegistry) -> None:
    tasks = MaintenanceTasks(registry, heartbeat_interval=0.01, self_check_interval=0.01)

    async def scenario() -> bool:
        tasks.start()
        await asyncio.sleep(0.05)
        running = tasks.running
        await tasks.stop()
        return running

    assert asyncio.run(scenario()) is True
    assert tasks.running is False
    assert tasks.heartbeats >= 1
    assert tasks.last_check is not None and tasks.last_check["ok"] is True


def test_maintenance_disabled_intervals_start_nothing(registry: ToolRegistry) -> None:
    tasks = MaintenanceTasks(registry, heartbeat_interval=0, self_check_interval=0)

    async def scenario() -> bool:
        tasks.start()
        return tasks.running

    assert asyncio.run(scenario()) is False


def test_contract_snapshot_matches_list_tools(registry: ToolRegistry) -> None:
    from mcp_servers.playwright_browser.server.contract import SERVER_INFO, contract_snapshot

    snapshot = contract_snapshot(registry, "2024-11-05")

    assert snapshot["protocolVersion"] == "2024-11-05"
    assert snapshot["serverInfo"] == SERVER_INFO
    assert snapshot["tools"] == registry.list_tools()
    assert contract_snapshot(registry)["protocolVersion"] == mcp_server.DEFAULT_PROTOCOL_VERSION
