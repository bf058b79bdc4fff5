"""Tests for sessions.py and rpc.py — session lifecycle, SSE frames, JSON-RPC."""
from unittest.mock import AsyncMock

import pytest

from postbot.errors import NotFoundError
from postbot.rpc import handle_message, METHOD_NOT_FOUND, INVALID_REQUEST, INVALID_PARAMS
from postbot.sessions import SessionManager, SessionTransport, event_stream, format_event, sessions


class TestSessionManager:
    def test_connect_registers(self):
        mgr = SessionManager()
        t = mgr.connect()
        assert t.session_id in mgr
        assert mgr.get(t.session_id) is t
        assert t.endpoint == f"/messages?sessionId={t.session_id}"

    def test_ids_unique(self):
        mgr = SessionManager()
        ids = {mgr.connect().session_id for _ in range(20)}
        assert len(ids) == 20
        assert len(mgr) == 20

    def test_disconnect_removes(self):
        mgr = SessionManager()
        t = mgr.connect()
        mgr.disconnect(t.session_id)
        assert t.session_id not in mgr
        assert t.closed is True
        with pytest.raises(NotFoundError):
            mgr.get(t.session_id)

    def test_disconnect_idempotent(self):
        mgr = SessionManager()
        t = mgr.connect()
        mgr.disconnect(t.session_id)
        mgr.disconnect(t.session_id)
        mgr.disconnect("never-existed")
        assert len(mgr) == 0

    def test_unknown_session(self):
        mgr = SessionManager()
        mgr.connect()
        with pytest.raises(NotFoundError):
            mgr.get("nope")
        with pytest.raises(NotFoundError):
            mgr.get(None)
        assert len(mgr) == 1

    def test_sessions_have_separate_histories(self):
        mgr = SessionManager()
        a, b = mgr.connect(), mgr.connect()
        a.history.append({"role": "user", "parts": [{"text": "hi"}]})
        assert b.history == []


class TestSessionTransport:
    @pytest.mark.asyncio
    async def test_send_queues_message(self):
        t = SessionTransport()
        await t.send({"x": 1})
        assert t.queue.get_nowait() == ("message", {"x": 1})

    @pytest.mark.asyncio
    async def test_send_after_close(self):
        t = SessionTransport()
        t.closed = True
        with pytest.raises(NotFoundError):
            await t.send({"x": 1})


class TestEventStream:
    def test_format_event_json(self):
        assert format_event("message", {"a": 1}) == 'event: message\ndata: {"a": 1}\n\n'

    def test_format_event_multiline(self):
        assert format_event("note", "a\nb") == "event: note\ndata: a\ndata: b\n\n"

    @pytest.mark.asyncio
    async def test_endpoint_then_messages_then_cleanup(self):
        mgr = SessionManager()
        t = mgr.connect()
        request = AsyncMock()
        request.is_disconnected = AsyncMock(return_value=False)

        stream = event_stream(t, request, manager=mgr, keepalive=5)
        first = await stream.__anext__()
        assert first == f"event: endpoint\ndata: {t.endpoint}\n\n"

        await t.send({"jsonrpc": "2.0", "id": 1, "result": {}})
        second = await stream.__anext__()
        assert second.startswith("event: message\n")

        await stream.aclose()
        assert t.session_id not in mgr

    @pytest.mark.asyncio
    async def test_keepalive_when_idle(self):
        mgr = SessionManager()
        t = mgr.connect()
        stream = event_stream(t, None, manager=mgr, keepalive=0.01)
        await stream.__anext__()
        assert await stream.__anext__() == ": keepalive\n\n"
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_client_disconnect_removes_session(self):
        mgr = SessionManager()
        t = mgr.connect()
        request = AsyncMock()
        request.is_disconnected = AsyncMock(return_value=True)
        frames = [frame async for frame in event_stream(t, request, manager=mgr)]
        assert len(frames) == 1
        assert len(mgr) == 0

    @pytest.mark.asyncio
    async def test_empty_manager_is_not_replaced_by_default(self):
        t = sessions.connect()
        request = AsyncMock()
        request.is_disconnected = AsyncMock(return_value=True)
        [frame async for frame in event_stream(t, request, manager=SessionManager())]
        assert t.session_id in sessions


class TestRpc:
    @pytest.mark.asyncio
    async def test_initialize(self, tool_registry):
        resp = await handle_message({"jsonrpc": "2.0", "id": 1, "method": "initialize"}, tool_registry)
        assert resp["id"] == 1
        assert resp["result"]["serverInfo"]["name"] == "postbot-server"
        assert "tools" in resp["result"]["capabilities"]

    @pytest.mark.asyncio
    async def test_ping(self, tool_registry):
        resp = await handle_message({"jsonrpc": "2.0", "id": "p", "method": "ping"}, tool_registry)
        assert resp == {"jsonrpc": "2.0", "id": "p", "result": {}}

    @pytest.mark.asyncio
    async def test_tools_list(self, tool_registry):
        resp = await handle_message({"jsonrpc": "2.0", "id": 2, "method": "tools/list"}, tool_registry)
        tools = resp["result"]["tools"]
        assert [t["name"] for t in tools] == ["echo", "explode"]
        assert tools[0]["inputSchema"]["required"] == ["text"]

    @pytest.mark.asyncio
    async def test_tools_call(self, tool_registry):
        resp = await handle_message({
            "jsonrpc": "2.0", "id": 3, "method": "tools/call",
            "params": {"name": "echo", "arguments": {"text": "hi"}},
        }, tool_registry)
        assert resp["result"] == {"content": [{"type": "text", "text": "hi"}]}

    @pytest.mark.asyncio
    async def test_tools_call_error_is_result(self, tool_registry):
        resp = await handle_message({
            "jsonrpc": "2.0", "id": 4, "method": "tools/call",
            "params": {"name": "echo", "arguments": {}},
        }, tool_registry)
        assert resp["result"]["isError"] is True
        assert "text" in resp["result"]["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_tools_call_without_name(self, tool_registry):
        resp = await handle_message({"jsonrpc": "2.0", "id": 5, "method": "tools/call"}, tool_registry)
        assert resp["error"]["code"] == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_notification_has_no_response(self, tool_registry):
        msg = {"jsonrpc": "2.0", "method": "notifications/initialized"}
        assert await handle_message(msg, tool_registry) is None

    @pytest.mark.asyncio
    async def test_unknown_method(self, tool_registry):
        resp = await handle_message({"jsonrpc": "2.0", "id": 6, "method": "resources/list"}, tool_registry)
        assert resp["error"]["code"] == METHOD_NOT_FOUND

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [[], {"id": 1, "method": "ping"}, {"jsonrpc": "2.0", "id": 1}])
    async def test_invalid_request(self, tool_registry, payload):
        resp = await handle_message(payload, tool_registry)
        assert resp["error"]["code"] == INVALID_REQUEST
