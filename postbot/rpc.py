"""JSON-RPC 2.0 messages delivered over ``POST /messages``.

Supports the tool protocol subset: initialize, ping, tools/list, tools/call.
"""
import logging
from typing import Any, Optional

from . import __version__
from .errors import PostbotError
from .tools import describe_tools, invoke_tool, ToolRegistry

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "postbot-server"

INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


def _result(msg_id, result: dict) -> dict:
    return {"jsonrpc": "2.0", "id": msg_id, "result": result}


def _error(msg_id, code: int, message: str) -> dict:
    return {"jsonrpc": "2.0", "id": msg_id, "error": {"code": code, "message": message}}


async def handle_message(payload: Any, registry: ToolRegistry) -> Optional[dict]:
    """Process one message. Returns the response, or None for notifications."""
    if not isinstance(payload, dict) or payload.get("jsonrpc") != "2.0" \
            or not isinstance(payload.get("method"), str):
        msg_id = payload.get("id") if isinstance(payload, dict) else None
        return _error(msg_id, INVALID_REQUEST, "Invalid Request")

    method = payload["method"]
    msg_id = payload.get("id")
    params = payload.get("params") or {}
    if msg_id is None:
        logger.info(f"RPC notification: {method}")
        return None

    if method == "initialize":
        return _result(msg_id, {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
        })

    if method == "ping":
        return _result(msg_id, {})

    if method == "tools/list":
        tools = [
            {"name": d["name"], "description": d["description"], "inputSchema": d["parameters"]}
            for d in describe_tools(registry)
        ]
        return _result(msg_id, {"tools": tools})

    if method == "tools/call":
        if not isinstance(params, dict) or not isinstance(params.get("name"), str):
            return _error(msg_id, INVALID_PARAMS, "tools/call requires a tool name")
        try:
            result = await invoke_tool(params["name"], params.get("arguments") or {}, registry=registry)
        except PostbotError as e:
            return _result(msg_id, {
                "content": [{"type": "text", "text": e.message}],
                "isError": True,
            })
        return _result(msg_id, result.to_dict())

    return _error(msg_id, METHOD_NOT_FOUND, f"Method not found: {method}")
