"""
Newline-delimited JSON-RPC 2.0 over stdin/stdout.

One request per line, one response per line. Notifications (no "id") get no
response. stdout carries protocol messages only; logging goes to stderr.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Optional, TextIO

from archguard.server.tools import (
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    SERVER_NAME,
    VERSION,
    ToolError,
    call_tool,
    list_tools,
)

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"


def _result(request_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _error(request_id: Any, error: ToolError) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": error.to_dict()}


def tool_result(payload: dict[str, Any]) -> dict[str, Any]:
    """Wrap a tool payload as a tools/call result (text content plus structured copy)."""
    return {
        "content": [{"type": "text", "text": json.dumps(payload, indent=2)}],
        "structuredContent": payload,
        "isError": False,
    }


def _dispatch(method: str, params: dict[str, Any]) -> Any:
    if method == "initialize":
        return {
            "protocolVersion": params.get("protocolVersion") or PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": SERVER_NAME, "version": VERSION},
        }
    if method == "ping":
        return {}
    if method == "tools/list":
        return {"tools": list_tools()}
    if method == "tools/call":
        name = params.get("name")
        if not isinstance(name, str):
            raise ToolError(INVALID_REQUEST, "tools/call requires a tool name")
        return tool_result(call_tool(name, params.get("arguments")))
    raise ToolError(METHOD_NOT_FOUND, f"Method not found: {method}")


def handle_message(message: Any) -> Optional[dict[str, Any]]:
    """Handle one decoded JSON-RPC message; None for notifications."""
    if not isinstance(message, dict) or message.get("jsonrpc") != "2.0" or "method" not in message:
        request_id = message.get("id") if isinstance(message, dict) else None
        return _error(request_id, ToolError(INVALID_REQUEST, "Invalid JSON-RPC request"))

    request_id = message.get("id")
    is_notification = "id" not in message
    method = message["method"]
    params = message.get("params") or {}

    try:
        if not isinstance(params, dict):
            raise ToolError(INVALID_REQUEST, "params must be an object")
        result = _dispatch(method, params)
    except ToolError as e:
        if is_notification:
            logger.debug("Ignoring error for notification %s: %s", method, e.message)
            return None
        return _error(request_id, e)

    if is_notification:
        return None
    return _result(request_id, result)


def handle_line(line: str) -> Optional[dict[str, Any]]:
    """Decode one input line and handle it; blank lines are ignored."""
    if not line.strip():
        return None
    try:
        message = json.loads(line)
    except json.JSONDecodeError as e:
        logger.warning("Invalid JSON on stdin: %s", e)
        return _error(None, ToolError(PARSE_ERROR, f"Parse error: {e.msg}"))
    return handle_message(message)


def serve(stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> None:
    """Serve requests until stdin closes."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    logger.info("archguard %s serving JSON-RPC on stdio", VERSION)
    for line in stdin:
        response = handle_line(line)
        if response is None:
            continue
        stdout.write(json.dumps(response) + "\n")
        stdout.flush()
    logger.info("stdin closed, shutting down")
