"""Tests for the newline-delimited JSON-RPC transport."""

import io
import json

import pytest

from archguard.server.stdio import PROTOCOL_VERSION, handle_line, handle_message, serve
from archguard.server.tools import INVALID_REQUEST, METHOD_NOT_FOUND, PARSE_ERROR


def _request(method: str, params=None, request_id=1) -> dict:
    message = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


@pytest.fixture
def project(tmp_path):
    (tmp_path / "page.tsx").write_text("export default function Page() {\n  return <img src=\"/hero.png\" alt=\"\" />;\n}\n")
    return tmp_path


def test_initialize():
    response = handle_message(_request("initialize", {"protocolVersion": PROTOCOL_VERSION}))
    assert response["id"] == 1
    result = response["result"]
    assert result["serverInfo"]["name"] == "archguard"
    assert result["protocolVersion"] == PROTOCOL_VERSION
    assert "tools" in result["capabilities"]


def test_ping():
    assert handle_message(_request("ping", request_id="abc")) == {"jsonrpc": "2.0", "id": "abc", "result": {}}


def test_tools_list():
    response = handle_message(_request("tools/list"))
    assert len(response["result"]["tools"]) == 6


def test_tools_call(project):
    response = handle_message(
        _request("tools/call", {"name": "architecture_check", "arguments": {"path": str(project)}})
    )
    result = response["result"]
    assert result["isError"] is False
    payload = result["structuredContent"]
    assert json.loads(result["content"][0]["text"]) == payload
    assert payload["success"] is False
    assert "[raw-img-element]" in payload["errors"][0]


def test_unknown_tool_is_an_error_response():
    response = handle_message(_request("tools/call", {"name": "nope", "arguments": {}}))
    assert response["error"]["code"] == METHOD_NOT_FOUND
    assert "result" not in response


def test_unknown_method():
    response = handle_message(_request("resources/list", request_id=7))
    assert response == {"jsonrpc": "2.0", "id": 7, "error": {"code": METHOD_NOT_FOUND, "message": "Method not found: resources/list"}}


@pytest.mark.parametrize(
    "message",
    [
        {"id": 1, "method": "ping"},
        {"jsonrpc": "2.0", "id": 1},
        ["not", "an", "object"],
        {"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": ["x"]},
    ],
)
def test_invalid_requests(message):
    response = handle_message(message)
    assert response["error"]["code"] == INVALID_REQUEST


def test_notifications_get_no_response():
    assert handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None
    assert handle_message({"jsonrpc": "2.0", "method": "ping"}) is None


def test_handle_line():
    assert handle_line("   \n") is None
    response = handle_line("{not json")
    assert response["id"] is None
    assert response["error"]["code"] == PARSE_ERROR
    assert handle_line(json.dumps(_request("ping")))["result"] == {}


def test_serve_writes_one_line_per_response():
    lines = [
        json.dumps(_request("initialize", {}, request_id=1)),
        json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
        "",
        json.dumps(_request("tools/list", request_id=2)),
        "garbage",
    ]
    stdin = io.StringIO("\n".join(lines) + "\n")
    stdout = io.StringIO()
    serve(stdin, stdout)
    responses = [json.loads(line) for line in stdout.getvalue().splitlines()]
    assert [r.get("id") for r in responses] == [1, 2, None]
    assert responses[2]["error"]["code"] == PARSE_ERROR
