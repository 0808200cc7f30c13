"""Tests for the FastAPI transport."""

import json

import pytest
from fastapi.testclient import TestClient

from archguard.server.tools import INVALID_PARAMS, METHOD_NOT_FOUND, PARSE_ERROR, VERSION


def _events(body: str) -> list[tuple[str, dict]]:
    """Parse a text/event-stream body into (event, data) pairs."""
    events = []
    for block in body.strip().split("\n\n"):
        fields = dict(line.split(": ", 1) for line in block.splitlines())
        events.append((fields["event"], json.loads(fields["data"])))
    return events


@pytest.fixture
def project(tmp_path):
    (tmp_path / "a.tsx").write_text("export function A() {\n  return <p>{window.innerWidth}</p>;\n}\n")
    (tmp_path / "b.tsx").write_text("export function B() {\n  return <p>b</p>;\n}\n")
    return tmp_path


class TestHealthEndpoint:
    """Test health check endpoint."""

    @pytest.fixture
    def client(self):
        from archguard.server.http import app

        with TestClient(app) as client:
            yield client

    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_check_response_body(self, client):
        assert client.get("/health").json() == {"status": "ok", "version": VERSION}


class TestToolEndpoints:
    @pytest.fixture
    def client(self):
        from archguard.server.http import app

        with TestClient(app) as client:
            yield client

    def test_list_tools(self, client):
        tools = client.get("/tools").json()["tools"]
        assert "architecture_check" in [tool["name"] for tool in tools]

    def test_call_tool(self, client, project):
        response = client.post("/tools/architecture_check", json={"path": str(project)})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["filesChecked"] == 2
        assert "[browser-api-in-server]" in data["warnings"][0]

    def test_unknown_tool_is_404(self, client):
        response = client.post("/tools/nope", json={})
        assert response.status_code == 404
        assert response.json()["error"]["code"] == METHOD_NOT_FOUND

    def test_invalid_arguments_are_400(self, client):
        response = client.post("/tools/check_import_allowed", json={"source": "app/page.tsx"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == INVALID_PARAMS

    def test_stream_reports_progress_then_result(self, client, project):
        response = client.post("/tools/architecture_check/stream", json={"path": str(project)})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = _events(response.text)
        assert [name for name, _ in events] == ["progress", "progress", "result"]
        assert events[0][1]["index"] == 1
        assert events[1][1]["total"] == 2
        assert events[-1][1]["filesChecked"] == 2

    def test_stream_error_event(self, client):
        response = client.post("/tools/check_import_allowed/stream", json={"target": "react"})
        events = _events(response.text)
        assert events[-1][0] == "error"
        assert events[-1][1]["error"]["code"] == INVALID_PARAMS

    def test_stream_unknown_tool(self, client):
        assert client.post("/tools/nope/stream", json={}).status_code == 404


class TestJsonRpcEndpoint:
    @pytest.fixture
    def client(self):
        from archguard.server.http import app

        with TestClient(app) as client:
            yield client

    def test_tools_call(self, client, project):
        message = {
            "jsonrpc": "2.0",
            "id": 3,
            "method": "tools/call",
            "params": {"name": "style_check", "arguments": {"path": str(project)}},
        }
        data = client.post("/mcp", json=message).json()
        assert data["id"] == 3
        assert data["result"]["structuredContent"]["filesChecked"] == 2

    def test_notification_is_accepted(self, client):
        response = client.post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"})
        assert response.status_code == 202

    def test_parse_error(self, client):
        response = client.post("/mcp", content=b"{oops", headers={"content-type": "application/json"})
        data = response.json()
        assert data["id"] is None
        assert data["error"]["code"] == PARSE_ERROR
