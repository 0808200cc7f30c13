"""FastAPI transport: plain tool calls, a JSON-RPC endpoint and server-sent event streams."""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from pathlib import Path
from typing import Any, AsyncIterator, Optional

from fastapi import Body, FastAPI, Request, status
from fastapi.responses import JSONResponse, Response, StreamingResponse

from archguard.aggregator import ScanCancelled
from archguard.server.stdio import handle_message
from archguard.server.tools import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    TOOLS,
    VERSION,
    ToolError,
    call_tool,
    list_tools,
)

logger = logging.getLogger(__name__)

# How often a running stream checks whether the client went away.
DISCONNECT_POLL_SECONDS = 0.25

_HTTP_STATUS = {
    METHOD_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    INVALID_PARAMS: status.HTTP_400_BAD_REQUEST,
    INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    PARSE_ERROR: status.HTTP_400_BAD_REQUEST,
}

app = FastAPI(
    title="archguard",
    description="Architecture and style checks for Next.js / React TypeScript projects",
    version=VERSION,
)


def _error_response(error: ToolError) -> JSONResponse:
    return JSONResponse(
        status_code=_HTTP_STATUS.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content={"error": error.to_dict()},
    )


def _sse(event: str, data: Any) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": VERSION}


@app.get("/tools")
async def get_tools():
    """List the available tools and their input schemas."""
    return {"tools": list_tools()}


@app.post("/tools/{name}")
def run_tool(name: str, arguments: Optional[dict[str, Any]] = Body(None)):
    """Run one tool and return its payload."""
    try:
        return call_tool(name, arguments)
    except ToolError as e:
        return _error_response(e)


@app.post("/tools/{name}/stream")
async def stream_tool(name: str, request: Request, arguments: Optional[dict[str, Any]] = Body(None)):
    """
    Run one tool, streaming a `progress` event per checked file, then a
    `result` (or `error`) event. Closing the connection cancels the scan
    between files.
    """
    if name not in TOOLS:
        return _error_response(ToolError(METHOD_NOT_FOUND, f"Unknown tool: {name}"))

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[tuple[str, Any]] = asyncio.Queue()
    cancel = threading.Event()

    def on_file(index: int, total: int, path: Path) -> None:
        loop.call_soon_threadsafe(
            queue.put_nowait, ("progress", {"index": index, "total": total, "path": str(path)})
        )

    async def events() -> AsyncIterator[str]:
        task = asyncio.create_task(asyncio.to_thread(call_tool, name, arguments, cancel=cancel, on_file=on_file))
        try:
            while not task.done() or not queue.empty():
                try:
                    event, data = await asyncio.wait_for(queue.get(), timeout=DISCONNECT_POLL_SECONDS)
                except asyncio.TimeoutError:
                    if await request.is_disconnected():
                        logger.info("Client disconnected, cancelling %s", name)
                        cancel.set()
                        return
                    continue
                yield _sse(event, data)

            try:
                yield _sse("result", task.result())
            except ToolError as e:
                yield _sse("error", {"error": e.to_dict()})
            except ScanCancelled:
                logger.info("Scan for %s cancelled", name)
        finally:
            if not task.done():
                cancel.set()

    return StreamingResponse(events(), media_type="text/event-stream")


@app.post("/mcp")
async def jsonrpc(request: Request):
    """JSON-RPC 2.0 envelope, same methods as the stdio transport."""
    try:
        message = json.loads(await request.body())
    except json.JSONDecodeError as e:
        error = ToolError(PARSE_ERROR, f"Parse error: {e.msg}")
        return JSONResponse(content={"jsonrpc": "2.0", "id": None, "error": error.to_dict()})

    response = await asyncio.to_thread(handle_message, message)
    if response is None:
        return Response(status_code=status.HTTP_202_ACCEPTED)
    return response
