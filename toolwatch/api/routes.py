"""Read-only query surface over the status store.

Endpoints:
  GET /health          — liveness probe
  GET /tools           — every tool's latest status
  GET /tools/stream    — SSE stream of live poll results
  GET /tools/{id}      — one tool's latest status (404 when unknown)
  GET /diagnostics     — scheduler + notifier state
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def liveness() -> dict[str, Any]:
    logger.debug("HealthCheck")
    return {"status": "ok", "time": datetime.now(timezone.utc).isoformat()}


@router.get("/tools")
def list_tools(request: Request) -> dict[str, Any]:
    store = request.app.state.store
    request.app.state.telemetry.record_counts(store.counts())
    return {"tools": [r.to_dict() for r in store.snapshot()]}


@router.get("/tools/stream")
async def tools_stream(request: Request) -> StreamingResponse:
    """Server-Sent Events: an ``init`` snapshot, then one ``status`` per poll."""
    telemetry = request.app.state.telemetry
    store = request.app.state.store
    queue = telemetry.subscribe()

    async def event_generator():
        try:
            snapshot = [r.to_dict() for r in store.snapshot()]
            yield f"event: init\ndata: {json.dumps(snapshot)}\n\n"

            while True:
                if await request.is_disconnected():
                    break
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=30)
                    yield f"event: {event['event']}\ndata: {json.dumps(event['data'])}\n\n"
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
        finally:
            telemetry.unsubscribe(queue)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/tools/{tool_id}")
def get_tool(tool_id: str, request: Request) -> Any:
    record = request.app.state.store.get(tool_id)
    if record is None:
        logger.warning("Tool not found: %s", tool_id)
        return JSONResponse(status_code=404, content={"error": "Tool not found"})
    logger.info("Tool status retrieved: %s (%s)", tool_id, record.verdict.value)
    return record.to_dict()


@router.get("/diagnostics")
def diagnostics(request: Request) -> dict[str, Any]:
    scheduler = getattr(request.app.state, "scheduler", None)
    telemetry = request.app.state.telemetry
    return {
        "scheduler": scheduler.status() if scheduler else None,
        "notifications": telemetry.notifier.status(),
        "stream_subscribers": telemetry.subscriber_count,
    }
