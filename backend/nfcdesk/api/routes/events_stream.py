"""Event Stream Route - SSE feed of committed access events.

Invariants:
    - Each committed tap is delivered as one `data: {json}` SSE frame
    - The subscription is removed when the client disconnects

Design Decisions:
    - StreamingResponse for SSE: event_generator yields formatted SSE lines
    - Keep-alive comment every KEEPALIVE_SECONDS so idle proxies keep the socket open
"""

import asyncio
import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from nfcdesk.core.errors import EngineNotReadyError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/events", tags=["events"])

KEEPALIVE_SECONDS = 15.0

# SSE headers prevent proxy/browser buffering of streamed events.
_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


def sse_line(event: dict) -> str:
    """Format dict as SSE data line."""
    return f"data: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"


@router.get("/stream")
async def stream_events(request: Request):
    broadcaster = getattr(request.app.state, "broadcaster", None)
    if broadcaster is None:
        raise EngineNotReadyError()

    async def event_generator():
        try:
            async with broadcaster.subscribe() as queue:
                while not await request.is_disconnected():
                    try:
                        event = await asyncio.wait_for(
                            queue.get(), timeout=KEEPALIVE_SECONDS,
                        )
                    except asyncio.TimeoutError:
                        yield ": keep-alive\n\n"
                        continue
                    yield sse_line(event)
        except asyncio.CancelledError:
            logger.info("Client disconnected from event stream")
            return

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )
