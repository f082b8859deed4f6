"""Event Broadcaster - in-process fan-out of committed access events to SSE clients.

Invariants:
    - publish() never raises and never awaits: a slow or broken client cannot
      delay or fail a tap
    - Each subscriber gets its own bounded queue; a full queue drops the event
      for that subscriber only

Design Decisions:
    - asyncio.Queue per subscriber, registered for the lifetime of one SSE response
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


class EventBroadcaster:
    """NotificationSink implementation backing GET /api/v1/events/stream."""

    def __init__(self, queue_size: int = 100) -> None:
        self._queue_size = queue_size
        self._subscribers: set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: dict) -> None:
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("SSE subscriber queue full, dropping event")

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[asyncio.Queue]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(queue)
        try:
            yield queue
        finally:
            self._subscribers.discard(queue)
