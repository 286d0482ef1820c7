"""Ordered, single-consumer event channel for one request.

The pipeline writes events as it progresses and merges in the answer token
stream; the HTTP layer consumes them with `async for`. Durable events are
delivered in full and in write order. Transient (status) events are dropped
once the unconsumed backlog reaches `transient_backlog`. The first `error`
event is terminal: everything written after it is discarded, and the channel
still closes normally.
"""
from __future__ import annotations

import asyncio
from typing import AsyncIterator

from loguru import logger

from app.models.events import EventType, SSEEvent

_CLOSED = object()


class EventChannel:
    def __init__(self, *, transient_backlog: int = 32):
        self.transient_backlog = max(int(transient_backlog), 0)
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False
        self._errored = False
        self.dropped_transient = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def errored(self) -> bool:
        return self._errored

    def write(self, event: SSEEvent) -> bool:
        """Queue an event; returns False when the delivery policy discards it."""
        if self._closed or self._errored:
            logger.debug(f"Discarding {event.event.value} event written after terminal state")
            return False
        if event.transient and self._queue.qsize() >= self.transient_backlog:
            self.dropped_transient += 1
            return False
        if event.event is EventType.ERROR:
            self._errored = True
        self._queue.put_nowait(event)
        return True

    async def merge(self, events: AsyncIterator[SSEEvent]) -> int:
        """Forward a sub-stream after everything already queued; returns events written."""
        written = 0
        async for event in events:
            if self.write(event):
                written += 1
            # Let the consumer flush between chunks.
            await asyncio.sleep(0)
        return written

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def __aiter__(self) -> AsyncIterator[SSEEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item
