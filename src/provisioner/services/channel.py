"""Ordered single-producer/single-consumer conduit for progress events."""

import asyncio
from typing import AsyncIterator, Optional

from provisioner.models.events import Complete, ProgressEvent


class EventChannel:
    """Carries one run's events from the pipeline task to its caller.

    The queue is unbounded so put() never waits on the consumer. The channel
    closes itself once a Complete event has been put; nothing may follow it.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._delivered_complete = False

    @property
    def closed(self) -> bool:
        """True once the terminal Complete event has been put."""
        return self._closed

    async def put(self, event: ProgressEvent) -> None:
        if self._closed:
            raise RuntimeError("Event channel already closed by a Complete event")
        if isinstance(event, Complete):
            self._closed = True
        self._queue.put_nowait(event)

    async def get(self) -> Optional[ProgressEvent]:
        """Next event in order, or None once Complete has been consumed."""
        if self._delivered_complete:
            return None
        event = await self._queue.get()
        if isinstance(event, Complete):
            self._delivered_complete = True
        return event

    def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ProgressEvent]:
        while True:
            event = await self.get()
            if event is None:
                return
            yield event
