"""Unbuffered channel carrying hop events from one probe round to its collector."""

import asyncio
import concurrent.futures
from typing import AsyncIterator, Optional

from .models import HopEvent

_CLOSED = object()

# How often a blocked producer thread rechecks whether the conduit closed
POLL_INTERVAL = 0.05


class ConduitClosedError(RuntimeError):
    """Raised when a producer sends on a conduit that was already closed."""


class HopConduit:
    """Single-producer/single-consumer rendezvous channel of hop events.

    ``send`` only returns once the consumer has taken the event, so nothing
    is ever buffered. ``close`` marks the end of the round and never blocks.
    Producers running in a worker thread use the ``*_threadsafe`` variants,
    which block the calling thread instead of the event loop and give up as
    soon as the conduit closes or its loop goes away.

    Must be created inside a running event loop.
    """

    def __init__(self):
        # Unbounded so close() can always enqueue; send() waits on join()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._loop = asyncio.get_running_loop()
        self._closed = False
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, hop: HopEvent) -> None:
        if self._closed:
            raise ConduitClosedError(f"Conduit closed, dropping hop {hop.distance}")
        self._queue.put_nowait(hop)
        await self._queue.join()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def send_threadsafe(self, hop: HopEvent) -> None:
        if self._closed:
            raise ConduitClosedError(f"Conduit closed, dropping hop {hop.distance}")
        coro = self.send(hop)
        try:
            future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        except RuntimeError as e:
            coro.close()
            raise ConduitClosedError(f"Event loop gone, dropping hop {hop.distance}") from e

        while True:
            try:
                return future.result(POLL_INTERVAL)
            except concurrent.futures.TimeoutError:
                if not (self._closed or self._loop.is_closed()):
                    continue
            if future.cancel():
                raise ConduitClosedError(
                    f"Conduit closed while sending hop {hop.distance}"
                )
            return future.result()

    def close_threadsafe(self) -> None:
        self._loop.call_soon_threadsafe(self.close)

    async def receive(self) -> Optional[HopEvent]:
        """Next hop event, or None once the conduit is closed and drained."""
        if self._drained:
            return None
        item = await self._queue.get()
        self._queue.task_done()
        if item is _CLOSED:
            self._drained = True
            return None
        return item

    def __aiter__(self) -> AsyncIterator[HopEvent]:
        return self._iter()

    async def _iter(self) -> AsyncIterator[HopEvent]:
        while True:
            hop = await self.receive()
            if hop is None:
                return
            yield hop
