"""Multi-producer, single-consumer channel of request outcomes."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from hailstorm.metrics.models import RequestOutcome

_CLOSED = object()


class OutcomeChannel:
    """Queue of ``RequestOutcome`` that closes when its producers are done.

    Producers are counted with ``register`` before they start and each one
    calls ``release`` exactly once when it finishes. When the count drops to
    zero an end marker is queued behind any pending outcomes, so the
    consumer drains everything that was delivered and then stops.
    """

    def __init__(self, maxsize: int = 0) -> None:
        """Create a channel holding at most ``maxsize`` items; 0 means unbounded."""
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=maxsize)
        self._producers = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        """Return True once every registered producer has released."""
        return self._closed

    def register(self, count: int = 1) -> None:
        """Add ``count`` producers.

        Raises:
            RuntimeError: If the channel has already closed.
        """
        if self._closed:
            msg = "Cannot register producers on a closed channel"
            raise RuntimeError(msg)
        self._producers += count

    async def release(self) -> None:
        """Drop one producer; the last one closes the channel."""
        if self._producers <= 0:
            msg = "release() called more times than register()"
            raise RuntimeError(msg)
        self._producers -= 1
        if self._producers == 0:
            self._closed = True
            await self._queue.put(_CLOSED)

    async def send(self, outcome: RequestOutcome) -> None:
        """Deliver an outcome, waiting while the queue is full."""
        await self._queue.put(outcome)

    async def receive(self) -> RequestOutcome | None:
        """Return the next outcome, or None once the channel has closed."""
        item = await self._queue.get()
        if item is _CLOSED:
            # Keep the marker queued so later receives also see the close.
            self._queue.put_nowait(_CLOSED)
            return None
        return item  # type: ignore[return-value]

    async def __aiter__(self) -> AsyncIterator[RequestOutcome]:
        while True:
            outcome = await self.receive()
            if outcome is None:
                return
            yield outcome
