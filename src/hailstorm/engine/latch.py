"""One-shot cancellation signal shared by all workers."""

from __future__ import annotations

import asyncio

from hailstorm._internal.logging import get_logger

logger = get_logger("engine.latch")


class CancellationLatch:
    """Level-triggered, set-once shutdown signal.

    One writer (normally the SIGINT/SIGTERM handler) calls ``set``; any
    number of workers either check ``is_set`` or await ``wait``. Once set,
    the latch stays set for the rest of the run and every waiter, present
    or future, observes it.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def is_set(self) -> bool:
        """Return True once the latch has been set."""
        return self._event.is_set()

    def set(self) -> bool:
        """Set the latch.

        Returns:
            True if this call performed the transition, False if the latch
            was already set.
        """
        if self._event.is_set():
            return False
        self._event.set()
        logger.info("Cancellation requested, workers stop after their current request")
        return True

    async def wait(self) -> None:
        """Block until the latch is set. Returns at once if it already is."""
        await self._event.wait()
