"""Builds the per-worker HTTP clients and launches the workers."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from hailstorm._internal.logging import get_logger
from hailstorm.engine.http_client import HttpClient
from hailstorm.engine.worker import run_worker

if TYPE_CHECKING:
    from hailstorm.config.settings import BenchmarkSettings
    from hailstorm.engine.channel import OutcomeChannel
    from hailstorm.engine.latch import CancellationLatch

logger = get_logger("engine.dispatcher")


async def build_clients(settings: BenchmarkSettings) -> list[HttpClient]:
    """Open one HTTP client per virtual client.

    If any client fails to build, the ones already opened are closed and the
    error is re-raised, so nothing is left running.

    Raises:
        ClientBuildError: If a client cannot be constructed.
    """
    clients: list[HttpClient] = []
    try:
        for index in range(settings.clients):
            client = HttpClient.from_settings(settings, index)
            await client.open()
            clients.append(client)
    except BaseException:
        for client in clients:
            await client.close()
        raise
    return clients


class Dispatcher:
    """Launches one worker task per virtual client.

    ``start`` returns as soon as the tasks are scheduled; ``join`` waits for
    them. Each worker gets its index, the shared settings, its own client,
    the outcome channel and the cancellation latch.

    Attributes:
        settings: Benchmark settings shared by all workers.
    """

    def __init__(
        self,
        settings: BenchmarkSettings,
        channel: OutcomeChannel,
        latch: CancellationLatch,
    ) -> None:
        self.settings = settings
        self._channel = channel
        self._latch = latch
        self._tasks: list[asyncio.Task[int]] = []

    @property
    def tasks(self) -> list[asyncio.Task[int]]:
        """Return the launched worker tasks."""
        return list(self._tasks)

    async def start(self) -> list[asyncio.Task[int]]:
        """Build all clients, then launch all workers.

        Returns:
            The worker tasks, one per client, in client-index order.

        Raises:
            ClientBuildError: If any client cannot be built. No worker is
                launched in that case.
            RuntimeError: If called twice.
        """
        if self._tasks:
            msg = "Dispatcher has already been started"
            raise RuntimeError(msg)

        clients = await build_clients(self.settings)
        self._channel.register(len(clients))

        for client in clients:
            task = asyncio.create_task(
                run_worker(
                    client.client_index,
                    self.settings,
                    client,
                    self._channel,
                    self._latch,
                ),
                name=f"hailstorm-worker-{client.client_index}",
            )
            self._tasks.append(task)

        logger.info("Started %d workers", len(self._tasks))
        return self.tasks

    async def join(self) -> list[int]:
        """Wait for every worker and return how many requests each issued.

        Raises:
            Exception: The first exception raised by a worker, if any.
        """
        issued = await asyncio.gather(*self._tasks)
        logger.info("All %d workers stopped", len(self._tasks))
        return list(issued)


async def dispatch(
    settings: BenchmarkSettings,
    channel: OutcomeChannel,
    latch: CancellationLatch,
) -> list[asyncio.Task[int]]:
    """Build clients and launch all workers without waiting for them."""
    return await Dispatcher(settings, channel, latch).start()
