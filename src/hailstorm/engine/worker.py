"""Virtual client request loops.

A worker issues its requests strictly one after another and hands each
outcome to the aggregator. It runs in one of two modes, chosen once at
start:

- counted: ``requests // clients`` iterations. The remainder of the
  division is never executed by anyone.
- timed: keeps going until the configured duration has elapsed, checked
  before each request. A request in flight is never interrupted.

Cancellation is best-effort. After every request the worker races the
delivery of the outcome against the cancellation latch; if the latch wins,
the worker stops at once and that last outcome may never reach the report.
"""

from __future__ import annotations

import asyncio
import sys
import time
from typing import TYPE_CHECKING

from hailstorm._internal.logging import get_logger
from hailstorm.config.settings import parse_target

if TYPE_CHECKING:
    from hailstorm.config.settings import BenchmarkSettings
    from hailstorm.engine.channel import OutcomeChannel
    from hailstorm.engine.http_client import HttpClient
    from hailstorm.engine.latch import CancellationLatch
    from hailstorm.metrics.models import RequestOutcome

logger = get_logger("engine.worker")


def install_uvloop() -> None:
    """Install uvloop as the default event loop policy if available.

    Falls back to the default asyncio event loop on Windows or when uvloop
    is not installed.
    """
    if sys.platform == "win32":
        return

    try:
        import uvloop

        uvloop.install()
        logger.debug("uvloop installed as event loop policy")
    except ImportError:
        logger.debug("uvloop not available, using default asyncio event loop")


async def deliver_or_cancel(
    outcome: RequestOutcome,
    channel: OutcomeChannel,
    latch: CancellationLatch,
) -> bool:
    """Race delivering ``outcome`` against the cancellation latch.

    Returns:
        True if the outcome was delivered first and the worker should go on,
        False if cancellation won. In the latter case the delivery is
        abandoned and the outcome may be lost.
    """
    delivery = asyncio.ensure_future(channel.send(outcome))
    cancelled = asyncio.ensure_future(latch.wait())
    try:
        done, _pending = await asyncio.wait(
            {delivery, cancelled},
            return_when=asyncio.FIRST_COMPLETED,
        )
    except asyncio.CancelledError:
        delivery.cancel()
        cancelled.cancel()
        raise

    if cancelled in done:
        delivery.cancel()
        return False

    cancelled.cancel()
    return True


async def _run_counted(
    settings: BenchmarkSettings,
    client: HttpClient,
    channel: OutcomeChannel,
    latch: CancellationLatch,
) -> int:
    """Run exactly ``settings.requests_per_client`` iterations."""
    method, url = parse_target(settings.target)
    headers = settings.header_map
    issued = 0

    for execution in range(settings.requests_per_client):
        if latch.is_set:
            break
        outcome = await client.execute(
            method.value,
            url,
            execution=execution,
            headers=headers,
            body=settings.body,
        )
        issued += 1
        if not await deliver_or_cancel(outcome, channel, latch):
            break

    return issued


async def _run_timed(
    settings: BenchmarkSettings,
    client: HttpClient,
    channel: OutcomeChannel,
    latch: CancellationLatch,
    duration: float,
) -> int:
    """Issue requests until ``duration`` seconds have elapsed."""
    method, url = parse_target(settings.target)
    headers = settings.header_map
    begin = time.monotonic()
    execution = 0

    while time.monotonic() - begin < duration:
        if latch.is_set:
            break
        outcome = await client.execute(
            method.value,
            url,
            execution=execution,
            headers=headers,
            body=settings.body,
        )
        execution += 1
        if not await deliver_or_cancel(outcome, channel, latch):
            break

    return execution


async def run_worker(
    client_index: int,
    settings: BenchmarkSettings,
    client: HttpClient,
    channel: OutcomeChannel,
    latch: CancellationLatch,
) -> int:
    """Run one virtual client to completion.

    The worker owns ``client`` and closes it when done. It also releases its
    producer slot on ``channel`` however it exits, so the aggregator always
    sees the channel close.

    Args:
        client_index: 0-based worker identifier.
        settings: Shared benchmark settings.
        client: Opened HTTP client exclusively used by this worker.
        channel: Channel the outcomes are delivered to.
        latch: Cancellation latch observed between requests.

    Returns:
        Number of requests this worker issued.
    """
    logger.debug(
        "Worker %d started (%s mode)",
        client_index,
        "timed" if settings.timed else "counted",
        extra={"client": client_index},
    )
    issued = 0
    try:
        if settings.duration is None:
            issued = await _run_counted(settings, client, channel, latch)
        else:
            issued = await _run_timed(
                settings, client, channel, latch, settings.duration
            )
    finally:
        await client.close()
        await channel.release()
        logger.debug(
            "Worker %d finished after %d requests",
            client_index,
            issued,
            extra={"client": client_index},
        )

    return issued
