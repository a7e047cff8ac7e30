"""Top-level benchmark orchestration."""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import TYPE_CHECKING

from hailstorm._internal.errors import EngineError
from hailstorm._internal.logging import get_logger
from hailstorm.engine.channel import OutcomeChannel
from hailstorm.engine.dispatcher import Dispatcher
from hailstorm.engine.latch import CancellationLatch
from hailstorm.engine.worker import install_uvloop
from hailstorm.metrics.aggregator import Aggregator
from hailstorm.metrics.report import BenchmarkReport

if TYPE_CHECKING:
    from hailstorm._internal.types import OutcomeCallback
    from hailstorm.config.settings import BenchmarkSettings
    from hailstorm.metrics.models import BenchmarkSummary

logger = get_logger("engine.runner")

_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def channel_capacity(settings: BenchmarkSettings) -> int:
    """Capacity of the outcome channel for a run.

    Counted runs never produce more than ``requests`` outcomes, so a queue of
    that size (plus the end marker) never blocks a worker. Timed runs have no
    upper bound on outcomes and get an unbounded queue.
    """
    if settings.timed:
        return 0
    return settings.requests + 1


class BenchmarkRunner:
    """Wires settings, latch, channel, dispatcher and aggregator together.

    Attributes:
        settings: Settings of the run.
        latch: Cancellation latch; set it to stop the run early.
    """

    def __init__(
        self,
        settings: BenchmarkSettings,
        *,
        on_outcome: OutcomeCallback | None = None,
        latch: CancellationLatch | None = None,
        handle_signals: bool = True,
    ) -> None:
        """Initialize the runner.

        Args:
            settings: Settings of the run.
            on_outcome: Callback invoked with every received outcome.
            latch: Latch to observe. A fresh one is created when omitted.
            handle_signals: Set the latch on SIGINT/SIGTERM while running.
        """
        self.settings = settings
        self.latch = latch if latch is not None else CancellationLatch()
        self._on_outcome = on_outcome
        self._handle_signals = handle_signals
        self._installed_signals: list[signal.Signals] = []

    async def run(self) -> BenchmarkSummary:
        """Execute the benchmark and return its summary.

        Returns once every worker has finished or stopped after a
        cancellation and all delivered outcomes have been consumed.

        Raises:
            ClientBuildError: If an HTTP client cannot be built. Raised
                before any request is issued.
            EngineError: If a worker fails unexpectedly.
        """
        settings = self.settings
        report = BenchmarkReport(settings.clients)
        channel = OutcomeChannel(maxsize=channel_capacity(settings))
        dispatcher = Dispatcher(settings, channel, self.latch)
        aggregator = Aggregator(report, on_outcome=self._on_outcome)

        logger.info("Starting benchmark: %s", settings.describe())

        self._install_signal_handlers()
        try:
            await dispatcher.start()
            try:
                await aggregator.consume(channel)
                issued = await dispatcher.join()
            except Exception as exc:
                for task in dispatcher.tasks:
                    task.cancel()
                logger.exception("Benchmark failed")
                raise EngineError("Benchmark failed") from exc
        finally:
            self._remove_signal_handlers()

        summary = report.summarize()
        logger.info(
            "Benchmark completed: elapsed=%.1fs, issued=%d, received=%d, "
            "mean=%.1fms, p95=%.1fms, cancelled=%s",
            summary.elapsed_seconds,
            sum(issued),
            summary.total_requests,
            summary.latency_mean,
            summary.latency_p95,
            self.latch.is_set,
        )
        return summary

    def _install_signal_handlers(self) -> None:
        """Route SIGINT and SIGTERM to the cancellation latch."""
        if not self._handle_signals:
            return

        if sys.platform == "win32":
            # Windows event loops do not support add_signal_handler
            loop = asyncio.get_running_loop()
            signal.signal(
                signal.SIGINT,
                lambda _s, _f: loop.call_soon_threadsafe(self.latch.set),
            )
            self._installed_signals.append(signal.SIGINT)
            return

        loop = asyncio.get_running_loop()
        for sig in _SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, self.latch.set)
            self._installed_signals.append(sig)

    def _remove_signal_handlers(self) -> None:
        """Restore default signal handling."""
        if sys.platform == "win32":
            for sig in self._installed_signals:
                signal.signal(sig, signal.default_int_handler)
        else:
            loop = asyncio.get_running_loop()
            for sig in self._installed_signals:
                loop.remove_signal_handler(sig)
        self._installed_signals.clear()


def run_benchmark(
    settings: BenchmarkSettings,
    *,
    on_outcome: OutcomeCallback | None = None,
    handle_signals: bool = True,
) -> BenchmarkSummary:
    """Run a benchmark in a fresh event loop (uvloop when available).

    Args:
        settings: Settings of the run.
        on_outcome: Callback invoked with every received outcome.
        handle_signals: Stop early on SIGINT/SIGTERM.

    Returns:
        The summary of the run.
    """
    install_uvloop()
    runner = BenchmarkRunner(
        settings,
        on_outcome=on_outcome,
        handle_signals=handle_signals,
    )
    return asyncio.run(runner.run())
