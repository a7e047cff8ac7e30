"""Benchmark report built from the stream of request outcomes."""

from __future__ import annotations

import time
from collections import Counter
from typing import TYPE_CHECKING

from hailstorm.metrics.models import BenchmarkSummary
from hailstorm.metrics.stats import LatencyStats

if TYPE_CHECKING:
    from hailstorm.metrics.models import RequestOutcome


class BenchmarkReport:
    """Accumulates outcomes for one run.

    Only the aggregator mutates a report, once per received outcome, so no
    locking is needed.

    Attributes:
        clients: Concurrency level of the run.
        start_time: Monotonic time the report was created.
        outcomes: Received outcomes in arrival order.
    """

    def __init__(self, clients: int) -> None:
        self.clients = clients
        self.start_time = time.monotonic()
        self.outcomes: list[RequestOutcome] = []
        self._stats = LatencyStats()
        self._status_counts: Counter[str] = Counter()

    @property
    def stats(self) -> LatencyStats:
        return self._stats

    def add(self, outcome: RequestOutcome) -> None:
        """Record one outcome."""
        self.outcomes.append(outcome)
        self._stats.insert(outcome.duration_ms)
        self._status_counts[outcome.status] += 1

    def summarize(self) -> BenchmarkSummary:
        """Compute the final statistics.

        With no outcomes every latency figure is 0.0.
        """
        return BenchmarkSummary(
            clients=self.clients,
            elapsed_seconds=time.monotonic() - self.start_time,
            total_requests=self._stats.count,
            latency_mean=self._stats.mean(),
            latency_min=self._stats.min(),
            latency_max=self._stats.max(),
            latency_p95=self._stats.quantile(0.95),
            latency_p999=self._stats.quantile(0.999),
            status_counts=dict(self._status_counts),
        )
