"""Streaming latency accumulator used by the benchmark report."""

from __future__ import annotations

from hailstorm.metrics.histogram import LatencyHistogram


class LatencyStats:
    """Single streaming accumulator for latency statistics.

    Count, mean, min and max are tracked exactly. Quantiles come from an
    HDR histogram and are accurate to three significant digits.

    With no recorded values every statistic is ``0.0``.
    """

    def __init__(self) -> None:
        self._count = 0
        self._total_ms = 0.0
        self._min_ms = 0.0
        self._max_ms = 0.0
        self._histogram = LatencyHistogram()

    def insert(self, latency_ms: float) -> None:
        """Record one latency in milliseconds.

        Raises:
            ValueError: If ``latency_ms`` is negative.
        """
        if latency_ms < 0:
            msg = f"latency must be >= 0, got: {latency_ms}"
            raise ValueError(msg)

        if self._count == 0:
            self._min_ms = latency_ms
            self._max_ms = latency_ms
        else:
            self._min_ms = min(self._min_ms, latency_ms)
            self._max_ms = max(self._max_ms, latency_ms)
        self._count += 1
        self._total_ms += latency_ms
        self._histogram.record_ms(latency_ms)

    @property
    def count(self) -> int:
        return self._count

    def mean(self) -> float:
        if self._count == 0:
            return 0.0
        return self._total_ms / self._count

    def min(self) -> float:
        return self._min_ms

    def max(self) -> float:
        return self._max_ms

    def quantile(self, q: float) -> float:
        """Return the latency at quantile ``q``, e.g. ``0.95`` for p95."""
        return self._histogram.value_at_quantile(q)
