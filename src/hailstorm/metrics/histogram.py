"""HDR histogram wrapper for latency quantiles.

The underlying ``hdrh`` histogram only stores integers, so latencies are
kept as integer microseconds and exposed as float milliseconds.
"""

from __future__ import annotations

from hdrh.histogram import HdrHistogram  # type: ignore[import-untyped]

# Range: 1 microsecond to 10 minutes (in microseconds)
_LOWEST_TRACKABLE_US = 1
_HIGHEST_TRACKABLE_US = 600_000_000
_SIGNIFICANT_DIGITS = 3


class LatencyHistogram:
    """Latency distribution in milliseconds backed by an HDR histogram.

    Values outside the trackable range are clamped to its bounds, so a
    very slow request still counts instead of being rejected.

    Attributes:
        lowest_us: Lowest trackable value in microseconds.
        highest_us: Highest trackable value in microseconds.
    """

    def __init__(
        self,
        lowest_us: int = _LOWEST_TRACKABLE_US,
        highest_us: int = _HIGHEST_TRACKABLE_US,
        significant_digits: int = _SIGNIFICANT_DIGITS,
    ) -> None:
        self.lowest_us = lowest_us
        self.highest_us = highest_us
        self._histogram: HdrHistogram = HdrHistogram(  # type: ignore[no-any-unimported]
            lowest_us, highest_us, significant_digits
        )

    def record_ms(self, latency_ms: float) -> bool:
        """Record a latency in milliseconds.

        Returns:
            True if the histogram accepted the value.
        """
        value_us = int(round(latency_ms * 1000))
        value_us = max(self.lowest_us, min(value_us, self.highest_us))
        return bool(self._histogram.record_value(value_us))

    def value_at_quantile(self, quantile: float) -> float:
        """Return the latency in milliseconds at ``quantile`` (0.0 to 1.0).

        Returns 0.0 when nothing has been recorded.
        """
        if not 0.0 <= quantile <= 1.0:
            msg = f"quantile must be within [0.0, 1.0], got: {quantile}"
            raise ValueError(msg)
        if self._histogram.total_count == 0:
            return 0.0
        value_us = self._histogram.get_value_at_percentile(quantile * 100.0)
        return float(value_us) / 1000.0
