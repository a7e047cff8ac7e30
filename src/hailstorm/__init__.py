"""hailstorm: concurrent HTTP load testing with latency percentiles."""

from __future__ import annotations

from hailstorm.config.loader import load_settings_file
from hailstorm.config.settings import BenchmarkSettings, Header, settings_from_args
from hailstorm.engine.latch import CancellationLatch
from hailstorm.engine.runner import BenchmarkRunner, run_benchmark
from hailstorm.metrics.models import BenchmarkSummary, RequestOutcome

__version__ = "0.1.0"

__all__ = [
    "BenchmarkRunner",
    "BenchmarkSettings",
    "BenchmarkSummary",
    "CancellationLatch",
    "Header",
    "RequestOutcome",
    "load_settings_file",
    "run_benchmark",
    "settings_from_args",
]
