"""Result dataclasses shared by the engine, the aggregator and the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field

# Status recorded when a request fails without any HTTP status to report.
CONNECTION_FAILED = "connection failed"


@dataclass(frozen=True)
class RequestOutcome:
    """Recorded result of one completed or failed request.

    Attributes:
        status: HTTP status line (e.g. ``"200 OK"``), the status code of a
            failed request when it carries one, or ``"connection failed"``.
        duration_ms: Time until the response status and headers arrived,
            or until the request failed, in milliseconds.
        execution: 0-based index of the request within its worker.
        client: 0-based index of the worker that issued the request.
    """

    status: str
    duration_ms: float
    execution: int
    client: int

    def __str__(self) -> str:
        return (
            f"[Client {self.client} Iteration {self.execution}] "
            f"{self.status} {self.duration_ms:.0f}ms"
        )


@dataclass
class BenchmarkSummary:
    """Final statistics of a benchmark run.

    Attributes:
        clients: Concurrency level.
        elapsed_seconds: Wall-clock time since the report was created.
        total_requests: Number of outcomes received.
        latency_mean: Mean latency in milliseconds.
        latency_min: Minimum latency in milliseconds.
        latency_max: Maximum latency in milliseconds.
        latency_p95: 95th percentile latency in milliseconds.
        latency_p999: 99.9th percentile latency in milliseconds.
        status_counts: Outcome count per status text.
    """

    clients: int
    elapsed_seconds: float
    total_requests: int = 0
    latency_mean: float = 0.0
    latency_min: float = 0.0
    latency_max: float = 0.0
    latency_p95: float = 0.0
    latency_p999: float = 0.0
    status_counts: dict[str, int] = field(default_factory=dict)
