"""Rich rendering of the banner, live outcomes and the final report."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from rich.console import Console

    from hailstorm.config.settings import BenchmarkSettings
    from hailstorm.metrics.models import BenchmarkSummary, RequestOutcome


def make_banner(settings: BenchmarkSettings) -> Panel:
    """Build the panel printed before the run starts."""
    return Panel(
        settings.describe(),
        title="hailstorm",
        border_style="cyan",
    )


def format_outcome(outcome: RequestOutcome) -> Text:
    """Render one outcome as ``[Client c Iteration e] status Nms``."""
    text = Text()
    text.append(
        f"[Client {outcome.client} Iteration {outcome.execution}]",
        style="bold green",
    )
    text.append(" ")
    text.append(outcome.status, style="bold yellow")
    text.append(" ")
    text.append(f"{outcome.duration_ms:.0f}ms", style="cyan")
    return text


def make_progress(console: Console, settings: BenchmarkSettings) -> Progress:
    """Progress bar for non-verbose runs.

    Counted runs get a bar sized to the request volume; timed runs only show
    a spinner and the running count.
    """
    if settings.timed:
        return Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.completed:.0f} requests"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        )
    return Progress(
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def make_summary_table(summary: BenchmarkSummary) -> Table:
    """Build the final report table."""
    table = Table(
        title="Benchmark Complete",
        show_header=True,
        header_style="bold green",
    )
    table.add_column("Metric", style="bold yellow")
    table.add_column("Value", justify="right", style="magenta")

    table.add_row("Concurrency level", str(summary.clients))
    table.add_row("Time taken", f"{summary.elapsed_seconds:.0f} seconds")
    table.add_row("Total requests", str(summary.total_requests))
    table.add_row("Mean request time", f"{summary.latency_mean:.0f} ms")
    table.add_row("Max request time", f"{summary.latency_max:.0f} ms")
    table.add_row("Min request time", f"{summary.latency_min:.0f} ms")
    table.add_row("95'th percentile", f"{summary.latency_p95:.0f} ms")
    table.add_row("99.9'th percentile", f"{summary.latency_p999:.0f} ms")
    return table


def make_status_table(summary: BenchmarkSummary) -> Table:
    """Build the per-status breakdown, most frequent first."""
    table = Table(
        title="Status Breakdown",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Status")
    table.add_column("Count", justify="right")

    ordered = sorted(summary.status_counts.items(), key=lambda item: (-item[1], item[0]))
    for status, count in ordered:
        table.add_row(status, str(count))
    return table
