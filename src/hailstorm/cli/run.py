"""The ``hailstorm run`` command: benchmark an HTTP endpoint from the terminal."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console

from hailstorm._internal.errors import HailstormError
from hailstorm.cli.display import (
    format_outcome,
    make_banner,
    make_progress,
    make_status_table,
    make_summary_table,
)
from hailstorm.config.loader import load_settings_file
from hailstorm.config.settings import settings_from_args
from hailstorm.engine.runner import run_benchmark

if TYPE_CHECKING:
    from hailstorm.config.settings import BenchmarkSettings
    from hailstorm.metrics.models import BenchmarkSummary, RequestOutcome

console = Console()
err_console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Settings construction
# ---------------------------------------------------------------------------


def _build_settings(
    target: str | None,
    scenario: Path | None,
    *,
    clients: int,
    iterations: int | None,
    duration: float | None,
    headers: list[str] | None,
    request_body: Path | None,
    keep_alive: float | None,
    verbose: bool,
) -> BenchmarkSettings:
    """Build settings from either a scenario file or the command-line flags.

    Raises:
        typer.BadParameter: If a scenario file is combined with target
            options, or neither is given.
        ConfigError: If the resulting settings are invalid.
    """
    if scenario is not None:
        conflicting = {
            "TARGET": target is not None,
            "--clients": clients != 1,
            "--iterations": iterations is not None,
            "--duration": duration is not None,
            "--header": bool(headers),
            "--request-body": request_body is not None,
        }
        used = [name for name, present in conflicting.items() if present]
        if used:
            msg = f"--scenario cannot be combined with: {', '.join(used)}"
            raise typer.BadParameter(msg)
        settings = load_settings_file(scenario)
        if verbose and not settings.verbose:
            settings = replace(settings, verbose=True)
        return settings

    if target is None:
        msg = "A TARGET is required unless --scenario is given"
        raise typer.BadParameter(msg)

    if iterations is not None and duration is not None:
        msg = "--iterations and --duration are mutually exclusive"
        raise typer.BadParameter(msg)

    return settings_from_args(
        target,
        clients=clients,
        iterations=iterations,
        duration=duration,
        headers=headers,
        request_body=request_body,
        keep_alive=keep_alive,
        verbose=verbose,
    )


# ---------------------------------------------------------------------------
# Execution with live output
# ---------------------------------------------------------------------------


def _execute(settings: BenchmarkSettings) -> BenchmarkSummary:
    """Run the benchmark, streaming outcomes to the terminal."""
    if settings.verbose:

        def _print_outcome(outcome: RequestOutcome) -> None:
            console.print(format_outcome(outcome))

        return run_benchmark(settings, on_outcome=_print_outcome)

    total = settings.expected_requests
    with make_progress(err_console, settings) as progress:
        task_id = progress.add_task("requests", total=total)

        def _advance(_outcome: RequestOutcome) -> None:
            progress.advance(task_id)

        return run_benchmark(settings, on_outcome=_advance)


def _print_report(summary: BenchmarkSummary) -> None:
    console.print()
    console.print(make_summary_table(summary))
    if summary.status_counts:
        console.print(make_status_table(summary))


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


def run_cmd(
    target: str | None = typer.Argument(
        None,
        help="Target as '[METHOD ]URL', e.g. 'POST https://localhost:3000/items'.",
        show_default=False,
    ),
    clients: int = typer.Option(
        1,
        "--clients",
        "-c",
        help="Number of concurrent virtual clients.",
        min=1,
    ),
    iterations: int | None = typer.Option(
        None,
        "--iterations",
        "-i",
        help="Total number of requests (default: 1). Split evenly across clients.",
        min=1,
    ),
    duration: float | None = typer.Option(
        None,
        "--duration",
        "-d",
        help="Run for this many seconds instead of a fixed number of requests.",
        min=0.0,
    ),
    headers: list[str] | None = typer.Option(
        None,
        "--header",
        "-H",
        help="Request header as 'key:value'. Repeatable.",
    ),
    request_body: Path | None = typer.Option(
        None,
        "--request-body",
        "-r",
        help="File whose contents are sent as the request body.",
    ),
    keep_alive: float | None = typer.Option(
        None,
        "--keep-alive",
        help="Keep-alive interval in seconds.",
    ),
    scenario: Path | None = typer.Option(
        None,
        "--scenario",
        "-s",
        help="YAML scenario file holding all of the settings above.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Print every request outcome instead of a progress bar.",
    ),
) -> None:
    """Benchmark an HTTP endpoint and print latency statistics."""
    try:
        settings = _build_settings(
            target,
            scenario,
            clients=clients,
            iterations=iterations,
            duration=duration,
            headers=headers,
            request_body=request_body,
            keep_alive=keep_alive,
            verbose=verbose,
        )
    except HailstormError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    err_console.print(make_banner(settings))

    try:
        summary = _execute(settings)
    except HailstormError as exc:
        err_console.print(f"[red]Benchmark failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _print_report(summary)
