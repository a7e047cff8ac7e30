"""Typer application behind the ``hailstorm`` command.

Global options (version, engine logging) live on the callback so they apply
to every command; ``hailstorm run`` does the actual benchmarking.
"""

from __future__ import annotations

import typer

from hailstorm import __version__
from hailstorm._internal.errors import ConfigError
from hailstorm._internal.logging import parse_level, setup_logging
from hailstorm.cli.run import run_cmd

app = typer.Typer(
    name="hailstorm",
    help="Fire concurrent HTTP requests at an endpoint and report latency.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("run", help="Benchmark an HTTP endpoint.")(run_cmd)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"hailstorm {__version__}")
        raise typer.Exit


def _log_level(value: str) -> int:
    try:
        return parse_level(value)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_show_version,
        is_eager=True,
    ),
    log_level: str = typer.Option(
        "warning",
        "--log-level",
        help="Engine log level: debug, info, warning or error.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit engine logs as one JSON object per line on stderr.",
    ),
) -> None:
    """hailstorm: concurrent HTTP load testing from the command line."""
    setup_logging(level=_log_level(log_level), json_format=json_logs)
