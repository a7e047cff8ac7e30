"""End-to-end tests for the hailstorm CLI."""

from __future__ import annotations

from pathlib import Path

import pytest
from rich.console import Console
from typer.testing import CliRunner

from hailstorm import __version__
from hailstorm.cli import run as run_module
from hailstorm.cli.app import app

runner = CliRunner()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _wide_consoles(monkeypatch: pytest.MonkeyPatch) -> None:
    """Render without line wrapping so long report lines can be matched."""
    monkeypatch.setattr(run_module, "console", Console(width=200))
    monkeypatch.setattr(run_module, "err_console", Console(stderr=True, width=200))


@pytest.fixture
def cli_scenario(tmp_path: Path, sync_echo_server: str) -> Path:
    """Scenario file pointing at the sync echo server."""
    path = tmp_path / "scenario.yaml"
    path.write_text(
        f"""\
target: POST {sync_echo_server}/echo/items
clients: 2
requests: 6
headers:
  - key: Content-Type
    value: application/json
  - "X-Run:e2e"
body: '{{"name": "item"}}'
keep_alive:
  secs: 5
  nanos: 0
"""
    )
    return path


# ---------------------------------------------------------------------------
# Tests: version and help
# ---------------------------------------------------------------------------


def test_version_flag():
    """--version prints version and exits 0."""
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_version_short_flag():
    result = runner.invoke(app, ["-V"])
    assert result.exit_code == 0
    assert f"hailstorm {__version__}" in result.output


def test_help_output():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "hailstorm" in result.output.lower()


def test_run_help():
    """hailstorm run --help shows the run options."""
    result = runner.invoke(app, ["run", "--help"])
    assert result.exit_code == 0
    for option in ("--clients", "--iterations", "--duration", "--header", "--request-body"):
        assert option in result.output


# ---------------------------------------------------------------------------
# Tests: hailstorm run
# ---------------------------------------------------------------------------


@pytest.mark.timeout(30)
def test_run_counted(sync_echo_server: str):
    result = runner.invoke(app, ["run", f"{sync_echo_server}/health", "-c", "2", "-i", "6"])

    assert result.exit_code == 0, result.output
    assert "2 concurrent clients and 6 total iterations" in result.output
    assert "Benchmark Complete" in result.output
    assert "Concurrency level" in result.output
    assert "Total requests" in result.output
    assert "200 OK" in result.output


@pytest.mark.timeout(30)
def test_run_verbose_prints_each_outcome(sync_echo_server: str):
    result = runner.invoke(
        app,
        ["run", f"GET {sync_echo_server}/health", "-c", "2", "-i", "4", "--verbose"],
    )

    assert result.exit_code == 0, result.output
    for client in (0, 1):
        for execution in (0, 1):
            assert f"[Client {client} Iteration {execution}] 200 OK" in result.output


@pytest.mark.timeout(30)
@pytest.mark.slow
def test_run_timed(sync_echo_server: str):
    result = runner.invoke(app, ["run", f"{sync_echo_server}/health", "-c", "2", "-d", "1"])

    assert result.exit_code == 0, result.output
    assert "for 1 seconds" in result.output
    assert "Benchmark Complete" in result.output


@pytest.mark.timeout(30)
def test_run_with_headers_and_body(sync_echo_server: str, tmp_path: Path):
    body = tmp_path / "body.json"
    body.write_text('{"a": 1}')

    result = runner.invoke(
        app,
        [
            "run",
            f"POST {sync_echo_server}/echo/items",
            "-H",
            "Content-Type:application/json",
            "-H",
            "badheader",
            "-r",
            str(body),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Total requests" in result.output


@pytest.mark.timeout(30)
def test_run_unreachable_target_reports_failures(closed_port_url: str):
    result = runner.invoke(app, ["run", closed_port_url, "-i", "2"])

    assert result.exit_code == 0, result.output
    assert "connection failed" in result.output


@pytest.mark.timeout(30)
def test_run_scenario_file(cli_scenario: Path):
    result = runner.invoke(app, ["run", "--scenario", str(cli_scenario)])

    assert result.exit_code == 0, result.output
    assert "2 concurrent clients and 6 total iterations" in result.output
    assert "Benchmark Complete" in result.output


# ---------------------------------------------------------------------------
# Tests: invalid invocations
# ---------------------------------------------------------------------------


def test_missing_body_file_exits_1(tmp_path: Path):
    result = runner.invoke(
        app,
        ["run", "POST http://127.0.0.1:1/", "-r", str(tmp_path / "missing.json")],
    )
    assert result.exit_code == 1
    assert "Failed to read file" in result.output


def test_iterations_and_duration_exclusive():
    result = runner.invoke(app, ["run", "http://127.0.0.1:1/", "-i", "5", "-d", "5"])
    assert result.exit_code == 2
    assert "mutually exclusive" in result.output


def test_target_required():
    result = runner.invoke(app, ["run"])
    assert result.exit_code == 2


def test_zero_clients_rejected():
    result = runner.invoke(app, ["run", "http://127.0.0.1:1/", "-c", "0"])
    assert result.exit_code == 2


def test_scenario_conflicts_with_target(cli_scenario: Path):
    result = runner.invoke(app, ["run", "http://127.0.0.1:1/", "--scenario", str(cli_scenario)])
    assert result.exit_code == 2
    assert "TARGET" in result.output


def test_invalid_scenario_file_exits_1(tmp_path: Path):
    path = tmp_path / "bad.yaml"
    path.write_text("clients: 2\n")
    result = runner.invoke(app, ["run", "--scenario", str(path)])
    assert result.exit_code == 1
    assert "target" in result.output


def test_unknown_log_level():
    result = runner.invoke(app, ["--log-level", "loud", "run", "http://127.0.0.1:1/"])
    assert result.exit_code == 2


@pytest.mark.timeout(30)
def test_info_logging_reports_engine_progress(sync_echo_server: str):
    result = runner.invoke(
        app,
        ["--log-level", "info", "run", f"{sync_echo_server}/health", "-i", "1"],
    )
    assert result.exit_code == 0, result.output
    assert "Starting benchmark" in result.output


@pytest.mark.timeout(30)
def test_json_logs(sync_echo_server: str):
    result = runner.invoke(
        app,
        ["--log-level", "info", "--json-logs", "run", f"{sync_echo_server}/health"],
    )
    assert result.exit_code == 0, result.output
    assert '"logger": "hailstorm.engine.runner"' in result.output
