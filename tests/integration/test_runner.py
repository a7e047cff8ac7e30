"""Integration tests for BenchmarkRunner and run_benchmark."""

from __future__ import annotations

import asyncio
import os
import signal
import sys

import pytest

from hailstorm._internal.errors import ClientBuildError, EngineError
from hailstorm.config.settings import BenchmarkSettings
from hailstorm.engine.http_client import HttpClient
from hailstorm.engine.latch import CancellationLatch
from hailstorm.engine.runner import BenchmarkRunner, channel_capacity, run_benchmark
from hailstorm.metrics.models import CONNECTION_FAILED


class TestChannelCapacity:
    def test_counted_run_is_bounded(self):
        settings = BenchmarkSettings(target="https://x", clients=3, requests=10)
        assert channel_capacity(settings) == 11

    def test_timed_run_is_unbounded(self):
        settings = BenchmarkSettings(target="https://x", duration=5)
        assert channel_capacity(settings) == 0


@pytest.mark.timeout(30)
class TestBenchmarkRunner:
    async def test_counted_run(self, echo_server: str):
        settings = BenchmarkSettings(target=f"{echo_server}/health", clients=3, requests=10)
        seen = []

        summary = await BenchmarkRunner(
            settings, on_outcome=seen.append, handle_signals=False
        ).run()

        assert summary.clients == 3
        assert summary.total_requests == 9
        assert len(seen) == 9
        assert summary.status_counts == {"200 OK": 9}
        assert 0 < summary.latency_min <= summary.latency_mean <= summary.latency_max
        assert summary.latency_p95 <= summary.latency_p999 <= summary.latency_max * 1.01

    async def test_timed_run(self, echo_server: str):
        settings = BenchmarkSettings(target=f"{echo_server}/health", clients=2, duration=0.5)

        summary = await BenchmarkRunner(settings, handle_signals=False).run()

        assert summary.total_requests > 0
        assert summary.elapsed_seconds >= 0.5

    async def test_zero_duration_run_is_empty(self, echo_server: str):
        settings = BenchmarkSettings(target=f"{echo_server}/health", clients=2, duration=0)

        summary = await BenchmarkRunner(settings, handle_signals=False).run()

        assert summary.total_requests == 0
        assert summary.latency_mean == 0.0
        assert summary.latency_p999 == 0.0

    async def test_unreachable_target(self, closed_port_url: str):
        settings = BenchmarkSettings(target=closed_port_url, clients=2, requests=4)

        summary = await BenchmarkRunner(settings, handle_signals=False).run()

        assert summary.status_counts == {CONNECTION_FAILED: 4}

    async def test_latch_cancels_run(self, echo_server: str):
        settings = BenchmarkSettings(
            target=f"{echo_server}/slow/100", clients=2, duration=30
        )
        latch = CancellationLatch()
        asyncio.get_running_loop().call_later(0.3, latch.set)

        summary = await BenchmarkRunner(settings, latch=latch, handle_signals=False).run()

        assert summary.elapsed_seconds < 5.0
        assert 1 <= summary.total_requests <= 10

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals only")
    async def test_sigint_sets_latch(self, echo_server: str):
        settings = BenchmarkSettings(
            target=f"{echo_server}/slow/100", clients=1, duration=30
        )
        runner = BenchmarkRunner(settings)
        asyncio.get_running_loop().call_later(0.3, os.kill, os.getpid(), signal.SIGINT)

        summary = await runner.run()

        assert runner.latch.is_set
        assert summary.elapsed_seconds < 5.0
        assert runner._installed_signals == []

    async def test_client_build_failure_issues_nothing(
        self, echo_app, monkeypatch: pytest.MonkeyPatch
    ):
        base_url, app = echo_app

        async def _open(self: HttpClient) -> HttpClient:
            raise ClientBuildError("Can not create http client 0: boom")

        monkeypatch.setattr(HttpClient, "open", _open)
        settings = BenchmarkSettings(target=f"{base_url}/echo/", clients=2, requests=4)

        with pytest.raises(ClientBuildError):
            await BenchmarkRunner(settings, handle_signals=False).run()

        assert app["hits"] == []

    async def test_worker_crash_is_engine_error(
        self, echo_server: str, monkeypatch: pytest.MonkeyPatch
    ):
        async def _explode(self: HttpClient, *args: object, **kwargs: object):
            raise ValueError("boom")

        monkeypatch.setattr(HttpClient, "execute", _explode)
        settings = BenchmarkSettings(target=f"{echo_server}/health", clients=2, requests=4)

        with pytest.raises(EngineError, match="Benchmark failed"):
            await BenchmarkRunner(settings, handle_signals=False).run()


@pytest.mark.timeout(30)
class TestRunBenchmark:
    def test_sync_entry_point(self, sync_echo_server: str):
        settings = BenchmarkSettings(target=f"{sync_echo_server}/health", clients=2, requests=4)

        summary = run_benchmark(settings, handle_signals=False)

        assert summary.total_requests == 4
        assert summary.status_counts == {"200 OK": 4}
