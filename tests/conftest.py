"""Shared fixtures: test markers and a local HTTP target to benchmark."""

from __future__ import annotations

import asyncio
import socket
import threading
from typing import TYPE_CHECKING

import pytest
from aiohttp import web

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests unit, integration or e2e after the directory they live in."""
    for item in items:
        for marker in ("unit", "integration", "e2e"):
            if f"/{marker}/" in str(item.fspath):
                item.add_marker(getattr(pytest.mark, marker))
                break


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def closed_port_url() -> str:
    """URL of a localhost port nothing listens on."""
    return f"http://127.0.0.1:{_free_port()}/"


# =============================================================================
# Target application
#
#   *    /echo{tail}    200, records method/headers/body in app["hits"]
#   *    /status/{code} empty response with that status
#   GET  /slow/{ms}     200 after sleeping ms milliseconds
#   GET  /health        200
# =============================================================================


async def _echo(request: web.Request) -> web.Response:
    body = await request.read()
    request.app["hits"].append(
        {
            "method": request.method,
            "headers": dict(request.headers),
            "body": body.decode("utf-8", errors="replace"),
        }
    )
    return web.json_response({"method": request.method, "path": request.path})


async def _status(request: web.Request) -> web.Response:
    return web.Response(status=int(request.match_info["code"]))


async def _slow(request: web.Request) -> web.Response:
    await asyncio.sleep(int(request.match_info["ms"]) / 1000)
    return web.Response(text="slow")


async def _health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


def _target_app() -> web.Application:
    app = web.Application()
    app["hits"] = []
    app.router.add_route("*", "/echo{tail:.*}", _echo)
    app.router.add_route("*", r"/status/{code:\d+}", _status)
    app.router.add_get(r"/slow/{ms:\d+}", _slow)
    app.router.add_get("/health", _health)
    return app


async def _serve(app: web.Application) -> tuple[web.AppRunner, str]:
    """Start ``app`` on a free localhost port; returns the runner and base URL."""
    port = _free_port()
    runner = web.AppRunner(app)
    await runner.setup()
    await web.TCPSite(runner, "127.0.0.1", port).start()
    return runner, f"http://127.0.0.1:{port}"


@pytest.fixture
async def echo_app() -> AsyncIterator[tuple[str, web.Application]]:
    """Target server on the test's event loop, yielding ``(base_url, app)``."""
    app = _target_app()
    runner, base_url = await _serve(app)
    yield base_url, app
    await runner.cleanup()


@pytest.fixture
def echo_server(echo_app: tuple[str, web.Application]) -> str:
    """Base URL of the target server, e.g. ``http://127.0.0.1:54321``."""
    return echo_app[0]


class _ThreadedServer:
    """Target server on its own loop and thread, for tests that block.

    ``run_benchmark`` and the CLI start their own event loop, so the server
    they talk to cannot share the test's loop.
    """

    def __init__(self) -> None:
        self.base_url = ""
        self._loop = asyncio.new_event_loop()
        self._ready = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        runner, self.base_url = self._loop.run_until_complete(_serve(_target_app()))
        self._ready.set()
        self._loop.run_forever()
        self._loop.run_until_complete(runner.cleanup())
        self._loop.close()

    def start(self) -> str:
        self._thread.start()
        if not self._ready.wait(timeout=5.0):
            msg = "target server did not start"
            raise RuntimeError(msg)
        return self.base_url

    def stop(self) -> None:
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5.0)


@pytest.fixture
def sync_echo_server() -> Iterator[str]:
    """Base URL of a target server running in a background thread."""
    server = _ThreadedServer()
    yield server.start()
    server.stop()
