"""Per-worker HTTP client that turns one request into one outcome."""

from __future__ import annotations

import contextlib
import time
from http import HTTPStatus
from typing import TYPE_CHECKING

import aiohttp

from hailstorm._internal.errors import ClientBuildError
from hailstorm._internal.logging import get_logger
from hailstorm.metrics.models import CONNECTION_FAILED, RequestOutcome

if TYPE_CHECKING:
    from hailstorm._internal.types import Headers
    from hailstorm.config.settings import BenchmarkSettings

logger = get_logger("engine.http_client")


def _elapsed_ms(start: float) -> float:
    return (time.monotonic() - start) * 1000


def _status_line(resp: aiohttp.ClientResponse) -> str:
    """Format ``200 OK`` style status text."""
    if resp.reason:
        return f"{resp.status} {resp.reason}"
    return str(resp.status)


def _failure_status(exc: BaseException) -> str:
    """Status text for a failed request.

    Failures that carry an HTTP status (redirect loops, for instance) report
    it as ``"<code> <reason>"`` like a response would, so both land in the
    same row of the status breakdown. Everything else is a connection
    failure.
    """
    if not isinstance(exc, aiohttp.ClientResponseError) or not exc.status:
        return CONNECTION_FAILED
    try:
        reason = HTTPStatus(exc.status).phrase
    except ValueError:
        reason = exc.message
    if reason:
        return f"{exc.status} {reason}"
    return str(exc.status)


class HttpClient:
    """HTTP client owned by exactly one worker.

    Wraps an ``aiohttp.ClientSession`` so that the worker's sequential
    requests reuse connections. Certificate verification is disabled so
    self-signed test endpoints can be benchmarked.

    Attributes:
        client_index: Index of the worker that owns this client.
        keep_alive: Idle keep-alive interval in seconds, or None for the
            aiohttp default.
        timeout: Total per-request timeout in seconds.
    """

    def __init__(
        self,
        client_index: int = 0,
        *,
        keep_alive: float | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.client_index = client_index
        self.keep_alive = keep_alive
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    @classmethod
    def from_settings(cls, settings: BenchmarkSettings, client_index: int) -> HttpClient:
        """Create an unopened client configured from benchmark settings."""
        return cls(
            client_index,
            keep_alive=settings.keep_alive,
            timeout=settings.request_timeout,
        )

    @property
    def is_open(self) -> bool:
        return self._session is not None and not self._session.closed

    async def open(self) -> HttpClient:
        """Build the underlying session. Calling it again is a no-op.

        Raises:
            ClientBuildError: If the connector or session cannot be created.
        """
        if self._session is not None:
            return self

        connector_kwargs: dict[str, object] = {"ssl": False}
        if self.keep_alive is not None:
            connector_kwargs["keepalive_timeout"] = self.keep_alive

        try:
            connector = aiohttp.TCPConnector(**connector_kwargs)  # type: ignore[arg-type]
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        except Exception as exc:
            msg = f"Can not create http client {self.client_index}: {exc}"
            raise ClientBuildError(msg) from exc

        return self

    async def close(self) -> None:
        """Close the underlying session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> HttpClient:
        return await self.open()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.close()

    async def execute(
        self,
        method: str,
        url: str,
        *,
        execution: int,
        headers: Headers | None = None,
        body: str | None = None,
    ) -> RequestOutcome:
        """Send one request and record its outcome.

        The duration covers submission until the status and headers are
        available. The body is then drained, uninspected, so the connection
        can be reused. Network failures, timeouts and TLS errors are
        returned as outcomes rather than raised.

        Args:
            method: HTTP method.
            url: Absolute request URL.
            execution: Index of this request within the worker.
            headers: Request headers.
            body: Raw request body, sent for every method when given.

        Returns:
            The RequestOutcome of this request.

        Raises:
            RuntimeError: If the client has not been opened.
        """
        if self._session is None or not self.is_open:
            msg = "HttpClient must be opened before executing requests"
            raise RuntimeError(msg)

        status: str | None = None
        duration_ms = 0.0
        start = time.monotonic()

        try:
            async with self._session.request(
                method,
                url,
                headers=headers,
                data=body,
            ) as resp:
                duration_ms = _elapsed_ms(start)
                status = _status_line(resp)
                with contextlib.suppress(aiohttp.ClientError, TimeoutError):
                    await resp.read()
        except (aiohttp.ClientError, TimeoutError) as exc:
            if status is None:
                duration_ms = _elapsed_ms(start)
                status = _failure_status(exc)
            logger.debug(
                "Request %d of client %d failed: %s: %s",
                execution,
                self.client_index,
                type(exc).__name__,
                exc,
                extra={"client": self.client_index, "execution": execution},
            )

        return RequestOutcome(
            status=status if status is not None else CONNECTION_FAILED,
            duration_ms=duration_ms,
            execution=execution,
            client=self.client_index,
        )
