"""Benchmark settings and the parsing rules for targets and headers."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from hailstorm._internal.config import HailstormConfig, load_config
from hailstorm._internal.errors import ConfigError
from hailstorm._internal.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from hailstorm._internal.types import Headers

logger = get_logger("config.settings")

_WHITESPACE = re.compile(r"\s+")


class Method(str, enum.Enum):
    """HTTP methods accepted as a target prefix."""

    GET = "GET"
    POST = "POST"
    HEAD = "HEAD"
    PATCH = "PATCH"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def from_token(cls, token: str) -> Method | None:
        """Return the method named by ``token`` (any case), or None."""
        try:
            return cls(token.upper())
        except ValueError:
            return None


_HEADER_KEY_FORBIDDEN = re.compile(r"[\x00-\x1f\x7f]")
# Horizontal tab is legal inside a header value.
_HEADER_VALUE_FORBIDDEN = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")


@dataclass(frozen=True)
class Header:
    """A single request header.

    Raises:
        ConfigError: If the key or value holds a control character (CR, LF
            and the like), which no HTTP client can put on the wire.
    """

    key: str
    value: str

    def __post_init__(self) -> None:
        if _HEADER_KEY_FORBIDDEN.search(self.key):
            msg = f"Header key {self.key!r} contains a control character"
            raise ConfigError(msg)
        if _HEADER_VALUE_FORBIDDEN.search(self.value):
            msg = f"Header {self.key!r} value contains a control character"
            raise ConfigError(msg)


def parse_target(target: str) -> tuple[Method, str]:
    """Split a ``[METHOD ]URL`` target into its method and URL.

    A lone token is the URL and the method is GET. With more than one token
    the first token is consumed either way: it selects the method when it
    names one, otherwise the method falls back to GET. The URL is the rest
    of the string.

    Args:
        target: Target string, e.g. ``"POST https://localhost:3000/items"``.

    Returns:
        Tuple of (method, url).

    Raises:
        ConfigError: If the target is empty.
    """
    parts = _WHITESPACE.split(target.strip(), maxsplit=1)
    if not parts[0]:
        msg = "Target must not be empty"
        raise ConfigError(msg)

    if len(parts) == 1:
        return Method.GET, parts[0]

    method = Method.from_token(parts[0])
    if method is None:
        logger.debug("Unknown method %r in target, using GET", parts[0])
        method = Method.GET
    return method, parts[1].strip()


def parse_headers(raw_headers: Iterable[str] | None) -> tuple[Header, ...]:
    """Parse ``key:value`` strings into headers.

    Entries that do not split on ``:`` into exactly two parts are dropped.
    Keys and values are trimmed.

    Raises:
        ConfigError: If a key or value holds a control character.
    """
    if raw_headers is None:
        return ()

    headers: list[Header] = []
    for raw in raw_headers:
        split = raw.split(":")
        if len(split) != 2:
            logger.debug("Dropping malformed header %r", raw)
            continue
        headers.append(Header(key=split[0].strip(), value=split[1].strip()))
    return tuple(headers)


def read_body_file(path: str | Path) -> str:
    """Read a request body file as text.

    Raises:
        ConfigError: If the file cannot be read.
    """
    try:
        return Path(path).read_text()
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Failed to read file from {path}"
        raise ConfigError(msg) from exc


@dataclass(frozen=True)
class BenchmarkSettings:
    """Immutable description of one benchmark run.

    Shared read-only by every worker.

    Attributes:
        target: ``[METHOD ]URL`` string.
        clients: Number of concurrent virtual clients.
        requests: Total request volume in counted mode.
        duration: Run length in seconds. When set, the run is timed and
            ``requests`` does not bound the loop.
        headers: Ordered request headers.
        body: Raw request body sent with every request.
        keep_alive: Keep-alive interval in seconds.
        request_timeout: Per-request timeout in seconds.
        verbose: Print every outcome instead of a progress bar.
    """

    target: str
    clients: int = 1
    requests: int = 1
    duration: float | None = None
    headers: tuple[Header, ...] = field(default_factory=tuple)
    body: str | None = None
    keep_alive: float | None = None
    request_timeout: float = 30.0
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.clients < 1:
            msg = f"clients must be >= 1, got: {self.clients}"
            raise ConfigError(msg)
        if self.requests < 1:
            msg = f"requests must be >= 1, got: {self.requests}"
            raise ConfigError(msg)
        if self.duration is not None and self.duration < 0:
            msg = f"duration must be >= 0, got: {self.duration}"
            raise ConfigError(msg)
        if self.keep_alive is not None and self.keep_alive <= 0:
            msg = f"keep_alive must be positive, got: {self.keep_alive}"
            raise ConfigError(msg)
        if self.request_timeout <= 0:
            msg = f"request_timeout must be positive, got: {self.request_timeout}"
            raise ConfigError(msg)
        # Fail fast on an empty target rather than inside every worker.
        parse_target(self.target)

    @property
    def timed(self) -> bool:
        """Return True when the run is bounded by wall-clock duration."""
        return self.duration is not None

    @property
    def requests_per_client(self) -> int:
        """Iterations each worker runs in counted mode.

        The remainder of ``requests / clients`` is never executed.
        """
        return self.requests // self.clients

    @property
    def expected_requests(self) -> int | None:
        """Outcomes a counted run produces, or None for a timed run."""
        if self.timed:
            return None
        return self.clients * self.requests_per_client

    @property
    def method(self) -> Method:
        return parse_target(self.target)[0]

    @property
    def url(self) -> str:
        return parse_target(self.target)[1]

    @property
    def header_map(self) -> Headers:
        """Headers as a mapping; later duplicates overwrite earlier ones."""
        return {header.key: header.value for header in self.headers}

    def describe(self) -> str:
        """Return a one-line human-readable summary of the run."""
        if self.duration is None:
            return (
                f"{self.target} with {self.clients} concurrent clients "
                f"and {self.requests} total iterations"
            )
        return (
            f"{self.target} with {self.clients} concurrent clients "
            f"for {self.duration:g} seconds"
        )


def settings_from_args(
    target: str,
    *,
    clients: int = 1,
    iterations: int | None = None,
    duration: float | None = None,
    headers: Iterable[str] | None = None,
    request_body: str | Path | None = None,
    keep_alive: float | None = None,
    verbose: bool = False,
    config: HailstormConfig | None = None,
) -> BenchmarkSettings:
    """Build settings from command-line style arguments.

    Args:
        target: ``[METHOD ]URL`` string.
        clients: Number of concurrent virtual clients.
        iterations: Total request count. Defaults to 1 when no duration is set.
        duration: Run length in seconds; mutually exclusive with iterations.
        headers: Raw ``key:value`` header strings.
        request_body: Path to a file whose text is sent as the body.
        keep_alive: Keep-alive interval in seconds. Falls back to the
            environment default.
        verbose: Print every outcome.
        config: Environment defaults. Loaded with ``load_config`` when omitted.

    Returns:
        Validated BenchmarkSettings.

    Raises:
        ConfigError: On conflicting or invalid arguments, or an unreadable
            body file.
    """
    if iterations is not None and duration is not None:
        msg = "iterations and duration are mutually exclusive"
        raise ConfigError(msg)

    env = config if config is not None else load_config()
    body = read_body_file(request_body) if request_body is not None else None

    return BenchmarkSettings(
        target=target,
        clients=clients,
        requests=iterations if iterations is not None else 1,
        duration=duration,
        headers=parse_headers(headers),
        body=body,
        keep_alive=keep_alive if keep_alive is not None else env.keep_alive,
        request_timeout=env.request_timeout,
        verbose=verbose,
    )
