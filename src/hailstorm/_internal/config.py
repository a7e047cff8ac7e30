"""Environment-driven defaults for hailstorm."""

from __future__ import annotations

import os
from dataclasses import dataclass

from hailstorm._internal.errors import ConfigError


@dataclass(frozen=True)
class HailstormConfig:
    """Global hailstorm configuration.

    Attributes:
        request_timeout: Per-request timeout in seconds.
        keep_alive: Default keep-alive interval in seconds, or None to use
            the HTTP client's own default.
    """

    request_timeout: float = 30.0
    keep_alive: float | None = None


def _positive_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        msg = f"{name} must be a number, got: {raw!r}"
        raise ConfigError(msg) from None

    if value <= 0:
        msg = f"{name} must be positive, got: {value}"
        raise ConfigError(msg)
    return value


def load_config() -> HailstormConfig:
    """Load configuration from environment variables with defaults.

    Environment variables:
        HAILSTORM_TIMEOUT: Request timeout in seconds (default: 30.0).
        HAILSTORM_KEEP_ALIVE: Keep-alive interval in seconds (default: unset).

    Returns:
        Populated HailstormConfig instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    timeout = _positive_float(
        "HAILSTORM_TIMEOUT", os.environ.get("HAILSTORM_TIMEOUT", "30.0")
    )

    keep_alive: float | None = None
    keep_alive_str = os.environ.get("HAILSTORM_KEEP_ALIVE")
    if keep_alive_str:
        keep_alive = _positive_float("HAILSTORM_KEEP_ALIVE", keep_alive_str)

    return HailstormConfig(request_timeout=timeout, keep_alive=keep_alive)
