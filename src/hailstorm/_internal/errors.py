"""Custom exception hierarchy for hailstorm."""

from __future__ import annotations


class HailstormError(Exception):
    """Base exception for all hailstorm errors.

    Every error raised deliberately by hailstorm inherits from this class,
    so the CLI can catch any of them with a single except clause.
    """


class ConfigError(HailstormError):
    """Raised when configuration is invalid or missing.

    Examples:
        - Both an iteration count and a duration were requested.
        - A request body file or scenario file cannot be read.
        - An environment variable has an invalid value.
    """


class ClientBuildError(HailstormError):
    """Raised when an HTTP client cannot be constructed.

    This always happens before any request is issued and aborts the run.
    """


class EngineError(HailstormError):
    """Raised when the benchmark engine fails unexpectedly."""
