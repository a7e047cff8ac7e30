"""Benchmark settings: construction, parsing and file loading."""

from __future__ import annotations

from hailstorm.config.loader import load_settings_file
from hailstorm.config.settings import (
    BenchmarkSettings,
    Header,
    Method,
    parse_headers,
    parse_target,
    settings_from_args,
)

__all__ = [
    "BenchmarkSettings",
    "Header",
    "Method",
    "load_settings_file",
    "parse_headers",
    "parse_target",
    "settings_from_args",
]
