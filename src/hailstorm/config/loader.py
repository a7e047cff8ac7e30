"""YAML scenario file loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from hailstorm._internal.config import HailstormConfig, load_config
from hailstorm._internal.errors import ConfigError
from hailstorm.config.settings import BenchmarkSettings, Header, parse_headers

_KNOWN_KEYS = frozenset(
    {
        "target",
        "clients",
        "requests",
        "duration",
        "headers",
        "body",
        "keep_alive",
        "request_timeout",
        "verbose",
    }
)


def _parse_keep_alive(raw: Any) -> float | None:
    """Accept plain seconds or a ``{secs, nanos}`` mapping."""
    if raw is None:
        return None
    if isinstance(raw, dict):
        try:
            return float(raw.get("secs", 0)) + float(raw.get("nanos", 0)) / 1e9
        except (TypeError, ValueError):
            msg = f"keep_alive must be a number of seconds, got: {raw!r}"
            raise ConfigError(msg) from None
    try:
        return float(raw)
    except (TypeError, ValueError):
        msg = f"keep_alive must be a number of seconds, got: {raw!r}"
        raise ConfigError(msg) from None


def _parse_header_entries(raw: Any) -> tuple[Header, ...]:
    """Accept ``{key, value}`` mappings and ``key:value`` strings."""
    if raw is None:
        return ()
    if not isinstance(raw, list):
        msg = f"headers must be a list, got: {type(raw).__name__}"
        raise ConfigError(msg)

    headers: list[Header] = []
    for entry in raw:
        if isinstance(entry, dict) and "key" in entry and "value" in entry:
            headers.append(Header(key=str(entry["key"]), value=str(entry["value"])))
        elif isinstance(entry, str):
            headers.extend(parse_headers([entry]))
        else:
            msg = f"Invalid header entry: {entry!r}"
            raise ConfigError(msg)
    return tuple(headers)


def load_settings_file(
    file_path: str | Path,
    config: HailstormConfig | None = None,
) -> BenchmarkSettings:
    """Load benchmark settings from a YAML scenario file.

    Example file::

        target: POST https://localhost:3000/items
        clients: 10
        requests: 1000
        headers:
          - key: Content-Type
            value: application/json
        body: '{"name": "item"}'

    Args:
        file_path: Path to the YAML file.
        config: Environment defaults for keys the file leaves out.

    Returns:
        Validated BenchmarkSettings.

    Raises:
        ConfigError: If the file cannot be read, is not a YAML mapping,
            has unknown keys, or holds invalid values.
    """
    path = Path(file_path)

    try:
        content = path.read_text()
    except OSError as exc:
        msg = f"Failed to read file from {path}"
        raise ConfigError(msg) from exc

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML format in {path}: {exc}"
        raise ConfigError(msg) from exc

    if not isinstance(data, dict):
        msg = f"Invalid YAML format in {path}: expected a mapping at the top level"
        raise ConfigError(msg)

    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        msg = f"Unknown keys in {path}: {', '.join(map(str, unknown))}"
        raise ConfigError(msg)

    if "target" not in data:
        msg = f"Missing required key 'target' in {path}"
        raise ConfigError(msg)

    env = config if config is not None else load_config()
    keep_alive = _parse_keep_alive(data.get("keep_alive"))
    body = data.get("body")

    try:
        return BenchmarkSettings(
            target=str(data["target"]),
            clients=int(data.get("clients", 1)),
            requests=int(data.get("requests", 1)),
            duration=float(data["duration"]) if data.get("duration") is not None else None,
            headers=_parse_header_entries(data.get("headers")),
            body=str(body) if body is not None else None,
            keep_alive=keep_alive if keep_alive is not None else env.keep_alive,
            request_timeout=float(data.get("request_timeout", env.request_timeout)),
            verbose=bool(data.get("verbose", False)),
        )
    except (TypeError, ValueError) as exc:
        msg = f"Invalid value in {path}: {exc}"
        raise ConfigError(msg) from exc
