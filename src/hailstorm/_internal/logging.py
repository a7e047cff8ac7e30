"""Logging setup for hailstorm.

All modules log under the ``hailstorm`` namespace. The CLI calls
``setup_logging`` once; library users can attach their own handlers
instead.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

from hailstorm._internal.errors import ConfigError

# Record attributes copied into JSON output when a caller passes them via ``extra``.
_CONTEXT_FIELDS = ("client", "execution", "status")

_LEVEL_NAMES = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class _JsonFormatter(logging.Formatter):
    """One-line JSON formatter.

    Emits keys timestamp, level, logger, message, plus any worker context
    (client index, execution index, status) attached to the record.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _CONTEXT_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def parse_level(name: str) -> int:
    """Translate a level name such as ``"debug"`` into a logging level.

    Raises:
        ConfigError: If the name is not a known level.
    """
    try:
        return _LEVEL_NAMES[name.strip().lower()]
    except KeyError:
        choices = ", ".join(_LEVEL_NAMES)
        msg = f"Unknown log level {name!r}. Choose from: {choices}"
        raise ConfigError(msg) from None


_HANDLER_NAME = "hailstorm"
_TEXT_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"


class _StderrHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Stream handler bound to whatever ``sys.stderr`` is at emit time.

    The CLI may run several times in one process with stderr swapped in
    between, so the stream is never cached.
    """

    def __init__(self) -> None:
        logging.Handler.__init__(self)

    @property
    def stream(self):  # type: ignore[override]
        return sys.stderr


def _make_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return _JsonFormatter()
    return logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(
    level: int = logging.WARNING,
    *,
    json_format: bool = False,
) -> logging.Logger:
    """Configure and return the root hailstorm logger.

    Every call reconfigures the same stderr handler, so level and format
    can change between runs without duplicating output. Handlers added by
    library users are left alone.

    Args:
        level: Logging level. Defaults to WARNING so benchmark output is not
            interleaved with engine chatter.
        json_format: Emit one JSON object per line instead of plain text.

    Returns:
        The configured ``hailstorm`` logger.
    """
    logger = logging.getLogger("hailstorm")
    logger.setLevel(level)
    logger.propagate = False

    handler = next((h for h in logger.handlers if h.get_name() == _HANDLER_NAME), None)
    if handler is None:
        handler = _StderrHandler()
        handler.set_name(_HANDLER_NAME)
        logger.addHandler(handler)

    handler.setLevel(level)
    handler.setFormatter(_make_formatter(json_format))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child logger, e.g. ``get_logger("engine.worker")``."""
    return logging.getLogger(f"hailstorm.{name}")
