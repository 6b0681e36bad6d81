"""
Log handler setup for CLI commands.

``configure_logging()`` runs once per command, right after the config loads.
Library modules only ever call ``logging.getLogger(__name__)``.

Log lines go to stderr so that ``search``, ``forecast`` and ``recommend``
output on stdout stays clean for piping, and are mirrored to
``[logging] log_file`` when one is set.  With ``json_format = true`` each line
is one JSON object; ``extra=`` fields such as the cache name and origin on a
stale-fallback warning become top-level keys::

    {"ts": "2026-10-17T12:00:00Z", "level": "WARNING",
     "logger": "activity_planner.cache.freshness_cache",
     "msg": "weather upstream unavailable ...", "cache": "weather",
     "origin": "stale_fallback"}
"""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from activity_planner.config import LoggingConfig

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# HTTP client internals; request lines at INFO would drown the planner's own logs.
QUIET_LOGGERS = ("httpx", "httpcore")

_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class _JsonFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, msg, exc, and extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                TIMESTAMP_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        payload.update(
            (key, val) for key, val in record.__dict__.items()
            if key not in _RESERVED and not key.startswith("_")
        )
        return json.dumps(payload, default=str)


def _text_formatter() -> logging.Formatter:
    formatter = logging.Formatter(TEXT_FORMAT, datefmt=TIMESTAMP_FORMAT)
    formatter.converter = time.gmtime
    return formatter


def configure_logging(config: "LoggingConfig") -> None:
    """Install stderr (and optional file) handlers on the root logger.

    Replaces any handlers left by a previous call, so repeated CLI invocations
    in one process do not duplicate lines.
    """
    level = logging.getLevelName(config.level)
    formatter = _JsonFormatter() if config.json_format else _text_formatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
