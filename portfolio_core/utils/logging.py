# portfolio_core/utils/logging.py
"""
Process-wide logging for applications embedding the engine.

The engine's modules only ever call ``logging.getLogger(__name__)``;
nothing is configured on import. A host program calls ``setup_logging()``
once, and LOG_LEVEL / LOG_FORMAT from settings fill in whatever it does
not pass.

Valuation code attaches context through ``extra=`` (for example the FX
``pair`` behind a fallback warning). The text format drops it, the JSON
format nests it under ``"context"``.

What shows up where:
    DEBUG   - cache hits and bypasses, memo fetch counts, solver stages
    INFO    - aggregation and reconstruction runs
    WARNING - FX fallbacks, pro-rated snapshot prices, XIRR fallbacks
    ERROR   - provider calls that failed after every retry
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from portfolio_core.config import settings

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# yfinance pulls these in and they log every HTTP round trip at DEBUG
QUIET_LOGGERS = (
    "yfinance",
    "urllib3",
    "peewee",
    "asyncio",
)

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_FIELDS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line.

    {"time": "...", "level": "WARNING", "logger": "...", "message": "...",
     "context": {"pair": "USDJPY"}, "exception": "Traceback ..."}

    ``time`` is the record's creation time in UTC. Context values that
    JSON cannot represent (Decimal, date) are written as strings.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {
            key: value for key, value in record.__dict__.items()
            if key not in _RECORD_FIELDS
        }
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(
        level: str | None = None,
        log_format: str | None = None,
        quiet_third_party: bool = True,
        stream: TextIO | None = None,
) -> None:
    """
    Replace the root logger's handlers with a single stream handler.

    Args:
        level: Level name, case-insensitive. Defaults to settings.log_level
        log_format: "text" or "json". Defaults to settings.log_format
        quiet_third_party: Raise QUIET_LOGGERS to WARNING
        stream: Destination, stdout when omitted

    Raises:
        ValueError: Unknown level name or format
    """
    level_name = level or settings.log_level
    format_name = (log_format or settings.log_format).strip().lower()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(build_formatter(format_name))

    root = logging.getLogger()
    root.setLevel(parse_level(level_name))
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)

    if quiet_third_party:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging ready at {level_name.upper()} ({format_name})",
        extra={"log_format": format_name},
    )


def build_formatter(format_name: str) -> logging.Formatter:
    if format_name == "json":
        return JsonFormatter()
    if format_name == "text":
        return logging.Formatter(fmt=TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)
    raise ValueError(f"Unknown log format {format_name!r}, expected 'text' or 'json'")


def parse_level(name: str) -> int:
    """Map a level name such as ``" warn "`` to its logging constant."""
    key = name.strip().upper()
    try:
        return LEVELS[key]
    except KeyError:
        raise ValueError(
            f"Invalid log level {name!r}. Valid levels are: {', '.join(LEVELS)}"
        ) from None
