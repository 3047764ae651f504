"""Structured logging configuration for dynaflags CLIs.

Provides JSON or text logging. CLI log level names (off, fatal, error, warn,
info, verbose, debug, trace, all) map onto standard library levels.
"""

from __future__ import annotations

import logging
from typing import Optional

from pythonjsonlogger import jsonlogger

VERBOSE = 15
TRACE = 5

logging.addLevelName(VERBOSE, "VERBOSE")
logging.addLevelName(TRACE, "TRACE")

LOG_LEVELS = {
    "off": logging.CRITICAL + 10,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "verbose": VERBOSE,
    "debug": logging.DEBUG,
    "trace": TRACE,
    "all": logging.NOTSET,
}


def _build_json_formatter() -> logging.Formatter:
    fields = [
        "asctime",
        "levelname",
        "name",
        "message",
        "module",
        "funcName",
        "lineno",
    ]
    fmt = " ".join([f"{f}=%({f})s" for f in fields])
    return jsonlogger.JsonFormatter(fmt=fmt)


def level_number(level: str) -> Optional[int]:
    """Translate a CLI or standard library level name, None when unknown."""
    name = level.lower()
    if name in LOG_LEVELS:
        return LOG_LEVELS[name]
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else None


def set_log_level(level: str) -> bool:
    """Change the root log level. Returns False for unknown level names."""
    number = level_number(level)
    if number is None:
        return False
    logging.getLogger().setLevel(number)
    return True


def configure_logging(level: str = "info", fmt: str = "text") -> None:
    log_level = level_number(level)
    if log_level is None:
        log_level = logging.INFO

    root = logging.getLogger()
    root.setLevel(log_level)

    # Remove default handlers to avoid duplicate logs
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler()
    if fmt.lower() == "json":
        handler.setFormatter(_build_json_formatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S%z",
            )
        )
    root.addHandler(handler)
