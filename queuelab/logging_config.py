"""Logging setup for queuelab.

The library is silent by default: the ``queuelab`` logger only carries a
NullHandler until one of these helpers attaches a real handler.

Example usage:
    import queuelab

    queuelab.enable_console_logging(level="DEBUG")   # per-request transitions
    queuelab.enable_file_logging("logs/queue.log")   # rotating file
    queuelab.enable_json_logging()                   # one JSON object per line
    queuelab.configure_from_env()

Environment variables:
    QL_LOGGING: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    QL_LOG_FILE: Path to log file (enables rotating file logging)
    QL_LOG_JSON: Set to "1" for JSON output

Levels used by the library: INFO for run lifecycle (configure, start, stop,
reset), DEBUG for arrivals, dispatches and timeouts, ERROR for invariant
violations. Records emitted from inside a tick carry the simulation time as
``sim_time``, which the JSON formatter writes out.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Literal

__all__ = [
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
]

LOGGER_NAME = "queuelab"

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
TIME_FORMAT = "%H:%M:%S"

ROTATE_BYTES = 5 * 1024 * 1024
ROTATE_KEEP = 3

Level = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Example output:
        {"time": "2026-01-15T10:30:00.123456+00:00", "level": "INFO",
         "logger": "queuelab.simulation", "message": "Arrivals stopped",
         "sim_time": 10000.0}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        sim_time = getattr(record, "sim_time", None)
        if sim_time is not None:
            entry["sim_time"] = sim_time
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _to_level(level: str | int) -> int:
    if isinstance(level, str):
        return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    return level


def _install(handler: logging.Handler, level: Level | int, json_format: bool,
             fmt: str = TEXT_FORMAT, datefmt: str = TIME_FORMAT) -> logging.Handler:
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(fmt, datefmt))
    handler.setLevel(_to_level(level))

    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(_to_level(level))
    root.addHandler(handler)
    return handler


def enable_console_logging(
    level: Level | int = "INFO",
    format: str = TEXT_FORMAT,
    date_format: str = TIME_FORMAT,
) -> logging.StreamHandler:
    """Send queuelab records to stderr as plain text."""
    return _install(logging.StreamHandler(), level, False, format, date_format)


def enable_json_logging(level: Level | int = "INFO") -> logging.StreamHandler:
    """Send queuelab records to stderr as JSON lines."""
    return _install(logging.StreamHandler(), level, True)


def enable_file_logging(
    path: str | Path,
    level: Level | int = "INFO",
    max_bytes: int = ROTATE_BYTES,
    backup_count: int = ROTATE_KEEP,
    json_format: bool = False,
) -> RotatingFileHandler:
    """Write queuelab records to a size-rotated file.

    Missing parent directories are created.

    Args:
        path: Log file path.
        level: Level name or number.
        max_bytes: Size at which the file rolls over.
        backup_count: Number of rolled files kept.
        json_format: Write JSON lines instead of text.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(target, maxBytes=max_bytes, backupCount=backup_count)
    return _install(handler, level, json_format)


def configure_from_env(environ: Mapping[str, str] | None = None) -> logging.Handler | None:
    """Attach a handler described by ``QL_LOGGING``, ``QL_LOG_FILE`` and ``QL_LOG_JSON``.

    A file, when named, wins over the console. Returns the attached handler,
    or None when neither a level nor a file is set.
    """
    env = os.environ if environ is None else environ
    level = env.get("QL_LOGGING", "").strip().upper()
    log_file = env.get("QL_LOG_FILE", "").strip()
    as_json = env.get("QL_LOG_JSON", "") == "1"

    if not (level or log_file):
        return None
    level = level or "INFO"

    if log_file:
        return enable_file_logging(log_file, level=level, json_format=as_json)
    if as_json:
        return enable_json_logging(level=level)
    return enable_console_logging(level=level)


def set_level(level: Level | int) -> None:
    logging.getLogger(LOGGER_NAME).setLevel(_to_level(level))


def set_module_level(module: str, level: Level | int) -> None:
    """Override the level of one submodule, e.g. ``"core.registry"``."""
    logging.getLogger(f"{LOGGER_NAME}.{module}").setLevel(_to_level(level))


def disable_logging() -> None:
    """Detach every real handler and mute the ``queuelab`` logger."""
    root = logging.getLogger(LOGGER_NAME)
    real = [h for h in root.handlers if not isinstance(h, logging.NullHandler)]
    for handler in real:
        root.removeHandler(handler)
        handler.close()
    if not root.handlers:
        root.addHandler(logging.NullHandler())
    root.setLevel(logging.CRITICAL + 1)
