"""Process-wide logging setup: console plus a rotating JSON log under ``logs/``."""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from mnhost.adapters.fs.path_provider import PathProvider
from mnhost.services.settings import Settings

__all__ = ["setup_logging", "JsonFormatter"]

_CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_RESERVED = set(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


def _json_payload(record: logging.LogRecord, formatter: logging.Formatter) -> str:
    base = {
        "time": formatter.formatTime(record),
        "level": record.levelname,
        "logger": record.name,
        "msg": record.getMessage(),
    }
    for key, value in vars(record).items():
        if key in _RESERVED or key.startswith("_"):
            continue
        try:
            json.dumps(value)
        except TypeError:
            value = repr(value)
        base[key] = value
    if record.exc_info:
        base["exc"] = formatter.formatException(record.exc_info)
    return json.dumps(base, ensure_ascii=False)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - trivial wrapper
        return _json_payload(record, self)


def setup_logging(
    settings: Settings,
    paths: PathProvider,
    *,
    max_bytes: int = 5_000_000,
    backup_count: int = 3,
) -> Path:
    """Configure the ``mnhost`` logger tree and return the log file path."""

    level = getattr(logging, settings.log_level, logging.INFO)
    logs_dir = paths.logs_dir()
    logs_dir.mkdir(parents=True, exist_ok=True)
    logfile = logs_dir / "mnhost.log"

    logger = logging.getLogger("mnhost")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    file_handler = RotatingFileHandler(logfile, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(JsonFormatter())
    logger.addHandler(file_handler)

    return logfile
