"""Logging helpers for applications embedding the client."""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

__all__ = ["setup_logger", "JsonFormatter"]

# attributes every LogRecord carries; anything else came in through ``extra=``
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def _json_payload(record: logging.LogRecord) -> str:
    base = {
        "level": record.levelname,
        "logger": record.name,
        "msg": record.getMessage(),
    }
    timestamp = getattr(record, "asctime", None)
    if timestamp:
        base["time"] = timestamp
    for key, value in vars(record).items():
        if key not in _RESERVED and key not in base:
            base[key] = value if isinstance(value, (str, int, float, bool, type(None))) else str(value)
    if record.exc_info:
        base["exc"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(base, ensure_ascii=False)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, including fields passed via ``extra=``."""

    def format(self, record: logging.LogRecord) -> str:
        return _json_payload(record)


def setup_logger(
    *,
    level: Optional[str] = None,
    json_format: bool = False,
    logfile: Path | None = None,
    max_bytes: int = 5_000_000,
    backup_count: int = 3,
) -> logging.Logger:
    """Attach a handler to the ``devpayr`` logger and return it."""

    logger = logging.getLogger("devpayr")
    numeric_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    logger.setLevel(numeric_level)
    logger.handlers.clear()
    logger.propagate = False

    handler: logging.Handler
    if logfile is not None:
        logfile.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(logfile, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setLevel(numeric_level)
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    return logger
