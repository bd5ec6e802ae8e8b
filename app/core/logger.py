# app/core/logger.py
from __future__ import annotations

"""
Wallpaper Downloads - Logging (Loguru)
--------------------------------------
Importing this module configures Loguru once for the process (API or worker).

- Console sink: pretty by default, one JSON object per line with `LOG_JSON=1`
- Every record carries `request_id` (bound by RequestIDMiddleware) and `service`
- stdlib loggers (uvicorn, sqlalchemy, alembic, apscheduler, slowapi) are routed into Loguru
- Optional rotating file sink

Env
---
LOG_LEVEL=INFO|DEBUG|WARNING|ERROR (default: INFO)
LOG_JSON=1            JSON console output
LOG_TO_FILE=1         also write `$LOG_DIR/$LOG_FILE` (rotated at `$LOG_ROTATION`)
LOG_SERVICE=api       value of the `service` field (the worker sets "worker")
APP_DEBUG=1           backtrace/diagnose on the console sink
"""

import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

_TRUTHY = {"1", "true", "yes"}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_JSON = os.getenv("LOG_JSON", "0").lower() in _TRUTHY
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "0").lower() in _TRUTHY
APP_DEBUG = os.getenv("APP_DEBUG", "0").lower() in _TRUTHY
SERVICE = os.getenv("LOG_SERVICE", "api")

_INTERCEPTED = {
    "uvicorn": None,
    "uvicorn.error": None,
    "uvicorn.access": None,
    "fastapi": None,
    "sqlalchemy.engine": "WARNING",
    "alembic": None,
    "apscheduler": "WARNING",
    "slowapi": None,
}


def _defaults(record) -> None:
    record["extra"].setdefault("request_id", "-")
    record["extra"].setdefault("service", SERVICE)


def _pretty(record) -> str:
    _defaults(record)
    where = f"{record['name']}:{record['function']}:{record['line']}".replace("<", "[").replace(">", "]")
    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
        f"<cyan>{where}</cyan> - <level>{{message}}</level> | rid={{extra[request_id]}}\n{{exception}}"
    )


def _as_json(record) -> str:
    _defaults(record)
    doc = {
        "ts": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "line": record["line"],
        "message": record["message"],
    }
    doc.update({k: v for k, v in record["extra"].items() if k != "_json"})
    if record["exception"] is not None:
        doc["exception"] = repr(record["exception"].value)
    record["extra"]["_json"] = json.dumps(doc, ensure_ascii=False, default=str)
    return "{extra[_json]}\n"


class InterceptHandler(logging.Handler):
    """Forward stdlib records to Loguru, preserving the caller frame."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging() -> None:
    fmt = _as_json if LOG_JSON else _pretty
    logger.remove()
    logger.add(sys.stdout, level=LOG_LEVEL, format=fmt, enqueue=True, backtrace=APP_DEBUG, diagnose=APP_DEBUG)

    if LOG_TO_FILE:
        log_dir = Path(os.getenv("LOG_DIR", "logs"))
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_dir / os.getenv("LOG_FILE", "app.log")),
            rotation=os.getenv("LOG_ROTATION", "10 MB"),
            level=LOG_LEVEL,
            format=fmt,
            enqueue=True,
        )

    for name, level in _INTERCEPTED.items():
        std = logging.getLogger(name)
        std.handlers = [InterceptHandler()]
        std.setLevel(level or LOG_LEVEL)
        std.propagate = False


setup_logging()

__all__ = ["logger", "setup_logging", "InterceptHandler"]
