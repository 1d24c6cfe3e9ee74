"""Logging for benchmark runs.

Usage::

    from s3bench.logging_setup import setup_logging, get_logger

    setup_logging(level="DEBUG")
    logger = get_logger(phase="Write", worker_id=0)
    logger.info("Worker started")

Environment:
    S3BENCH_LOG_LEVEL   default level when none is passed
    S3BENCH_LOG_JSON    ``1`` switches every handler to JSON lines
    S3BENCH_LOG_FILE    also write log records to this file
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from typing import Any

from s3bench.config import DEFAULT_LOG_LEVEL

LOGGER_NAME = "s3bench"

_LEVEL_COLORS: dict[str, str] = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created)


class BenchFormatter(logging.Formatter):
    """Single-line text format: time, level, ``[phase:Wn]``, endpoint."""

    def __init__(self, *, use_color: bool = True) -> None:
        super().__init__()
        self.use_color = use_color and sys.stderr.isatty()

    def _level(self, name: str) -> str:
        padded = f"{name:8s}"
        color = _LEVEL_COLORS.get(name)
        if self.use_color and color:
            return f"{color}{padded}{_RESET}"
        return padded

    @staticmethod
    def _context(record: logging.LogRecord) -> str:
        phase = getattr(record, "phase", None)
        worker_id = getattr(record, "worker_id", None)
        parts = []
        if phase is not None:
            parts.append(phase)
        if worker_id is not None:
            parts.append(f"W{worker_id}")
        return f"[{':'.join(parts)}]" if parts else ""

    def format(self, record: logging.LogRecord) -> str:
        when = _timestamp(record).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        endpoint = getattr(record, "endpoint", None)
        tag = f"<{endpoint}> " if endpoint else ""
        return (
            f"{when} {self._level(record.levelname)} "
            f"{self._context(record):16s} {tag}{record.getMessage()}"
        )


class JsonFormatter(logging.Formatter):
    """One JSON object per record; absent context fields are omitted."""

    def format(self, record: logging.LogRecord) -> str:
        fields = {
            "ts": _timestamp(record).isoformat(),
            "level": record.levelname,
            "msg": record.getMessage(),
            "phase": getattr(record, "phase", None),
            "worker": getattr(record, "worker_id", None),
            "endpoint": getattr(record, "endpoint", None),
        }
        return json.dumps(
            {k: v for k, v in fields.items() if v is not None}
        )


class ContextLogger(logging.LoggerAdapter):
    """Adapter merging its context into each record's ``extra``."""

    def process(
        self,
        msg: str,
        kwargs: dict[str, Any],
    ) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**kwargs.get("extra", {}), **self.extra}
        return msg, kwargs


def setup_logging(
    *,
    level: str | None = None,
    log_file: str | None = None,
) -> logging.Logger:
    """Configure the ``s3bench`` logger, replacing earlier handlers.

    Args:
        level: Log level name; falls back to ``S3BENCH_LOG_LEVEL``.
        log_file: Optional file path; falls back to ``S3BENCH_LOG_FILE``.

    Returns:
        The configured logger.
    """
    level = (level or os.environ.get(
        "S3BENCH_LOG_LEVEL", DEFAULT_LOG_LEVEL,
    )).upper()
    log_file = log_file or os.environ.get("S3BENCH_LOG_FILE")
    as_json = os.environ.get("S3BENCH_LOG_JSON", "0") == "1"

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level, logging.INFO))
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.propagate = False

    handlers: list[tuple[logging.Handler, bool]] = [
        (logging.StreamHandler(sys.stderr), True),
    ]
    if log_file:
        handlers.append((logging.FileHandler(log_file), False))

    for handler, tty in handlers:
        handler.setFormatter(
            JsonFormatter() if as_json else BenchFormatter(use_color=tty)
        )
        logger.addHandler(handler)
    return logger


def get_logger(
    *,
    phase: str | None = None,
    worker_id: int | None = None,
    endpoint: str | None = None,
) -> ContextLogger:
    """Get a logger carrying run context.

    Configures logging with defaults on first use.

    Args:
        phase: Running phase (Write, Read, Cleanup, Create).
        worker_id: Worker index.
        endpoint: Endpoint URL the worker is bound to.
    """
    base_logger = logging.getLogger(LOGGER_NAME)
    if not base_logger.handlers:
        setup_logging()

    context = {
        "phase": None if phase is None else str(phase),
        "worker_id": worker_id,
        "endpoint": endpoint,
    }
    return ContextLogger(
        base_logger, {k: v for k, v in context.items() if v is not None},
    )
