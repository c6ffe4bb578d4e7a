from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

# Attributes every LogRecord carries; anything else on a record is request context.
_RESERVED_RECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
        "color_message",
        "level_color",
        "reset",
    }
)

_CONTEXT: ContextVar[dict[str, Any] | None] = ContextVar("vidbrief_log_context", default=None)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
APP_LOGGER_PREFIX = "vidbrief"

# Third-party loggers are held at these levels regardless of LOG_LEVEL.
_THIRD_PARTY_LEVELS: dict[str, int] = {
    "uvicorn": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "openai": logging.WARNING,
    "asyncpg": logging.WARNING,
}


class ContextFilter(logging.Filter):
    """Copy the active `log_context` fields onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in (_CONTEXT.get() or {}).items():
            if key not in _RESERVED_RECORD_ATTRS:
                setattr(record, key, value)
        return True


class ThirdPartyFilter(logging.Filter):
    """Drop chatter from non-app loggers below their configured level."""

    def __init__(self, levels: Mapping[str, int]) -> None:
        super().__init__()
        self.levels = dict(levels)

    def _threshold(self, name: str) -> int:
        best, best_len = logging.WARNING, -1
        for prefix, level in self.levels.items():
            if (name == prefix or name.startswith(prefix + ".")) and len(prefix) > best_len:
                best, best_len = level, len(prefix)
        return best

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name == "__main__" or name == APP_LOGGER_PREFIX or name.startswith(APP_LOGGER_PREFIX + "."):
            return True
        return record.levelno >= self._threshold(name)


class ContextFormatter(logging.Formatter):
    """Formatter that appends extra fields as key=value context."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extras = {k: v for k, v in record.__dict__.items() if k not in _RESERVED_RECORD_ATTRS}
        if not extras:
            return message
        return f"{message} [{' '.join(f'{k}={v}' for k, v in extras.items())}]"


class ColorFormatter(ContextFormatter):
    _RESET = "\x1b[0m"
    _LEVEL_COLORS = {
        "DEBUG": "\x1b[36m",
        "INFO": "\x1b[32m",
        "WARNING": "\x1b[33m",
        "ERROR": "\x1b[31m",
        "CRITICAL": "\x1b[1;31m",
    }

    def format(self, record: logging.LogRecord) -> str:
        record.level_color = self._LEVEL_COLORS.get(record.levelname, "")  # type: ignore[attr-defined]
        record.reset = self._RESET  # type: ignore[attr-defined]
        return super().format(record)


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Temporarily attach context fields to all log lines in this scope."""

    token = _CONTEXT.set({**(_CONTEXT.get() or {}), **kwargs})
    try:
        yield
    finally:
        _CONTEXT.reset(token)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def setup_logging(*, log_level: str | None = None) -> None:
    """
    Configure global, context-aware logging for the application.

    Environment variables:
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
    - LOG_COLOR: enable ANSI colors (default: auto when TTY)
    """
    raw_level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper().strip()
    root_level = getattr(logging, raw_level, logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.captureWarnings(True)

    handler = logging.StreamHandler(sys.stdout)
    formatter: logging.Formatter
    if _env_flag("LOG_COLOR", sys.stdout.isatty()):
        formatter = ColorFormatter(
            "%(level_color)s%(asctime)s | %(levelname)s%(reset)s | %(name)s | "
            "%(filename)s:%(lineno)d | %(level_color)s%(message)s%(reset)s",
            datefmt=DATE_FORMAT,
        )
    else:
        formatter = ContextFormatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(filename)s:%(lineno)d | %(message)s",
            datefmt=DATE_FORMAT,
        )
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    handler.addFilter(ThirdPartyFilter(_THIRD_PARTY_LEVELS))
    root_logger.addHandler(handler)
    root_logger.setLevel(root_level)

    for name, level in _THIRD_PARTY_LEVELS.items():
        logging.getLogger(name).setLevel(level)
    logging.getLogger(APP_LOGGER_PREFIX).setLevel(root_level)

    logging.getLogger(__name__).info("Logging configured", extra={"log_level": logging.getLevelName(root_level)})
