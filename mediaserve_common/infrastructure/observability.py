"""Structured Logging — leveled log lines with timestamp and process identity.

Invariants:
    - Records below ERROR go to stdout, ERROR and above go to stderr
    - Every line carries timestamp, pid, level and message in the same order
    - Colour is decoration only: emitted for TTY streams, absent otherwise,
      and strip_decoration() recovers the plain line
    - ServiceLogger.log() classifies the message once (infer_payload) and forces
      ERROR level for exception payloads

Design Decisions:
    - Formatters subclass logging.Formatter so uvicorn and SQLAlchemy records
      share the timestamp/pid/level line of toolkit records
    - setup_logging only replaces handlers it installed itself, so test capture
      handlers survive reconfiguration
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from mediaserve_common.core.log_payload import (
    LogLevel, LogPayload, effective_level, infer_payload, render_payload,
)
from mediaserve_common.core.text import iso_timestamp

_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.ERROR: logging.ERROR,
}

_EXTRA_KEYS = (
    "correlation_id", "payload_kind", "target", "statement",
    "error_code", "timer_count",
)

RED = "\x1b[31m"
GREEN = "\x1b[32m"
BRIGHT_RED = "\x1b[91m"
BRIGHT_GREEN = "\x1b[92m"
DIM = "\x1b[2m"
RESET = "\x1b[0m"

_ANSI = re.compile(r"\x1b\[[0-9;]*m")


def strip_decoration(line: str) -> str:
    return _ANSI.sub("", line)


def _paint(code: str, text: str, enabled: bool) -> str:
    return f"{code}{text}{RESET}" if enabled else text


class ConsoleFormatter(logging.Formatter):
    """`<timestamp> [<pid>] [ERROR] <message>`, coloured when use_color is set."""

    def __init__(self, use_color: bool = False):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.use_color
        stamp = iso_timestamp(datetime.fromtimestamp(record.created, timezone.utc))
        pid = _paint(DIM, "[", color) + str(record.process) + _paint(DIM, "]", color)
        message = record.getMessage()

        if record.levelno >= logging.ERROR:
            parts = [
                _paint(BRIGHT_RED, stamp, color), pid,
                _paint(BRIGHT_RED, "ERROR", color), _paint(RED, message, color),
            ]
        elif record.levelno <= logging.DEBUG:
            parts = [_paint(BRIGHT_GREEN, stamp, color), pid, _paint(DIM, message, color)]
        else:
            parts = [_paint(BRIGHT_GREEN, stamp, color), pid, _paint(GREEN, message, color)]

        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for machine sinks."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": iso_timestamp(datetime.fromtimestamp(record.created, timezone.utc)),
            "pid": record.process,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class _BelowLevel(logging.Filter):
    def __init__(self, ceiling: int):
        super().__init__()
        self.ceiling = ceiling

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.ceiling


def _is_tty(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    try:
        return bool(isatty and isatty())
    except ValueError:
        return False


def _build_formatter(fmt: str, stream: TextIO) -> logging.Formatter:
    if fmt == "json":
        return JSONFormatter()
    return ConsoleFormatter(use_color=_is_tty(stream))


def setup_logging(
    level: str = "DEBUG",
    fmt: str = "console",
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> None:
    """Configure root logging: non-errors to stdout, errors to stderr."""
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    out_handler = logging.StreamHandler(stdout)
    out_handler.addFilter(_BelowLevel(logging.ERROR))
    out_handler.setFormatter(_build_formatter(fmt, stdout))

    err_handler = logging.StreamHandler(stderr)
    err_handler.setLevel(logging.ERROR)
    err_handler.setFormatter(_build_formatter(fmt, stderr))

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_mediaserve", False):
            root.removeHandler(handler)
    for handler in (out_handler, err_handler):
        handler._mediaserve = True
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


class ServiceLogger:
    """Leveled logger for toolkit components: info (default), debug, error."""

    def __init__(self, name: str = "mediaserve_common"):
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._logger.name

    def log(
        self,
        message: Any,
        level: LogLevel | str | None = None,
        **extra: Any,
    ) -> None:
        payload = infer_payload(message)
        resolved = effective_level(payload, level)
        self._emit(payload, resolved, extra)

    def info(self, message: Any, **extra: Any) -> None:
        self.log(message, LogLevel.INFO, **extra)

    def debug(self, message: Any, **extra: Any) -> None:
        self.log(message, LogLevel.DEBUG, **extra)

    def error(self, message: Any, **extra: Any) -> None:
        self.log(message, LogLevel.ERROR, **extra)

    def _emit(self, payload: LogPayload, level: LogLevel, extra: dict[str, Any]) -> None:
        extra["payload_kind"] = payload.kind.value
        exc_info = None
        error = payload.error
        if error is not None:
            code = getattr(error, "code", None)
            if code is not None:
                extra.setdefault("error_code", code)
            if error.__traceback__ is not None:
                exc_info = (type(error), error, error.__traceback__)
        self._logger.log(
            _LEVELS[level], render_payload(payload), exc_info=exc_info, extra=extra,
        )
