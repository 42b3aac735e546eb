"""Log Payloads — explicit variants for everything a caller may hand the logger.

Invariants:
    - A message is classified exactly once, at the logging boundary (infer_payload)
    - Downstream code switches on PayloadKind, never re-inspects the raw value
    - ERROR payloads always log at LogLevel.ERROR regardless of the requested level

Design Decisions:
    - MAPPING kept as its own variant: dict messages render as one JSON document
      instead of being space-joined like sequences
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any


class LogLevel(str, Enum):
    INFO = "info"
    DEBUG = "debug"
    ERROR = "error"

    @classmethod
    def coerce(cls, level: "LogLevel | str | None") -> "LogLevel":
        """Unknown or missing levels fall back to INFO."""
        if isinstance(level, cls):
            return level
        try:
            return cls(str(level).lower())
        except ValueError:
            return cls.INFO


class PayloadKind(str, Enum):
    TEXT = "text"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    ERROR = "error"


@dataclass(frozen=True)
class LogPayload:
    kind: PayloadKind
    values: tuple[Any, ...] = ()
    error: BaseException | None = None

    @classmethod
    def text(cls, value: Any) -> "LogPayload":
        return cls(PayloadKind.TEXT, (value,))

    @classmethod
    def sequence(cls, values) -> "LogPayload":
        return cls(PayloadKind.SEQUENCE, tuple(values))

    @classmethod
    def mapping(cls, value: dict) -> "LogPayload":
        return cls(PayloadKind.MAPPING, (value,))

    @classmethod
    def from_error(cls, error: BaseException) -> "LogPayload":
        return cls(PayloadKind.ERROR, (), error)


def infer_payload(message: Any) -> LogPayload:
    """Classify a raw log message into its payload variant."""
    if isinstance(message, LogPayload):
        return message
    if isinstance(message, BaseException):
        return LogPayload.from_error(message)
    if isinstance(message, (list, tuple)):
        return LogPayload.sequence(message)
    if isinstance(message, dict):
        return LogPayload.mapping(message)
    return LogPayload.text(message)


def effective_level(payload: LogPayload, level: LogLevel | str | None) -> LogLevel:
    if payload.kind is PayloadKind.ERROR:
        return LogLevel.ERROR
    return LogLevel.coerce(level)


def render_payload(payload: LogPayload) -> str:
    """Render a payload as a single undecorated line."""
    if payload.kind is PayloadKind.ERROR:
        error = payload.error
        return str(error) or type(error).__name__
    if payload.kind is PayloadKind.MAPPING:
        return _render_value(payload.values[0])
    return " ".join(_render_value(v) for v in payload.values)


def _render_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, BaseException):
        return str(value) or type(value).__name__
    try:
        return json.dumps(value, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)
