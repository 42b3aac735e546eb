"""Error Hierarchy — typed, categorized exceptions for every toolkit failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - InvalidArgumentError is raised before any timer is armed or I/O begins
    - Timeouts of a Cancellable Call are an outcome (Aborted), and only become
      RequestAbortedError when the caller asks to unwrap
    - Only FatalExit is ever handed to the LifecycleController

Design Decisions:
    - Single hierarchy with MediaServeError base: FastAPI global handler catches all
    - ErrorContext as dataclass: diagnostics travel with the error, not the logger
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    TIMEOUT = "timeout"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Diagnostic context: enough to explain a failure without re-running it."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    correlation_id: str | None = None
    target: str | None = None
    statement: str | None = None
    cause: str | None = None
    debug_info: dict[str, Any] | None = None


class MediaServeError(Exception):
    """Base exception for all toolkit errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "correlation_id": self.context.correlation_id,
                    "target": self.context.target,
                    "statement": self.context.statement,
                    "cause": self.context.cause,
                },
            }
        }


# ─── Caller Errors (400-level) ──────────────────────────────────

class InvalidArgumentError(MediaServeError):
    """Malformed argument detected before any I/O."""
    def __init__(self, message: str, argument: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_ARGUMENT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.argument = argument


# ─── Outbound Errors (500-level) ────────────────────────────────

class RequestAbortedError(MediaServeError):
    """Outbound request cancelled by its deadline timer."""
    def __init__(self, target: str, reason: str = "timeout", context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.target = target
        super().__init__(
            f"Request to {target} aborted: {reason}",
            "REQUEST_ABORTED", ErrorCategory.TIMEOUT,
            ErrorSeverity.WARNING, ctx, 504,
        )
        self.target = target
        self.reason = reason


class RequestFailedError(MediaServeError):
    """Outbound request failed in transport or while parsing the response."""
    def __init__(self, target: str, cause: BaseException, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.target = target
        ctx.cause = _describe(cause)
        super().__init__(
            f"Request to {target} failed: {ctx.cause}",
            "REQUEST_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.target = target
        self.cause = cause


class QueryFailure(MediaServeError):
    """A statement failed against a pooled connection."""
    def __init__(self, statement: str, cause: BaseException, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.statement = statement
        ctx.cause = _describe(cause)
        super().__init__(
            f"Unable to execute database query: {ctx.cause} (sql: {statement})",
            "QUERY_FAILED", ErrorCategory.DATABASE,
            ErrorSeverity.ERROR, ctx, 503,
        )
        self.statement = statement
        self.cause = cause


class DatabaseError(MediaServeError):
    """Pool or connection level failure."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


# ─── Process Errors ─────────────────────────────────────────────

class RegistryClosedError(MediaServeError):
    """Timer armed after the registry was drained for shutdown."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Timer registry is closed; no new timers accepted during shutdown",
            "REGISTRY_CLOSED", ErrorCategory.INTERNAL,
            ErrorSeverity.ERROR, context, 500,
        )


class FatalExit(MediaServeError):
    """Unrecoverable condition; only raised through the LifecycleController."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "FATAL_EXIT", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )


def _describe(error: BaseException) -> str:
    return str(error) or type(error).__name__
