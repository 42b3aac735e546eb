"""Error Handlers — map toolkit failures to correlated REST envelopes.

Invariants:
    - Every error response carries a correlationId; it is the request's own
      id when RequestContextHelper.begin() ran, otherwise a fresh one
    - The same id is logged through the Service's ServiceLogger and written
      into the envelope's context, so a client report finds its log line
    - MediaServeError → its own http_status; target/statement/cause travel
      from ErrorContext into the response
    - RequestValidationError → InvalidArgumentError (400) naming the first bad field
    - Anything else → 500 FatalExit-shaped envelope without internal details
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mediaserve_common.core.errors import (
    ErrorCategory, ErrorSeverity, InvalidArgumentError, MediaServeError,
)
from mediaserve_common.core.identifiers import correlation_id
from mediaserve_common.core.log_payload import LogLevel

_LOG_LEVELS = {
    ErrorSeverity.INFO: LogLevel.INFO,
    ErrorSeverity.WARNING: LogLevel.INFO,
}


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MediaServeError, toolkit_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)


def request_correlation_id(request: Request) -> str:
    cid = getattr(request.state, "correlation_id", None)
    if cid is None:
        cid = correlation_id(request.app.state.service.namespace)
        request.state.correlation_id = cid
    return cid


async def toolkit_error_handler(request: Request, exc: MediaServeError) -> JSONResponse:
    cid = request_correlation_id(request)
    exc.context.correlation_id = cid
    logger = request.app.state.service.logger
    if exc.severity in _LOG_LEVELS:
        logger.log(
            [cid, exc.code, exc.message], _LOG_LEVELS[exc.severity],
            correlation_id=cid, error_code=exc.code,
            target=exc.context.target, statement=exc.context.statement,
        )
    else:
        logger.log(
            exc, correlation_id=cid,
            target=exc.context.target, statement=exc.context.statement,
        )
    return _envelope(exc, cid)


async def validation_error_handler(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    field = details[0]["field"] if details else "request"
    error = InvalidArgumentError(f"Invalid parameter: {field}", field)
    error.context.debug_info = {"details": details}
    return await toolkit_error_handler(request, error)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    cid = request_correlation_id(request)
    request.app.state.service.logger.log(exc, correlation_id=cid)
    error = MediaServeError(
        "An unexpected error occurred", "INTERNAL_ERROR",
        ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
    )
    error.context.correlation_id = cid
    return _envelope(error, cid)


def _envelope(exc: MediaServeError, cid: str) -> JSONResponse:
    content = exc.to_response()
    content["correlationId"] = cid
    if exc.context.debug_info and "details" in exc.context.debug_info:
        content["error"]["details"] = exc.context.debug_info["details"]
    return JSONResponse(status_code=exc.http_status, content=content)
