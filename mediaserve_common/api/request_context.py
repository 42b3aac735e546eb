"""Request Context — correlation ID and stopwatch for each inbound request.

Invariants:
    - begin() issues a fresh correlation ID per call; contexts are never shared
    - finish() logs elapsed seconds from the monotonic clock, then calls render once
    - Default response payload is {"correlationId": <id>}
    - begin() stores the id on request.state so error envelopes reuse it
"""

import inspect
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, TypeVar
from uuid import UUID

from starlette.requests import Request

from mediaserve_common.core.identifiers import correlation_id, namespace_for
from mediaserve_common.core.log_payload import LogLevel
from mediaserve_common.core.stopwatch import Stopwatch
from mediaserve_common.infrastructure.observability import ServiceLogger

T = TypeVar("T")


@dataclass
class RequestContext:
    correlation_id: str
    stopwatch: Stopwatch
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    data: dict[str, Any] = field(default_factory=dict)
    session: dict[str, Any] | None = None


class RequestContextHelper:
    def __init__(self, logger: ServiceLogger | None = None, namespace: UUID | None = None):
        self.logger = logger or ServiceLogger(__name__)
        self.namespace = namespace or namespace_for()

    def begin(self, request: Request) -> RequestContext:
        cid = correlation_id(self.namespace)
        request.state.correlation_id = cid
        url = request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"
        self.logger.log(
            [
                cid, "new request from",
                json.dumps(request.headers.get("x-forwarded-for")),
                "URL:", json.dumps(url),
            ],
            LogLevel.DEBUG,
            correlation_id=cid,
        )
        session = request.session if "session" in request.scope else None
        return RequestContext(
            correlation_id=cid,
            stopwatch=Stopwatch(),
            data={"correlationId": cid},
            session=session,
        )

    async def finish(
        self, context: RequestContext, render: Callable[[], T | Awaitable[T]],
    ) -> T:
        elapsed = context.stopwatch.stop()
        self.logger.log(
            [context.correlation_id, "request completed in", elapsed, "seconds"],
            LogLevel.DEBUG,
            correlation_id=context.correlation_id,
        )
        result = render()
        if inspect.isawaitable(result):
            result = await result
        return result
