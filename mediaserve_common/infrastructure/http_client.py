"""Cancellable HTTP Client — one outbound JSON request raced against a deadline timer.

Invariants:
    - target/method/body validated before any timer is armed (InvalidArgumentError)
    - The deadline timer is cleared on every exit path: success, failure,
      timeout and outer cancellation (finally around the race)
    - Timeout resolves to Aborted("timeout"), never to a raised error
    - Transport and parse errors resolve to Failure carrying the original exception
    - Concurrent calls own independent timers; clearing one never touches another

Design Decisions:
    - Wrapper over raw httpx.AsyncClient: isolates deadline handling from handlers
    - Two tasks (request, deadline) joined by asyncio.wait(FIRST_COMPLETED);
      cancellation of the losing request is cooperative via Task.cancel()
    - httpx client built with timeout=None: the registry timer is the only deadline
"""

import asyncio
from typing import Any, Mapping

import httpx

from mediaserve_common.core.log_payload import LogLevel
from mediaserve_common.core.outcomes import Aborted, CallOutcome, Failure, Success
from mediaserve_common.core.validation import (
    encode_body, require_method, require_target,
)
from mediaserve_common.infrastructure.observability import ServiceLogger
from mediaserve_common.infrastructure.timer_registry import TimerRegistry

_JSON_HEADERS = {"Content-Type": "application/json"}


class CancellableClient:
    """Issues deadline-bounded JSON requests, tracking timers in a TimerRegistry."""

    def __init__(
        self,
        registry: TimerRegistry,
        timeout_ms: int = 30_000,
        client: httpx.AsyncClient | None = None,
        logger: ServiceLogger | None = None,
    ):
        self.registry = registry
        self.timeout_ms = timeout_ms
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=None)
        self.logger = logger or ServiceLogger(__name__)

    async def call(
        self,
        target: str,
        method: str,
        body: Any = None,
        timeout_ms: int | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> CallOutcome:
        """Send one request; resolve to Success, Aborted or Failure."""
        target = require_target(target)
        method = require_method(method)
        content = encode_body(body)
        deadline_ms = self.timeout_ms if timeout_ms is None else timeout_ms

        expired = asyncio.Event()
        handle = self.registry.arm(deadline_ms, expired.set)
        request = asyncio.ensure_future(
            self._send(target, method, content, headers),
        )
        deadline = asyncio.ensure_future(expired.wait())
        try:
            await asyncio.wait(
                {request, deadline}, return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            self.registry.clear(handle)
            deadline.cancel()
            if not request.done():
                request.cancel()
                await asyncio.wait({request})

        if request.cancelled():
            self.logger.log(
                [method, target, "aborted after", deadline_ms, "ms"],
                LogLevel.DEBUG, target=target,
            )
            return Aborted(target=target)

        error = request.exception()
        if error is not None:
            if not isinstance(error, (httpx.HTTPError, OSError)):
                raise error
            self.logger.log(error, target=target)
            return Failure(target=target, error=error)

        response = request.result()
        try:
            payload = response.json()
        except (ValueError, UnicodeDecodeError) as e:
            self.logger.log(e, target=target)
            return Failure(target=target, error=e)
        return Success(payload=payload, status_code=response.status_code)

    async def fetch(
        self,
        target: str,
        method: str,
        body: Any = None,
        timeout_ms: int | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """call() then unwrap(): payload, or RequestAbortedError / RequestFailedError."""
        outcome = await self.call(target, method, body, timeout_ms, headers)
        return outcome.unwrap()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _send(
        self,
        target: str,
        method: str,
        content: bytes | None,
        headers: Mapping[str, str] | None,
    ) -> httpx.Response:
        merged = {**_JSON_HEADERS, **(headers or {})}
        return await self.client.request(
            method, target, content=content, headers=merged,
        )

