"""Service Facade — one object per running service bundling the toolkit components.

Invariants:
    - Each Service owns exactly one TimerRegistry; its client and lifecycle
      controller share it, nothing else does
    - exit() is the only method that terminates the process
    - aclose() releases the HTTP client, drains timers and disposes the pool
"""

from typing import Any, Mapping, NoReturn

import httpx

from mediaserve_common.config import Settings, get_settings
from mediaserve_common.core.errors import DatabaseError
from mediaserve_common.core.identifiers import correlation_id, namespace_for
from mediaserve_common.core.log_payload import LogLevel
from mediaserve_common.core.outcomes import CallOutcome
from mediaserve_common.core.stopwatch import Stopwatch
from mediaserve_common.core.text import iso_now
from mediaserve_common.infrastructure.database import DatabasePool, QueryExecutor
from mediaserve_common.infrastructure.http_client import CancellableClient
from mediaserve_common.infrastructure.lifecycle import LifecycleController
from mediaserve_common.infrastructure.observability import ServiceLogger
from mediaserve_common.infrastructure.timer_registry import TimerRegistry


class Service:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        registry: TimerRegistry | None = None,
        logger: ServiceLogger | None = None,
        http_client: httpx.AsyncClient | None = None,
        database: DatabasePool | None = None,
    ):
        self.settings = settings or get_settings()
        self.timers = registry or TimerRegistry()
        self.logger = logger or ServiceLogger("mediaserve_common.service")
        self.namespace = namespace_for(self.settings.uuid_namespace)
        self.client = CancellableClient(
            self.timers,
            timeout_ms=self.settings.request_timeout_ms,
            client=http_client,
            logger=self.logger,
        )
        self.executor = QueryExecutor(
            timeout_ms=self.settings.query_timeout_ms, logger=self.logger,
        )
        self.lifecycle = LifecycleController(self.timers, self.logger)
        self.database = database

    @classmethod
    def with_database(cls, settings: Settings | None = None, **kwargs: Any) -> "Service":
        """Build a Service plus a DatabasePool from the database settings."""
        settings = settings or get_settings()
        logger = kwargs.pop("logger", None) or ServiceLogger("mediaserve_common.service")
        pool = DatabasePool(
            settings.database_dsn,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout_s,
            executor=QueryExecutor(timeout_ms=settings.query_timeout_ms, logger=logger),
            logger=logger,
        )
        return cls(settings, logger=logger, database=pool, **kwargs)

    def uuid(self) -> str:
        return correlation_id(self.namespace)

    def stopwatch(self) -> Stopwatch:
        return Stopwatch()

    def now(self) -> str:
        return iso_now()

    def log(self, message: Any, level: LogLevel | str | None = None) -> None:
        self.logger.log(message, level)

    async def call(
        self,
        target: str,
        method: str,
        body: Any = None,
        timeout_ms: int | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> CallOutcome:
        return await self.client.call(target, method, body, timeout_ms, headers)

    async def fetch(
        self,
        target: str,
        method: str,
        body: Any = None,
        timeout_ms: int | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self.client.fetch(target, method, body, timeout_ms, headers)

    async def query(self, statement: str) -> list[Any]:
        if self.database is None:
            raise DatabaseError("No database attached to this service", "query")
        async with self.database.acquire() as connection:
            return await self.executor.execute(connection, statement)

    def exit(self, message: str | BaseException) -> NoReturn:
        self.lifecycle.exit(message)

    async def aclose(self) -> None:
        await self.client.aclose()
        self.timers.drain_all()
        if self.database is not None:
            await self.database.dispose()
