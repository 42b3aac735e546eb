"""Database Access — pooled async connections and a timeout-bounded query executor.

Invariants:
    - QueryExecutor passes {"sql", "timeout"} to the connection and returns rows
      in the order produced, without reordering or filtering
    - Every underlying failure (syntax, timeout, connection loss) surfaces as
      QueryFailure carrying statement + cause; nothing is swallowed
    - acquire() commits on clean exit and rolls back on exception
    - Pool connect failure maps to DatabaseError("connect")

Design Decisions:
    - PooledConnection is a Protocol: the executor never sees SQLAlchemy,
      so tests and other drivers plug in with a plain object
    - Timeout enforced with asyncio.wait_for around execute(); drivers differ
      in whether they expose a per-statement timeout
    - Pool sizing keys passed only when set: SQLite test engines reject them
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Iterable, Protocol

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, create_async_engine

from mediaserve_common.core.errors import DatabaseError, QueryFailure
from mediaserve_common.infrastructure.observability import ServiceLogger


class PooledConnection(Protocol):
    async def query(self, options: dict[str, Any]) -> Iterable[Any]: ...


class SQLAlchemyConnection:
    """Adapts an AsyncConnection to the PooledConnection protocol."""

    def __init__(self, connection: AsyncConnection):
        self.connection = connection

    async def query(self, options: dict[str, Any]) -> list[dict[str, Any]]:
        timeout_ms = options.get("timeout")
        result = await asyncio.wait_for(
            self.connection.execute(text(options["sql"])),
            timeout=timeout_ms / 1000 if timeout_ms else None,
        )
        if not result.returns_rows:
            return []
        return [dict(row) for row in result.mappings()]


class QueryExecutor:
    """Runs one statement on an established connection with a bounded timeout."""

    def __init__(self, timeout_ms: int = 120_000, logger: ServiceLogger | None = None):
        self.timeout_ms = timeout_ms
        self.logger = logger or ServiceLogger(__name__)

    async def execute(self, connection: PooledConnection, statement: str) -> list[Any]:
        try:
            results = await connection.query(
                {"sql": statement, "timeout": self.timeout_ms},
            )
            return [row for row in results]
        except Exception as e:
            failure = QueryFailure(statement, e)
            self.logger.log(failure, statement=statement)
            raise failure from e


class DatabasePool:
    """Manages an async engine pool; hands out PooledConnections."""

    def __init__(
        self,
        database_url: str,
        pool_size: int | None = 32,
        max_overflow: int | None = 0,
        pool_timeout: int | None = 30,
        executor: QueryExecutor | None = None,
        logger: ServiceLogger | None = None,
    ):
        pool_options = {
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_timeout": pool_timeout,
        }
        self.engine = create_async_engine(
            database_url,
            pool_pre_ping=True,
            **{k: v for k, v in pool_options.items() if v is not None},
        )
        self.logger = logger or ServiceLogger(__name__)
        self.executor = executor or QueryExecutor(logger=self.logger)

    async def connect(self) -> None:
        """Open and release one connection to prove the server is reachable."""
        try:
            async with self.engine.connect():
                pass
        except (SQLAlchemyError, OSError) as e:
            raise DatabaseError(
                f"Unable to connect to database server: {e}", "connect",
            ) from e

    @asynccontextmanager
    async def acquire(self) -> AsyncGenerator[SQLAlchemyConnection, None]:
        async with self.engine.connect() as connection:
            try:
                yield SQLAlchemyConnection(connection)
            except BaseException:
                await connection.rollback()
                raise
            else:
                await connection.commit()

    async def query(self, statement: str) -> list[Any]:
        async with self.acquire() as connection:
            return await self.executor.execute(connection, statement)

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            await self.query("SELECT 1")
            return True
        except (QueryFailure, SQLAlchemyError, OSError) as e:
            self.logger.error(["DB health check failed:", str(e)])
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()
