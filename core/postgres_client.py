"""
PostgreSQL Client for the Crowdfund Platform

Centralized PostgreSQL client built on an asyncpg connection pool.
Provides a consistent database access pattern for every repository.

Usage:
    from core.postgres_client import PostgresClient

    db = PostgresClient(settings.infrastructure)
    await db.initialize()

    rows = await db.query("SELECT * FROM campaigns WHERE status = $1", ["active"])

    # Multi-statement writes share one connection inside a transaction
    async with db.transaction() as conn:
        await db.execute("UPDATE ...", [...], conn=conn)
        await db.execute("INSERT ...", [...], conn=conn)

Every data method accepts an optional ``conn`` so a repository call can join
a transaction opened by the calling service. Opening ``transaction(conn)`` on
an already transactional connection creates a savepoint.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import asyncpg

from core.config import InfraConfig

logger = logging.getLogger(__name__)


def _affected_rows(status: str) -> int:
    """Parse the row count from an asyncpg command tag (e.g. 'UPDATE 3')"""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


class PostgresClient:
    """
    PostgreSQL client wrapping an asyncpg pool.

    Provides:
    - Lazy pool creation from InfraConfig
    - Row results as plain dicts
    - Transaction and savepoint scopes shared across repositories
    """

    def __init__(self, config: Optional[InfraConfig] = None, dsn: Optional[str] = None):
        self.config = config or InfraConfig.from_env()
        self.dsn = dsn or self.config.postgres_dsn
        self._pool: Optional[asyncpg.Pool] = None

    async def initialize(self) -> None:
        """Create the connection pool"""
        if self._pool is not None:
            return
        self._pool = await asyncpg.create_pool(
            dsn=self.dsn,
            min_size=self.config.postgres_min_pool_size,
            max_size=self.config.postgres_max_pool_size,
            command_timeout=self.config.postgres_command_timeout,
        )
        logger.info(
            f"PostgreSQL pool initialized: {self.config.postgres_host}:"
            f"{self.config.postgres_port}/{self.config.postgres_db}"
        )

    async def close(self) -> None:
        """Close the connection pool"""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("PostgreSQL pool closed")

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("PostgresClient not initialized. Call initialize() first.")
        return self._pool

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @asynccontextmanager
    async def connection(self, conn: Optional[asyncpg.Connection] = None) -> AsyncIterator[asyncpg.Connection]:
        """Yield the given connection, or acquire one from the pool"""
        if conn is not None:
            yield conn
            return
        async with self.pool.acquire() as acquired:
            yield acquired

    @asynccontextmanager
    async def transaction(self, conn: Optional[asyncpg.Connection] = None) -> AsyncIterator[asyncpg.Connection]:
        """
        Open a transaction scope.

        Without ``conn`` a connection is acquired and a transaction started.
        With ``conn`` a nested transaction (savepoint) is opened on it.
        Any exception rolls the scope back and propagates.
        """
        async with self.connection(conn) as tx_conn:
            async with tx_conn.transaction():
                yield tx_conn

    async def health_check(self) -> bool:
        """Check database health"""
        try:
            result = await self.fetchval("SELECT 1")
            return result == 1
        except Exception as e:
            logger.error(f"PostgreSQL health check failed: {e}")
            return False

    async def query(
        self, sql: str, params: Optional[List[Any]] = None, conn: Optional[asyncpg.Connection] = None
    ) -> List[Dict[str, Any]]:
        """Execute query and return results"""
        async with self.connection(conn) as c:
            rows = await c.fetch(sql, *(params or []))
        return [dict(row) for row in rows]

    async def query_row(
        self, sql: str, params: Optional[List[Any]] = None, conn: Optional[asyncpg.Connection] = None
    ) -> Optional[Dict[str, Any]]:
        """Execute query and return single row"""
        async with self.connection(conn) as c:
            row = await c.fetchrow(sql, *(params or []))
        return dict(row) if row is not None else None

    async def fetchval(
        self, sql: str, params: Optional[List[Any]] = None, conn: Optional[asyncpg.Connection] = None
    ) -> Any:
        """Execute query and return the first column of the first row"""
        async with self.connection(conn) as c:
            return await c.fetchval(sql, *(params or []))

    async def execute(
        self, sql: str, params: Optional[List[Any]] = None, conn: Optional[asyncpg.Connection] = None
    ) -> int:
        """Execute SQL statement and return the number of affected rows"""
        async with self.connection(conn) as c:
            status = await c.execute(sql, *(params or []))
        return _affected_rows(status)

    async def execute_many(
        self, sql: str, params_list: List[List[Any]], conn: Optional[asyncpg.Connection] = None
    ) -> None:
        """Execute SQL statement with multiple parameter sets"""
        if not params_list:
            return
        async with self.connection(conn) as c:
            await c.executemany(sql, params_list)
