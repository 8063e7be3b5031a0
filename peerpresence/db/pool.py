"""
Async PostgreSQL pool shared by every repository.

The application lifespan opens it and closes it; repositories borrow
connections through ``connection()`` or, for multi-statement writes,
``transaction()``. Connections run in autocommit so a borrowed connection
never sits in an open transaction between calls.
"""

import asyncio
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from peerpresence.config import settings
from peerpresence.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

CLOSE_TIMEOUT_SECONDS = 30.0
STATEMENT_TIMEOUT = "30s"

# Readiness thresholds
SLOW_PING_MS = 100
BUSY_POOL_PERCENT = 80
SATURATED_POOL_PERCENT = 90


class DatabasePool:
    def __init__(self):
        self.pool: AsyncConnectionPool | None = None
        self._state = "new"  # new -> open -> closed

    @property
    def initialized(self) -> bool:
        return self._state == "open"

    async def initialize(self) -> None:
        if self._state == "open":
            logger.warning("Database pool already open")
            return
        if self._state == "closed":
            raise RuntimeError("Database pool was closed and cannot be reopened")

        options = settings.get_db_pool_config()
        pool = AsyncConnectionPool(
            conninfo=settings.DATABASE_URL,
            open=False,
            check=AsyncConnectionPool.check_connection,
            configure=self._prepare_connection,
            **options,
        )

        try:
            await pool.open(wait=True)
            async with pool.connection() as conn:
                await self._ping(conn)
        except Exception as e:
            logger.error("Database pool failed to open", error=str(e), error_type=type(e).__name__)
            await pool.close()
            raise RuntimeError(f"Database pool initialization failed: {e}") from e

        self.pool = pool
        self._state = "open"
        logger.info(
            "Database pool open",
            min_size=options["min_size"],
            max_size=options["max_size"],
            timeout=options["timeout"],
        )

    async def _prepare_connection(self, conn: psycopg.AsyncConnection) -> None:
        conn.row_factory = dict_row
        await conn.set_autocommit(True)

        app_name = f"peerpresence-{settings.environment}"
        await conn.execute(sql.SQL("SET application_name = {}").format(sql.Literal(app_name)))
        await conn.execute("SET timezone = 'UTC'")
        await conn.execute(sql.SQL("SET statement_timeout = {}").format(sql.Literal(STATEMENT_TIMEOUT)))

    @staticmethod
    async def _ping(conn: psycopg.AsyncConnection) -> None:
        async with conn.cursor() as cur:
            await cur.execute("SELECT 1 AS ok")
            row = await cur.fetchone()
        if not row or row["ok"] != 1:
            raise RuntimeError("SELECT 1 returned an unexpected row")

    async def close(self) -> None:
        if self._state != "open":
            return

        self._state = "closed"
        try:
            await asyncio.wait_for(self.pool.close(), timeout=CLOSE_TIMEOUT_SECONDS)
            logger.info("Database pool closed")
        except TimeoutError:
            logger.warning("Database pool close timed out", timeout=CLOSE_TIMEOUT_SECONDS)

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """Borrow an autocommit connection."""
        if self._state != "open":
            raise RuntimeError(f"Database pool is not open (state={self._state})")

        async with self.pool.connection() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """
        Borrow a connection inside a transaction.

        Usage:
            async with db_pool.transaction() as conn:
                await fetch_one(insert_query, params, connection=conn)
                await execute_query(update_query, params, connection=conn)

        Commits when the block exits normally, rolls back if it raises.
        """
        async with self.connection() as conn:
            async with conn.transaction():
                yield conn

    async def health_check(self) -> dict[str, Any]:
        if self._state != "open":
            return {"healthy": False, "service": "database_pool", "error": f"Pool is {self._state}"}

        try:
            stats = self.pool.get_stats()
            started = time.perf_counter()
            async with self.connection() as conn:
                await self._ping(conn)
            ping_ms = (time.perf_counter() - started) * 1000
        except Exception as e:
            logger.error("Database health check failed", error=str(e), error_type=type(e).__name__)
            return {
                "healthy": False,
                "service": "database_pool",
                "error": str(e),
                "error_type": type(e).__name__,
            }

        size = stats.get("pool_size", 0)
        available = stats.get("pool_available", 0)
        waiting = stats.get("requests_waiting", 0)
        in_use_percent = (size - available) / size * 100 if size else 0.0

        report: dict[str, Any] = {
            "healthy": in_use_percent < SATURATED_POOL_PERCENT and ping_ms < SLOW_PING_MS,
            "service": "database_pool",
            "connection_time_ms": round(ping_ms, 2),
            "pool_stats": {
                "pool_size": size,
                "pool_available": available,
                "pool_utilization_percent": round(in_use_percent, 2),
                "requests_waiting": waiting,
            },
        }

        warnings = []
        if in_use_percent > BUSY_POOL_PERCENT:
            warnings.append(f"High pool utilization: {in_use_percent:.1f}%")
        if waiting:
            warnings.append(f"Requests waiting for connections: {waiting}")
        if warnings:
            report["warnings"] = warnings
        return report


db_pool = DatabasePool()


async def db_health_check() -> dict[str, Any]:
    return await db_pool.health_check()
