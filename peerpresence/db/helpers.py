"""
Query helpers used by the repositories.

Each helper runs on the caller's connection when one is passed (inside
``db_pool.transaction()``) and otherwise borrows one from the pool. Driver
errors are translated into ``DatabaseError`` (values the database refuses, such
as text with NUL bytes, into ``ValidationFailed``); connection-level failures
(``psycopg.OperationalError``) pass through untouched so ``with_db_retry``
can retry them.
"""

import asyncio
import functools
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import psycopg
from psycopg import errors as pg_errors

from peerpresence.db.pool import db_pool
from peerpresence.errors import ValidationFailed
from peerpresence.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

Params = tuple | dict


class DatabaseError(Exception):
    def __init__(self, message: str, operation: str = "unknown", recoverable: bool = True):
        super().__init__(message)
        self.operation = operation
        self.recoverable = recoverable


class UniqueViolationError(DatabaseError):
    """A write collided with a unique constraint."""

    def __init__(self, message: str, operation: str = "unknown", constraint: str | None = None):
        super().__init__(message, operation=operation, recoverable=False)
        self.constraint = constraint


@asynccontextmanager
async def _borrow(
    connection: psycopg.AsyncConnection | None, operation: str, query: str
) -> AsyncGenerator[psycopg.AsyncConnection, None]:
    try:
        if connection is not None:
            yield connection
        else:
            async with db_pool.connection() as conn:
                yield conn
    except psycopg.OperationalError:
        raise
    except pg_errors.UniqueViolation as e:
        constraint = e.diag.constraint_name if e.diag else None
        logger.info("Unique constraint violated", operation=operation, constraint=constraint)
        raise UniqueViolationError(
            f"Unique constraint violated: {constraint}", operation=operation, constraint=constraint
        ) from e
    except psycopg.DataError as e:
        logger.info("Value rejected by the database", operation=operation, error=str(e))
        raise ValidationFailed("Invalid input") from e
    except psycopg.Error as e:
        logger.error("Query failed", operation=operation, query=query[:100], error=str(e))
        raise DatabaseError(f"Query failed: {e}", operation=operation) from e


async def fetch_one(
    query: str, params: Params = (), *, connection: psycopg.AsyncConnection | None = None
) -> dict[str, Any] | None:
    """First row as a dict, or None."""
    async with _borrow(connection, "fetch_one", query) as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, params)
            return await cur.fetchone()


async def fetch_all(
    query: str, params: Params = (), *, connection: psycopg.AsyncConnection | None = None
) -> list[dict[str, Any]]:
    async with _borrow(connection, "fetch_all", query) as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, params)
            return await cur.fetchall()


async def fetch_val(
    query: str, params: Params = (), *, connection: psycopg.AsyncConnection | None = None
) -> Any:
    """First column of the first row, or None."""
    row = await fetch_one(query, params, connection=connection)
    return next(iter(row.values())) if row else None


async def execute_query(
    query: str, params: Params = (), *, connection: psycopg.AsyncConnection | None = None
) -> int:
    """Run a write and return the affected row count."""
    async with _borrow(connection, "execute", query) as conn:
        cursor = await conn.execute(query, params)
        return cursor.rowcount


def with_db_retry(max_retries: int = 3, base_delay: float = 0.1):
    """
    Retry a coroutine on connection-level failures with exponential backoff.

    Constraint violations and other translated errors are not retried. Once
    the retries are spent the failure surfaces as a non-recoverable
    ``DatabaseError``.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except psycopg.OperationalError as e:
                    if attempt >= max_retries:
                        logger.error(
                            "Database operation gave up",
                            operation=func.__name__,
                            attempts=attempt + 1,
                            error=str(e),
                        )
                        raise DatabaseError(
                            f"{func.__name__} failed after {attempt + 1} attempts: {e}",
                            operation=func.__name__,
                            recoverable=False,
                        ) from e

                    delay = base_delay * (2**attempt)
                    attempt += 1
                    logger.warning(
                        "Database operation failed, retrying",
                        operation=func.__name__,
                        attempt=attempt,
                        delay=delay,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)

        return wrapper

    return decorator
