# jobdispatch/infra/db_async.py
"""
Async database connection pool (asyncpg).

One pool per process, created in the app lifespan and shared by the
notification store and the migrations runner.
"""
from __future__ import annotations
from typing import AsyncIterator
from contextlib import asynccontextmanager

import asyncpg
from jobdispatch.config import settings
from jobdispatch.infra.logging_config import get_logger

logger = get_logger(__name__)

# Global connection pool
_pool: asyncpg.Pool | None = None


async def init_pool() -> None:
    """Initialize connection pool on startup"""
    global _pool

    if _pool is not None:
        return

    logger.info("Initializing asyncpg connection pool")

    _pool = await asyncpg.create_pool(
        dsn=settings.database_dsn,
        min_size=settings.pg_pool_min,
        max_size=settings.pg_pool_max,
        timeout=settings.pg_connect_timeout,
        command_timeout=30,
        server_settings={
            "application_name": "jobdispatch",
        },
    )

    logger.info("Connection pool created: min=%d, max=%d", settings.pg_pool_min, settings.pg_pool_max)


async def close_pool() -> None:
    """Close connection pool on shutdown"""
    global _pool

    if _pool is None:
        return

    logger.info("Closing connection pool")
    await _pool.close()
    _pool = None
    logger.info("Connection pool closed")


@asynccontextmanager
async def db_conn(autocommit: bool = True) -> AsyncIterator[asyncpg.Connection]:
    """
    Get database connection from pool.

    Usage:
        async with db_conn() as conn:
            rows = await conn.fetch("SELECT * FROM driver_notifications WHERE driver_id = $1", driver_id)

    Args:
        autocommit: If True (default), no explicit transaction. If False, the
            block runs in a transaction that commits on exit and rolls back on error.
    """
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")

    conn = await _pool.acquire()

    try:
        if autocommit:
            yield conn
        else:
            async with conn.transaction():
                yield conn
    finally:
        await _pool.release(conn)


def get_pool() -> asyncpg.Pool:
    """Get the connection pool directly (health checks)"""
    if _pool is None:
        raise RuntimeError("Connection pool not initialized")
    return _pool
