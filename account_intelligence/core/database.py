"""
Async PostgreSQL connection pool module.

This module owns the single asyncpg connection pool shared by the repository
layer. All reads of orders, accounts and catalog data, and the few
append-only writes (health snapshots, sample ledger, tasting feedback), flow
through this pool.

Key Components:
- Global connection pool singleton (_pool)
- init_db(): Initialize the connection pool at application startup
- get_db_pool(): Get the pool instance (initializes if needed)
- close_db(): Gracefully close the pool at application shutdown
- execute_query / execute_query_one / execute_command: convenience helpers
- transaction(): one pooled connection inside a transaction, for writes
  that must read and insert atomically

Connection Pool Configuration (from Settings):
- min_size: db_pool_min_size (default 2)
- max_size: db_pool_max_size (default 10)
- command_timeout: db_command_timeout (default 60 seconds)

The pool size is the hard ceiling for tenant-wide fan-out; see
account_intelligence.core.concurrency for how batch computations stay under it.

Usage:
    # At application startup (in FastAPI lifespan)
    await init_db()

    # In the repository
    rows = await execute_query("SELECT * FROM customers WHERE \"tenantId\" = $1", tenant_id)

    # At application shutdown
    await close_db()
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

import asyncpg
from asyncpg import Pool

from account_intelligence.core.config import get_settings

logger = logging.getLogger(__name__)


# =============================================================================
# Global Pool Singleton
# =============================================================================

# None until init_db() is called
_pool: Optional[Pool] = None


# =============================================================================
# Pool Lifecycle Functions
# =============================================================================

async def init_db() -> Pool:
    """
    Create the shared pool sized from Settings. Calling it again returns
    the existing pool.

    Raises:
        asyncpg.PostgresError: If connection to the database fails.
        OSError: If the database host is unreachable.
    """
    global _pool

    if _pool is None:
        settings = get_settings()
        _pool = await asyncpg.create_pool(
            dsn=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=settings.db_command_timeout,
            server_settings={"application_name": "account-intelligence"},
        )
        logger.info(
            f"asyncpg pool ready (min={settings.db_pool_min_size}, max={settings.db_pool_max_size})"
        )

    return _pool


async def get_db_pool() -> Pool:
    """
    Get the database connection pool, initializing if needed.

    Prefer calling init_db() explicitly at startup; lazy initialization adds
    latency to the first request that needs the database.

    Returns:
        Pool: The asyncpg connection pool instance.
    """
    global _pool

    if _pool is None:
        await init_db()

    assert _pool is not None, "Pool should be initialized after init_db()"

    return _pool


async def close_db() -> None:
    """
    Close the database connection pool gracefully.

    Waits for active queries to complete, then resets the singleton so a
    later get_db_pool() creates a fresh pool. Safe to call more than once.
    """
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None


# =============================================================================
# Query Helpers
# =============================================================================

async def execute_query(query: str, *args: Any) -> List[asyncpg.Record]:
    """
    Execute a query and return all rows.

    Args:
        query: SQL query string with $1, $2, ... placeholders.
        *args: Query parameters.

    Returns:
        List[asyncpg.Record]: Matching rows (empty list if none).

    Raises:
        asyncpg.PostgresError: If the query execution fails.
    """
    pool = await get_db_pool()

    async with pool.acquire() as conn:
        return await conn.fetch(query, *args)


async def execute_query_one(query: str, *args: Any) -> Optional[asyncpg.Record]:
    """
    Execute a query and return a single row or None.

    Args:
        query: SQL query string with $1, $2, ... placeholders.
        *args: Query parameters.

    Returns:
        Optional[asyncpg.Record]: The first matching row, or None.
    """
    pool = await get_db_pool()

    async with pool.acquire() as conn:
        return await conn.fetchrow(query, *args)


async def execute_command(query: str, *args: Any) -> str:
    """
    Execute a command (INSERT/UPDATE) and return the status string.

    Returns:
        str: The command status string (e.g., 'INSERT 0 1').
    """
    pool = await get_db_pool()

    async with pool.acquire() as conn:
        return await conn.execute(query, *args)


@asynccontextmanager
async def transaction() -> AsyncIterator[asyncpg.Connection]:
    """
    Yield a pooled connection with an open transaction.

    The transaction commits when the block exits normally and rolls back
    when it raises; transaction-scoped advisory locks are released either way.

    Usage:
        async with transaction() as conn:
            count = await conn.fetchval(query, tenant_id)
    """
    pool = await get_db_pool()

    async with pool.acquire() as conn:
        async with conn.transaction():
            yield conn
