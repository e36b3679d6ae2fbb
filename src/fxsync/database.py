"""
fxsync Database Connection

Global asyncpg pool shared by the repositories.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Iterable

import asyncpg
from asyncpg import Connection, Pool

from fxsync.config import get_settings

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS currencies (
    id SERIAL PRIMARY KEY,
    code VARCHAR(3) NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS exchange_rates (
    id SERIAL PRIMARY KEY,
    source_currency_id INTEGER NOT NULL REFERENCES currencies (id),
    target_currency_id INTEGER NOT NULL REFERENCES currencies (id),
    ratio DOUBLE PRECISION NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    UNIQUE (source_currency_id, target_currency_id)
);
"""

# Global connection pool
_pool: Pool | None = None


async def create_pool() -> Pool:
    """Create database connection pool."""
    settings = get_settings()

    pool = await asyncpg.create_pool(
        host=settings.database_host,
        port=settings.database_port,
        database=settings.database_name,
        user=settings.database_user,
        password=settings.database_password,
        min_size=1,
        max_size=5,
        command_timeout=30,
        ssl=settings.database_ssl_mode,
    )

    logger.info(
        f"Database pool created: {settings.database_host}:{settings.database_port}"
        f"/{settings.database_name}"
    )
    return pool


async def get_pool() -> Pool:
    """Get or create database connection pool."""
    global _pool
    if _pool is None:
        _pool = await create_pool()
    return _pool


async def close_pool() -> None:
    """Close database connection pool."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Database pool closed")


@asynccontextmanager
async def get_connection() -> AsyncGenerator[Connection, None]:
    """Get database connection from pool."""
    pool = await get_pool()
    async with pool.acquire() as connection:
        yield connection


async def ensure_schema(currency_codes: Iterable[str] = ()) -> None:
    """Create the tables if missing and register the given currency codes."""
    async with get_connection() as conn:
        async with conn.transaction():
            await conn.execute(SCHEMA_SQL)
            codes = [(code.strip().upper(),) for code in currency_codes if code.strip()]
            if codes:
                await conn.executemany(
                    "INSERT INTO currencies (code) VALUES ($1) ON CONFLICT (code) DO NOTHING",
                    codes
                )
    logger.info("Database schema ready")
