from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import psycopg
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from statement_worker.config.settings import Settings
from statement_worker.database.exceptions import StoreUnavailableError

_SCHEMA_PATH = Path(__file__).parent / "schema.sql"


def build_conninfo(settings: Settings) -> str:
    return (
        f"host={settings.db_host} "
        f"port={settings.db_port} "
        f"dbname={settings.db_database} "
        f"user={settings.db_username} "
        f"password={settings.db_password}"
    )


class Database:
    """Owns the async connection pool shared by the repositories."""

    def __init__(self, settings: Settings) -> None:
        self._conninfo = build_conninfo(settings)
        self._max_size = settings.db_pool_max_size
        self._pool: AsyncConnectionPool | None = None

    async def open(self, timeout: float = 30.0) -> None:
        """Open the pool and wait until at least one connection is usable."""
        if self._pool is not None:
            return
        pool = AsyncConnectionPool(
            self._conninfo, min_size=1, max_size=self._max_size, open=False
        )
        try:
            await pool.open(wait=True, timeout=timeout)
        except PoolTimeout as exc:
            await pool.close()
            raise StoreUnavailableError(f"Database unavailable: {exc}") from exc
        self._pool = pool

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection[Any], None]:
        """Yield a pooled connection. Caller manages commit/rollback."""
        if self._pool is None:
            raise RuntimeError("Database not opened. Call Database.open() first.")
        try:
            async with self._pool.connection() as conn:
                yield conn
        except (psycopg.OperationalError, PoolTimeout) as exc:
            raise StoreUnavailableError(f"Database unavailable: {exc}") from exc

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[psycopg.AsyncConnection[Any], None]:
        """Yield a connection inside a transaction committed on clean exit."""
        async with self.connection() as conn:
            async with conn.transaction():
                yield conn

    async def initialize_schema(self) -> None:
        """Create tables, indexes and triggers if they do not exist."""
        ddl = _SCHEMA_PATH.read_text(encoding="utf-8")
        async with self.connection() as conn:
            await conn.execute(ddl)
            await conn.commit()
