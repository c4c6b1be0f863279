from unittest.mock import AsyncMock, patch

import pytest
from psycopg_pool import PoolTimeout

from statement_worker.config.settings import Settings
from statement_worker.database.connection import Database, build_conninfo
from statement_worker.database.exceptions import StoreUnavailableError


class TestBuildConninfo:
    def test_uses_db_settings(self) -> None:
        settings = Settings(
            db_host="db", db_port=6543, db_database="stmts", db_username="u", db_password="p"
        )
        assert build_conninfo(settings) == "host=db port=6543 dbname=stmts user=u password=p"


class TestDatabase:
    async def test_connection_before_open_raises(self) -> None:
        database = Database(Settings())
        with pytest.raises(RuntimeError, match="not opened"):
            async with database.connection():
                pass

    async def test_open_timeout_becomes_store_unavailable(self) -> None:
        with patch("statement_worker.database.connection.AsyncConnectionPool") as pool_cls:
            pool = pool_cls.return_value
            pool.open = AsyncMock(side_effect=PoolTimeout("no connection"))
            pool.close = AsyncMock()
            database = Database(Settings())

            with pytest.raises(StoreUnavailableError, match="Database unavailable"):
                await database.open(timeout=0.1)

        pool.close.assert_awaited_once()

    async def test_close_without_open_is_noop(self) -> None:
        await Database(Settings()).close()
