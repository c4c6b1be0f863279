from collections.abc import Sequence

from psycopg.rows import dict_row

from statement_worker.database.connection import Database
from statement_worker.database.models import StatementRecord
from statement_worker.extraction.models import TransactionRow
from statement_worker.logging.logger import Log

BACKGROUND_SOURCE = "background_processed"


class StatementRepository:
    """Database operations for the statements table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def save(self, rows: Sequence[TransactionRow], source: str) -> int:
        """Insert transaction rows tagged with source in one transaction.

        Returns:
            Number of rows inserted.
        """
        if not rows:
            return 0
        async with self._db.transaction() as conn:
            async with conn.cursor() as cur:
                await cur.executemany(
                    """
                    INSERT INTO statements (date, description, amount, type, source)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    [
                        (row.date, row.description, row.amount, row.type, source)
                        for row in rows
                    ],
                )
        Log.info(f"Saved {len(rows)} statements", source=source)
        return len(rows)

    async def find_by_source(self, source: str) -> list[StatementRecord]:
        async with self._db.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    """
                    SELECT id, date, description, amount, type, source, created_at
                    FROM statements
                    WHERE source = %s
                    ORDER BY id ASC
                    """,
                    (source,),
                )
                rows = await cur.fetchall()

        return [
            StatementRecord(
                id=row["id"],
                date=row["date"],
                description=row["description"],
                amount=row["amount"],
                type=row["type"],
                source=row["source"],
                created_at=row["created_at"],
            )
            for row in rows
        ]
