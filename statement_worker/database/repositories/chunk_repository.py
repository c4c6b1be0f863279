from collections.abc import Sequence
from typing import Any

import psycopg
from psycopg.rows import dict_row

from statement_worker.database.connection import Database
from statement_worker.database.models import ChunkStatistics
from statement_worker.ingestion.models import DocumentChunk


class ChunkRepository:
    """Database operations for the document_chunks table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def store_chunks(
        self,
        filename: str,
        chunks: Sequence[DocumentChunk],
        conn: psycopg.AsyncConnection[Any] | None = None,
    ) -> int:
        """Replace every chunk stored for filename with the given set.

        Runs inside the caller's transaction when conn is given, otherwise in
        its own, so readers never see a mix of old and new chunks.

        Returns:
            Number of chunks written.
        """
        if conn is not None:
            return await self._replace_chunks(conn, filename, chunks)
        async with self._db.transaction() as tx_conn:
            return await self._replace_chunks(tx_conn, filename, chunks)

    async def _replace_chunks(
        self,
        conn: psycopg.AsyncConnection[Any],
        filename: str,
        chunks: Sequence[DocumentChunk],
    ) -> int:
        for chunk in chunks:
            if chunk.filename != filename:
                raise ValueError(
                    f"Chunk {chunk.chunk_index} belongs to '{chunk.filename}', not '{filename}'"
                )
        async with conn.cursor() as cur:
            await cur.execute(
                "DELETE FROM document_chunks WHERE filename = %s",
                (filename,),
            )
            if chunks:
                await cur.executemany(
                    """
                    INSERT INTO document_chunks
                    (filename, chunk_index, text_content, file_type, upload_date, chunk_size)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    """,
                    [
                        (
                            chunk.filename,
                            chunk.chunk_index,
                            chunk.text_content,
                            chunk.file_type,
                            chunk.upload_date,
                            chunk.chunk_size,
                        )
                        for chunk in chunks
                    ],
                )
        return len(chunks)

    async def get_chunks(self, filename: str) -> list[DocumentChunk]:
        """Return chunks for filename ordered by chunk_index. Empty list if none."""
        async with self._db.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    """
                    SELECT filename, chunk_index, text_content, file_type, upload_date
                    FROM document_chunks
                    WHERE filename = %s
                    ORDER BY chunk_index ASC
                    """,
                    (filename,),
                )
                rows = await cur.fetchall()

        return [
            DocumentChunk(
                filename=row["filename"],
                chunk_index=row["chunk_index"],
                text_content=row["text_content"],
                file_type=row["file_type"],
                upload_date=row["upload_date"],
            )
            for row in rows
        ]

    async def delete_chunks(self, filename: str) -> int:
        """Delete all chunks for filename. Returns 0 when there were none."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "DELETE FROM document_chunks WHERE filename = %s",
                (filename,),
            )
            deleted = cur.rowcount
            await conn.commit()
        return max(deleted, 0)

    async def get_statistics(self) -> ChunkStatistics:
        async with self._db.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    """
                    SELECT COUNT(*) AS total_chunks,
                           COUNT(DISTINCT filename) AS total_files,
                           COALESCE(AVG(chunk_size), 0) AS average_chunk_size,
                           COALESCE(SUM(chunk_size), 0) AS total_text_size
                    FROM document_chunks
                    """
                )
                row = await cur.fetchone()

        if row is None:
            return ChunkStatistics()
        return ChunkStatistics(
            total_chunks=int(row["total_chunks"]),
            total_files=int(row["total_files"]),
            average_chunk_size=round(float(row["average_chunk_size"])),
            total_text_size=int(row["total_text_size"]),
        )
