from datetime import datetime
from typing import Any

import psycopg
from psycopg.rows import dict_row

from statement_worker.database.connection import Database
from statement_worker.database.exceptions import (
    JobInProgressError,
    JobNotFoundError,
    JobStateError,
)
from statement_worker.database.models import JobRecord, JobStatus, JobStatusSummary
from statement_worker.logging.logger import Log

_JOB_COLUMNS = """
    id, filename, file_type, upload_date, status, total_chunks, processed_at,
    error_message, retry_count, max_retries, last_retry_at, created_at, updated_at
"""

# Target status -> statuses it may be entered from. Reset to pending is only
# possible through retry_job or a re-upload via create_or_resume_job.
_ALLOWED_SOURCES: dict[JobStatus, tuple[JobStatus, ...]] = {
    JobStatus.PROCESSING: (JobStatus.PENDING,),
    JobStatus.COMPLETED: (JobStatus.PROCESSING,),
    JobStatus.FAILED: (JobStatus.PROCESSING,),
}


def _row_to_job(row: dict[str, Any]) -> JobRecord:
    return JobRecord(
        id=row["id"],
        filename=row["filename"],
        file_type=row["file_type"],
        upload_date=row["upload_date"],
        status=JobStatus(row["status"]),
        total_chunks=row["total_chunks"],
        processed_at=row["processed_at"],
        error_message=row["error_message"],
        retry_count=row["retry_count"],
        max_retries=row["max_retries"],
        last_retry_at=row["last_retry_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class JobRepository:
    """Database operations for the processing_jobs table.

    All status changes go through transition_status, retry_job and
    create_or_resume_job; each is a single conditional statement, so the
    retry budget and the state machine hold without extra locking.
    """

    def __init__(self, database: Database, default_max_retries: int = 3) -> None:
        self._db = database
        self._default_max_retries = default_max_retries

    async def create_or_resume_job(
        self,
        filename: str,
        file_type: str,
        upload_date: datetime,
        total_chunks: int,
        conn: psycopg.AsyncConnection[Any] | None = None,
    ) -> bool:
        """Create a pending job, or reset a pending/failed one for a fresh attempt.

        Jobs that are completed or processing are left untouched.

        Returns:
            True if the job was created or reset, False if it was skipped.
        """
        if conn is not None:
            accepted = await self._upsert_job(conn, filename, file_type, upload_date, total_chunks)
        else:
            async with self._db.transaction() as tx_conn:
                accepted = await self._upsert_job(
                    tx_conn, filename, file_type, upload_date, total_chunks
                )

        if accepted:
            Log.info(f"Queued processing job for {filename}", total_chunks=total_chunks)
        else:
            Log.info(f"Job for {filename} is already completed or processing, skipping")
        return accepted

    async def _upsert_job(
        self,
        conn: psycopg.AsyncConnection[Any],
        filename: str,
        file_type: str,
        upload_date: datetime,
        total_chunks: int,
    ) -> bool:
        if total_chunks < 0:
            raise ValueError(f"total_chunks must not be negative, got {total_chunks}")
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO processing_jobs
                (filename, file_type, upload_date, status, total_chunks, max_retries)
                VALUES (%s, %s, %s, 'pending', %s, %s)
                ON CONFLICT (filename) DO UPDATE
                SET file_type = EXCLUDED.file_type,
                    upload_date = EXCLUDED.upload_date,
                    total_chunks = EXCLUDED.total_chunks,
                    status = 'pending',
                    retry_count = 0,
                    error_message = NULL,
                    processed_at = NULL,
                    last_retry_at = NULL,
                    updated_at = NOW()
                WHERE processing_jobs.status IN ('pending', 'failed')
                RETURNING id
                """,
                (filename, file_type, upload_date, total_chunks, self._default_max_retries),
            )
            row = await cur.fetchone()
        return row is not None

    async def find_by_filename(self, filename: str) -> JobRecord | None:
        async with self._db.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    f"SELECT {_JOB_COLUMNS} FROM processing_jobs WHERE filename = %s",
                    (filename,),
                )
                row = await cur.fetchone()
        return _row_to_job(row) if row is not None else None

    async def list_jobs(
        self,
        status: JobStatus | None = None,
        filename: str | None = None,
        newest_first: bool = False,
        limit: int | None = None,
    ) -> list[JobRecord]:
        """List jobs, oldest first for queues or newest first for listings."""
        query = f"SELECT {_JOB_COLUMNS} FROM processing_jobs WHERE TRUE"
        params: list[Any] = []
        if status is not None:
            query += " AND status = %s"
            params.append(JobStatus(status).value)
        if filename is not None:
            query += " AND filename = %s"
            params.append(filename)
        direction = "DESC" if newest_first else "ASC"
        query += f" ORDER BY created_at {direction}, id {direction}"
        if limit is not None:
            query += " LIMIT %s"
            params.append(limit)
        return await self._fetch_jobs(query, params)

    async def get_pending_queue(self) -> list[JobRecord]:
        """Pending jobs, first attempts before retries, then oldest first."""
        return await self._fetch_jobs(
            f"""
            SELECT {_JOB_COLUMNS} FROM processing_jobs
            WHERE status = 'pending'
            ORDER BY retry_count ASC, created_at ASC, id ASC
            """,
            [],
        )

    async def get_retry_eligible_jobs(self) -> list[JobRecord]:
        return await self._fetch_jobs(
            f"""
            SELECT {_JOB_COLUMNS} FROM processing_jobs
            WHERE status = 'failed' AND retry_count < max_retries
            ORDER BY created_at ASC, id ASC
            """,
            [],
        )

    async def get_max_retries_exceeded_jobs(self) -> list[JobRecord]:
        return await self._fetch_jobs(
            f"""
            SELECT {_JOB_COLUMNS} FROM processing_jobs
            WHERE status = 'failed' AND retry_count >= max_retries
            ORDER BY created_at ASC, id ASC
            """,
            [],
        )

    async def _fetch_jobs(self, query: str, params: list[Any]) -> list[JobRecord]:
        async with self._db.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(query, params)
                rows = await cur.fetchall()
        return [_row_to_job(row) for row in rows]

    async def transition_status(
        self,
        filename: str,
        new_status: JobStatus,
        error_message: str | None = None,
    ) -> JobRecord:
        """Move a job along the state machine.

        completed stamps processed_at and clears the error; failed records
        error_message.

        Raises:
            ValueError: if new_status is pending (use retry_job instead).
            JobNotFoundError: if no job exists for filename.
            JobStateError: if the current status does not allow the transition.
        """
        new_status = JobStatus(new_status)
        sources = _ALLOWED_SOURCES.get(new_status)
        if sources is None:
            raise ValueError(
                f"Status '{new_status.value}' cannot be set directly; use retry_job"
            )
        stored_error = error_message if new_status == JobStatus.FAILED else None

        async with self._db.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    f"""
                    UPDATE processing_jobs
                    SET status = %s,
                        processed_at = CASE WHEN %s THEN NOW() ELSE processed_at END,
                        error_message = %s,
                        updated_at = NOW()
                    WHERE filename = %s AND status = ANY(%s)
                    RETURNING {_JOB_COLUMNS}
                    """,
                    (
                        new_status.value,
                        new_status == JobStatus.COMPLETED,
                        stored_error,
                        filename,
                        [source.value for source in sources],
                    ),
                )
                row = await cur.fetchone()
            await conn.commit()

        if row is None:
            current = await self.find_by_filename(filename)
            if current is None:
                raise JobNotFoundError(f"Job {filename} not found")
            raise JobStateError(
                f"Cannot move job {filename} from {current.status.value} to {new_status.value}"
            )
        return _row_to_job(row)

    async def retry_job(self, filename: str) -> bool:
        """Reset a failed job to pending if it still has retry budget.

        Returns:
            True if the job was reset; False (and nothing changed) otherwise.
        """
        async with self._db.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    """
                    UPDATE processing_jobs
                    SET status = 'pending',
                        retry_count = retry_count + 1,
                        last_retry_at = NOW(),
                        error_message = NULL,
                        updated_at = NOW()
                    WHERE filename = %s
                      AND status = 'failed'
                      AND retry_count < max_retries
                    RETURNING retry_count, max_retries
                    """,
                    (filename,),
                )
                row = await cur.fetchone()
            await conn.commit()

        if row is None:
            Log.info(f"Job {filename} is not eligible for retry")
            return False
        Log.info(
            f"Retrying job {filename} (attempt {row['retry_count']}/{row['max_retries']})"
        )
        return True

    async def requeue_stale_processing(self, older_than_seconds: float) -> list[str]:
        """Put processing jobs untouched for older_than_seconds back to pending.

        A batch interrupted by a store outage or a crash leaves its job in
        processing. The retry count is kept; the interruption is not counted
        as a failed attempt.

        Returns:
            Filenames of the requeued jobs.
        """
        if older_than_seconds < 0:
            raise ValueError(f"older_than_seconds must not be negative, got {older_than_seconds}")
        async with self._db.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    """
                    UPDATE processing_jobs
                    SET status = 'pending',
                        error_message = NULL,
                        updated_at = NOW()
                    WHERE status = 'processing'
                      AND updated_at <= NOW() - make_interval(secs => %s)
                    RETURNING filename
                    """,
                    (older_than_seconds,),
                )
                rows = await cur.fetchall()
            await conn.commit()

        filenames = sorted(row["filename"] for row in rows)
        if filenames:
            Log.warning(
                f"Requeued {len(filenames)} stale processing jobs: {', '.join(filenames)}"
            )
        return filenames

    async def set_max_retries(self, filename: str, max_retries: int) -> bool:
        """Override the retry budget of one job. Returns False if the job does not exist."""
        if max_retries < 0:
            raise ValueError(f"max_retries must not be negative, got {max_retries}")
        async with self._db.connection() as conn:
            cur = await conn.execute(
                """
                UPDATE processing_jobs
                SET max_retries = %s, updated_at = NOW()
                WHERE filename = %s
                """,
                (max_retries, filename),
            )
            updated = cur.rowcount
            await conn.commit()
        return updated > 0

    async def delete_job(self, filename: str) -> bool:
        """Delete a job record and any chunks it still owns.

        Raises:
            JobInProgressError: if the job is currently processing.
        """
        async with self._db.connection() as conn:
            cur = await conn.execute(
                """
                DELETE FROM processing_jobs
                WHERE filename = %s AND status <> 'processing'
                """,
                (filename,),
            )
            deleted = cur.rowcount
            await conn.commit()

        if deleted > 0:
            return True
        current = await self.find_by_filename(filename)
        if current is None:
            return False
        raise JobInProgressError(f"Cannot delete job {filename} while it is processing")

    async def get_status_summary(self) -> JobStatusSummary:
        async with self._db.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    """
                    SELECT COUNT(*) AS total,
                           COUNT(*) FILTER (WHERE status = 'pending') AS pending,
                           COUNT(*) FILTER (WHERE status = 'processing') AS processing,
                           COUNT(*) FILTER (WHERE status = 'completed') AS completed,
                           COUNT(*) FILTER (WHERE status = 'failed') AS failed,
                           COUNT(*) FILTER (
                               WHERE status = 'failed' AND retry_count < max_retries
                           ) AS retry_eligible,
                           COUNT(*) FILTER (
                               WHERE status = 'failed' AND retry_count >= max_retries
                           ) AS max_retries_exceeded
                    FROM processing_jobs
                    """
                )
                row = await cur.fetchone()

        if row is None:
            return JobStatusSummary()
        return JobStatusSummary(**{key: int(value) for key, value in row.items()})
