import asyncio
from dataclasses import dataclass, field
from enum import Enum

from statement_worker.database.exceptions import JobStateError, StoreUnavailableError
from statement_worker.database.models import JobRecord, JobStatus
from statement_worker.database.repositories.chunk_repository import ChunkRepository
from statement_worker.database.repositories.job_repository import JobRepository
from statement_worker.database.repositories.statement_repository import (
    BACKGROUND_SOURCE,
    StatementRepository,
)
from statement_worker.extraction.base import BaseTransactionExtractor
from statement_worker.logging.logger import Log
from statement_worker.worker.exceptions import NoChunksFoundError
from statement_worker.worker.retry import RetryAllResult, RetryController


class JobOutcome(str, Enum):
    COMPLETED = "completed"
    RETRY_QUEUED = "retry_queued"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class BatchResult:
    """What one process_all_pending pass did, in processing order."""

    outcomes: list[tuple[str, JobOutcome]] = field(default_factory=list)
    already_running: bool = False

    def count(self, outcome: JobOutcome) -> int:
        return sum(1 for _, recorded in self.outcomes if recorded == outcome)

    @property
    def filenames(self) -> list[str]:
        return [filename for filename, _ in self.outcomes]


class JobProcessor:
    """Drives pending jobs through processing -> completed | failed.

    Jobs run strictly one at a time. Only one batch runs at a time per
    processor: a trigger that arrives while a batch is in flight returns
    immediately instead of interleaving with it.
    """

    def __init__(
        self,
        *,
        job_repo: JobRepository,
        chunk_repo: ChunkRepository,
        statement_repo: StatementRepository,
        extractor: BaseTransactionExtractor,
        retry_controller: RetryController,
        stale_after_seconds: float = 900.0,
    ) -> None:
        self._job_repo = job_repo
        self._chunk_repo = chunk_repo
        self._statement_repo = statement_repo
        self._extractor = extractor
        self._retry_controller = retry_controller
        self._stale_after_seconds = stale_after_seconds
        self._batch_lock = asyncio.Lock()

    @property
    def is_busy(self) -> bool:
        return self._batch_lock.locked()

    async def process_all_pending(self) -> BatchResult:
        """Process every pending job, first attempts before retries.

        Jobs left in processing by an interrupted batch are requeued first,
        once they are older than stale_after_seconds. A failing job never
        stops the batch. Store outages propagate.
        """
        if self._batch_lock.locked():
            Log.info("Background processing already running, skipping trigger")
            return BatchResult(already_running=True)

        async with self._batch_lock:
            result = BatchResult()
            await self._job_repo.requeue_stale_processing(self._stale_after_seconds)
            queue = await self._job_repo.get_pending_queue()
            if not queue:
                Log.info("No pending jobs to process")
                return result

            Log.info(f"Found {len(queue)} pending jobs")
            for job in queue:
                await self._retry_controller.apply_backoff(job)
                try:
                    outcome = await self.process_job(job)
                except StoreUnavailableError:
                    raise
                except Exception as exc:
                    Log.error(f"Unexpected error while processing job {job.filename}: {exc}")
                    outcome = JobOutcome.FAILED
                result.outcomes.append((job.filename, outcome))

            Log.info(
                "Completed background processing of pending jobs",
                completed=result.count(JobOutcome.COMPLETED),
                retry_queued=result.count(JobOutcome.RETRY_QUEUED),
                failed=result.count(JobOutcome.FAILED),
                skipped=result.count(JobOutcome.SKIPPED),
            )
            return result

    async def process_job(self, job: JobRecord) -> JobOutcome:
        """Run one job through extraction, persistence and chunk cleanup."""
        Log.info(f"Processing job for {job.filename}", retry_count=job.retry_count)
        try:
            await self._job_repo.transition_status(job.filename, JobStatus.PROCESSING)
        except JobStateError as exc:
            Log.warning(f"Skipping job {job.filename}: {exc}")
            return JobOutcome.SKIPPED

        try:
            saved = await self._extract_and_save(job)
        except StoreUnavailableError:
            raise
        except Exception as exc:
            return await self._handle_failure(job, exc)

        await self._cleanup_chunks(job.filename)
        await self._job_repo.transition_status(job.filename, JobStatus.COMPLETED)
        Log.info(f"Job {job.filename} completed", transactions=saved)
        return JobOutcome.COMPLETED

    async def _extract_and_save(self, job: JobRecord) -> int:
        chunks = await self._chunk_repo.get_chunks(job.filename)
        if not chunks:
            raise NoChunksFoundError(f"No chunks found for file {job.filename}")
        Log.info(f"Found {len(chunks)} chunks for {job.filename}")

        transactions = await self._extractor.extract(chunks)
        if not transactions:
            Log.info(f"No transactions extracted from {job.filename}")
            return 0
        return await self._statement_repo.save(transactions, BACKGROUND_SOURCE)

    async def _cleanup_chunks(self, filename: str) -> None:
        try:
            deleted = await self._chunk_repo.delete_chunks(filename)
        except Exception as exc:
            Log.warning(f"Error cleaning up chunks for {filename}, continuing: {exc}")
            return
        Log.info(f"Cleaned up {deleted} chunks for {filename}")

    async def _handle_failure(self, job: JobRecord, exc: Exception) -> JobOutcome:
        message = str(exc) or type(exc).__name__
        Log.error(f"Job {job.filename} failed: {message}")
        await self._job_repo.transition_status(
            job.filename, JobStatus.FAILED, error_message=message
        )
        if await self._retry_controller.attempt_auto_retry(job.filename):
            return JobOutcome.RETRY_QUEUED
        return JobOutcome.FAILED

    async def retry_all_failed_jobs(self) -> RetryAllResult:
        """Reset every retry-eligible failed job and process them right away."""
        result = await self._retry_controller.reset_all_failed()
        if result.retried > 0:
            await self.process_all_pending()
        return result
