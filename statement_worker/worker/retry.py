import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from statement_worker.database.models import JobRecord, JobStatus
from statement_worker.database.repositories.job_repository import JobRepository
from statement_worker.logging.logger import Log

SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryAllResult:
    retried: int = 0
    skipped: int = 0


@dataclass(frozen=True)
class RetryStatus:
    """Failed jobs split into those that may still be retried and those that may not."""

    retry_eligible: list[JobRecord] = field(default_factory=list)
    max_retries_exceeded: list[JobRecord] = field(default_factory=list)

    @property
    def total_failed(self) -> int:
        return len(self.retry_eligible) + len(self.max_retries_exceeded)


class RetryController:
    """Decides when failed jobs become pending again and how long retries wait."""

    def __init__(
        self,
        job_repo: JobRepository,
        *,
        backoff_base_seconds: float = 1.0,
        backoff_max_seconds: float = 30.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._job_repo = job_repo
        self._backoff_base_seconds = backoff_base_seconds
        self._backoff_max_seconds = backoff_max_seconds
        self._sleep = sleep

    async def attempt_auto_retry(self, filename: str) -> bool:
        """Re-queue a job that was just marked failed, if its budget allows."""
        requeued = await self._job_repo.retry_job(filename)
        if requeued:
            Log.warning(f"Job {filename} automatically queued for retry")
        else:
            Log.error(f"Job {filename} failed and has no retry budget left")
        return requeued

    def backoff_seconds(self, retry_count: int) -> float:
        """Delay before re-running a job on its retry_count-th retry. Zero for first attempts."""
        if retry_count <= 0:
            return 0.0
        delay = self._backoff_base_seconds * (2 ** (retry_count - 1))
        return min(delay, self._backoff_max_seconds)

    async def apply_backoff(self, job: JobRecord) -> None:
        delay = self.backoff_seconds(job.retry_count)
        if delay <= 0:
            return
        Log.info(
            f"Applying backoff of {delay:.1f}s before retry {job.retry_count} of {job.filename}"
        )
        await self._sleep(delay)

    async def reset_all_failed(self) -> RetryAllResult:
        """Reset every failed job that is still under its retry budget."""
        retried = 0
        skipped = 0
        for job in await self._job_repo.get_retry_eligible_jobs():
            if await self._job_repo.retry_job(job.filename):
                retried += 1
            else:
                skipped += 1
        Log.info(f"Retry operation completed: {retried} jobs retried, {skipped} jobs skipped")
        return RetryAllResult(retried=retried, skipped=skipped)

    async def get_retry_status(self) -> RetryStatus:
        failed = await self._job_repo.list_jobs(status=JobStatus.FAILED)
        return RetryStatus(
            retry_eligible=[job for job in failed if job.is_retry_eligible],
            max_retries_exceeded=[job for job in failed if job.retries_exhausted],
        )
