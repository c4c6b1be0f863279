from unittest.mock import AsyncMock, MagicMock

import pytest
from fakes import InMemoryJobRepository, RecordingSleep

from statement_worker.database.models import JobStatus
from statement_worker.database.repositories.job_repository import JobRepository
from statement_worker.worker.retry import RetryController


def _make_controller(
    job_repo: InMemoryJobRepository, sleep: RecordingSleep | None = None
) -> RetryController:
    return RetryController(
        job_repo,  # type: ignore[arg-type]
        backoff_base_seconds=1.0,
        backoff_max_seconds=30.0,
        sleep=sleep or RecordingSleep(),
    )


class TestBackoff:
    @pytest.mark.parametrize(
        ("retry_count", "expected"),
        [(0, 0.0), (1, 1.0), (2, 2.0), (3, 4.0), (5, 16.0), (6, 30.0), (20, 30.0)],
    )
    def test_exponential_delay_with_cap(
        self, job_repo: InMemoryJobRepository, retry_count: int, expected: float
    ) -> None:
        assert _make_controller(job_repo).backoff_seconds(retry_count) == expected

    async def test_first_attempt_does_not_sleep(
        self, job_repo: InMemoryJobRepository, recording_sleep: RecordingSleep
    ) -> None:
        job = job_repo.add("fresh.pdf")
        await _make_controller(job_repo, recording_sleep).apply_backoff(job)
        assert recording_sleep.delays == []

    async def test_retry_sleeps_for_backoff(
        self, job_repo: InMemoryJobRepository, recording_sleep: RecordingSleep
    ) -> None:
        job = job_repo.add("retried.pdf", retry_count=3)
        await _make_controller(job_repo, recording_sleep).apply_backoff(job)
        assert recording_sleep.delays == [4.0]


class TestAttemptAutoRetry:
    async def test_requeues_job_with_budget(self, job_repo: InMemoryJobRepository) -> None:
        job_repo.add("a.pdf", status=JobStatus.FAILED, retry_count=1)

        assert await _make_controller(job_repo).attempt_auto_retry("a.pdf") is True

        job = job_repo.jobs["a.pdf"]
        assert job.status == JobStatus.PENDING
        assert job.retry_count == 2
        assert job.last_retry_at is not None

    async def test_leaves_exhausted_job_failed(self, job_repo: InMemoryJobRepository) -> None:
        job_repo.add("a.pdf", status=JobStatus.FAILED, retry_count=3, error_message="boom")

        assert await _make_controller(job_repo).attempt_auto_retry("a.pdf") is False

        job = job_repo.jobs["a.pdf"]
        assert job.status == JobStatus.FAILED
        assert job.retry_count == 3
        assert job.error_message == "boom"


class TestResetAllFailed:
    async def test_resets_only_eligible_jobs(self, job_repo: InMemoryJobRepository) -> None:
        job_repo.add("eligible.pdf", status=JobStatus.FAILED, retry_count=0)
        job_repo.add("exhausted.pdf", status=JobStatus.FAILED, retry_count=3)
        job_repo.add("done.pdf", status=JobStatus.COMPLETED)

        result = await _make_controller(job_repo).reset_all_failed()

        assert (result.retried, result.skipped) == (1, 0)
        assert job_repo.jobs["eligible.pdf"].status == JobStatus.PENDING
        assert job_repo.jobs["exhausted.pdf"].status == JobStatus.FAILED
        assert job_repo.jobs["done.pdf"].status == JobStatus.COMPLETED

    async def test_counts_jobs_that_changed_underneath_as_skipped(self) -> None:
        repo = MagicMock(spec=JobRepository)
        eligible = InMemoryJobRepository().add("a.pdf", status=JobStatus.FAILED)
        repo.get_retry_eligible_jobs = AsyncMock(return_value=[eligible])
        repo.retry_job = AsyncMock(return_value=False)

        result = await RetryController(repo).reset_all_failed()

        assert (result.retried, result.skipped) == (0, 1)


class TestGetRetryStatus:
    async def test_partitions_failed_jobs(self, job_repo: InMemoryJobRepository) -> None:
        job_repo.add("eligible.pdf", status=JobStatus.FAILED, retry_count=1)
        job_repo.add("exhausted.pdf", status=JobStatus.FAILED, retry_count=3)
        job_repo.add("zero-budget.pdf", status=JobStatus.FAILED, max_retries=0)
        job_repo.add("pending.pdf")

        status = await _make_controller(job_repo).get_retry_status()

        assert [job.filename for job in status.retry_eligible] == ["eligible.pdf"]
        assert sorted(job.filename for job in status.max_retries_exceeded) == [
            "exhausted.pdf",
            "zero-budget.pdf",
        ]
        assert status.total_failed == 3
