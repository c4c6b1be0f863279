from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class JobRecord:
    """Represents a row from the processing_jobs table."""

    filename: str
    file_type: str
    upload_date: datetime
    status: JobStatus
    total_chunks: int = 0
    retry_count: int = 0
    max_retries: int = 3
    error_message: str | None = None
    processed_at: datetime | None = None
    last_retry_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    id: int | None = None

    @property
    def retry_budget(self) -> int:
        return max(0, self.max_retries - self.retry_count)

    @property
    def is_retry_eligible(self) -> bool:
        """Failed and still under its retry budget."""
        return self.status == JobStatus.FAILED and self.retry_count < self.max_retries

    @property
    def retries_exhausted(self) -> bool:
        """Failed with no retry budget left (terminal until an admin override)."""
        return self.status == JobStatus.FAILED and self.retry_count >= self.max_retries


@dataclass(frozen=True)
class JobStatusSummary:
    """Counts of jobs per status, with failed jobs split by retry eligibility."""

    total: int = 0
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0
    retry_eligible: int = 0
    max_retries_exceeded: int = 0


@dataclass(frozen=True)
class ChunkStatistics:
    total_chunks: int = 0
    total_files: int = 0
    average_chunk_size: int = 0
    total_text_size: int = 0


@dataclass
class StatementRecord:
    """Represents a row from the statements table."""

    id: int
    date: str
    description: str
    amount: float
    type: str
    source: str
    created_at: datetime | None = None
