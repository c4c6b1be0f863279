class StoreError(Exception):
    """Base exception for job, chunk and statement store errors."""


class StoreUnavailableError(StoreError):
    """Raised when the database cannot be reached or a connection is lost."""


class JobNotFoundError(StoreError):
    """Raised when no processing job exists for a filename."""


class JobStateError(StoreError):
    """Raised when a status transition is not allowed from the job's current status."""


class JobInProgressError(JobStateError):
    """Raised when an administrative action targets a job that is processing."""
