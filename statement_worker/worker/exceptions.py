class ProcessorError(Exception):
    """Base exception for job processing errors."""


class NoChunksFoundError(ProcessorError):
    """Raised when a job has no stored chunks to extract from."""
