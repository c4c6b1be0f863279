from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class DocumentChunk:
    """A bounded slice of a document's text, keyed by (filename, chunk_index)."""

    filename: str
    chunk_index: int
    text_content: str
    file_type: str
    upload_date: datetime

    @property
    def chunk_size(self) -> int:
        return len(self.text_content)


@dataclass(frozen=True)
class IntakeResult:
    """Outcome of submitting a document's text for background processing."""

    stored: bool
    chunk_count: int
    reason: str
