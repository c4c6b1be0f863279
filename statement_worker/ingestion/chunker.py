"""Splits document text into overlapping, fixed-size chunks."""

from collections.abc import Iterator
from datetime import datetime

from statement_worker.ingestion.models import DocumentChunk

DEFAULT_CHUNK_SIZE = 3000
DEFAULT_CHUNK_OVERLAP = 200
DEFAULT_MIN_CHUNK_SIZE = 100
DEFAULT_BACKGROUND_THRESHOLD = 4096


def requires_background_processing(
    text: str, threshold: int = DEFAULT_BACKGROUND_THRESHOLD
) -> bool:
    """Documents at or below the threshold go through the direct extraction path."""
    return len(text) > threshold


def chunk_text(
    text: str,
    filename: str,
    file_type: str,
    upload_date: datetime,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    min_chunk_size: int = DEFAULT_MIN_CHUNK_SIZE,
) -> list[DocumentChunk]:
    """Split text into windows of chunk_size characters overlapping by chunk_overlap.

    A non-final window with fewer than min_chunk_size non-whitespace characters
    is not emitted on its own; the next emitted chunk starts where it started.
    The final window is always emitted. Indexes are sequential from 0.

    Raises:
        ValueError: if the window parameters are inconsistent.
    """
    _validate_window(chunk_size, chunk_overlap, min_chunk_size)
    if not text:
        return []

    chunks: list[DocumentChunk] = []
    carry_start: int | None = None
    for start, end in _windows(len(text), chunk_size, chunk_size - chunk_overlap):
        is_final = end == len(text)
        if not is_final and len(text[start:end].strip()) < min_chunk_size:
            if carry_start is None:
                carry_start = start
            continue
        chunk_start = carry_start if carry_start is not None else start
        carry_start = None
        chunks.append(
            DocumentChunk(
                filename=filename,
                chunk_index=len(chunks),
                text_content=text[chunk_start:end],
                file_type=file_type,
                upload_date=upload_date,
            )
        )
    return chunks


def _windows(length: int, size: int, step: int) -> Iterator[tuple[int, int]]:
    start = 0
    while True:
        end = min(start + size, length)
        yield start, end
        if end >= length:
            return
        start += step


def _validate_window(chunk_size: int, chunk_overlap: int, min_chunk_size: int) -> None:
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if chunk_overlap < 0:
        raise ValueError(f"chunk_overlap must not be negative, got {chunk_overlap}")
    if chunk_overlap >= chunk_size:
        raise ValueError(
            f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})"
        )
    if min_chunk_size < 0:
        raise ValueError(f"min_chunk_size must not be negative, got {min_chunk_size}")
