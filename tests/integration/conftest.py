import os
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone

import pytest
import pytest_asyncio

from statement_worker.config.settings import Settings
from statement_worker.database.connection import Database
from statement_worker.database.exceptions import StoreUnavailableError
from statement_worker.database.repositories.chunk_repository import ChunkRepository
from statement_worker.database.repositories.job_repository import JobRepository
from statement_worker.database.repositories.statement_repository import StatementRepository
from statement_worker.ingestion.chunker import chunk_text
from statement_worker.ingestion.models import DocumentChunk

UPLOAD_DATE = datetime(2024, 4, 1, tzinfo=timezone.utc)


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "statements_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest_asyncio.fixture
async def database(test_settings: Settings) -> AsyncGenerator[Database, None]:
    db = Database(test_settings)
    try:
        await db.open(timeout=5.0)
    except StoreUnavailableError as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to point at one.")
    try:
        await db.initialize_schema()
        async with db.connection() as conn:
            await conn.execute(
                "TRUNCATE document_chunks, processing_jobs, statements RESTART IDENTITY CASCADE"
            )
            await conn.commit()
        yield db
    finally:
        await db.close()


@pytest.fixture
def job_repo(database: Database) -> JobRepository:
    return JobRepository(database, default_max_retries=3)


@pytest.fixture
def chunk_repo(database: Database) -> ChunkRepository:
    return ChunkRepository(database)


@pytest.fixture
def statement_repo(database: Database) -> StatementRepository:
    return StatementRepository(database)


def _make_chunks(filename: str, length: int = 7000) -> list[DocumentChunk]:
    lines = (
        f"2024-04-{day % 28 + 1:02d} Purchase {day:04d} 12.50\n"
        for day in range(length // 20 + 1)
    )
    return chunk_text("".join(lines)[:length], filename, "pdf", UPLOAD_DATE)


@pytest.fixture
def make_chunks() -> Callable[..., list[DocumentChunk]]:
    return _make_chunks


@pytest_asyncio.fixture
async def queued_job(job_repo: JobRepository, chunk_repo: ChunkRepository) -> str:
    """A pending job with its chunks stored, as intake leaves it."""
    filename = "april.pdf"
    chunks = _make_chunks(filename)
    await job_repo.create_or_resume_job(filename, "pdf", UPLOAD_DATE, len(chunks))
    await chunk_repo.store_chunks(filename, chunks)
    return filename
