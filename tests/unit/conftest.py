import pytest
from fakes import (
    InMemoryChunkRepository,
    InMemoryJobRepository,
    InMemoryStatementRepository,
    RecordingSleep,
)


@pytest.fixture
def job_repo() -> InMemoryJobRepository:
    return InMemoryJobRepository()


@pytest.fixture
def chunk_repo() -> InMemoryChunkRepository:
    return InMemoryChunkRepository()


@pytest.fixture
def statement_repo() -> InMemoryStatementRepository:
    return InMemoryStatementRepository()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
