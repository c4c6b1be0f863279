from datetime import datetime, timezone

from statement_worker.config.settings import Settings
from statement_worker.database.connection import Database
from statement_worker.database.repositories.chunk_repository import ChunkRepository
from statement_worker.database.repositories.job_repository import JobRepository
from statement_worker.ingestion.chunker import chunk_text, requires_background_processing
from statement_worker.ingestion.models import IntakeResult
from statement_worker.logging.logger import Log


class DocumentIntake:
    """Queues large documents for background processing.

    The job record and its chunks are written in one transaction, so a job
    never advertises more chunks than are stored.
    """

    def __init__(
        self,
        database: Database,
        job_repo: JobRepository,
        chunk_repo: ChunkRepository,
        settings: Settings,
    ) -> None:
        self._db = database
        self._job_repo = job_repo
        self._chunk_repo = chunk_repo
        self._settings = settings

    async def submit(
        self,
        text: str,
        filename: str,
        file_type: str,
        upload_date: datetime | None = None,
    ) -> IntakeResult:
        if not requires_background_processing(text, self._settings.background_threshold_chars):
            Log.info(
                f"Document {filename} is below the background threshold, not queued",
                chars=len(text),
            )
            return IntakeResult(stored=False, chunk_count=0, reason="below_threshold")

        upload_date = upload_date or datetime.now(timezone.utc)
        chunks = chunk_text(
            text,
            filename,
            file_type,
            upload_date,
            chunk_size=self._settings.chunk_size,
            chunk_overlap=self._settings.chunk_overlap,
            min_chunk_size=self._settings.min_chunk_size,
        )
        Log.info(f"Created {len(chunks)} chunks for {filename}", chars=len(text))

        async with self._db.transaction() as conn:
            accepted = await self._job_repo.create_or_resume_job(
                filename, file_type, upload_date, len(chunks), conn=conn
            )
            if accepted:
                await self._chunk_repo.store_chunks(filename, chunks, conn=conn)

        if not accepted:
            existing = await self._job_repo.find_by_filename(filename)
            status = existing.status.value if existing is not None else "unknown"
            return IntakeResult(stored=False, chunk_count=0, reason=f"already_{status}")
        return IntakeResult(stored=True, chunk_count=len(chunks), reason="queued")
