import argparse
import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from statement_worker.config.settings import Settings
from statement_worker.database.connection import Database
from statement_worker.database.exceptions import JobInProgressError, StoreUnavailableError
from statement_worker.database.models import JobRecord, JobStatus
from statement_worker.database.repositories.chunk_repository import ChunkRepository
from statement_worker.database.repositories.job_repository import JobRepository
from statement_worker.database.repositories.statement_repository import StatementRepository
from statement_worker.documents.exceptions import DocumentReadError
from statement_worker.documents.factory import PdfExtractorFactory
from statement_worker.documents.loader import load_document_text
from statement_worker.extraction import ExtractorFactory
from statement_worker.ingestion.intake import DocumentIntake
from statement_worker.logging.logger import Log
from statement_worker.worker.job_processor import JobOutcome, JobProcessor
from statement_worker.worker.retry import RetryController
from statement_worker.worker.scheduler import Scheduler


@dataclass
class Application:
    """Everything a command needs, wired from one Settings instance."""

    settings: Settings
    database: Database
    job_repo: JobRepository
    chunk_repo: ChunkRepository
    statement_repo: StatementRepository
    retry_controller: RetryController
    processor: JobProcessor
    scheduler: Scheduler
    intake: DocumentIntake


def build_application(settings: Settings) -> Application:
    """Build the worker graph. The database pool is not opened here."""
    database = Database(settings)
    job_repo = JobRepository(database, settings.default_max_retries)
    chunk_repo = ChunkRepository(database)
    statement_repo = StatementRepository(database)
    retry_controller = RetryController(
        job_repo,
        backoff_base_seconds=settings.retry_backoff_base_seconds,
        backoff_max_seconds=settings.retry_backoff_max_seconds,
    )
    processor = JobProcessor(
        job_repo=job_repo,
        chunk_repo=chunk_repo,
        statement_repo=statement_repo,
        extractor=ExtractorFactory.create(settings),
        retry_controller=retry_controller,
        stale_after_seconds=settings.stale_processing_seconds,
    )
    scheduler = Scheduler(
        processor,
        interval_seconds=settings.scheduler_interval_seconds,
        run_on_start=settings.scheduler_run_on_start,
    )
    intake = DocumentIntake(database, job_repo, chunk_repo, settings)
    return Application(
        settings=settings,
        database=database,
        job_repo=job_repo,
        chunk_repo=chunk_repo,
        statement_repo=statement_repo,
        retry_controller=retry_controller,
        processor=processor,
        scheduler=scheduler,
        intake=intake,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statement-worker",
        description="Background extraction of bank statement transactions.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("run", help="Start the periodic background processor.")
    commands.add_parser("process", help="Process all pending jobs once.")

    ingest = commands.add_parser("ingest", help="Chunk a document and queue it.")
    ingest.add_argument("path", type=Path, help="PDF, CSV, TXT or XLSX statement file.")
    ingest.add_argument("--filename", help="Job filename (defaults to the file's name).")

    jobs = commands.add_parser("jobs", help="List processing jobs.")
    jobs.add_argument("--status", choices=[status.value for status in JobStatus])
    jobs.add_argument("--filename")
    jobs.add_argument("--limit", type=int)

    commands.add_parser("status", help="Show job, retry and chunk statistics.")

    retry = commands.add_parser("retry", help="Reset one failed job to pending.")
    retry.add_argument("filename")

    commands.add_parser("retry-all", help="Reset all retry-eligible jobs and process them.")

    set_max = commands.add_parser("set-max-retries", help="Change a job's retry budget.")
    set_max.add_argument("filename")
    set_max.add_argument("max_retries", type=int)

    requeue = commands.add_parser(
        "requeue-stale", help="Return jobs stuck in processing to the pending queue."
    )
    requeue.add_argument(
        "--older-than",
        type=float,
        dest="older_than",
        help="Seconds since the last update (defaults to STALE_PROCESSING_SECONDS).",
    )

    delete = commands.add_parser("delete", help="Delete a job and its chunks.")
    delete.add_argument("filename")

    commands.add_parser("init-db", help="Create tables and indexes.")
    return parser


def _format_job(job: JobRecord) -> str:
    line = (
        f"{job.filename}  {job.status.value}  chunks={job.total_chunks}"
        f"  retries={job.retry_count}/{job.max_retries}"
    )
    if job.error_message:
        line += f"  error={job.error_message}"
    return line


async def _run(app: Application) -> int:
    app.scheduler.start()
    try:
        await app.scheduler.wait()
    finally:
        await app.scheduler.stop()
    return 0


async def _process(app: Application) -> int:
    result = await app.processor.process_all_pending()
    for filename, outcome in result.outcomes:
        print(f"{filename}: {outcome.value}")
    print(
        f"completed={result.count(JobOutcome.COMPLETED)}"
        f" retry_queued={result.count(JobOutcome.RETRY_QUEUED)}"
        f" failed={result.count(JobOutcome.FAILED)}"
    )
    return 0


async def _ingest(app: Application, path: Path, filename: str | None) -> int:
    pdf_extractor = PdfExtractorFactory.create(app.settings)
    try:
        text, file_type = load_document_text(path, pdf_extractor)
    except DocumentReadError as exc:
        Log.error(f"Cannot ingest {path}: {exc}")
        return 1
    result = await app.intake.submit(text, filename or path.name, file_type)
    print(f"stored={result.stored} chunks={result.chunk_count} reason={result.reason}")
    return 0


async def _jobs(
    app: Application, status: str | None, filename: str | None, limit: int | None
) -> int:
    jobs = await app.job_repo.list_jobs(
        status=JobStatus(status) if status else None,
        filename=filename,
        newest_first=True,
        limit=limit,
    )
    for job in jobs:
        print(_format_job(job))
    return 0


async def _status(app: Application) -> int:
    summary = await app.job_repo.get_status_summary()
    retry_status = await app.retry_controller.get_retry_status()
    stats = await app.chunk_repo.get_statistics()
    print(
        f"jobs total={summary.total} pending={summary.pending}"
        f" processing={summary.processing} completed={summary.completed}"
        f" failed={summary.failed}"
    )
    print(
        f"retry eligible={len(retry_status.retry_eligible)}"
        f" exhausted={len(retry_status.max_retries_exceeded)}"
    )
    print(
        f"chunks total={stats.total_chunks} files={stats.total_files}"
        f" avg_size={stats.average_chunk_size:.0f} text_size={stats.total_text_size}"
    )
    print(f"processor busy={app.processor.is_busy}")
    return 0


async def _retry(app: Application, filename: str) -> int:
    if await app.job_repo.retry_job(filename):
        print(f"{filename} reset to pending")
        return 0
    print(f"{filename} is not a failed job with retry budget left")
    return 1


async def _retry_all(app: Application) -> int:
    result = await app.processor.retry_all_failed_jobs()
    print(f"retried={result.retried} skipped={result.skipped}")
    return 0


async def _set_max_retries(app: Application, filename: str, max_retries: int) -> int:
    try:
        updated = await app.job_repo.set_max_retries(filename, max_retries)
    except ValueError as exc:
        print(str(exc))
        return 1
    if not updated:
        print(f"No job named {filename}")
        return 1
    print(f"{filename} max_retries={max_retries}")
    return 0


async def _delete(app: Application, filename: str) -> int:
    try:
        deleted = await app.job_repo.delete_job(filename)
    except JobInProgressError as exc:
        print(str(exc))
        return 1
    if not deleted:
        print(f"No job named {filename}")
        return 1
    print(f"{filename} deleted")
    return 0


async def _requeue_stale(app: Application, older_than: float | None) -> int:
    seconds = app.settings.stale_processing_seconds if older_than is None else older_than
    try:
        filenames = await app.job_repo.requeue_stale_processing(seconds)
    except ValueError as exc:
        print(str(exc))
        return 1
    for filename in filenames:
        print(f"{filename} requeued")
    print(f"requeued={len(filenames)}")
    return 0


async def _init_db(app: Application) -> int:
    await app.database.initialize_schema()
    print("Schema initialized")
    return 0


async def dispatch(app: Application, args: argparse.Namespace) -> int:
    """Run one parsed command against an opened application."""
    match args.command:
        case "run":
            return await _run(app)
        case "process":
            return await _process(app)
        case "ingest":
            return await _ingest(app, args.path, args.filename)
        case "jobs":
            return await _jobs(app, args.status, args.filename, args.limit)
        case "status":
            return await _status(app)
        case "retry":
            return await _retry(app, args.filename)
        case "retry-all":
            return await _retry_all(app)
        case "set-max-retries":
            return await _set_max_retries(app, args.filename, args.max_retries)
        case "delete":
            return await _delete(app, args.filename)
        case "requeue-stale":
            return await _requeue_stale(app, args.older_than)
        case "init-db":
            return await _init_db(app)
    raise ValueError(f"Unknown command {args.command!r}")


async def run_command(settings: Settings, args: argparse.Namespace) -> int:
    app = build_application(settings)
    await app.database.open()
    try:
        return await dispatch(app, args)
    finally:
        await app.database.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point: parse args -> load settings -> open pool -> run command."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)

    try:
        return asyncio.run(run_command(settings, args))
    except KeyboardInterrupt:
        Log.info("Worker shutting down gracefully")
        return 0
    except StoreUnavailableError as exc:
        Log.error(f"Database unavailable: {exc}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
