import asyncio

from statement_worker.database.exceptions import StoreUnavailableError
from statement_worker.logging.logger import Log
from statement_worker.worker.job_processor import BatchResult, JobProcessor
from statement_worker.worker.retry import SleepFn


class Scheduler:
    """Periodic and manual triggers for background processing.

    Owns its timer task: start() begins ticking every interval_seconds,
    stop() cancels it. The sleep function is injectable so tests can drive
    ticks without real time passing.
    """

    def __init__(
        self,
        processor: JobProcessor,
        *,
        interval_seconds: float,
        run_on_start: bool = True,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self._processor = processor
        self._interval_seconds = interval_seconds
        self._run_on_start = run_on_start
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the periodic loop on the running event loop. No-op if already started."""
        if self.is_running:
            Log.info("Background processor already running")
            return
        Log.info(f"Starting background processor with {self._interval_seconds}s interval")
        self._task = asyncio.create_task(self._run_loop(), name="statement-worker-scheduler")

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        Log.info("Background processor stopped")

    async def wait(self) -> None:
        """Block until the loop ends (it only ends when stopped or cancelled)."""
        if self._task is not None:
            await self._task

    async def trigger(self) -> BatchResult:
        """Run one batch now, outside the timer."""
        Log.info("Manual background processing triggered")
        return await self._processor.process_all_pending()

    async def _run_loop(self) -> None:
        if not self._run_on_start:
            await self._sleep(self._interval_seconds)
        while True:
            await self._tick()
            await self._sleep(self._interval_seconds)

    async def _tick(self) -> None:
        try:
            await self._processor.process_all_pending()
        except StoreUnavailableError as exc:
            Log.warning(f"Database error, will retry next tick: {exc}")
        except Exception as exc:
            Log.error(f"Background processing failed: {exc}")
