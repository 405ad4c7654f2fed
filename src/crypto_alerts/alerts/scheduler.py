"""Periodic background task that runs the alert sweep."""
import asyncio
import logging

from crypto_alerts.alerts.sweep import AlertSweep
from crypto_alerts.schemas import SweepReport
from crypto_alerts.utils import utcnow

logger = logging.getLogger(__name__)


class SweepScheduler:
    """Runs AlertSweep.run_once every `interval` seconds.

    A lock acts as the run token: a tick (or trigger_now) that finds the
    previous sweep still running is skipped instead of overlapping it.
    """

    def __init__(self, sweep: AlertSweep, interval: float = 900.0) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._sweep = sweep
        self._interval = interval
        self._run_lock = asyncio.Lock()
        self._task: asyncio.Task | None = None
        self.last_report: SweepReport | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def busy(self) -> bool:
        return self._run_lock.locked()

    def start(self) -> None:
        """Start the background loop. Idempotent."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="alert-sweep")
        logger.info("Alert sweep scheduled every %.0fs", self._interval)

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Alert sweep stopped")

    async def trigger_now(self) -> SweepReport:
        """Run one sweep immediately, or report a skip if one is in progress."""
        if self._run_lock.locked():
            logger.warning("Alert sweep already running; skipping this run")
            return SweepReport(skipped_run=True, finished_at=utcnow())
        async with self._run_lock:
            report = await self._sweep.run_once()
        self.last_report = report
        return report

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.trigger_now()
            except Exception:  # pylint: disable=broad-except
                logger.exception("Alert sweep failed")
