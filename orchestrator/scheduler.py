"""
Orchestrator - Job Scheduler.

============================================================
RESPONSIBILITY
============================================================
Long-lived loop that fires the scheduled jobs.

- Daily close job every hour, aligned to the hour
- Intraday alert job every 15 minutes
- Jobs apply their own market time windows
- Handles signals (SIGINT, SIGTERM) for graceful shutdown

One job failure never stops the loop; the next tick retries.

============================================================
"""

import asyncio
import logging
import signal
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional

from core.clock import ClockProtocol, SystemClock
from orchestrator.jobs import DailyCloseJob, IntradayAlertJob
from orchestrator.models import PipelineConfig
from storage.document_store import DocumentStore


DAILY_CLOSE_INTERVAL_SECONDS = 3600
INTRADAY_ALERT_INTERVAL_SECONDS = 900


@dataclass
class ScheduledJob:
    """A job and its fixed interval."""
    name: str
    interval_seconds: int
    run: Callable[[], Awaitable[Any]]
    next_run: Optional[datetime] = None


def next_aligned(now: datetime, interval_seconds: int) -> datetime:
    """Next wall-clock boundary that is a multiple of the interval."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    elapsed = int((now - midnight).total_seconds())
    return midnight + timedelta(seconds=(elapsed // interval_seconds + 1) * interval_seconds)


class JobScheduler:
    """
    Fires scheduled jobs until shutdown.

    Usage:
        scheduler = JobScheduler.default(store, config)
        await scheduler.run_forever()
    """

    def __init__(self, jobs: List[ScheduledJob], clock: Optional[ClockProtocol] = None) -> None:
        self._jobs = jobs
        self._clock = clock or SystemClock()
        self._shutdown = asyncio.Event()
        self._logger = logging.getLogger("orchestrator.scheduler")

    @classmethod
    def default(
        cls,
        store: DocumentStore,
        config: PipelineConfig,
        clock: Optional[ClockProtocol] = None,
    ) -> "JobScheduler":
        clock = clock or SystemClock(config.market_timezone)
        daily = DailyCloseJob(store, config=config, clock=clock)
        intraday = IntradayAlertJob(store, config=config, clock=clock)
        return cls(
            jobs=[
                ScheduledJob("daily_close", DAILY_CLOSE_INTERVAL_SECONDS, lambda: daily.run(manual=False)),
                ScheduledJob("intraday_alerts", INTRADAY_ALERT_INTERVAL_SECONDS,
                             lambda: intraday.run(manual=False)),
            ],
            clock=clock,
        )

    @property
    def jobs(self) -> List[ScheduledJob]:
        return list(self._jobs)

    def request_shutdown(self) -> None:
        self._shutdown.set()

    async def run_due(self) -> Dict[str, Any]:
        """Run every job whose next_run has passed; returns {name: report}."""
        now = self._clock.now()
        reports: Dict[str, Any] = {}
        for job in self._jobs:
            if job.next_run is not None and job.next_run > now:
                continue
            reports[job.name] = await self._run_job(job)
            job.next_run = next_aligned(now, job.interval_seconds)
        return reports

    async def run_forever(self) -> None:
        """Run the main loop until a signal or request_shutdown()."""
        self._install_signal_handlers()
        self._logger.info(
            "Starting scheduler | "
            + ", ".join(f"{job.name}={job.interval_seconds}s" for job in self._jobs)
        )
        try:
            while not self._shutdown.is_set():
                await self.run_due()
                wait_seconds = self._seconds_until_next()
                self._logger.debug(f"Waiting {wait_seconds:.1f}s until next tick")
                try:
                    await asyncio.wait_for(self._shutdown.wait(), timeout=wait_seconds)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._restore_signal_handlers()
            self._logger.info("Scheduler stopped")

    async def _run_job(self, job: ScheduledJob) -> Any:
        try:
            report = await job.run()
            self._logger.debug(f"Job {job.name} finished")
            return report
        except Exception as e:
            self._logger.error(f"Job {job.name} failed: {e}", exc_info=True)
            return None

    def _seconds_until_next(self) -> float:
        now = self._clock.now()
        upcoming = [job.next_run for job in self._jobs if job.next_run is not None]
        if not upcoming:
            return 0.0
        return max(0.0, (min(upcoming) - now).total_seconds())

    # --------------------------------------------------------
    # Signal Handlers
    # --------------------------------------------------------

    def _install_signal_handlers(self) -> None:
        """Install signal handlers for graceful shutdown."""
        if sys.platform == "win32":
            signal.signal(signal.SIGINT, self._signal_handler)
            return
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self.request_shutdown)

    def _restore_signal_handlers(self) -> None:
        """Restore original signal handlers."""
        if sys.platform == "win32":
            return
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)

    def _signal_handler(self, signum: int, frame: Any) -> None:
        """Synchronous signal handler (Windows)."""
        self._logger.info(f"Received signal {signum}")
        self._shutdown.set()
