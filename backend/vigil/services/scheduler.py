"""Scheduler service - runs the batch check cycle.

One batch:
1. Load every enabled monitor as an immutable EndpointConfig snapshot
2. Probe them concurrently, at most `concurrency` in flight
3. Persist all outcomes in one bulk insert
4. Correlate failures into status page incidents
5. Prune results past the retention horizon
6. Fire third-party notifications in the background

Only one batch runs at a time per process. Running several processes against
the same database needs an external single-runner guarantee; the correlator's
row lock keeps incidents deduplicated on PostgreSQL regardless.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..config import settings
from ..database import async_session
from ..schemas.monitor import EndpointConfig
from ..utils.db_utils import retry_on_lock
from .checker import CheckerService, CheckResult, checker_service
from .correlator import IncidentCorrelator
from .notifier import NotificationDispatcher
from .retention import RetentionService
from .store import MonitorStore

logger = logging.getLogger(__name__)


@dataclass
class BatchSummary:
    """What one batch did."""
    checked: int
    results: List[CheckResult] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.utcnow)


class BatchRunner:
    """Runs the check-all-enabled-monitors cycle."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        checker: Optional[CheckerService] = None,
        correlator: Optional[IncidentCorrelator] = None,
        retention: Optional[RetentionService] = None,
        notifier: Optional[NotificationDispatcher] = None,
        concurrency: Optional[int] = None,
    ):
        self.session_factory = session_factory or async_session
        self.checker = checker or checker_service
        self.correlator = correlator or IncidentCorrelator(self.session_factory)
        self.retention = retention or RetentionService(self.session_factory)
        self.notifier = notifier or NotificationDispatcher()
        self.concurrency = concurrency if concurrency is not None else settings.check_concurrency
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._lock = asyncio.Lock()

    async def run_batch(self) -> BatchSummary:
        """Check every enabled monitor once.

        Persistence failures propagate; probe, correlation and notification
        failures do not.
        """
        async with self._lock:
            return await self._run_batch()

    async def _run_batch(self) -> BatchSummary:
        async with self.session_factory() as session:
            endpoints = await MonitorStore(session).list_enabled_endpoints()

        if not endpoints:
            logger.debug("No enabled monitors, skipping batch")
            return BatchSummary(checked=0)

        results = await self._probe_all(endpoints)

        async with self.session_factory() as session:
            await MonitorStore(session).insert_outcomes(results)
            await retry_on_lock(session.commit)

        await self.correlator.correlate(endpoints, results)
        await self.retention.prune()
        self._notify(endpoints, results)

        failed = sum(1 for r in results if not r.status.is_success)
        logger.info(f"Batch checked {len(results)} monitors ({failed} failing)")
        return BatchSummary(checked=len(results), results=results)

    async def _probe_all(self, endpoints: Sequence[EndpointConfig]) -> List[CheckResult]:
        """One result per endpoint, in input order."""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def check_with_limit(endpoint: EndpointConfig) -> CheckResult:
            async with semaphore:
                return await self.checker.check(endpoint)

        outcomes = await asyncio.gather(
            *[check_with_limit(endpoint) for endpoint in endpoints],
            return_exceptions=True,
        )

        results = []
        for endpoint, outcome in zip(endpoints, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.error(f"Probe for monitor {endpoint.id} raised: {outcome}")
                outcome = CheckResult.probe_failed(endpoint.id, outcome)
            results.append(outcome)
        return results

    def _notify(self, endpoints: Sequence[EndpointConfig], results: Sequence[CheckResult]):
        for endpoint, result in zip(endpoints, results):
            try:
                self.notifier.dispatch(endpoint, result)
            except Exception as e:
                logger.error(f"Failed to dispatch notifications for monitor {endpoint.id}: {e}")


class SchedulerService:
    """Service for triggering batches periodically."""

    def __init__(self, runner: Optional[BatchRunner] = None):
        self.runner = runner or BatchRunner()
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    def start(self):
        """Start the scheduler."""
        if self._running:
            return

        interval = settings.check_interval_minutes
        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self._run_checks,
            trigger=IntervalTrigger(minutes=interval),
            id="run_checks",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        self._running = True
        logger.info(f"Scheduler started (interval={interval}m, max_concurrent={self.runner.concurrency})")

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    async def _run_checks(self):
        try:
            await self.runner.run_batch()
        except Exception as e:
            logger.error(f"Error running checks: {e}")


# Global instances
batch_runner = BatchRunner()
scheduler_service = SchedulerService(batch_runner)
