"""Escalation Scheduler - Run the escalation engine on a fixed interval

One AsyncIOScheduler job per process. Only one process of a multi-instance
deployment should have the scheduler enabled; the others can still run a
cycle on demand through the API.
"""
from datetime import datetime, timezone
from typing import Callable, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config.settings import settings
from ..domain.errors import EngineError
from ..engine.engine import EscalationEngine
from ..utils.idgen import generate_correlation_id
from ..utils.logger import get_logger

logger = get_logger(__name__)


ESCALATION_JOB_ID = "process_escalations"


class EscalationScheduler:
    """
    APScheduler wrapper around EscalationEngine.run_cycle.

    The job never overlaps itself (max_instances=1), missed runs are
    coalesced, and the first run starts right away.
    """

    def __init__(
        self,
        engine_factory: Callable[[], EscalationEngine] = EscalationEngine,
        interval_seconds: Optional[int] = None
    ):
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._engine_factory = engine_factory
        self._engine: Optional[EscalationEngine] = None
        self.interval_seconds = interval_seconds or settings.escalation_interval_seconds
        self._is_running = False
        self._cycle_count = 0

    def start(self) -> None:
        """Start the scheduler"""
        if self._is_running:
            logger.warning("Escalation scheduler already running")
            return

        self.scheduler = AsyncIOScheduler(timezone=timezone.utc)
        self.scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=ESCALATION_JOB_ID,
            name="Process complaint escalations",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc)
        )
        self.scheduler.start()
        self._is_running = True
        logger.info(
            f"Escalation scheduler started (interval {self.interval_seconds}s, {settings.escalation_interval_reason})"
        )

    def stop(self) -> None:
        """Stop the scheduler"""
        if self.scheduler:
            self.scheduler.shutdown(wait=False)
            self._is_running = False
            logger.info("Escalation scheduler stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running"""
        return self._is_running

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    def run_once(self) -> None:
        """
        Run one cycle; a cycle abort is logged and retried on the next tick.

        Sync on purpose: APScheduler runs it in the event loop's thread pool,
        so blocking database calls never stall the API.
        """
        correlation_id = generate_correlation_id()
        self._cycle_count += 1
        try:
            if self._engine is None:
                self._engine = self._engine_factory()
            self._engine.run_cycle(correlation_id=correlation_id)
        except EngineError as e:
            logger.error(
                f"Escalation cycle aborted: {e.message}",
                extra={"correlation_id": correlation_id, "error_type": type(e).__name__, "error": e.details}
            )
        except Exception as e:
            logger.error(
                f"Escalation cycle crashed: {e}",
                extra={"correlation_id": correlation_id, "error_type": type(e).__name__},
                exc_info=True
            )


# Global scheduler instance
_scheduler: Optional[EscalationScheduler] = None


def get_scheduler() -> EscalationScheduler:
    """Get or create scheduler instance"""
    global _scheduler
    if _scheduler is None:
        _scheduler = EscalationScheduler()
    return _scheduler


def start_scheduler() -> None:
    """Start the global scheduler"""
    scheduler = get_scheduler()
    scheduler.start()


def stop_scheduler() -> None:
    """Stop the global scheduler"""
    global _scheduler
    if _scheduler:
        _scheduler.stop()
        _scheduler = None
