"""
Escalation Engine - The per-cycle driver

=============================================================================
MODULE STRUCTURE
=============================================================================

1. INITIALIZATION
   - Constructor with rule store, candidate selector and executor

2. CYCLE
   - run_cycle: load rules once, load candidates once, process each
     candidate sequentially and collect a CycleReport

3. HELPERS
   - _process_candidate: one candidate under a per-candidate database timeout

Load failures (rules or candidates) abort the whole cycle. Anything that
goes wrong for a single candidate is recorded in the report and the cycle
moves on to the next one.
=============================================================================
"""
from datetime import datetime
from typing import Callable, List, Optional
import pymongo

from ..config.settings import settings
from ..domain.errors import DomainError
from ..domain.models import CandidateFailure, CycleReport, EscalationCandidate, EscalationResult, EscalationRule
from ..repositories.rule_repo import RuleRepository
from .candidate_selector import CandidateSelector
from .executor import EscalationExecutor
from ..utils.idgen import generate_correlation_id
from ..utils.logger import get_logger, get_correlation_id, set_correlation_id
from ..utils.time import utc_now

logger = get_logger(__name__)


class EscalationEngine:
    """
    Run escalation cycles.

    Candidates are processed one at a time; a single engine never races with
    itself inside a cycle. Cross-process exclusion comes from the executor's
    per-complaint claim and the idempotency window.
    """

    # =========================================================================
    # 1. INITIALIZATION
    # =========================================================================

    def __init__(
        self,
        rule_repo: Optional[RuleRepository] = None,
        candidate_selector: Optional[CandidateSelector] = None,
        executor: Optional[EscalationExecutor] = None,
        candidate_timeout_seconds: Optional[float] = None,
        dry_run: Optional[bool] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.rule_repo = rule_repo or RuleRepository()
        self.candidate_selector = candidate_selector or CandidateSelector()
        self.executor = executor or EscalationExecutor(clock=clock)
        self.candidate_timeout_seconds = (
            settings.escalation_candidate_timeout_seconds
            if candidate_timeout_seconds is None else candidate_timeout_seconds
        )
        self.dry_run = settings.pilot_dry_run if dry_run is None else dry_run
        self.clock = clock

    # =========================================================================
    # 2. CYCLE
    # =========================================================================

    def run_cycle(self, correlation_id: Optional[str] = None) -> CycleReport:
        """
        Run one escalation cycle

        Args:
            correlation_id: Optional correlation ID; one is generated if absent

        Returns:
            CycleReport with per-candidate results

        Raises:
            RuleLoadError: If rules could not be loaded
            CandidateLoadError: If candidates could not be loaded
        """
        correlation_id = correlation_id or get_correlation_id() or generate_correlation_id()
        set_correlation_id(correlation_id)
        started_at = self.clock()

        if self.dry_run:
            logger.info("Escalation cycle running in DRY RUN mode")

        rules = self.rule_repo.list_active_rules()
        report = CycleReport(
            correlation_id=correlation_id,
            started_at=started_at,
            dry_run=self.dry_run,
            rules_loaded=len(rules)
        )
        logger.info(f"Loaded {len(rules)} active escalation rules", extra={"rules": len(rules)})

        if not rules:
            logger.info("No escalation rules configured - skipping cycle")
            report.finished_at = self.clock()
            return report

        candidates = self.candidate_selector.select(now=started_at)
        report.candidates = len(candidates)
        logger.info(f"Fetched {len(candidates)} escalation candidates", extra={"candidates": len(candidates)})

        for candidate in candidates:
            try:
                result = self._process_candidate(candidate, rules)
            except Exception as e:
                # One candidate never stops the batch
                logger.error(
                    f"Escalation failed for complaint {candidate.complaint_id}: {e}",
                    extra={
                        "complaint_id": candidate.complaint_id,
                        "error_type": type(e).__name__,
                    },
                    exc_info=not isinstance(e, DomainError)
                )
                report.failed.append(CandidateFailure(
                    complaint_id=candidate.complaint_id,
                    complaint_number=candidate.complaint_number,
                    error_type=type(e).__name__,
                    error=str(e)
                ))
                continue

            if result.escalated or result.reminder_sent:
                report.results.append(result)
            else:
                report.skipped.append(result)

        report.finished_at = self.clock()
        duration_ms = int((report.finished_at - started_at).total_seconds() * 1000)
        logger.info(
            "Escalation cycle completed",
            extra={
                "candidates": report.candidates,
                "escalated": report.escalated_count,
                "reminders": report.reminder_count,
                "skipped": len(report.skipped),
                "failed": len(report.failed),
                "duration_ms": duration_ms,
            }
        )
        return report

    # =========================================================================
    # 3. HELPERS
    # =========================================================================

    def _process_candidate(
        self,
        candidate: EscalationCandidate,
        rules: List[EscalationRule]
    ) -> EscalationResult:
        # Every database call for this candidate shares one deadline
        timeout = self.candidate_timeout_seconds if self.candidate_timeout_seconds > 0 else None
        with pymongo.timeout(timeout):
            return self.executor.process(candidate, rules)
