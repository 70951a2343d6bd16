"""Condition Evaluator - Decide whether a rule's conditions hold for a candidate"""
from datetime import datetime
from typing import Optional, Tuple

from ..config.settings import settings
from ..domain.models import EscalationCandidate, EscalationConditions
from ..utils.logger import get_logger
from ..utils.time import utc_now, minutes_between, hours_between

logger = get_logger(__name__)


ALL_CONDITIONS_MET = "All conditions met"


class ConditionEvaluator:
    """
    Evaluate escalation conditions.

    Pure: no reads or writes beyond the candidate and conditions passed in.
    Every failure returns a human-readable reason so a skipped candidate can
    be explained from the log line alone.
    """

    def __init__(
        self,
        test_override_minutes: Optional[int] = None,
        dry_run: Optional[bool] = None,
        dry_run_sla_override_minutes: Optional[int] = None
    ):
        self.test_override_minutes = (
            settings.test_escalation_override_minutes
            if test_override_minutes is None else test_override_minutes
        )
        self.dry_run = settings.pilot_dry_run if dry_run is None else dry_run
        self.dry_run_sla_override_minutes = (
            settings.pilot_dry_run_sla_override_minutes
            if dry_run_sla_override_minutes is None else dry_run_sla_override_minutes
        )

    def evaluate(
        self,
        candidate: EscalationCandidate,
        conditions: EscalationConditions,
        now: Optional[datetime] = None
    ) -> Tuple[bool, str]:
        """
        Evaluate all conditions for a candidate

        Args:
            candidate: Complaint projection to check
            conditions: Parsed rule conditions
            now: Evaluation time (defaults to current UTC time)

        Returns:
            (passes, reason)
        """
        now = now or utc_now()

        if conditions.statuses and candidate.current_status.value not in conditions.statuses:
            return False, "Status condition not met"

        if conditions.priorities and candidate.priority.value not in conditions.priorities:
            return False, "Priority condition not met"

        time_based = conditions.time_based
        if time_based is None:
            return True, ALL_CONDITIONS_MET

        if time_based.hours_since_last_update > 0:
            last_update = candidate.updated_at or candidate.created_at
            hours_since_update = hours_between(last_update, now)
            if hours_since_update < time_based.hours_since_last_update:
                return False, f"Not enough time since last update: {hours_since_update:.1f} hours"

        if time_based.sla_hours > 0:
            passes, reason = self._check_sla(candidate, time_based.sla_hours, now)
            if not passes:
                return False, reason

        if time_based.hours_since_creation > 0:
            hours_since_creation = hours_between(candidate.created_at, now)
            if hours_since_creation < time_based.hours_since_creation:
                return False, f"Not enough time since creation: {hours_since_creation:.1f} hours"

        return True, ALL_CONDITIONS_MET

    def effective_sla_minutes(self, sla_hours: int) -> float:
        """SLA in minutes after applying the test or dry-run override"""
        if self.test_override_minutes > 0:
            return float(self.test_override_minutes)
        if self.dry_run and self.dry_run_sla_override_minutes > 0:
            return float(self.dry_run_sla_override_minutes)
        return float(sla_hours * 60)

    def _check_sla(
        self,
        candidate: EscalationCandidate,
        sla_hours: int,
        now: datetime
    ) -> Tuple[bool, str]:
        effective_minutes = self.effective_sla_minutes(sla_hours)
        elapsed_minutes = minutes_between(candidate.last_status_change_at, now)

        if elapsed_minutes >= effective_minutes:
            return True, ALL_CONDITIONS_MET

        if self.test_override_minutes > 0:
            return False, (
                f"SLA not breached: {elapsed_minutes:.1f} minutes elapsed "
                f"(test override: {self.test_override_minutes} minutes)"
            )
        if self.dry_run and self.dry_run_sla_override_minutes > 0:
            return False, (
                f"[DRY RUN] SLA not breached: {elapsed_minutes:.1f} minutes elapsed "
                f"(SLA override: {self.dry_run_sla_override_minutes} minutes)"
            )
        return False, (
            f"SLA not breached: {elapsed_minutes / 60:.1f} hours elapsed (SLA: {sla_hours} hours)"
        )
