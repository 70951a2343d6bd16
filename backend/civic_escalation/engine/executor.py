"""Escalation Executor - One escalation attempt for one candidate

Steps, in order; any step may end the attempt with a named no-op outcome:

    level check -> rule match -> conditions -> idempotency -> authority -> write

Only write failures are errors. Audit, metrics and notification after a
successful write are best-effort and never unwind the escalation.
"""
from datetime import datetime
from typing import Callable, List, Optional
from pymongo.errors import PyMongoError

from ..config.settings import settings
from ..domain.enums import ActorType, AuditAction, ComplaintStatus, EscalationOutcome, StatusHistoryActorType
from ..domain.errors import EscalationWriteError
from ..domain.models import (
    ComplaintEscalation, ComplaintStatusHistory, EscalationCandidate, EscalationConditions,
    EscalationResult, EscalationRule
)
from ..repositories.audit_repo import AuditRepository
from ..repositories.complaint_repo import ComplaintRepository
from ..repositories.escalation_repo import EscalationRepository
from ..services.metrics_service import PilotMetricsService
from ..services.notification_service import EscalationNotifier
from .audit_writer import AuditWriter
from .authority_resolver import AuthorityResolver
from .condition_evaluator import ConditionEvaluator
from ..utils.idgen import generate_escalation_id, generate_history_id, generate_server_id
from ..utils.logger import get_logger
from ..utils.time import utc_now, hours_between

logger = get_logger(__name__)


class EscalationExecutor:
    """Run the escalation state machine for a single candidate"""

    def __init__(
        self,
        complaint_repo: Optional[ComplaintRepository] = None,
        escalation_repo: Optional[EscalationRepository] = None,
        audit_repo: Optional[AuditRepository] = None,
        evaluator: Optional[ConditionEvaluator] = None,
        authority_resolver: Optional[AuthorityResolver] = None,
        metrics: Optional[PilotMetricsService] = None,
        notifier: Optional[EscalationNotifier] = None,
        max_level: Optional[int] = None,
        idempotency_window_hours: Optional[float] = None,
        dry_run: Optional[bool] = None,
        lock_duration_seconds: Optional[int] = None,
        server_id: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.complaint_repo = complaint_repo or ComplaintRepository()
        self.escalation_repo = escalation_repo or EscalationRepository()
        self.audit_repo = audit_repo or AuditRepository()
        self.audit_writer = AuditWriter(self.audit_repo, clock=clock)
        self.evaluator = evaluator or ConditionEvaluator()
        self.authority_resolver = authority_resolver or AuthorityResolver()
        self.metrics = metrics or PilotMetricsService()
        self.notifier = notifier or EscalationNotifier()
        self.max_level = settings.escalation_max_level if max_level is None else max_level
        self.idempotency_window_hours = (
            settings.escalation_idempotency_window_hours
            if idempotency_window_hours is None else idempotency_window_hours
        )
        self.dry_run = settings.pilot_dry_run if dry_run is None else dry_run
        self.lock_duration_seconds = (
            settings.escalation_lock_duration_seconds
            if lock_duration_seconds is None else lock_duration_seconds
        )
        self.server_id = server_id or generate_server_id()
        self.clock = clock

    # =========================================================================
    # State Machine
    # =========================================================================

    def process(self, candidate: EscalationCandidate, rules: List[EscalationRule]) -> EscalationResult:
        """
        Process one candidate against the cycle's active rules

        Args:
            candidate: Complaint projection selected for this cycle
            rules: Active rules, in evaluation order

        Returns:
            EscalationResult with a named outcome

        Raises:
            EscalationWriteError: If a write failed (already compensated)
            PyMongoError: If a read the decision depends on failed
        """
        now = self.clock()

        # Level check: history is the source of truth, not the cached field
        current_level = self.escalation_repo.get_current_level(candidate.complaint_id)
        if current_level >= self.max_level:
            return self._no_op(
                candidate, EscalationOutcome.MAX_LEVEL_REACHED,
                f"Max escalation level reached (current level {current_level})",
                now, previous_level=current_level
            )

        # Rule match
        applicable = [
            rule for rule in rules
            if rule.escalation_level == current_level and self._rule_matches(rule, candidate)
        ]
        if not applicable:
            return self._no_op(
                candidate, EscalationOutcome.NO_MATCHING_RULE,
                f"No rule for level {current_level} matches department/location",
                now, previous_level=current_level
            )

        # Conditions, first rule that fires wins
        last_failure: Optional[str] = None
        for rule in applicable:
            conditions = rule.conditions
            if conditions is None:
                logger.debug("Rule has no conditions; skipped", extra={"rule_id": rule.rule_id})
                continue

            if conditions.is_reminder:
                reminder = self._process_reminder(candidate, rule, conditions, current_level, now)
                if reminder is not None:
                    return reminder
                continue

            passes, reason = self.evaluator.evaluate(candidate, conditions, now)
            if not passes:
                logger.debug(
                    f"Conditions not met: {reason}",
                    extra={"complaint_id": candidate.complaint_id, "rule_id": rule.rule_id}
                )
                last_failure = reason
                continue

            # Idempotency. The derived level already excludes a row at this level,
            # so this only trips when a concurrent writer landed one after the
            # level was read (stale read guard)
            if self.escalation_repo.has_existing_escalation(
                candidate.complaint_id,
                rule.escalation_level,
                self.idempotency_window_hours,
                now=now
            ):
                return self._no_op(
                    candidate, EscalationOutcome.ALREADY_ESCALATED,
                    f"Already escalated at level {rule.escalation_level} "
                    f"within the last {self.idempotency_window_hours} hour(s)",
                    now, rule=rule, previous_level=current_level
                )

            return self._execute(candidate, rule, reason, now)

        if last_failure is not None:
            return self._no_op(
                candidate, EscalationOutcome.CONDITIONS_NOT_MET, last_failure,
                now, previous_level=current_level
            )
        return self._no_op(
            candidate, EscalationOutcome.NO_RULE_FIRED,
            "No applicable rule fired (no due reminder and no escalation conditions)",
            now, previous_level=current_level
        )

    @staticmethod
    def _rule_matches(rule: EscalationRule, candidate: EscalationCandidate) -> bool:
        """Unset source filters are wildcards"""
        if rule.from_department_id is not None and rule.from_department_id != candidate.assigned_department_id:
            return False
        if rule.from_location_id is not None and rule.from_location_id != candidate.location_id:
            return False
        return True

    # =========================================================================
    # Reminders
    # =========================================================================

    def _process_reminder(
        self,
        candidate: EscalationCandidate,
        rule: EscalationRule,
        conditions: EscalationConditions,
        current_level: int,
        now: datetime
    ) -> Optional[EscalationResult]:
        """Send a reminder if one is due; None means try the next rule"""
        interval = conditions.reminder_interval_hours
        if not interval:
            logger.debug("Reminder rule has no interval; skipped", extra={"rule_id": rule.rule_id})
            return None

        last_reminder = self.audit_repo.get_last_action_time(candidate.complaint_id, AuditAction.REMINDER)

        if last_reminder is None:
            passes, reason = self.evaluator.evaluate(candidate, conditions, now)
            if not passes:
                logger.debug(
                    f"First reminder not due: {reason}",
                    extra={"complaint_id": candidate.complaint_id, "rule_id": rule.rule_id}
                )
                return None
            reason = f"First reminder: {reason}"
        else:
            hours_since_reminder = hours_between(last_reminder, now)
            if hours_since_reminder < interval:
                logger.debug(
                    f"Reminder not due: last sent {hours_since_reminder:.1f} hours ago",
                    extra={"complaint_id": candidate.complaint_id, "rule_id": rule.rule_id}
                )
                return None
            reason = f"Reminder sent (last reminder {hours_since_reminder:.1f} hours ago)"

        # The audit entry is the reminder itself
        try:
            self.audit_writer.write_reminder(candidate.complaint_id, rule.rule_id, reason)
        except PyMongoError as e:
            raise EscalationWriteError(
                f"Failed to record reminder for complaint {candidate.complaint_id}",
                details={"complaint_id": candidate.complaint_id, "rule_id": rule.rule_id, "error": str(e)}
            ) from e

        logger.info(
            "Reminder sent",
            extra={
                "complaint_id": candidate.complaint_id,
                "rule_id": rule.rule_id,
                "outcome": EscalationOutcome.REMINDER_SENT.value,
                "reason": reason,
            }
        )
        return EscalationResult(
            complaint_id=candidate.complaint_id,
            complaint_number=candidate.complaint_number,
            outcome=EscalationOutcome.REMINDER_SENT,
            reminder_sent=True,
            rule_id=rule.rule_id,
            previous_level=current_level,
            new_level=current_level,
            reason=reason,
            processed_at=now
        )

    # =========================================================================
    # Execution
    # =========================================================================

    def _execute(
        self,
        candidate: EscalationCandidate,
        rule: EscalationRule,
        reason: str,
        now: datetime
    ) -> EscalationResult:
        """Resolve target and authority, then claim and write"""
        if rule.to_department_id is not None:
            target_department_id = rule.to_department_id
        elif candidate.assigned_department_id is not None:
            target_department_id = candidate.assigned_department_id
        else:
            logger.warning(
                "Complaint has no assigned department; cannot escalate",
                extra={"complaint_id": candidate.complaint_id, "rule_id": rule.rule_id}
            )
            return self._no_op(
                candidate, EscalationOutcome.NO_ASSIGNED_DEPARTMENT,
                "Complaint has no assigned department and rule has no target department",
                now, rule=rule, previous_level=rule.escalation_level
            )

        target_location_id = rule.to_location_id if rule.to_location_id is not None else candidate.location_id

        to_officer_id = self.authority_resolver.resolve(
            target_department_id, target_location_id, rule.escalation_level
        )
        if to_officer_id is None:
            # Pilot policy: escalate with the officer slot vacant rather than block
            logger.warning(
                "No authority found; escalating with no officer assigned",
                extra={
                    "complaint_id": candidate.complaint_id,
                    "department_id": target_department_id,
                    "location_id": target_location_id,
                    "target_level": rule.escalation_level + 1,
                }
            )

        if not self.complaint_repo.acquire_escalation_lock(
            candidate.complaint_id,
            candidate.current_status,
            self.server_id,
            lock_duration_seconds=self.lock_duration_seconds,
            now=now
        ):
            return self._no_op(
                candidate, EscalationOutcome.CLAIM_CONFLICT,
                "Complaint changed or is being escalated by another process",
                now, rule=rule, previous_level=rule.escalation_level
            )

        try:
            escalation = self._write(
                candidate, rule, reason, target_department_id, to_officer_id, now
            )
        finally:
            try:
                self.complaint_repo.release_escalation_lock(candidate.complaint_id, self.server_id)
            except PyMongoError as e:
                logger.warning(
                    f"Failed to release escalation claim: {e}",
                    extra={"complaint_id": candidate.complaint_id, "server_id": self.server_id}
                )

        new_level = rule.escalation_level + 1
        self._update_cached_level(candidate.complaint_id, new_level)

        logger.info(
            f"Escalation fired: level {rule.escalation_level} -> {new_level}",
            extra={
                "complaint_id": candidate.complaint_id,
                "escalation_id": escalation.escalation_id,
                "rule_id": rule.rule_id,
                "escalation_level": rule.escalation_level,
                "target_level": new_level,
                "department_id": target_department_id,
                "officer_id": to_officer_id,
                "outcome": EscalationOutcome.ESCALATED.value,
            }
        )

        self._emit_side_effects(candidate, rule, escalation, reason)

        return EscalationResult(
            complaint_id=candidate.complaint_id,
            complaint_number=candidate.complaint_number,
            outcome=EscalationOutcome.ESCALATED,
            escalated=True,
            escalation_id=escalation.escalation_id,
            rule_id=rule.rule_id,
            previous_level=rule.escalation_level,
            new_level=new_level,
            new_status=ComplaintStatus.ESCALATED,
            to_department_id=target_department_id,
            to_officer_id=to_officer_id,
            reason=reason,
            processed_at=now
        )

    def _write(
        self,
        candidate: EscalationCandidate,
        rule: EscalationRule,
        reason: str,
        target_department_id: int,
        to_officer_id: Optional[int],
        now: datetime
    ) -> ComplaintEscalation:
        """
        Complaint update, status history row, escalation record.

        Each is its own statement. If one fails, the earlier ones are undone
        before EscalationWriteError is raised.
        """
        reason_note = f"Escalated to level {rule.escalation_level}: {reason}"
        if self.dry_run:
            reason_note = f"[DRY RUN] {reason_note}"

        history = ComplaintStatusHistory(
            history_id=generate_history_id(),
            complaint_id=candidate.complaint_id,
            old_status=candidate.current_status,
            new_status=ComplaintStatus.ESCALATED,
            changed_by_type=ActorType.SYSTEM,
            actor_type=StatusHistoryActorType.SYSTEM,
            actor_id=None,
            assigned_department_id=target_department_id,
            assigned_officer_id=to_officer_id,
            reason=reason_note,
            notes=reason_note,
            created_at=now
        )
        escalation = ComplaintEscalation(
            escalation_id=generate_escalation_id(),
            complaint_id=candidate.complaint_id,
            from_department_id=candidate.assigned_department_id,
            from_officer_id=candidate.assigned_officer_id,
            to_department_id=target_department_id,
            to_officer_id=to_officer_id,
            escalation_level=rule.escalation_level,
            reason=reason,
            escalated_by_type=ActorType.SYSTEM,
            status_history_id=history.history_id,
            created_at=now
        )

        complaint_updated = False
        history_written = False
        try:
            if not self.complaint_repo.update_complaint_assignment(
                candidate.complaint_id,
                ComplaintStatus.ESCALATED,
                target_department_id,
                to_officer_id,
                now=now
            ):
                raise EscalationWriteError(
                    f"Complaint {candidate.complaint_id} disappeared during escalation",
                    details={"complaint_id": candidate.complaint_id}
                )
            complaint_updated = True

            self.complaint_repo.create_status_history(history)
            history_written = True

            self.escalation_repo.create_escalation(escalation)
        except PyMongoError as e:
            self._compensate(candidate, history.history_id if history_written else None, complaint_updated)
            raise EscalationWriteError(
                f"Failed to write escalation for complaint {candidate.complaint_id}",
                details={"complaint_id": candidate.complaint_id, "rule_id": rule.rule_id, "error": str(e)}
            ) from e

        return escalation

    def _compensate(
        self,
        candidate: EscalationCandidate,
        history_id: Optional[str],
        complaint_updated: bool
    ) -> None:
        """Undo the writes a failed attempt already made"""
        if history_id is not None:
            try:
                self.complaint_repo.delete_status_history(history_id)
            except PyMongoError as e:
                logger.error(
                    f"Failed to remove status history of failed escalation: {e}",
                    extra={"complaint_id": candidate.complaint_id, "error_type": type(e).__name__}
                )
        if complaint_updated:
            try:
                self.complaint_repo.restore_complaint_assignment(
                    candidate.complaint_id,
                    candidate.current_status,
                    candidate.assigned_department_id,
                    candidate.assigned_officer_id,
                    candidate.updated_at
                )
            except PyMongoError as e:
                logger.error(
                    f"Failed to restore complaint after failed escalation: {e}",
                    extra={"complaint_id": candidate.complaint_id, "error_type": type(e).__name__}
                )

    def _update_cached_level(self, complaint_id: str, new_level: int) -> None:
        try:
            self.complaint_repo.update_escalation_level(complaint_id, new_level)
        except PyMongoError as e:
            logger.warning(
                f"Could not update cached escalation level: {e}",
                extra={"complaint_id": complaint_id, "escalation_level": new_level}
            )

    def _emit_side_effects(
        self,
        candidate: EscalationCandidate,
        rule: EscalationRule,
        escalation: ComplaintEscalation,
        reason: str
    ) -> None:
        """Audit, metrics, notification; failures are logged only"""
        try:
            self.audit_writer.write_escalation(
                complaint_id=candidate.complaint_id,
                escalation_id=escalation.escalation_id,
                escalation_level=rule.escalation_level,
                from_department_id=candidate.assigned_department_id,
                to_department_id=escalation.to_department_id,
                reason=reason,
                dry_run=self.dry_run,
                dry_run_sla_override_minutes=self.evaluator.dry_run_sla_override_minutes
            )
        except Exception as e:
            logger.warning(
                f"Failed to write escalation audit entry: {e}",
                extra={"complaint_id": candidate.complaint_id, "escalation_id": escalation.escalation_id}
            )

        self.metrics.emit_escalation_triggered(
            complaint_id=candidate.complaint_id,
            user_id=candidate.user_id,
            escalation_level=rule.escalation_level,
            from_department_id=candidate.assigned_department_id,
            to_department_id=escalation.to_department_id,
            reason=reason
        )

        self.notifier.notify_escalation(
            complaint_id=candidate.complaint_id,
            complaint_number=candidate.complaint_number,
            target_level=rule.escalation_level + 1,
            to_department_id=escalation.to_department_id,
            to_officer_id=escalation.to_officer_id,
            reason=reason
        )

    def _no_op(
        self,
        candidate: EscalationCandidate,
        outcome: EscalationOutcome,
        reason: str,
        now: datetime,
        rule: Optional[EscalationRule] = None,
        previous_level: Optional[int] = None
    ) -> EscalationResult:
        logger.info(
            f"Skip: {reason}",
            extra={
                "complaint_id": candidate.complaint_id,
                "rule_id": rule.rule_id if rule else None,
                "outcome": outcome.value,
                "reason": reason,
            }
        )
        return EscalationResult(
            complaint_id=candidate.complaint_id,
            complaint_number=candidate.complaint_number,
            outcome=outcome,
            rule_id=rule.rule_id if rule else None,
            previous_level=previous_level,
            new_level=previous_level,
            reason=reason,
            processed_at=now
        )
