"""Condition evaluator: reason strings, SLA overrides, time normalisation"""
from datetime import timedelta

from civic_escalation.domain.enums import ComplaintStatus, Priority
from civic_escalation.domain.models import EscalationConditions, TimeBasedCondition
from civic_escalation.engine.condition_evaluator import ALL_CONDITIONS_MET, ConditionEvaluator

from tests.fakes import BASE_TIME, make_candidate


NOW = BASE_TIME


def evaluator(test_override=0, dry_run=False, dry_run_override=0):
    return ConditionEvaluator(
        test_override_minutes=test_override,
        dry_run=dry_run,
        dry_run_sla_override_minutes=dry_run_override
    )


def sla(hours, **kwargs):
    return EscalationConditions(time_based=TimeBasedCondition(sla_hours=hours), **kwargs)


class TestFilters:
    def test_status_mismatch(self):
        candidate = make_candidate(status=ComplaintStatus.UNDER_REVIEW)
        conditions = EscalationConditions(statuses=["in_progress"])

        assert evaluator().evaluate(candidate, conditions, NOW) == (False, "Status condition not met")

    def test_priority_mismatch(self):
        candidate = make_candidate(priority=Priority.LOW)
        conditions = EscalationConditions(priorities=["high", "urgent"])

        assert evaluator().evaluate(candidate, conditions, NOW) == (False, "Priority condition not met")

    def test_status_checked_before_priority(self):
        candidate = make_candidate(status=ComplaintStatus.VERIFIED, priority=Priority.LOW)
        conditions = EscalationConditions(statuses=["in_progress"], priorities=["high"])

        assert evaluator().evaluate(candidate, conditions, NOW)[1] == "Status condition not met"

    def test_no_time_block_passes(self):
        candidate = make_candidate(priority=Priority.HIGH)
        conditions = EscalationConditions(statuses=["under_review"], priorities=["high"])

        assert evaluator().evaluate(candidate, conditions, NOW) == (True, ALL_CONDITIONS_MET)

    def test_empty_conditions_pass(self):
        assert evaluator().evaluate(make_candidate(), EscalationConditions(), NOW) == (True, ALL_CONDITIONS_MET)


class TestSla:
    def test_not_breached(self):
        candidate = make_candidate(last_status_change_at=NOW - timedelta(hours=10))

        passes, reason = evaluator().evaluate(candidate, sla(72), NOW)

        assert passes is False
        assert reason == "SLA not breached: 10.0 hours elapsed (SLA: 72 hours)"

    def test_breached_at_exact_boundary(self):
        candidate = make_candidate(last_status_change_at=NOW - timedelta(hours=72))

        assert evaluator().evaluate(candidate, sla(72), NOW) == (True, ALL_CONDITIONS_MET)

    def test_uses_last_status_change_not_creation(self):
        candidate = make_candidate(
            created_at=NOW - timedelta(days=30),
            last_status_change_at=NOW - timedelta(hours=1)
        )

        assert evaluator().evaluate(candidate, sla(72), NOW)[0] is False

    def test_zero_sla_is_not_configured(self):
        candidate = make_candidate(last_status_change_at=NOW)

        assert evaluator().evaluate(candidate, sla(0), NOW) == (True, ALL_CONDITIONS_MET)

    def test_future_status_change_counts_as_zero_elapsed(self):
        candidate = make_candidate(last_status_change_at=NOW + timedelta(minutes=10))

        passes, reason = evaluator().evaluate(candidate, sla(1), NOW)

        assert passes is False
        assert reason == "SLA not breached: 0.0 hours elapsed (SLA: 1 hours)"

    def test_naive_timestamps_are_treated_as_utc(self):
        naive = (NOW - timedelta(hours=80)).replace(tzinfo=None)
        candidate = make_candidate(created_at=naive, last_status_change_at=naive)

        assert candidate.last_status_change_at.tzinfo is not None
        assert evaluator().evaluate(candidate, sla(72), NOW)[0] is True


class TestOverrides:
    def test_test_override_replaces_sla(self):
        candidate = make_candidate(last_status_change_at=NOW - timedelta(minutes=3))

        assert evaluator(test_override=2).evaluate(candidate, sla(72), NOW) == (True, ALL_CONDITIONS_MET)

    def test_test_override_not_reached(self):
        candidate = make_candidate(last_status_change_at=NOW - timedelta(minutes=1))

        passes, reason = evaluator(test_override=2).evaluate(candidate, sla(72), NOW)

        assert passes is False
        assert reason == "SLA not breached: 1.0 minutes elapsed (test override: 2 minutes)"

    def test_dry_run_override(self):
        candidate = make_candidate(last_status_change_at=NOW - timedelta(minutes=3))

        passes, reason = evaluator(dry_run=True, dry_run_override=5).evaluate(candidate, sla(72), NOW)

        assert passes is False
        assert reason == "[DRY RUN] SLA not breached: 3.0 minutes elapsed (SLA override: 5 minutes)"

    def test_dry_run_override_ignored_outside_dry_run(self):
        ev = evaluator(dry_run=False, dry_run_override=5)

        assert ev.effective_sla_minutes(72) == 72 * 60

    def test_test_override_wins_over_dry_run(self):
        ev = evaluator(test_override=2, dry_run=True, dry_run_override=5)

        assert ev.effective_sla_minutes(72) == 2


class TestOtherTimeChecks:
    def test_hours_since_last_update(self):
        candidate = make_candidate(
            created_at=NOW - timedelta(days=5),
            updated_at=NOW - timedelta(hours=2)
        )
        conditions = EscalationConditions(time_based=TimeBasedCondition(hours_since_last_update=4))

        passes, reason = evaluator().evaluate(candidate, conditions, NOW)

        assert passes is False
        assert reason == "Not enough time since last update: 2.0 hours"

    def test_last_update_falls_back_to_creation(self):
        candidate = make_candidate(created_at=NOW - timedelta(hours=5), updated_at=None)
        conditions = EscalationConditions(time_based=TimeBasedCondition(hours_since_last_update=4))

        assert evaluator().evaluate(candidate, conditions, NOW)[0] is True

    def test_hours_since_creation(self):
        candidate = make_candidate(created_at=NOW - timedelta(hours=12))
        conditions = EscalationConditions(time_based=TimeBasedCondition(hours_since_creation=24))

        passes, reason = evaluator().evaluate(candidate, conditions, NOW)

        assert passes is False
        assert reason == "Not enough time since creation: 12.0 hours"
