"""Scheduler job body"""
from unittest.mock import MagicMock

from civic_escalation.domain.errors import RuleLoadError
from civic_escalation.scheduler.escalation_scheduler import EscalationScheduler

from tests.fakes import make_complaint, make_rule


def test_run_once_runs_a_cycle(engine, rule_repo, complaint_repo):
    rule_repo.rules.append(make_rule())
    complaint_repo.add(make_complaint())
    scheduler = EscalationScheduler(engine_factory=lambda: engine, interval_seconds=30)

    scheduler.run_once()

    assert scheduler.cycle_count == 1
    assert complaint_repo.get_complaint("CMP-1").current_status.value == "escalated"


def test_engine_is_built_once(engine):
    factory = MagicMock(return_value=engine)
    scheduler = EscalationScheduler(engine_factory=factory, interval_seconds=30)

    scheduler.run_once()
    scheduler.run_once()

    factory.assert_called_once_with()
    assert scheduler.cycle_count == 2


def test_aborted_cycle_does_not_raise(engine, rule_repo):
    rule_repo.rules.append(make_rule())
    rule_repo.fail = True
    scheduler = EscalationScheduler(engine_factory=lambda: engine, interval_seconds=30)

    scheduler.run_once()

    assert rule_repo.calls == 1


def test_unexpected_error_does_not_raise():
    broken = MagicMock()
    broken.run_cycle.side_effect = RuntimeError("boom")
    scheduler = EscalationScheduler(engine_factory=lambda: broken, interval_seconds=30)

    scheduler.run_once()
    broken.run_cycle.side_effect = RuleLoadError("Failed to load escalation rules")
    scheduler.run_once()

    assert broken.run_cycle.call_count == 2
    assert not scheduler.is_running
