"""Engine cycles over the in-memory store"""
from datetime import timedelta

import pytest

from civic_escalation.domain.enums import (
    ActorType, ComplaintStatus, EscalationOutcome, StatusHistoryActorType
)
from civic_escalation.domain.errors import CandidateLoadError, RuleLoadError
from civic_escalation.domain.models import ComplaintStatusHistory
from civic_escalation.utils.logger import get_correlation_id

from tests.fakes import BASE_TIME, make_complaint, make_rule


def add_complaint(complaint_repo, complaint_id, hours_since_change=80, order=0, **kwargs):
    complaint = make_complaint(
        complaint_id=complaint_id,
        created_at=BASE_TIME - timedelta(days=10) + timedelta(minutes=order),
        **kwargs
    )
    return complaint_repo.add(complaint, last_status_change_at=BASE_TIME - timedelta(hours=hours_since_change))


def officer_resumes_work(complaint_repo, complaint_id, at):
    """Officer moves an escalated complaint back to in_progress"""
    complaint_repo.update_complaint_assignment(complaint_id, ComplaintStatus.IN_PROGRESS, 10, 500, now=at)
    complaint_repo.history.append(ComplaintStatusHistory(
        history_id=f"HIST-officer-{len(complaint_repo.history)}",
        complaint_id=complaint_id,
        old_status=ComplaintStatus.ESCALATED,
        new_status=ComplaintStatus.IN_PROGRESS,
        changed_by_type=ActorType.OFFICER,
        actor_type=StatusHistoryActorType.AUTHORITY,
        actor_id=500,
        created_at=at
    ))


class TestCycleLoading:
    def test_no_rules_skips_candidate_load(self, engine, complaint_repo):
        add_complaint(complaint_repo, "CMP-1")

        report = engine.run_cycle()

        assert report.rules_loaded == 0
        assert report.candidates == 0
        assert report.results == []
        assert complaint_repo.candidate_calls == 0
        assert report.finished_at is not None

    def test_rule_load_failure_aborts(self, engine, rule_repo):
        rule_repo.rules.append(make_rule())
        rule_repo.fail = True

        with pytest.raises(RuleLoadError):
            engine.run_cycle()

    def test_candidate_load_failure_aborts(self, engine, rule_repo, complaint_repo):
        rule_repo.rules.append(make_rule())
        complaint_repo.fail_candidates = True

        with pytest.raises(CandidateLoadError):
            engine.run_cycle()

    def test_inactive_rules_are_ignored(self, engine, rule_repo, complaint_repo):
        rule_repo.rules.append(make_rule().model_copy(update={"is_active": False}))
        add_complaint(complaint_repo, "CMP-1")

        report = engine.run_cycle()

        assert report.rules_loaded == 0
        assert report.escalated_count == 0

    def test_correlation_id_is_propagated(self, engine, rule_repo):
        rule_repo.rules.append(make_rule())

        report = engine.run_cycle(correlation_id="corr-123")

        assert report.correlation_id == "corr-123"
        assert get_correlation_id() == "corr-123"

    def test_correlation_id_is_generated(self, engine, rule_repo):
        rule_repo.rules.append(make_rule())

        report = engine.run_cycle()

        assert report.correlation_id.startswith("COR-")


class TestCandidateSelection:
    def test_only_qualifying_statuses(self, engine, rule_repo, complaint_repo):
        rule_repo.rules.append(make_rule())
        add_complaint(complaint_repo, "CMP-OPEN", order=0)
        add_complaint(complaint_repo, "CMP-DRAFT", order=1, status=ComplaintStatus.SUBMITTED)
        add_complaint(complaint_repo, "CMP-DONE", order=2, status=ComplaintStatus.RESOLVED)
        add_complaint(complaint_repo, "CMP-CLOSED", order=3, status=ComplaintStatus.CLOSED)

        report = engine.run_cycle()

        assert report.candidates == 1
        assert [r.complaint_id for r in report.results] == ["CMP-OPEN"]

    def test_long_untouched_complaint_is_still_selected(self, engine, rule_repo, complaint_repo):
        rule_repo.rules.append(make_rule())
        add_complaint(complaint_repo, "CMP-OLD", hours_since_change=24 * 60)

        report = engine.run_cycle()

        assert report.escalated_count == 1

    def test_minute_override_escalates_recent_change(self, make_engine, rule_repo, complaint_repo):
        rule_repo.rules.append(make_rule(sla_hours=72))
        add_complaint(complaint_repo, "CMP-1", hours_since_change=3 / 60)

        report = make_engine(test_override_minutes=2).run_cycle()

        assert report.escalated_count == 1


class TestBatch:
    def test_one_failure_does_not_stop_the_batch(self, engine, rule_repo, complaint_repo, escalation_repo):
        rule_repo.rules.append(make_rule())
        for i in range(1, 6):
            add_complaint(complaint_repo, f"CMP-{i}", order=i)
        complaint_repo.fail_update_for.add("CMP-3")

        report = engine.run_cycle()

        assert report.candidates == 5
        assert report.escalated_count == 4
        assert [f.complaint_id for f in report.failed] == ["CMP-3"]
        assert report.failed[0].error_type == "EscalationWriteError"
        assert {e.complaint_id for e in escalation_repo.escalations} == {"CMP-1", "CMP-2", "CMP-4", "CMP-5"}
        assert complaint_repo.get_complaint("CMP-3").current_status == ComplaintStatus.UNDER_REVIEW

    def test_skipped_candidates_are_reported(self, engine, rule_repo, complaint_repo):
        rule_repo.rules.append(make_rule())
        add_complaint(complaint_repo, "CMP-DUE", order=0)
        add_complaint(complaint_repo, "CMP-FRESH", order=1, hours_since_change=1)

        report = engine.run_cycle()

        assert [r.complaint_id for r in report.results] == ["CMP-DUE"]
        [skipped] = report.skipped
        assert skipped.complaint_id == "CMP-FRESH"
        assert skipped.outcome == EscalationOutcome.CONDITIONS_NOT_MET

    def test_dry_run_is_reported(self, make_engine, rule_repo):
        rule_repo.rules.append(make_rule())

        assert make_engine(dry_run=True).run_cycle().dry_run is True


class TestRepeatedCycles:
    def test_second_cycle_does_not_escalate_again(self, engine, rule_repo, complaint_repo, escalation_repo):
        rule_repo.rules.append(make_rule())
        add_complaint(complaint_repo, "CMP-1")

        first = engine.run_cycle()
        second = engine.run_cycle()

        assert first.escalated_count == 1
        assert second.escalated_count == 0
        assert len(escalation_repo.escalations) == 1

    def test_levels_only_move_up(self, engine, clock, rule_repo, complaint_repo, escalation_repo):
        rule_repo.rules += [
            make_rule("RULE-L0", level=0, sla_hours=72),
            make_rule("RULE-L1", level=1, sla_hours=120),
        ]
        add_complaint(complaint_repo, "CMP-1")

        levels = []
        assert engine.run_cycle().escalated_count == 1
        levels.append(escalation_repo.get_current_level("CMP-1"))

        officer_resumes_work(complaint_repo, "CMP-1", clock())
        clock.advance(hours=121)
        assert engine.run_cycle().escalated_count == 1
        levels.append(escalation_repo.get_current_level("CMP-1"))

        officer_resumes_work(complaint_repo, "CMP-1", clock())
        clock.advance(hours=500)
        report = engine.run_cycle()
        levels.append(escalation_repo.get_current_level("CMP-1"))

        assert levels == [1, 2, 2]
        assert report.skipped[0].outcome == EscalationOutcome.MAX_LEVEL_REACHED
        assert complaint_repo.get_complaint("CMP-1").current_escalation_level == 2
