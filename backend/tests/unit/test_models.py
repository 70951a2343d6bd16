"""Rule and condition parsing, including legacy documents"""
import json

import pytest
from pydantic import ValidationError

from civic_escalation.domain.models import (
    CONDITIONS_SCHEMA_VERSION, MAX_RULE_LEVEL, CycleReport, EscalationConditions, EscalationResult, EscalationRule
)
from civic_escalation.domain.enums import EscalationOutcome

from tests.fakes import BASE_TIME


def rule_doc(conditions):
    return {
        "rule_id": "RULE-1",
        "escalation_level": 0,
        "conditions": conditions,
        "is_active": True,
        "created_at": BASE_TIME,
    }


class TestConditionsParsing:
    def test_legacy_sla_field_is_migrated(self):
        conditions = EscalationConditions.model_validate({"time_based": {"hours_since_status_change": 48}})

        assert conditions.time_based.sla_hours == 48
        assert conditions.schema_version == CONDITIONS_SCHEMA_VERSION

    def test_sla_hours_wins_over_legacy_field(self):
        conditions = EscalationConditions.model_validate(
            {"time_based": {"sla_hours": 24, "hours_since_status_change": 48}}
        )

        assert conditions.time_based.sla_hours == 24

    def test_json_text_is_decoded(self):
        raw = json.dumps({"statuses": ["under_review"], "time_based": {"sla_hours": 72}})

        conditions = EscalationConditions.model_validate(raw)

        assert conditions.statuses == ["under_review"]
        assert conditions.time_based.sla_hours == 72

    def test_null_values_become_defaults(self):
        conditions = EscalationConditions.model_validate({
            "statuses": None,
            "priorities": None,
            "time_based": {"sla_hours": None, "hours_since_creation": 6},
        })

        assert conditions.statuses == []
        assert conditions.priorities == []
        assert conditions.time_based.sla_hours == 0
        assert conditions.time_based.hours_since_creation == 6

    def test_older_schema_version_is_upgraded(self):
        conditions = EscalationConditions.model_validate({"schema_version": 1})

        assert conditions.schema_version == CONDITIONS_SCHEMA_VERSION

    @pytest.mark.parametrize("version", [CONDITIONS_SCHEMA_VERSION + 1, "2"])
    def test_unknown_schema_version_is_rejected(self, version):
        with pytest.raises(ValidationError):
            EscalationConditions.model_validate({"schema_version": version})

    def test_malformed_json_is_rejected(self):
        with pytest.raises((ValidationError, ValueError)):
            EscalationConditions.model_validate("{not json")

    def test_negative_threshold_is_rejected(self):
        with pytest.raises(ValidationError):
            EscalationConditions.model_validate({"time_based": {"sla_hours": -1}})


class TestRuleParsing:
    @pytest.mark.parametrize("empty", [None, ""])
    def test_empty_condition_block_is_none(self, empty):
        rule = EscalationRule.model_validate(rule_doc(empty))

        assert rule.conditions is None

    def test_empty_object_is_unconditional(self):
        rule = EscalationRule.model_validate(rule_doc({}))

        assert rule.conditions is not None
        assert rule.conditions.time_based is None
        assert rule.conditions.statuses == []

    def test_json_string_conditions(self):
        rule = EscalationRule.model_validate(rule_doc('{"time_based": {"hours_since_status_change": 72}}'))

        assert rule.conditions.time_based.sla_hours == 72

    def test_negative_level_rejected(self):
        doc = rule_doc({})
        doc["escalation_level"] = -1

        with pytest.raises(ValidationError):
            EscalationRule.model_validate(doc)

    def test_level_above_highest_rejected(self):
        doc = rule_doc({})
        doc["escalation_level"] = MAX_RULE_LEVEL + 1

        with pytest.raises(ValidationError):
            EscalationRule.model_validate(doc)

    def test_rule_is_immutable(self):
        rule = EscalationRule.model_validate(rule_doc({}))

        with pytest.raises(ValidationError):
            rule.escalation_level = 1


class TestCycleReport:
    def test_counts(self):
        def result(outcome, **flags):
            return EscalationResult(
                complaint_id="C", outcome=outcome, reason="r", processed_at=BASE_TIME, **flags
            )

        report = CycleReport(
            correlation_id="corr",
            started_at=BASE_TIME,
            results=[
                result(EscalationOutcome.ESCALATED, escalated=True),
                result(EscalationOutcome.ESCALATED, escalated=True),
                result(EscalationOutcome.REMINDER_SENT, reminder_sent=True),
            ]
        )

        assert report.escalated_count == 2
        assert report.reminder_count == 1
