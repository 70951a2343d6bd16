"""
Pytest Configuration and Fixtures

This file contains shared fixtures and configuration for all tests.
The engine is wired to the in-memory repositories in tests/fakes.py, so
no test needs a running MongoDB.
"""
import os
import tempfile

# Keep log files out of the working tree; must run before the package is imported
os.environ.setdefault("LOGS_PATH", tempfile.mkdtemp(prefix="civic-escalation-logs-"))

import pytest

from civic_escalation.engine import (
    AuthorityResolver, CandidateSelector, ConditionEvaluator, EscalationEngine, EscalationExecutor
)
from civic_escalation.services import EscalationNotifier, PilotMetricsService
from civic_escalation.utils.logger import set_correlation_id

from tests.fakes import (
    BASE_TIME, PILOT_INBOX, FakeAuditRepository, FakeComplaintRepository, FakeEscalationRepository,
    FakeMetricsRepository, FakeNotificationRepository, FakeOfficerRepository, FakeRuleRepository,
    FrozenClock
)


@pytest.fixture(autouse=True)
def _reset_correlation_id():
    set_correlation_id(None)
    yield
    set_correlation_id(None)


@pytest.fixture
def clock():
    return FrozenClock(BASE_TIME)


@pytest.fixture
def rule_repo():
    return FakeRuleRepository()


@pytest.fixture
def complaint_repo():
    return FakeComplaintRepository()


@pytest.fixture
def escalation_repo():
    return FakeEscalationRepository()


@pytest.fixture
def officer_repo():
    return FakeOfficerRepository()


@pytest.fixture
def audit_repo():
    return FakeAuditRepository()


@pytest.fixture
def metrics_repo():
    return FakeMetricsRepository()


@pytest.fixture
def notification_repo():
    return FakeNotificationRepository()


@pytest.fixture
def make_executor(
    clock, complaint_repo, escalation_repo, audit_repo, officer_repo, metrics_repo, notification_repo
):
    """Factory for executors over the shared fakes; keyword overrides win"""

    def _make(
        test_override_minutes: int = 0,
        dry_run: bool = False,
        dry_run_sla_override_minutes: int = 0,
        max_level: int = 2,
        idempotency_window_hours: float = 1,
        shadow_mode: bool = True
    ) -> EscalationExecutor:
        return EscalationExecutor(
            complaint_repo=complaint_repo,
            escalation_repo=escalation_repo,
            audit_repo=audit_repo,
            evaluator=ConditionEvaluator(
                test_override_minutes=test_override_minutes,
                dry_run=dry_run,
                dry_run_sla_override_minutes=dry_run_sla_override_minutes
            ),
            authority_resolver=AuthorityResolver(officer_repo),
            metrics=PilotMetricsService(metrics_repo),
            notifier=EscalationNotifier(
                repo=notification_repo,
                officer_repo=officer_repo,
                shadow_mode=shadow_mode,
                pilot_inbox_email=PILOT_INBOX,
                app_url="https://grievance.example.gov"
            ),
            max_level=max_level,
            idempotency_window_hours=idempotency_window_hours,
            dry_run=dry_run,
            lock_duration_seconds=120,
            server_id="test-server",
            clock=clock
        )

    return _make


@pytest.fixture
def executor(make_executor):
    return make_executor()


@pytest.fixture
def make_engine(clock, rule_repo, complaint_repo, make_executor):
    """Factory for engines over the shared fakes"""

    def _make(executor: EscalationExecutor = None, dry_run: bool = False, **executor_kwargs) -> EscalationEngine:
        return EscalationEngine(
            rule_repo=rule_repo,
            candidate_selector=CandidateSelector(complaint_repo),
            executor=executor or make_executor(dry_run=dry_run, **executor_kwargs),
            candidate_timeout_seconds=5,
            dry_run=dry_run,
            clock=clock
        )

    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()
