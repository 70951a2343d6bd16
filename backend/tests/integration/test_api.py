"""Escalation API with the engine and repositories swapped for in-memory fakes"""
import pytest
from fastapi.testclient import TestClient

from civic_escalation import main
from civic_escalation.api import deps
from civic_escalation.domain.enums import ComplaintStatus
from civic_escalation.main import app

from tests.fakes import make_complaint, make_rule

ADMIN_TOKEN = "test-admin-token"
AUTH = {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def client(monkeypatch, engine, complaint_repo, escalation_repo):
    monkeypatch.setattr(deps.settings, "admin_token", ADMIN_TOKEN)
    app.dependency_overrides[deps.get_escalation_engine] = lambda: engine
    app.dependency_overrides[deps.get_complaint_repo] = lambda: complaint_repo
    app.dependency_overrides[deps.get_escalation_repo] = lambda: escalation_repo
    # No context manager: the lifespan would connect to MongoDB and start the scheduler
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestAdminGuard:
    def test_missing_token(self, client):
        response = client.post("/api/v1/escalations/process")

        assert response.status_code == 403

    def test_wrong_token(self, client):
        response = client.post("/api/v1/escalations/process", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 403

    def test_unconfigured_token_rejects_everything(self, client, monkeypatch):
        monkeypatch.setattr(deps.settings, "admin_token", "")

        response = client.post("/api/v1/escalations/process", headers={"Authorization": "Bearer "})

        assert response.status_code == 403


class TestProcessEndpoint:
    def test_runs_a_cycle(self, client, rule_repo, complaint_repo):
        rule_repo.rules.append(make_rule())
        complaint_repo.add(make_complaint())

        response = client.post(
            "/api/v1/escalations/process",
            headers={**AUTH, "X-Correlation-Id": "corr-api-1"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["correlation_id"] == "corr-api-1"
        assert response.headers["X-Correlation-Id"] == "corr-api-1"
        assert body["candidates"] == 1
        assert body["escalated"] == 1
        assert body["results"][0]["outcome"] == "ESCALATED"
        assert body["failed"] == []
        assert complaint_repo.get_complaint("CMP-1").current_status == ComplaintStatus.ESCALATED

    def test_repeat_call_is_a_no_op(self, client, rule_repo, complaint_repo, escalation_repo):
        rule_repo.rules.append(make_rule())
        complaint_repo.add(make_complaint())

        client.post("/api/v1/escalations/process", headers=AUTH)
        second = client.post("/api/v1/escalations/process", headers=AUTH).json()

        assert second["escalated"] == 0
        assert len(escalation_repo.escalations) == 1

    def test_rule_load_failure_is_503(self, client, rule_repo):
        rule_repo.rules.append(make_rule())
        rule_repo.fail = True

        response = client.post("/api/v1/escalations/process", headers=AUTH)

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "RULE_LOAD_ERROR"


class TestComplaintStateEndpoint:
    def test_state_after_escalation(self, client, rule_repo, complaint_repo):
        rule_repo.rules.append(make_rule())
        complaint_repo.add(make_complaint())
        client.post("/api/v1/escalations/process", headers=AUTH)

        response = client.get("/api/v1/escalations/complaints/CMP-1", headers=AUTH)

        assert response.status_code == 200
        body = response.json()
        assert body["current_status"] == "escalated"
        assert body["current_level"] == 1
        assert body["cached_level"] == 1
        assert body["in_sync"] is True
        assert len(body["escalations"]) == 1

    def test_unknown_complaint(self, client):
        response = client.get("/api/v1/escalations/complaints/CMP-X", headers=AUTH)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "COMPLAINT_NOT_FOUND"


def test_health(client, monkeypatch):
    monkeypatch.setattr(main, "health_check", lambda: {"status": "healthy", "database": "test"})

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
