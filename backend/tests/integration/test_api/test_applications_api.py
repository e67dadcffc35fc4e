"""API tests for the application endpoints, backed by in-memory storage."""
import time
from unittest.mock import patch

import jwt
import pytest
from fastapi.testclient import TestClient

from daco_workflow.api.deps import get_application_service_dep, get_workflow_dep
from daco_workflow.config.settings import settings
from daco_workflow.domain.enums import ApplicationState
from daco_workflow.main import app

S = ApplicationState


def _auth(role: str, sub: str) -> dict:
    token = jwt.encode(
        {"sub": sub, "email": f"{sub}@uhn.ca", "role": role, "exp": int(time.time()) + 600},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    return {"Authorization": f"Bearer {token}"}


APPLICANT = _auth("APPLICANT", "user-applicant")
REP = _auth("INSTITUTIONAL_REP", "user-rep")
DAC = _auth("DAC_MEMBER", "user-dac")


@pytest.fixture
def client(workflow, application_service):
    app.dependency_overrides[get_workflow_dep] = lambda: workflow
    app.dependency_overrides[get_application_service_dep] = lambda: application_service
    # No context manager: the lifespan (indexes, scheduler) is not started
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestRouting:

    def test_application_routes_are_mounted_under_the_api_prefix(self):
        routes = {
            (route.path, method)
            for route in app.routes
            for method in getattr(route, "methods", None) or ()
        }

        assert ("/api/v1/applications", "POST") in routes
        assert ("/api/v1/applications/{application_id}", "GET") in routes
        assert ("/api/v1/applications/{application_id}/submit", "POST") in routes
        assert ("/api/v1/applications/{application_id}/history", "GET") in routes
        assert ("/health", "GET") in routes


class TestAuthentication:

    def test_missing_token(self, client):
        response = client.post("/api/v1/applications", json={})

        assert response.status_code == 401
        assert response.json()["detail"]["error"]["code"] == "AUTHENTICATION_ERROR"

    def test_invalid_token(self, client):
        response = client.get("/api/v1/applications/APP-1", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401


class TestApplicationLifecycle:

    def test_create_edit_and_submit(self, client, complete_content):
        created = client.post("/api/v1/applications", json={}, headers=APPLICANT)
        assert created.status_code == 201
        app_id = created.json()["application_id"]

        incomplete = client.post(f"/api/v1/applications/{app_id}/submit", headers=APPLICANT)
        assert incomplete.status_code == 400
        assert incomplete.json()["detail"]["error"]["code"] == "INCOMPLETE_APPLICATION"

        edited = client.put(
            f"/api/v1/applications/{app_id}/content",
            json=complete_content.model_dump(mode="json"),
            headers=APPLICANT,
        )
        assert edited.status_code == 200
        assert edited.json()["allowed_events"] == ["submit", "edit", "close"]

        submitted = client.post(
            f"/api/v1/applications/{app_id}/submit",
            headers={**APPLICANT, "X-Correlation-Id": "COR-api-test"},
        )
        assert submitted.status_code == 200
        body = submitted.json()
        assert body["state"] == "INSTITUTIONAL_REP_REVIEW"
        assert body["action"]["action"] == "SUBMIT_DRAFT"
        assert body["action"]["correlation_id"] == "COR-api-test"
        assert submitted.headers["X-Correlation-Id"] == "COR-api-test"

    def test_revision_cycle_and_history(self, client, make_application):
        app_id = make_application(state=S.INSTITUTIONAL_REP_REVIEW).application_id

        revision = client.post(
            f"/api/v1/applications/{app_id}/revision-request",
            json={"project_approved": False, "project_notes": "Expand the aims"},
            headers=REP,
        )
        assert revision.status_code == 200
        assert revision.json()["state"] == "REP_REVISION"
        assert revision.json()["revision_request"]["project_notes"] == "Expand the aims"

        locked = client.put(
            f"/api/v1/applications/{app_id}/content",
            json={"requested_studies": ["OTHER"]},
            headers=APPLICANT,
        )
        assert locked.status_code == 409
        assert locked.json()["detail"]["error"]["code"] == "SECTION_LOCKED"

        latest = client.get(f"/api/v1/applications/{app_id}/revision-requests/latest", headers=APPLICANT)
        assert latest.status_code == 200
        assert latest.json()["project_approved"] is False

        client.post(f"/api/v1/applications/{app_id}/submit", headers=APPLICANT)
        history = client.get(f"/api/v1/applications/{app_id}/history?sort=asc", headers=APPLICANT)
        assert history.status_code == 200
        assert [item["action"] for item in history.json()["items"]] == [
            "INSTITUTIONAL_REP_REVISION_REQUEST", "INSTITUTIONAL_REP_SUBMIT"
        ]

    def test_dac_decisions(self, client, make_application):
        approved_id = make_application(state=S.DAC_REVIEW).application_id
        rejected_id = make_application(state=S.DAC_REVIEW).application_id

        approved = client.post(f"/api/v1/applications/{approved_id}/approve", headers=DAC)
        rejected = client.post(f"/api/v1/applications/{rejected_id}/reject", headers=DAC)
        revoked = client.post(f"/api/v1/applications/{approved_id}/revoke", headers=DAC)

        assert approved.json()["state"] == "APPROVED"
        assert rejected.json()["state"] == "REJECTED"
        assert revoked.json()["state"] == "REVOKED"

    def test_invalid_transition_is_a_conflict(self, client, make_application):
        app_id = make_application(state=S.CLOSED).application_id

        response = client.post(f"/api/v1/applications/{app_id}/submit", headers=APPLICANT)

        assert response.status_code == 409
        error = response.json()["detail"]["error"]
        assert error["code"] == "INVALID_TRANSITION"
        assert error["details"]["allowed_events"] == []

    def test_withdraw_and_close(self, client, make_application):
        app_id = make_application(state=S.DAC_REVIEW).application_id

        withdrawn = client.post(f"/api/v1/applications/{app_id}/edit", headers=APPLICANT)
        closed = client.post(f"/api/v1/applications/{app_id}/close", headers=APPLICANT)

        assert withdrawn.json()["state"] == "DRAFT"
        assert closed.json()["state"] == "CLOSED"


class TestReads:

    def test_unknown_application(self, client):
        response = client.get("/api/v1/applications/APP-missing", headers=APPLICANT)

        assert response.status_code == 404
        assert response.json()["detail"]["error"]["code"] == "APPLICATION_NOT_FOUND"

    def test_no_revision_requests_yet(self, client, make_application):
        app_id = make_application().application_id

        response = client.get(f"/api/v1/applications/{app_id}/revision-requests/latest", headers=APPLICANT)

        assert response.status_code == 404

    def test_bad_query_parameters(self, client, make_application):
        app_id = make_application().application_id

        response = client.get(f"/api/v1/applications/{app_id}/history?page_size=1000", headers=APPLICANT)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_unknown_content_section_is_rejected(self, client, make_application):
        app_id = make_application().application_id

        response = client.put(
            f"/api/v1/applications/{app_id}/content", json={"budget": "lots"}, headers=APPLICANT
        )

        assert response.status_code == 400


class TestHealth:

    def test_degraded_when_mongo_is_down(self, client):
        with patch("daco_workflow.main.health_check", return_value={"status": "unhealthy", "error": "timeout"}):
            response = client.get("/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "degraded"
        assert body["reminder_scheduler"] == {"running": False, "run_in_progress": False}
