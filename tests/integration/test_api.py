"""
Integration tests for the HTTP API.

The FastAPI app runs in-process through TestClient with the backend
dependency overridden to one built on the FakeStore. The lifespan is not
entered, so no real store client is ever constructed.
"""

import pytest
from fastapi.testclient import TestClient

from basecamp.api.dependencies import get_backend
from basecamp.api.main import app


@pytest.fixture
def client(backend):
    app.dependency_overrides[get_backend] = lambda: backend
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def whitelisted(store):
    store.tables["paid_learner_whitelist"] = [
        {"id": "w1", "email": "ada@example.com", "track_id": "t-frontend",
         "cohort_id": "c-2026", "status": "active", "added_date": "2026-01-05",
         "track": {"id": "t-frontend", "name": "Frontend"},
         "cohort": {"id": "c-2026", "name": "Cohort 2026"}},
    ]
    return store


class TestHealth:
    """Service endpoints."""

    def test_root(self):
        response = TestClient(app).get("/")

        assert response.status_code == 200
        assert response.json()["service"] == "basecamp"

    def test_health_without_backend(self):
        data = TestClient(app).get("/health").json()

        assert data["components"]["backend"] == "unavailable"

    def test_unconfigured_store_answers_500(self):
        response = TestClient(app).get("/api/curriculum/tracks")

        assert response.status_code == 500
        assert "SUPABASE_URL" in response.json()["detail"]


class TestAutoPairEndpoint:
    """POST /api/partners/auto-pair."""

    def test_creates_partnerships(self, client):
        response = client.post(
            "/api/partners/auto-pair", json={"track_id": "t-frontend", "cohort_id": "c-2026"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["created"] == 2
        assert [(p["student1_id"], p["student2_id"]) for p in body["partnerships"]] == [
            ("s1", "s2"), ("s3", "s4"),
        ]

    def test_insufficient_students_is_422(self, client, store):
        store.tables["student_enrollments"] = store.tables["student_enrollments"][:1]

        response = client.post(
            "/api/partners/auto-pair", json={"track_id": "t-frontend", "cohort_id": "c-2026"}
        )

        assert response.status_code == 422
        assert response.json()["detail"].startswith("No students found")

    def test_blank_track_is_400(self, client):
        response = client.post(
            "/api/partners/auto-pair", json={"track_id": "", "cohort_id": "c-2026"}
        )

        assert response.status_code == 400

    def test_missing_field_is_request_validation_422(self, client):
        response = client.post("/api/partners/auto-pair", json={"track_id": "t-frontend"})

        assert response.status_code == 422

    def test_unknown_partnership_is_404(self, client):
        response = client.post(
            "/api/partners/missing/reassign", json={"new_student1_id": "s5"}
        )

        assert response.status_code == 404


class TestSignUpEndpoint:
    """POST /api/accounts/signup."""

    def test_whitelisted(self, client, whitelisted, fake_auth):
        response = client.post(
            "/api/accounts/signup",
            json={"email": "ada@example.com", "password": "s3cret!", "full_name": "Ada",
                  "track_id": "t-frontend", "cohort_id": "c-2026"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["user"]["email"] == "ada@example.com"
        assert body["enrollment"]["total_tasks"] == 20

    def test_not_whitelisted_is_403(self, client, whitelisted, fake_auth):
        response = client.post(
            "/api/accounts/signup",
            json={"email": "eve@example.com", "password": "s3cret!", "full_name": "Eve",
                  "track_id": "t-frontend", "cohort_id": "c-2026"},
        )

        assert response.status_code == 403
        assert response.json()["detail"] == (
            "Email not found in whitelist or not approved for this track/cohort"
        )
        assert fake_auth.sign_ups == []


class TestWhitelistEndpoints:
    """Whitelist check, import and export."""

    def test_check(self, client, whitelisted):
        params = {"email": "ada@example.com", "track_id": "t-frontend", "cohort_id": "c-2026"}

        assert client.get("/api/whitelist/check", params=params).json() == {"whitelisted": True}
        params["cohort_id"] = "c-2025"
        assert client.get("/api/whitelist/check", params=params).json() == {"whitelisted": False}

    def test_import_raw_csv(self, client):
        response = client.post(
            "/api/whitelist/import",
            content="email,track,cohort\nbob@example.com,Backend,Cohort 2026\nx@example.com,?,?\n",
            headers={"Content-Type": "text/csv"},
        )

        assert response.status_code == 201
        body = response.json()
        assert [e["email"] for e in body["added"]] == ["bob@example.com"]
        assert body["skipped_lines"] == [3]

    def test_export_is_csv_attachment(self, client, whitelisted):
        response = client.get("/api/whitelist/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="paid-learners-whitelist-' in response.headers["content-disposition"]
        assert "ada@example.com,Frontend,Cohort 2026" in response.text


class TestSubmissionEndpoints:
    """Review and export."""

    def test_invalid_review_status_is_400(self, client):
        response = client.post(
            "/api/submissions/sub1/review", json={"status": "pending", "reviewed_by": "m1"}
        )

        assert response.status_code == 400

    def test_bulk_review_partial(self, client, store):
        store.tables["task_submissions"] = [
            {"id": "sub1", "student_id": "s1", "assignment_id": "a1", "status": "in_review"},
        ]

        response = client.post(
            "/api/submissions/bulk-review",
            json={"submission_ids": ["sub1", "missing"], "action": "approve", "reviewed_by": "m1"},
        )

        assert response.status_code == 200
        body = response.json()
        assert [s["status"] for s in body["updated"]] == ["approved"]
        assert body["failed"] == ["missing"]

    def test_store_failure_is_502(self, client, store):
        store.read_errors.add("task_submissions")

        response = client.get("/api/submissions/student/s1")

        assert response.status_code == 502


class TestDashboardEndpoints:
    """Dashboards."""

    def test_admin_dashboard(self, client):
        response = client.get("/api/dashboard")

        assert response.status_code == 200
        assert response.json()["total_students"] == 5

    def test_analytics_range_validated(self, client):
        assert client.get("/api/dashboard/analytics", params={"date_range": "7d"}).status_code == 200
        assert client.get("/api/dashboard/analytics", params={"date_range": "1y"}).status_code == 400
