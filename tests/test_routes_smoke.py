"""Smoke tests for API routes."""

import json

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from unicodeprep_tracker.api.routes import router
from unicodeprep_tracker.errors import PersistenceError
from unicodeprep_tracker.storage.progress_store import progress_key

from conftest import RawDocumentStore, StubExecutor

HEADERS = {"X-User-Id": "student_1"}


@pytest.fixture
def store():
    return RawDocumentStore()


@pytest.fixture
def executor():
    return StubExecutor()


@pytest.fixture
def client(store, executor):
    app = FastAPI()
    app.state.store = store
    app.state.executor = executor
    app.include_router(router)
    with TestClient(app) as c:
        yield c


class TestHealthCheck:
    def test_health_returns_ok(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestProgress:
    def test_requires_user_header(self, client):
        response = client.get("/api/progress")
        assert response.status_code == 422

    def test_new_user_progress(self, client, store):
        response = client.get("/api/progress", headers=HEADERS)
        assert response.status_code == 200
        data = response.json()
        assert data["userId"] == "student_1"
        assert data["totalScore"] == 0
        assert data["rank"] == "bronze"
        assert progress_key("student_1") in store

    def test_clear_progress(self, client, store):
        client.post("/api/attendance", headers=HEADERS, json={})
        response = client.delete("/api/progress", headers=HEADERS)
        assert response.status_code == 204
        assert progress_key("student_1") not in store

    def test_storage_failure_maps_to_503(self, client, store, monkeypatch):
        def _fail(key, progress):
            raise PersistenceError("quota exceeded")

        monkeypatch.setattr(store, "save", _fail)
        response = client.get("/api/progress", headers={"X-User-Id": "someone_new"})
        assert response.status_code == 503


class TestSubmissions:
    def test_submit_with_results(self, client):
        body = {
            "code": "print(1)",
            "language": "python",
            "test_results": [{"input": "", "expectedOutput": "1", "actualOutput": "1", "passed": True, "executionTime": 3}],
        }
        response = client.post("/api/problems/two-sum/submissions", headers=HEADERS, json=body)
        assert response.status_code == 201
        assert response.json()["status"] == "passed"

        problem = client.get("/api/problems/two-sum", headers=HEADERS).json()
        assert problem["status"] == "solved"
        assert client.get("/api/progress", headers=HEADERS).json()["totalScore"] == 100

    def test_submit_runs_test_cases(self, client, executor):
        body = {"code": "x", "language": "python", "test_cases": [{"input": "1", "expected_output": "2"}]}
        response = client.post("/api/problems/p/submissions", headers=HEADERS, json=body)
        assert response.status_code == 201
        assert len(executor.calls) == 1
        assert response.json()["testResults"][0]["expectedOutput"] == "2"

    def test_submit_without_results_or_cases(self, client):
        response = client.post("/api/problems/p/submissions", headers=HEADERS, json={"code": "x"})
        assert response.status_code == 422

    def test_run_does_not_record(self, client):
        body = {"code": "x", "test_cases": [{"input": "1", "expected_output": "1"}]}
        response = client.post("/api/run", headers=HEADERS, json=body)
        assert response.status_code == 200
        assert response.json()[0]["passed"] is True
        assert client.get("/api/submissions", headers=HEADERS).json() == []

    def test_run_has_no_problem_scoped_path(self, client):
        body = {"code": "x", "test_cases": []}
        assert client.post("/api/problems/p/run", headers=HEADERS, json=body).status_code == 404

    def test_history_with_stored_utc_timestamps(self, client, store):
        document = {
            "userId": "student_1",
            "problemsProgress": {
                "a": {
                    "problemId": "a",
                    "status": "attempted",
                    "submissions": [
                        {"problemId": "a", "code": "x", "language": "python", "status": "failed", "submittedAt": "2020-03-01T10:00:00.000Z"}
                    ],
                }
            },
        }
        store.put_raw(progress_key("student_1"), json.dumps(document))
        body = {"code": "x", "test_results": [{"passed": False}]}
        client.post("/api/problems/b/submissions", headers=HEADERS, json=body)

        response = client.get("/api/submissions", headers=HEADERS)
        assert response.status_code == 200
        assert [s["problemId"] for s in response.json()] == ["b", "a"]
        assert client.get("/api/dashboard", headers=HEADERS).status_code == 200

    def test_submission_history(self, client):
        body = {"code": "x", "test_results": [{"passed": False}]}
        client.post("/api/problems/a/submissions", headers=HEADERS, json=body)
        client.post("/api/problems/b/submissions", headers=HEADERS, json=body)
        assert len(client.get("/api/submissions", headers=HEADERS).json()) == 2
        only_a = client.get("/api/submissions", headers=HEADERS, params={"problem_id": "a"}).json()
        assert [s["problemId"] for s in only_a] == ["a"]


class TestInterviewsAndAttendance:
    def test_complete_interview(self, client):
        response = client.post("/api/interviews", headers=HEADERS, json={"score": 80, "type": "technical"})
        assert response.status_code == 201
        assert response.json()["sessionId"].startswith("interview_")
        assert client.get("/api/progress", headers=HEADERS).json()["totalScore"] == 800

    def test_invalid_interview_score(self, client):
        response = client.post("/api/interviews", headers=HEADERS, json={"score": 120})
        assert response.status_code == 422

    def test_attendance(self, client):
        marked = client.post("/api/attendance", headers=HEADERS, json={})
        assert marked.status_code == 200
        assert marked.json()["activitiesCompleted"] == ["daily_check_in"]
        data = client.get("/api/attendance", headers=HEADERS).json()
        assert 28 <= len(data) <= 31
        assert any(data.values())

    def test_log_time(self, client):
        response = client.post("/api/time", headers=HEADERS, json={"minutes": 25})
        assert response.status_code == 200
        assert response.json()["timeSpent"] == 25

    def test_negative_time_rejected(self, client):
        response = client.post("/api/time", headers=HEADERS, json={"minutes": -1})
        assert response.status_code == 422

    def test_dashboard(self, client):
        client.post("/api/interviews", headers=HEADERS, json={"score": 100})
        data = client.get("/api/dashboard", headers=HEADERS).json()
        assert data["rank"] == "silver"
        assert data["rankLabel"] == "Silver Achiever"
        assert len(data["lastSevenDays"]) == 7
