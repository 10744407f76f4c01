"""
Console routes with a stubbed results provider (no backend).
"""

from __future__ import annotations

from typing import Any, Dict, List

import pytest
import requests
from fastapi.testclient import TestClient

import resultsdash.api.console as console
from resultsdash.auth.models import SessionUser
from resultsdash.auth.session import encode_session, session_cookie_name
from resultsdash.client.errors import HttpError, TransportError, UploadRejectedError
from resultsdash.config import load_config
from resultsdash.core.models import AnalyticsStats, Result, Student, UploadResponse

ADMIN = SessionUser(id="A1", role="admin", access_token="admin-jwt")
STUDENT_USER = SessionUser(id="S1001", role="student", access_token="student-jwt")

STUDENT = Student(id="S1001", name="Ana Lima", email="ana@uni.edu", department="CS", year=2, gpa=3.7)
RESULT = Result(
    id=7, student_id="S1001", semester="Fall 2023", subject_code="CS101", subject_name="Intro", marks=88.5, grade="A"
)


class StubProvider:
    def __init__(self) -> None:
        self.calls: List[Any] = []
        self.raise_on: Dict[str, Exception] = {}

    def _hit(self, name: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append((name, args, kwargs))
        if name in self.raise_on:
            raise self.raise_on[name]

    def get_students(self):
        self._hit("get_students")
        return [STUDENT]

    def get_student(self, student_id):
        self._hit("get_student", student_id)
        return STUDENT

    def get_results(self):
        self._hit("get_results")
        return [RESULT]

    def get_results_by_semester(self, semester):
        self._hit("get_results_by_semester", semester)
        return [RESULT]

    def get_results_by_student(self, student_id):
        self._hit("get_results_by_student", student_id)
        return [RESULT]

    def update_student(self, student_id, data):
        self._hit("update_student", student_id, data)
        return STUDENT

    def delete_student(self, student_id):
        self._hit("delete_student", student_id)

    def upload_results_csv(self, **kwargs):
        self._hit("upload_results_csv", **kwargs)
        return UploadResponse(success=True, records_processed=2)

    def get_analytics_stats(self):
        self._hit("get_analytics_stats")
        return AnalyticsStats(total_students=1, students_per_department={"CS": 1})

    def get_semester_report_html(self, semester):
        self._hit("get_semester_report_html", semester)
        return "<html><h1>Fall 2023</h1></html>"


@pytest.fixture
def stub(monkeypatch) -> StubProvider:
    monkeypatch.setenv("AUTH_SESSION_SECRET", "test-secret-key-for-testing-purposes-only")
    load_config.cache_clear()
    provider = StubProvider()
    monkeypatch.setattr(console, "provider_for_request", lambda request: provider)
    return provider


def _client_as(user: SessionUser) -> TestClient:
    cfg = load_config()
    c = TestClient(console.app)
    c.cookies.set(session_cookie_name(cfg), encode_session(cfg, user))
    return c


def test_admin_lists_students_in_wire_format(stub) -> None:
    r = _client_as(ADMIN).get("/api/students")
    assert r.status_code == 200
    body = r.json()
    assert body[0]["id"] == "S1001"
    assert "profileImage" in body[0]


def test_student_cannot_list_students(stub) -> None:
    r = _client_as(STUDENT_USER).get("/api/students")
    assert r.status_code == 403
    assert stub.calls == []


def test_student_can_view_own_records_only(stub) -> None:
    c = _client_as(STUDENT_USER)
    assert c.get("/api/students/S1001").status_code == 200
    assert c.get("/api/results/student/S1001").status_code == 200
    assert c.get("/api/students/S2002").status_code == 403


def test_results_semester_filter(stub) -> None:
    r = _client_as(ADMIN).get("/api/results", params={"semester": "Fall 2023"})
    assert r.status_code == 200
    assert stub.calls[-1] == ("get_results_by_semester", ("Fall 2023",), {})
    assert r.json()[0]["subjectCode"] == "CS101"


def test_empty_update_is_a_no_op(stub) -> None:
    r = _client_as(ADMIN).put("/api/students/S1001", json={})
    assert r.status_code == 200
    assert r.json()["message"] == "No changes detected."
    assert stub.calls == []


def test_update_accepts_camel_case(stub) -> None:
    r = _client_as(ADMIN).put("/api/students/S1001", json={"profileImage": "https://img/1.png"})
    assert r.status_code == 200
    _, args, _ = stub.calls[-1]
    assert args[1].profile_image == "https://img/1.png"


def test_delete_returns_204(stub) -> None:
    r = _client_as(ADMIN).delete("/api/students/S1001")
    assert r.status_code == 204


def test_backend_http_error_status_is_preserved(stub) -> None:
    stub.raise_on["get_student"] = HttpError("Student not found with id: S9", 404)
    r = _client_as(ADMIN).get("/api/students/S9")
    assert r.status_code == 404
    assert r.json()["detail"] == "Student not found with id: S9"


def test_backend_unreachable_is_bad_gateway(stub) -> None:
    stub.raise_on["get_students"] = TransportError("Request to /students failed: connection refused")
    r = _client_as(ADMIN).get("/api/students")
    assert r.status_code == 502


def test_csv_upload_forwards_form(stub) -> None:
    r = _client_as(ADMIN).post(
        "/api/uploads/results/csv",
        data={"semester": "Fall 2023", "type": "semester-results"},
        files={"file": ("fall.csv", b"studentId,subjectCode,marks\nS1001,CS101,88\n", "text/csv")},
    )
    assert r.status_code == 200
    assert r.json() == {"success": True, "recordsProcessed": 2, "message": None}
    name, _, kwargs = stub.calls[-1]
    assert name == "upload_results_csv"
    assert kwargs["semester"] == "Fall 2023"
    assert kwargs["filename"] == "fall.csv"
    assert kwargs["content"].startswith(b"studentId")


def test_csv_upload_rejects_non_csv(stub) -> None:
    r = _client_as(ADMIN).post(
        "/api/uploads/results/csv",
        data={"semester": "Fall 2023"},
        files={"file": ("grades.xlsx", b"PK..", "application/octet-stream")},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Please select a .csv file."
    assert stub.calls == []


def test_csv_upload_backend_failure_flag(stub) -> None:
    stub.raise_on["upload_results_csv"] = UploadRejectedError("Row 3: unknown student S999")
    r = _client_as(ADMIN).post(
        "/api/uploads/results/csv",
        data={"semester": "Fall 2023"},
        files={"file": ("fall.csv", b"a,b\n", "text/csv")},
    )
    assert r.status_code == 422
    assert "S999" in r.json()["detail"]


def test_semester_report_is_html(stub) -> None:
    r = _client_as(ADMIN).get("/api/reports/semester/Fall 2023")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert r.text == "<html><h1>Fall 2023</h1></html>"
    assert stub.calls[-1] == ("get_semester_report_html", ("Fall 2023",), {})


def test_analytics_admin_only(stub) -> None:
    assert _client_as(STUDENT_USER).get("/api/analytics/admin").status_code == 403
    r = _client_as(ADMIN).get("/api/analytics/admin")
    assert r.status_code == 200
    assert r.json()["studentsPerDepartment"] == {"CS": 1}


def test_student_dashboard_fetches_profile_and_results(stub) -> None:
    r = _client_as(STUDENT_USER).get("/api/student/dashboard")
    assert r.status_code == 200
    body = r.json()
    assert body["student"]["id"] == "S1001"
    assert body["results"][0]["grade"] == "A"
    names = sorted(c[0] for c in stub.calls)
    assert names == ["get_results_by_student", "get_student"]


def test_real_provider_forwards_session_token(monkeypatch, make_response) -> None:
    monkeypatch.setenv("AUTH_SESSION_SECRET", "test-secret-key-for-testing-purposes-only")
    monkeypatch.setenv("RESULTS_API_URL", "http://backend.test/api")
    load_config.cache_clear()
    sent: List[Dict[str, Any]] = []

    def fake_request(self, method, url, **kwargs):
        sent.append({"method": method, "url": url, **kwargs})
        return make_response(200, "[]")

    monkeypatch.setattr(requests.Session, "request", fake_request)

    r = _client_as(ADMIN).get("/api/subjects")
    assert r.status_code == 200
    assert r.json() == []
    assert sent[0]["url"] == "http://backend.test/api/subjects"
    assert sent[0]["headers"]["Authorization"] == "Bearer admin-jwt"


def test_csv_upload_over_size_cap_is_rejected(stub, monkeypatch) -> None:
    monkeypatch.setattr("resultsdash.core.uploads.MAX_UPLOAD_BYTES", 16)
    monkeypatch.setattr(console, "MAX_UPLOAD_BYTES", 16)
    r = _client_as(ADMIN).post(
        "/api/uploads/results/csv",
        data={"semester": "Fall 2023"},
        files={"file": ("fall.csv", b"studentId,subjectCode,marks\n" * 100, "text/csv")},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Maximum file size is 10MB."
    assert stub.calls == []
