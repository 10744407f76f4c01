"""Results backend provider: one method per REST endpoint, typed in and out."""

from __future__ import annotations

import logging
from typing import IO, Any, List, Optional, Protocol, Union, runtime_checkable
from urllib.parse import quote

from resultsdash.client.bodies import JsonBody
from resultsdash.client.errors import UploadRejectedError
from resultsdash.client.http import ApiClient
from resultsdash.core.models import (
    AnalyticsStats,
    CreateResult,
    CreateStudent,
    CreateSubject,
    Result,
    Student,
    Subject,
    UpdateResult,
    UpdateStudent,
    UpdateSubject,
    Upload,
    UploadResponse,
)
from resultsdash.core.uploads import DEFAULT_UPLOAD_TYPE, build_csv_upload_body

logger = logging.getLogger(__name__)


def _seg(value: Any) -> str:
    """Percent-encode one path segment (semesters contain spaces, codes may contain '/')."""
    return quote(str(value), safe="")


@runtime_checkable
class ResultsProvider(Protocol):
    # Students
    def get_students(self) -> List[Student]: ...

    def get_student(self, student_id: str) -> Student: ...

    def create_student(self, data: CreateStudent) -> Student: ...

    def update_student(self, student_id: str, data: UpdateStudent) -> Student: ...

    def delete_student(self, student_id: str) -> None: ...

    # Results
    def get_results(self) -> List[Result]: ...

    def get_results_by_student(self, student_id: str) -> List[Result]: ...

    def get_results_by_semester(self, semester: str) -> List[Result]: ...

    def create_result(self, data: CreateResult) -> Result: ...

    def update_result(self, result_id: int, data: UpdateResult) -> Result: ...

    def delete_result(self, result_id: int) -> None: ...

    # Subjects
    def get_subjects(self) -> List[Subject]: ...

    def get_subject(self, code: str) -> Subject: ...

    def create_subject(self, data: CreateSubject) -> Subject: ...

    def update_subject(self, code: str, data: UpdateSubject) -> Subject: ...

    def delete_subject(self, code: str) -> None: ...

    # Uploads, analytics, reports
    def get_recent_uploads(self, limit: int = 5) -> List[Upload]: ...

    def upload_results_csv(
        self,
        *,
        semester: str,
        filename: str,
        content: Union[bytes, IO[bytes]],
        upload_type: str = DEFAULT_UPLOAD_TYPE,
        content_type: Optional[str] = None,
    ) -> UploadResponse: ...

    def get_analytics_stats(self) -> AnalyticsStats: ...

    def get_semester_report_html(self, semester: str) -> str: ...


class DefaultResultsProvider:
    def __init__(self, client: ApiClient) -> None:
        self.client = client

    # ---- Students ----

    def get_students(self) -> List[Student]:
        data = self.client.fetch_api("/students")
        return [Student.model_validate(s) for s in data or []]

    def get_student(self, student_id: str) -> Student:
        return Student.model_validate(self.client.fetch_api(f"/students/{_seg(student_id)}"))

    def create_student(self, data: CreateStudent) -> Student:
        payload = self.client.fetch_api("/students", method="POST", body=JsonBody.from_model(data))
        return Student.model_validate(payload)

    def update_student(self, student_id: str, data: UpdateStudent) -> Student:
        payload = self.client.fetch_api(
            f"/students/{_seg(student_id)}", method="PUT", body=JsonBody.from_model(data)
        )
        return Student.model_validate(payload)

    def delete_student(self, student_id: str) -> None:
        self.client.fetch_api(f"/students/{_seg(student_id)}", method="DELETE")

    # ---- Results ----

    def get_results(self) -> List[Result]:
        data = self.client.fetch_api("/results")
        return [Result.model_validate(r) for r in data or []]

    def get_results_by_student(self, student_id: str) -> List[Result]:
        data = self.client.fetch_api(f"/results/student/{_seg(student_id)}")
        return [Result.model_validate(r) for r in data or []]

    def get_results_by_semester(self, semester: str) -> List[Result]:
        data = self.client.fetch_api(f"/results/semester/{_seg(semester)}")
        return [Result.model_validate(r) for r in data or []]

    def create_result(self, data: CreateResult) -> Result:
        payload = self.client.fetch_api("/results", method="POST", body=JsonBody.from_model(data))
        return Result.model_validate(payload)

    def update_result(self, result_id: int, data: UpdateResult) -> Result:
        payload = self.client.fetch_api(f"/results/{int(result_id)}", method="PUT", body=JsonBody.from_model(data))
        return Result.model_validate(payload)

    def delete_result(self, result_id: int) -> None:
        self.client.fetch_api(f"/results/{int(result_id)}", method="DELETE")

    # ---- Subjects ----

    def get_subjects(self) -> List[Subject]:
        data = self.client.fetch_api("/subjects")
        return [Subject.model_validate(s) for s in data or []]

    def get_subject(self, code: str) -> Subject:
        return Subject.model_validate(self.client.fetch_api(f"/subjects/{_seg(code)}"))

    def create_subject(self, data: CreateSubject) -> Subject:
        payload = self.client.fetch_api("/subjects", method="POST", body=JsonBody.from_model(data))
        return Subject.model_validate(payload)

    def update_subject(self, code: str, data: UpdateSubject) -> Subject:
        payload = self.client.fetch_api(f"/subjects/{_seg(code)}", method="PUT", body=JsonBody.from_model(data))
        return Subject.model_validate(payload)

    def delete_subject(self, code: str) -> None:
        self.client.fetch_api(f"/subjects/{_seg(code)}", method="DELETE")

    # ---- Uploads ----

    def get_recent_uploads(self, limit: int = 5) -> List[Upload]:
        data = self.client.fetch_api("/uploads", params={"limit": max(1, int(limit))})
        return [Upload.model_validate(u) for u in data or []]

    def upload_results_csv(
        self,
        *,
        semester: str,
        filename: str,
        content: Union[bytes, IO[bytes]],
        upload_type: str = DEFAULT_UPLOAD_TYPE,
        content_type: Optional[str] = None,
    ) -> UploadResponse:
        """
        Upload a results CSV for backend processing.

        Raises:
            UploadRejectedError when the backend reports `success: false`
        """
        body = build_csv_upload_body(
            semester=semester,
            filename=filename,
            content=content,
            upload_type=upload_type,
            content_type=content_type,
        )
        payload = self.client.fetch_api(
            "/uploads/results/csv",
            method="POST",
            body=body,
            headers={"Accept": "application/json"},
        )
        result = UploadResponse.model_validate(payload)
        if not result.success:
            logger.warning("CSV upload of %s rejected: %s", filename, result.message)
            raise UploadRejectedError(
                result.message or "Backend reported failure but provided no specific message."
            )
        logger.info("CSV upload of %s processed %s records", filename, result.records_processed or 0)
        return result

    # ---- Analytics / reports ----

    def get_analytics_stats(self) -> AnalyticsStats:
        return AnalyticsStats.model_validate(self.client.fetch_api("/analytics/admin"))

    def get_semester_report_html(self, semester: str) -> str:
        return self.client.fetch_html(f"/reports/semester/{_seg(semester)}")


# Singleton instance
_results_provider: Optional[ResultsProvider] = None


def get_results_provider() -> ResultsProvider:
    """
    Get the results provider used by the CLI (singleton).

    The bearer token is read from the CLI session file on every request.
    """
    global _results_provider
    if _results_provider is None:
        from resultsdash.auth.session import get_file_session_store
        from resultsdash.auth.tokens import SessionTokenProvider
        from resultsdash.client.http import client_from_config

        store = get_file_session_store()
        _results_provider = DefaultResultsProvider(client_from_config(SessionTokenProvider(store.load)))
    return _results_provider


def set_results_provider(provider: Optional[ResultsProvider]) -> None:
    """Set results provider instance (for testing)."""
    global _results_provider
    _results_provider = provider
