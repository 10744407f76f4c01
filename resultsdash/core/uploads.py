"""CSV result upload: client-side checks and multipart body construction."""

from __future__ import annotations

from typing import IO, Optional, Union

from resultsdash.client.bodies import FilePart, MultipartBody

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_UPLOAD_TYPE = "semester-results"
CSV_CONTENT_TYPE = "text/csv"


class InvalidUploadError(ValueError):
    """The selected file cannot be sent to the backend."""


def validate_csv_upload(filename: Optional[str], size: int, content_type: Optional[str] = None) -> None:
    """
    Reject files the backend would refuse anyway.

    Raises:
        InvalidUploadError with a message suitable for end users
    """
    name = (filename or "").strip()
    if not name:
        raise InvalidUploadError("Please select a CSV file to upload.")
    if "csv" not in (content_type or "").lower() and not name.lower().endswith(".csv"):
        raise InvalidUploadError("Please select a .csv file.")
    if size > MAX_UPLOAD_BYTES:
        raise InvalidUploadError("Maximum file size is 10MB.")


def build_csv_upload_body(
    *,
    semester: str,
    filename: str,
    content: Union[bytes, IO[bytes]],
    upload_type: str = DEFAULT_UPLOAD_TYPE,
    content_type: Optional[str] = None,
) -> MultipartBody:
    semester = (semester or "").strip()
    if not semester:
        raise InvalidUploadError("Semester is required for a results upload.")
    return MultipartBody(
        fields={"semester": semester, "type": upload_type or DEFAULT_UPLOAD_TYPE},
        files={"file": FilePart(filename=filename, content=content, content_type=content_type or CSV_CONTENT_TYPE)},
    )
