from __future__ import annotations

import pytest

from resultsdash.core.uploads import (
    MAX_UPLOAD_BYTES,
    InvalidUploadError,
    build_csv_upload_body,
    validate_csv_upload,
)


def test_csv_extension_accepted() -> None:
    validate_csv_upload("Fall-2023.CSV", 1024)


def test_csv_content_type_accepted_without_extension() -> None:
    validate_csv_upload("export", 10, content_type="text/csv")


def test_non_csv_rejected() -> None:
    with pytest.raises(InvalidUploadError, match="Please select a .csv file."):
        validate_csv_upload("grades.xlsx", 10, content_type="application/vnd.ms-excel")


def test_missing_file_rejected() -> None:
    with pytest.raises(InvalidUploadError, match="select a CSV file"):
        validate_csv_upload("", 0)


def test_oversized_file_rejected() -> None:
    validate_csv_upload("big.csv", MAX_UPLOAD_BYTES)
    with pytest.raises(InvalidUploadError, match="Maximum file size is 10MB."):
        validate_csv_upload("big.csv", MAX_UPLOAD_BYTES + 1)


def test_body_requires_semester() -> None:
    with pytest.raises(InvalidUploadError, match="Semester is required"):
        build_csv_upload_body(semester="  ", filename="r.csv", content=b"")


def test_body_fields() -> None:
    body = build_csv_upload_body(semester="Spring 2024", filename="r.csv", content=b"x", upload_type="")
    assert body.fields == {"semester": "Spring 2024", "type": "semester-results"}
    assert body.files["file"].content_type == "text/csv"
