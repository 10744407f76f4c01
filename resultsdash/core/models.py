"""Domain models mirroring the results backend DTOs.

Wire format is camelCase (`subjectCode`, `recordsProcessed`); Python attributes are
snake_case. Models accept either on input and dump camelCase with `by_alias=True`.

Response models allow extra fields so a backend that grows a column does not break
the dashboard; request models forbid them so typos fail before hitting the network.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BaseModelAllowExtra(BaseModel):
    model_config = ConfigDict(extra="allow", alias_generator=to_camel, populate_by_name=True)


class BaseModelStrict(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


# ---- Entities (responses) ----


class Student(BaseModelAllowExtra):
    id: str
    name: str
    email: str
    department: str
    year: int
    gpa: float = 0.0
    status: str = "Active"
    profile_image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Result(BaseModelAllowExtra):
    id: int
    student_id: str
    semester: str
    subject_code: str
    subject_name: str = ""
    marks: float
    grade: str
    status: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Subject(BaseModelAllowExtra):
    code: str
    name: str
    department: str
    credits: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Upload(BaseModelAllowExtra):
    id: str
    name: str
    type: str
    records: int = 0
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UploadResponse(BaseModelAllowExtra):
    success: bool
    records_processed: Optional[int] = None
    message: Optional[str] = None


class AnalyticsStats(BaseModelAllowExtra):
    total_students: int = 0
    active_students: int = 0
    total_subjects: int = 0
    total_results_entered: int = 0
    students_per_department: Dict[str, int] = Field(default_factory=dict)
    average_gpa_per_department: Dict[str, float] = Field(default_factory=dict)
    results_per_semester: Dict[str, int] = Field(default_factory=dict)
    recent_uploads: List[Upload] = Field(default_factory=list)


class LoginResponse(BaseModelAllowExtra):
    token: Optional[str] = None
    id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None


# ---- Requests ----


class LoginRequest(BaseModelStrict):
    email: str
    password: str
    role: str


class CreateStudent(BaseModelStrict):
    id: str
    name: str
    email: str
    department: str
    year: int
    profile_image: Optional[str] = None


class UpdateStudent(BaseModelStrict):
    name: Optional[str] = None
    email: Optional[str] = None
    department: Optional[str] = None
    year: Optional[int] = None
    status: Optional[str] = None
    profile_image: Optional[str] = None


class CreateResult(BaseModelStrict):
    student_id: str
    semester: str
    subject_code: str
    subject_name: Optional[str] = None
    marks: float
    grade: str


class UpdateResult(BaseModelStrict):
    marks: float
    grade: str


class CreateSubject(BaseModelStrict):
    code: str
    name: str
    department: str
    credits: int


class UpdateSubject(BaseModelStrict):
    name: Optional[str] = None
    department: Optional[str] = None
    credits: Optional[int] = None
