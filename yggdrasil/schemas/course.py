"""강좌 Pydantic 요청/응답 스키마 정의.

Course and enrollment Pydantic request/response schema definitions.
"""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import Field, field_validator

from yggdrasil.schemas.common import CamelModel, UTCDatetime, reject_null

CourseLevel = Literal["beginner", "intermediate", "advanced"]
CourseStatus = Literal["draft", "published", "archived"]


class CourseCreate(CamelModel):
    """강좌 생성 요청 스키마.

    Course creation request. The code is uppercased; the instructor is
    the authenticated caller.
    """

    code: str = Field(min_length=2, max_length=20, pattern=r"^[A-Za-z0-9_-]+$")
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    category: str = Field(default="general", min_length=1, max_length=50)
    level: CourseLevel = "beginner"
    tags: list[str] = []
    capacity: int = Field(default=30, ge=1, le=1000)
    credits: int = Field(default=3, ge=0, le=30)
    start_date: UTCDatetime | None = None
    end_date: UTCDatetime | None = None

    @field_validator("code")
    @classmethod
    def upper_code(cls, value: str) -> str:
        return value.strip().upper()


class CourseUpdate(CamelModel):
    """강좌 수정 요청 스키마 (부분 업데이트)."""

    code: str | None = Field(default=None, min_length=2, max_length=20, pattern=r"^[A-Za-z0-9_-]+$")
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    category: str | None = Field(default=None, min_length=1, max_length=50)
    level: CourseLevel | None = None
    tags: list[str] | None = None
    capacity: int | None = Field(default=None, ge=1, le=1000)
    credits: int | None = Field(default=None, ge=0, le=30)
    start_date: UTCDatetime | None = None
    end_date: UTCDatetime | None = None

    @field_validator("code")
    @classmethod
    def upper_code(cls, value: str | None) -> str | None:
        return value.strip().upper() if value is not None else None

    @field_validator("code", "title", "description", "category", "level", "tags", "capacity", "credits")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        return reject_null(value)


class CourseResponse(CamelModel):
    """강좌 응답 스키마 — 수강 인원 포함 (Course with live enrollment figures)."""

    id: UUID
    code: str
    title: str
    description: str
    category: str
    level: str
    status: str
    instructor_id: UUID | None = None
    instructor_name: str
    tags: list[str]
    capacity: int
    credits: int
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool
    enrolled_count: int = 0
    available_spots: int = 0
    created_at: datetime
    updated_at: datetime


class ProgressUpdate(CamelModel):
    """진도 업데이트 요청 (Progress update; time_spent is added to the total)."""

    progress: int = Field(ge=0, le=100)
    time_spent: int = Field(default=0, ge=0, le=24 * 60)


class EnrollmentResponse(CamelModel):
    id: UUID
    course_id: UUID
    student_id: UUID
    status: str
    progress: int
    time_spent: int
    enrolled_at: datetime
    completed_at: datetime | None = None


class StudentEnrollment(CamelModel):
    """학생 수강 목록 항목 (Enrollment with its course summary)."""

    enrollment: EnrollmentResponse
    course: CourseResponse


class CourseStats(CamelModel):
    course_id: UUID
    enrolled_count: int
    capacity: int
    completed_count: int
    completion_rate: int
    average_progress: int
