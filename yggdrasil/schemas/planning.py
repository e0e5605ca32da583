"""플래닝 Pydantic 스키마 — 프로모션 및 캘린더 이벤트.

Planning Pydantic request/response schemas for promotions and calendar
events.
"""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import Field, field_validator

from yggdrasil.schemas.common import CamelModel, UTCDatetime, reject_null
from yggdrasil.schemas.user import ProfileResponse

Intake = Literal["september", "march"]
PromotionStatus = Literal["draft", "active", "completed", "archived"]
EventType = Literal["class", "exam", "meeting", "event"]

ACADEMIC_YEAR_PATTERN = r"^\d{4}-\d{4}$"
COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


# === 프로모션 (Promotion) ===

class PromotionCreate(CamelModel):
    """프로모션 생성 요청 스키마.

    Promotion creation request.

    Attributes:
        name: 이름 (Name, ≤200)
        semester: 학기 (1..10)
        intake: 입학 시기 (september | march)
        academic_year: 학년도 ("2024-2025")
        max_students: 최대 인원 (1..500)
    """

    name: str = Field(min_length=1, max_length=200)
    semester: int = Field(ge=1, le=10)
    intake: Intake
    academic_year: str = Field(pattern=ACADEMIC_YEAR_PATTERN)
    start_date: UTCDatetime
    end_date: UTCDatetime
    status: PromotionStatus = "draft"
    department: str | None = Field(default=None, max_length=100)
    level: str | None = Field(default=None, max_length=50)
    max_students: int = Field(default=100, ge=1, le=500)
    description: str | None = Field(default=None, max_length=1000)


class PromotionUpdate(CamelModel):
    """프로모션 수정 요청 스키마 (부분 업데이트)."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    semester: int | None = Field(default=None, ge=1, le=10)
    intake: Intake | None = None
    academic_year: str | None = Field(default=None, pattern=ACADEMIC_YEAR_PATTERN)
    start_date: UTCDatetime | None = None
    end_date: UTCDatetime | None = None
    status: PromotionStatus | None = None
    department: str | None = Field(default=None, max_length=100)
    level: str | None = Field(default=None, max_length=50)
    max_students: int | None = Field(default=None, ge=1, le=500)
    description: str | None = Field(default=None, max_length=1000)

    @field_validator("name", "semester", "intake", "academic_year", "start_date", "end_date", "status", "max_students")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        return reject_null(value)


class PromotionResponse(CamelModel):
    id: UUID
    name: str
    semester: int
    intake: str
    academic_year: str
    start_date: datetime
    end_date: datetime
    status: str
    department: str | None = None
    level: str | None = None
    max_students: int
    description: str | None = None
    created_by: UUID | None = None
    student_ids: list[UUID] = []
    event_ids: list[UUID] = []
    student_count: int = 0
    created_at: datetime


class PromotionDetail(PromotionResponse):
    """프로모션 상세 — 학생 프로필 포함 (Promotion with member profiles)."""

    students: list[ProfileResponse] = []


class StudentIds(CamelModel):
    student_ids: list[UUID] = Field(min_length=1)


class EventIds(CamelModel):
    event_ids: list[UUID] = Field(min_length=1)


# === 이벤트 (Event) ===

class EventCreate(CamelModel):
    """이벤트 생성 요청 스키마 (Calendar event creation request)."""

    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    location: str | None = Field(default=None, max_length=100)
    type: EventType = "event"
    start_date: UTCDatetime
    end_date: UTCDatetime
    linked_course_id: UUID | None = None
    is_recurring: bool = False
    recurrence: dict[str, Any] | None = None
    capacity: int | None = Field(default=None, ge=1)
    is_public: bool = True
    color: str = Field(default="#3b82f6", pattern=COLOR_PATTERN)


class EventUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    location: str | None = Field(default=None, max_length=100)
    type: EventType | None = None
    start_date: UTCDatetime | None = None
    end_date: UTCDatetime | None = None
    linked_course_id: UUID | None = None
    is_recurring: bool | None = None
    recurrence: dict[str, Any] | None = None
    capacity: int | None = Field(default=None, ge=1)
    is_public: bool | None = None
    color: str | None = Field(default=None, pattern=COLOR_PATTERN)

    @field_validator("title", "type", "start_date", "end_date", "is_recurring", "is_public", "color")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        return reject_null(value)


class AttendeeResponse(CamelModel):
    user_id: UUID
    status: str


class EventResponse(CamelModel):
    id: UUID
    title: str
    description: str | None = None
    location: str | None = None
    type: str
    start_date: datetime
    end_date: datetime
    linked_course_id: UUID | None = None
    is_recurring: bool
    recurrence: dict[str, Any] | None = None
    capacity: int | None = None
    is_public: bool
    color: str
    created_by: UUID | None = None
    attendees: list[AttendeeResponse] = []
    created_at: datetime


class AttendanceResult(CamelModel):
    """참석 토글 결과 (Attendance toggle outcome)."""

    event_id: UUID
    attending: bool
    attendee_count: int


class StudentPromotionView(CamelModel):
    """학생용 프로모션 조회 (A student's promotion and upcoming events)."""

    promotion: PromotionResponse | None = None
    upcoming_events: list[EventResponse] = []


class EventStats(CamelModel):
    total: int
    upcoming: int
    by_type: dict[str, int]


# === 학기 검증 (Semester validation) ===

ValidationDecision = Literal["approve", "reject", "conditional"]
Recommendation = Literal["approve", "conditional", "retake"]


class ValidationCriteria(CamelModel):
    """학기 검증 기준.

    Thresholds a student must reach to move on. Progress is the mean of
    the student's course progress, attendance the share of the
    promotion's past events they attended.
    """

    min_progress: int = Field(default=60, ge=0, le=100)
    min_attendance: int = Field(default=70, ge=0, le=100)
    courses_required: int = Field(default=1, ge=0)


class EvaluateRequest(CamelModel):
    criteria: ValidationCriteria = Field(default_factory=ValidationCriteria)


class BatchEvaluateRequest(EvaluateRequest):
    student_ids: list[UUID] = Field(min_length=1)


class CriterionCheck(CamelModel):
    passed: bool
    required: int
    actual: int
    difference: int


class ValidationResult(CamelModel):
    """학생 한 명의 평가 결과 (Evaluation of one student)."""

    student_id: UUID
    student_name: str
    promotion_id: UUID | None = None
    semester: int | None = None
    can_progress: bool
    overall_score: int
    progress_check: CriterionCheck | None = None
    attendance_check: CriterionCheck | None = None
    completion_check: CriterionCheck | None = None
    recommendation: Recommendation
    reason: str


class PendingValidation(CamelModel):
    """결정이 없는 학생 (Student in an open promotion with no decision yet)."""

    student_id: UUID
    student_name: str
    email: str
    promotion_id: UUID
    promotion_name: str
    semester: int


class BulkValidateRequest(CamelModel):
    """일괄 검증 요청 (Apply one decision to several students)."""

    student_ids: list[UUID] = Field(min_length=1)
    decision: ValidationDecision
    reason: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None, max_length=2000)
    criteria: ValidationCriteria = Field(default_factory=ValidationCriteria)


class ValidationFailure(CamelModel):
    student_id: UUID
    error: str


class BulkValidationSummary(CamelModel):
    total: int
    approved: int = 0
    rejected: int = 0
    conditional: int = 0
    errors: int = 0


class BulkValidationResult(CamelModel):
    successful: list[ValidationResult] = []
    failed: list[ValidationFailure] = []
    summary: BulkValidationSummary


class Progression(CamelModel):
    student_id: UUID
    from_promotion_id: UUID
    to_promotion_id: UUID
    to_semester: int


class ProgressionRun(CamelModel):
    """검증된 학생 일괄 진급 결과 (Outcome of moving validated students on)."""

    students_progressed: int
    progressions: list[Progression] = []
    failed: list[ValidationFailure] = []
