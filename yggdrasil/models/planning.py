"""플래닝 SQLAlchemy ORM 모델 — 프로모션(학년 그룹) 및 캘린더 이벤트.

Planning ORM models — Promotions (student cohorts per semester) and
calendar events.

Tables:
    - promotions: 프로모션 (Cohort of students for one semester/intake/year)
    - promotion_students: 프로모션-학생 연결 (Promotion membership)
    - promotion_events: 프로모션-이벤트 연결 (Events linked to a promotion)
    - events: 캘린더 이벤트 (Calendar events)
    - event_attendees: 이벤트 참석자 (Event attendance)
    - student_validations: 학기 검증 결정 (Semester validation decisions)
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Integer, String, Table, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from yggdrasil.database import Base, UTCDateTime

VALIDATION_STATUSES: tuple[str, ...] = ("validated", "failed", "conditional")
PROMOTION_STATUSES: tuple[str, ...] = ("draft", "active", "completed", "archived")
INTAKES: tuple[str, ...] = ("september", "march")
EVENT_TYPES: tuple[str, ...] = ("class", "exam", "meeting", "event")
ATTENDEE_STATUSES: tuple[str, ...] = ("pending", "accepted", "declined")
DEFAULT_EVENT_COLOR = "#3b82f6"

# 프로모션-학생 연결 테이블 — Promotion membership association
promotion_students: Table = Table(
    "promotion_students",
    Base.metadata,
    Column("promotion_id", Uuid, ForeignKey("promotions.id", ondelete="CASCADE"), primary_key=True),
    Column("student_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

# 프로모션-이벤트 연결 테이블 — Promotion to event links
promotion_events: Table = Table(
    "promotion_events",
    Base.metadata,
    Column("promotion_id", Uuid, ForeignKey("promotions.id", ondelete="CASCADE"), primary_key=True),
    Column("event_id", Uuid, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
)


class Promotion(Base):
    """프로모션 모델.

    Promotion model — a cohort of students following one semester of a
    program, identified by (semester, intake, academic_year).

    Attributes:
        name: 이름 (Name, ≤200 chars)
        semester: 학기 (Semester 1..10)
        intake: 입학 시기 (september | march)
        academic_year: 학년도 (Academic year "YYYY-YYYY")
        status: 상태 (draft | active | completed | archived)
        max_students: 최대 인원 (Capacity 1..500)
    """

    __tablename__ = "promotions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    semester: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    intake: Mapped[str] = mapped_column(String(20), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(9), nullable=False, index=True)
    start_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    max_students: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    students = relationship("User", secondary=promotion_students, lazy="selectin")
    events = relationship("Event", secondary=promotion_events, lazy="selectin")

    @property
    def student_ids(self) -> list[uuid.UUID]:
        return [student.id for student in self.students]

    @property
    def event_ids(self) -> list[uuid.UUID]:
        return [event.id for event in self.events]

    @property
    def student_count(self) -> int:
        return len(self.students)


class Event(Base):
    """캘린더 이벤트 모델.

    Calendar event model (class, exam, meeting or generic event).
    """

    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="event")
    start_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    linked_course_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("courses.id", ondelete="SET NULL"), nullable=True
    )
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    recurrence: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default=DEFAULT_EVENT_COLOR)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    attendees = relationship("EventAttendee", back_populates="event", cascade="all, delete-orphan", lazy="selectin")


class EventAttendee(Base):
    """이벤트 참석자 모델 (Event attendee with RSVP status)."""

    __tablename__ = "event_attendees"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="accepted")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_attendee"),
    )

    event = relationship("Event", back_populates="attendees")


class StudentValidation(Base):
    """학기 검증 결정 모델.

    Semester validation decision for one student in one promotion. A new
    decision for the same pair overwrites the previous one; only
    ``validated`` students are moved on by the bulk progression run.

    Attributes:
        status: 결정 (validated | failed | conditional)
        semester: 결정 시점의 학기 (Semester of the promotion at decision time)
        overall_score: 평가 점수 0..100 (Evaluation score when the decision was made)
    """

    __tablename__ = "student_validations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    promotion_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("promotions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    overall_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    validated_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    validated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("promotion_id", "student_id", name="uq_student_validation"),
    )
