"""학기 검증 레포지토리 — 검증 결정, 대기 학생, 출석 집계 쿼리.

Validation Repository — Semester validation decisions, students still
waiting for one, and the attendance figures the evaluation needs.
"""

from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Select, and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.models.planning import (
    Event,
    EventAttendee,
    Promotion,
    StudentValidation,
    promotion_events,
    promotion_students,
)
from yggdrasil.models.user import User
from yggdrasil.repositories.base import BaseRepository
from yggdrasil.repositories.promotion_repository import OPEN_STATUSES


class ValidationRepository(BaseRepository[StudentValidation]):
    """검증 결정 레포지토리 (Validation decision repository)."""

    def __init__(self) -> None:
        super().__init__(StudentValidation)

    async def get_for(self, db: AsyncSession, promotion_id: UUID, student_id: UUID) -> StudentValidation | None:
        return await db.scalar(
            select(StudentValidation).where(
                StudentValidation.promotion_id == promotion_id,
                StudentValidation.student_id == student_id,
            )
        )

    async def record(
        self,
        db: AsyncSession,
        promotion_id: UUID,
        student_id: UUID,
        values: dict[str, Any],
    ) -> StudentValidation:
        """결정 저장 — 같은 프로모션의 이전 결정은 덮어씀.

        Store a decision. A previous decision for the same promotion and
        student is overwritten.
        """
        existing: StudentValidation | None = await self.get_for(db, promotion_id, student_id)
        if existing is None:
            return await self.create(db, {"promotion_id": promotion_id, "student_id": student_id, **values})
        return await self.update(db, existing, values)

    async def pending(self, db: AsyncSession, promotion_id: UUID | None = None) -> Sequence[tuple[User, Promotion]]:
        """진행 중 프로모션에서 결정이 없는 학생 (Members of open promotions with no decision)."""
        decided = and_(
            StudentValidation.promotion_id == Promotion.id,
            StudentValidation.student_id == User.id,
        )
        query: Select = (
            select(User, Promotion)
            .join(promotion_students, promotion_students.c.student_id == User.id)
            .join(Promotion, Promotion.id == promotion_students.c.promotion_id)
            .outerjoin(StudentValidation, decided)
            .where(Promotion.status.in_(OPEN_STATUSES), StudentValidation.id.is_(None))
            .order_by(Promotion.semester, Promotion.name, User.last_name, User.first_name)
        )
        if promotion_id is not None:
            query = query.where(Promotion.id == promotion_id)
        return (await db.execute(query)).tuples().all()

    async def validated_members(self, db: AsyncSession) -> Sequence[tuple[UUID, UUID]]:
        """아직 프로모션에 남아 있는 검증 완료 학생 (Validated students still in that promotion)."""
        result = await db.execute(
            select(StudentValidation.promotion_id, StudentValidation.student_id)
            .join(Promotion, Promotion.id == StudentValidation.promotion_id)
            .join(promotion_students, and_(
                promotion_students.c.promotion_id == StudentValidation.promotion_id,
                promotion_students.c.student_id == StudentValidation.student_id,
            ))
            .where(StudentValidation.status == "validated", Promotion.status.in_(OPEN_STATUSES))
            .order_by(Promotion.semester.desc(), StudentValidation.validated_at)
        )
        return result.tuples().all()

    async def attendance(self, db: AsyncSession, promotion_id: UUID, student_id: UUID, now: datetime) -> tuple[int, int]:
        """(종료된 연결 이벤트 수, 그중 참석 수) — (Past linked events, of which attended)."""
        past = (
            select(Event.id)
            .join(promotion_events, promotion_events.c.event_id == Event.id)
            .where(promotion_events.c.promotion_id == promotion_id, Event.end_date < now)
        )
        total: int = await db.scalar(select(func.count()).select_from(past.subquery())) or 0
        attended: int = await db.scalar(
            select(func.count()).select_from(EventAttendee).where(
                EventAttendee.event_id.in_(past),
                EventAttendee.user_id == student_id,
                EventAttendee.status == "accepted",
            )
        ) or 0
        return total, attended


# 싱글턴 인스턴스 — Singleton instance
validation_repository: ValidationRepository = ValidationRepository()
