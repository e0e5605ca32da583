"""프로모션 레포지토리 — 프로모션 목록, 멤버십, 이벤트 연결 쿼리.

Promotion Repository — Promotion listing, student membership and event
link queries.
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.models.planning import Event, Promotion, promotion_events, promotion_students
from yggdrasil.repositories.base import BaseRepository

# 학생이 동시에 속할 수 없는 상태 — Statuses that hold a student exclusively
OPEN_STATUSES: tuple[str, ...] = ("draft", "active")


class PromotionRepository(BaseRepository[Promotion]):
    """프로모션 레포지토리 (Promotion repository)."""

    def __init__(self) -> None:
        super().__init__(Promotion)

    async def get_list(
        self,
        db: AsyncSession,
        semester: int | None = None,
        intake: str | None = None,
        academic_year: str | None = None,
        status: str | None = None,
        department: str | None = None,
    ) -> Sequence[Promotion]:
        """필터가 적용된 프로모션 목록 — 학기, 이름 순 (Filtered list sorted by semester then name)."""
        query: Select = self._where(select(Promotion), {
            "semester": semester,
            "intake": intake,
            "academic_year": academic_year,
            "status": status,
            "department": department,
        })
        result = await db.execute(query.order_by(Promotion.semester, Promotion.name))
        return result.scalars().all()

    async def find_for_semester(
        self,
        db: AsyncSession,
        semester: int,
        intake: str,
        academic_year: str,
    ) -> Promotion | None:
        """학기/입학시기/학년도에 해당하는 진행 가능 프로모션 (Open promotion for a semester slot)."""
        result = await db.execute(
            select(Promotion)
            .where(
                Promotion.semester == semester,
                Promotion.intake == intake,
                Promotion.academic_year == academic_year,
                Promotion.status.in_(OPEN_STATUSES),
            )
            .order_by(Promotion.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    # === 학생 멤버십 (Student membership) ===

    async def student_count(self, db: AsyncSession, promotion_id: UUID) -> int:
        query = select(func.count()).select_from(promotion_students).where(
            promotion_students.c.promotion_id == promotion_id
        )
        return (await db.execute(query)).scalar() or 0

    async def student_ids(self, db: AsyncSession, promotion_id: UUID) -> set[UUID]:
        result = await db.execute(
            select(promotion_students.c.student_id).where(promotion_students.c.promotion_id == promotion_id)
        )
        return set(result.scalars().all())

    async def find_conflicting_students(
        self,
        db: AsyncSession,
        student_ids: Sequence[UUID],
        exclude_promotion_id: UUID,
    ) -> set[UUID]:
        """다른 진행 중 프로모션에 이미 속한 학생 (Students already held by another open promotion)."""
        if not student_ids:
            return set()
        result = await db.execute(
            select(promotion_students.c.student_id)
            .join(Promotion, Promotion.id == promotion_students.c.promotion_id)
            .where(
                promotion_students.c.student_id.in_(student_ids),
                promotion_students.c.promotion_id != exclude_promotion_id,
                Promotion.status.in_(OPEN_STATUSES),
            )
        )
        return set(result.scalars().all())

    async def add_students(self, db: AsyncSession, promotion: Promotion, student_ids: Sequence[UUID]) -> None:
        await db.execute(
            insert(promotion_students),
            [{"promotion_id": promotion.id, "student_id": sid} for sid in student_ids],
        )
        await db.flush()
        await db.refresh(promotion, ["students"])

    async def remove_student(self, db: AsyncSession, promotion: Promotion, student_id: UUID) -> bool:
        result = await db.execute(
            delete(promotion_students).where(
                promotion_students.c.promotion_id == promotion.id,
                promotion_students.c.student_id == student_id,
            )
        )
        await db.flush()
        await db.refresh(promotion, ["students"])
        return (result.rowcount or 0) > 0

    async def get_for_student(self, db: AsyncSession, student_id: UUID) -> Promotion | None:
        """학생의 현재 프로모션 — 진행 중 우선 (Student's current promotion, open ones first)."""
        result = await db.execute(
            select(Promotion)
            .join(promotion_students, promotion_students.c.promotion_id == Promotion.id)
            .where(promotion_students.c.student_id == student_id)
            .order_by(Promotion.status.in_(OPEN_STATUSES).desc(), Promotion.semester.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    # === 이벤트 연결 (Event links) ===

    async def event_ids(self, db: AsyncSession, promotion_id: UUID) -> set[UUID]:
        result = await db.execute(
            select(promotion_events.c.event_id).where(promotion_events.c.promotion_id == promotion_id)
        )
        return set(result.scalars().all())

    async def link_events(self, db: AsyncSession, promotion: Promotion, event_ids: Sequence[UUID]) -> None:
        await db.execute(
            insert(promotion_events),
            [{"promotion_id": promotion.id, "event_id": eid} for eid in event_ids],
        )
        await db.flush()
        await db.refresh(promotion, ["events"])

    async def unlink_event(self, db: AsyncSession, promotion: Promotion, event_id: UUID) -> bool:
        result = await db.execute(
            delete(promotion_events).where(
                promotion_events.c.promotion_id == promotion.id,
                promotion_events.c.event_id == event_id,
            )
        )
        await db.flush()
        await db.refresh(promotion, ["events"])
        return (result.rowcount or 0) > 0

    async def upcoming_events(
        self,
        db: AsyncSession,
        promotion_id: UUID,
        now: datetime,
        limit: int = 10,
    ) -> Sequence[Event]:
        """프로모션 연결 예정 이벤트 (Upcoming events linked to a promotion)."""
        result = await db.execute(
            select(Event)
            .join(promotion_events, promotion_events.c.event_id == Event.id)
            .where(promotion_events.c.promotion_id == promotion_id, Event.start_date >= now)
            .order_by(Event.start_date)
            .limit(limit)
        )
        return result.scalars().all()


# 싱글턴 인스턴스 — Singleton instance
promotion_repository: PromotionRepository = PromotionRepository()
