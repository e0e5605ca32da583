"""프로모션 서비스 — 프로모션 CRUD, 학생 배정, 이벤트 연결, 학기 진급 비즈니스 로직.

Promotion Service — Business logic for promotion CRUD, student
assignment, event links and semester progression.

Progression rule:
    - 다음 학기 = 현재 + 1, 10학기는 진급 불가 (Next semester is current + 1; 10 is final)
    - 다음 학기가 홀수면 september, 짝수면 march
      (Odd next semester starts in september, even in march)
    - march → september 이동 시 학년도 증가 ("2024-2025" → "2025-2026")
      (Moving from a march to a september intake advances the academic year)
"""

import logging
from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.models.planning import Event, Promotion
from yggdrasil.models.user import User
from yggdrasil.repositories.event_repository import event_repository
from yggdrasil.repositories.promotion_repository import promotion_repository
from yggdrasil.repositories.user_repository import user_repository
from yggdrasil.schemas.planning import (
    EventResponse,
    PromotionCreate,
    PromotionDetail,
    PromotionResponse,
    PromotionUpdate,
    StudentPromotionView,
)
from yggdrasil.utils.exceptions import BadRequestError, DuplicateError, NotFoundError

logger = logging.getLogger(__name__)

MAX_SEMESTER = 10
UPCOMING_EVENTS_LIMIT = 10


def next_slot(semester: int, intake: str, academic_year: str) -> tuple[int, str, str]:
    """현재 학기 슬롯에서 다음 슬롯 계산.

    Compute the (semester, intake, academic_year) slot following the given
    one.

    Raises:
        BadRequestError: 최종 학기 (Already in the final semester)
    """
    if semester >= MAX_SEMESTER:
        raise BadRequestError(f"Student is already in the final semester ({MAX_SEMESTER})")

    next_semester: int = semester + 1
    next_intake: str = "september" if next_semester % 2 == 1 else "march"
    next_year: str = academic_year
    if intake == "march" and next_intake == "september":
        first, second = (int(part) for part in academic_year.split("-"))
        next_year = f"{first + 1}-{second + 1}"
    return next_semester, next_intake, next_year


class PromotionService:
    """프로모션 서비스 (Promotion service)."""

    async def _get_or_404(self, db: AsyncSession, promotion_id: UUID) -> Promotion:
        promotion: Promotion | None = await promotion_repository.get_by_id(db, promotion_id)
        if promotion is None:
            raise NotFoundError("Promotion not found")
        return promotion

    def _check_dates(self, start: datetime, end: datetime) -> None:
        if end <= start:
            raise BadRequestError("End date must be after start date")

    async def list_promotions(self, db: AsyncSession, **filters: Any) -> list[PromotionResponse]:
        promotions: Sequence[Promotion] = await promotion_repository.get_list(db, **filters)
        return [PromotionResponse.model_validate(p) for p in promotions]

    async def get_promotion(self, db: AsyncSession, promotion_id: UUID) -> PromotionDetail:
        """프로모션 상세 — 학생 프로필 포함 (Promotion detail with member profiles)."""
        return PromotionDetail.model_validate(await self._get_or_404(db, promotion_id))

    async def create_promotion(self, db: AsyncSession, creator: User, data: PromotionCreate) -> PromotionResponse:
        self._check_dates(data.start_date, data.end_date)
        promotion: Promotion = await promotion_repository.create(db, {
            **data.model_dump(),
            "created_by": creator.id,
        })
        await db.refresh(promotion, ["students", "events"])
        logger.info("Promotion %s (S%d %s %s) created", promotion.name, promotion.semester,
                    promotion.intake, promotion.academic_year)
        return PromotionResponse.model_validate(promotion)

    async def update_promotion(
        self,
        db: AsyncSession,
        promotion_id: UUID,
        data: PromotionUpdate,
    ) -> PromotionResponse:
        """프로모션 수정.

        Partial update. The date order is checked on the merged values and
        the capacity cannot drop below the current member count.
        """
        promotion: Promotion = await self._get_or_404(db, promotion_id)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)
        self._check_dates(
            changes.get("start_date", promotion.start_date),
            changes.get("end_date", promotion.end_date),
        )
        if "max_students" in changes and changes["max_students"] < promotion.student_count:
            raise BadRequestError(
                f"Capacity cannot be lower than the current number of students ({promotion.student_count})"
            )
        promotion = await promotion_repository.update(db, promotion, changes)
        return PromotionResponse.model_validate(promotion)

    async def delete_promotion(self, db: AsyncSession, promotion_id: UUID) -> None:
        promotion: Promotion = await self._get_or_404(db, promotion_id)
        if promotion.student_count > 0:
            raise BadRequestError("Cannot delete a promotion with enrolled students")
        await promotion_repository.delete(db, promotion)
        logger.info("Promotion %s deleted", promotion.name)

    # === 학생 배정 (Student assignment) ===

    async def add_students(
        self,
        db: AsyncSession,
        promotion_id: UUID,
        student_ids: Sequence[UUID],
    ) -> PromotionResponse:
        """프로모션에 학생 추가.

        Add students to a promotion. Duplicate ids in the request collapse.

        Raises:
            BadRequestError: 존재하지 않거나 학생이 아닌 ID, 정원 초과
                             (Unknown or non-student ids, capacity exceeded)
            DuplicateError: 다른 진행 중 프로모션 소속, 이미 이 프로모션 소속
                            (Held by another open promotion, already a member)
        """
        promotion: Promotion = await self._get_or_404(db, promotion_id)
        requested: list[UUID] = list(dict.fromkeys(student_ids))

        students: Sequence[User] = await user_repository.get_students_by_ids(db, requested)
        found: set[UUID] = {s.id for s in students}
        invalid: list[str] = [str(sid) for sid in requested if sid not in found]
        if invalid:
            raise BadRequestError(
                "Some users do not exist or are not students",
                details={"invalidIds": invalid},
            )

        conflicts: set[UUID] = await promotion_repository.find_conflicting_students(db, requested, promotion.id)
        if conflicts:
            names: list[str] = sorted(s.full_name for s in students if s.id in conflicts)
            raise DuplicateError(f"Students already assigned to another promotion: {', '.join(names)}")

        members: set[UUID] = await promotion_repository.student_ids(db, promotion.id)
        if len(members.union(requested)) > promotion.max_students:
            raise BadRequestError(f"Promotion capacity exceeded (max {promotion.max_students} students)")
        if members.intersection(requested):
            raise DuplicateError("Student already in this promotion")

        await promotion_repository.add_students(db, promotion, requested)
        logger.info("Added %d students to promotion %s", len(requested), promotion.name)
        return PromotionResponse.model_validate(promotion)

    async def remove_student(self, db: AsyncSession, promotion_id: UUID, student_id: UUID) -> PromotionResponse:
        promotion: Promotion = await self._get_or_404(db, promotion_id)
        if not await promotion_repository.remove_student(db, promotion, student_id):
            raise NotFoundError("Student is not in this promotion")
        return PromotionResponse.model_validate(promotion)

    async def progress_student(self, db: AsyncSession, promotion_id: UUID, student_id: UUID) -> PromotionResponse:
        """학생을 다음 학기 프로모션으로 진급.

        Move a student from this promotion to the open promotion of the
        next semester slot.

        The target is checked before the student leaves the current
        promotion, so a refused move changes nothing.

        Raises:
            NotFoundError: 학생이 이 프로모션 소속이 아님, 대상 프로모션 없음
                           (Student not a member, or no target promotion)
            BadRequestError: 최종 학기, 대상 정원 초과 (Final semester, target full)
            DuplicateError: 이미 대상 프로모션 소속 (Already in the target)
        """
        promotion: Promotion = await self._get_or_404(db, promotion_id)
        if student_id not in await promotion_repository.student_ids(db, promotion.id):
            raise NotFoundError("Student is not in this promotion")

        semester, intake, year = next_slot(promotion.semester, promotion.intake, promotion.academic_year)
        target: Promotion | None = await promotion_repository.find_for_semester(db, semester, intake, year)
        if target is None:
            raise NotFoundError(f"No promotion found for semester {semester} ({intake} {year})")
        target_members: set[UUID] = await promotion_repository.student_ids(db, target.id)
        if student_id in target_members:
            raise DuplicateError("Student already in this promotion")
        if len(target_members) >= target.max_students:
            raise BadRequestError(f"Promotion capacity exceeded (max {target.max_students} students)")

        await promotion_repository.remove_student(db, promotion, student_id)
        result: PromotionResponse = await self.add_students(db, target.id, [student_id])
        logger.info("Student %s progressed from %s to %s", student_id, promotion.name, target.name)
        return result

    # === 이벤트 연결 (Event links) ===

    async def link_events(self, db: AsyncSession, promotion_id: UUID, event_ids: Sequence[UUID]) -> PromotionResponse:
        """이벤트 연결 (Link calendar events to a promotion)."""
        promotion: Promotion = await self._get_or_404(db, promotion_id)
        requested: list[UUID] = list(dict.fromkeys(event_ids))

        events: Sequence[Event] = await event_repository.get_by_ids(db, requested)
        found: set[UUID] = {e.id for e in events}
        missing: list[str] = [str(eid) for eid in requested if eid not in found]
        if missing:
            raise BadRequestError("Some events do not exist", details={"invalidIds": missing})

        if (await promotion_repository.event_ids(db, promotion.id)).intersection(requested):
            raise DuplicateError("Event already linked to this promotion")

        await promotion_repository.link_events(db, promotion, requested)
        return PromotionResponse.model_validate(promotion)

    async def unlink_event(self, db: AsyncSession, promotion_id: UUID, event_id: UUID) -> PromotionResponse:
        promotion: Promotion = await self._get_or_404(db, promotion_id)
        if not await promotion_repository.unlink_event(db, promotion, event_id):
            raise NotFoundError("Event is not linked to this promotion")
        return PromotionResponse.model_validate(promotion)

    async def my_promotion(self, db: AsyncSession, student: User) -> StudentPromotionView:
        """학생 본인 프로모션 + 예정 이벤트 (Caller's promotion and its next linked events)."""
        promotion: Promotion | None = await promotion_repository.get_for_student(db, student.id)
        if promotion is None:
            return StudentPromotionView()
        events: Sequence[Event] = await promotion_repository.upcoming_events(
            db, promotion.id, datetime.now(timezone.utc), UPCOMING_EVENTS_LIMIT
        )
        return StudentPromotionView(
            promotion=PromotionResponse.model_validate(promotion),
            upcoming_events=[EventResponse.model_validate(e) for e in events],
        )


# 싱글턴 인스턴스 — Singleton instance
promotion_service: PromotionService = PromotionService()
