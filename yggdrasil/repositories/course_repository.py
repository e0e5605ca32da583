"""강좌 레포지토리 — 강좌 검색, 수강 등록, 집계 쿼리.

Course Repository — Course search, enrollments and aggregates.
"""

from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Select, String, cast, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.models.course import Course, CourseEnrollment
from yggdrasil.repositories.base import BaseRepository
from yggdrasil.utils.pagination import paginate


def _enrolled_count_subquery() -> Any:
    # 강좌별 유효 수강생 수 — Live enrollment count per course (dropped excluded)
    return (
        select(func.count(CourseEnrollment.id))
        .where(CourseEnrollment.course_id == Course.id, CourseEnrollment.status != "dropped")
        .correlate(Course)
        .scalar_subquery()
    )


class CourseRepository(BaseRepository[Course]):
    """강좌 레포지토리 (Course repository)."""

    def __init__(self) -> None:
        super().__init__(Course)

    async def get_by_code(self, db: AsyncSession, code: str) -> Course | None:
        result = await db.execute(select(Course).where(Course.code == code.strip().upper()))
        return result.scalar_one_or_none()

    async def search(
        self,
        db: AsyncSession,
        q: str | None = None,
        category: str | None = None,
        level: str | None = None,
        status: str | None = "published",
        instructor_id: UUID | None = None,
        tags: list[str] | None = None,
        min_credits: int | None = None,
        max_credits: int | None = None,
        has_available_spots: bool | None = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[Sequence[Course], int]:
        """강좌 검색.

        Search active courses. `q` matches title, description, code and
        tags; `tags` matches courses carrying any of the given tags.
        `popularity` sorts by live enrollment count. `offset` is a raw row
        offset, not rounded to a page. LIKE wildcards in the search text
        match literally.

        Returns:
            tuple[Sequence[Course], int]: (강좌 목록, 전체 개수)
        """
        enrolled = _enrolled_count_subquery()
        query: Select = select(Course).where(Course.is_active == True)  # noqa: E712
        if q:
            term = q.strip()
            query = query.where(or_(
                Course.title.icontains(term, autoescape=True),
                Course.description.icontains(term, autoescape=True),
                Course.code.icontains(term, autoescape=True),
                cast(Course.tags, String).icontains(term, autoescape=True),
            ))
        if category is not None:
            query = query.where(Course.category == category)
        if level is not None:
            query = query.where(Course.level == level)
        if status is not None:
            query = query.where(Course.status == status)
        if instructor_id is not None:
            query = query.where(Course.instructor_id == instructor_id)
        if tags:
            query = query.where(or_(*[cast(Course.tags, String).icontains(f'"{t}"', autoescape=True) for t in tags]))
        if min_credits is not None:
            query = query.where(Course.credits >= min_credits)
        if max_credits is not None:
            query = query.where(Course.credits <= max_credits)
        if has_available_spots is True:
            query = query.where(enrolled < Course.capacity)
        elif has_available_spots is False:
            query = query.where(enrolled >= Course.capacity)

        sort_columns: dict[str, Any] = {
            "title": Course.title,
            "startDate": Course.start_date,
            "popularity": enrolled,
            "createdAt": Course.created_at,
        }
        column = sort_columns.get(sort_by, Course.created_at)
        query = query.order_by(column.asc() if sort_order == "asc" else column.desc(), Course.code)
        return await paginate(db, query, per_page=limit, offset=offset)

    async def get_by_instructor(self, db: AsyncSession, instructor_id: UUID) -> Sequence[Course]:
        """강사 담당 강좌 목록 (Active courses taught by an instructor)."""
        result = await db.execute(
            select(Course)
            .where(Course.instructor_id == instructor_id, Course.is_active == True)  # noqa: E712
            .order_by(Course.created_at.desc())
        )
        return result.scalars().all()

    # === 수강 등록 (Enrollment) ===

    async def enrolled_count(self, db: AsyncSession, course_id: UUID) -> int:
        query = select(func.count()).select_from(CourseEnrollment).where(
            CourseEnrollment.course_id == course_id, CourseEnrollment.status != "dropped"
        )
        return (await db.execute(query)).scalar() or 0

    async def active_enrollment_count(self, db: AsyncSession, course_id: UUID) -> int:
        """진행 중 수강생 수 — 완료/취소 제외 (Students still taking the course)."""
        return await db.scalar(
            select(func.count()).select_from(CourseEnrollment).where(
                CourseEnrollment.course_id == course_id, CourseEnrollment.status == "active"
            )
        ) or 0

    async def enrolled_counts(self, db: AsyncSession, course_ids: Sequence[UUID]) -> dict[UUID, int]:
        """여러 강좌의 수강생 수 (Live enrollment counts keyed by course id)."""
        if not course_ids:
            return {}
        result = await db.execute(
            select(CourseEnrollment.course_id, func.count())
            .where(CourseEnrollment.course_id.in_(course_ids), CourseEnrollment.status != "dropped")
            .group_by(CourseEnrollment.course_id)
        )
        return {course_id: count for course_id, count in result.all()}

    async def get_enrollment(
        self, db: AsyncSession, course_id: UUID, student_id: UUID
    ) -> CourseEnrollment | None:
        result = await db.execute(
            select(CourseEnrollment).where(
                CourseEnrollment.course_id == course_id,
                CourseEnrollment.student_id == student_id,
            )
        )
        return result.scalar_one_or_none()

    async def create_enrollment(
        self, db: AsyncSession, course_id: UUID, student_id: UUID
    ) -> CourseEnrollment:
        enrollment = CourseEnrollment(course_id=course_id, student_id=student_id)
        db.add(enrollment)
        await db.flush()
        await db.refresh(enrollment)
        return enrollment

    async def delete_enrollment(self, db: AsyncSession, enrollment: CourseEnrollment) -> None:
        await db.execute(delete(CourseEnrollment).where(CourseEnrollment.id == enrollment.id))
        await db.flush()

    async def get_course_enrollments(self, db: AsyncSession, course_id: UUID) -> Sequence[CourseEnrollment]:
        result = await db.execute(
            select(CourseEnrollment)
            .where(CourseEnrollment.course_id == course_id, CourseEnrollment.status != "dropped")
        )
        return result.scalars().all()

    async def get_enrollments_for_courses(
        self, db: AsyncSession, course_ids: Sequence[UUID]
    ) -> Sequence[CourseEnrollment]:
        if not course_ids:
            return []
        result = await db.execute(
            select(CourseEnrollment)
            .where(CourseEnrollment.course_id.in_(course_ids), CourseEnrollment.status != "dropped")
        )
        return result.scalars().all()

    async def get_student_enrollments(
        self, db: AsyncSession, student_id: UUID
    ) -> Sequence[tuple[CourseEnrollment, Course]]:
        """학생 수강 목록 + 강좌 (A student's enrollments joined with their course)."""
        result = await db.execute(
            select(CourseEnrollment, Course)
            .join(Course, Course.id == CourseEnrollment.course_id)
            .where(CourseEnrollment.student_id == student_id, CourseEnrollment.status != "dropped")
            .order_by(CourseEnrollment.enrolled_at.desc())
        )
        return result.tuples().all()

    # === 집계 (Aggregates) ===

    async def count_active_courses(self, db: AsyncSession) -> int:
        return await self.count(db, {"is_active": True})

    async def count_enrollments(self, db: AsyncSession) -> int:
        query = select(func.count()).select_from(CourseEnrollment).where(CourseEnrollment.status != "dropped")
        return (await db.execute(query)).scalar() or 0

    async def count_by_status(self, db: AsyncSession) -> dict[str, int]:
        """상태별 활성 강좌 수 (Active course count per status)."""
        result = await db.execute(
            select(Course.status, func.count())
            .where(Course.is_active == True)  # noqa: E712
            .group_by(Course.status)
        )
        return {status: count for status, count in result.all()}

    async def most_popular(self, db: AsyncSession, limit: int = 5) -> Sequence[tuple[Course, int]]:
        """수강생 수 기준 상위 강좌 (Top courses by live enrollment count)."""
        enrolled = _enrolled_count_subquery().label("enrolled")
        result = await db.execute(
            select(Course, enrolled)
            .where(Course.is_active == True)  # noqa: E712
            .order_by(enrolled.desc(), Course.title)
            .limit(limit)
        )
        return result.tuples().all()


# 싱글턴 인스턴스 — Singleton instance
course_repository: CourseRepository = CourseRepository()
