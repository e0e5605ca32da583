"""강좌 서비스 — 강좌 CRUD, 게시/보관, 수강 등록, 진도 관리 비즈니스 로직.

Course Service — Business logic for course CRUD, publish/archive,
enrollment and progress tracking.

Permissions:
    - 생성: teacher, admin, staff (Create: educators)
    - 수정/삭제/게시/보관: 담당 강사, admin, staff (Instructor, admin, staff)
    - 수강 등록/취소/진도: student (Enroll, unenroll, progress: students)
"""

import logging
from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.models.course import Course, CourseEnrollment
from yggdrasil.models.user import User
from yggdrasil.repositories.course_repository import course_repository
from yggdrasil.schemas.course import (
    CourseCreate,
    CourseResponse,
    CourseStats,
    CourseUpdate,
    EnrollmentResponse,
    ProgressUpdate,
    StudentEnrollment,
)
from yggdrasil.utils.exceptions import BadRequestError, DuplicateError, ForbiddenError, NotFoundError
from yggdrasil.utils.rounding import average, percentage

logger = logging.getLogger(__name__)


def _build_course_response(course: Course, enrolled: int) -> CourseResponse:
    """ORM 강좌 + 수강 인원 → 응답 스키마 (Course row plus live count to response)."""
    response = CourseResponse.model_validate(course)
    response.enrolled_count = enrolled
    response.available_spots = max(course.capacity - enrolled, 0)
    return response


def _check_dates(start: datetime | None, end: datetime | None) -> None:
    if start is not None and end is not None and end <= start:
        raise BadRequestError("End date must be after start date")


class CourseService:
    """강좌 서비스 (Course service)."""

    async def _get_or_404(self, db: AsyncSession, course_id: UUID) -> Course:
        course: Course | None = await course_repository.get_by_id(db, course_id)
        if course is None or not course.is_active:
            raise NotFoundError("Course not found")
        return course

    def _check_manage(self, user: User, course: Course) -> None:
        # 담당 강사 또는 관리자 — Instructor or manager only
        if not user.is_manager and course.instructor_id != user.id:
            raise ForbiddenError("You can only manage your own courses")

    async def _to_response(self, db: AsyncSession, course: Course) -> CourseResponse:
        return _build_course_response(course, await course_repository.enrolled_count(db, course.id))

    async def _to_responses(self, db: AsyncSession, courses: Sequence[Course]) -> list[CourseResponse]:
        counts: dict[UUID, int] = await course_repository.enrolled_counts(db, [c.id for c in courses])
        return [_build_course_response(c, counts.get(c.id, 0)) for c in courses]

    async def create_course(self, db: AsyncSession, instructor: User, data: CourseCreate) -> CourseResponse:
        """강좌를 생성합니다.

        Create a draft course taught by the caller.

        Raises:
            DuplicateError: 중복 강좌 코드 (Course code already in use)
            BadRequestError: 종료일이 시작일 이전 (End date not after start date)
        """
        _check_dates(data.start_date, data.end_date)
        if await course_repository.get_by_code(db, data.code) is not None:
            raise DuplicateError(f"Course code {data.code} already exists")

        course: Course = await course_repository.create(db, {
            **data.model_dump(),
            "instructor_id": instructor.id,
            "instructor_name": instructor.full_name,
        })
        logger.info("Course %s created by %s", course.code, instructor.email)
        return _build_course_response(course, 0)

    async def search_courses(self, db: AsyncSession, **filters: Any) -> tuple[list[CourseResponse], int]:
        """강좌 검색 (Filters are passed through to the repository search)."""
        courses, total = await course_repository.search(db, **filters)
        return await self._to_responses(db, courses), total

    async def get_course(self, db: AsyncSession, course_id: UUID) -> CourseResponse:
        return await self._to_response(db, await self._get_or_404(db, course_id))

    async def update_course(
        self,
        db: AsyncSession,
        user: User,
        course_id: UUID,
        data: CourseUpdate,
    ) -> CourseResponse:
        """강좌 수정.

        Update a course. The code uniqueness and the date order are checked
        against the merged values.
        """
        course: Course = await self._get_or_404(db, course_id)
        self._check_manage(user, course)

        changes: dict[str, Any] = data.model_dump(exclude_unset=True)
        new_code = changes.get("code")
        if new_code and new_code != course.code:
            if await course_repository.get_by_code(db, new_code) is not None:
                raise DuplicateError(f"Course code {new_code} already exists")
        _check_dates(
            changes.get("start_date", course.start_date),
            changes.get("end_date", course.end_date),
        )

        course = await course_repository.update(db, course, changes)
        return await self._to_response(db, course)

    async def delete_course(self, db: AsyncSession, user: User, course_id: UUID) -> None:
        """강좌 소프트 삭제.

        Soft delete: is_active=False, status=archived. A published course
        with students still actively enrolled must be archived instead;
        completed and dropped enrollments do not block deletion.
        """
        course: Course = await self._get_or_404(db, course_id)
        self._check_manage(user, course)
        if course.status == "published" and await course_repository.active_enrollment_count(db, course.id) > 0:
            raise BadRequestError(
                "Cannot delete a published course with enrolled students. Archive it instead."
            )
        await course_repository.update(db, course, {"is_active": False, "status": "archived"})
        logger.info("Course %s deleted by %s", course.code, user.email)

    async def set_status(self, db: AsyncSession, user: User, course_id: UUID, status: str) -> CourseResponse:
        """게시 또는 보관 (Publish or archive a course)."""
        course: Course = await self._get_or_404(db, course_id)
        self._check_manage(user, course)
        if course.status == status:
            raise BadRequestError(f"Course is already {status}")
        course = await course_repository.update(db, course, {"status": status})
        return await self._to_response(db, course)

    # === 수강 등록 (Enrollment) ===

    async def enroll(self, db: AsyncSession, student: User, course_id: UUID) -> EnrollmentResponse:
        """수강 등록.

        Enroll the calling student. Checks run in order: already enrolled,
        full, not published, enrollment closed after the start date.

        Raises:
            DuplicateError: 이미 등록됨 (Already enrolled)
            BadRequestError: 정원 초과, 미게시, 등록 마감 (Full, unpublished, closed)
        """
        course: Course = await self._get_or_404(db, course_id)

        existing: CourseEnrollment | None = await course_repository.get_enrollment(db, course.id, student.id)
        if existing is not None and existing.status != "dropped":
            raise DuplicateError("Already enrolled in this course")
        if await course_repository.enrolled_count(db, course.id) >= course.capacity:
            raise BadRequestError("Course is full")
        if course.status != "published":
            raise BadRequestError("Course is not open for enrollment")
        if course.start_date is not None and course.start_date < datetime.now(timezone.utc):
            raise BadRequestError("Enrollment is closed for this course")

        if existing is not None:
            # 중도 포기 후 재등록 — Re-enrolling after dropping resets progress
            enrollment = await course_repository.update(db, existing, {
                "status": "active", "progress": 0, "time_spent": 0, "completed_at": None,
            })
        else:
            enrollment = await course_repository.create_enrollment(db, course.id, student.id)
        logger.info("Student %s enrolled in %s", student.email, course.code)
        return EnrollmentResponse.model_validate(enrollment)

    async def unenroll(self, db: AsyncSession, student: User, course_id: UUID) -> None:
        course: Course = await self._get_or_404(db, course_id)
        enrollment: CourseEnrollment | None = await course_repository.get_enrollment(db, course.id, student.id)
        if enrollment is None or enrollment.status == "dropped":
            raise NotFoundError("Not enrolled in this course")
        await course_repository.delete_enrollment(db, enrollment)

    async def my_enrollments(self, db: AsyncSession, student: User) -> list[StudentEnrollment]:
        """학생 본인의 수강 목록 (The caller's enrollments with course details)."""
        rows = await course_repository.get_student_enrollments(db, student.id)
        courses: list[CourseResponse] = await self._to_responses(db, [course for _, course in rows])
        return [
            StudentEnrollment(enrollment=EnrollmentResponse.model_validate(enrollment), course=course)
            for (enrollment, _), course in zip(rows, courses)
        ]

    async def my_teaching(self, db: AsyncSession, instructor: User) -> list[CourseResponse]:
        return await self._to_responses(db, await course_repository.get_by_instructor(db, instructor.id))

    async def update_progress(
        self,
        db: AsyncSession,
        student: User,
        course_id: UUID,
        data: ProgressUpdate,
    ) -> EnrollmentResponse:
        """진도 업데이트.

        Record progress for the caller's enrollment. Reaching 100 marks the
        enrollment completed; time spent accumulates.
        """
        await self._get_or_404(db, course_id)
        enrollment: CourseEnrollment | None = await course_repository.get_enrollment(db, course_id, student.id)
        if enrollment is None or enrollment.status == "dropped":
            raise NotFoundError("Not enrolled in this course")

        changes: dict[str, Any] = {
            "progress": data.progress,
            "time_spent": enrollment.time_spent + data.time_spent,
        }
        if data.progress >= 100 and enrollment.status != "completed":
            changes.update(status="completed", completed_at=datetime.now(timezone.utc))
        elif data.progress < 100 and enrollment.status == "completed":
            changes.update(status="active", completed_at=None)

        enrollment = await course_repository.update(db, enrollment, changes)
        return EnrollmentResponse.model_validate(enrollment)

    async def get_stats(self, db: AsyncSession, user: User, course_id: UUID) -> CourseStats:
        """강좌 통계 (Enrollment count, completion rate and average progress)."""
        course: Course = await self._get_or_404(db, course_id)
        self._check_manage(user, course)
        enrollments = await course_repository.get_course_enrollments(db, course.id)
        total: int = len(enrollments)
        completed: int = sum(1 for e in enrollments if e.status == "completed")
        return CourseStats(
            course_id=course.id,
            enrolled_count=total,
            capacity=course.capacity,
            completed_count=completed,
            completion_rate=percentage(completed, total),
            average_progress=average([e.progress for e in enrollments]),
        )


# 싱글턴 인스턴스 — Singleton instance
course_service: CourseService = CourseService()
