"""통계 서비스 — 학생/교사/관리자 대시보드 및 분석 집계.

Statistics Service — Aggregates for the student, teacher and admin
dashboards and for course and platform analytics.

Dashboards are computed on request from enrollments, courses, users,
articles and events; nothing is cached or stored.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.models.course import Course, CourseEnrollment
from yggdrasil.models.user import ROLE_STUDENT, ROLE_TEACHER, User
from yggdrasil.repositories.course_repository import course_repository
from yggdrasil.repositories.event_repository import event_repository
from yggdrasil.repositories.news_repository import news_repository
from yggdrasil.repositories.user_repository import user_repository
from yggdrasil.schemas.statistics import (
    Achievement,
    AdminDashboard,
    CourseAnalytics,
    CourseProgressItem,
    LearningStats,
    PlatformAnalytics,
    PlatformStats,
    PopularCourse,
    StudentDashboard,
    TeacherCourseAnalytics,
    TeacherCourseStats,
    TeacherDashboard,
    UserBreakdown,
)
from yggdrasil.utils.exceptions import ForbiddenError, NotFoundError
from yggdrasil.utils.rounding import average, percentage, round_half_up

logger = logging.getLogger(__name__)

WEEKLY_GOAL_MINUTES = 300
ACTIVE_WINDOW_DAYS = 30
MAX_STREAK = 3
POPULAR_COURSES_LIMIT = 5
# 진도 분포 구간 — Progress distribution buckets (inclusive upper bounds)
PROGRESS_BUCKETS: tuple[tuple[str, int, int], ...] = (
    ("0-25", 0, 25),
    ("26-50", 26, 50),
    ("51-75", 51, 75),
    ("76-100", 76, 100),
)


def build_learning_stats(enrollments: Sequence[CourseEnrollment]) -> LearningStats:
    """수강 목록에서 학습 통계 계산.

    Compute learning stats from a student's enrollments. The weekly
    progress is 30% of the total minutes spent, capped at the weekly goal;
    the streak is one day per hour spent, capped at three.
    """
    total_time: int = sum(e.time_spent for e in enrollments)
    return LearningStats(
        total_courses=len(enrollments),
        active_courses=sum(1 for e in enrollments if e.status == "active"),
        completed_courses=sum(1 for e in enrollments if e.status == "completed"),
        total_time_spent=total_time,
        average_progress=average([e.progress for e in enrollments]),
        weekly_goal=WEEKLY_GOAL_MINUTES,
        weekly_progress=round_half_up(min(total_time * 3 / 10, WEEKLY_GOAL_MINUTES)),
        current_streak=min(total_time // 60, MAX_STREAK),
    )


def build_achievements(stats: LearningStats) -> list[Achievement]:
    achievements: list[Achievement] = []
    if stats.completed_courses > 0:
        achievements.append(Achievement(
            id="first-course",
            title="Course Completer",
            description="Completed your first course",
            icon_name="trophy",
            category="completion",
        ))
    if stats.current_streak >= MAX_STREAK:
        achievements.append(Achievement(
            id="streak-3",
            title="On a Roll",
            description="Studied three days in a row",
            icon_name="fire",
            category="streak",
        ))
    if stats.total_courses > 0 and stats.average_progress >= 90:
        achievements.append(Achievement(
            id="high-progress",
            title="Almost There",
            description="Average progress of 90% or more",
            icon_name="star",
            category="progress",
        ))
    return achievements


class StatisticsService:
    """통계 서비스 (Statistics service)."""

    async def _get_user_or_404(self, db: AsyncSession, user_id: UUID) -> User:
        user: User | None = await user_repository.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def student_dashboard(self, db: AsyncSession, viewer: User, student_id: UUID) -> StudentDashboard:
        """학생 대시보드.

        Learning stats, per-course progress and achievements of a student.
        Students may only read their own dashboard; teachers and managers
        may read any.
        """
        if viewer.role == ROLE_STUDENT and viewer.id != student_id:
            raise ForbiddenError("You can only view your own dashboard")
        student: User = await self._get_user_or_404(db, student_id)

        rows = await course_repository.get_student_enrollments(db, student.id)
        enrollments: list[CourseEnrollment] = [enrollment for enrollment, _ in rows]
        stats: LearningStats = build_learning_stats(enrollments)
        progress: list[CourseProgressItem] = [
            CourseProgressItem(
                course_id=course.id,
                course_title=course.title,
                instructor_name=course.instructor_name,
                progress=enrollment.progress,
                time_spent=enrollment.time_spent,
                status=enrollment.status,
                last_accessed=enrollment.updated_at,
            )
            for enrollment, course in rows
        ]
        return StudentDashboard(
            learning_stats=stats,
            course_progress=progress,
            achievements=build_achievements(stats),
        )

    async def teacher_dashboard(self, db: AsyncSession, viewer: User, teacher_id: UUID) -> TeacherDashboard:
        """교사 대시보드 (Courses taught, students reached and per-course analytics)."""
        if not viewer.is_manager and viewer.id != teacher_id:
            raise ForbiddenError("You can only view your own dashboard")
        teacher: User = await self._get_user_or_404(db, teacher_id)
        if teacher.role != ROLE_TEACHER and not teacher.is_manager:
            raise NotFoundError("Teacher not found")

        courses: Sequence[Course] = await course_repository.get_by_instructor(db, teacher.id)
        enrollments: Sequence[CourseEnrollment] = await course_repository.get_enrollments_for_courses(
            db, [c.id for c in courses]
        )
        by_course: dict[UUID, list[CourseEnrollment]] = {c.id: [] for c in courses}
        for enrollment in enrollments:
            by_course[enrollment.course_id].append(enrollment)

        analytics: list[TeacherCourseAnalytics] = []
        for course in courses:
            members = by_course[course.id]
            analytics.append(TeacherCourseAnalytics(
                course_id=course.id,
                title=course.title,
                status=course.status,
                enrolled_students=len(members),
                average_progress=average([e.progress for e in members]),
                completion_rate=percentage(sum(1 for e in members if e.status == "completed"), len(members)),
            ))

        return TeacherDashboard(
            course_stats=TeacherCourseStats(
                total_courses=len(courses),
                published_courses=sum(1 for c in courses if c.status == "published"),
                total_students=len({e.student_id for e in enrollments}),
                average_progress=average([e.progress for e in enrollments]),
            ),
            course_analytics=analytics,
        )

    async def _platform_stats(self, db: AsyncSession) -> tuple[PlatformStats, UserBreakdown]:
        by_role: dict[str, int] = await user_repository.count_by_role(db)
        total_users: int = sum(by_role.values())
        since: datetime = datetime.now(timezone.utc) - timedelta(days=ACTIVE_WINDOW_DAYS)
        active_users: int = await user_repository.count_active_since(db, since)

        stats = PlatformStats(
            total_users=total_users,
            active_users=active_users,
            total_courses=await course_repository.count_active_courses(db),
            total_enrollments=await course_repository.count_enrollments(db),
            platform_engagement=percentage(active_users, total_users),
        )
        breakdown = UserBreakdown(
            students=by_role.get("student", 0),
            teachers=by_role.get("teacher", 0),
            staff=by_role.get("staff", 0),
            admins=by_role.get("admin", 0),
        )
        return stats, breakdown

    async def admin_dashboard(self, db: AsyncSession) -> AdminDashboard:
        """관리자 대시보드.

        Platform stats (active = logged in within the last 30 days), user
        breakdown by role and the five most enrolled courses.
        """
        stats, breakdown = await self._platform_stats(db)
        popular = await course_repository.most_popular(db, POPULAR_COURSES_LIMIT)
        return AdminDashboard(
            platform_stats=stats,
            user_breakdown=breakdown,
            most_popular_courses=[
                PopularCourse(course_id=course.id, title=course.title, code=course.code, enrollments=count)
                for course, count in popular
            ],
        )

    async def course_analytics(self, db: AsyncSession, viewer: User, course_id: UUID) -> CourseAnalytics:
        """강좌 분석 (Enrollment breakdown and progress distribution of one course)."""
        course: Course | None = await course_repository.get_by_id(db, course_id)
        if course is None or not course.is_active:
            raise NotFoundError("Course not found")
        if not viewer.is_manager and course.instructor_id != viewer.id:
            raise ForbiddenError("You can only view analytics of your own courses")

        enrollments: Sequence[CourseEnrollment] = await course_repository.get_course_enrollments(db, course.id)
        completed: int = sum(1 for e in enrollments if e.status == "completed")
        distribution: dict[str, int] = {
            label: sum(1 for e in enrollments if low <= e.progress <= high)
            for label, low, high in PROGRESS_BUCKETS
        }
        return CourseAnalytics(
            course_id=course.id,
            title=course.title,
            enrolled_students=len(enrollments),
            active_students=sum(1 for e in enrollments if e.status == "active"),
            completed_students=completed,
            completion_rate=percentage(completed, len(enrollments)),
            average_progress=average([e.progress for e in enrollments]),
            average_time_spent=average([e.time_spent for e in enrollments]),
            progress_distribution=distribution,
        )

    async def platform_analytics(self, db: AsyncSession) -> PlatformAnalytics:
        stats, breakdown = await self._platform_stats(db)
        news = await news_repository.get_stats(db)
        return PlatformAnalytics(
            platform_stats=stats,
            user_breakdown=breakdown,
            courses_by_status=await course_repository.count_by_status(db),
            articles_published=news["published"],
            upcoming_events=await event_repository.count_upcoming(db, datetime.now(timezone.utc)),
        )


# 싱글턴 인스턴스 — Singleton instance
statistics_service: StatisticsService = StatisticsService()
