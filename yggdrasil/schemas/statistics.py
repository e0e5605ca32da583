"""통계 Pydantic 응답 스키마 — 대시보드 및 분석.

Statistics response schemas for dashboards and analytics.
"""

from datetime import datetime
from uuid import UUID

from yggdrasil.schemas.common import CamelModel


class LearningStats(CamelModel):
    total_courses: int = 0
    active_courses: int = 0
    completed_courses: int = 0
    total_time_spent: int = 0
    average_progress: int = 0
    weekly_goal: int = 300
    weekly_progress: int = 0
    current_streak: int = 0


class CourseProgressItem(CamelModel):
    course_id: UUID
    course_title: str
    instructor_name: str
    progress: int
    time_spent: int
    status: str
    last_accessed: datetime | None = None


class Achievement(CamelModel):
    id: str
    title: str
    description: str
    icon_name: str
    category: str


class StudentDashboard(CamelModel):
    learning_stats: LearningStats
    course_progress: list[CourseProgressItem] = []
    achievements: list[Achievement] = []


class TeacherCourseAnalytics(CamelModel):
    course_id: UUID
    title: str
    status: str
    enrolled_students: int
    average_progress: int
    completion_rate: int


class TeacherCourseStats(CamelModel):
    total_courses: int = 0
    published_courses: int = 0
    total_students: int = 0
    average_progress: int = 0


class TeacherDashboard(CamelModel):
    course_stats: TeacherCourseStats
    course_analytics: list[TeacherCourseAnalytics] = []


class PlatformStats(CamelModel):
    total_users: int
    active_users: int
    total_courses: int
    total_enrollments: int
    platform_engagement: int


class UserBreakdown(CamelModel):
    students: int = 0
    teachers: int = 0
    staff: int = 0
    admins: int = 0


class PopularCourse(CamelModel):
    course_id: UUID
    title: str
    code: str
    enrollments: int


class AdminDashboard(CamelModel):
    platform_stats: PlatformStats
    user_breakdown: UserBreakdown
    most_popular_courses: list[PopularCourse] = []


class CourseAnalytics(CamelModel):
    course_id: UUID
    title: str
    enrolled_students: int
    active_students: int
    completed_students: int
    completion_rate: int
    average_progress: int
    average_time_spent: int
    progress_distribution: dict[str, int]


class PlatformAnalytics(CamelModel):
    platform_stats: PlatformStats
    user_breakdown: UserBreakdown
    courses_by_status: dict[str, int]
    articles_published: int
    upcoming_events: int
