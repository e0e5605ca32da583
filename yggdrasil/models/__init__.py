"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
relationship resolution.

Modules:
    user: 사용자 (Users with role, profile and preferences)
    token: 리프레시/재설정 토큰 (Refresh and password reset tokens)
    news: 뉴스 기사 (News articles)
    course: 강좌 및 수강 (Courses and enrollments)
    planning: 프로모션, 캘린더 이벤트, 학기 검증 (Promotions, calendar events and semester validations)
"""

from yggdrasil.models.user import User
from yggdrasil.models.token import RefreshToken, PasswordResetToken
from yggdrasil.models.news import NewsArticle
from yggdrasil.models.course import Course, CourseEnrollment
from yggdrasil.models.planning import (
    Promotion, Event, EventAttendee, StudentValidation, promotion_students, promotion_events,
)

__all__ = [
    "User",
    "RefreshToken", "PasswordResetToken",
    "NewsArticle",
    "Course", "CourseEnrollment",
    "Promotion", "Event", "EventAttendee", "StudentValidation", "promotion_students", "promotion_events",
]
