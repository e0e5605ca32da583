"""사용자 관련 SQLAlchemy ORM 모델 정의.

User SQLAlchemy ORM model definitions.
Roles are a closed set of four values stored directly on the user row:
admin, staff, teacher, student.

Tables:
    - users: 사용자 계정 (User accounts with role, profile and preferences)
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from yggdrasil.database import Base, UTCDateTime

# 역할 상수 — Role constants
ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"
ROLE_TEACHER = "teacher"
ROLE_STUDENT = "student"
ROLES: tuple[str, ...] = (ROLE_ADMIN, ROLE_STAFF, ROLE_TEACHER, ROLE_STUDENT)


def default_preferences() -> dict[str, Any]:
    """기본 사용자 환경설정 (Default user preferences)."""
    return {
        "language": "fr",
        "timezone": "Europe/Paris",
        "theme": "light",
        "notifications": {"email": True, "push": True, "sms": False},
    }


class User(Base):
    """사용자 모델 — 시스템 사용자 계정 정보.

    User model — System user account information.
    Email is globally unique and stored lowercased.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        email: 로그인 이메일 (Login email, unique, lowercased)
        password_hash: bcrypt 해시 (Bcrypt password hash)
        role: 역할 (admin | staff | teacher | student)
        first_name: 이름 (First name)
        last_name: 성 (Last name)
        department: 소속 학과 (Department, optional)
        student_id: 학번 (Student number, optional)
        bio: 소개 (Free-form biography, optional)
        preferences: 환경설정 JSON (language, timezone, theme, notifications)
        is_active: 활성 상태 (Whether the account can log in)
        last_login_at: 마지막 로그인 일시 (Last successful login)
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 로그인 이메일 — 항상 소문자로 저장 (Always stored lowercased)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_STUDENT, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    student_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    preferences: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=default_preferences)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    @property
    def is_manager(self) -> bool:
        """관리 역할 여부 — admin 또는 staff (Admin or staff)."""
        return self.role in (ROLE_ADMIN, ROLE_STAFF)

    @property
    def full_name(self) -> str:
        """표시 이름 (Display name "First Last")."""
        return f"{self.first_name} {self.last_name}".strip()
