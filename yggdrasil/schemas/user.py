"""사용자 관련 Pydantic 요청/응답 스키마 정의.

User Pydantic request/response schema definitions: user records,
profiles and preferences.
"""

import re
from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import Field, field_validator

from yggdrasil.schemas.common import CamelModel, reject_null

RoleName = Literal["admin", "staff", "teacher", "student"]

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(value: str) -> str:
    """이메일 정규화 — 공백 제거, 소문자 (Trim and lowercase; reject malformed)."""
    value = value.strip().lower()
    if not _EMAIL_RE.match(value):
        raise ValueError("Invalid email address")
    return value


# === 환경설정 (Preferences) ===

class NotificationPreferences(CamelModel):
    email: bool = True
    push: bool = True
    sms: bool = False


class PreferencesResponse(CamelModel):
    """환경설정 응답 스키마 (User preferences)."""

    language: Literal["fr", "en"] = "fr"
    timezone: str = "Europe/Paris"
    theme: Literal["light", "dark", "auto"] = "light"
    notifications: NotificationPreferences = NotificationPreferences()


class PreferencesUpdate(CamelModel):
    """환경설정 수정 요청 스키마 (부분 업데이트, 기존 값과 병합).

    Partial preferences update, merged into the stored preferences.
    """

    language: Literal["fr", "en"] | None = None
    timezone: str | None = Field(default=None, min_length=1, max_length=64)
    theme: Literal["light", "dark", "auto"] | None = None
    notifications: NotificationPreferences | None = None


# === 사용자 (User) ===

class UserCreate(CamelModel):
    """사용자 생성 요청 스키마 (관리자용).

    User creation request schema (admin-only operation).

    Attributes:
        email: 로그인 이메일 (Login email, unique)
        password: 비밀번호 (Plain text, min 8 chars, bcrypt-hashed server-side)
        first_name: 이름 (First name)
        last_name: 성 (Last name)
        role: 역할 (Role)
    """

    email: str
    password: str = Field(min_length=8, max_length=128)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: RoleName = "student"
    department: str | None = Field(default=None, max_length=100)
    student_id: str | None = Field(default=None, max_length=50)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)


class ProfileUpdate(CamelModel):
    """프로필 수정 요청 스키마 (부분 업데이트)."""

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    department: str | None = Field(default=None, max_length=100)
    student_id: str | None = Field(default=None, max_length=50)
    bio: str | None = Field(default=None, max_length=1000)

    @field_validator("first_name", "last_name")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        return reject_null(value)


class UserStatusUpdate(CamelModel):
    is_active: bool


class UserResponse(CamelModel):
    """사용자 응답 스키마.

    User response schema. Never carries the password hash.
    """

    id: UUID
    email: str
    role: str
    first_name: str
    last_name: str
    full_name: str
    department: str | None = None
    student_id: str | None = None
    bio: str | None = None
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime


class ProfileResponse(CamelModel):
    """프로필 응답 스키마 (Public profile fields)."""

    id: UUID
    first_name: str
    last_name: str
    full_name: str
    role: str
    department: str | None = None
    student_id: str | None = None
    bio: str | None = None
