"""사용자 서비스 — 사용자 목록, 프로필, 환경설정, 계정 관리 비즈니스 로직.

User Service — Business logic for user listing, profiles, preferences,
account creation, activation and deletion.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.models.user import ROLE_ADMIN, User, default_preferences
from yggdrasil.repositories.auth_repository import auth_repository
from yggdrasil.repositories.user_repository import user_repository
from yggdrasil.schemas.user import (
    PreferencesResponse,
    PreferencesUpdate,
    ProfileResponse,
    ProfileUpdate,
    UserCreate,
    UserResponse,
)
from yggdrasil.utils.exceptions import BadRequestError, DuplicateError, ForbiddenError, NotFoundError
from yggdrasil.utils.password import hash_password

logger = logging.getLogger(__name__)


class UserService:
    """사용자 관리 서비스 (User management service)."""

    async def _get_user_or_404(self, db: AsyncSession, user_id: UUID) -> User:
        user: User | None = await user_repository.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _check_self_or_admin(self, actor: User, user_id: UUID) -> None:
        # 본인 또는 관리자만 — Only the user themself or an admin
        if actor.id != user_id and actor.role != ROLE_ADMIN:
            raise ForbiddenError("You can only access your own account")

    async def list_users(
        self,
        db: AsyncSession,
        role: str | None,
        search: str | None,
        is_active: bool | None,
        page: int,
        per_page: int,
    ) -> tuple[list[UserResponse], int]:
        """사용자 목록을 조회합니다 (Paginated user listing)."""
        users, total = await user_repository.get_list(db, role, search, is_active, page, per_page)
        return [UserResponse.model_validate(u) for u in users], total

    async def get_user(self, db: AsyncSession, actor: User, user_id: UUID) -> UserResponse:
        """사용자 상세 조회 — 본인, 관리자, 교직원 (Self, admin or staff)."""
        if actor.id != user_id and not actor.is_manager:
            raise ForbiddenError("You can only access your own account")
        return UserResponse.model_validate(await self._get_user_or_404(db, user_id))

    async def create_user(self, db: AsyncSession, data: UserCreate) -> UserResponse:
        """관리자 사용자 생성.

        Admin-side account creation for any role.

        Raises:
            DuplicateError: 이미 등록된 이메일 (Email already registered)
        """
        if await user_repository.get_by_email(db, data.email) is not None:
            raise DuplicateError("User with this email already exists")

        user: User = await user_repository.create(db, {
            "email": data.email,
            "password_hash": hash_password(data.password),
            "role": data.role,
            "first_name": data.first_name.strip(),
            "last_name": data.last_name.strip(),
            "department": data.department,
            "student_id": data.student_id,
        })
        logger.info("Created %s account %s", user.role, user.email)
        return UserResponse.model_validate(user)

    async def get_profile(self, db: AsyncSession, actor: User, user_id: UUID) -> ProfileResponse:
        self._check_self_or_admin(actor, user_id)
        return ProfileResponse.model_validate(await self._get_user_or_404(db, user_id))

    async def update_profile(
        self,
        db: AsyncSession,
        actor: User,
        user_id: UUID,
        data: ProfileUpdate,
    ) -> ProfileResponse:
        """프로필 수정 (Update profile fields; only provided keys change)."""
        self._check_self_or_admin(actor, user_id)
        user: User = await self._get_user_or_404(db, user_id)
        user = await user_repository.update(db, user, data.model_dump(exclude_unset=True))
        return ProfileResponse.model_validate(user)

    async def get_preferences(self, db: AsyncSession, actor: User, user_id: UUID) -> PreferencesResponse:
        self._check_self_or_admin(actor, user_id)
        user: User = await self._get_user_or_404(db, user_id)
        return PreferencesResponse.model_validate({**default_preferences(), **(user.preferences or {})})

    async def update_preferences(
        self,
        db: AsyncSession,
        actor: User,
        user_id: UUID,
        data: PreferencesUpdate,
    ) -> PreferencesResponse:
        """환경설정 수정 — 저장된 값과 병합.

        Merge the provided preference keys into the stored preferences.
        Notification flags merge key by key.
        """
        self._check_self_or_admin(actor, user_id)
        user: User = await self._get_user_or_404(db, user_id)

        merged: dict[str, Any] = {**default_preferences(), **(user.preferences or {})}
        changes: dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)
        notifications = changes.pop("notifications", None)
        merged.update(changes)
        if notifications is not None:
            merged["notifications"] = {**merged.get("notifications", {}), **notifications}

        # JSON 컬럼은 새 객체 할당으로 변경 감지 — JSON columns detect changes on reassignment
        await user_repository.update(db, user, {"preferences": merged})
        return PreferencesResponse.model_validate(merged)

    async def set_active(self, db: AsyncSession, actor: User, user_id: UUID, is_active: bool) -> UserResponse:
        """계정 활성/비활성 (Activate or deactivate an account; sessions end on deactivation)."""
        if actor.id == user_id and not is_active:
            raise BadRequestError("You cannot deactivate your own account")
        user: User = await self._get_user_or_404(db, user_id)
        user = await user_repository.update(db, user, {"is_active": is_active})
        if not is_active:
            await auth_repository.delete_user_refresh_tokens(db, user.id)
        return UserResponse.model_validate(user)

    async def delete_user(self, db: AsyncSession, actor: User, user_id: UUID) -> None:
        """사용자 삭제 (Hard delete; an admin cannot delete themself)."""
        if actor.id == user_id:
            raise BadRequestError("You cannot delete your own account")
        user: User = await self._get_user_or_404(db, user_id)
        await auth_repository.delete_user_refresh_tokens(db, user.id)
        await user_repository.delete(db, user)
        logger.info("Deleted user %s", user.email)


# 싱글턴 인스턴스 — Singleton instance
user_service: UserService = UserService()
