"""사용자 라우터 — 사용자 목록, 상세, 프로필, 환경설정, 계정 관리.

User Router — Listing, detail, profile, preferences, creation,
activation and deletion endpoints. Mounted at /api/users.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.api.deps import get_current_user, require_admin, require_admin_or_staff
from yggdrasil.database import get_db
from yggdrasil.models.user import User
from yggdrasil.schemas.common import ApiResponse, PaginatedResponse
from yggdrasil.schemas.user import (
    PreferencesResponse,
    PreferencesUpdate,
    ProfileResponse,
    ProfileUpdate,
    RoleName,
    UserCreate,
    UserResponse,
    UserStatusUpdate,
)
from yggdrasil.services.user_service import user_service
from yggdrasil.utils.responses import paginated_response, success_response

router: APIRouter = APIRouter()


@router.get("/", response_model=PaginatedResponse[UserResponse])
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
    role: Annotated[RoleName | None, Query(description="역할 필터")] = None,
    search: Annotated[str | None, Query(description="이메일/이름 검색")] = None,
    is_active: Annotated[bool | None, Query(alias="isActive", description="활성 상태 필터")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> PaginatedResponse[Any]:
    """사용자 목록을 필터 조건으로 조회합니다.

    List users with optional filters (role, search, isActive).
    """
    users, total = await user_service.list_users(db, role, search, is_active, page, limit)
    return paginated_response(users, page, limit, total)


@router.post("/", response_model=ApiResponse[UserResponse], status_code=201)
async def create_user(
    data: UserCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin)],
) -> ApiResponse[Any]:
    """새 사용자를 생성합니다 (Admin creates an account of any role)."""
    result: UserResponse = await user_service.create_user(db, data)
    await db.commit()
    return success_response(result, "User created")


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    return success_response(await user_service.get_user(db, current_user, user_id))


@router.get("/{user_id}/profile", response_model=ApiResponse[ProfileResponse])
async def get_profile(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    return success_response(await user_service.get_profile(db, current_user, user_id))


@router.put("/{user_id}/profile", response_model=ApiResponse[ProfileResponse])
async def update_profile(
    user_id: UUID,
    data: ProfileUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    """프로필 수정 — 본인 또는 관리자 (Self or admin)."""
    result: ProfileResponse = await user_service.update_profile(db, current_user, user_id, data)
    await db.commit()
    return success_response(result, "Profile updated")


@router.get("/{user_id}/preferences", response_model=ApiResponse[PreferencesResponse])
async def get_preferences(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    return success_response(await user_service.get_preferences(db, current_user, user_id))


@router.put("/{user_id}/preferences", response_model=ApiResponse[PreferencesResponse])
async def update_preferences(
    user_id: UUID,
    data: PreferencesUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    """환경설정 수정 — 전달된 키만 병합 (Only the provided keys are merged)."""
    result: PreferencesResponse = await user_service.update_preferences(db, current_user, user_id, data)
    await db.commit()
    return success_response(result, "Preferences updated")


@router.patch("/{user_id}/status", response_model=ApiResponse[UserResponse])
async def set_user_status(
    user_id: UUID,
    data: UserStatusUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> ApiResponse[Any]:
    """계정 활성/비활성 (Activate or deactivate an account)."""
    result: UserResponse = await user_service.set_active(db, current_user, user_id, data.is_active)
    await db.commit()
    return success_response(result, "User activated" if data.is_active else "User deactivated")


@router.delete("/{user_id}", response_model=ApiResponse[None])
async def delete_user(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> ApiResponse[Any]:
    """사용자를 삭제합니다 (Hard delete)."""
    await user_service.delete_user(db, current_user, user_id)
    await db.commit()
    return success_response(message="User deleted")
