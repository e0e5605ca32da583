"""인증 라우터 — 회원가입, 로그인, 토큰 갱신, 로그아웃, 비밀번호 관리.

Auth Router — Registration, login, token refresh, logout, current user
and password management endpoints. Mounted at /api/auth.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.api.deps import get_current_user, get_optional_user
from yggdrasil.config import settings
from yggdrasil.database import get_db
from yggdrasil.models.user import User
from yggdrasil.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    RegistrationStatus,
    ResetPasswordRequest,
    TokenPair,
)
from yggdrasil.schemas.common import ApiResponse
from yggdrasil.schemas.user import UserResponse
from yggdrasil.services.auth_service import auth_service
from yggdrasil.utils.responses import success_response

router: APIRouter = APIRouter()


@router.post("/register", response_model=ApiResponse[AuthResponse], status_code=201)
async def register(
    data: RegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
) -> ApiResponse[Any]:
    """회원가입 — 사용자 생성 후 토큰 쌍 발급.

    Register a new account. Admin and staff accounts can only be created
    by an authenticated admin.
    """
    result: AuthResponse = await auth_service.register(db, data, actor=current_user)
    await db.commit()
    return success_response(result, "Registration successful")


@router.get("/registration-status", response_model=ApiResponse[RegistrationStatus])
async def registration_status() -> ApiResponse[Any]:
    return success_response(RegistrationStatus(enabled=settings.REGISTRATION_ENABLED))


@router.post("/login", response_model=ApiResponse[AuthResponse])
async def login(
    data: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ApiResponse[Any]:
    """로그인 — 이메일/비밀번호 인증 (Email and password login)."""
    result: AuthResponse = await auth_service.login(db, data)
    await db.commit()
    return success_response(result, "Login successful")


@router.post("/refresh", response_model=ApiResponse[TokenPair])
async def refresh_token(
    data: RefreshRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ApiResponse[Any]:
    """토큰 갱신 — 리프레시 토큰으로 새 토큰 쌍 발급.

    Refresh token endpoint. Issues a new token pair and revokes the one
    presented.
    """
    result: TokenPair = await auth_service.refresh_tokens(db, data.refresh_token)
    await db.commit()
    return success_response(result, "Token refreshed")


@router.post("/logout", response_model=ApiResponse[None])
async def logout(
    data: RefreshRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ApiResponse[Any]:
    """로그아웃 — 리프레시 토큰 폐기 (Revoke the given refresh token)."""
    await auth_service.logout(db, data.refresh_token)
    await db.commit()
    return success_response(message="Logged out successfully")


@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    """현재 사용자 프로필 조회 (Profile of the authenticated user)."""
    return success_response(UserResponse.model_validate(current_user))


@router.post("/change-password", response_model=ApiResponse[None])
async def change_password(
    data: ChangePasswordRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    await auth_service.change_password(db, current_user, data)
    await db.commit()
    return success_response(message="Password changed successfully")


@router.post("/forgot-password", response_model=ApiResponse[None])
async def forgot_password(
    data: ForgotPasswordRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ApiResponse[Any]:
    """비밀번호 재설정 메일 요청.

    Always answers 200 so the response never reveals whether the email
    belongs to an account.
    """
    await auth_service.forgot_password(db, data.email)
    await db.commit()
    return success_response(message="If the email exists, a reset link has been sent")


@router.post("/reset-password", response_model=ApiResponse[None])
async def reset_password(
    data: ResetPasswordRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ApiResponse[Any]:
    await auth_service.reset_password(db, data)
    await db.commit()
    return success_response(message="Password has been reset")
