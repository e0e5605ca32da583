"""인증 서비스 — 회원가입, 로그인, 토큰 갱신, 비밀번호 관리 비즈니스 로직.

Auth Service — Business logic for registration, login, token refresh,
logout and password management (change, forgot, reset).
"""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

import aiosmtplib
import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.config import settings
from yggdrasil.models.user import ROLE_ADMIN, ROLE_STUDENT, ROLE_TEACHER, User
from yggdrasil.repositories.auth_repository import auth_repository
from yggdrasil.repositories.user_repository import user_repository
from yggdrasil.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenPair,
)
from yggdrasil.schemas.user import UserResponse
from yggdrasil.utils.email import send_password_reset_email
from yggdrasil.utils.exceptions import (
    BadRequestError,
    DuplicateError,
    ForbiddenError,
    UnauthorizedError,
)
from yggdrasil.utils.jwt import create_access_token, create_refresh_token, decode_token
from yggdrasil.utils.password import generate_reset_token, hash_password, verify_password

logger = logging.getLogger(__name__)

# 공개 회원가입 허용 역할 — Roles open to self-registration
PUBLIC_ROLES: frozenset[str] = frozenset({ROLE_STUDENT, ROLE_TEACHER})


class AuthService:
    """인증 관련 비즈니스 로직을 처리하는 서비스.

    Service handling authentication business logic.
    Routers commit; this service only flushes.
    """

    def _build_jwt_payload(self, user: User) -> dict[str, str]:
        """JWT 토큰 페이로드를 생성합니다 (Build the JWT payload for a user)."""
        return {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
        }

    async def _generate_tokens(self, db: AsyncSession, user: User) -> TokenPair:
        """액세스 토큰과 리프레시 토큰을 생성합니다.

        Generate an access/refresh token pair and persist the refresh token.
        Previous refresh tokens of the user are revoked.
        """
        payload: dict[str, str] = self._build_jwt_payload(user)
        access_token: str = create_access_token(payload)
        refresh_token: str = create_refresh_token(payload)

        # 기존 리프레시 토큰 정리 — Clean up old refresh tokens to prevent accumulation
        await auth_repository.delete_user_refresh_tokens(db, user.id)

        expires_at: datetime = datetime.now(timezone.utc) + timedelta(
            days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS
        )
        await auth_repository.create_refresh_token(
            db, user_id=user.id, token=refresh_token, expires_at=expires_at
        )

        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    async def register(
        self,
        db: AsyncSession,
        data: RegisterRequest,
        actor: User | None = None,
    ) -> AuthResponse:
        """회원가입을 처리합니다.

        Register a new account and return it with a token pair.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 회원가입 요청 데이터 (Registration request data)
            actor: 요청한 인증 사용자, 없으면 공개 가입 (Authenticated caller, None for public sign-up)

        Raises:
            ForbiddenError: 가입이 닫혔거나 권한 없는 역할 요청 (Registration closed or privileged role requested)
            DuplicateError: 이미 등록된 이메일 (Email already registered)
        """
        is_admin: bool = actor is not None and actor.role == ROLE_ADMIN
        if not settings.REGISTRATION_ENABLED and not is_admin:
            raise ForbiddenError("Registration is currently disabled")
        if data.role not in PUBLIC_ROLES and not is_admin:
            raise ForbiddenError(f"Only administrators can create {data.role} accounts")

        if await user_repository.get_by_email(db, data.email) is not None:
            raise DuplicateError("User with this email already exists")

        user: User = await user_repository.create(db, {
            "email": data.email,
            "password_hash": hash_password(data.password),
            "role": data.role,
            "first_name": data.first_name.strip(),
            "last_name": data.last_name.strip(),
        })
        logger.info("Registered %s account %s", user.role, user.email)

        tokens: TokenPair = await self._generate_tokens(db, user)
        return AuthResponse(user=UserResponse.model_validate(user), tokens=tokens)

    async def login(self, db: AsyncSession, data: LoginRequest) -> AuthResponse:
        """로그인을 처리합니다.

        Authenticate by email and password and record the login time.

        Raises:
            UnauthorizedError: 잘못된 인증 정보 또는 비활성 계정
                               (Invalid credentials or deactivated account)
        """
        user: User | None = await user_repository.get_by_email(db, data.email)
        if user is None or not verify_password(data.password, user.password_hash):
            raise UnauthorizedError("Invalid email or password")

        if not user.is_active:
            raise UnauthorizedError("Account is deactivated")

        user = await user_repository.update(db, user, {"last_login_at": datetime.now(timezone.utc)})
        tokens: TokenPair = await self._generate_tokens(db, user)
        return AuthResponse(user=UserResponse.model_validate(user), tokens=tokens)

    async def refresh_tokens(self, db: AsyncSession, refresh_token: str) -> TokenPair:
        """리프레시 토큰으로 새 토큰 쌍을 발급합니다.

        Rotate a refresh token: the presented token is revoked and a new
        pair is issued.

        Raises:
            UnauthorizedError: 유효하지 않거나 만료된 리프레시 토큰 (Invalid or expired refresh token)
        """
        db_token = await auth_repository.get_refresh_token(db, refresh_token)
        if db_token is None:
            raise UnauthorizedError("Invalid refresh token")

        if db_token.expires_at < datetime.now(timezone.utc):
            await auth_repository.delete_refresh_token(db, refresh_token)
            raise UnauthorizedError("Refresh token has expired")

        try:
            payload: dict = decode_token(refresh_token)
        except jwt.InvalidTokenError:
            await auth_repository.delete_refresh_token(db, refresh_token)
            raise UnauthorizedError("Invalid refresh token")

        if payload.get("type") != "refresh":
            raise UnauthorizedError("Invalid token type")

        user: User | None = await user_repository.get_by_id(db, UUID(payload["sub"]))
        if user is None or not user.is_active:
            raise UnauthorizedError("User not found or inactive")

        await auth_repository.delete_refresh_token(db, refresh_token)
        return await self._generate_tokens(db, user)

    async def logout(self, db: AsyncSession, refresh_token: str) -> None:
        """로그아웃 처리 — 리프레시 토큰을 삭제합니다 (Revoke a refresh token)."""
        await auth_repository.delete_refresh_token(db, refresh_token)

    async def change_password(
        self,
        db: AsyncSession,
        user: User,
        data: ChangePasswordRequest,
    ) -> None:
        """비밀번호 변경 — 현재 비밀번호 확인 후 변경.

        Change the password of the authenticated user.

        Raises:
            BadRequestError: 현재 비밀번호 불일치 또는 동일 비밀번호
                             (Wrong current password, or new equals current)
        """
        if not verify_password(data.current_password, user.password_hash):
            raise BadRequestError("Current password is incorrect")
        if data.current_password == data.new_password:
            raise BadRequestError("New password must be different from the current password")
        await user_repository.update(db, user, {"password_hash": hash_password(data.new_password)})

    async def forgot_password(self, db: AsyncSession, email: str) -> None:
        """비밀번호 재설정 요청.

        Issue a reset token and mail it. Unknown emails are silently
        ignored so the endpoint never reveals which accounts exist.
        """
        user: User | None = await user_repository.get_by_email(db, email)
        if user is None or not user.is_active:
            logger.info("Password reset requested for unknown or inactive email")
            return

        token: str = generate_reset_token()
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
        await auth_repository.create_reset_token(db, user.id, token, expires_at)
        try:
            await send_password_reset_email(user.email, user.first_name, token)
        except aiosmtplib.SMTPException:
            # 토큰은 유지, 메일 실패만 기록 — Token stays valid; only the delivery failure is logged
            logger.exception("Failed to send password reset mail to %s", user.email)

    async def reset_password(self, db: AsyncSession, data: ResetPasswordRequest) -> None:
        """재설정 토큰으로 비밀번호 변경.

        Set a new password from a reset token. All sessions of the user are
        revoked.

        Raises:
            BadRequestError: 유효하지 않거나 만료/사용된 토큰 (Invalid, expired or used token)
        """
        reset = await auth_repository.get_reset_token(db, data.token)
        if reset is None or reset.used or reset.expires_at < datetime.now(timezone.utc):
            raise BadRequestError("Invalid or expired reset token")

        user: User | None = await user_repository.get_by_id(db, reset.user_id)
        if user is None:
            raise BadRequestError("Invalid or expired reset token")

        reset.used = True
        await user_repository.update(db, user, {"password_hash": hash_password(data.new_password)})
        await auth_repository.delete_user_refresh_tokens(db, user.id)


# 싱글턴 인스턴스 — Singleton instance
auth_service: AuthService = AuthService()
