"""FastAPI 의존성 주입 모듈 — 인증 및 역할 검사.

FastAPI dependency injection module — Authentication and authorization.
One shared bearer-token dependency validates JWTs for every service;
role checks are built with the require_roles factory.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies JWT and returns payload)
    3. 페이로드의 "sub" 필드로 DB에서 사용자를 조회
       (User is fetched from DB using payload "sub" field)
    4. 사용자 활성 상태를 확인 (User active status is verified)

Missing or invalid credentials yield 401; a valid user whose role is not
allowed yields 403.
"""

from typing import Annotated, Callable, Awaitable
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.database import get_db
from yggdrasil.models.user import ROLE_ADMIN, ROLE_STAFF, ROLE_STUDENT, ROLE_TEACHER, User
from yggdrasil.repositories.user_repository import user_repository
from yggdrasil.utils.exceptions import ForbiddenError, UnauthorizedError
from yggdrasil.utils.jwt import decode_token

# HTTP Bearer 토큰 추출기 — auto_error=False로 누락 시 401 봉투를 직접 반환
# (Missing header is turned into our own 401 envelope instead of FastAPI's 403)
security: HTTPBearer = HTTPBearer(auto_error=False)


async def _user_from_token(db: AsyncSession, token: str) -> User:
    try:
        payload: dict = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token")

    # 토큰 타입 검증 — Reject refresh tokens used as access tokens
    if payload.get("type") != "access":
        raise UnauthorizedError("Invalid token type")

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise UnauthorizedError("Invalid token")

    user: User | None = await user_repository.get_by_id(db, user_id)
    if user is None or not user.is_active:
        raise UnauthorizedError("User not found or inactive")
    return user


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """JWT 토큰에서 현재 인증된 사용자를 추출합니다.

    Decode JWT from the Authorization header and return the authenticated user.

    Raises:
        UnauthorizedError(401): 토큰 누락, 무효, 만료 또는 비활성 사용자
                                (Missing, invalid or expired token, or inactive user)
    """
    if credentials is None:
        raise UnauthorizedError("Authentication required")
    return await _user_from_token(db, credentials.credentials)


async def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User | None:
    """선택적 인증 — 토큰이 없으면 None (Optional auth, None when no token is sent).

    A token that is present but invalid still raises 401.
    """
    if credentials is None:
        return None
    return await _user_from_token(db, credentials.credentials)


def require_roles(*roles: str) -> Callable[..., Awaitable[User]]:
    """역할 기반 권한 검사 의존성 팩토리.

    Dependency factory enforcing that the current user has one of `roles`.

    Args:
        roles: 허용 역할 목록 (Allowed role names)

    Returns:
        FastAPI 의존성 함수 — 인증된 사용자 반환 또는 403 발생
        (FastAPI dependency returning the User or raising 403)
    """
    allowed: frozenset[str] = frozenset(roles)

    async def _check(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in allowed:
            raise ForbiddenError("Insufficient permissions")
        return current_user
    return _check


# 편의 의존성 — Pre-configured role dependencies
require_admin = require_roles(ROLE_ADMIN)
require_admin_or_staff = require_roles(ROLE_ADMIN, ROLE_STAFF)
require_educator = require_roles(ROLE_ADMIN, ROLE_STAFF, ROLE_TEACHER)
require_student = require_roles(ROLE_STUDENT)
require_teacher = require_roles(ROLE_TEACHER)

