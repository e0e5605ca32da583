"""인증 토큰 저장소 — 리프레시 토큰과 일회용 재설정 토큰.

Token storage for the auth service: refresh tokens (one row per live
session) and one-time password reset tokens.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.models.token import PasswordResetToken, RefreshToken


class AuthRepository:
    """토큰 행의 발급, 조회, 폐기 (Issue, look up and revoke token rows)."""

    # --- 리프레시 토큰 — Refresh tokens ---

    async def create_refresh_token(
        self, db: AsyncSession, user_id: UUID, token: str, expires_at: datetime
    ) -> RefreshToken:
        session_row = RefreshToken(user_id=user_id, token=token, expires_at=expires_at)
        db.add(session_row)
        await db.flush()
        return session_row

    async def get_refresh_token(self, db: AsyncSession, token: str) -> RefreshToken | None:
        return await db.scalar(select(RefreshToken).where(RefreshToken.token == token))

    async def delete_refresh_token(self, db: AsyncSession, token: str) -> bool:
        """토큰 하나를 폐기합니다. 실제로 지워졌으면 True.

        Revoke one refresh token; True when a row was actually removed.
        """
        outcome = await db.execute(delete(RefreshToken).where(RefreshToken.token == token))
        await db.flush()
        return bool(outcome.rowcount)

    async def delete_user_refresh_tokens(self, db: AsyncSession, user_id: UUID) -> None:
        """사용자의 모든 세션을 끊습니다 (Sign the user out everywhere)."""
        await db.execute(delete(RefreshToken).where(RefreshToken.user_id == user_id))
        await db.flush()

    # --- 비밀번호 재설정 — Password reset ---

    async def create_reset_token(
        self, db: AsyncSession, user_id: UUID, token: str, expires_at: datetime
    ) -> PasswordResetToken:
        """새 재설정 토큰을 발급합니다.

        Issue a reset token. Any still-unused token of the same user is
        consumed first, so only the most recent e-mail link works.
        """
        await db.execute(
            update(PasswordResetToken)
            .where(PasswordResetToken.user_id == user_id, PasswordResetToken.used.is_(False))
            .values(used=True)
        )
        reset = PasswordResetToken(user_id=user_id, token=token, expires_at=expires_at)
        db.add(reset)
        await db.flush()
        return reset

    async def get_reset_token(self, db: AsyncSession, token: str) -> PasswordResetToken | None:
        return await db.scalar(select(PasswordResetToken).where(PasswordResetToken.token == token))


auth_repository = AuthRepository()
