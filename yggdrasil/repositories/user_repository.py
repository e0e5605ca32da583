"""사용자 레포지토리 — 사용자 조회, 검색, 통계 쿼리.

User Repository — Lookup by email, filtered listing and role counts.
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.models.user import User
from yggdrasil.repositories.base import BaseRepository
from yggdrasil.utils.pagination import paginate


class UserRepository(BaseRepository[User]):
    """사용자 레포지토리 (User repository)."""

    def __init__(self) -> None:
        super().__init__(User)

    async def get_by_email(self, db: AsyncSession, email: str) -> User | None:
        """이메일로 사용자 조회 — 대소문자 무시 (Case-insensitive email lookup)."""
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def get_list(
        self,
        db: AsyncSession,
        role: str | None = None,
        search: str | None = None,
        is_active: bool | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[User], int]:
        """필터가 적용된 사용자 목록을 조회합니다.

        Retrieve a filtered, paginated list of users ordered by last name.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            role: 역할 필터 (Role filter)
            search: 이메일/이름 검색어 (Substring matched on email and names)
            is_active: 활성 상태 필터 (Active flag filter)
            page: 페이지 번호 (Page number)
            per_page: 페이지당 항목 수 (Items per page)

        Returns:
            tuple[Sequence[User], int]: (사용자 목록, 전체 개수)
        """
        query: Select = select(User)
        if role is not None:
            query = query.where(User.role == role)
        if is_active is not None:
            query = query.where(User.is_active == is_active)
        if search:
            term = search.strip()
            query = query.where(or_(
                User.email.icontains(term, autoescape=True),
                User.first_name.icontains(term, autoescape=True),
                User.last_name.icontains(term, autoescape=True),
            ))
        query = query.order_by(User.last_name, User.first_name)
        return await paginate(db, query, page, per_page)

    async def count_by_role(self, db: AsyncSession) -> dict[str, int]:
        """역할별 사용자 수 (User count per role)."""
        result = await db.execute(select(User.role, func.count()).group_by(User.role))
        return {role: count for role, count in result.all()}

    async def count_active_since(self, db: AsyncSession, since: datetime) -> int:
        """기준 시각 이후 로그인한 사용자 수 (Users who logged in since `since`)."""
        query = select(func.count()).select_from(User).where(User.last_login_at >= since)
        return (await db.execute(query)).scalar() or 0

    async def get_students_by_ids(self, db: AsyncSession, user_ids: Sequence[UUID]) -> Sequence[User]:
        """학생 역할 사용자만 조회 (Only users with the student role)."""
        if not user_ids:
            return []
        result = await db.execute(select(User).where(User.id.in_(user_ids), User.role == "student"))
        return result.scalars().all()


# 싱글턴 인스턴스 — Singleton instance
user_repository: UserRepository = UserRepository()
