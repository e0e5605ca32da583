"""공용 레포지토리 베이스 — 도메인 레포지토리가 상속하는 최소 CRUD 집합.

Shared repository base used by every domain repository. Subclasses bind
a model in ``__init__`` and add their own query methods on top:

    class PromotionRepository(BaseRepository[Promotion]):
        def __init__(self) -> None:
            super().__init__(Promotion)

Writes only flush; the router that opened the session decides when to commit.
"""

from typing import Any, Generic, Mapping, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """모델 하나에 묶인 CRUD 헬퍼 (CRUD helpers bound to one model)."""

    def __init__(self, model: type[ModelType]) -> None:
        self.model: type[ModelType] = model

    # --- 조회 — Reads ---

    async def get_by_id(self, db: AsyncSession, record_id: UUID) -> ModelType | None:
        """기본 키로 한 건을 읽습니다. 없으면 None.

        Load one row by primary key, or None when it does not exist.
        """
        return await db.get(self.model, record_id)

    async def get_by_ids(self, db: AsyncSession, record_ids: Sequence[UUID]) -> Sequence[ModelType]:
        # 빈 IN 절은 보내지 않음 — Skip the round trip for an empty id list
        if not record_ids:
            return []
        rows = await db.scalars(select(self.model).where(self.model.id.in_(record_ids)))
        return rows.all()

    async def count(self, db: AsyncSession, filters: Mapping[str, Any] | None = None) -> int:
        """등호 필터에 맞는 행 수 (Number of rows matching the equality filters)."""
        stmt = self._where(select(func.count()).select_from(self.model), filters)
        return await db.scalar(stmt) or 0

    # --- 쓰기 — Writes ---

    async def create(self, db: AsyncSession, values: Mapping[str, Any]) -> ModelType:
        """행을 추가하고 flush 후 서버 기본값까지 다시 읽어 반환합니다.

        Insert a row, flush it, and refresh so server-side defaults
        (ids, timestamps) are populated on the returned instance.
        """
        instance = self.model(**values)
        db.add(instance)
        await db.flush()
        await db.refresh(instance)
        return instance

    async def update(self, db: AsyncSession, instance: ModelType, changes: Mapping[str, Any]) -> ModelType:
        """이미 로드된 행에 변경분만 반영합니다.

        Apply ``changes`` to a loaded row. Keys that are not mapped
        attributes of the model are ignored, so callers can pass
        ``model_dump(exclude_unset=True)`` straight through.
        """
        for name, value in changes.items():
            if hasattr(instance, name):
                setattr(instance, name, value)
        await db.flush()
        await db.refresh(instance)
        return instance

    async def delete(self, db: AsyncSession, instance: ModelType) -> None:
        await db.delete(instance)
        await db.flush()

    def _where(self, stmt: Select, filters: Mapping[str, Any] | None) -> Select:
        # None 값은 "조건 없음" — A None value means "do not filter on this column"
        for name, value in (filters or {}).items():
            if value is not None and hasattr(self.model, name):
                stmt = stmt.where(getattr(self.model, name) == value)
        return stmt
