"""페이지네이션 유틸리티 모듈.

Pagination utility module for SQLAlchemy async queries.
Provides a generic paginate function and the pagination metadata block
attached to every paginated response envelope.
"""

import math
from typing import Any, Sequence

from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


class PaginationMeta(BaseModel):
    """페이지네이션 메타데이터 모델.

    Pagination metadata included in paginated envelopes.

    Attributes:
        page: 현재 페이지 번호 (Current page number, 1-based)
        limit: 페이지당 항목 수 (Items per page)
        total: 전체 항목 수 (Total count across all pages)
        totalPages: 전체 페이지 수 (ceil(total / limit))
        hasNextPage: 다음 페이지 존재 여부 (page < totalPages)
        hasPrevPage: 이전 페이지 존재 여부 (page > 1)
    """

    page: int
    limit: int
    total: int
    totalPages: int
    hasNextPage: bool
    hasPrevPage: bool


def build_pagination(page: int, limit: int, total: int) -> PaginationMeta:
    """페이지네이션 메타데이터를 계산합니다.

    Compute pagination metadata for a page of results.

    Args:
        page: 현재 페이지 번호 (Current page number, 1-based)
        limit: 페이지당 항목 수 (Items per page, must be positive)
        total: 전체 항목 수 (Total item count)

    Returns:
        PaginationMeta: 계산된 메타데이터 (Computed metadata)
    """
    total_pages: int = math.ceil(total / limit) if limit > 0 else 0
    return PaginationMeta(
        page=page,
        limit=limit,
        total=total,
        totalPages=total_pages,
        hasNextPage=page < total_pages,
        hasPrevPage=page > 1,
    )


async def paginate(
    db: AsyncSession,
    query: Select[Any],
    page: int = 1,
    per_page: int = 20,
    offset: int | None = None,
) -> tuple[Sequence[Any], int]:
    """SQLAlchemy 쿼리에 대한 페이지네이션을 수행합니다.

    Execute a paginated SQLAlchemy query, returning items and total count.
    Runs two queries: one for the total count (via subquery) and one for
    the actual page of results with OFFSET/LIMIT.

    Args:
        db: 비동기 DB 세션 (Async database session)
        query: SQLAlchemy Select 쿼리 (Base query to paginate)
        page: 요청 페이지 번호, 1부터 시작 (Page number, 1-indexed)
        per_page: 페이지당 항목 수 (Items per page)
        offset: 건너뛸 행 수, 주어지면 page 대신 사용 (Raw row offset; overrides page when given)

    Returns:
        tuple[Sequence[Any], int]: (항목 목록, 전체 개수) 튜플
    """
    # 전체 개수 조회 — 서브쿼리로 감싸서 COUNT 실행 (Count total via subquery)
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total: int = (await db.execute(count_query)).scalar() or 0

    # 페이지 항목 조회 — OFFSET/LIMIT 적용 (Fetch page items with offset/limit)
    skip: int = (page - 1) * per_page if offset is None else offset
    result = await db.execute(query.offset(skip).limit(per_page))
    items: Sequence[Any] = result.scalars().all()

    return items, total
