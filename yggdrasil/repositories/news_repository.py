"""뉴스 레포지토리 — 기사 검색, 슬러그 조회, 통계 쿼리.

News Repository — Article search, slug lookup and aggregate queries.
"""

from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Select, String, and_, cast, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.models.news import NewsArticle
from yggdrasil.repositories.base import BaseRepository
from yggdrasil.utils.pagination import paginate

# 정렬 기준 매핑 — API sortBy value to column
SORT_COLUMNS: dict[str, Any] = {
    "publishedAt": NewsArticle.published_at,
    "createdAt": NewsArticle.created_at,
    "title": NewsArticle.title,
    "viewCount": NewsArticle.view_count,
}


class NewsRepository(BaseRepository[NewsArticle]):
    """뉴스 기사 레포지토리 (News article repository)."""

    def __init__(self) -> None:
        super().__init__(NewsArticle)

    async def get_by_slug(self, db: AsyncSession, slug: str) -> NewsArticle | None:
        result = await db.execute(select(NewsArticle).where(NewsArticle.slug == slug))
        return result.scalar_one_or_none()

    async def slug_exists(self, db: AsyncSession, slug: str, exclude_id: UUID | None = None) -> bool:
        """슬러그 사용 여부 — 자기 자신은 제외 (Whether another article already uses slug)."""
        query = select(func.count()).select_from(NewsArticle).where(NewsArticle.slug == slug)
        if exclude_id is not None:
            query = query.where(NewsArticle.id != exclude_id)
        return ((await db.execute(query)).scalar() or 0) > 0

    async def search(
        self,
        db: AsyncSession,
        category: str | None = None,
        search: str | None = None,
        tag: str | None = None,
        published: bool | None = True,
        pinned: bool | None = None,
        author_id: UUID | None = None,
        sort_by: str = "publishedAt",
        sort_order: str = "desc",
        page: int = 1,
        per_page: int = 10,
    ) -> tuple[Sequence[NewsArticle], int]:
        """필터가 적용된 기사 목록을 조회합니다.

        Retrieve a filtered, paginated list of articles. Pinned articles
        always come first, then the requested sort column.

        Multi-word search: every word must appear in the title, content,
        summary or tags (AND of words, OR of fields). `%` and `_` in a
        word match themselves.

        Returns:
            tuple[Sequence[NewsArticle], int]: (기사 목록, 전체 개수)
        """
        query: Select = select(NewsArticle)
        if category is not None:
            query = query.where(NewsArticle.category == category)
        if published is not None:
            query = query.where(NewsArticle.is_published == published)
        if pinned is not None:
            query = query.where(NewsArticle.is_pinned == pinned)
        if author_id is not None:
            query = query.where(NewsArticle.author_id == author_id)
        if tag:
            query = query.where(cast(NewsArticle.tags, String).icontains(f'"{tag.strip()}"', autoescape=True))
        if search:
            words: list[str] = [w for w in search.split() if w]
            conditions = []
            for word in words:
                conditions.append(or_(
                    NewsArticle.title.icontains(word, autoescape=True),
                    NewsArticle.content.icontains(word, autoescape=True),
                    NewsArticle.summary.icontains(word, autoescape=True),
                    cast(NewsArticle.tags, String).icontains(word, autoescape=True),
                ))
            if conditions:
                query = query.where(and_(*conditions))

        column = SORT_COLUMNS.get(sort_by, NewsArticle.published_at)
        ordered = column.asc() if sort_order == "asc" else column.desc()
        query = query.order_by(NewsArticle.is_pinned.desc(), ordered, NewsArticle.created_at.desc())
        return await paginate(db, query, page, per_page)

    async def increment_views(self, db: AsyncSession, article: NewsArticle) -> NewsArticle:
        """조회수 1 증가 — 원자적 UPDATE (Atomic view counter increment)."""
        await db.execute(
            update(NewsArticle)
            .where(NewsArticle.id == article.id)
            .values(view_count=NewsArticle.view_count + 1)
        )
        await db.flush()
        await db.refresh(article)
        return article

    async def get_stats(self, db: AsyncSession) -> dict[str, Any]:
        """기사 통계 — 분류별, 게시/초안 수, 총 조회수.

        Aggregate article counts per category, published/draft split
        and total views.
        """
        by_category = await db.execute(
            select(NewsArticle.category, func.count()).group_by(NewsArticle.category)
        )
        published = await self.count(db, {"is_published": True})
        drafts = await self.count(db, {"is_published": False})
        views = (await db.execute(select(func.coalesce(func.sum(NewsArticle.view_count), 0)))).scalar() or 0
        return {
            "total": published + drafts,
            "published": published,
            "drafts": drafts,
            "totalViews": int(views),
            "byCategory": {category: count for category, count in by_category.all()},
        }


# 싱글턴 인스턴스 — Singleton instance
news_repository: NewsRepository = NewsRepository()
