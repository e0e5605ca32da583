"""뉴스 서비스 — 기사 작성, 조회, 게시/고정 비즈니스 로직.

News Service — Business logic for article authoring, reading,
publishing and pinning.

Permissions:
    - 작성: admin, staff (Create: admin and staff)
    - 수정/삭제: 작성자, admin, staff (Edit/delete: author, admin, staff)
    - 게시/고정: admin, staff (Publish/pin: admin and staff)
    - 미게시 기사 조회: 작성자, admin, staff (Drafts visible to author, admin, staff)
"""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.models.news import NewsArticle
from yggdrasil.models.user import User
from yggdrasil.repositories.news_repository import news_repository
from yggdrasil.schemas.news import ArticleCreate, ArticleResponse, ArticleUpdate, NewsStats
from yggdrasil.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError
from yggdrasil.utils.slug import random_suffix, slugify

logger = logging.getLogger(__name__)


class NewsService:
    """뉴스 기사 서비스 (News article service)."""

    async def _unique_slug(self, db: AsyncSession, title: str, exclude_id: UUID | None = None) -> str:
        """제목에서 고유 슬러그 생성 — 사용 중이면 무작위 접미사 추가.

        Derive a unique slug from the title. When the base slug is taken a
        random six-character suffix is appended.
        """
        base: str = slugify(title)
        if not base:
            raise BadRequestError("Title must contain at least one letter or digit")
        slug: str = base
        while await news_repository.slug_exists(db, slug, exclude_id):
            slug = f"{base}-{random_suffix()}"
        return slug

    def _can_edit(self, user: User, article: NewsArticle) -> bool:
        return user.is_manager or article.author_id == user.id

    def _can_view(self, user: User | None, article: NewsArticle) -> bool:
        if article.is_published:
            return True
        return user is not None and self._can_edit(user, article)

    async def _get_or_404(self, db: AsyncSession, article_id: UUID) -> NewsArticle:
        article: NewsArticle | None = await news_repository.get_by_id(db, article_id)
        if article is None:
            raise NotFoundError("Article not found")
        return article

    async def create_article(self, db: AsyncSession, author: User, data: ArticleCreate) -> ArticleResponse:
        """기사를 생성합니다.

        Create an article. Publishing at creation stamps published_at.

        Raises:
            ForbiddenError: admin/staff가 아닌 경우 (Caller is not admin or staff)
            BadRequestError: 슬러그를 만들 수 없는 제목 (Title yields an empty slug)
        """
        if not author.is_manager:
            raise ForbiddenError("Only admin and staff can create articles")

        article: NewsArticle = await news_repository.create(db, {
            "title": data.title,
            "slug": await self._unique_slug(db, data.title),
            "content": data.content,
            "summary": data.summary,
            "category": data.category,
            "tags": data.tags,
            "author_id": author.id,
            "author_name": author.full_name,
            "author_role": author.role,
            "is_published": data.is_published,
            "is_pinned": data.is_pinned,
            "published_at": datetime.now(timezone.utc) if data.is_published else None,
        })
        logger.info("Article %s created by %s", article.slug, author.email)
        return ArticleResponse.model_validate(article)

    async def list_articles(
        self,
        db: AsyncSession,
        viewer: User | None,
        page: int,
        limit: int,
        category: str | None = None,
        search: str | None = None,
        tag: str | None = None,
        published: bool | None = True,
        pinned: bool | None = None,
        author: UUID | None = None,
        sort_by: str = "publishedAt",
        sort_order: str = "desc",
    ) -> tuple[list[ArticleResponse], int]:
        """기사 목록 조회.

        List articles. Only admin and staff may list unpublished articles;
        for everyone else the published filter is forced to True.
        """
        if published is not True and (viewer is None or not viewer.is_manager):
            published = True
        articles, total = await news_repository.search(
            db,
            category=category,
            search=search,
            tag=tag,
            published=published,
            pinned=pinned,
            author_id=author,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            per_page=limit,
        )
        return [ArticleResponse.model_validate(a) for a in articles], total

    async def get_article(self, db: AsyncSession, viewer: User | None, article_id: UUID) -> ArticleResponse:
        """ID로 기사 조회 — 조회수 증가 (Fetch by id and count the view)."""
        article: NewsArticle = await self._get_or_404(db, article_id)
        return await self._view(db, viewer, article)

    async def get_article_by_slug(self, db: AsyncSession, viewer: User | None, slug: str) -> ArticleResponse:
        """슬러그로 기사 조회 — 조회수 증가 (Fetch by slug and count the view)."""
        article: NewsArticle | None = await news_repository.get_by_slug(db, slug)
        if article is None:
            raise NotFoundError("Article not found")
        return await self._view(db, viewer, article)

    async def _view(self, db: AsyncSession, viewer: User | None, article: NewsArticle) -> ArticleResponse:
        # 미게시 기사는 존재 자체를 숨김 — Drafts are reported as missing to outsiders
        if not self._can_view(viewer, article):
            raise NotFoundError("Article not found")
        article = await news_repository.increment_views(db, article)
        return ArticleResponse.model_validate(article)

    async def update_article(
        self,
        db: AsyncSession,
        user: User,
        article_id: UUID,
        data: ArticleUpdate,
    ) -> ArticleResponse:
        """기사 수정.

        Update an article. A new title regenerates the slug; toggling
        is_published stamps or clears published_at.

        Raises:
            NotFoundError: 기사 없음 (Article not found)
            ForbiddenError: 작성자/admin/staff가 아님 (Not author, admin or staff)
        """
        article: NewsArticle = await self._get_or_404(db, article_id)
        if not self._can_edit(user, article):
            raise ForbiddenError("You can only edit your own articles")

        changes: dict[str, Any] = data.model_dump(exclude_unset=True)
        if changes.get("title") and changes["title"] != article.title:
            changes["slug"] = await self._unique_slug(db, changes["title"], exclude_id=article.id)
        if "is_published" in changes and changes["is_published"] is not None:
            changes.update(self._publication_fields(article, changes["is_published"]))

        article = await news_repository.update(db, article, changes)
        return ArticleResponse.model_validate(article)

    async def delete_article(self, db: AsyncSession, user: User, article_id: UUID) -> None:
        """기사 삭제 (Hard delete by author, admin or staff)."""
        article: NewsArticle = await self._get_or_404(db, article_id)
        if not self._can_edit(user, article):
            raise ForbiddenError("You can only delete your own articles")
        await news_repository.delete(db, article)
        logger.info("Article %s deleted by %s", article.slug, user.email)

    def _publication_fields(self, article: NewsArticle, publish: bool) -> dict[str, Any]:
        if publish and not article.is_published:
            return {"is_published": True, "published_at": datetime.now(timezone.utc)}
        if not publish:
            return {"is_published": False, "published_at": None}
        return {"is_published": True}

    async def set_published(self, db: AsyncSession, article_id: UUID, publish: bool) -> ArticleResponse:
        """게시/게시 취소 (Publish or unpublish)."""
        article: NewsArticle = await self._get_or_404(db, article_id)
        article = await news_repository.update(db, article, self._publication_fields(article, publish))
        return ArticleResponse.model_validate(article)

    async def set_pinned(self, db: AsyncSession, article_id: UUID, pinned: bool) -> ArticleResponse:
        """고정/고정 해제 (Pin or unpin)."""
        article: NewsArticle = await self._get_or_404(db, article_id)
        article = await news_repository.update(db, article, {"is_pinned": pinned})
        return ArticleResponse.model_validate(article)

    async def get_stats(self, db: AsyncSession) -> NewsStats:
        return NewsStats.model_validate(await news_repository.get_stats(db))


# 싱글턴 인스턴스 — Singleton instance
news_service: NewsService = NewsService()
