"""뉴스 라우터 — 기사 CRUD, 슬러그 조회, 게시/고정, 통계.

News Router — Article CRUD, slug lookup, publish/pin toggles and stats.
Mounted at /api/news; article routes live under /articles.
"""

from typing import Annotated, Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.api.deps import get_current_user, get_optional_user, require_admin_or_staff
from yggdrasil.database import get_db
from yggdrasil.models.user import User
from yggdrasil.schemas.common import ApiResponse, PaginatedResponse
from yggdrasil.schemas.news import ArticleCreate, ArticleResponse, ArticleUpdate, NewsCategory, NewsStats
from yggdrasil.services.news_service import news_service
from yggdrasil.utils.responses import paginated_response, success_response

router: APIRouter = APIRouter(prefix="/articles")


@router.post("/", response_model=ApiResponse[ArticleResponse], status_code=201)
async def create_article(
    data: ArticleCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    """기사를 생성합니다 (admin/staff 전용).

    Create an article. Only admin and staff may author articles.
    """
    result: ArticleResponse = await news_service.create_article(db, current_user, data)
    await db.commit()
    return success_response(result, "Article created")


@router.get("/", response_model=PaginatedResponse[ArticleResponse])
async def list_articles(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    category: Annotated[NewsCategory | None, Query()] = None,
    search: Annotated[str | None, Query(description="모든 단어가 일치해야 함 (Every word must match)")] = None,
    tag: Annotated[str | None, Query()] = None,
    published: Annotated[bool | None, Query()] = True,
    pinned: Annotated[bool | None, Query()] = None,
    author: Annotated[UUID | None, Query()] = None,
    sort_by: Annotated[
        Literal["publishedAt", "createdAt", "title", "viewCount"], Query(alias="sortBy")
    ] = "publishedAt",
    sort_order: Annotated[Literal["asc", "desc"], Query(alias="sortOrder")] = "desc",
) -> PaginatedResponse[Any]:
    """기사 목록 — 고정 기사 우선 (Article list, pinned articles first)."""
    articles, total = await news_service.list_articles(
        db,
        current_user,
        page,
        limit,
        category=category,
        search=search,
        tag=tag,
        published=published,
        pinned=pinned,
        author=author,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return paginated_response(articles, page, limit, total)


@router.get("/stats", response_model=ApiResponse[NewsStats])
async def get_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    return success_response(await news_service.get_stats(db))


@router.get("/slug/{slug}", response_model=ApiResponse[ArticleResponse])
async def get_article_by_slug(
    slug: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
) -> ApiResponse[Any]:
    result: ArticleResponse = await news_service.get_article_by_slug(db, current_user, slug)
    await db.commit()
    return success_response(result)


@router.get("/{article_id}", response_model=ApiResponse[ArticleResponse])
async def get_article(
    article_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
) -> ApiResponse[Any]:
    """기사 조회 — 조회수 1 증가 (Fetch an article and count the view)."""
    result: ArticleResponse = await news_service.get_article(db, current_user, article_id)
    await db.commit()
    return success_response(result)


@router.put("/{article_id}", response_model=ApiResponse[ArticleResponse])
async def update_article(
    article_id: UUID,
    data: ArticleUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    result: ArticleResponse = await news_service.update_article(db, current_user, article_id, data)
    await db.commit()
    return success_response(result, "Article updated")


@router.delete("/{article_id}", response_model=ApiResponse[None])
async def delete_article(
    article_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    await news_service.delete_article(db, current_user, article_id)
    await db.commit()
    return success_response(message="Article deleted")


@router.post("/{article_id}/publish", response_model=ApiResponse[ArticleResponse])
async def publish_article(
    article_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    result: ArticleResponse = await news_service.set_published(db, article_id, True)
    await db.commit()
    return success_response(result, "Article published")


@router.post("/{article_id}/unpublish", response_model=ApiResponse[ArticleResponse])
async def unpublish_article(
    article_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    result: ArticleResponse = await news_service.set_published(db, article_id, False)
    await db.commit()
    return success_response(result, "Article unpublished")


@router.post("/{article_id}/pin", response_model=ApiResponse[ArticleResponse])
async def pin_article(
    article_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    result: ArticleResponse = await news_service.set_pinned(db, article_id, True)
    await db.commit()
    return success_response(result, "Article pinned")


@router.post("/{article_id}/unpin", response_model=ApiResponse[ArticleResponse])
async def unpin_article(
    article_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    result: ArticleResponse = await news_service.set_pinned(db, article_id, False)
    await db.commit()
    return success_response(result, "Article unpinned")
