"""뉴스 기사 Pydantic 요청/응답 스키마 정의.

News article Pydantic request/response schema definitions.
"""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import Field, field_validator

from yggdrasil.schemas.common import CamelModel, reject_null

NewsCategory = Literal["general", "academic", "events", "announcements"]


def _clean_tags(tags: list[str] | None) -> list[str] | None:
    # 공백 제거, 소문자, 중복 제거 — Trim, lowercase, de-duplicate (order kept)
    if tags is None:
        return None
    seen: list[str] = []
    for tag in tags:
        tag = tag.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class ArticleCreate(CamelModel):
    """기사 생성 요청 스키마.

    Article creation request schema. Title and content are required and
    may not be blank.

    Attributes:
        title: 제목 (Title, 1..300 chars)
        content: 본문 (Body text)
        summary: 요약 (Summary, ≤500 chars)
        category: 분류 (Category)
        tags: 태그 (Tags)
        is_published: 즉시 게시 여부 (Publish immediately)
        is_pinned: 상단 고정 (Pin to top)
    """

    title: str = Field(max_length=300)
    content: str
    summary: str | None = Field(default=None, max_length=500)
    category: NewsCategory = "general"
    tags: list[str] = []
    is_published: bool = False
    is_pinned: bool = False

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: list[str]) -> list[str]:
        return _clean_tags(value) or []


class ArticleUpdate(CamelModel):
    """기사 수정 요청 스키마 (부분 업데이트)."""

    title: str | None = Field(default=None, max_length=300)
    content: str | None = None
    summary: str | None = Field(default=None, max_length=500)
    category: NewsCategory | None = None
    tags: list[str] | None = None
    is_published: bool | None = None
    is_pinned: bool | None = None

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: list[str] | None) -> list[str] | None:
        return _clean_tags(value)

    @field_validator("title", "content", "category", "tags", "is_published", "is_pinned")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        return reject_null(value)


class ArticleResponse(CamelModel):
    """기사 응답 스키마 (Article response)."""

    id: UUID
    title: str
    slug: str
    content: str
    summary: str | None = None
    category: str
    tags: list[str]
    author_id: UUID | None = None
    author_name: str
    author_role: str
    is_published: bool
    is_pinned: bool
    published_at: datetime | None = None
    view_count: int
    created_at: datetime
    updated_at: datetime


class NewsStats(CamelModel):
    total: int
    published: int
    drafts: int
    total_views: int
    by_category: dict[str, int]
