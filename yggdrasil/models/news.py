"""뉴스 기사 SQLAlchemy ORM 모델.

News article ORM model. The author's name and role are snapshotted at
creation so the article keeps its byline if the author changes later.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from yggdrasil.database import Base, UTCDateTime

NEWS_CATEGORIES: tuple[str, ...] = ("general", "academic", "events", "announcements")


class NewsArticle(Base):
    """뉴스 기사 모델.

    News article model.

    Attributes:
        title: 제목 (Title, ≤300 chars)
        slug: URL 슬러그 (Unique URL slug derived from title)
        content: 본문 (Body text)
        summary: 요약 (Summary, ≤500 chars)
        category: 분류 (general | academic | events | announcements)
        tags: 태그 목록 (List of tags)
        author_id: 작성자 FK (Author user)
        author_name: 작성자 이름 스냅샷 (Author name snapshot)
        author_role: 작성자 역할 스냅샷 (Author role snapshot)
        is_published: 게시 여부 (Published flag)
        is_pinned: 상단 고정 여부 (Pinned flag)
        published_at: 게시 일시 (Publication timestamp, cleared on unpublish)
        view_count: 조회수 (View counter)
    """

    __tablename__ = "news_articles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    slug: Mapped[str] = mapped_column(String(350), unique=True, nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[str | None] = mapped_column(String(500), nullable=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False, default="general", index=True)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    author_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    author_name: Mapped[str] = mapped_column(String(200), nullable=False)
    author_role: Mapped[str] = mapped_column(String(20), nullable=False)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    published_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
