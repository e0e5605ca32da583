"""공통 Pydantic 스키마 — 응답 봉투 및 camelCase 베이스 모델.

Common Pydantic schemas — Response envelopes and the camelCase base model.
Every endpoint answers with {success, data|error, message, timestamp}
and list endpoints add a pagination block.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from yggdrasil.utils.pagination import PaginationMeta

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # 시간대 없는 입력은 UTC로 간주 — Naive input is taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# 요청 일시 타입 — Request datetime, always normalised to aware UTC
UTCDatetime = Annotated[datetime, AfterValidator(_as_utc)]


def reject_null(value: Any) -> Any:
    """부분 수정에서 NOT NULL 컬럼에 대한 명시적 null 거부.

    Partial updates may omit a field but may not send `null` for one
    whose column is NOT NULL.
    """
    if value is None:
        raise ValueError("must not be null")
    return value


class CamelModel(BaseModel):
    """camelCase 직렬화 베이스 모델.

    Base model serialising fields as camelCase while accepting both
    camelCase and snake_case input. ORM objects validate directly.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(BaseModel, Generic[T]):
    """성공 응답 봉투 (Success response envelope)."""

    success: bool = True
    data: T | None = None
    message: str | None = None
    timestamp: datetime = Field(default_factory=_utc_now)


class PaginatedResponse(BaseModel, Generic[T]):
    """페이지네이션 응답 봉투 (Paginated success response envelope)."""

    success: bool = True
    data: list[T] = []
    pagination: PaginationMeta
    message: str | None = None
    timestamp: datetime = Field(default_factory=_utc_now)


class ErrorResponse(BaseModel):
    """오류 응답 봉투 (Error response envelope)."""

    success: bool = False
    error: str
    message: str
    statusCode: int
    timestamp: datetime = Field(default_factory=_utc_now)
    details: Any = None


class IdList(CamelModel):
    """ID 목록 요청 스키마 (Request body carrying a list of IDs)."""

    ids: list[str] = Field(min_length=1)
