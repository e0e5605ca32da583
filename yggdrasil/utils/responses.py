"""응답 봉투 헬퍼 모듈.

Response envelope helpers.
Success helpers build typed envelopes returned from routers; error helpers
build the JSON bodies emitted by the application exception handlers.

Usage:
    return success_response(ArticleResponse.model_validate(article), "Article created")
    return paginated_response(items, page=1, limit=10, total=42)
"""

from http import HTTPStatus
from typing import Any, Sequence

from fastapi.encoders import jsonable_encoder

from yggdrasil.schemas.common import ApiResponse, ErrorResponse, PaginatedResponse
from yggdrasil.utils.pagination import build_pagination


def success_response(data: Any = None, message: str | None = None) -> ApiResponse[Any]:
    """성공 봉투 생성 (Build a success envelope)."""
    return ApiResponse(data=data, message=message)


def paginated_response(
    items: Sequence[Any],
    page: int,
    limit: int,
    total: int,
    message: str | None = None,
) -> PaginatedResponse[Any]:
    """페이지네이션 봉투 생성 (Build a paginated success envelope)."""
    return PaginatedResponse(
        data=list(items),
        pagination=build_pagination(page, limit, total),
        message=message,
    )


def error_response(
    message: str,
    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR,
    details: Any = None,
) -> dict[str, Any]:
    """오류 봉투 생성.

    Build an error envelope body. `error` carries the human message and
    `message` the standard reason phrase for the status code.

    Args:
        message: 오류 메시지 (Error message)
        status_code: HTTP 상태 코드 (HTTP status code, default 500)
        details: 추가 정보 (Optional extra payload)

    Returns:
        dict[str, Any]: JSON 직렬화 가능한 봉투 (JSON-ready envelope)
    """
    try:
        reason: str = HTTPStatus(status_code).phrase
    except ValueError:
        reason = "Error"
    body = ErrorResponse(
        error=message,
        message=reason,
        statusCode=int(status_code),
        details=details,
    )
    return jsonable_encoder(body, exclude_none=True)


def bad_request(message: str = "Bad request", details: Any = None) -> dict[str, Any]:
    return error_response(message, HTTPStatus.BAD_REQUEST, details)


def unauthorized(message: str = "Authentication required") -> dict[str, Any]:
    return error_response(message, HTTPStatus.UNAUTHORIZED)


def forbidden(message: str = "Access denied") -> dict[str, Any]:
    return error_response(message, HTTPStatus.FORBIDDEN)


def not_found(resource: str = "Resource") -> dict[str, Any]:
    return error_response(f"{resource} not found", HTTPStatus.NOT_FOUND)


def conflict(message: str = "Resource already exists") -> dict[str, Any]:
    return error_response(message, HTTPStatus.CONFLICT)


def validation_error(messages: Sequence[str], details: Any = None) -> dict[str, Any]:
    """검증 오류 봉투 — 메시지를 ", "로 결합 (Join messages with ", ")."""
    joined: str = ", ".join(messages) if messages else "Validation failed"
    return error_response(joined, HTTPStatus.BAD_REQUEST, details)
