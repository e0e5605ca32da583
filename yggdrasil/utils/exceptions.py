"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Services raise these instead of building responses themselves; the
application-level handlers in yggdrasil.main render every HTTPException
into the standard error envelope.

Usage:
    from yggdrasil.utils.exceptions import NotFoundError, DuplicateError
    raise NotFoundError("Article not found")
    raise DuplicateError("Course code already exists")
"""

from typing import Any

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """404 Not Found 예외 — 요청한 리소스를 찾을 수 없을 때 사용.

    404 Not Found exception.
    Raised when a requested resource (article, course, promotion, etc.) does not exist.
    """

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class DuplicateError(HTTPException):
    """409 Conflict 예외 — 중복 리소스 또는 상태 충돌 시 사용.

    409 Conflict exception.
    Raised on uniqueness violations (email, course code) and membership
    conflicts (already enrolled, already linked).
    """

    def __init__(self, detail: str = "Resource already exists") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ForbiddenError(HTTPException):
    """403 Forbidden 예외 — 권한 부족 시 사용.

    403 Forbidden exception.
    Raised when the authenticated user's role or ownership does not allow
    the operation (e.g. a student creating a news article).
    """

    def __init__(self, detail: str = "Access denied") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class UnauthorizedError(HTTPException):
    """401 Unauthorized 예외 — 인증 실패 시 사용.

    401 Unauthorized exception.
    Raised when authentication is missing, invalid, or expired.
    """

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class BadRequestError(HTTPException):
    """400 Bad Request 예외 — 잘못된 요청 데이터 시 사용.

    400 Bad Request exception.
    Raised for business rule violations beyond what Pydantic validation
    catches (date ordering, capacity, invalid state transitions).

    Args:
        detail: 오류 메시지 (Error message, default: "Bad request")
        details: 추가 진단 정보 (Extra diagnostic payload, e.g. invalid IDs)
    """

    def __init__(self, detail: str = "Bad request", details: Any = None) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
        self.details: Any = details


class ServiceUnavailableError(HTTPException):
    """503 Service Unavailable 예외 — 의존 자원(DB) 불가 시 사용."""

    def __init__(self, detail: str = "Service unavailable") -> None:
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
