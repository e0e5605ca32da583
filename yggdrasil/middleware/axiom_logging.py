"""요청 로깅 미들웨어 — 요청마다 Axiom에 이벤트 하나.

Request logging middleware. Each API call becomes one Axiom event tagged
with the service that handled it (auth, users, courses, ...). Credentials
such as passwords, JWTs and reset tokens are masked before shipping, and
failed calls carry the message from the error envelope. When AXIOM_API_TOKEN
or AXIOM_DATASET is unset the middleware does nothing.
"""

import json
import logging
import re
import time
from typing import Any

from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from yggdrasil.config import settings

logger = logging.getLogger(__name__)

# camelCase, snake_case 모두 매칭 — Matches both resetToken and reset_token style keys
_SECRET_KEY = re.compile(r"passw(or)?d|secret|token|authorization|api_?key|credential", re.IGNORECASE)
_MASK = "***"

# 헬스 체크와 문서 경로는 기록하지 않음 — Health checks and docs are not logged
_QUIET_PATHS = frozenset({"/health", "/health/ready", "/docs", "/redoc", "/openapi.json"})

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})
_BODY_LIMIT = 2000
_ERROR_LIMIT = 500


def mask_sensitive(value: Any, depth: int = 0) -> Any:
    """중첩된 dict/list에서 자격 증명 값을 가립니다.

    Replace credential values in nested dicts and lists. Lists are cut to
    their first 20 entries and nesting deeper than five levels collapses
    to ``"..."``.
    """
    if depth > 5:
        return "..."
    if isinstance(value, dict):
        return {
            key: _MASK if _SECRET_KEY.search(str(key)) else mask_sensitive(item, depth + 1)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [mask_sensitive(item, depth + 1) for item in value[:20]]
    return value


def envelope_message(raw: bytes) -> str:
    """오류 봉투의 ``error`` 문구, 없으면 원문 일부.

    The ``error`` text of an error envelope, falling back to FastAPI's
    ``detail`` and then to the raw body.
    """
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return raw.decode("utf-8", errors="replace")[:_ERROR_LIMIT]
    if isinstance(payload, dict):
        payload = payload.get("error") or payload.get("detail") or payload
    return str(payload)[:_ERROR_LIMIT]


def _clip(body: Any) -> Any:
    serialized = json.dumps(body, default=str)
    if len(serialized) <= _BODY_LIMIT:
        return body
    return serialized[:_BODY_LIMIT] + "...(truncated)"


async def _masked_body(request: Request) -> Any:
    if request.method not in _BODY_METHODS:
        return None
    raw = await request.body()
    if not raw:
        return None
    try:
        return mask_sensitive(json.loads(raw))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return "(non-json body)"


async def _buffer(response: Response) -> tuple[Response, bytes]:
    """스트리밍 응답을 읽고 같은 내용으로 다시 만듭니다 (Drain and rebuild a streamed response)."""
    chunks: list[bytes] = []
    async for chunk in response.body_iterator:
        chunks.append(chunk if isinstance(chunk, bytes) else chunk.encode("utf-8"))
    raw = b"".join(chunks)
    rebuilt = Response(
        content=raw,
        status_code=response.status_code,
        headers=dict(response.headers),
        media_type=response.media_type,
    )
    return rebuilt, raw


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """서비스별 요청 이벤트를 Axiom으로 보내는 미들웨어."""

    def __init__(self, app: Any, service_name: str = "all", client: AxiomClient | None = None) -> None:
        super().__init__(app)
        self.service_name = service_name
        self.dataset = settings.AXIOM_DATASET
        self.client = client
        if self.client is None and settings.AXIOM_API_TOKEN and self.dataset:
            self.client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self.client is None or request.url.path in _QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        body = await _masked_body(request)
        status_code = 500
        error: str | None = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            if status_code >= 400:
                response, raw = await _buffer(response)
                error = envelope_message(raw)
        except Exception as exc:
            error = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            event: dict[str, Any] = {
                "service": self.service_name,
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            }
            if request.query_params:
                event["query_params"] = mask_sensitive(dict(request.query_params))
            if body is not None:
                event["request_body"] = _clip(body)
            if error:
                event["error"] = error
            self._ship(event)
        return response

    def _ship(self, event: dict[str, Any]) -> None:
        # 수집 실패는 경고만 남기고 응답은 그대로 — An ingest failure only warns; the response still goes out
        try:
            self.client.ingest_events(self.dataset, [event])
        except Exception:
            logger.warning("Axiom ingest failed for %s %s", event["method"], event["path"], exc_info=True)
