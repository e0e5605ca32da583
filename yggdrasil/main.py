"""FastAPI 애플리케이션 엔트리포인트 — 미들웨어, 예외 처리기, 라우터 등록.

FastAPI application entry point — Middleware, exception handlers and
router registration.

One factory builds every service: SERVICE_NAME selects which routers a
process mounts ("all" mounts every one of them). Run a single service
with, for example:

    SERVICE_NAME=news uvicorn yggdrasil.main:app --port 3003
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from yggdrasil.api import auth, courses, events, news, promotions, statistics, users, validations
from yggdrasil.config import settings
from yggdrasil.database import engine
from yggdrasil.middleware.axiom_logging import AxiomLoggingMiddleware
from yggdrasil.utils.exceptions import BadRequestError, ServiceUnavailableError
from yggdrasil.utils.responses import error_response, success_response, validation_error

logger = logging.getLogger(__name__)

# 서비스별 라우터 — Routers mounted by each service (router, prefix, tag)
SERVICE_ROUTERS: dict[str, list[tuple[APIRouter, str, str]]] = {
    "auth": [(auth.router, "/api/auth", "Auth")],
    "user": [(users.router, "/api/users", "Users")],
    "news": [(news.router, "/api/news", "News")],
    "course": [(courses.router, "/api/courses", "Courses")],
    "planning": [
        (promotions.router, "/api/planning", "Promotions"),
        (events.router, "/api/planning", "Events"),
        (validations.router, "/api/planning", "Validations"),
    ],
    "statistics": [(statistics.router, "/api/statistics", "Statistics")],
}


def _validation_messages(errors: list[dict[str, Any]]) -> list[str]:
    # "body.email: Invalid email address" 형식 — One "location: message" line per error
    messages: list[str] = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = str(error.get("msg", "Invalid value")).removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return messages


def register_exception_handlers(app: FastAPI) -> None:
    """모든 오류를 표준 오류 봉투로 변환합니다.

    Render every error as the standard error envelope:
        - HTTPException → 해당 상태 코드 (its own status code)
        - 요청 검증 실패 → 400 (Request validation failures → 400)
        - 알 수 없는 경로 → 404 "Route <path> not found"
        - 처리되지 않은 예외 → 500 (Unhandled exceptions → 500, logged)
    """

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message: str = str(exc.detail)
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Route {request.url.path} not found"
        details: Any = exc.details if isinstance(exc, BadRequestError) else None
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(message, exc.status_code, details),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors: list[dict[str, Any]] = list(exc.errors())
        details = [
            {"field": ".".join(str(p) for p in e.get("loc", ())), "message": e.get("msg"), "type": e.get("type")}
            for e in errors
        ]
        return JSONResponse(status_code=400, content=validation_error(_validation_messages(errors), details))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_response("Internal server error", 500))


def create_app(service_name: str = "all") -> FastAPI:
    """서비스 애플리케이션을 생성합니다.

    Build the FastAPI application for one service, or for every service
    when `service_name` is "all".

    Args:
        service_name: auth | user | news | course | planning | statistics | all

    Raises:
        ValueError: 알 수 없는 서비스 이름 (Unknown service name)
    """
    if service_name != "all" and service_name not in SERVICE_ROUTERS:
        raise ValueError(f"Unknown service: {service_name}")

    started_at: float = time.monotonic()
    app: FastAPI = FastAPI(
        title=settings.APP_NAME if service_name == "all" else f"{settings.APP_NAME} ({service_name})",
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Axiom API 로깅 미들웨어 — Axiom API request/response logging
    # CORS보다 먼저 등록하여 모든 요청을 캡처 (Registered before CORS to capture all requests)
    app.add_middleware(AxiomLoggingMiddleware, service_name=service_name)

    # CORS 미들웨어 — Cross-Origin Resource Sharing middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/")
    async def root() -> dict[str, Any]:
        """서비스 정보 (Service information)."""
        return success_response({
            "name": settings.APP_NAME,
            "service": service_name,
            "version": settings.APP_VERSION,
            "docs": "/docs",
        }).model_dump(mode="json")

    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        """서버 상태 확인 엔드포인트.

        Liveness endpoint for load balancers, monitoring and the test
        lifecycle harness.
        """
        return success_response({
            "service": service_name,
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc),
            "version": settings.APP_VERSION,
            "uptime": round(time.monotonic() - started_at, 3),
        }).model_dump(mode="json")

    @app.get("/health/ready")
    async def readiness_check() -> Any:
        """준비 상태 확인 — DB 연결 검사 (Readiness: the database answers SELECT 1)."""
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("Readiness check failed: %s", exc)
            raise ServiceUnavailableError("Database unavailable") from exc
        return success_response({"service": service_name, "status": "ready"}).model_dump(mode="json")

    # -----------------------------------------------------------------------
    # 라우터 등록 — SERVICE_NAME에 해당하는 라우터만 탑재
    # Router registration — only the routers of the selected service
    # -----------------------------------------------------------------------
    names: list[str] = list(SERVICE_ROUTERS) if service_name == "all" else [service_name]
    for name in names:
        for router, prefix, tag in SERVICE_ROUTERS[name]:
            app.include_router(router, prefix=prefix, tags=[tag])

    logger.info("Service %s ready with routers: %s", service_name, ", ".join(names))
    return app


app: FastAPI = create_app(settings.SERVICE_NAME)
