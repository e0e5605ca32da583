"""요청 로깅 미들웨어 테스트 — 마스킹, 오류 문구, 제외 경로.

Request logging middleware tests. A recording stand-in replaces the
Axiom client so nothing leaves the process.
"""

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient

from yggdrasil.middleware.axiom_logging import AxiomLoggingMiddleware, envelope_message, mask_sensitive


class RecordingClient:
    def __init__(self) -> None:
        self.events: list[dict] = []

    def ingest_events(self, dataset: str, events: list[dict]) -> None:
        self.events.extend(events)


def _app(recorder: RecordingClient) -> FastAPI:
    app = FastAPI()

    @app.post("/api/auth/login")
    async def login() -> dict:
        return {"success": True}

    @app.get("/api/news/missing")
    async def missing() -> JSONResponse:
        return JSONResponse({"success": False, "error": "Article not found"}, status_code=404)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    app.add_middleware(AxiomLoggingMiddleware, service_name="auth", client=recorder)
    return app


async def _call(app: FastAPI, method: str, path: str, **kwargs):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        return await ac.request(method, path, **kwargs)


class TestMasking:
    """마스킹 테스트."""

    def test_credentials_masked(self):
        masked = mask_sensitive({
            "email": "stu@example.com",
            "password": "hunter2",
            "resetToken": "abc",
            "profile": {"new_password": "x", "bio": "hi"},
        })
        assert masked["email"] == "stu@example.com"
        assert masked["password"] == "***"
        assert masked["resetToken"] == "***"
        assert masked["profile"] == {"new_password": "***", "bio": "hi"}

    def test_lists_capped(self):
        assert len(mask_sensitive(list(range(50)))) == 20

    def test_envelope_message(self):
        assert envelope_message(b'{"success": false, "error": "Email already exists"}') == "Email already exists"
        assert envelope_message(b'{"detail": "Not Found"}') == "Not Found"
        assert envelope_message(b"plain text") == "plain text"


class TestMiddleware:
    """미들웨어 테스트."""

    async def test_event_shipped_with_masked_body(self):
        recorder = RecordingClient()
        response = await _call(
            _app(recorder), "POST", "/api/auth/login",
            json={"email": "stu@example.com", "password": "hunter2"},
        )
        assert response.status_code == 200
        [event] = recorder.events
        assert event["service"] == "auth"
        assert event["status_code"] == 200
        assert event["request_body"] == {"email": "stu@example.com", "password": "***"}
        assert "error" not in event

    async def test_error_message_captured(self):
        recorder = RecordingClient()
        response = await _call(_app(recorder), "GET", "/api/news/missing")
        assert response.status_code == 404
        assert response.json()["error"] == "Article not found"
        assert recorder.events[0]["error"] == "Article not found"

    async def test_health_not_logged(self):
        recorder = RecordingClient()
        await _call(_app(recorder), "GET", "/health")
        assert recorder.events == []
