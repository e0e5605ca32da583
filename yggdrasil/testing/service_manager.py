"""서비스 프로세스 관리자 — uvicorn 서브프로세스 시작/중지 및 헬스 체크.

Service process manager — starts and stops each service as a uvicorn
subprocess and polls its /health endpoint through httpx.

Health tiers (by response time of a 2xx answer):
    - HEALTHY: < 1초 (under 1s)
    - SLOW: < 3초 (under 3s)
    - DEGRADED: 그 이상 (3s or more)
Non-2xx answers are "unhealthy"; connection errors and timeouts are
"unreachable".
"""

import logging
import os
import subprocess
import sys
import time
from pathlib import Path
from typing import IO, Iterable

import httpx
from pydantic import BaseModel

from yggdrasil.config import settings

logger = logging.getLogger(__name__)

HEALTHY = "HEALTHY"
SLOW = "SLOW"
DEGRADED = "DEGRADED"
UNHEALTHY = "unhealthy"
UNREACHABLE = "unreachable"

SLOW_WARNING_SECONDS = 2.0
POLL_INTERVAL_SECONDS = 0.5


def classify_response_time(seconds: float) -> str:
    """응답 시간 → 헬스 등급 (Response time to health tier)."""
    if seconds < 1.0:
        return HEALTHY
    if seconds < 3.0:
        return SLOW
    return DEGRADED


class HealthResult(BaseModel):
    """서비스 헬스 체크 결과 (Outcome of one health check)."""

    service: str
    status: str
    response_time: float | None = None
    status_code: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status in (HEALTHY, SLOW)

    def summary(self) -> str:
        if self.response_time is None:
            return f"{self.service}:{self.status}"
        return f"{self.service}:{self.status}({self.response_time * 1000:.0f}ms)"


class ServiceManager:
    """서비스 프로세스 관리자.

    Manages one uvicorn process per service. Services are named as in
    Settings.service_ports (auth, user, news, course, planning, statistics).

    Args:
        ports: 서비스 이름 → 포트 (Service name to port; defaults to settings)
        host: 헬스 체크 호스트 (Host used for health checks)
        client: 주입 가능한 httpx 클라이언트 (Injectable httpx client)
    """

    def __init__(
        self,
        ports: dict[str, int] | None = None,
        host: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.ports: dict[str, int] = dict(ports or settings.service_ports)
        self.host: str = host or settings.SERVICE_HOST
        self.client: httpx.Client = client or httpx.Client(timeout=settings.HEALTH_CHECK_TIMEOUT)
        self.processes: dict[str, subprocess.Popen] = {}
        self.logs: dict[str, IO[bytes]] = {}

    @property
    def services(self) -> list[str]:
        return list(self.ports)

    def health_url(self, service: str) -> str:
        return f"http://{self.host}:{self.ports[service]}/health"

    # === 헬스 체크 (Health checks) ===

    def health_check(self, service: str) -> HealthResult:
        """단일 서비스 헬스 체크 (Poll one service's /health endpoint)."""
        started: float = time.monotonic()
        try:
            response = self.client.get(self.health_url(service), timeout=settings.HEALTH_CHECK_TIMEOUT)
        except httpx.HTTPError as exc:
            logger.error("Service %s unreachable: %s", service, exc)
            return HealthResult(service=service, status=UNREACHABLE, error=str(exc))

        elapsed: float = time.monotonic() - started
        if not response.is_success:
            logger.error("Service %s returned %d", service, response.status_code)
            return HealthResult(
                service=service, status=UNHEALTHY, response_time=elapsed, status_code=response.status_code
            )
        if elapsed > SLOW_WARNING_SECONDS:
            logger.warning("Service %s responding slowly (%.0fms)", service, elapsed * 1000)
        return HealthResult(
            service=service,
            status=classify_response_time(elapsed),
            response_time=elapsed,
            status_code=response.status_code,
        )

    def check_all(self, services: Iterable[str] | None = None, checkpoint: str = "") -> list[HealthResult]:
        """여러 서비스 헬스 체크 + 요약 로그 (Check several services and log a summary)."""
        results: list[HealthResult] = [self.health_check(name) for name in (services or self.services)]
        logger.info("Health summary %s: %s", checkpoint, ", ".join(r.summary() for r in results))
        degraded: list[str] = [r.summary() for r in results if r.status in (UNHEALTHY, UNREACHABLE, DEGRADED)]
        if degraded:
            logger.error("Unhealthy services detected: %s", ", ".join(degraded))
        return results

    # === 프로세스 관리 (Process management) ===

    def _command(self, service: str) -> list[str]:
        return [
            sys.executable, "-m", "uvicorn", "yggdrasil.main:app",
            "--host", self.host, "--port", str(self.ports[service]),
        ]

    def start(self, service: str) -> subprocess.Popen:
        """서비스 프로세스를 시작합니다 (Spawn the service with SERVICE_NAME set)."""
        running = self.processes.get(service)
        if running is not None and running.poll() is None:
            return running
        env: dict[str, str] = {**os.environ, "SERVICE_NAME": service}
        self._close_log(service)
        output: IO[bytes] | int = self._open_log(service)
        process = subprocess.Popen(
            self._command(service),
            env=env,
            stdout=output,
            stderr=subprocess.STDOUT,
        )
        self.processes[service] = process
        logger.info("Started %s service (pid %d, port %d)", service, process.pid, self.ports[service])
        return process

    def stop(self, service: str, timeout: float | None = None) -> None:
        """서비스 종료 — SIGTERM 후 유예 시간 초과 시 SIGKILL.

        Terminate the service, then kill it when it outlives the grace
        period.
        """
        process = self.processes.pop(service, None)
        if process is None or process.poll() is not None:
            self._close_log(service)
            return
        grace: float = settings.LIFECYCLE_STOP_TIMEOUT if timeout is None else timeout
        process.terminate()
        try:
            process.wait(timeout=grace)
        except subprocess.TimeoutExpired:
            logger.warning("Service %s did not stop within %.0fs, killing", service, grace)
            process.kill()
            process.wait()
        self._close_log(service)
        logger.info("Stopped %s service", service)

    def _open_log(self, service: str) -> IO[bytes] | int:
        # 로그 디렉터리 미설정 시 출력 폐기 — Output is discarded unless LIFECYCLE_LOG_DIR is set
        if not settings.LIFECYCLE_LOG_DIR:
            return subprocess.DEVNULL
        directory = Path(settings.LIFECYCLE_LOG_DIR)
        directory.mkdir(parents=True, exist_ok=True)
        handle = (directory / f"{service}.log").open("ab")
        self.logs[service] = handle
        return handle

    def _close_log(self, service: str) -> None:
        handle = self.logs.pop(service, None)
        if handle is not None:
            handle.close()

    def wait_healthy(self, service: str, timeout: float | None = None) -> bool:
        """서비스가 응답할 때까지 대기 (Poll until the service reports healthy or the timeout passes)."""
        limit: float = settings.LIFECYCLE_START_TIMEOUT if timeout is None else timeout
        deadline: float = time.monotonic() + limit
        while time.monotonic() < deadline:
            process = self.processes.get(service)
            if process is not None and process.poll() is not None:
                logger.error("Service %s exited with code %s during startup", service, process.returncode)
                return False
            if self.health_check(service).ok:
                return True
            time.sleep(POLL_INTERVAL_SECONDS)
        logger.error("Service %s not healthy after %.0fs", service, limit)
        return False

    def start_all(self, timeout: float | None = None) -> bool:
        for service in self.services:
            self.start(service)
        return all([self.wait_healthy(service, timeout) for service in self.services])

    def stop_all(self) -> None:
        for service in list(self.processes):
            self.stop(service)

    def restart_all(self, reason: str) -> None:
        """전체 서비스 재시작.

        Restart every service: health check, stop, stabilise, start and
        verify.

        Raises:
            RuntimeError: 재시작 후 비정상 서비스 존재 (Some service did not come back)
        """
        logger.warning("Restarting all services: %s", reason)
        started: float = time.monotonic()
        self.check_all(checkpoint=f"pre-restart {reason}")
        self.stop_all()
        time.sleep(settings.LIFECYCLE_STABILIZE_SECONDS)
        if not self.start_all():
            raise RuntimeError(f"Service restart failed after {time.monotonic() - started:.1f}s")
        self.check_all(checkpoint=f"post-restart {reason}")
        logger.info("Services restarted in %.1fs", time.monotonic() - started)

    def close(self) -> None:
        self.stop_all()
        self.client.close()
