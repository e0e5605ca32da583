"""테스트 라이프사이클 및 자원 모니터 테스트.

Lifecycle manager and resource monitor tests. Services and process
metrics are mocked; nothing is spawned.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from yggdrasil.config import settings
from yggdrasil.testing.circuit_breaker import TestCircuitBreaker
from yggdrasil.testing.lifecycle import TestLifecycleManager
from yggdrasil.testing.resource_monitor import ResourceMonitor
from yggdrasil.testing.service_manager import ServiceManager

MB = 1024 * 1024


def _monitor(memory: float = 100.0) -> MagicMock:
    monitor = MagicMock(spec=ResourceMonitor)
    monitor.memory_mb.return_value = memory
    monitor.peak_memory.return_value = memory
    monitor.is_slow.side_effect = ResourceMonitor.is_slow
    return monitor


@pytest.fixture
def services() -> MagicMock:
    return MagicMock(spec=ServiceManager)


@pytest.fixture
def manager(services) -> TestLifecycleManager:
    return TestLifecycleManager(services=services, monitor=_monitor())


def _run(manager: TestLifecycleManager, count: int, passed: bool = True, duration: float = 0.1) -> None:
    for i in range(count):
        if manager.before_test(f"test_{i}"):
            manager.after_test(f"test_{i}", passed=passed, duration=duration)


class TestCleanupSchedule:
    """정기 정리 테스트."""

    def test_scheduled_cleanup(self, manager: TestLifecycleManager):
        _run(manager, settings.LIFECYCLE_CLEANUP_INTERVAL)
        assert manager.cleanups == 1

    def test_callbacks_run_and_errors_contained(self, manager: TestLifecycleManager):
        calls: list[str] = []

        def broken() -> None:
            raise RuntimeError("boom")

        manager.add_cleanup(broken)
        manager.add_cleanup(lambda: calls.append("ran"))
        manager.cleanup("manual")
        assert calls == ["ran"]
        assert manager.cleanups == 1

    def test_slow_test_triggers_cleanup(self, manager: TestLifecycleManager):
        manager.before_test("slow")
        manager.after_test("slow", passed=True, duration=settings.LIFECYCLE_SLOW_TEST_SECONDS + 1)
        assert manager.cleanups == 1

    def test_failed_test_emergency(self, manager: TestLifecycleManager, services: MagicMock):
        manager.before_test("broken")
        manager.after_test("broken", passed=False, duration=0.5)
        assert manager.cleanups == 1
        services.check_all.assert_called_once()


class TestMemoryThresholds:
    """메모리 임계치 테스트."""

    def test_thresholds_tighten(self, manager: TestLifecycleManager):
        assert manager.pre_test_threshold() == settings.LIFECYCLE_MEMORY_THRESHOLD_MB
        manager.test_count = 25
        assert manager.post_test_threshold() == settings.LIFECYCLE_POST_TEST_MEMORY_MB
        assert manager.pre_test_threshold() == settings.LIFECYCLE_MEMORY_THRESHOLD_MB
        manager.test_count = 30
        assert manager.pre_test_threshold() == settings.LIFECYCLE_PRE_TEST_MEMORY_MB

    def test_high_memory_cleans_before_and_after(self, services: MagicMock):
        manager = TestLifecycleManager(services=services, monitor=_monitor(memory=450.0))
        manager.before_test("heavy")
        assert manager.cleanups == 1
        manager.after_test("heavy", passed=True, duration=0.1)
        assert manager.cleanups == 2

    def test_normal_memory_no_cleanup(self, manager: TestLifecycleManager):
        manager.before_test("light")
        manager.after_test("light", passed=True, duration=0.1)
        assert manager.cleanups == 0


class TestRestarts:
    """선제 재시작 및 위험 구간 테스트."""

    def test_restart_at_marks(self, manager: TestLifecycleManager, services: MagicMock):
        _run(manager, 50)
        assert services.restart_all.call_count == 2
        assert manager.restarts == 2

    def test_restart_failure_logged(self, manager: TestLifecycleManager, services: MagicMock):
        services.restart_all.side_effect = RuntimeError("Service restart failed")
        _run(manager, 25)
        assert manager.restarts == 0
        assert manager.test_count == 25

    def test_critical_zone_health_checks(self, manager: TestLifecycleManager, services: MagicMock):
        _run(manager, 24)
        services.check_all.assert_not_called()
        _run(manager, 1)
        services.check_all.assert_called_once()

    def test_without_services(self):
        manager = TestLifecycleManager(monitor=_monitor())
        _run(manager, 26)
        assert manager.restarts == 0


class TestBreakerIntegration:
    """서킷 브레이커 연동 테스트."""

    def test_open_circuit_skips(self, manager: TestLifecycleManager):
        _run(manager, 2, passed=False)
        assert manager.breaker.is_open
        assert manager.before_test("next") is False
        assert manager.test_count == 2

    def test_report(self, services: MagicMock):
        breaker = TestCircuitBreaker()
        manager = TestLifecycleManager(services=services, monitor=_monitor(), breaker=breaker)
        _run(manager, 3)
        report = manager.report()
        assert report["tests"] == 3
        assert report["restarts"] == 0
        assert report["peakMemoryMb"] == 100.0
        assert report["circuit"]["totalTests"] == 3

    def test_suites(self, manager: TestLifecycleManager):
        manager.start_suite("tests/test_news.py")
        _run(manager, 2)
        assert manager.suite_count == 2
        manager.end_suite()
        assert manager.suite_name is None
        assert manager.test_count == 2


class TestResourceMonitor:
    """자원 모니터 테스트."""

    def _process(self, rss_mb: float) -> MagicMock:
        process = MagicMock()
        process.memory_info.return_value = SimpleNamespace(rss=int(rss_mb * MB))
        process.cpu_percent.return_value = 12.5
        process.num_threads.return_value = 4
        return process

    def test_levels(self):
        monitor = ResourceMonitor(process=self._process(100))
        assert monitor.memory_level() == "ok"
        assert monitor.memory_level(420) == "warning"
        assert monitor.memory_level(500) == "critical"

    def test_sample_respects_interval(self):
        now = [0.0]
        monitor = ResourceMonitor(process=self._process(128), clock=lambda: now[0], interval=2.0)
        assert monitor.sample() is not None
        now[0] = 1.0
        assert monitor.sample() is None
        now[0] = 2.5
        assert monitor.sample() is not None
        assert len(monitor.snapshots) == 2
        assert monitor.peak_memory() == pytest.approx(128.0)

    def test_rolling_window(self):
        monitor = ResourceMonitor(process=self._process(64), max_snapshots=3)
        for _ in range(5):
            monitor.snapshot()
        assert len(monitor.snapshots) == 3

    def test_check(self):
        monitor = ResourceMonitor(process=self._process(450))
        assert monitor.check() == "warning"

    def test_is_slow(self):
        assert ResourceMonitor.is_slow(15.5) is True
        assert ResourceMonitor.is_slow(3.0) is False
