"""테스트 서킷 브레이커 테스트 — 상태 전이, 복구 대기, 긴급 정리.

Circuit breaker tests — State transitions, recovery window and
emergency cleanup.
"""

from yggdrasil.testing.circuit_breaker import CLOSED, HALF_OPEN, OPEN, TestCircuitBreaker


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _breaker(**kwargs):
    clock = FakeClock()
    reasons: list[str] = []
    return TestCircuitBreaker(cleanup=reasons.append, clock=clock, **kwargs), clock, reasons


def _fail(breaker: TestCircuitBreaker, name: str = "t") -> None:
    breaker.before_test(name)
    breaker.after_test(name, passed=False, duration=1.0)


class TestTransitions:
    """상태 전이 테스트."""

    def test_single_failure_stays_closed(self):
        breaker, _, reasons = _breaker()
        _fail(breaker)
        assert breaker.state == CLOSED
        assert breaker.consecutive_failures == 1
        assert reasons == []

    def test_opens_after_two_consecutive(self):
        breaker, _, reasons = _breaker()
        _fail(breaker, "a")
        _fail(breaker, "b")
        assert breaker.state == OPEN
        assert breaker.is_open
        assert reasons == ["circuit-open"]

    def test_pass_resets_counter(self):
        breaker, _, _ = _breaker()
        _fail(breaker)
        breaker.before_test("ok")
        breaker.after_test("ok", passed=True)
        _fail(breaker)
        assert breaker.state == CLOSED
        assert breaker.consecutive_failures == 1

    def test_open_skips_within_window(self):
        breaker, clock, _ = _breaker()
        _fail(breaker)
        _fail(breaker)
        clock.advance(10)
        assert breaker.before_test("skipped") is False

    def test_half_open_then_closed(self):
        breaker, clock, _ = _breaker()
        _fail(breaker)
        _fail(breaker)
        clock.advance(31)
        assert breaker.before_test("trial") is True
        assert breaker.state == HALF_OPEN
        breaker.after_test("trial", passed=True)
        assert breaker.state == CLOSED
        assert breaker.consecutive_failures == 0

    def test_half_open_failure_reopens(self):
        breaker, clock, reasons = _breaker(max_consecutive_failures=3)
        for _ in range(3):
            _fail(breaker)
        clock.advance(31)
        breaker.before_test("trial")
        breaker.after_test("trial", passed=False)
        assert breaker.state == OPEN
        assert reasons.count("circuit-open") == 2

    def test_force_close(self):
        breaker, _, _ = _breaker()
        _fail(breaker)
        _fail(breaker)
        breaker.force_close()
        assert breaker.state == CLOSED
        assert breaker.before_test("next") is True


class TestEmergency:
    """누적 실패 긴급 정리 테스트."""

    def test_failure_threshold(self):
        breaker, _, reasons = _breaker(max_consecutive_failures=10)
        for i in range(5):
            _fail(breaker, f"t{i}")
        assert "failure-threshold" in reasons
        assert breaker.total_failures == 0

    def test_status(self):
        breaker, _, _ = _breaker()
        breaker.before_test("a")
        breaker.after_test("a", passed=True)
        _fail(breaker, "b")
        status = breaker.status()
        assert status == {
            "state": CLOSED,
            "isOpen": False,
            "consecutiveFailures": 1,
            "totalFailures": 1,
            "totalTests": 2,
            "failureRate": 50.0,
        }

    def test_status_without_tests(self):
        breaker, _, _ = _breaker()
        assert breaker.status()["failureRate"] == 0.0

    def test_no_cleanup_callback(self):
        breaker = TestCircuitBreaker()
        _fail(breaker)
        _fail(breaker)
        assert breaker.state == OPEN
