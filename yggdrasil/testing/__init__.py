"""엔드투엔드 테스트 라이프사이클 패키지.

End-to-end test lifecycle package. Keeps long suites that run against
live service processes stable: service process management with health
checks, a circuit breaker over test outcomes, process resource
monitoring and the per-test lifecycle orchestration.

Modules:
    service_manager: 서비스 프로세스 시작/중지/헬스 체크 (Service processes and health checks)
    circuit_breaker: 연쇄 실패 차단 (Cascading failure breaker)
    resource_monitor: psutil 기반 자원 모니터 (psutil resource monitor)
    lifecycle: 테스트 전후 처리 (Per-test lifecycle orchestration)
    plugin: pytest 플러그인 (pytest plugin, opt-in with --lifecycle)
"""
