"""API 라우터 패키지 (FastAPI routers, one module per resource)."""
