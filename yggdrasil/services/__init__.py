"""서비스 패키지 — 비즈니스 로직 계층.

Service package — Business logic layer.
Services enforce permissions and business rules, call repositories for
DB operations and flush; routers own the commit.
"""
