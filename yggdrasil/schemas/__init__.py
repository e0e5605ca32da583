"""Pydantic 스키마 패키지 — 요청/응답 모델.

Pydantic schema package — Request and response models. Responses are
serialized with camelCase aliases.
"""
