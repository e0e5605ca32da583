"""비밀번호 해싱, 검증 및 재설정 토큰 유틸리티 모듈.

Password hashing, verification and reset-token utility module.
Uses bcrypt directly for password storage.
"""

import secrets

import bcrypt

# 최소 비밀번호 길이 — Minimum accepted password length
MIN_PASSWORD_LENGTH: int = 8


def hash_password(password: str) -> str:
    """평문 비밀번호를 bcrypt 해시로 변환합니다.

    Hash a plain text password using bcrypt with a random salt.

    Args:
        password: 평문 비밀번호 (Plain text password to hash)

    Returns:
        str: bcrypt 해시 문자열 (Bcrypt hash string, ~60 chars)
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """평문 비밀번호와 bcrypt 해시를 비교 검증합니다.

    Verify a plain text password against a bcrypt hash.

    Returns:
        bool: 일치하면 True (True if password matches hash)
    """
    return bcrypt.checkpw(
        plain_password.encode("utf-8"), hashed_password.encode("utf-8")
    )


def generate_reset_token() -> str:
    """URL 안전한 비밀번호 재설정 토큰 생성 (URL-safe one-time reset token)."""
    return secrets.token_urlsafe(32)
