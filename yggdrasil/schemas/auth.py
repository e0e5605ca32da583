"""인증 관련 Pydantic 요청/응답 스키마 정의.

Authentication Pydantic request/response schema definitions.
"""

from pydantic import Field, field_validator

from yggdrasil.schemas.common import CamelModel
from yggdrasil.schemas.user import RoleName, UserResponse, normalize_email


class RegisterRequest(CamelModel):
    """회원가입 요청 스키마.

    Registration request. Public registration creates students or
    teachers; admin and staff accounts need an authenticated admin.
    """

    email: str
    password: str = Field(min_length=8, max_length=128)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: RoleName = "student"

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)


class LoginRequest(CamelModel):
    """로그인 요청 스키마 (Login request)."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.strip().lower()


class RefreshRequest(CamelModel):
    """토큰 갱신/로그아웃 요청 스키마 (Refresh or logout request)."""

    refresh_token: str = Field(min_length=1)


class TokenPair(CamelModel):
    """토큰 쌍 (Access + refresh token pair)."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # 액세스 토큰 수명(초) — Access token lifetime in seconds


class AuthResponse(CamelModel):
    """로그인/회원가입 응답 (User plus token pair)."""

    user: UserResponse
    tokens: TokenPair


class RegistrationStatus(CamelModel):
    enabled: bool


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=128)


class ForgotPasswordRequest(CamelModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)


class ResetPasswordRequest(CamelModel):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=128)
