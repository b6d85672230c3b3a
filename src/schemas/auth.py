"""Authentication schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from src.config import MAX_PASSWORD_BYTES
from src.models.enums import UserRole


def check_password_bytes(value: str) -> str:
    """Reject passwords longer than bcrypt can hash without truncating."""
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class UserRegister(BaseModel):
    """User registration request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return check_password_bytes(v)


class UserLogin(BaseModel):
    """User login request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class EmailRequest(BaseModel):
    """Request carrying only an email (resend verification, forgot password)."""

    email: EmailStr = Field(..., max_length=255)


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=6, max_length=128)

    @field_validator("new_password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return check_password_bytes(v)


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class TokenPairResponse(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"  # noqa: S105


class UserResponse(BaseModel):
    """User information response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: UserRole
    is_verified: bool
    created_at: datetime | None = None


class RegisterResponse(BaseModel):
    message: str
    user: UserResponse


class AuthResponse(BaseModel):
    """Login response with tokens and user info."""

    message: str = "Login successful"
    user: UserResponse
    tokens: TokenPairResponse


class VerifyEmailResponse(BaseModel):
    message: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str
