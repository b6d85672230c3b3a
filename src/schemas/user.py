"""Profile schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.enums import UserRole
from src.schemas.auth import check_password_bytes


class ProfileResponse(BaseModel):
    """Full profile of the current user."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    phone: str | None
    role: UserRole
    avatar_url: str | None
    timezone: str
    locale: str
    preferences: dict[str, Any]
    is_verified: bool
    last_login_at: datetime | None
    created_at: datetime | None
    updated_at: datetime | None


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=32)
    timezone: str | None = Field(None, max_length=64)
    locale: str | None = Field(None, max_length=16)
    preferences: dict[str, Any] | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=6, max_length=128)

    @field_validator("new_password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return check_password_bytes(v)


class AvatarResponse(BaseModel):
    message: str
    avatar_url: str
