"""Pydantic schemas for API requests and responses."""

from src.schemas.admin import (
    AdminUserUpdate,
    AuditLogListResponse,
    DashboardStatsResponse,
    UserDetailResponse,
    UserListResponse,
)
from src.schemas.auth import (
    AuthResponse,
    TokenPairResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)
from src.schemas.user import ChangePasswordRequest, ProfileResponse, ProfileUpdate

__all__ = [
    "UserRegister",
    "UserLogin",
    "UserResponse",
    "AuthResponse",
    "TokenPairResponse",
    "ProfileResponse",
    "ProfileUpdate",
    "ChangePasswordRequest",
    "AdminUserUpdate",
    "UserListResponse",
    "UserDetailResponse",
    "AuditLogListResponse",
    "DashboardStatsResponse",
]
