"""Admin console schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import UserRole


class AdminUserSummary(BaseModel):
    """Row in the admin user list."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: UserRole
    is_verified: bool
    avatar_url: str | None
    last_login_at: datetime | None
    created_at: datetime | None
    updated_at: datetime | None


class AdminUserDetail(AdminUserSummary):
    phone: str | None
    timezone: str
    locale: str
    preferences: dict[str, Any]
    last_login_ip: str | None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class UserListResponse(BaseModel):
    users: list[AdminUserSummary]
    pagination: Pagination


class AuditLogEntry(BaseModel):
    id: int
    action: str
    resource_type: str
    resource_id: str | None
    user_id: int
    user_email: str | None = None
    user_name: str | None = None
    old_values: dict[str, Any] | None
    new_values: dict[str, Any] | None
    metadata: dict[str, Any]
    created_at: datetime | None


class UserDetailResponse(BaseModel):
    user: AdminUserDetail
    recent_activity: list[AuditLogEntry]


class AdminUserUpdate(BaseModel):
    """Fields an admin may change on any account."""

    name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=32)
    role: UserRole | None = None
    timezone: str | None = Field(None, max_length=64)
    locale: str | None = Field(None, max_length=16)
    preferences: dict[str, Any] | None = None


class AdminUserUpdateResponse(BaseModel):
    message: str
    user: AdminUserSummary


class AuditLogListResponse(BaseModel):
    logs: list[AuditLogEntry]
    pagination: Pagination


class UserStats(BaseModel):
    total: int
    verified: int
    recent: int


class ActionCount(BaseModel):
    action: str
    count: int


class RecentActivity(BaseModel):
    action: str
    resource_type: str
    user_id: int
    user_email: str | None
    user_name: str | None
    created_at: datetime | None


class AuditStats(BaseModel):
    total_logs: int
    actions_count: list[ActionCount]
    recent_activity: list[RecentActivity]


class RoleCount(BaseModel):
    role: UserRole
    count: int


class DashboardStatsResponse(BaseModel):
    users: UserStats
    audit_logs: AuditStats
    role_distribution: list[RoleCount]
