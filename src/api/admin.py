"""Admin console endpoints."""

import math
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import (
    get_admin_service,
    get_audit_log_service,
    require_admin,
    require_super_admin,
)
from src.models.enums import UserRole
from src.models.user import User
from src.schemas.admin import (
    AdminUserDetail,
    AdminUserSummary,
    AdminUserUpdate,
    AdminUserUpdateResponse,
    AuditLogListResponse,
    DashboardStatsResponse,
    Pagination,
    UserDetailResponse,
    UserListResponse,
)
from src.schemas.auth import MessageResponse
from src.services.admin import AdminService, UserListFilters
from src.services.audit_log import AuditLogFilters, AuditLogService

# Every admin route requires at least admin-level access
router = APIRouter(
    prefix="/api/v1/admin", tags=["admin"], dependencies=[Depends(require_admin)]
)


def _pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


@router.get("/users", response_model=UserListResponse)
def list_users(
    admin: Annotated[AdminService, Depends(get_admin_service)],
    role: UserRole | None = None,
    is_verified: bool | None = None,
    search: str | None = Query(default=None, max_length=255),
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
):
    """List users with filters, newest first."""
    filters = UserListFilters(
        role=role,
        is_verified=is_verified,
        search=search,
        start_date=start_date,
        end_date=end_date,
    )
    users, total = admin.list_users(filters, page=page, limit=limit)
    return UserListResponse(
        users=[AdminUserSummary.model_validate(user) for user in users],
        pagination=_pagination(page, limit, total),
    )


@router.get("/users/{user_id}", response_model=UserDetailResponse)
def get_user(
    user_id: int,
    admin: Annotated[AdminService, Depends(get_admin_service)],
):
    """Get a user with their recent activity."""
    user, recent_activity = admin.get_user(user_id)
    return UserDetailResponse(
        user=AdminUserDetail.model_validate(user), recent_activity=recent_activity
    )


@router.patch("/users/{user_id}", response_model=AdminUserUpdateResponse)
def update_user(
    user_id: int,
    user_data: AdminUserUpdate,
    current_admin: Annotated[User, Depends(require_admin)],
    admin: Annotated[AdminService, Depends(get_admin_service)],
):
    """Update a user's profile fields or role."""
    user = admin.update_user(
        user_id, user_data.model_dump(exclude_unset=True), admin_id=current_admin.id
    )
    return AdminUserUpdateResponse(
        message="User updated successfully", user=AdminUserSummary.model_validate(user)
    )


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    current_admin: Annotated[User, Depends(require_super_admin)],
    admin: Annotated[AdminService, Depends(get_admin_service)],
):
    """Soft-delete a user. Super admins only."""
    admin.delete_user(user_id, admin_id=current_admin.id)
    return MessageResponse(message="User deleted successfully")


@router.get("/audit-logs", response_model=AuditLogListResponse)
def get_audit_logs(
    audit: Annotated[AuditLogService, Depends(get_audit_log_service)],
    action: str | None = Query(default=None, max_length=100),
    resource_type: str | None = Query(default=None, max_length=50),
    user_id: int | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
):
    """Search the audit log."""
    filters = AuditLogFilters(
        action=action,
        resource_type=resource_type,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
    )
    logs, total = audit.search(filters, page=page, limit=limit)
    return AuditLogListResponse(logs=logs, pagination=_pagination(page, limit, total))


@router.get("/dashboard/stats", response_model=DashboardStatsResponse)
def get_dashboard_stats(
    admin: Annotated[AdminService, Depends(get_admin_service)],
):
    """Aggregate user and audit statistics."""
    return admin.dashboard_stats()
