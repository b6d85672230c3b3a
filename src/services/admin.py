"""Admin console: user management and dashboard statistics."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from src.models.enums import UserRole
from src.models.user import User
from src.services.audit_log import AuditAction, AuditLogService
from src.services.credentials import ADMIN_FIELDS, CredentialStore, clean_changes
from src.services.exceptions import UserNotFound
from src.services.store import store_guard, utc_now

logger = logging.getLogger(__name__)

RECENT_USER_WINDOW = timedelta(days=7)
AUDITED_USER_FIELDS = ("name", "phone", "role", "timezone", "locale", "preferences")


@dataclass
class UserListFilters:
    role: UserRole | None = None
    is_verified: bool | None = None
    search: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


def _snapshot(user: User) -> dict[str, Any]:
    values = {field: getattr(user, field) for field in AUDITED_USER_FIELDS}
    values["role"] = user.role.value
    return values


class AdminService:
    """Operations behind the admin routes."""

    def __init__(
        self,
        db: Session,
        credentials: CredentialStore | None = None,
        audit: AuditLogService | None = None,
    ) -> None:
        self.db = db
        self.credentials = credentials or CredentialStore(db)
        self.audit = audit or AuditLogService(db)

    def _filtered_users(self, query: Query, filters: UserListFilters) -> Query:
        if filters.role is not None:
            query = query.filter(User.role == filters.role)
        if filters.is_verified is not None:
            query = query.filter(User.is_verified.is_(filters.is_verified))
        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.filter(or_(User.email.ilike(pattern), User.name.ilike(pattern)))
        if filters.start_date:
            query = query.filter(User.created_at >= filters.start_date)
        if filters.end_date:
            query = query.filter(User.created_at <= filters.end_date)
        return query

    def list_users(
        self, filters: UserListFilters, page: int = 1, limit: int = 20
    ) -> tuple[list[User], int]:
        """Filtered users, newest first. Returns (users, total)."""
        with store_guard(self.db, "list_users"):
            total = self._filtered_users(self.db.query(func.count(User.id)), filters).scalar()
            users = (
                self._filtered_users(self.db.query(User), filters)
                .order_by(User.created_at.desc(), User.id.desc())
                .limit(limit)
                .offset((page - 1) * limit)
                .all()
            )
        return users, total or 0

    def get_user(self, user_id: int) -> tuple[User, list[dict]]:
        """A user together with their ten most recent audit events."""
        user = self.credentials.find_by_id(user_id)
        if user is None:
            raise UserNotFound()
        return user, self.audit.get_logs_for_user(user_id, limit=10)

    def update_user(self, user_id: int, changes: dict[str, Any], admin_id: int) -> User:
        """Apply an admin edit (including role changes) and audit before/after."""
        current = self.credentials.find_by_id(user_id)
        if current is None:
            raise UserNotFound()
        before = _snapshot(current)

        updated = self.credentials.update_fields(user_id, changes, allowed=ADMIN_FIELDS)

        new_values = clean_changes(changes, ADMIN_FIELDS)
        if "role" in new_values:
            new_values["role"] = UserRole(new_values["role"]).value
            if new_values["role"] != before["role"]:
                logger.info(
                    f"Admin {admin_id} changed role of user {user_id} "
                    f"from {before['role']} to {new_values['role']}"
                )

        self.audit.log(
            action=AuditAction.ADMIN_USER_UPDATE,
            resource_type="user",
            resource_id=user_id,
            user_id=admin_id,
            old_values=before,
            new_values=new_values,
            metadata={"updated_by_admin": admin_id},
        )
        return updated

    def delete_user(self, user_id: int, admin_id: int) -> None:
        """Soft-delete a user on behalf of a super admin."""
        snapshot = self.credentials.delete(user_id, actor_id=admin_id)
        self.audit.log(
            action=AuditAction.ADMIN_USER_DELETE,
            resource_type="user",
            resource_id=user_id,
            user_id=admin_id,
            old_values=snapshot,
            metadata={"deleted_by_admin": admin_id, "soft_delete": True},
        )

    def dashboard_stats(self) -> dict[str, Any]:
        cutoff = utc_now() - RECENT_USER_WINDOW

        with store_guard(self.db, "dashboard_stats"):
            total = self.db.query(func.count(User.id)).scalar() or 0
            verified = (
                self.db.query(func.count(User.id)).filter(User.is_verified.is_(True)).scalar() or 0
            )
            recent = (
                self.db.query(func.count(User.id)).filter(User.created_at >= cutoff).scalar() or 0
            )
            roles = self.db.query(User.role, func.count(User.id)).group_by(User.role).all()

        return {
            "users": {"total": total, "verified": verified, "recent": recent},
            "audit_logs": self.audit.get_stats(),
            "role_distribution": [
                {"role": UserRole(role).value, "count": count} for role, count in roles
            ],
        }
