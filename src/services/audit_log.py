"""Audit log service for recording and querying account events."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from src.models.audit_log import AuditLog
from src.models.user import User
from src.services.store import store_guard

logger = logging.getLogger(__name__)


class AuditAction:
    """Action names recorded in the audit log."""

    USER_REGISTER = "user_register"
    USER_LOGIN = "user_login"
    EMAIL_VERIFIED = "email_verified"
    PASSWORD_RESET = "password_reset"
    PASSWORD_CHANGE = "password_change"
    PROFILE_UPDATE = "profile_update"
    AVATAR_UPLOAD = "avatar_upload"
    AVATAR_DELETE = "avatar_delete"
    ADMIN_USER_UPDATE = "admin_user_update"
    ADMIN_USER_DELETE = "admin_user_delete"


@dataclass
class AuditLogFilters:
    action: str | None = None
    resource_type: str | None = None
    user_id: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


def apply_audit_filters(query: Query, filters: AuditLogFilters) -> Query:
    """Apply the shared audit-log filters to a query."""
    if filters.action:
        query = query.filter(AuditLog.action.ilike(f"%{filters.action}%"))
    if filters.resource_type:
        query = query.filter(AuditLog.resource_type == filters.resource_type)
    if filters.user_id is not None:
        query = query.filter(AuditLog.user_id == filters.user_id)
    if filters.start_date:
        query = query.filter(AuditLog.created_at >= filters.start_date)
    if filters.end_date:
        query = query.filter(AuditLog.created_at <= filters.end_date)
    return query


def serialize_log(log: AuditLog, user_email: str | None = None, user_name: str | None = None):
    return {
        "id": log.id,
        "action": log.action,
        "resource_type": log.resource_type,
        "resource_id": log.resource_id,
        "user_id": log.user_id,
        "user_email": user_email,
        "user_name": user_name,
        "old_values": log.old_values,
        "new_values": log.new_values,
        "metadata": log.meta or {},
        "created_at": log.created_at,
    }


class AuditLogService:
    """Writes audit events and answers admin queries over them."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def log(
        self,
        action: str,
        resource_type: str,
        user_id: int,
        resource_id: str | int | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLog:
        """Record an event performed by ``user_id``."""
        entry = AuditLog(
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            user_id=user_id,
            old_values=old_values,
            new_values=new_values,
            meta=metadata or {},
        )
        with store_guard(self.db, "audit_log"):
            self.db.add(entry)
            self.db.commit()
            self.db.refresh(entry)

        logger.debug(f"Audit {action} on {resource_type}:{resource_id} by user {user_id}")
        return entry

    def get_logs_for_user(self, user_id: int, limit: int = 50, offset: int = 0) -> list[dict]:
        """Get the most recent events performed by a user."""
        with store_guard(self.db, "audit_logs_for_user"):
            logs = (
                self.db.query(AuditLog)
                .filter(AuditLog.user_id == user_id)
                .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
                .limit(limit)
                .offset(offset)
                .all()
            )
        return [serialize_log(log) for log in logs]

    def search(self, filters: AuditLogFilters, page: int = 1, limit: int = 50) -> tuple[list, int]:
        """Filtered, paginated events joined with the actor's email and name.

        Returns (rows, total).
        """
        with store_guard(self.db, "audit_log_search"):
            rows = (
                apply_audit_filters(
                    self.db.query(AuditLog, User.email, User.name).outerjoin(
                        User, AuditLog.user_id == User.id
                    ),
                    filters,
                )
                .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
                .limit(limit)
                .offset((page - 1) * limit)
                .all()
            )
            total = apply_audit_filters(self.db.query(func.count(AuditLog.id)), filters).scalar()

        return [serialize_log(log, email, name) for log, email, name in rows], total or 0

    def get_stats(self) -> dict[str, Any]:
        """Totals, per-action counts and the ten most recent events."""
        with store_guard(self.db, "audit_log_stats"):
            total_logs = self.db.query(func.count(AuditLog.id)).scalar() or 0

            count = func.count(AuditLog.id).label("count")
            actions_count = (
                self.db.query(AuditLog.action, count)
                .group_by(AuditLog.action)
                .order_by(count.desc())
                .all()
            )

            recent = (
                self.db.query(AuditLog, User.email, User.name)
                .join(User, AuditLog.user_id == User.id)
                .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
                .limit(10)
                .all()
            )

        return {
            "total_logs": total_logs,
            "actions_count": [{"action": action, "count": n} for action, n in actions_count],
            "recent_activity": [
                {
                    "action": log.action,
                    "resource_type": log.resource_type,
                    "user_id": log.user_id,
                    "user_email": email,
                    "user_name": name,
                    "created_at": log.created_at,
                }
                for log, email, name in recent
            ],
        }
