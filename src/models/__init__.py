"""SQLAlchemy models."""

from src.models.audit_log import AuditLog
from src.models.user import User

__all__ = [
    "User",
    "AuditLog",
]
