"""Audit log model."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import JSONType


class AuditLog(Base):
    """A recorded action performed by a user against a resource."""

    __tablename__ = "audit_logs"
    __table_args__ = (Index("ix_audit_logs_resource", "resource_type", "resource_id"),)

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(100), nullable=False, index=True)  # e.g. user_login
    resource_type = Column(String(50), nullable=False)  # e.g. user
    resource_id = Column(String(64), nullable=True)

    # Actor
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    old_values = Column(JSONType, nullable=True)
    new_values = Column(JSONType, nullable=True)
    meta = Column("metadata", JSONType, default=dict, nullable=False)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )

    # Relationships
    user = relationship("User", backref="audit_logs")
