"""User model."""

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String

from src.database import Base
from src.models.enums import UserRole
from src.models.mixins import JSONType, TimestampMixin


class User(Base, TimestampMixin):
    """User account: identity, credentials, single-use tokens and profile."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Registration caps addresses at 255; the rest is room for the soft-delete prefix
    email = Column(String(320), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(
        Enum(
            UserRole,
            name="userrole",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=UserRole.USER,
        nullable=False,
        index=True,
    )

    # Email verification
    is_verified = Column(Boolean, default=False, nullable=False)
    verification_token = Column(String(128), nullable=True, index=True)
    verification_token_expires = Column(DateTime(timezone=True), nullable=True)

    # Password reset
    reset_token = Column(String(128), nullable=True, index=True)
    reset_token_expires = Column(DateTime(timezone=True), nullable=True)

    # Profile
    phone = Column(String(32), nullable=True)
    avatar_url = Column(String(512), nullable=True)
    timezone = Column(String(64), default="UTC", nullable=False)
    locale = Column(String(16), default="en-US", nullable=False)
    preferences = Column(JSONType, default=dict, nullable=False)

    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSONType, default=dict, nullable=False)

    last_login_at = Column(DateTime(timezone=True), nullable=True, index=True)
    last_login_ip = Column(String(64), nullable=True)

    @property
    def is_deleted(self) -> bool:
        """Check if the account has been soft-deleted."""
        return bool((self.meta or {}).get("deleted"))

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}>"
