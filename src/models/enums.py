"""Enums for model fields."""

from enum import Enum


class UserRole(str, Enum):
    """Roles a user account can hold."""

    USER = "user"
    ADMIN = "admin"
    MERCHANT = "merchant"


class AccessLevel(str, Enum):
    """Privilege levels checked by the authorization gate."""

    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    def admits(self, role: UserRole) -> bool:
        """Check if a role passes this level."""
        if self == AccessLevel.SUPER_ADMIN:
            return role == UserRole.ADMIN
        return role in (UserRole.ADMIN, UserRole.MERCHANT)


class TokenKind(str, Enum):
    """Kinds of single-use tokens stored on the user row."""

    VERIFICATION = "verification"
    RESET = "reset"


class SessionTokenType(str, Enum):
    """Kinds of signed session tokens."""

    ACCESS = "access"
    REFRESH = "refresh"
