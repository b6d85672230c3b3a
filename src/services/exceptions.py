"""Typed failures raised by the account services.

Every error carries the HTTP status it maps to and a client-safe detail
message. The API layer installs a single exception handler for
``AccountError`` (see ``src.main``), so route handlers let these propagate.
"""

from fastapi import status


class AccountError(Exception):
    """Base class for account-service failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "Request could not be completed"
    headers: dict[str, str] | None = None

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class DuplicateEmail(AccountError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Email already registered"


class InvalidCredentials(AccountError):
    """Wrong password or unknown email. The two are never distinguished."""

    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Invalid email or password"


class Unverified(AccountError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Please verify your email before logging in"


class InvalidOrExpiredToken(AccountError):
    """Single-use token not found or expired. The two are never distinguished."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid or expired token"


class SelfDeleteForbidden(AccountError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Cannot delete your own account"


class Unauthenticated(AccountError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Authentication required"
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidSignature(Unauthenticated):
    """Session token is malformed, forged, or of the wrong type."""

    detail = "Invalid authentication credentials"


class TokenExpired(Unauthenticated):
    detail = "Token has expired"


class PrincipalNotFound(AccountError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "User not found"


class UserNotFound(AccountError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "User not found"


class Forbidden(AccountError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Admin access required"


class IncorrectPassword(AccountError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Current password is incorrect"


class InvalidAvatar(AccountError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid avatar file"


class StoreUnavailable(AccountError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "Service temporarily unavailable"


class AlreadyVerified(AccountError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Email is already verified"


class PasswordTooLong(AccountError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Password must be at most 72 bytes"
