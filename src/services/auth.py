"""Authentication flows built on the credential, token and session services.

Each flow returns what the HTTP layer needs (users, single-use tokens to hand
to the email tasks, session token pairs) and records the audit event for the
state change it makes.
"""

import logging

from sqlalchemy.orm import Session

from src.models.enums import SessionTokenType, TokenKind, UserRole
from src.models.user import User
from src.services.audit_log import AuditAction, AuditLogService
from src.services.credentials import CredentialStore, verify_password
from src.services.exceptions import (
    AlreadyVerified,
    IncorrectPassword,
    InvalidSignature,
    UserNotFound,
)
from src.services.session_tokens import SessionPayload, SessionTokenIssuer, TokenPair
from src.services.tokens import TokenLifecycleManager

logger = logging.getLogger(__name__)


def payload_for(user: User) -> SessionPayload:
    """Session payload built from the user's current row."""
    return SessionPayload(user_id=user.id, email=user.email, role=user.role)


class AuthService:
    """Registration, login, verification, password reset and token refresh."""

    def __init__(
        self,
        db: Session,
        issuer: SessionTokenIssuer,
        credentials: CredentialStore | None = None,
        tokens: TokenLifecycleManager | None = None,
        audit: AuditLogService | None = None,
    ) -> None:
        self.db = db
        self.issuer = issuer
        self.credentials = credentials or CredentialStore(db)
        self.tokens = tokens or TokenLifecycleManager(db)
        self.audit = audit or AuditLogService(db)

    def register(
        self, email: str, password: str, name: str, role: UserRole | None = None
    ) -> tuple[User, str]:
        """Create an unverified user and issue its verification token."""
        user = self.credentials.create(email=email, password=password, name=name, role=role)
        token = self.tokens.issue(user.id, TokenKind.VERIFICATION)
        self.audit.log(
            action=AuditAction.USER_REGISTER,
            resource_type="user",
            resource_id=user.id,
            user_id=user.id,
            new_values={"email": user.email, "name": user.name, "role": user.role.value},
        )
        logger.info(f"Registered user {user.id}")
        return user, token

    def login(
        self, email: str, password: str, ip_address: str | None = None, user_agent: str | None = None
    ) -> tuple[User, TokenPair]:
        """Check credentials and issue a fresh session token pair."""
        user = self.credentials.authenticate(email, password)

        self.audit.log(
            action=AuditAction.USER_LOGIN,
            resource_type="user",
            resource_id=user.id,
            user_id=user.id,
            metadata={
                "user_agent": user_agent or "Unknown",
                "ip_address": ip_address or "Unknown",
                "login_method": "email_password",
            },
        )
        self.credentials.record_login(user.id, ip_address)

        logger.info(f"User {user.id} logged in")
        return user, self.issuer.issue_pair(payload_for(user))

    def verify_email(self, token: str) -> User:
        """Consume a verification token and mark its owner verified."""
        user = self.tokens.consume(token, TokenKind.VERIFICATION)
        self.audit.log(
            action=AuditAction.EMAIL_VERIFIED,
            resource_type="user",
            resource_id=user.id,
            user_id=user.id,
            old_values={"is_verified": False},
            new_values={"is_verified": True},
        )
        return user

    def resend_verification(self, email: str) -> tuple[User, str] | None:
        """Issue a replacement verification token.

        Returns None for unknown emails so the caller can answer identically
        whether or not the account exists.
        """
        user = self.credentials.find_by_email(email)
        if user is None:
            return None
        if user.is_verified:
            raise AlreadyVerified()
        return user, self.tokens.issue(user.id, TokenKind.VERIFICATION)

    def forgot_password(self, email: str) -> tuple[User, str] | None:
        """Issue a reset token, or None for unknown emails."""
        user = self.credentials.find_by_email(email)
        if user is None:
            return None
        return user, self.tokens.issue(user.id, TokenKind.RESET)

    def reset_password(self, token: str, new_password: str) -> User:
        """Set a new password using a reset token; the token is cleared with it."""
        user = self.tokens.consume(token, TokenKind.RESET)
        self.credentials.update_password(user.id, new_password)
        self.audit.log(
            action=AuditAction.PASSWORD_RESET,
            resource_type="user",
            resource_id=user.id,
            user_id=user.id,
            metadata={"method": "reset_token"},
        )
        return user

    def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        user = self.credentials.find_by_id(user_id)
        if user is None:
            raise UserNotFound()
        if not verify_password(current_password, user.password_hash):
            raise IncorrectPassword()

        self.credentials.update_password(user_id, new_password)
        self.audit.log(
            action=AuditAction.PASSWORD_CHANGE,
            resource_type="user",
            resource_id=user_id,
            user_id=user_id,
        )

    def refresh(self, refresh_token: str) -> TokenPair:
        """Exchange a refresh token for a new pair.

        The role in the presented token is ignored; the new pair carries the
        user's current role.
        """
        presented = self.issuer.verify(refresh_token, SessionTokenType.REFRESH)
        user = self.credentials.find_by_id(presented.user_id)
        if user is None or user.is_deleted:
            raise InvalidSignature("User not found")
        return self.issuer.issue_pair(payload_for(user))
