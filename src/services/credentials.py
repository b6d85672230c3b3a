"""Credential store: password hashing and the user record's identity fields."""

import logging
from typing import Any

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.config import MAX_PASSWORD_BYTES, get_settings
from src.models.enums import UserRole
from src.models.user import User
from src.services.exceptions import (
    DuplicateEmail,
    InvalidCredentials,
    PasswordTooLong,
    SelfDeleteForbidden,
    Unverified,
    UserNotFound,
)
from src.services.store import store_guard, utc_now

logger = logging.getLogger(__name__)

settings = get_settings()

# Password hashing context; refuses to hash passwords bcrypt would truncate
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
    bcrypt__truncate_error=True,
)

# Columns a profile or admin update may touch
PROFILE_FIELDS = frozenset({"name", "phone", "timezone", "locale", "preferences", "avatar_url"})
ADMIN_FIELDS = PROFILE_FIELDS | {"role"}
NULLABLE_FIELDS = frozenset({"phone", "avatar_url"})


def clean_changes(fields: dict[str, Any], allowed=PROFILE_FIELDS) -> dict[str, Any]:
    """Keep allowed keys, dropping nulls for columns that cannot be null."""
    return {
        key: value
        for key, value in fields.items()
        if key in allowed and (value is not None or key in NULLABLE_FIELDS)
    }


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash.

    Passwords longer than bcrypt can read never match, so text past the
    limit cannot be ignored.
    """
    if password_too_long(plain_password):
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    if password_too_long(password):
        raise PasswordTooLong()
    return pwd_context.hash(password)


class CredentialStore:
    """Owns user creation, password storage and soft deletion."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_email(self, email: str) -> User | None:
        """Get a user by exact email."""
        with store_guard(self.db, "find_by_email"):
            return self.db.query(User).filter(User.email == email).first()

    def find_by_id(self, user_id: int) -> User | None:
        """Get a user by id."""
        with store_guard(self.db, "find_by_id"):
            return self.db.query(User).filter(User.id == user_id).first()

    def create(
        self,
        email: str,
        password: str,
        name: str,
        role: UserRole | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> User:
        """Create a new, unverified user.

        Raises DuplicateEmail if the email is taken, either by the pre-check
        or by the unique constraint when two registrations race.
        """
        if self.find_by_email(email) is not None:
            raise DuplicateEmail()

        user = User(
            email=email,
            password_hash=get_password_hash(password),
            name=name,
            role=role or UserRole.USER,
            is_verified=False,
            meta=metadata or {},
        )

        with store_guard(self.db, "create_user"):
            self.db.add(user)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                raise DuplicateEmail() from e
            self.db.refresh(user)

        logger.info(f"Created user {user.id} with role {user.role.value}")
        return user

    def authenticate(self, email: str, password: str) -> User:
        """Check email and password, returning the verified user."""
        user = self.find_by_email(email)
        if user is None:
            # Spend the same hashing time as a real check
            pwd_context.dummy_verify()
            logger.info("Login failed: unknown email")
            raise InvalidCredentials()

        if not verify_password(password, user.password_hash):
            logger.info(f"Login failed: wrong password for user {user.id}")
            raise InvalidCredentials()

        if not user.is_verified:
            logger.info(f"Login refused: user {user.id} is not verified")
            raise Unverified()

        return user

    def update_password(self, user_id: int, new_password: str) -> None:
        """Store a new password hash and drop any outstanding reset token."""
        password_hash = get_password_hash(new_password)

        with store_guard(self.db, "update_password"):
            updated = (
                self.db.query(User)
                .filter(User.id == user_id)
                .update(
                    {
                        User.password_hash: password_hash,
                        User.reset_token: None,
                        User.reset_token_expires: None,
                    },
                    synchronize_session=False,
                )
            )
            self.db.commit()

        if not updated:
            raise UserNotFound()

        logger.info(f"Password updated for user {user_id}")

    def update_fields(self, user_id: int, fields: dict[str, Any], allowed=PROFILE_FIELDS) -> User:
        """Apply a partial update in one statement and return the fresh row."""
        values = clean_changes(fields, allowed)

        with store_guard(self.db, "update_fields"):
            if values:
                updated = (
                    self.db.query(User)
                    .filter(User.id == user_id)
                    .update(values, synchronize_session=False)
                )
                self.db.commit()
                if not updated:
                    raise UserNotFound()

        user = self.find_by_id(user_id)
        if user is None:
            raise UserNotFound()
        return user

    def record_login(self, user_id: int, ip_address: str | None) -> None:
        """Stamp the last successful login."""
        with store_guard(self.db, "record_login"):
            self.db.query(User).filter(User.id == user_id).update(
                {User.last_login_at: utc_now(), User.last_login_ip: ip_address},
                synchronize_session=False,
            )
            self.db.commit()

    def delete(self, user_id: int, actor_id: int) -> dict[str, Any]:
        """Soft-delete a user and return a snapshot of the removed identity.

        The row stays in place: the email is rewritten to a unique,
        non-routable value, the metadata is flagged as deleted and any
        outstanding verification or reset token is dropped.
        """
        if user_id == actor_id:
            raise SelfDeleteForbidden()

        user = self.find_by_id(user_id)
        if user is None or user.is_deleted:
            raise UserNotFound()

        snapshot = {"email": user.email, "name": user.name, "role": user.role.value}
        now = utc_now()
        meta = {**(user.meta or {}), "deleted": True, "deleted_at": now.isoformat()}

        with store_guard(self.db, "delete_user"):
            self.db.query(User).filter(User.id == user_id).update(
                {
                    User.email: f"deleted_{int(now.timestamp() * 1000)}_{user.email}",
                    User.meta: meta,
                    User.verification_token: None,
                    User.verification_token_expires: None,
                    User.reset_token: None,
                    User.reset_token_expires: None,
                },
                synchronize_session=False,
            )
            self.db.commit()

        logger.info(f"User {user_id} soft-deleted by {actor_id}")
        return snapshot
