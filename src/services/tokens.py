"""Single-use verification and password-reset tokens.

Each user row holds at most one token of each kind, together with its
absolute expiry. Issuing a token overwrites the previous one. Consuming a
verification token is one conditional UPDATE that matches the token and an
unexpired timestamp and clears both in the same statement, so a token can be
consumed only once even under concurrent requests.
"""

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.enums import TokenKind
from src.models.user import User
from src.services.exceptions import InvalidOrExpiredToken, UserNotFound
from src.services.store import store_guard, utc_now

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def generate_token() -> str:
    """Generate an opaque random token (hex, 256 bits of entropy)."""
    return secrets.token_hex(TOKEN_BYTES)


class TokenLifecycleManager:
    """Issues and consumes single-use tokens stored inline on the user."""

    def __init__(
        self,
        db: Session,
        verification_ttl: timedelta | None = None,
        reset_ttl: timedelta | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        settings = get_settings()
        self.db = db
        self.clock = clock
        self.ttls = {
            TokenKind.VERIFICATION: verification_ttl
            or timedelta(hours=settings.verification_token_hours),
            TokenKind.RESET: reset_ttl or timedelta(hours=settings.reset_token_hours),
        }

    @staticmethod
    def _columns(kind: TokenKind):
        if kind == TokenKind.VERIFICATION:
            return User.verification_token, User.verification_token_expires
        return User.reset_token, User.reset_token_expires

    def issue(self, user_id: int, kind: TokenKind) -> str:
        """Issue a fresh token of the given kind, invalidating any prior one."""
        token = generate_token()
        token_column, expires_column = self._columns(kind)
        expires = self.clock() + self.ttls[kind]

        with store_guard(self.db, f"issue_{kind.value}_token"):
            updated = (
                self.db.query(User)
                .filter(User.id == user_id)
                .update({token_column: token, expires_column: expires}, synchronize_session=False)
            )
            self.db.commit()

        if not updated:
            raise UserNotFound()

        logger.info(f"Issued {kind.value} token for user {user_id}")
        return token

    def find_user(self, token: str, kind: TokenKind) -> User:
        """Locate the user holding an unexpired token of this kind."""
        token_column, expires_column = self._columns(kind)

        with store_guard(self.db, f"find_{kind.value}_token"):
            user = (
                self.db.query(User)
                .filter(token_column == token, expires_column > self.clock())
                .first()
            )

        if user is None:
            raise InvalidOrExpiredToken()
        return user

    def consume(self, token: str, kind: TokenKind) -> User:
        """Consume a token, returning its owner.

        Verification tokens are cleared atomically together with setting
        ``is_verified``. Reset tokens are only located here; the password
        update that follows clears them.
        """
        if not token:
            raise InvalidOrExpiredToken()

        user = self.find_user(token, kind)
        if kind == TokenKind.RESET:
            return user

        with store_guard(self.db, "consume_verification_token"):
            consumed = (
                self.db.query(User)
                .filter(
                    User.id == user.id,
                    User.verification_token == token,
                    User.verification_token_expires > self.clock(),
                )
                .update(
                    {
                        User.is_verified: True,
                        User.verification_token: None,
                        User.verification_token_expires: None,
                    },
                    synchronize_session=False,
                )
            )
            self.db.commit()

        if consumed != 1:
            # Another request consumed it between the lookup and the update
            logger.info(f"Verification token for user {user.id} already consumed")
            raise InvalidOrExpiredToken()

        self.db.refresh(user)
        logger.info(f"User {user.id} verified")
        return user
