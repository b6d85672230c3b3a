"""Access and refresh session tokens (JWT).

Tokens are stateless: there is no server-side revocation, so a token stays
valid until it expires. The embedded role is advisory; authorization always
re-reads the role from the database.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt

from src.config import Settings, get_settings
from src.models.enums import SessionTokenType, UserRole
from src.services.exceptions import InvalidSignature, TokenExpired
from src.services.store import utc_now


@dataclass(frozen=True)
class SessionPayload:
    """Identity carried inside a session token, and the request principal."""

    user_id: int
    email: str
    role: UserRole


# The authenticated request principal is exactly what the access token carries.
Principal = SessionPayload


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class SessionTokenIssuer:
    """Signs and verifies access/refresh tokens with two independent secrets."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._secrets = {
            SessionTokenType.ACCESS: access_secret,
            SessionTokenType.REFRESH: refresh_secret,
        }
        self._ttls = {
            SessionTokenType.ACCESS: access_ttl,
            SessionTokenType.REFRESH: refresh_ttl,
        }
        self.algorithm = algorithm
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SessionTokenIssuer":
        settings = settings or get_settings()
        return cls(
            access_secret=settings.jwt_secret,
            refresh_secret=settings.jwt_refresh_secret,
            algorithm=settings.jwt_algorithm,
            access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
        )

    def _issue(self, payload: SessionPayload, kind: SessionTokenType) -> str:
        issued_at = self.clock()
        claims = {
            "sub": str(payload.user_id),
            "email": payload.email,
            "role": UserRole(payload.role).value,
            "type": kind.value,
            "iat": issued_at,
            "exp": issued_at + self._ttls[kind],
        }
        return jwt.encode(claims, self._secrets[kind], algorithm=self.algorithm)

    def issue_access_token(self, payload: SessionPayload) -> str:
        """Create a short-lived access token."""
        return self._issue(payload, SessionTokenType.ACCESS)

    def issue_refresh_token(self, payload: SessionPayload) -> str:
        """Create a long-lived refresh token."""
        return self._issue(payload, SessionTokenType.REFRESH)

    def issue_pair(self, payload: SessionPayload) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(payload),
            refresh_token=self.issue_refresh_token(payload),
        )

    def verify(self, token: str, kind: SessionTokenType) -> SessionPayload:
        """Check signature, expiry and token type; return the embedded payload."""
        try:
            claims = jwt.decode(token, self._secrets[kind], algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpired() from e
        except JWTError as e:
            raise InvalidSignature() from e

        if claims.get("type") != kind.value:
            raise InvalidSignature()

        try:
            return SessionPayload(
                user_id=int(claims["sub"]),
                email=claims["email"],
                role=UserRole(claims["role"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidSignature() from e
