"""FastAPI dependencies for authentication, authorization and services."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from src.database import get_db
from src.models.enums import AccessLevel, SessionTokenType
from src.models.user import User
from src.services.admin import AdminService
from src.services.audit_log import AuditLogService
from src.services.auth import AuthService
from src.services.authorization import AuthorizationGate
from src.services.avatar import AvatarService
from src.services.credentials import CredentialStore
from src.services.exceptions import PrincipalNotFound, Unauthenticated
from src.services.session_tokens import Principal, SessionTokenIssuer

security = HTTPBearer(auto_error=False)


def get_session_token_issuer() -> SessionTokenIssuer:
    """Get the session token issuer configured from settings."""
    return SessionTokenIssuer.from_settings()


def get_credential_store(db: Annotated[Session, Depends(get_db)]) -> CredentialStore:
    return CredentialStore(db)


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    issuer: Annotated[SessionTokenIssuer, Depends(get_session_token_issuer)],
) -> AuthService:
    """Get auth service with dependencies."""
    return AuthService(db, issuer)


def get_audit_log_service(db: Annotated[Session, Depends(get_db)]) -> AuditLogService:
    return AuditLogService(db)


def get_admin_service(db: Annotated[Session, Depends(get_db)]) -> AdminService:
    return AdminService(db)


def get_avatar_service(db: Annotated[Session, Depends(get_db)]) -> AvatarService:
    return AvatarService(db)


def get_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    issuer: Annotated[SessionTokenIssuer, Depends(get_session_token_issuer)],
) -> Principal:
    """Verify the bearer access token and return the request principal."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthenticated()
    return issuer.verify(credentials.credentials, SessionTokenType.ACCESS)


def get_current_user(
    principal: Annotated[Principal, Depends(get_principal)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> User:
    """Get the current authenticated user, re-read from the database."""
    user = store.find_by_id(principal.user_id)
    if user is None or user.is_deleted:
        raise PrincipalNotFound()
    return user


def require_access(level: AccessLevel):
    """Build a dependency that admits principals whose current role passes ``level``."""

    def dependency(
        principal: Annotated[Principal, Depends(get_principal)],
        store: Annotated[CredentialStore, Depends(get_credential_store)],
    ) -> User:
        return AuthorizationGate(store).authorize(principal.user_id, level)

    return dependency


require_admin = require_access(AccessLevel.ADMIN)
require_super_admin = require_access(AccessLevel.SUPER_ADMIN)
