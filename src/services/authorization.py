"""Role-based gate for admin and super-admin operations."""

import logging

from src.models.enums import AccessLevel
from src.models.user import User
from src.services.credentials import CredentialStore
from src.services.exceptions import Forbidden, PrincipalNotFound, Unauthenticated

logger = logging.getLogger(__name__)

FORBIDDEN_DETAIL = {
    AccessLevel.ADMIN: "Admin access required",
    AccessLevel.SUPER_ADMIN: "Super admin access required",
}


class AuthorizationGate:
    """Checks a principal's current role against a required access level.

    The role is looked up on every call rather than read from the session
    token, so a demotion takes effect on the very next request.
    """

    def __init__(self, credentials: CredentialStore) -> None:
        self.credentials = credentials

    def authorize(self, principal_id: int | None, required: AccessLevel) -> User:
        if principal_id is None:
            raise Unauthenticated()

        user = self.credentials.find_by_id(principal_id)
        if user is None or user.is_deleted:
            raise PrincipalNotFound()

        if not required.admits(user.role):
            logger.warning(
                f"User {user.id} with role {user.role.value} denied {required.value} access"
            )
            raise Forbidden(FORBIDDEN_DETAIL[required])

        return user
