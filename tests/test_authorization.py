"""Tests for the role-based authorization gate."""

import pytest

from src.models.enums import AccessLevel, UserRole
from src.services.authorization import AuthorizationGate
from src.services.credentials import CredentialStore
from src.services.exceptions import Forbidden, PrincipalNotFound, Unauthenticated


@pytest.fixture
def store(db):
    return CredentialStore(db)


@pytest.fixture
def gate(store):
    return AuthorizationGate(store)


def make_user(store, email, role):
    return store.create(email=email, password="secret1", name=email.split("@")[0], role=role)


@pytest.mark.parametrize(
    "role,level,allowed",
    [
        (UserRole.USER, AccessLevel.ADMIN, False),
        (UserRole.USER, AccessLevel.SUPER_ADMIN, False),
        (UserRole.MERCHANT, AccessLevel.ADMIN, True),
        (UserRole.MERCHANT, AccessLevel.SUPER_ADMIN, False),
        (UserRole.ADMIN, AccessLevel.ADMIN, True),
        (UserRole.ADMIN, AccessLevel.SUPER_ADMIN, True),
    ],
)
def test_access_matrix(role, level, allowed):
    assert level.admits(role) is allowed


class TestAuthorize:
    """Tests for AuthorizationGate.authorize."""

    def test_admin_passes_both_levels(self, gate, store):
        admin = make_user(store, "admin@x.com", UserRole.ADMIN)
        assert gate.authorize(admin.id, AccessLevel.ADMIN).id == admin.id
        assert gate.authorize(admin.id, AccessLevel.SUPER_ADMIN).id == admin.id

    def test_merchant_is_admin_but_not_super_admin(self, gate, store):
        merchant = make_user(store, "merchant@x.com", UserRole.MERCHANT)
        assert gate.authorize(merchant.id, AccessLevel.ADMIN).id == merchant.id

        with pytest.raises(Forbidden) as exc_info:
            gate.authorize(merchant.id, AccessLevel.SUPER_ADMIN)
        assert exc_info.value.detail == "Super admin access required"

    def test_plain_user_forbidden(self, gate, store):
        user = make_user(store, "user@x.com", UserRole.USER)
        with pytest.raises(Forbidden) as exc_info:
            gate.authorize(user.id, AccessLevel.ADMIN)
        assert exc_info.value.detail == "Admin access required"
        assert exc_info.value.status_code == 403

    def test_missing_principal(self, gate):
        with pytest.raises(Unauthenticated):
            gate.authorize(None, AccessLevel.ADMIN)

    def test_unknown_principal(self, gate):
        with pytest.raises(PrincipalNotFound):
            gate.authorize(999999, AccessLevel.ADMIN)

    def test_deleted_principal(self, gate, store):
        admin = make_user(store, "admin@x.com", UserRole.ADMIN)
        merchant = make_user(store, "merchant@x.com", UserRole.MERCHANT)
        store.delete(merchant.id, actor_id=admin.id)

        with pytest.raises(PrincipalNotFound):
            gate.authorize(merchant.id, AccessLevel.ADMIN)

    def test_role_change_takes_effect_immediately(self, gate, store):
        """The gate reads the current role, not a cached one."""
        admin = make_user(store, "admin@x.com", UserRole.ADMIN)
        gate.authorize(admin.id, AccessLevel.SUPER_ADMIN)

        store.update_fields(admin.id, {"role": UserRole.USER}, allowed={"role"})

        with pytest.raises(Forbidden):
            gate.authorize(admin.id, AccessLevel.ADMIN)

    def test_promotion_takes_effect_immediately(self, gate, store):
        user = make_user(store, "user@x.com", UserRole.USER)
        with pytest.raises(Forbidden):
            gate.authorize(user.id, AccessLevel.ADMIN)

        store.update_fields(user.id, {"role": UserRole.MERCHANT}, allowed={"role"})

        assert gate.authorize(user.id, AccessLevel.ADMIN).role == UserRole.MERCHANT
