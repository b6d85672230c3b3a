"""Tests for verification and reset token lifecycles."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from src.models.enums import TokenKind
from src.services.credentials import CredentialStore
from src.services.exceptions import InvalidOrExpiredToken, UserNotFound
from src.services.store import utc_now
from src.services.tokens import TokenLifecycleManager, generate_token


@pytest.fixture
def user(db):
    return CredentialStore(db).create(email="t@x.com", password="secret1", name="T")


@pytest.fixture
def tokens(db):
    return TokenLifecycleManager(db)


def shifted_clock(delta: timedelta):
    return lambda: utc_now() + delta


def test_generate_token_is_hex_and_unique():
    first, second = generate_token(), generate_token()
    assert len(first) == 64
    int(first, 16)
    assert first != second


class TestVerificationToken:
    """Tests for email verification tokens."""

    def test_issue_stores_token_and_expiry(self, tokens, user, db):
        token = tokens.issue(user.id, TokenKind.VERIFICATION)

        db.refresh(user)
        assert user.verification_token == token
        assert user.verification_token_expires is not None

    def test_consume_marks_verified_and_clears_token(self, tokens, user):
        token = tokens.issue(user.id, TokenKind.VERIFICATION)

        verified = tokens.consume(token, TokenKind.VERIFICATION)

        assert verified.id == user.id
        assert verified.is_verified is True
        assert verified.verification_token is None
        assert verified.verification_token_expires is None

    def test_single_use(self, tokens, user):
        token = tokens.issue(user.id, TokenKind.VERIFICATION)
        tokens.consume(token, TokenKind.VERIFICATION)

        with pytest.raises(InvalidOrExpiredToken):
            tokens.consume(token, TokenKind.VERIFICATION)

    def test_reissue_invalidates_previous_token(self, tokens, user):
        old = tokens.issue(user.id, TokenKind.VERIFICATION)
        new = tokens.issue(user.id, TokenKind.VERIFICATION)
        assert old != new

        with pytest.raises(InvalidOrExpiredToken):
            tokens.consume(old, TokenKind.VERIFICATION)
        assert tokens.consume(new, TokenKind.VERIFICATION).is_verified

    def test_expired_token_rejected(self, db, user):
        issuer = TokenLifecycleManager(db)
        token = issuer.issue(user.id, TokenKind.VERIFICATION)

        later = TokenLifecycleManager(db, clock=shifted_clock(timedelta(hours=25)))
        with pytest.raises(InvalidOrExpiredToken):
            later.consume(token, TokenKind.VERIFICATION)

    def test_token_valid_just_before_expiry(self, db, user):
        token = TokenLifecycleManager(db).issue(user.id, TokenKind.VERIFICATION)

        almost = TokenLifecycleManager(db, clock=shifted_clock(timedelta(hours=23)))
        assert almost.consume(token, TokenKind.VERIFICATION).is_verified

    def test_custom_ttl(self, db, user):
        short = TokenLifecycleManager(db, verification_ttl=timedelta(minutes=5))
        token = short.issue(user.id, TokenKind.VERIFICATION)

        later = TokenLifecycleManager(db, clock=shifted_clock(timedelta(minutes=6)))
        with pytest.raises(InvalidOrExpiredToken):
            later.consume(token, TokenKind.VERIFICATION)

    @pytest.mark.parametrize("token", ["", "not-a-token", "0" * 64])
    def test_unknown_tokens_rejected(self, tokens, user, token):
        tokens.issue(user.id, TokenKind.VERIFICATION)
        with pytest.raises(InvalidOrExpiredToken):
            tokens.consume(token, TokenKind.VERIFICATION)

    def test_lost_race_is_rejected(self, tokens, user):
        """If another request clears the token after lookup, consume fails."""
        token = tokens.issue(user.id, TokenKind.VERIFICATION)
        holder = tokens.find_user(token, TokenKind.VERIFICATION)
        tokens.consume(token, TokenKind.VERIFICATION)

        with patch.object(TokenLifecycleManager, "find_user", return_value=holder):
            with pytest.raises(InvalidOrExpiredToken):
                tokens.consume(token, TokenKind.VERIFICATION)

    def test_kinds_do_not_mix(self, tokens, user):
        token = tokens.issue(user.id, TokenKind.VERIFICATION)
        with pytest.raises(InvalidOrExpiredToken):
            tokens.consume(token, TokenKind.RESET)

    def test_issue_for_unknown_user(self, tokens):
        with pytest.raises(UserNotFound):
            tokens.issue(999999, TokenKind.VERIFICATION)


class TestResetToken:
    """Tests for password reset tokens."""

    def test_consume_locates_owner_without_clearing(self, tokens, user, db):
        token = tokens.issue(user.id, TokenKind.RESET)

        owner = tokens.consume(token, TokenKind.RESET)

        assert owner.id == user.id
        db.refresh(owner)
        assert owner.reset_token == token
        assert owner.is_verified is False

    def test_password_update_ends_reset_token(self, tokens, user, db):
        token = tokens.issue(user.id, TokenKind.RESET)
        owner = tokens.consume(token, TokenKind.RESET)

        CredentialStore(db).update_password(owner.id, "brandnew1")

        with pytest.raises(InvalidOrExpiredToken):
            tokens.consume(token, TokenKind.RESET)

    def test_reset_token_expires_after_one_hour(self, db, user):
        token = TokenLifecycleManager(db).issue(user.id, TokenKind.RESET)

        later = TokenLifecycleManager(db, clock=shifted_clock(timedelta(minutes=61)))
        with pytest.raises(InvalidOrExpiredToken):
            later.consume(token, TokenKind.RESET)

    def test_reset_and_verification_tokens_coexist(self, tokens, user):
        verification = tokens.issue(user.id, TokenKind.VERIFICATION)
        reset = tokens.issue(user.id, TokenKind.RESET)

        assert tokens.consume(reset, TokenKind.RESET).id == user.id
        assert tokens.consume(verification, TokenKind.VERIFICATION).is_verified
