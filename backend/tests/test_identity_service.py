"""Tests for signup, login and session resolution."""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from billpay.services.auth import AuthenticatedUser, AuthFailure, AuthService, IdentityService
from billpay.services.repositories import AccountRepository, SqlUserRepository


@pytest.fixture
def mailer():
    return Mock()


@pytest.fixture
def identity(db, mailer):
    return IdentityService(SqlUserRepository(db), AccountRepository(db), mailer=mailer)


def _signup(identity, email="ada@example.com", password="Passw0rd"):
    return identity.signup(
        email=email, first_name="Ada", last_name="Obi", password=password
    )


class TestSignup:
    """Tests for account holder registration."""

    def test_signup_returns_user_and_token(self, identity):
        result = _signup(identity)

        assert isinstance(result, AuthenticatedUser)
        assert result.user.email == "ada@example.com"
        assert AuthService.verify_session_token(result.access_token) == result.user.id

    def test_password_stored_as_bcrypt_hash(self, identity):
        result = _signup(identity)

        assert result.user.password_hash != "Passw0rd"
        assert AuthService.verify_password("Passw0rd", result.user.password_hash)

    def test_duplicate_email_any_case(self, identity):
        assert isinstance(_signup(identity, email="a@b.com"), AuthenticatedUser)

        assert _signup(identity, email="A@B.com") is AuthFailure.EMAIL_CONFLICT

    @pytest.mark.parametrize("password", ["Aa1" + "x" * 77, "Aa1" + "é" * 40])
    def test_over_long_password_creates_nothing(self, identity, db, password):
        with pytest.raises(ValueError, match="72 bytes"):
            _signup(identity, password=password)

        assert SqlUserRepository(db).find_by_email("ada@example.com") is None

    def test_password_of_exactly_72_bytes(self, identity):
        password = "Aa1" + "x" * 69
        _signup(identity, password=password)

        assert isinstance(identity.login("ada@example.com", password), AuthenticatedUser)
        assert identity.login("ada@example.com", password + "y") is AuthFailure.INVALID_CREDENTIALS

    def test_provisions_default_account(self, identity, db):
        result = _signup(identity)

        accounts = AccountRepository(db).find_by_user(result.user.id)
        assert len(accounts) == 1
        assert accounts[0].currency == "NGN"
        assert accounts[0].balance == Decimal("0")

    def test_provisioning_failure_does_not_fail_signup(self, db, mailer):
        accounts = Mock()
        accounts.create.side_effect = OperationalError("INSERT", {}, Exception("disk full"))
        identity = IdentityService(SqlUserRepository(db), accounts, mailer=mailer)

        result = _signup(identity)

        assert isinstance(result, AuthenticatedUser)
        assert SqlUserRepository(db).find_by_id(result.user.id) is not None

    def test_no_provisioning_without_account_store(self, db, mailer):
        identity = IdentityService(SqlUserRepository(db), None, mailer=mailer)

        result = _signup(identity)

        assert isinstance(result, AuthenticatedUser)
        assert AccountRepository(db).find_by_user(result.user.id) == []

    def test_sends_welcome_email(self, identity, mailer):
        _signup(identity)

        mailer.send_welcome_email.assert_called_once_with("ada@example.com")

    def test_welcome_email_failure_is_not_fatal(self, identity, mailer):
        mailer.send_welcome_email.return_value = False

        assert isinstance(_signup(identity), AuthenticatedUser)

    def test_welcome_email_queued_when_background_tasks_given(self, identity, mailer):
        background_tasks = Mock()

        identity.signup(
            email="ada@example.com",
            first_name="Ada",
            last_name="Obi",
            password="Passw0rd",
            background_tasks=background_tasks,
        )

        background_tasks.add_task.assert_called_once_with(
            mailer.send_welcome_email, "ada@example.com"
        )
        mailer.send_welcome_email.assert_not_called()


class TestLogin:
    """Tests for credential checks."""

    def test_login_success(self, identity):
        user = _signup(identity).user

        result = identity.login("ada@example.com", "Passw0rd")

        assert isinstance(result, AuthenticatedUser)
        assert result.user.id == user.id
        assert AuthService.verify_session_token(result.access_token) == user.id

    def test_login_email_case_insensitive(self, identity):
        _signup(identity)

        assert isinstance(identity.login("ADA@Example.com", "Passw0rd"), AuthenticatedUser)

    def test_wrong_password_and_unknown_email_indistinguishable(self, identity):
        _signup(identity)

        wrong_password = identity.login("ada@example.com", "Wrong1234")
        unknown_email = identity.login("nobody@example.com", "Passw0rd")

        assert wrong_password is AuthFailure.INVALID_CREDENTIALS
        assert unknown_email is AuthFailure.INVALID_CREDENTIALS

    def test_unknown_email_still_runs_bcrypt(self, identity, monkeypatch):
        verify = Mock(return_value=False)
        monkeypatch.setattr(AuthService, "verify_password", verify)

        identity.login("nobody@example.com", "Passw0rd")

        verify.assert_called_once_with("Passw0rd", AuthService.get_dummy_hash())

    def test_inactive_user_rejected(self, identity, db):
        user = _signup(identity).user
        user.is_active = False
        db.commit()

        assert identity.login("ada@example.com", "Passw0rd") is AuthFailure.INVALID_CREDENTIALS


class TestResolveSession:
    """Tests for mapping session tokens back to users."""

    def test_valid_token(self, identity):
        result = _signup(identity)

        assert identity.resolve_session(result.access_token).id == result.user.id

    @pytest.mark.parametrize("token", [None, "", "garbage"])
    def test_missing_or_malformed(self, identity, token):
        assert identity.resolve_session(token) is AuthFailure.UNAUTHENTICATED

    def test_expired_token(self, identity):
        user = _signup(identity).user
        token = AuthService.create_access_token(user.id, expires_delta=timedelta(seconds=-1))

        assert identity.resolve_session(token) is AuthFailure.UNAUTHENTICATED

    def test_token_for_deleted_user(self, identity):
        token = AuthService.create_access_token("00000000-0000-4000-8000-000000000000")

        assert identity.resolve_session(token) is AuthFailure.UNAUTHENTICATED

    def test_token_for_inactive_user(self, identity, db):
        result = _signup(identity)
        result.user.is_active = False
        db.commit()

        assert identity.resolve_session(result.access_token) is AuthFailure.UNAUTHENTICATED
