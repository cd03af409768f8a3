"""Signup, login and session resolution."""

import logging

from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError

from billpay.config import settings
from billpay.models import User
from billpay.services.email_service import EmailService, dispatch_email
from billpay.services.repositories import (
    AccountRepository,
    DuplicateError,
    RepositoryError,
    UserRepository,
)

from .auth_service import AuthService
from .results import AuthenticatedUser, AuthFailure
from .security_audit_service import SecurityAuditService, SecurityEventType

logger = logging.getLogger(__name__)


class IdentityService:
    """Account holder identity flows on top of a credential store.

    Signup is two explicit steps: create the identity, then provision the
    default wallet account. The second step only runs when an account
    repository is available (relational deployments) and its failure does
    not undo or fail the signup.
    """

    def __init__(
        self,
        users: UserRepository,
        accounts: AccountRepository | None = None,
        mailer: type[EmailService] = EmailService,
    ) -> None:
        self._users = users
        self._accounts = accounts
        self._mailer = mailer

    def signup(
        self,
        email: str,
        first_name: str,
        last_name: str,
        password: str,
        phone: str | None = None,
        referral_code: str | None = None,
        background_tasks: BackgroundTasks | None = None,
    ) -> AuthenticatedUser | AuthFailure:
        """Register a new user and issue a session token."""
        if self._users.find_by_email(email) is not None:
            return AuthFailure.EMAIL_CONFLICT

        password_hash = AuthService.hash_password(password)
        try:
            user = self._users.create(
                email=email,
                first_name=first_name,
                last_name=last_name,
                password_hash=password_hash,
                phone=phone,
                referral_code=referral_code,
            )
        except DuplicateError:
            return AuthFailure.EMAIL_CONFLICT

        self._provision_default_account(user)
        dispatch_email(background_tasks, self._mailer.send_welcome_email, user.email)

        logger.info(f"User signed up: {user.id}")
        return AuthenticatedUser(user=user, access_token=AuthService.create_access_token(user.id))

    def login(self, email: str, password: str) -> AuthenticatedUser | AuthFailure:
        """Check credentials and issue a session token.

        Unknown email, wrong password and a disabled account all produce
        INVALID_CREDENTIALS after a full bcrypt comparison.
        """
        user = self._users.find_by_email(email)
        if user is None:
            # Perform dummy password verification to prevent timing-based email enumeration
            AuthService.verify_password(password, AuthService.get_dummy_hash())
            return AuthFailure.INVALID_CREDENTIALS

        if not AuthService.verify_password(password, user.password_hash):
            return AuthFailure.INVALID_CREDENTIALS

        if not user.is_active:
            return AuthFailure.INVALID_CREDENTIALS

        return AuthenticatedUser(user=user, access_token=AuthService.create_access_token(user.id))

    def resolve_session(self, token: str | None) -> User | AuthFailure:
        """Map a presented session token to an active user."""
        if not token:
            return AuthFailure.UNAUTHENTICATED

        user_id = AuthService.verify_session_token(token)
        if user_id is None:
            return AuthFailure.UNAUTHENTICATED

        user = self._users.find_by_id(user_id)
        if user is None or not user.is_active:
            return AuthFailure.UNAUTHENTICATED
        return user

    def _provision_default_account(self, user: User) -> None:
        if self._accounts is None:
            return

        try:
            account = self._accounts.create(user.id, currency=settings.default_account_currency)
        except (SQLAlchemyError, RepositoryError):
            logger.exception(f"Default account provisioning failed for user {user.id}")
            SecurityAuditService.log_event(
                SecurityEventType.ACCOUNT_PROVISIONING_FAILED,
                user_id=user.id,
                details={"needs_reconciliation": True},
            )
            return

        logger.info(f"Provisioned default account {account.id} for user {user.id}")
