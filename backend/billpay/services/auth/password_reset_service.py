"""Password reset flow: request, deliver, redeem.

A reset token is a random URL-safe secret mailed to the user. The store only
ever sees its SHA-256 digest, under ``password_reset:{digest}``, with a TTL
that the store enforces. Redeeming claims the record with an atomic
get-and-delete, so a token can change a password at most once even when
several requests race on it.
"""

import logging
import math
import secrets
from datetime import UTC, datetime, timedelta

import redis
from fastapi import BackgroundTasks
from pydantic import BaseModel, ValidationError

from billpay.config import settings
from billpay.services.email_service import EmailService, dispatch_email
from billpay.services.ephemeral_store import EphemeralStore
from billpay.services.repositories import NotFoundError, UserRepository

from .auth_service import AuthService
from .results import AuthFailure
from .security_audit_service import SecurityAuditService, SecurityEventType

logger = logging.getLogger(__name__)

RESET_KEY = "password_reset:{token_hash}"

# 32 bytes = 256 bits of entropy
RESET_TOKEN_BYTES = 32


class ResetTokenRecord(BaseModel):
    """What the ephemeral store holds for one outstanding reset token."""

    user_id: str
    used: bool = False
    created_at: datetime
    expires_at: datetime


def reset_key(token: str) -> str:
    """Store key for a raw reset token."""
    return RESET_KEY.format(token_hash=AuthService.hash_token(token))


class PasswordResetService:
    """Coordinates single-use, time-limited password resets."""

    def __init__(
        self,
        users: UserRepository,
        store: EphemeralStore,
        mailer: type[EmailService] = EmailService,
        ttl_seconds: int | None = None,
    ) -> None:
        self._users = users
        self._store = store
        self._mailer = mailer
        self._ttl_seconds = ttl_seconds or settings.password_reset_token_ttl_seconds

    def request_reset(self, email: str, background_tasks: BackgroundTasks | None = None) -> None:
        """Start a reset for the account with this email, if there is one.

        Returns the same (nothing) whether or not the email is registered.
        With background tasks, minting, storing and delivering the token all
        happen after the response, so a known email does no extra work
        before it. Store and delivery failures are only logged.
        """
        user = self._users.find_by_email(email)
        if user is None or not user.is_active:
            logger.info("Password reset requested for an unknown or inactive email")
            return

        if background_tasks is not None:
            background_tasks.add_task(self._issue_token, user.id, user.email)
        else:
            self._issue_token(user.id, user.email)

    def _issue_token(self, user_id: str, email: str) -> None:
        token = secrets.token_urlsafe(RESET_TOKEN_BYTES)
        now = datetime.now(UTC)
        record = ResetTokenRecord(
            user_id=user_id,
            created_at=now,
            expires_at=now + timedelta(seconds=self._ttl_seconds),
        )
        try:
            self._store.set(reset_key(token), record.model_dump_json(), self._ttl_seconds)
        except redis.RedisError:
            logger.exception(f"Could not store password reset token for user {user_id}")
            return

        SecurityAuditService.log_event(SecurityEventType.PASSWORD_RESET_REQUESTED, user_id=user_id)
        self._mailer.send_password_reset_email(email, token)

    def redeem(
        self,
        token: str,
        new_password: str,
        background_tasks: BackgroundTasks | None = None,
    ) -> AuthFailure | None:
        """Set a new password using a reset token.

        Returns None on success and INVALID_OR_EXPIRED for unknown, expired
        or already used tokens. If the password update itself fails the
        token is put back for its remaining lifetime and the error propagates.
        """
        # Hash first: the token is claimed only once the new hash is ready
        password_hash = AuthService.hash_password(new_password)

        key = reset_key(token)
        raw = self._store.pop(key)
        record = self._parse(raw)
        if record is None or record.used or record.expires_at <= datetime.now(UTC):
            SecurityAuditService.log_event(SecurityEventType.PASSWORD_RESET_REJECTED)
            return AuthFailure.INVALID_OR_EXPIRED

        try:
            self._users.update_password(record.user_id, password_hash)
        except NotFoundError:
            logger.warning(f"Reset token referenced missing user {record.user_id}")
            SecurityAuditService.log_event(
                SecurityEventType.PASSWORD_RESET_REJECTED, user_id=record.user_id
            )
            return AuthFailure.INVALID_OR_EXPIRED
        except Exception:
            self._restore(key, raw, record)
            raise

        SecurityAuditService.log_event(
            SecurityEventType.PASSWORD_RESET_COMPLETED, user_id=record.user_id
        )
        user = self._users.find_by_id(record.user_id)
        if user is not None:
            dispatch_email(
                background_tasks, self._mailer.send_password_changed_notification, user.email
            )
        return None

    @staticmethod
    def _parse(raw: str | None) -> ResetTokenRecord | None:
        if raw is None:
            return None
        try:
            return ResetTokenRecord.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding malformed password reset record")
            return None

    def _restore(self, key: str, raw: str, record: ResetTokenRecord) -> None:
        """Put a claimed token back so the user can retry, keeping its original expiry."""
        remaining = math.ceil((record.expires_at - datetime.now(UTC)).total_seconds())
        if remaining <= 0:
            return
        try:
            self._store.set(key, raw, remaining)
        except Exception:
            # The original failure is re-raised by the caller; the token now simply expires
            logger.exception("Could not restore password reset token after failed update")
