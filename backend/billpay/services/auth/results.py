"""Typed outcomes of the authentication flows.

Business failures are returned to the caller, not raised; infrastructure
errors (database, Redis) still propagate as exceptions.
"""

from dataclasses import dataclass
from enum import StrEnum

from billpay.models import User


class AuthFailure(StrEnum):
    """Expected, caller-visible failures. Values are stable API error codes."""

    EMAIL_CONFLICT = "email_conflict"
    # Unknown email and wrong password are deliberately the same outcome
    INVALID_CREDENTIALS = "invalid_credentials"
    # Unknown, expired and already-used reset tokens are deliberately the same outcome
    INVALID_OR_EXPIRED = "invalid_or_expired"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class AuthenticatedUser:
    """Successful signup or login."""

    user: User
    access_token: str
