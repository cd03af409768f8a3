"""SQLAlchemy ORM models."""

from billpay.models.account import Account
from billpay.models.user import User

__all__ = [
    "Account",
    "User",
]
