"""Account data access layer."""

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from billpay.models import Account

if TYPE_CHECKING:
    from collections.abc import Sequence


class AccountRepository:
    """Centralized account data access.

    Naming conventions:
    - find_* : Query that may return None or empty list
    - get_* : Query that raises exception if missing
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_user(self, user_id: str) -> "Sequence[Account]":
        """Find all accounts belonging to a user, oldest first."""
        return (
            self._db.query(Account)
            .filter(Account.user_id == user_id)
            .order_by(Account.created_at)
            .all()
        )

    def create(self, user_id: str, currency: str, balance: Decimal = Decimal("0")) -> Account:
        """Create and commit an account for a user."""
        account = Account(user_id=user_id, currency=currency, balance=balance)
        self._db.add(account)
        try:
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        self._db.refresh(account)
        return account
