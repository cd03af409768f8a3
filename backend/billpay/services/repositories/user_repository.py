"""User data access layer."""

import logging
from abc import ABC, abstractmethod

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from billpay.models import User

from .exceptions import DuplicateError, NotFoundError

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookups."""
    return email.strip().lower()


class UserRepository(ABC):
    """Credential store interface.

    Naming conventions:
    - find_* : Query that may return None
    - get_* : Query that raises exception if missing

    Every write is durable once the method returns.
    """

    @abstractmethod
    def find_by_id(self, user_id: str) -> User | None:
        """Find user by primary key."""

    @abstractmethod
    def find_by_email(self, email: str) -> User | None:
        """Find user by email (case-insensitive)."""

    @abstractmethod
    def create(
        self,
        email: str,
        first_name: str,
        last_name: str,
        password_hash: str,
        phone: str | None = None,
        referral_code: str | None = None,
    ) -> User:
        """Insert a new user.

        Raises:
            DuplicateError: A user with the same email (any case) exists.
        """

    @abstractmethod
    def update_password(self, user_id: str, password_hash: str) -> None:
        """Replace the stored password hash.

        Raises:
            NotFoundError: No user with this ID.
        """


class SqlUserRepository(UserRepository):
    """User data access backed by the relational database."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_id(self, user_id: str) -> User | None:
        return self._db.query(User).filter(User.id == user_id).first()

    def find_by_email(self, email: str) -> User | None:
        return (
            self._db.query(User)
            .filter(func.lower(User.email) == normalize_email(email))
            .first()
        )

    def create(
        self,
        email: str,
        first_name: str,
        last_name: str,
        password_hash: str,
        phone: str | None = None,
        referral_code: str | None = None,
    ) -> User:
        email = normalize_email(email)
        if self.find_by_email(email) is not None:
            raise DuplicateError("User", "email", email)

        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            password_hash=password_hash,
            phone=phone,
            referral_code=referral_code,
        )
        self._db.add(user)
        try:
            self._db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent signup for the same email
            self._db.rollback()
            raise DuplicateError("User", "email", email) from e
        self._db.refresh(user)
        return user

    def update_password(self, user_id: str, password_hash: str) -> None:
        user = self.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        user.password_hash = password_hash
        try:
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
