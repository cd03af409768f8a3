"""User data access backed by Redis.

Layout:
- ``user:{id}``               JSON document with the user's fields
- ``user:by_email:{email}``   user id, keyed by the lower-cased email

The document is written first and the email index claimed after it with
``SET NX``, so two concurrent signups for the same address cannot both
succeed and a crash between the writes leaves at most an unreachable
document. An index entry whose document is gone counts as free.
"""

import json
import logging
from datetime import UTC, datetime
from uuid import uuid4

import redis

from billpay.models import User

from .exceptions import DuplicateError, NotFoundError
from .user_repository import UserRepository, normalize_email

logger = logging.getLogger(__name__)

USER_KEY = "user:{user_id}"
EMAIL_INDEX_KEY = "user:by_email:{email}"


def _serialize(user: User) -> str:
    return json.dumps(
        {
            "id": user.id,
            "email": user.email,
            "password_hash": user.password_hash,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "phone": user.phone,
            "referral_code": user.referral_code,
            "is_active": user.is_active,
            "created_at": user.created_at.isoformat(),
            "updated_at": user.updated_at.isoformat(),
        }
    )


def _deserialize(raw: str | None) -> User | None:
    if raw is None:
        return None
    data = json.loads(raw)
    data["created_at"] = datetime.fromisoformat(data["created_at"])
    data["updated_at"] = datetime.fromisoformat(data["updated_at"])
    # Transient instance: never attached to a SQLAlchemy session
    return User(**data)


class RedisUserRepository(UserRepository):
    """Centralized user data access for Redis-only deployments."""

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    def find_by_id(self, user_id: str) -> User | None:
        return _deserialize(self._redis.get(USER_KEY.format(user_id=user_id)))

    def find_by_email(self, email: str) -> User | None:
        user_id = self._redis.get(EMAIL_INDEX_KEY.format(email=normalize_email(email)))
        if user_id is None:
            return None
        return self.find_by_id(user_id)

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
        now = datetime.now(UTC)
        user = User(
            id=str(uuid4()),
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            referral_code=referral_code,
            is_active=True,
            created_at=now,
            updated_at=now,
        )

        user_key = USER_KEY.format(user_id=user.id)
        index_key = EMAIL_INDEX_KEY.format(email=email)
        self._redis.set(user_key, _serialize(user))
        try:
            claimed = self._redis.set(index_key, user.id, nx=True)
            if not claimed:
                claimed = self._claim_stale_index(index_key, user.id)
        except redis.RedisError:
            self._discard(user_key)
            raise
        if not claimed:
            self._discard(user_key)
            raise DuplicateError("User", "email", email)
        return user

    def update_password(self, user_id: str, password_hash: str) -> None:
        user = self.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        user.password_hash = password_hash
        user.updated_at = datetime.now(UTC)
        # XX: never resurrect a document removed in the meantime
        if not self._redis.set(USER_KEY.format(user_id=user_id), _serialize(user), xx=True):
            raise NotFoundError("User", user_id)

    def _claim_stale_index(self, index_key: str, user_id: str) -> bool:
        """Point an email index entry at user_id if its current owner's document is gone.

        WATCH makes the check-and-set atomic: a concurrent claim aborts this one.
        """
        with self._redis.pipeline() as pipe:
            try:
                pipe.watch(index_key)
                owner = pipe.get(index_key)
                if owner is not None and pipe.exists(USER_KEY.format(user_id=owner)):
                    return False
                pipe.multi()
                pipe.set(index_key, user_id)
                pipe.execute()
            except redis.WatchError:
                return False
        logger.warning(f"Reclaimed email index entry left by missing user {owner}")
        return True

    def _discard(self, user_key: str) -> None:
        try:
            self._redis.delete(user_key)
        except redis.RedisError:
            # Unreachable without the index entry; only costs space
            logger.warning(f"Could not remove orphaned user document {user_key}", exc_info=True)
