"""Authentication service for password hashing and JWT management."""

import hashlib
import logging
from datetime import UTC, datetime, timedelta

import bcrypt
import jwt

from billpay.config import settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"

# bcrypt only reads this many bytes of input and bcrypt>=5 refuses longer passwords
MAX_PASSWORD_BYTES = 72


class AuthService:
    """Service for authentication operations."""

    # Hash of a random password, computed once at the configured cost.
    # Used when the user doesn't exist to prevent email enumeration via timing attacks
    _dummy_hash: str | None = None

    @classmethod
    def get_dummy_hash(cls) -> str:
        """Get a dummy password hash for timing-consistent verification."""
        if cls._dummy_hash is None:
            cls._dummy_hash = cls.hash_password(hashlib.sha256(b"dummy").hexdigest())
        return cls._dummy_hash

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using bcrypt.

        Raises:
            ValueError: The password is longer than MAX_PASSWORD_BYTES in UTF-8.
        """
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
        salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    @staticmethod
    def verify_password(password: str, hashed: str) -> bool:
        """Verify a password against its hash."""
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError as e:
            logger.error(f"Password verification error: {e}")
            return False

    @staticmethod
    def hash_token(token: str) -> str:
        """Hash an opaque token using SHA-256 (store lookups never see the raw token)."""
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    @staticmethod
    def create_access_token(
        user_id: str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a JWT session token (15 minutes unless overridden)."""
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

        now = datetime.now(UTC)
        payload = {
            "sub": user_id,
            "exp": now + expires_delta,
            "iat": now,
            "type": ACCESS_TOKEN_TYPE,
        }
        return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    @staticmethod
    def decode_access_token(token: str) -> dict | None:
        """Decode and validate a JWT token. Never raises."""
        try:
            payload = jwt.decode(
                token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.debug(f"Invalid token: {e}")
            return None

        if payload.get("type") != ACCESS_TOKEN_TYPE:
            logger.debug("Invalid token type")
            return None
        return payload

    @classmethod
    def verify_session_token(cls, token: str) -> str | None:
        """Return the user ID a valid session token was issued for, else None.

        Malformed, forged and expired tokens are indistinguishable to the caller.
        """
        payload = cls.decode_access_token(token)
        if payload is None:
            return None
        return payload["sub"]
