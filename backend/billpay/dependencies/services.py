"""Service wiring for routes.

Store handles are created once in the application lifespan and kept on
``app.state``; these dependencies hand them to per-request services.
Tests replace them through ``app.dependency_overrides``.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from billpay.config import settings
from billpay.database import get_db
from billpay.services.auth import IdentityService, PasswordResetService
from billpay.services.ephemeral_store import EphemeralStore
from billpay.services.repositories import (
    AccountRepository,
    RedisUserRepository,
    SqlUserRepository,
    UserRepository,
)


def get_user_repository(request: Request, db: Session = Depends(get_db)) -> UserRepository:
    """Credential store selected by CREDENTIAL_STORE."""
    if settings.credential_store == "redis":
        return RedisUserRepository(request.app.state.redis)
    return SqlUserRepository(db)


def get_account_repository(db: Session = Depends(get_db)) -> AccountRepository | None:
    """Account store; Redis-only deployments have none."""
    if settings.credential_store == "redis":
        return None
    return AccountRepository(db)


def get_ephemeral_store(request: Request) -> EphemeralStore:
    """Store holding password reset records."""
    return request.app.state.ephemeral_store


def get_identity_service(
    users: UserRepository = Depends(get_user_repository),
    accounts: AccountRepository | None = Depends(get_account_repository),
) -> IdentityService:
    return IdentityService(users, accounts)


def get_password_reset_service(
    users: UserRepository = Depends(get_user_repository),
    store: EphemeralStore = Depends(get_ephemeral_store),
) -> PasswordResetService:
    return PasswordResetService(users, store)
