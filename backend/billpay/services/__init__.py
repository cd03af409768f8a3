"""Services layer - business logic and external integrations.

This module is organized into domain-based subpackages:
- auth/: Authentication, session tokens and password resets
- repositories/: Data access layer

Common imports for convenience:
    from billpay.services import SqlUserRepository, AccountRepository
"""

# Re-export commonly used components for convenience
from billpay.services.repositories import (
    AccountRepository,
    DuplicateError,
    NotFoundError,
    RedisUserRepository,
    RepositoryError,
    SqlUserRepository,
    UserRepository,
)

__all__ = [
    # Repositories
    "AccountRepository",
    "DuplicateError",
    "NotFoundError",
    "RedisUserRepository",
    "RepositoryError",
    "SqlUserRepository",
    "UserRepository",
]
