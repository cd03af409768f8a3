"""Repository layer - data access abstraction.

Repositories handle all store queries, providing a clean interface
for services. Services should use repositories for data access rather
than directly querying SQLAlchemy models or Redis keys.

The Repository pattern separates data access from business logic:
- Repositories: Pure data access (queries, creates, updates)
- Services: Business logic that uses repositories

Dependency direction: Services -> Repositories -> Models
"""

from .account_repository import AccountRepository
from .exceptions import DuplicateError, NotFoundError, RepositoryError
from .redis_user_repository import RedisUserRepository
from .user_repository import SqlUserRepository, UserRepository

__all__ = [
    "AccountRepository",
    "DuplicateError",
    "NotFoundError",
    "RedisUserRepository",
    "RepositoryError",
    "SqlUserRepository",
    "UserRepository",
]
