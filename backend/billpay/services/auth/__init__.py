"""Authentication and authorization services.

Handles credentials, session tokens, password resets and security audit logging.
"""

from .auth_service import AuthService
from .identity_service import IdentityService
from .password_reset_service import PasswordResetService
from .results import AuthenticatedUser, AuthFailure
from .security_audit_service import SecurityAuditService

__all__ = [
    "AuthFailure",
    "AuthService",
    "AuthenticatedUser",
    "IdentityService",
    "PasswordResetService",
    "SecurityAuditService",
]
