"""Authentication dependencies for protected routes."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from billpay.config import settings
from billpay.dependencies.services import get_identity_service
from billpay.models.user import User
from billpay.services.auth import AuthFailure, IdentityService

security = HTTPBearer(auto_error=False)


def get_session_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    """Session token from the HTTP-only cookie, falling back to a Bearer header."""
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    if credentials:
        return credentials.credentials
    return None


def get_current_user(
    token: str | None = Depends(get_session_token),
    identity: IdentityService = Depends(get_identity_service),
) -> User:
    """
    Get current authenticated user from the session token.

    Missing, malformed, forged and expired tokens all get the same 401.

    Usage:
        @router.get("/protected")
        def protected_route(user: User = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    result = identity.resolve_session(token)
    if isinstance(result, AuthFailure):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return result