"""Authentication router."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response, status

from billpay.config import settings
from billpay.dependencies.auth import get_current_user
from billpay.dependencies.services import get_identity_service, get_password_reset_service
from billpay.models.user import User
from billpay.rate_limiter import limiter
from billpay.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    UserInfo,
)
from billpay.services.auth import (
    AuthenticatedUser,
    AuthFailure,
    IdentityService,
    PasswordResetService,
)
from billpay.services.auth.security_audit_service import SecurityAuditService, SecurityEventType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])

FORGOT_PASSWORD_MESSAGE = "If that email exists, we sent a password reset link."

_FAILURE_RESPONSES: dict[AuthFailure, tuple[int, str]] = {
    AuthFailure.EMAIL_CONFLICT: (status.HTTP_409_CONFLICT, "Email already registered"),
    AuthFailure.INVALID_CREDENTIALS: (status.HTTP_401_UNAUTHORIZED, "Invalid email or password"),
    AuthFailure.INVALID_OR_EXPIRED: (status.HTTP_400_BAD_REQUEST, "Invalid or expired reset token"),
    AuthFailure.UNAUTHENTICATED: (status.HTTP_401_UNAUTHORIZED, "Not authenticated"),
}


def _failure(failure: AuthFailure) -> HTTPException:
    """HTTP error for a business failure: stable code plus a generic message."""
    status_code, message = _FAILURE_RESPONSES[failure]
    return HTTPException(
        status_code=status_code, detail={"code": failure.value, "message": message}
    )


def _session_response(response: Response, result: AuthenticatedUser) -> dict:
    """Set the HTTP-only session cookie and build the response body."""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=result.access_token,
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
    )
    return {
        "access_token": result.access_token,
        "token_type": "bearer",
        "user": UserInfo.model_validate(result.user),
    }


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def signup(
    request: Request,
    response: Response,
    data: SignupRequest,
    background_tasks: BackgroundTasks,
    identity: IdentityService = Depends(get_identity_service),
) -> dict:
    """Create an account holder and start a session."""
    ip_address, user_agent = SecurityAuditService.get_request_info(request)

    result = identity.signup(
        email=data.email,
        first_name=data.first_name,
        last_name=data.last_name,
        password=data.password,
        phone=data.phone,
        referral_code=data.referral_code,
        background_tasks=background_tasks,
    )
    if isinstance(result, AuthFailure):
        SecurityAuditService.log_event(
            SecurityEventType.SIGNUP_REJECTED_DUPLICATE,
            ip_address=ip_address, user_agent=user_agent,
        )
        raise _failure(result)

    SecurityAuditService.log_event(
        SecurityEventType.SIGNUP, user_id=result.user.id,
        ip_address=ip_address, user_agent=user_agent,
    )
    return _session_response(response, result)


@router.post("/login", response_model=AuthResponse)
@limiter.limit("5/minute")
def login(
    request: Request,
    response: Response,
    data: LoginRequest,
    identity: IdentityService = Depends(get_identity_service),
) -> dict:
    """Login and get a session token."""
    ip_address, user_agent = SecurityAuditService.get_request_info(request)

    result = identity.login(data.email, data.password)
    if isinstance(result, AuthFailure):
        SecurityAuditService.log_event(
            SecurityEventType.LOGIN_FAILED,
            ip_address=ip_address, user_agent=user_agent,
        )
        raise _failure(result)

    SecurityAuditService.log_event(
        SecurityEventType.LOGIN_SUCCESS, user_id=result.user.id,
        ip_address=ip_address, user_agent=user_agent,
    )
    logger.info(f"User logged in: {result.user.id}")
    return _session_response(response, result)


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request, response: Response) -> dict:
    """Clear the session cookie.

    Session tokens are stateless; a copy of the token held elsewhere stays
    valid until it expires.
    """
    ip_address, user_agent = SecurityAuditService.get_request_info(request)
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
    )
    SecurityAuditService.log_event(
        SecurityEventType.LOGOUT, ip_address=ip_address, user_agent=user_agent
    )
    return {"message": "Successfully logged out"}


@router.get("/me", response_model=UserInfo)
def get_me(current_user: User = Depends(get_current_user)) -> User:
    """Get the current authenticated user's information."""
    return current_user


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit("3/hour")
def forgot_password(
    request: Request,
    data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    resets: PasswordResetService = Depends(get_password_reset_service),
) -> dict:
    """Request password reset email."""
    resets.request_reset(data.email, background_tasks=background_tasks)

    # Always return success (don't reveal if email exists)
    return {"message": FORGOT_PASSWORD_MESSAGE}


@router.post("/reset-password", response_model=MessageResponse)
@limiter.limit("5/minute")
def reset_password(
    request: Request,
    data: ResetPasswordRequest,
    background_tasks: BackgroundTasks,
    resets: PasswordResetService = Depends(get_password_reset_service),
) -> dict:
    """Reset password with token from email."""
    failure = resets.redeem(data.token, data.new_password, background_tasks=background_tasks)
    if failure is not None:
        raise _failure(failure)

    return {"message": "Password reset successfully. You can now log in with your new password."}
