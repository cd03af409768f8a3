"""Service for logging security events."""

import logging

logger = logging.getLogger(__name__)


class SecurityEventType:
    """Constants for security event types."""

    SIGNUP = "signup"
    SIGNUP_REJECTED_DUPLICATE = "signup_rejected_duplicate"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"
    PASSWORD_RESET_REQUESTED = "password_reset_requested"
    PASSWORD_RESET_COMPLETED = "password_reset_completed"
    PASSWORD_RESET_REJECTED = "password_reset_rejected"
    ACCOUNT_PROVISIONING_FAILED = "account_provisioning_failed"


class SecurityAuditService:
    """Service for recording security audit events."""

    @staticmethod
    def log_event(
        event_type: str,
        user_id: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        details: dict | None = None,
    ) -> None:
        """Log a security event to the application audit logger."""
        logger.info(
            f"Security event: {event_type} | user_id={user_id} | ip={ip_address} "
            f"| user_agent={user_agent} | details={details or {}}"
        )

    @staticmethod
    def get_request_info(request) -> tuple[str | None, str | None]:
        """Extract IP address and user agent from a FastAPI request."""
        ip_address = None
        user_agent = None

        if request:
            # Get IP from X-Forwarded-For header (if behind proxy) or client host
            forwarded_for = request.headers.get("X-Forwarded-For")
            if forwarded_for:
                ip_address = forwarded_for.split(",")[0].strip()
            elif request.client:
                ip_address = request.client.host

            user_agent = request.headers.get("User-Agent", "")[:500]

        return ip_address, user_agent
