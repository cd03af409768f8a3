"""Email service using SendGrid."""

import logging
from collections.abc import Callable
from urllib.parse import urlencode

from fastapi import BackgroundTasks
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from billpay.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending transactional emails via SendGrid.

    Every method is best effort: failures are logged and reported as False,
    never raised.
    """

    @staticmethod
    def _send_email(to_email: str, subject: str, html_content: str) -> bool:
        """Send email via SendGrid. Returns True if successful."""
        if not settings.sendgrid_api_key:
            logger.warning("SendGrid API key not configured, skipping email send")
            return False

        message = Mail(
            from_email=(settings.email_from_address, settings.email_from_name),
            to_emails=to_email,
            subject=subject,
            html_content=html_content,
        )

        try:
            sg = SendGridAPIClient(settings.sendgrid_api_key)
            response = sg.send(message)
            logger.info(f"Email sent to {to_email}, status: {response.status_code}")
            return response.status_code in (200, 201, 202)
        except Exception:
            logger.exception(f"Failed to send email to {to_email}")
            return False

    @staticmethod
    def password_reset_url(token: str) -> str:
        """Front-end link carrying a reset token."""
        return f"{settings.frontend_url}/auth/resetpassword?{urlencode({'token': token})}"

    @classmethod
    def send_password_reset_email(cls, email: str, token: str) -> bool:
        """Send password reset link."""
        reset_url = cls.password_reset_url(token)
        minutes = settings.password_reset_token_ttl_seconds // 60
        html = f"""
        <h2>Reset Your Password</h2>
        <p>Click the link below to reset your password:</p>
        <p><a href="{reset_url}">{reset_url}</a></p>
        <p>This link expires in {minutes} minutes and can be used once.</p>
        <p>If you didn't request this, you can ignore this email.</p>
        """
        return cls._send_email(email, "Reset Your Password - BillPay", html)

    @classmethod
    def send_welcome_email(cls, email: str) -> bool:
        """Send welcome email after signup."""
        login_url = f"{settings.frontend_url}/auth/login"
        html = f"""
        <h2>Welcome to BillPay!</h2>
        <p>Your account is ready. Pay bills and top up airtime in a few taps.</p>
        <p><a href="{login_url}">Log in to BillPay</a></p>
        """
        return cls._send_email(email, "Welcome to BillPay!", html)

    @classmethod
    def send_password_changed_notification(cls, email: str) -> bool:
        """Notify user their password was changed."""
        html = """
        <h2>Password Changed</h2>
        <p>Your password was successfully changed.</p>
        <p>If you didn't make this change, please contact support immediately.</p>
        """
        return cls._send_email(email, "Your Password Was Changed - BillPay", html)


def dispatch_email(
    background_tasks: BackgroundTasks | None, send: Callable[..., bool], *args
) -> None:
    """Queue an email after the response when background tasks are available, else send now."""
    if background_tasks is not None:
        background_tasks.add_task(send, *args)
    else:
        send(*args)
