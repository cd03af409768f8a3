"""Tests for the SendGrid email service."""

from unittest.mock import MagicMock, Mock, patch
from urllib.parse import parse_qs, urlparse

from fastapi import BackgroundTasks

from billpay.config import settings
from billpay.services.email_service import EmailService, dispatch_email


def test_send_skipped_without_api_key():
    with patch.object(settings, "sendgrid_api_key", ""):
        assert EmailService.send_welcome_email("ada@example.com") is False


@patch("billpay.services.email_service.SendGridAPIClient")
def test_send_success(mock_client_cls):
    mock_client_cls.return_value.send.return_value = MagicMock(status_code=202)

    with patch.object(settings, "sendgrid_api_key", "SG.test"):
        assert EmailService.send_password_reset_email("ada@example.com", "tok") is True

    mock_client_cls.assert_called_once_with("SG.test")
    mock_client_cls.return_value.send.assert_called_once()


@patch("billpay.services.email_service.SendGridAPIClient")
def test_send_failure_returns_false(mock_client_cls):
    mock_client_cls.return_value.send.side_effect = Exception("SendGrid down")

    with patch.object(settings, "sendgrid_api_key", "SG.test"):
        assert EmailService.send_password_changed_notification("ada@example.com") is False


@patch("billpay.services.email_service.SendGridAPIClient")
def test_unexpected_status_returns_false(mock_client_cls):
    mock_client_cls.return_value.send.return_value = MagicMock(status_code=400)

    with patch.object(settings, "sendgrid_api_key", "SG.test"):
        assert EmailService.send_welcome_email("ada@example.com") is False


def test_password_reset_url_carries_token():
    token = "abc-_123"

    url = EmailService.password_reset_url(token)

    parsed = urlparse(url)
    assert url.startswith(f"{settings.frontend_url}/auth/resetpassword?")
    assert parse_qs(parsed.query)["token"] == [token]


def test_dispatch_email_sends_inline_without_background_tasks():
    send = Mock(return_value=True)

    dispatch_email(None, send, "ada@example.com", "tok")

    send.assert_called_once_with("ada@example.com", "tok")


def test_dispatch_email_queues_with_background_tasks():
    send = Mock(return_value=True)
    background_tasks = BackgroundTasks()

    dispatch_email(background_tasks, send, "ada@example.com")

    send.assert_not_called()
    assert len(background_tasks.tasks) == 1
