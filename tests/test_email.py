"""Tests for outbound account email."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from src.config import Settings
from src.services.email import EmailDispatcher
from src.tasks.email import send_password_reset_email, send_verification_email


def smtp_settings(**overrides) -> Settings:
    values = {
        "smtp_host": "smtp.example.com",
        "smtp_port": 2525,
        "smtp_user": "mailer",
        "smtp_password": "hunter2",
        "frontend_url": "https://app.example.com/",
    }
    values.update(overrides)
    return Settings(**values)


class TestEmailDispatcher:
    """Tests for building and sending account emails."""

    def test_links(self):
        dispatcher = EmailDispatcher(smtp_settings())
        assert dispatcher.verification_url("abc") == "https://app.example.com/verify-email?token=abc"
        assert dispatcher.reset_url("abc") == "https://app.example.com/reset-password?token=abc"

    def test_unconfigured_smtp_does_not_send(self):
        dispatcher = EmailDispatcher(Settings(smtp_host=None))
        assert dispatcher.is_configured is False

        with patch("src.services.email.smtplib.SMTP") as smtp:
            assert dispatcher.send_verification_email("u@x.com", "U", "tok") is False
        smtp.assert_not_called()

    def test_sends_verification_email(self):
        dispatcher = EmailDispatcher(smtp_settings())

        with patch("src.services.email.smtplib.SMTP") as smtp:
            server = smtp.return_value.__enter__.return_value
            assert dispatcher.send_verification_email("u@x.com", "U <b>", "tok123") is True

        smtp.assert_called_once_with("smtp.example.com", 2525)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "hunter2")

        message = server.send_message.call_args.args[0]
        assert message["To"] == "u@x.com"
        assert message["Subject"] == "Verify Your Email - AccountForge"
        html = message.get_body(preferencelist=("html",)).get_content()
        assert "https://app.example.com/verify-email?token=tok123" in html
        assert "U &lt;b&gt;" in html
        assert "24 hours" in html

    def test_sends_reset_email_without_tls_or_login(self):
        dispatcher = EmailDispatcher(
            smtp_settings(smtp_use_tls=False, smtp_user=None, smtp_password=None)
        )

        with patch("src.services.email.smtplib.SMTP") as smtp:
            server = smtp.return_value.__enter__.return_value
            assert dispatcher.send_password_reset_email("u@x.com", "U", "tok") is True

        server.starttls.assert_not_called()
        server.login.assert_not_called()
        message = server.send_message.call_args.args[0]
        assert message["Subject"] == "Reset Your Password - AccountForge"
        assert "1 hour" in message.get_body(preferencelist=("html",)).get_content()


class TestEmailTasks:
    """Tests for the Celery email tasks."""

    def test_verification_task_uses_dispatcher(self):
        dispatcher = MagicMock()
        dispatcher.send_verification_email.return_value = True

        with patch("src.tasks.email.EmailDispatcher", return_value=dispatcher):
            assert send_verification_email("u@x.com", "U", "tok") is True

        dispatcher.send_verification_email.assert_called_once_with("u@x.com", "U", "tok")

    def test_reset_task_uses_dispatcher(self):
        dispatcher = MagicMock()
        dispatcher.send_password_reset_email.return_value = False

        with patch("src.tasks.email.EmailDispatcher", return_value=dispatcher):
            assert send_password_reset_email("u@x.com", "U", "tok") is False

        dispatcher.send_password_reset_email.assert_called_once_with("u@x.com", "U", "tok")

    def test_smtp_failure_is_retried(self):
        """Called inline, a retry re-raises the delivery error."""
        dispatcher = MagicMock()
        dispatcher.send_verification_email.side_effect = smtplib.SMTPServerDisconnected("gone")

        with patch("src.tasks.email.EmailDispatcher", return_value=dispatcher):
            with pytest.raises(smtplib.SMTPServerDisconnected):
                send_verification_email("u@x.com", "U", "tok")
