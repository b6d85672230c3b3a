"""Celery tasks for delivering account emails."""

import logging
import smtplib

from src.celery_app import app as celery_app
from src.services.email import EmailDispatcher

logger = logging.getLogger(__name__)

RETRY_DELAY_SECONDS = 30


@celery_app.task(bind=True, max_retries=3)
def send_verification_email(self, recipient: str, name: str, token: str) -> bool:
    """Deliver an email-verification link.

    Args:
        recipient: Address to send to
        name: Display name used in the greeting
        token: Verification token embedded in the link

    Returns:
        True if the message was handed to the SMTP server
    """
    try:
        return EmailDispatcher().send_verification_email(recipient, name, token)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Verification email to {recipient} failed: {e}")
        raise self.retry(exc=e, countdown=RETRY_DELAY_SECONDS) from e


@celery_app.task(bind=True, max_retries=3)
def send_password_reset_email(self, recipient: str, name: str, token: str) -> bool:
    """Deliver a password-reset link."""
    try:
        return EmailDispatcher().send_password_reset_email(recipient, name, token)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Password reset email to {recipient} failed: {e}")
        raise self.retry(exc=e, countdown=RETRY_DELAY_SECONDS) from e
