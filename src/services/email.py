"""Outbound email for verification and password-reset links."""

import logging
import smtplib
from email.message import EmailMessage
from html import escape

from src.config import Settings, get_settings

logger = logging.getLogger(__name__)

BUTTON_TEMPLATE = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: {color};">{heading}</h2>
  <p>Hello {name},</p>
  <p>{intro}</p>
  <div style="text-align: center; margin: 30px 0;">
    <a href="{url}"
       style="background-color: {color}; color: white; padding: 12px 24px;
              text-decoration: none; border-radius: 6px; display: inline-block;">
      {button}
    </a>
  </div>
  <p>Or copy and paste this link in your browser:</p>
  <p style="word-break: break-all; color: #2563eb;">{url}</p>
  <p>This link will expire in {lifetime}.</p>
  <p>{footer}</p>
</div>
"""


def _hours(n: int) -> str:
    return "1 hour" if n == 1 else f"{n} hours"


class EmailDispatcher:
    """Builds account emails and delivers them over SMTP."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.smtp_host)

    def verification_url(self, token: str) -> str:
        return f"{self.settings.frontend_url.rstrip('/')}/verify-email?token={token}"

    def reset_url(self, token: str) -> str:
        return f"{self.settings.frontend_url.rstrip('/')}/reset-password?token={token}"

    def send_verification_email(self, recipient: str, name: str, token: str) -> bool:
        """Send the verify-your-email message. Returns True if delivered."""
        url = self.verification_url(token)
        html = BUTTON_TEMPLATE.format(
            color="#2563eb",
            heading="Welcome to AccountForge!",
            name=escape(name),
            intro="Please verify your email address by clicking the button below:",
            url=url,
            button="Verify Email Address",
            lifetime=_hours(self.settings.verification_token_hours),
            footer="If you didn't create an account, please ignore this email.",
        )
        return self._send(recipient, "Verify Your Email - AccountForge", html, url)

    def send_password_reset_email(self, recipient: str, name: str, token: str) -> bool:
        """Send the password-reset message. Returns True if delivered."""
        url = self.reset_url(token)
        html = BUTTON_TEMPLATE.format(
            color="#dc2626",
            heading="Password Reset Request",
            name=escape(name),
            intro=(
                "We received a request to reset your password. "
                "Click the button below to create a new password:"
            ),
            url=url,
            button="Reset Password",
            lifetime=_hours(self.settings.reset_token_hours),
            footer="If you didn't request a password reset, please ignore this email.",
        )
        return self._send(recipient, "Reset Your Password - AccountForge", html, url)

    def _send(self, recipient: str, subject: str, html: str, link: str) -> bool:
        if not self.is_configured:
            if self.settings.is_development:
                logger.info(f"SMTP not configured; link for {recipient}: {link}")
            else:
                logger.warning(f"SMTP not configured, cannot email {recipient}")
            return False

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.settings.email_from
        msg["To"] = recipient
        msg.set_content(f"Open this link in your browser: {link}")
        msg.add_alternative(html, subtype="html")

        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port) as smtp:
            if self.settings.smtp_use_tls:
                smtp.starttls()
            if self.settings.smtp_user and self.settings.smtp_password:
                smtp.login(self.settings.smtp_user, self.settings.smtp_password)
            smtp.send_message(msg)

        logger.info(f"Sent '{subject}' to {recipient}")
        return True
