"""Outbound email for password-reset codes."""
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from fastapi import Depends

from notetaker.api.config import Settings, get_settings
from notetaker.api.errors import UpstreamFailure

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Password Reset OTP - Notetaker"


def render_reset_email(code: str, ttl_minutes: int, name: Optional[str] = None) -> str:
    greeting = f"Hello {name}!" if name else "Hello!"
    return (
        f"{greeting}\n\n"
        "We received a request to reset your password. "
        f"Your one-time code is: {code}\n\n"
        f"This code will expire in {ttl_minutes} minutes. "
        "If you didn't request a password reset, you can ignore this email.\n"
    )


class Mailer:
    """Sends plain-text email; subclasses pick the transport."""

    def send(self, to: str, subject: str, body: str) -> None:
        raise NotImplementedError


class ConsoleMailer(Mailer):
    """Development transport: writes the message to the log instead of sending it."""

    def send(self, to: str, subject: str, body: str) -> None:
        logger.info("Email to %s | %s\n%s", to, subject, body)


class SmtpMailer(Mailer):
    def __init__(self, settings: Settings):
        self.settings = settings

    def send(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self.settings.mail_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        try:
            with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=10) as smtp:
                smtp.starttls()
                if self.settings.smtp_user:
                    smtp.login(self.settings.smtp_user, self.settings.smtp_password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to %s: %s", to, exc)
            raise UpstreamFailure("Failed to send reset email") from exc


# PUBLIC_INTERFACE
def get_mailer(settings: Settings = Depends(get_settings)) -> Mailer:
    """Dependency returning the configured mail transport."""
    if settings.smtp_host:
        return SmtpMailer(settings)
    return ConsoleMailer()
