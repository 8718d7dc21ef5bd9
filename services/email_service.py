"""
Email Service - outbound mail for password reset links and verification codes
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional
from urllib.parse import urlencode

from fastapi import BackgroundTasks

from config.settings import settings
from database_models import User

logger = logging.getLogger(__name__)


def smtp_configured() -> bool:
    return bool(settings.smtp_host and settings.smtp_from)


def send_email(to_address: str, subject: str, body: str) -> None:
    """
    Deliver a plain-text email over SMTP.
    When SMTP is not configured the message is logged instead.
    """
    if not smtp_configured():
        logger.warning(f"SMTP is not configured. Email to {to_address} not sent: {subject}")
        logger.info(f"Undelivered email body for {to_address}:\n{body}")
        return

    message = EmailMessage()
    message["From"] = settings.smtp_from
    message["To"] = to_address
    message["Subject"] = subject
    message.set_content(body)

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if settings.smtp_user and settings.smtp_password:
                smtp.login(settings.smtp_user, settings.smtp_password)
            smtp.send_message(message)
        logger.info(f"Sent email '{subject}' to {to_address}")
    except (smtplib.SMTPException, OSError) as e:
        # Fire-and-forget
        logger.error(f"Failed to send email '{subject}' to {to_address}: {e}", exc_info=True)


class EmailService:
    """
    Builds account emails and hands them to `send_email`.
    With a BackgroundTasks instance, delivery runs after the response is sent.
    """

    def __init__(self, background_tasks: Optional[BackgroundTasks] = None):
        self.background_tasks = background_tasks

    def _dispatch(self, to_address: str, subject: str, body: str) -> None:
        if self.background_tasks is not None:
            self.background_tasks.add_task(send_email, to_address, subject, body)
        else:
            send_email(to_address, subject, body)

    def send_reset_password_link(self, user: User, token: str) -> str:
        """
        Email a password reset link.

        Returns:
            The link that was sent
        """
        frontend_url = (settings.frontend_url or "http://localhost:5173").rstrip("/")
        link = f"{frontend_url}/reset-password?{urlencode({'token': token})}"
        body = (
            f"Hi {user.name or user.email},\n\n"
            "We received a request to reset your password. "
            "Use the link below to choose a new one:\n\n"
            f"{link}\n\n"
            f"The link expires in {settings.password_reset_ttl_minutes} minutes. "
            "If you did not request a reset you can ignore this email.\n"
        )
        self._dispatch(user.email, "Reset your password", body)
        return link

    def send_verification_code(self, user: User, code: str) -> None:
        body = (
            f"Hi {user.name or user.email},\n\n"
            f"Your email verification code is: {code}\n\n"
            f"The code expires in {settings.verification_code_ttl_minutes} minutes.\n"
        )
        self._dispatch(user.email, "Your verification code", body)
