"""Email channel over SMTP (STARTTLS)."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr

from suraksha.core.config import settings

logger = logging.getLogger(__name__)


class EmailServiceError(Exception):
    """Raised when an email cannot be handed to the SMTP server."""


@dataclass
class EmailResult:
    sent: bool
    message_id: str | None = None


class EmailService:
    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        user: str | None = None,
        password: str | None = None,
    ) -> None:
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.user = user if user is not None else settings.smtp_user
        self.password = password if password is not None else settings.smtp_password

    async def send(self, to: str, subject: str, html_body: str, text_body: str | None = None) -> EmailResult:
        """Send an HTML email. Blocking SMTP work runs in a worker thread."""
        if not self.user or not self.password:
            raise EmailServiceError("SMTP credentials are not configured")

        msg = EmailMessage()
        msg["From"] = formataddr((settings.smtp_sender_name, self.user))
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text_body or "This message requires an HTML-capable email client.")
        msg.add_alternative(html_body, subtype="html")

        return await asyncio.to_thread(self._deliver, msg)

    def _deliver(self, msg: EmailMessage) -> EmailResult:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=settings.channel_timeout_seconds) as smtp:
                smtp.starttls()
                smtp.login(self.user, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailServiceError(f"Email sending failed: {exc}") from exc
        logger.info("Email sent to %s", msg["To"])
        return EmailResult(sent=True, message_id=msg.get("Message-ID"))


# Singleton instance used across the app
email_service = EmailService()
