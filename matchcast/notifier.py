"""Operator notifications for channels that run out of working streams."""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage

import requests

from .config import NotifierConfig
from .models import Channel

logger = logging.getLogger(__name__)


class Notifier:
    """Deliver alerts to a webhook and/or by email. Delivery errors are only logged."""

    def __init__(self, config: NotifierConfig | None = None):
        self.config = config or NotifierConfig()

    def channel_down(self, channel: Channel, reason: str) -> None:
        self.notify(
            subject=f"Channel {channel.name} has no healthy streams",
            message=f"All {len(channel.urls)} URL(s) of channel {channel.id} are unhealthy ({reason}).",
        )

    def notify(self, subject: str, message: str) -> None:
        if self.config.webhook_url:
            self._send_webhook(subject, message)
        if self._email_configured():
            self._send_email(subject, message)

    def _email_configured(self) -> bool:
        return bool(self.config.smtp_host and self.config.email_from and self.config.email_to)

    def _send_webhook(self, subject: str, message: str) -> None:
        try:
            response = requests.post(
                self.config.webhook_url, json={"subject": subject, "message": message}, timeout=self.config.timeout
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Failed to send webhook: %s", exc)

    def _send_email(self, subject: str, message: str) -> None:
        email = EmailMessage()
        email["From"] = self.config.email_from or ""
        email["To"] = self.config.email_to or ""
        email["Subject"] = subject
        email.set_content(message)

        try:
            with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=self.config.timeout) as smtp:
                smtp.starttls(context=ssl.create_default_context())
                if self.config.smtp_username and self.config.smtp_password:
                    smtp.login(self.config.smtp_username, self.config.smtp_password)
                smtp.send_message(email)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email: %s", exc)
