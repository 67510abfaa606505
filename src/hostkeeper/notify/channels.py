"""Email and chat webhook delivery channels.

Both are fire-and-forget: every failure is logged and reported as a
False return, never raised to the caller.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

import requests

from hostkeeper.core.results import ErrorKind

logger = logging.getLogger(__name__)


class EmailChannel:
    """Plain-text mail through the local MTA."""

    name = "email"

    def __init__(
        self,
        smtp_host: str = "localhost",
        smtp_port: int = 25,
        sender: str = "hostkeeper@localhost",
        timeout: int = 30,
    ) -> None:
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.sender = sender
        self.timeout = timeout

    def build_message(self, recipient: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = recipient
        msg.set_content(body)
        return msg

    def send(self, recipient: str, subject: str, body: str) -> bool:
        if not recipient:
            logger.warning("%s: email not sent, no recipient configured", ErrorKind.EMAIL_SKIPPED.value)
            return False
        if not self.smtp_host:
            logger.warning("%s: email not sent, no mail host configured", ErrorKind.EMAIL_SKIPPED.value)
            return False

        msg = self.build_message(recipient, subject, body)
        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.send_message(msg)
        except (OSError, smtplib.SMTPException) as e:
            logger.warning(
                "%s: email to %s not sent, mail facility unavailable: %s",
                ErrorKind.EMAIL_SKIPPED.value, recipient, e,
            )
            return False
        logger.info("Email sent to %s: %s", recipient, subject)
        return True


def webhook_payload(message: str, excerpt: str = "") -> dict:
    """Chat message body: the alert text followed by a fenced excerpt."""
    if excerpt:
        return {"text": f"{message}\n```{excerpt}```"}
    return {"text": message}


class WebhookChannel:
    """HTTP POST of a JSON message to a chat incoming-webhook URL."""

    name = "webhook"

    def __init__(
        self,
        url: str,
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._session = session

    def send(self, message: str, excerpt: str = "") -> bool:
        if not self.url:
            logger.warning("%s: webhook not sent, no URL configured", ErrorKind.WEBHOOK_SKIPPED.value)
            return False

        post = self._session.post if self._session is not None else requests.post
        try:
            response = post(
                self.url,
                json=webhook_payload(message, excerpt),
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )
        except requests.RequestException as e:
            logger.warning("Webhook delivery failed: %s", e)
            return False
        if not response.ok:
            logger.warning("Webhook returned HTTP %s", response.status_code)
            return False
        return True
