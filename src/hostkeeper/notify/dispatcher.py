"""Fan-out of alerts and failure reports to every enabled channel."""

from __future__ import annotations

import logging

from hostkeeper.config.settings import HostkeeperConfig
from hostkeeper.monitor.models import AlertEvent
from hostkeeper.notify.channels import EmailChannel, WebhookChannel

logger = logging.getLogger(__name__)


class Notifier:
    """Sends through each channel independently; one failing never blocks another."""

    def __init__(
        self,
        email: EmailChannel,
        webhook: WebhookChannel,
        alert_email: str = "",
        admin_email: str = "",
    ) -> None:
        self.email = email
        self.webhook = webhook
        self.alert_email = alert_email
        self.admin_email = admin_email

    @classmethod
    def from_config(cls, config: HostkeeperConfig) -> Notifier:
        return cls(
            email=EmailChannel(config.smtp_host, config.smtp_port, config.mail_from),
            webhook=WebhookChannel(config.webhook_url, timeout=config.webhook_timeout),
            alert_email=config.alert_email,
            admin_email=config.admin_email,
        )

    def send_alert(self, alert: AlertEvent) -> list[str]:
        """Dispatch one alert. Returns the channels that accepted it.

        Channels without a destination are skipped with a warning and are
        not recorded as attempted.
        """
        delivered = []
        if self.alert_email:
            alert.channels_attempted.append(self.email.name)
        if self.email.send(self.alert_email, alert.subject, alert.email_body):
            delivered.append(self.email.name)

        if self.webhook.url:
            alert.channels_attempted.append(self.webhook.name)
        if self.webhook.send(alert.message, alert.excerpt):
            delivered.append(self.webhook.name)
        return delivered

    def send_failure(self, subject: str, body: str) -> bool:
        """Email a failure report to the admin address, if one is set."""
        if not self.admin_email:
            logger.info("No admin email configured; failure notification skipped")
            return False
        return self.email.send(self.admin_email, subject, body)
