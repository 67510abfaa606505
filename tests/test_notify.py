"""Tests for notification channels and dispatch."""

from __future__ import annotations

import logging
import smtplib
from datetime import datetime

import requests

from hostkeeper.monitor.models import AlertEvent
from hostkeeper.notify.channels import EmailChannel, WebhookChannel, webhook_payload
from hostkeeper.notify.dispatcher import Notifier

from tests.conftest import FakeEmail


class FakeResponse:
    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.ok = 200 <= status_code < 300


class FakeSession:
    def __init__(self, status_code: int = 200, error: Exception | None = None) -> None:
        self.calls: list[dict] = []
        self.status_code = status_code
        self.error = error

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return FakeResponse(self.status_code)


class FakeSMTP:
    sent: list = []
    fail = False

    def __init__(self, host, port, timeout=None):
        if FakeSMTP.fail:
            raise ConnectionRefusedError("connection refused")

    def __enter__(self):
        return self

    def __exit__(self, *args):
        return False

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


def _alert() -> AlertEvent:
    return AlertEvent(
        keyword="denied",
        log_path="/var/log/auth.log",
        timestamp=datetime(2025, 11, 30, 8, 0, 0),
        hostname="web01",
        excerpt='sshd: "root" access denied',
    )


class TestWebhookChannel:
    """Test chat webhook delivery."""

    def test_payload_shape(self):
        assert webhook_payload("msg", "line") == {"text": "msg\n```line```"}
        assert webhook_payload("msg") == {"text": "msg"}

    def test_posts_json(self):
        session = FakeSession()
        assert WebhookChannel("https://hooks.example.test/x", session=session).send("hello", "ctx")
        call = session.calls[0]
        assert call["url"] == "https://hooks.example.test/x"
        assert call["json"] == {"text": "hello\n```ctx```"}
        assert call["timeout"] == 10

    def test_missing_url_skipped(self, caplog):
        session = FakeSession()
        with caplog.at_level(logging.WARNING):
            assert not WebhookChannel("", session=session).send("hello")
        assert session.calls == []
        assert "WEBHOOK_SKIPPED" in caplog.text

    def test_request_error_not_raised(self):
        session = FakeSession(error=requests.ConnectionError("down"))
        assert not WebhookChannel("https://hooks.example.test/x", session=session).send("hello")

    def test_http_error_status(self):
        session = FakeSession(status_code=500)
        assert not WebhookChannel("https://hooks.example.test/x", session=session).send("hello")


class TestEmailChannel:
    """Test local MTA delivery."""

    def setup_method(self):
        FakeSMTP.sent = []
        FakeSMTP.fail = False

    def test_sends_message(self, monkeypatch):
        monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
        assert EmailChannel(sender="hk@example.test").send("ops@example.test", "Subj", "Body")
        msg = FakeSMTP.sent[0]
        assert msg["To"] == "ops@example.test"
        assert msg["Subject"] == "Subj"
        assert msg.get_content().strip() == "Body"

    def test_missing_recipient_skipped(self, monkeypatch, caplog):
        monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
        with caplog.at_level(logging.WARNING):
            assert not EmailChannel().send("", "Subj", "Body")
        assert FakeSMTP.sent == []
        assert "EMAIL_SKIPPED" in caplog.text

    def test_mta_unavailable(self, monkeypatch):
        FakeSMTP.fail = True
        monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
        assert not EmailChannel().send("ops@example.test", "Subj", "Body")


class TestNotifier:
    """Test channel isolation in the dispatcher."""

    def test_webhook_failure_does_not_block_email(self):
        email = FakeEmail()
        webhook = WebhookChannel(
            "https://hooks.example.test/x",
            session=FakeSession(error=requests.Timeout("slow")),
        )
        notifier = Notifier(email, webhook, alert_email="ops@example.test")

        delivered = notifier.send_alert(_alert())

        assert delivered == ["email"]
        assert email.sent[0][1] == "[ALERT] web01: denied detected in auth.log"

    def test_email_body_includes_excerpt(self):
        email = FakeEmail()
        notifier = Notifier(email, WebhookChannel("", session=FakeSession()), alert_email="ops@example.test")
        alert = _alert()
        notifier.send_alert(alert)

        body = email.sent[0][2]
        assert body.startswith("2025-11-30 08:00:00 - denied found in /var/log/auth.log")
        assert 'sshd: "root" access denied' in body
        assert alert.channels_attempted == ["email"]

    def test_failure_report_requires_admin(self):
        email = FakeEmail()
        notifier = Notifier(email, WebhookChannel(""), admin_email="")
        assert not notifier.send_failure("BACKUP FAILURE", "log")
        assert email.sent == []
