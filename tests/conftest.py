"""Shared test fixtures and fakes for external facilities."""

from __future__ import annotations

from datetime import datetime

import pytest

from hostkeeper.config.settings import HostkeeperConfig
from hostkeeper.core.results import ErrorKind, StepResult
from hostkeeper.notify.dispatcher import Notifier

FIXED_NOW = datetime(2025, 11, 30, 8, 0, 0)


class FakeEmail:
    """Records messages instead of talking to an MTA."""

    name = "email"

    def __init__(self, succeed: bool = True) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.succeed = succeed

    def send(self, recipient: str, subject: str, body: str) -> bool:
        if not recipient:
            return False
        self.sent.append((recipient, subject, body))
        return self.succeed


class FakeWebhook:
    name = "webhook"

    def __init__(self, url: str = "https://hooks.example.test/T000", succeed: bool = True) -> None:
        self.url = url
        self.sent: list[tuple[str, str]] = []
        self.succeed = succeed

    def send(self, message: str, excerpt: str = "") -> bool:
        if not self.url:
            return False
        self.sent.append((message, excerpt))
        return self.succeed


class FakeRepo:
    """Stands in for GitRepo; records commits."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.commits: list[tuple[str, str]] = []
        self.compactions = 0

    def commit_archive(self, archive_path: str, timestamp: str) -> StepResult:
        if self.fail:
            return StepResult.failure(ErrorKind.VCS_COMMIT_FAILED, "git commit failed: simulated")
        self.commits.append((archive_path, timestamp))
        return StepResult.success(f"System backup {timestamp}")

    def compact(self) -> bool:
        self.compactions += 1
        return True


@pytest.fixture
def fake_email():
    return FakeEmail()


@pytest.fixture
def fake_webhook():
    return FakeWebhook()


@pytest.fixture
def notifier(fake_email, fake_webhook):
    return Notifier(
        fake_email,
        fake_webhook,
        alert_email="alerts@example.test",
        admin_email="admin@example.test",
    )


@pytest.fixture
def config(tmp_path):
    """Configuration pointing every path into a temporary directory."""
    src_a = tmp_path / "src" / "etc"
    src_b = tmp_path / "src" / "www"
    for d in (src_a, src_b):
        d.mkdir(parents=True)
    (src_a / "hosts").write_text("127.0.0.1 localhost\n")
    (src_b / "index.html").write_text("<h1>ok</h1>\n")

    return HostkeeperConfig(
        admin_email="admin@example.test",
        alert_email="alerts@example.test",
        webhook_url="https://hooks.example.test/T000",
        source_dirs=[str(src_a), str(src_b)],
        archive_dir=str(tmp_path / "archives"),
        repo_dir=str(tmp_path / "repo"),
        run_log_dir=str(tmp_path / "runlogs"),
        min_free_bytes=0,
        log_files=[str(tmp_path / "logs" / "syslog")],
        keywords=["error", "failed", "critical", "denied", "unauthorized"],
        state_dir=str(tmp_path / "state"),
        monitor_log=str(tmp_path / "monitor.log"),
        lock_dir=str(tmp_path / "locks"),
    )
