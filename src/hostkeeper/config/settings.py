"""Run configuration from environment variables."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

ENV_PREFIX = "HOSTKEEPER_"

DEFAULT_EXCLUDES = ["*.tmp", "cache/*"]
DEFAULT_LOG_FILES = ["/var/log/syslog", "/var/log/auth.log"]
DEFAULT_KEYWORDS = ["error", "failed", "critical", "denied", "unauthorized"]

_LIST_SPLIT = re.compile(r"[,%s]" % re.escape(os.pathsep))
_COMPACT_ON = re.compile(r"^(\d{2})-(\d{2})$")


def _split_list(raw: str) -> list[str]:
    return [item.strip() for item in _LIST_SPLIT.split(raw) if item.strip()]


@dataclass
class HostkeeperConfig:
    """Configuration for one backup or monitor run."""

    # Notification targets
    admin_email: str = ""
    alert_email: str = ""
    webhook_url: str = ""
    mail_from: str = "hostkeeper@localhost"
    smtp_host: str = "localhost"
    smtp_port: int = 25
    webhook_timeout: int = 10

    # Backup pipeline
    source_dirs: list[str] = field(default_factory=list)
    exclude_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDES))
    archive_dir: str = "/backups/archives"
    repo_dir: str = "/backups/repo"
    retention_days: int = 30
    min_free_bytes: int = 1024 * 1024 * 1024
    run_log_dir: str = "/var/log/backups"
    # Month-day (MM-DD) on which history compaction runs
    compact_on: str = "01-01"
    # Seconds allowed for each external command
    command_timeout: int = 600

    # Log monitor
    log_files: list[str] = field(default_factory=lambda: list(DEFAULT_LOG_FILES))
    keywords: list[str] = field(default_factory=lambda: list(DEFAULT_KEYWORDS))
    state_dir: str = "/var/log/monitor_state"
    monitor_log: str = "/var/log/monitor.log"
    context_lines: int = 2
    excerpt_max_lines: int = 10

    lock_dir: str = "/tmp"

    # Raw values that failed to parse; reported by validate()
    parse_errors: list[str] = field(default_factory=list, repr=False)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> HostkeeperConfig:
        """Load configuration from HOSTKEEPER_* environment variables."""
        env = os.environ if environ is None else environ
        config = cls()
        for f in fields(cls):
            if f.name == "parse_errors":
                continue
            key = ENV_PREFIX + f.name.upper()
            raw = env.get(key)
            if raw is None:
                continue
            current = getattr(config, f.name)
            if isinstance(current, list):
                setattr(config, f.name, _split_list(raw))
            elif isinstance(current, int):
                try:
                    setattr(config, f.name, int(raw.strip()))
                except ValueError:
                    config.parse_errors.append(f"{key} must be an integer, got {raw!r}")
            else:
                setattr(config, f.name, raw.strip())
        return config

    def with_overrides(self, **overrides: object) -> HostkeeperConfig:
        """Return a copy with non-empty overrides applied (CLI options)."""
        changes = {k: v for k, v in overrides.items() if v not in (None, "", [], ())}
        return replace(self, **changes)

    def compaction_due(self, month: int, day: int) -> bool:
        m = _COMPACT_ON.match(self.compact_on)
        if not m:
            return False
        return (int(m.group(1)), int(m.group(2))) == (month, day)

    def validate_backup(self) -> list[str]:
        """Return list of backup configuration errors, empty if valid."""
        errors = list(self.parse_errors)
        if not self.source_dirs:
            errors.append(f"{ENV_PREFIX}SOURCE_DIRS is required")
        if not self.archive_dir:
            errors.append(f"{ENV_PREFIX}ARCHIVE_DIR is required")
        if not self.repo_dir:
            errors.append(f"{ENV_PREFIX}REPO_DIR is required")
        if self.retention_days < 0:
            errors.append(f"{ENV_PREFIX}RETENTION_DAYS must not be negative")
        if self.min_free_bytes < 0:
            errors.append(f"{ENV_PREFIX}MIN_FREE_BYTES must not be negative")
        if not _COMPACT_ON.match(self.compact_on):
            errors.append(f"{ENV_PREFIX}COMPACT_ON must look like MM-DD, got {self.compact_on!r}")
        if self.archive_dir and self.repo_dir and (
            Path(self.archive_dir).resolve() == Path(self.repo_dir).resolve()
        ):
            errors.append("Archive directory and repository directory must differ")
        return errors

    def validate_monitor(self) -> list[str]:
        """Return list of monitor configuration errors, empty if valid."""
        errors = list(self.parse_errors)
        if not self.log_files:
            errors.append(f"{ENV_PREFIX}LOG_FILES is required")
        if not self.keywords:
            errors.append(f"{ENV_PREFIX}KEYWORDS is required")
        if not self.state_dir:
            errors.append(f"{ENV_PREFIX}STATE_DIR is required")
        if self.context_lines < 0:
            errors.append(f"{ENV_PREFIX}CONTEXT_LINES must not be negative")
        if self.excerpt_max_lines < 1:
            errors.append(f"{ENV_PREFIX}EXCERPT_MAX_LINES must be at least 1")
        return errors
