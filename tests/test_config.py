"""Tests for environment configuration."""

from __future__ import annotations

from hostkeeper.config.settings import DEFAULT_KEYWORDS, HostkeeperConfig


class TestHostkeeperConfig:
    """Test loading and validation."""

    def test_defaults(self):
        config = HostkeeperConfig.from_env({})
        assert config.retention_days == 30
        assert config.min_free_bytes == 1024 ** 3
        assert config.keywords == DEFAULT_KEYWORDS
        assert config.exclude_patterns == ["*.tmp", "cache/*"]
        assert config.state_dir == "/var/log/monitor_state"

    def test_from_env(self):
        config = HostkeeperConfig.from_env({
            "HOSTKEEPER_ADMIN_EMAIL": "admin@example.test",
            "HOSTKEEPER_SOURCE_DIRS": "/etc, /var/www",
            "HOSTKEEPER_KEYWORDS": "panic,oom",
            "HOSTKEEPER_RETENTION_DAYS": "7",
        })
        assert config.admin_email == "admin@example.test"
        assert config.source_dirs == ["/etc", "/var/www"]
        assert config.keywords == ["panic", "oom"]
        assert config.retention_days == 7

    def test_bad_integer_reported(self):
        config = HostkeeperConfig.from_env({
            "HOSTKEEPER_SOURCE_DIRS": "/etc",
            "HOSTKEEPER_MIN_FREE_BYTES": "lots",
        })
        errors = config.validate_backup()
        assert any("HOSTKEEPER_MIN_FREE_BYTES" in e for e in errors)

    def test_backup_requires_sources(self):
        errors = HostkeeperConfig.from_env({}).validate_backup()
        assert "HOSTKEEPER_SOURCE_DIRS is required" in errors

    def test_monitor_defaults_valid(self):
        assert HostkeeperConfig.from_env({}).validate_monitor() == []

    def test_overrides_ignore_empty(self):
        config = HostkeeperConfig.from_env({"HOSTKEEPER_STATE_DIR": "/srv/state"})
        updated = config.with_overrides(state_dir="", keywords=["oops"], log_files=None)
        assert updated.state_dir == "/srv/state"
        assert updated.keywords == ["oops"]
        assert updated.log_files == config.log_files

    def test_compaction_due(self):
        config = HostkeeperConfig()
        assert config.compaction_due(1, 1)
        assert not config.compaction_due(1, 2)
        config.compact_on = "never"
        assert not config.compaction_due(1, 1)
        assert any("COMPACT_ON" in e for e in config.validate_backup())
