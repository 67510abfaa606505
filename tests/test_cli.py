"""Tests for the Typer CLI commands."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

import pytest
from typer.testing import CliRunner

from hostkeeper.cli.app import app
from hostkeeper.runtime.lock import RunLock

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logging():
    """Commands reconfigure the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _env(config) -> dict[str, str]:
    return {
        "HOSTKEEPER_SOURCE_DIRS": ",".join(config.source_dirs),
        "HOSTKEEPER_ARCHIVE_DIR": config.archive_dir,
        "HOSTKEEPER_REPO_DIR": config.repo_dir,
        "HOSTKEEPER_RUN_LOG_DIR": config.run_log_dir,
        "HOSTKEEPER_MIN_FREE_BYTES": "0",
        "HOSTKEEPER_LOG_FILES": ",".join(config.log_files),
        "HOSTKEEPER_STATE_DIR": config.state_dir,
        "HOSTKEEPER_MONITOR_LOG": config.monitor_log,
        "HOSTKEEPER_LOCK_DIR": config.lock_dir,
        "HOSTKEEPER_ADMIN_EMAIL": "",
        "HOSTKEEPER_ALERT_EMAIL": "",
        "HOSTKEEPER_WEBHOOK_URL": "",
    }


class TestBackupCommand:
    @pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
    def test_successful_backup(self, config):
        result = runner.invoke(app, ["backup"], env=_env(config))

        assert result.exit_code == 0
        assert "Backup completed" in result.output
        archives = list(Path(config.archive_dir).glob("backup-*.tar.gz"))
        assert len(archives) == 1
        assert (Path(config.repo_dir) / archives[0].name).exists()

    def test_already_running(self, config):
        with RunLock(config.lock_dir, "backup"):
            result = runner.invoke(app, ["backup"], env=_env(config))

        assert result.exit_code == 2
        assert "ALREADY_RUNNING" in result.output
        assert not Path(config.archive_dir).exists()

    def test_missing_source_exits_nonzero(self, config, tmp_path):
        env = _env(config)
        env["HOSTKEEPER_SOURCE_DIRS"] += "," + str(tmp_path / "absent")

        result = runner.invoke(app, ["backup"], env=env)

        assert result.exit_code == 1
        assert "MISSING_SOURCE" in result.output
        assert not (tmp_path / "archives").exists() or not any((tmp_path / "archives").iterdir())

    def test_config_errors(self, config):
        env = _env(config)
        env["HOSTKEEPER_SOURCE_DIRS"] = ""

        result = runner.invoke(app, ["backup"], env=env)

        assert result.exit_code == 1
        assert "HOSTKEEPER_SOURCE_DIRS is required" in result.output


class TestMonitorCommand:
    def test_scan_and_state(self, config, tmp_path):
        log = tmp_path / "logs" / "syslog"
        log.parent.mkdir()
        log.write_text("kernel: critical temperature\n")

        result = runner.invoke(app, ["monitor"], env=_env(config))

        assert result.exit_code == 0
        assert (tmp_path / "state" / "syslog.state").exists()

        status = runner.invoke(app, ["status"], env=_env(config))
        assert status.exit_code == 0
        assert "syslog" in status.output
