"""Backup pipeline: validate, create, verify, commit, retain, report.

Each step is a hard precondition for the next and returns a StepResult;
the first failure ends the run. Retention and compaction are best-effort
and never fail a run on their own.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from hostkeeper.backup.archive import TarArchiver, human_size, unique_archive_path
from hostkeeper.backup.models import ArchiveRecord, BackupReport, Verification
from hostkeeper.backup.retention import sweep
from hostkeeper.backup.vcs import GitRepo
from hostkeeper.config.settings import HostkeeperConfig
from hostkeeper.core.results import ErrorKind, StepResult
from hostkeeper.notify.dispatcher import Notifier
from hostkeeper.runtime.commands import SubprocessRunner

logger = logging.getLogger(__name__)

FAILURE_SUBJECT = "BACKUP FAILURE"


def free_bytes(path: str) -> int:
    """Available space on the volume holding ``path`` (nearest existing parent)."""
    p = Path(path)
    while not p.exists() and p != p.parent:
        p = p.parent
    return shutil.disk_usage(p).free


class BackupPipeline:
    """Produces one verified, committed archive per run."""

    def __init__(
        self,
        config: HostkeeperConfig,
        archiver: TarArchiver,
        repo: GitRepo,
        notifier: Notifier,
        clock: Callable[[], datetime] = datetime.now,
        disk_free: Callable[[str], int] = free_bytes,
        run_log_text: Callable[[], str] = lambda: "",
    ) -> None:
        self.config = config
        self._archiver = archiver
        self._repo = repo
        self._notifier = notifier
        self._clock = clock
        self._disk_free = disk_free
        self._run_log_text = run_log_text

    # --- Validation ---

    def check_disk_space(self) -> StepResult:
        try:
            available = self._disk_free(self.config.archive_dir)
        except OSError as e:
            return StepResult.failure(
                ErrorKind.INSUFFICIENT_SPACE, f"Cannot determine free space: {e}"
            )
        if available < self.config.min_free_bytes:
            return StepResult.failure(
                ErrorKind.INSUFFICIENT_SPACE,
                f"Insufficient disk space (only {human_size(available)} available, "
                f"{human_size(self.config.min_free_bytes)} required)",
            )
        return StepResult.success()

    def validate_sources(self) -> StepResult:
        for source in self.config.source_dirs:
            if not Path(source).is_dir():
                return StepResult.failure(
                    ErrorKind.MISSING_SOURCE, f"Source directory {source} does not exist"
                )
        return StepResult.success()

    # --- Archive ---

    def create_archive(self, record: ArchiveRecord) -> StepResult:
        error = self._archiver.create(
            record.path, record.source_dirs, record.exclude_patterns
        )
        if error is not None:
            Path(record.path).unlink(missing_ok=True)
            return StepResult.failure(
                ErrorKind.ARCHIVE_CREATE_FAILED, f"Backup creation failed: {error}"
            )
        record.size_bytes = Path(record.path).stat().st_size
        return StepResult.success()

    def verify_archive(self, record: ArchiveRecord) -> StepResult:
        if self._archiver.verify(record.path):
            record.verification = Verification.VERIFIED
            return StepResult.success()
        record.verification = Verification.CORRUPT
        Path(record.path).unlink(missing_ok=True)
        return StepResult.failure(
            ErrorKind.ARCHIVE_CORRUPT, f"Backup verification failed: {record.path} is corrupted"
        )

    def commit(self, record: ArchiveRecord) -> StepResult:
        if not record.is_verified:
            return StepResult.failure(
                ErrorKind.VCS_COMMIT_FAILED, "Refusing to commit an unverified archive"
            )
        result = self._repo.commit_archive(record.path, record.label)
        record.committed = result.ok
        return result

    # --- Housekeeping ---

    def apply_retention(self, now: datetime) -> list[str]:
        try:
            return sweep(self.config.archive_dir, self.config.retention_days, now)
        except OSError as e:
            logger.warning("Retention sweep failed: %s", e)
            return []

    def maybe_compact(self, now: datetime) -> bool:
        if not self.config.compaction_due(now.month, now.day):
            return False
        try:
            return self._repo.compact()
        except OSError as e:
            logger.warning("Repository compaction failed: %s", e)
            return False

    # --- Run ---

    def run(self) -> BackupReport:
        started = self._clock()
        report = BackupReport(started=started)
        logger.info("Starting backup operation")

        for step in (self.check_disk_space, self.validate_sources):
            result = step()
            if not result.ok:
                return self._fail(report, result)

        try:
            timestamp, path = unique_archive_path(self.config.archive_dir, started)
        except OSError as e:
            return self._fail(report, StepResult.failure(
                ErrorKind.ARCHIVE_CREATE_FAILED, f"Cannot prepare archive path: {e}"
            ))
        record = ArchiveRecord(
            timestamp=timestamp,
            path=str(path),
            source_dirs=list(self.config.source_dirs),
            exclude_patterns=list(self.config.exclude_patterns),
        )
        report.archive = record

        for step in (self.create_archive, self.verify_archive):
            result = step(record)
            if not result.ok:
                return self._fail(report, result)

        committed = self.commit(record)
        report.pruned = self.apply_retention(started)
        if not committed.ok:
            logger.error("Archive %s kept in primary store but not committed", record.path)
            return self._fail(report, committed)

        report.compacted = self.maybe_compact(started)
        report.message = f"Backup completed ({human_size(record.size_bytes)}) at {record.path}"
        logger.info("SUCCESS: %s", report.message)
        return report

    def _fail(self, report: BackupReport, result: StepResult) -> BackupReport:
        report.failed_kind = result.kind
        report.message = result.message
        logger.error("%s: %s", result.kind.value, result.message)
        logger.critical("Backup failed at step %s", result.kind.value)
        body = self._run_log_text() or f"{result.kind.value}: {result.message}\n"
        report.notified = self._notifier.send_failure(FAILURE_SUBJECT, body)
        return report


def build_pipeline(
    config: HostkeeperConfig,
    run_log_text: Callable[[], str] = lambda: "",
    notifier: Optional[Notifier] = None,
) -> BackupPipeline:
    """Wire a pipeline with the real archive, git and notification facilities."""
    return BackupPipeline(
        config,
        archiver=TarArchiver(),
        repo=GitRepo(config.repo_dir, SubprocessRunner(config.command_timeout)),
        notifier=notifier or Notifier.from_config(config),
        run_log_text=run_log_text,
    )
