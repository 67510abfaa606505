"""Git working tree used as the archive audit trail."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional

from hostkeeper.core.results import ErrorKind, StepResult
from hostkeeper.runtime.commands import CommandRunner, SubprocessRunner

logger = logging.getLogger(__name__)

FALLBACK_NAME = "hostkeeper"
FALLBACK_EMAIL = "hostkeeper@localhost"


def commit_message(label: str) -> str:
    return f"System backup {label}"


class GitRepo:
    """Version-controlled copy of every archive produced."""

    def __init__(self, path: str, runner: Optional[CommandRunner] = None) -> None:
        self.path = Path(path)
        self._run = runner or SubprocessRunner()

    def _git(self, *args: str):
        return self._run(("git", *args), cwd=str(self.path))

    def ensure(self) -> StepResult:
        """Initialize the repository once, with a fallback commit identity."""
        try:
            self.path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return StepResult.failure(ErrorKind.VCS_COMMIT_FAILED, f"cannot create {self.path}: {e}")
        if not (self.path / ".git").exists():
            result = self._git("init", "--quiet")
            if not result.ok:
                return StepResult.failure(
                    ErrorKind.VCS_COMMIT_FAILED, f"git init failed: {result.diagnostic}"
                )
            logger.info("Initialized repository at %s", self.path)
        for key, value in (("user.name", FALLBACK_NAME), ("user.email", FALLBACK_EMAIL)):
            if not self._git("config", key).ok:
                self._git("config", key, value)
        return StepResult.success()

    def commit_archive(self, archive_path: str, label: str) -> StepResult:
        """Copy, stage and commit one archive.

        On any failure after the copy, the file is unstaged and removed
        from the working tree so a later commit cannot pick it up.
        """
        ready = self.ensure()
        if not ready.ok:
            return ready

        name = Path(archive_path).name
        try:
            shutil.copy2(archive_path, self.path / name)
        except OSError as e:
            self._discard(name)
            return StepResult.failure(ErrorKind.VCS_COMMIT_FAILED, f"copy failed: {e}")

        result = self._git("add", "--", name)
        if not result.ok:
            self._discard(name)
            return StepResult.failure(
                ErrorKind.VCS_COMMIT_FAILED, f"git add failed: {result.diagnostic}"
            )

        message = commit_message(label)
        result = self._git("commit", "--quiet", "-m", message)
        if not result.ok:
            self._discard(name)
            return StepResult.failure(
                ErrorKind.VCS_COMMIT_FAILED, f"git commit failed: {result.diagnostic}"
            )
        logger.info("Committed %s (%s)", name, message)
        return StepResult.success(message)

    def _discard(self, name: str) -> None:
        """Unstage and delete an archive copy that was never committed."""
        result = self._git("rm", "--cached", "--quiet", "--ignore-unmatch", "--", name)
        if not result.ok:
            logger.warning("Could not unstage %s: %s", name, result.diagnostic)
        try:
            (self.path / name).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove %s from %s: %s", name, self.path, e)

    def compact(self) -> bool:
        """Aggressive history garbage collection. Best effort."""
        result = self._git("gc", "--aggressive", "--quiet")
        if not result.ok:
            logger.warning("git gc failed: %s", result.diagnostic)
            return False
        logger.info("Compacted repository history at %s", self.path)
        return True

    def log(self, limit: int = 10) -> list[str]:
        """Recent commit subjects, newest first."""
        if not (self.path / ".git").exists():
            return []
        result = self._git("log", f"-n{limit}", "--format=%h %ad %s", "--date=short")
        if not result.ok:
            return []
        return [line for line in result.stdout.splitlines() if line.strip()]
