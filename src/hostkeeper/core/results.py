"""Error taxonomy and tagged step results shared by both pipelines."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Failure conditions a run can report."""

    INSUFFICIENT_SPACE = "INSUFFICIENT_SPACE"
    MISSING_SOURCE = "MISSING_SOURCE"
    ARCHIVE_CREATE_FAILED = "ARCHIVE_CREATE_FAILED"
    ARCHIVE_CORRUPT = "ARCHIVE_CORRUPT"
    VCS_COMMIT_FAILED = "VCS_COMMIT_FAILED"
    ALREADY_RUNNING = "ALREADY_RUNNING"
    # Non-fatal notification warnings
    EMAIL_SKIPPED = "EMAIL_SKIPPED"
    WEBHOOK_SKIPPED = "WEBHOOK_SKIPPED"


@dataclass(frozen=True)
class StepResult:
    """Outcome of one pipeline step: ok, or a specific error kind."""

    kind: Optional[ErrorKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is None

    @classmethod
    def success(cls, message: str = "") -> StepResult:
        return cls(None, message)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> StepResult:
        return cls(kind, message)


@dataclass(frozen=True)
class CommandResult:
    """Result of an external command invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def diagnostic(self) -> str:
        return (self.stderr or self.stdout).strip()


class HostkeeperError(Exception):
    """Raised for conditions that stop a run before any step executes."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class AlreadyRunning(HostkeeperError):
    """Another run of the same pipeline holds the lock."""

    def __init__(self, pipeline: str, lock_path: str) -> None:
        super().__init__(
            ErrorKind.ALREADY_RUNNING,
            f"{pipeline} is already running (lock held: {lock_path})",
        )
        self.pipeline = pipeline
        self.lock_path = lock_path
