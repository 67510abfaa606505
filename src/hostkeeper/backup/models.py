"""Data models for the backup pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from hostkeeper.core.results import ErrorKind

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


class Verification(str, Enum):
    UNVERIFIED = "unverified"
    VERIFIED = "verified"
    CORRUPT = "corrupt"


@dataclass
class ArchiveRecord:
    """One compressed snapshot of the configured source directories."""

    timestamp: str  # YYYYMMDD-HHMMSS
    path: str
    source_dirs: list[str] = field(default_factory=list)
    exclude_patterns: list[str] = field(default_factory=list)
    size_bytes: int = 0
    verification: Verification = Verification.UNVERIFIED
    committed: bool = False
    modified: Optional[datetime] = None

    @property
    def label(self) -> str:
        """Archive name without prefix and extension, counter included."""
        name = Path(self.path).name
        if name.startswith("backup-") and name.endswith(".tar.gz"):
            return name[len("backup-"):-len(".tar.gz")]
        return self.timestamp

    @property
    def is_verified(self) -> bool:
        return self.verification == Verification.VERIFIED


@dataclass
class BackupReport:
    """Outcome of one backup run."""

    started: datetime
    archive: Optional[ArchiveRecord] = None
    failed_kind: Optional[ErrorKind] = None
    message: str = ""
    pruned: list[str] = field(default_factory=list)
    compacted: bool = False
    notified: bool = False

    @property
    def ok(self) -> bool:
        return self.failed_kind is None

    @property
    def exit_code(self) -> int:
        if self.ok:
            return 0
        if self.failed_kind == ErrorKind.ALREADY_RUNNING:
            return 2
        return 1
