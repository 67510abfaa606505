"""Data models for the log monitor."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path


class ScanState(str, Enum):
    """Per-file state for one monitor cycle."""

    NEW = "NEW"  # no prior checkpoint
    UNCHANGED = "UNCHANGED"  # no growth since the checkpoint
    GREW = "GREW"  # new bytes after the checkpoint
    ROTATED = "ROTATED"  # identity changed or size shrank
    SCANNED = "SCANNED"


@dataclass(frozen=True)
class LogState:
    """Persisted checkpoint for one watched log file."""

    identity: str
    offset: int

    def serialize(self) -> str:
        return f"{self.identity} {self.offset}\n"

    @classmethod
    def parse(cls, text: str) -> LogState:
        """Parse ``<identity> <offset>``. Raises ValueError if malformed."""
        parts = text.split()
        if len(parts) != 2:
            raise ValueError(f"expected '<identity> <offset>', got {text.strip()!r}")
        offset = int(parts[1])
        if offset < 0:
            raise ValueError(f"negative offset {offset}")
        return cls(parts[0], offset)


@dataclass
class AlertEvent:
    """One keyword match in newly read log content."""

    keyword: str
    log_path: str
    timestamp: datetime
    hostname: str
    excerpt: str = ""
    channels_attempted: list[str] = field(default_factory=list)

    @property
    def timestamp_text(self) -> str:
        return self.timestamp.strftime("%Y-%m-%d %H:%M:%S")

    @property
    def subject(self) -> str:
        return f"[ALERT] {self.hostname}: {self.keyword} detected in {Path(self.log_path).name}"

    @property
    def message(self) -> str:
        return f"{self.timestamp_text} - {self.keyword} found in {self.log_path}"

    @property
    def email_body(self) -> str:
        return f"{self.message}\n\nExcerpt:\n{self.excerpt}"

    @property
    def audit_line(self) -> str:
        return f"ALERT: Keyword '{self.keyword}' found in {self.log_path} at {self.timestamp_text}"


@dataclass
class FileScanResult:
    """What one cycle did for one log file."""

    log_path: str
    state: ScanState
    start_offset: int = 0
    end_offset: int = 0
    alerts: list[AlertEvent] = field(default_factory=list)
    error: str = ""

    @property
    def bytes_scanned(self) -> int:
        return max(0, self.end_offset - self.start_offset)


@dataclass
class MonitorReport:
    """Outcome of one monitor run over all configured files."""

    results: list[FileScanResult] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def alerts(self) -> list[AlertEvent]:
        return [a for r in self.results for a in r.alerts]
