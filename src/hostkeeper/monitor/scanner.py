"""Incremental, rotation-aware keyword scanning of log files."""

from __future__ import annotations

import logging
import os
import socket
from datetime import datetime
from typing import Callable, Optional, Sequence

from hostkeeper.config.settings import HostkeeperConfig
from hostkeeper.monitor.models import (
    AlertEvent,
    FileScanResult,
    LogState,
    MonitorReport,
    ScanState,
)
from hostkeeper.monitor.state import StateStore
from hostkeeper.notify.dispatcher import Notifier
from hostkeeper.runtime.audit import AuditLog

logger = logging.getLogger(__name__)

GROUP_SEPARATOR = "--"


def file_identity(st: os.stat_result) -> str:
    """Stable identifier of the file behind a path (its inode number)."""
    return str(st.st_ino)


def classify(prior: Optional[LogState], identity: str, size: int) -> tuple[ScanState, int]:
    """Decide the cycle state and the offset to start reading from.

    A changed identity or a size below the checkpoint means the file was
    rotated, truncated or replaced, so reading restarts at 0.
    """
    if prior is None:
        return ScanState.NEW, 0
    if identity != prior.identity or size < prior.offset:
        return ScanState.ROTATED, 0
    if size > prior.offset:
        return ScanState.GREW, prior.offset
    return ScanState.UNCHANGED, prior.offset


def read_range(path: str, start: int, end: int) -> str:
    """Read bytes [start, end) and decode them, replacing invalid UTF-8."""
    with open(path, "rb") as f:
        f.seek(start)
        data = f.read(max(0, end - start))
    return data.decode("utf-8", errors="replace")


def find_keyword(text: str, keyword: str) -> bool:
    return keyword.lower() in text.lower()


def context_excerpt(text: str, keyword: str, context: int = 2, max_lines: int = 10) -> str:
    """Matching lines with ``context`` lines around each, at most ``max_lines`` lines.

    Overlapping or touching windows are merged; separate groups are
    divided by a ``--`` line, which counts toward the cap.
    """
    lines = text.splitlines()
    needle = keyword.lower()
    windows: list[list[int]] = []
    for i, line in enumerate(lines):
        if needle not in line.lower():
            continue
        lo, hi = max(0, i - context), min(len(lines) - 1, i + context)
        if windows and lo <= windows[-1][1] + 1:
            windows[-1][1] = max(windows[-1][1], hi)
        else:
            windows.append([lo, hi])

    out: list[str] = []
    for n, (lo, hi) in enumerate(windows):
        if n:
            out.append(GROUP_SEPARATOR)
        out.extend(lines[lo:hi + 1])
        if len(out) >= max_lines:
            break
    return "\n".join(out[:max_lines])


class LogMonitor:
    """Runs one incremental scan pass over each watched log file."""

    def __init__(
        self,
        config: HostkeeperConfig,
        store: StateStore,
        notifier: Notifier,
        audit: AuditLog,
        clock: Callable[[], datetime] = datetime.now,
        hostname: Optional[str] = None,
    ) -> None:
        self.keywords = list(config.keywords)
        self.context_lines = config.context_lines
        self.excerpt_max_lines = config.excerpt_max_lines
        self._store = store
        self._notifier = notifier
        self._audit = audit
        self._clock = clock
        self.hostname = hostname or socket.gethostname()

    def scan_file(self, log_path: str) -> FileScanResult:
        """Process the unread range of one file and advance its checkpoint.

        Raises OSError if the file cannot be stat'ed or read.
        """
        st = os.stat(log_path)
        identity = file_identity(st)
        size = st.st_size
        prior = self._store.load(log_path)
        state, start = classify(prior, identity, size)

        if state == ScanState.UNCHANGED or size <= start:
            # Nothing new: an unchanged file, or a new/rotated one still empty
            if state != ScanState.UNCHANGED:
                self._store.save(log_path, LogState(identity, size))
            logger.debug("%s: %s, nothing to scan", log_path, state.value)
            return FileScanResult(log_path, state, start, start)

        logger.info("%s: %s, scanning bytes %d-%d", log_path, state.value, start, size)
        text = read_range(log_path, start, size)

        alerts = []
        for keyword in self.keywords:
            if not find_keyword(text, keyword):
                continue
            alert = AlertEvent(
                keyword=keyword,
                log_path=log_path,
                timestamp=self._clock(),
                hostname=self.hostname,
                excerpt=context_excerpt(text, keyword, self.context_lines, self.excerpt_max_lines),
            )
            self._audit.append(alert.audit_line)
            self._notifier.send_alert(alert)
            logger.warning("Keyword '%s' found in %s", keyword, log_path)
            alerts.append(alert)

        self._store.save(log_path, LogState(identity, size))
        return FileScanResult(log_path, ScanState.SCANNED, start, size, alerts)

    def run(self, log_paths: Sequence[str]) -> MonitorReport:
        """Scan every configured file. A file that cannot be read is skipped."""
        report = MonitorReport()
        self._audit.event("Starting log monitoring")
        for log_path in log_paths:
            if not os.path.isfile(log_path):
                logger.warning("Skipping %s: not a regular file", log_path)
                report.skipped.append(log_path)
                continue
            try:
                report.results.append(self.scan_file(log_path))
            except OSError as e:
                logger.warning("Skipping %s: %s", log_path, e)
                report.skipped.append(log_path)
        self._audit.event("Completed log monitoring cycle")
        return report
