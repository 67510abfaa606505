"""Retention sweep over the primary archive store."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from pathlib import Path

from hostkeeper.backup.archive import ARCHIVE_PREFIX, ARCHIVE_SUFFIX
from hostkeeper.backup.models import ArchiveRecord, Verification

logger = logging.getLogger(__name__)


def _archives(archive_dir: str) -> list[Path]:
    directory = Path(archive_dir)
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.glob(f"*{ARCHIVE_SUFFIX}") if p.is_file())


def list_archives(archive_dir: str) -> list[ArchiveRecord]:
    """Archives currently in the primary store, oldest name first."""
    records = []
    for p in _archives(archive_dir):
        st = p.stat()
        stem = p.name[len(ARCHIVE_PREFIX):-len(ARCHIVE_SUFFIX)] if p.name.startswith(ARCHIVE_PREFIX) else p.name
        records.append(ArchiveRecord(
            timestamp=stem,
            path=str(p),
            size_bytes=st.st_size,
            verification=Verification.UNVERIFIED,
            modified=datetime.fromtimestamp(st.st_mtime),
        ))
    return records


def sweep(archive_dir: str, retention_days: int, now: datetime) -> list[str]:
    """Delete archives last modified more than ``retention_days`` ago.

    Returns the deleted paths. Failures are logged and never raised.
    Copies already committed to the repository are kept in history.
    """
    cutoff = now - timedelta(days=retention_days)
    deleted = []
    for p in _archives(archive_dir):
        try:
            modified = datetime.fromtimestamp(p.stat().st_mtime)
            if modified >= cutoff:
                continue
            p.unlink()
        except OSError as e:
            logger.warning("Retention: could not remove %s: %s", p, e)
            continue
        logger.info("Retention: removed %s (modified %s)", p.name, modified.strftime("%Y-%m-%d"))
        deleted.append(str(p))
    return deleted
