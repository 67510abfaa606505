"""Gzip tar archive creation and integrity verification."""

from __future__ import annotations

import fnmatch
import logging
import os
import tarfile
import zlib
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from hostkeeper.backup.models import TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)

ARCHIVE_PREFIX = "backup-"
ARCHIVE_SUFFIX = ".tar.gz"


def archive_name(timestamp: str, counter: int = 0) -> str:
    """Build the archive filename: backup-YYYYMMDD-HHMMSS[-N].tar.gz"""
    suffix = f"-{counter}" if counter else ""
    return f"{ARCHIVE_PREFIX}{timestamp}{suffix}{ARCHIVE_SUFFIX}"


def unique_archive_path(archive_dir: str, now: datetime) -> tuple[str, Path]:
    """Return (timestamp, path) for a new archive that does not exist yet.

    Two runs within the same second get -1, -2, ... appended.
    """
    timestamp = now.strftime(TIMESTAMP_FORMAT)
    directory = Path(archive_dir)
    counter = 0
    while True:
        candidate = directory / archive_name(timestamp, counter)
        if not candidate.exists():
            return timestamp, candidate
        counter += 1


def human_size(num_bytes: int) -> str:
    """Render a byte count the way ``du -h`` does (4.0K, 1.2M, 3G)."""
    size = float(num_bytes)
    for unit in ("", "K", "M", "G", "T"):
        if size < 1024 or unit == "T":
            if unit == "":
                return f"{int(size)}"
            return f"{size:.1f}{unit}" if size < 10 else f"{size:.0f}{unit}"
        size /= 1024
    return f"{num_bytes}"


def is_excluded(rel_path: str, patterns: Sequence[str]) -> bool:
    """Match a member path (relative to its source root) against exclusion globs."""
    name = os.path.basename(rel_path)
    for pattern in patterns:
        if fnmatch.fnmatch(rel_path, pattern) or fnmatch.fnmatch(name, pattern):
            return True
        # "cache/*" should match a cache directory at any depth
        if "/" in pattern and fnmatch.fnmatch(rel_path, f"*/{pattern}"):
            return True
    return False


class TarArchiver:
    """Creates and verifies gzip-compressed tar archives."""

    def __init__(self, compresslevel: int = 6) -> None:
        self.compresslevel = compresslevel

    def create(
        self,
        dest: str,
        sources: Sequence[str],
        excludes: Sequence[str] = (),
    ) -> Optional[str]:
        """Write all ``sources`` into ``dest``.

        Returns None on success, or an error description. A partially
        written archive is removed on failure.
        """
        dest_path = Path(dest)
        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            with tarfile.open(dest_path, "w:gz", compresslevel=self.compresslevel) as tar:
                for source in sources:
                    root = Path(source).resolve()
                    arcroot = str(root).lstrip("/") or "."

                    def _filter(info: tarfile.TarInfo, _arcroot: str = arcroot):
                        rel = info.name[len(_arcroot):].lstrip("/")
                        if rel and is_excluded(rel, excludes):
                            logger.debug("Excluding %s", info.name)
                            return None
                        return info

                    tar.add(str(root), arcname=arcroot, recursive=True, filter=_filter)
        except (OSError, tarfile.TarError) as e:
            logger.error("Archive creation failed: %s", e)
            dest_path.unlink(missing_ok=True)
            return str(e)
        return None

    def verify(self, path: str) -> bool:
        """List every member without extracting. False if unreadable or corrupt."""
        try:
            with tarfile.open(path, "r:gz") as tar:
                count = 0
                for member in tar:
                    count += 1
                # Reading to the end checks the gzip CRC and trailer
                fileobj = tar.fileobj
                if fileobj is not None:
                    while fileobj.read(1024 * 1024):
                        pass
        except (OSError, EOFError, tarfile.TarError, zlib.error) as e:
            logger.error("Archive %s failed verification: %s", path, e)
            return False
        logger.info("Verified %s (%d members)", path, count)
        return True
