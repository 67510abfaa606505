"""Exclusive per-pipeline run lock."""

from __future__ import annotations

import fcntl
import logging
import os
from pathlib import Path
from typing import Optional

from hostkeeper.core.results import AlreadyRunning

logger = logging.getLogger(__name__)


class RunLock:
    """Non-blocking flock on ``<lock_dir>/hostkeeper-<pipeline>.lock``.

    Raises AlreadyRunning on entry if another process holds it. The lock
    is released when the context exits or the process dies.
    """

    def __init__(self, lock_dir: str, pipeline: str) -> None:
        self.pipeline = pipeline
        self.path = Path(lock_dir) / f"hostkeeper-{pipeline}.lock"
        self._fd: Optional[int] = None

    def acquire(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o600)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            raise AlreadyRunning(self.pipeline, str(self.path))
        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode())
        self._fd = fd
        logger.debug("Acquired lock %s", self.path)

    def release(self) -> None:
        if self._fd is None:
            return
        fcntl.flock(self._fd, fcntl.LOCK_UN)
        os.close(self._fd)
        self._fd = None
        logger.debug("Released lock %s", self.path)

    @property
    def held(self) -> bool:
        return self._fd is not None

    def __enter__(self) -> RunLock:
        self.acquire()
        return self

    def __exit__(self, *args: object) -> None:
        self.release()
