"""Append-only monitor audit log."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)


class AuditLog:
    """One line per monitor event, appended to a text file.

    A write that fails is logged and dropped; it never interrupts the scan.
    """

    def __init__(self, path: str, clock: Callable[[], datetime] = datetime.now) -> None:
        self.path = Path(path)
        self._clock = clock

    def append(self, line: str) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line.rstrip("\n") + "\n")
        except OSError as e:
            logger.warning("Could not write audit log %s: %s", self.path, e)
            return False
        return True

    def event(self, message: str) -> bool:
        """Append ``message`` prefixed with the current time."""
        return self.append(f"{self._clock().strftime('%Y-%m-%d %H:%M:%S')} - {message}")
