"""Process logging and per-run log capture."""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    """Send log records to stdout in the standard format."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


class RunLog:
    """Captures all log output of one run into a timestamped file.

    The whole file is later included in the failure notification.
    """

    def __init__(self, log_dir: str, prefix: str, started: datetime) -> None:
        self.path = Path(log_dir) / f"{prefix}_{started.strftime('%Y%m%d-%H%M%S')}.log"
        self._handler: Optional[logging.FileHandler] = None
        self.opened = False

    def __enter__(self) -> RunLog:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handler = logging.FileHandler(self.path, encoding="utf-8")
            self.opened = True
        except OSError as e:
            # The run goes ahead; the failure email falls back to a summary
            logger.warning("Run log %s unavailable: %s", self.path, e)
            return self
        self._handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root = logging.getLogger()
        root.addHandler(self._handler)
        if root.level > logging.INFO:
            root.setLevel(logging.INFO)
        return self

    def read_text(self) -> str:
        if not self.opened:
            return ""
        if self._handler is not None:
            self._handler.flush()
        try:
            return self.path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            return ""

    def __exit__(self, *args: object) -> None:
        if self._handler is not None:
            logging.getLogger().removeHandler(self._handler)
            self._handler.close()
            self._handler = None
