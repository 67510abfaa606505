"""Durable per-file read checkpoints."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from hostkeeper.monitor.models import LogState

logger = logging.getLogger(__name__)

STATE_SUFFIX = ".state"


class StateStore:
    """One ``<identity> <offset>`` text record per log, keyed by base name.

    Records are owner-only (0600) and replaced atomically.
    """

    def __init__(self, state_dir: str) -> None:
        self.state_dir = Path(state_dir)

    def path_for(self, log_path: str) -> Path:
        return self.state_dir / f"{Path(log_path).name}{STATE_SUFFIX}"

    def load(self, log_path: str) -> Optional[LogState]:
        """Return the checkpoint for ``log_path``, or None if there is none."""
        p = self.path_for(log_path)
        try:
            text = p.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            return LogState.parse(text)
        except ValueError as e:
            logger.warning("Ignoring malformed state record %s: %s", p, e)
            return None

    def save(self, log_path: str, state: LogState) -> None:
        self.state_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        target = self.path_for(log_path)
        fd, tmp = tempfile.mkstemp(dir=self.state_dir, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(state.serialize())
            os.chmod(tmp, 0o600)
            os.replace(tmp, target)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def all(self) -> dict[str, LogState]:
        """Every readable record, keyed by log base name."""
        states = {}
        if not self.state_dir.is_dir():
            return states
        for p in sorted(self.state_dir.glob(f"*{STATE_SUFFIX}")):
            try:
                states[p.name[: -len(STATE_SUFFIX)]] = LogState.parse(p.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning("Ignoring state record %s: %s", p, e)
        return states
