"""Narrow wrapper around external commands."""

from __future__ import annotations

import logging
import subprocess
from typing import Optional, Protocol, Sequence

from hostkeeper.core.results import CommandResult

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    def __call__(self, args: Sequence[str], cwd: Optional[str] = None) -> CommandResult: ...


class SubprocessRunner:
    """Runs a command to completion and captures its output.

    Missing executables and timeouts are reported as failed results
    rather than raised.
    """

    def __init__(self, timeout: int = 600) -> None:
        self.timeout = timeout

    def __call__(self, args: Sequence[str], cwd: Optional[str] = None) -> CommandResult:
        argv = tuple(args)
        logger.debug("Running %s (cwd=%s)", " ".join(argv), cwd)
        try:
            proc = subprocess.run(
                argv,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            return CommandResult(argv, 127, stderr=f"command not found: {e.filename or argv[0]}")
        except subprocess.TimeoutExpired:
            return CommandResult(argv, 124, stderr=f"timed out after {self.timeout}s")
        except OSError as e:
            return CommandResult(argv, 126, stderr=str(e))
        return CommandResult(argv, proc.returncode, proc.stdout, proc.stderr)
