"""Backup command: create, verify and commit one archive."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

import typer
from rich.console import Console

from hostkeeper.backup.archive import human_size
from hostkeeper.backup.pipeline import build_pipeline
from hostkeeper.config.settings import HostkeeperConfig
from hostkeeper.core.results import AlreadyRunning
from hostkeeper.runtime.lock import RunLock
from hostkeeper.runtime.logging_setup import RunLog, configure_logging

console = Console()


def backup(
    source: Optional[List[str]] = typer.Option(
        None, "--source", "-s", help="Directory to back up (repeatable). Env: HOSTKEEPER_SOURCE_DIRS"
    ),
    archive_dir: str = typer.Option("", help="Primary archive store. Env: HOSTKEEPER_ARCHIVE_DIR"),
    repo_dir: str = typer.Option("", help="Git working tree for archives. Env: HOSTKEEPER_REPO_DIR"),
    retention_days: Optional[int] = typer.Option(
        None, help="Delete archives older than this many days. Env: HOSTKEEPER_RETENTION_DAYS"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Create, verify and commit a backup archive, then prune old ones."""
    configure_logging(verbose)
    config = HostkeeperConfig.from_env().with_overrides(
        source_dirs=source,
        archive_dir=archive_dir,
        repo_dir=repo_dir,
        retention_days=retention_days,
    )
    errors = config.validate_backup()
    if errors:
        for err in errors:
            console.print(f"[red]Config error: {err}[/red]")
        raise typer.Exit(1)

    try:
        with RunLock(config.lock_dir, "backup"):
            with RunLog(config.run_log_dir, "backup", datetime.now()) as run_log:
                pipeline = build_pipeline(config, run_log_text=run_log.read_text)
                report = pipeline.run()
    except AlreadyRunning as e:
        console.print(f"[red]{e.kind.value}: {e.message}[/red]")
        raise typer.Exit(2)
    except OSError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not report.ok:
        console.print(f"[red]{report.failed_kind.value}: {report.message}[/red]")
        raise typer.Exit(report.exit_code)

    archive = report.archive
    console.print(
        f"[green]Backup completed ({human_size(archive.size_bytes)}): {archive.path}[/green]"
    )
    if report.pruned:
        console.print(f"[dim]Pruned {len(report.pruned)} expired archive(s)[/dim]")
