"""Monitor command: one incremental keyword scan over the watched logs."""

from __future__ import annotations

from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from hostkeeper.config.settings import HostkeeperConfig
from hostkeeper.core.results import AlreadyRunning
from hostkeeper.monitor.models import MonitorReport
from hostkeeper.monitor.scanner import LogMonitor
from hostkeeper.monitor.state import StateStore
from hostkeeper.notify.dispatcher import Notifier
from hostkeeper.runtime.audit import AuditLog
from hostkeeper.runtime.lock import RunLock
from hostkeeper.runtime.logging_setup import configure_logging

console = Console()


def monitor(
    log_file: Optional[List[str]] = typer.Option(
        None, "--log-file", "-l", help="Log file to watch (repeatable). Env: HOSTKEEPER_LOG_FILES"
    ),
    keyword: Optional[List[str]] = typer.Option(
        None, "--keyword", "-k", help="Alert keyword (repeatable). Env: HOSTKEEPER_KEYWORDS"
    ),
    state_dir: str = typer.Option("", help="Checkpoint directory. Env: HOSTKEEPER_STATE_DIR"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Scan new log content for keywords and send alerts."""
    configure_logging(verbose)
    config = HostkeeperConfig.from_env().with_overrides(
        log_files=log_file,
        keywords=keyword,
        state_dir=state_dir,
    )
    errors = config.validate_monitor()
    if errors:
        for err in errors:
            console.print(f"[red]Config error: {err}[/red]")
        raise typer.Exit(1)

    try:
        with RunLock(config.lock_dir, "monitor"):
            watcher = LogMonitor(
                config,
                store=StateStore(config.state_dir),
                notifier=Notifier.from_config(config),
                audit=AuditLog(config.monitor_log),
            )
            report = watcher.run(config.log_files)
    except AlreadyRunning as e:
        console.print(f"[red]{e.kind.value}: {e.message}[/red]")
        raise typer.Exit(2)
    except OSError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    _print_report(report)


def _print_report(report: MonitorReport) -> None:
    table = Table(title="Log Monitor Cycle")
    table.add_column("Log", style="cyan")
    table.add_column("State")
    table.add_column("Bytes", justify="right")
    table.add_column("Alerts", style="red")

    for r in report.results:
        keywords = ", ".join(a.keyword for a in r.alerts)
        table.add_row(r.log_path, r.state.value, f"{r.bytes_scanned:,}", keywords)
    for path in report.skipped:
        table.add_row(path, "[yellow]skipped[/yellow]", "-", "")

    console.print(table)
