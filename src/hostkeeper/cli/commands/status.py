"""Status command: show checkpoints, archives and commit history."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from hostkeeper.backup.archive import human_size
from hostkeeper.backup.retention import list_archives
from hostkeeper.backup.vcs import GitRepo
from hostkeeper.config.settings import HostkeeperConfig
from hostkeeper.monitor.state import StateStore

console = Console()


def status(
    commits: int = typer.Option(5, help="Number of recent commits to show"),
) -> None:
    """Show monitor checkpoints, stored archives and recent backup commits."""
    config = HostkeeperConfig.from_env()
    try:
        _show_status(config, commits)
    except OSError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _show_status(config: HostkeeperConfig, commits: int) -> None:
    states = StateStore(config.state_dir).all()
    st = Table(title=f"Monitor Checkpoints ({config.state_dir})")
    st.add_column("Log", style="cyan")
    st.add_column("Identity")
    st.add_column("Offset", justify="right")
    for name, state in states.items():
        st.add_row(name, state.identity, f"{state.offset:,}")
    if not states:
        st.add_row("[dim]none[/dim]", "", "")
    console.print(st)

    archives = list_archives(config.archive_dir)
    at = Table(title=f"Archives ({config.archive_dir})")
    at.add_column("Archive", style="cyan")
    at.add_column("Modified")
    at.add_column("Size", justify="right")
    for record in archives:
        modified = record.modified.strftime("%Y-%m-%d %H:%M") if record.modified else ""
        at.add_row(record.timestamp, modified, human_size(record.size_bytes))
    if not archives:
        at.add_row("[dim]none[/dim]", "", "")
    console.print(at)

    history = GitRepo(config.repo_dir).log(commits)
    if history:
        console.print()
        console.print("[bold]Recent backup commits[/bold]")
        for line in history:
            console.print(f"  {line}")
