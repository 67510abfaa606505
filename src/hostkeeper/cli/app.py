"""Typer CLI application."""

import typer

from hostkeeper.cli.commands.backup import backup
from hostkeeper.cli.commands.monitor import monitor
from hostkeeper.cli.commands.status import status

app = typer.Typer(
    name="hostkeeper",
    help="Host backup archival and log keyword monitoring",
    no_args_is_help=True,
)

app.command()(backup)
app.command()(monitor)
app.command()(status)
