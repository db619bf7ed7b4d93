"""Utility functions for CLI commands."""

import json
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table as RichTable

from sqlrev.config import Config, ProjectConfig
from sqlrev.core.vcs import VersionControl
from sqlrev.models import Author, DatabaseChange

console = Console()


def get_config_with_data():
    """Get config and load data from the project directory.

    Returns:
        tuple: (config, config_data)
    """
    config = Config()
    try:
        config_data = config.load()
    except FileNotFoundError:
        console.print("[red]❌ Config file not found. Run 'sqlrev init' first.[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    return config, config_data


def get_vcs_instance(connection: Optional[str] = None):
    """Get a VersionControl instance and the connection id to use.

    Args:
        connection: Connection id (uses the active connection if None)

    Returns:
        tuple: (config, vcs, connection_id)
    """
    config, config_data = get_config_with_data()
    connection_id = connection or config_data.active_connection
    vcs = VersionControl(config.create_store(), config.executor_pool())
    return config, vcs, connection_id


def resolve_author(config_data: ProjectConfig, name: Optional[str], email: Optional[str]) -> Author:
    """Build the commit author from options, falling back to the config."""
    return Author(
        name=name or config_data.author.name,
        email=email if email is not None else config_data.author.email,
    )


def parse_metadata(metadata: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse a ``--metadata`` JSON object option."""
    if not metadata:
        return None
    try:
        data = json.loads(metadata)
    except json.JSONDecodeError as e:
        console.print(f"[red]❌ Invalid metadata JSON: {e}[/red]")
        raise typer.Exit(1)
    if not isinstance(data, dict):
        console.print("[red]❌ Metadata must be a JSON object[/red]")
        raise typer.Exit(1)
    return data


def changes_table(changes, title: str) -> RichTable:
    """Render change records as a rich table."""
    table = RichTable(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Operation", style="yellow")
    table.add_column("Target")
    table.add_column("Description")
    table.add_column("Rollback", style="magenta")

    for change in changes:
        rollback = escape(change.rollback_sql)
        if change.requires_manual_rollback:
            rollback = "[red]MANUAL[/red]"
        table.add_row(
            change.id[:8],
            change.type,
            change.operation,
            escape(change.target),
            escape(change.description),
            rollback,
        )
    return table


def print_change(change: DatabaseChange) -> None:
    """Print a single classified change."""
    console.print(f"[bold]{escape(change.description)}[/bold]")
    console.print(f"  Type: {change.type}")
    console.print(f"  Operation: {change.operation}")
    console.print(f"  Target: {escape(change.target)}")
    if change.requires_manual_rollback:
        console.print("  Rollback: [red]MANUAL[/red]")
    else:
        console.print(f"  Rollback: {escape(change.rollback_sql)}")


def print_error(error: Exception) -> None:
    """Print a sqlrev error in red with any details it carries."""
    console.print(f"[red]❌ {escape(str(error))}[/red]")
    blocking = getattr(error, "blocking_changes", None)
    if blocking:
        for change in blocking:
            console.print(f"   [red]•[/red] {escape(change.label)}")
    executed = getattr(error, "executed", None)
    if executed:
        console.print("[yellow]Statements already applied:[/yellow]")
        for sql in executed:
            console.print(f"   {escape(sql)}")
