"""Branch management commands for sqlrev CLI."""

import typer
from typing import Optional
from rich.console import Console
from rich.table import Table as RichTable

from sqlrev.cli.utils import get_vcs_instance, print_error
from sqlrev.errors import VersionControlError

app = typer.Typer(help="Branch management commands", invoke_without_command=True)
console = Console()


@app.callback()
def callback(ctx: typer.Context):
    """Show help when no subcommand is provided."""
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)


@app.command(name="list")
def list_branches(
    connection: Optional[str] = typer.Option(
        None, "--connection", "-c", help="Connection id (default: active)"
    ),
):
    """List all branches of the connection."""
    _, vcs, connection_id = get_vcs_instance(connection)
    branches = vcs.list_branches(connection_id)
    current = vcs.current_branch(connection_id)

    table = RichTable(title=f"Branches of '{connection_id}'")
    table.add_column("Name", style="cyan")
    table.add_column("Active", style="green")
    table.add_column("Head", style="yellow")
    table.add_column("Created From")
    table.add_column("Protected", style="red")

    for branch in branches:
        is_active = "✓" if branch.name == current.name else ""
        is_protected = "✓" if branch.protected else ""
        head = branch.head_commit_id[:8] if branch.head_commit_id else "-"
        table.add_row(branch.name, is_active, head, branch.created_from or "-", is_protected)

    console.print(table)


@app.command()
def create(
    name: str = typer.Argument(..., help="Name of the new branch"),
    from_commit: Optional[str] = typer.Option(
        None, "--from-commit", help="Commit on the current branch to fork from"
    ),
    switch: bool = typer.Option(
        False, "--switch", help="Switch to the new branch after creation"
    ),
    connection: Optional[str] = typer.Option(
        None, "--connection", "-c", help="Connection id (default: active)"
    ),
):
    """Create a new branch at the current head."""
    _, vcs, connection_id = get_vcs_instance(connection)
    try:
        vcs.create_branch(connection_id, name, from_commit=from_commit)
        console.print(f"[green]✅ Created branch '{name}'[/green]")

        if switch:
            vcs.checkout(connection_id, name)
            console.print(f"[green]✅ Switched to branch '{name}'[/green]")
    except VersionControlError as e:
        print_error(e)
        raise typer.Exit(1)


@app.command()
def checkout(
    name: str = typer.Argument(..., help="Branch to switch to"),
    connection: Optional[str] = typer.Option(
        None, "--connection", "-c", help="Connection id (default: active)"
    ),
):
    """Switch the current branch."""
    _, vcs, connection_id = get_vcs_instance(connection)
    try:
        vcs.checkout(connection_id, name)
    except VersionControlError as e:
        print_error(e)
        raise typer.Exit(1)
    console.print(f"[green]✅ Switched to branch '{name}'[/green]")


@app.command()
def delete(
    name: str = typer.Argument(..., help="Name of the branch to delete"),
    force: bool = typer.Option(
        False, "--force", "-f", help="Force deletion without confirmation"
    ),
    connection: Optional[str] = typer.Option(
        None, "--connection", "-c", help="Connection id (default: active)"
    ),
):
    """Delete a branch. Its commits are kept."""
    _, vcs, connection_id = get_vcs_instance(connection)

    # Confirmation
    if not force:
        confirm = typer.confirm(f"Are you sure you want to delete branch '{name}'?")
        if not confirm:
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    try:
        vcs.delete_branch(connection_id, name)
    except VersionControlError as e:
        print_error(e)
        raise typer.Exit(1)
    console.print(f"[green]✅ Deleted branch '{name}'[/green]")


@app.command()
def rename(
    old_name: str = typer.Argument(..., help="Current branch name"),
    new_name: str = typer.Argument(..., help="New branch name"),
    connection: Optional[str] = typer.Option(
        None, "--connection", "-c", help="Connection id (default: active)"
    ),
):
    """Rename a branch."""
    _, vcs, connection_id = get_vcs_instance(connection)
    try:
        vcs.rename_branch(connection_id, old_name, new_name)
    except VersionControlError as e:
        print_error(e)
        raise typer.Exit(1)
    console.print(f"[green]✅ Renamed branch '{old_name}' to '{new_name}'[/green]")
