"""Main CLI entry point for sqlrev."""

import typer
from typing import List, Optional
from pathlib import Path

# Import command groups
from sqlrev.cli.commands import branch

app = typer.Typer(
    name="sqlrev",
    help="sqlrev - Version control for database mutations",
    add_completion=False,
    invoke_without_command=True,
)

CONNECTION_HELP = "Connection id (default: active connection)"
METADATA_HELP = "Captured state for rollback synthesis, as a JSON object"


@app.callback()
def main(ctx: typer.Context):
    """
    sqlrev - Version control for database mutations
    """
    if ctx.invoked_subcommand is None:
        # No subcommand was invoked, show help
        print(ctx.get_help())
        raise typer.Exit(0)


# Add command groups
app.add_typer(branch.app, name="branch", help="Branch management commands")


@app.command()
def init(
    path: Optional[Path] = typer.Argument(
        None, help="Directory to initialize project in (default: current directory)"
    ),
    connection: str = typer.Option(
        "default", "--connection", "-c", help="Initial connection id"
    ),
    database: Optional[str] = typer.Option(
        None, "--database", "-d", help="SQLite database file for the connection"
    ),
    storage: str = typer.Option(
        "sqlite", "--storage", "-s", help="Repository storage (sqlite, json, memory)"
    ),
):
    """Initialize a new sqlrev project."""
    from sqlrev.config import Config

    project_path = path or Path.cwd()

    try:
        Config(project_path).init_project(
            connection_id=connection, database_path=database, storage=storage
        )
        typer.secho(
            f"✅ Initialized sqlrev project in {project_path}", fg=typer.colors.GREEN
        )
        typer.secho(f"   Connection: {connection}, Storage: {storage}", fg=typer.colors.CYAN)
    except FileExistsError:
        typer.secho(f"❌ Project already exists in {project_path}", fg=typer.colors.RED)
        raise typer.Exit(1)
    except ValueError as e:
        typer.secho(f"❌ {e}", fg=typer.colors.RED)
        raise typer.Exit(1)


@app.command()
def version():
    """Show sqlrev version."""
    from sqlrev import __version__

    typer.echo(f"sqlrev version {__version__}")


@app.command()
def status(
    connection: Optional[str] = typer.Option(None, "--connection", "-c", help=CONNECTION_HELP),
):
    """Show project configuration and repository status."""
    from sqlrev.cli.utils import console, get_vcs_instance

    config, vcs, connection_id = get_vcs_instance(connection)
    config_data = config.config

    console.print("\n[bold]sqlrev Status[/bold]")
    console.print(f"Project: {config.project_dir}")
    console.print(f"Storage: {config_data.storage}")
    console.print(f"Connection: {connection_id}")

    branch_info = vcs.current_branch(connection_id)
    console.print(f"Branch: {branch_info.name}")
    console.print(
        f"Head: {branch_info.head_commit_id[:8] if branch_info.head_commit_id else '[dim]no commits[/dim]'}"
    )
    console.print(f"Pending changes: {len(vcs.pending(connection_id))}")


@app.command()
def classify(
    sql: str = typer.Argument(..., help="SQL statement to classify"),
    affected_rows: Optional[int] = typer.Option(None, "--affected-rows", help="Rows affected"),
    metadata: Optional[str] = typer.Option(None, "--metadata", "-m", help=METADATA_HELP),
):
    """Classify a statement without recording it."""
    from sqlrev.cli.commands.changes import classify_statement

    classify_statement(sql, affected_rows, metadata)


@app.command()
def synthesize(
    sql: str = typer.Argument(..., help="SQL statement to invert"),
    metadata: Optional[str] = typer.Option(None, "--metadata", "-m", help=METADATA_HELP),
):
    """Print the inverse of a statement, or MANUAL."""
    from sqlrev.cli.commands.changes import synthesize_statement

    synthesize_statement(sql, metadata)


@app.command()
def track(
    sql: str = typer.Argument(..., help="Executed SQL statement"),
    affected_rows: Optional[int] = typer.Option(None, "--affected-rows", help="Rows affected"),
    metadata: Optional[str] = typer.Option(None, "--metadata", "-m", help=METADATA_HELP),
    connection: Optional[str] = typer.Option(None, "--connection", "-c", help=CONNECTION_HELP),
):
    """Classify an executed statement and stage it."""
    from sqlrev.cli.commands.changes import track_statement

    track_statement(sql, affected_rows, metadata, connection)


@app.command()
def pending(
    connection: Optional[str] = typer.Option(None, "--connection", "-c", help=CONNECTION_HELP),
):
    """List pending changes."""
    from sqlrev.cli.commands.changes import show_pending

    show_pending(connection)


@app.command()
def commit(
    message: str = typer.Option(..., "--message", "-m", help="Commit message"),
    change: Optional[List[str]] = typer.Option(
        None, "--change", help="Pending change id to include (repeatable; default: all)"
    ),
    author: Optional[str] = typer.Option(None, "--author", help="Author name"),
    email: Optional[str] = typer.Option(None, "--email", help="Author email"),
    connection: Optional[str] = typer.Option(None, "--connection", "-c", help=CONNECTION_HELP),
):
    """Commit pending changes to the current branch."""
    from sqlrev.cli.commands.changes import commit_changes

    commit_changes(message, change, author, email, connection)


@app.command()
def log(
    max_count: Optional[int] = typer.Option(None, "--max-count", "-n", help="Limit number of commits"),
    author: Optional[str] = typer.Option(None, "--author", help="Only commits by this author"),
    connection: Optional[str] = typer.Option(None, "--connection", "-c", help=CONNECTION_HELP),
):
    """Show commit history of the current branch."""
    from sqlrev.cli.commands.history import show_log

    show_log(max_count, author, connection)


@app.command()
def revert(
    commit_id: str = typer.Argument(..., help="Commit id or unique prefix"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show statements without executing"),
    author: Optional[str] = typer.Option(None, "--author", help="Author name"),
    connection: Optional[str] = typer.Option(None, "--connection", "-c", help=CONNECTION_HELP),
):
    """Undo a single commit with a new commit."""
    from sqlrev.cli.commands.history import revert_commit

    revert_commit(commit_id, dry_run, author, connection)


@app.command()
def rollback(
    revision: Optional[int] = typer.Option(
        None, "--revision", "-r", help="Target revision (0 = head, -1 = previous, ...)"
    ),
    commit_id: Optional[str] = typer.Option(None, "--commit", help="Target commit id"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show statements without executing"),
    author: Optional[str] = typer.Option(None, "--author", help="Author name"),
    connection: Optional[str] = typer.Option(None, "--connection", "-c", help=CONNECTION_HELP),
):
    """Undo every commit after a target revision."""
    from sqlrev.cli.commands.history import rollback as rollback_to

    rollback_to(revision, commit_id, dry_run, author, connection)


@app.command()
def diff(
    from_revision: int = typer.Option(0, "--from", help="First revision"),
    to_revision: int = typer.Option(-1, "--to", help="Second revision"),
    connection: Optional[str] = typer.Option(None, "--connection", "-c", help=CONNECTION_HELP),
):
    """Compare two revisions of the current branch."""
    from sqlrev.cli.commands.history import show_diff

    show_diff(from_revision, to_revision, connection)


if __name__ == "__main__":
    app()
