"""History, revert and rollback commands for sqlrev CLI."""

from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table as RichTable

from sqlrev.cli.utils import (
    changes_table,
    console,
    get_vcs_instance,
    print_error,
    resolve_author,
)
from sqlrev.errors import VersionControlError
from sqlrev.models import RevertOutcome


def show_log(max_count: Optional[int], author: Optional[str], connection: Optional[str]):
    """Show commit history of the current branch."""
    _, vcs, connection_id = get_vcs_instance(connection)
    commits = vcs.history(connection_id, max_count=max_count, author=author)
    if not commits:
        console.print("[yellow]No commits yet[/yellow]")
        return

    branch = vcs.current_branch(connection_id)
    table = RichTable(title=f"History of '{branch.name}' ({connection_id})")
    table.add_column("Rev", style="cyan", justify="right")
    table.add_column("Commit", style="yellow")
    table.add_column("Message")
    table.add_column("Author", style="green")
    table.add_column("Changes", justify="right")
    table.add_column("Date", style="dim")

    for index, commit in enumerate(commits):
        table.add_row(
            str(-index),
            commit.short_id,
            escape(commit.message),
            escape(commit.author.name),
            str(len(commit.changes)),
            commit.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
        )
    console.print(table)


def _print_outcome(outcome: RevertOutcome) -> None:
    if outcome.dry_run:
        console.print("[bold]Dry run - statements that would be executed:[/bold]")
        for sql in outcome.statements:
            console.print(f"  {escape(sql)}")
        return
    console.print(
        f"[green]✅ Executed {len(outcome.statements)} statement(s); "
        f"recorded commit {outcome.commit.short_id}[/green]"
    )


def revert_commit(
    commit_id: str,
    dry_run: bool,
    author_name: Optional[str],
    connection: Optional[str],
):
    """Revert a single commit."""
    config, vcs, connection_id = get_vcs_instance(connection)
    author = resolve_author(config.config, author_name, None)

    try:
        outcome = vcs.revert_commit(connection_id, commit_id, author, dry_run=dry_run)
    except VersionControlError as e:
        print_error(e)
        raise typer.Exit(1)
    _print_outcome(outcome)


def rollback(
    revision: Optional[int],
    commit_id: Optional[str],
    dry_run: bool,
    author_name: Optional[str],
    connection: Optional[str],
):
    """Roll back to a revision number or commit id."""
    if revision is None and commit_id is None:
        console.print("[red]❌ Specify --revision or --commit[/red]")
        raise typer.Exit(1)

    config, vcs, connection_id = get_vcs_instance(connection)
    author = resolve_author(config.config, author_name, None)
    target = commit_id if commit_id is not None else revision

    try:
        outcome = vcs.rollback_to_revision(connection_id, target, author, dry_run=dry_run)
    except VersionControlError as e:
        print_error(e)
        raise typer.Exit(1)

    console.print(
        f"Target: {outcome.target.short_id} {escape(outcome.target.message)}"
    )
    _print_outcome(outcome)


def show_diff(from_revision: int, to_revision: int, connection: Optional[str]):
    """Show the changes between two revisions and head."""
    _, vcs, connection_id = get_vcs_instance(connection)
    try:
        result = vcs.diff(connection_id, from_revision, to_revision)
    except VersionControlError as e:
        print_error(e)
        raise typer.Exit(1)

    for side in (result.from_side, result.to_side):
        title = f"Revision {side.revision} ({side.commit.short_id}): changes since"
        if side.changes:
            console.print(changes_table(side.changes, title))
        else:
            console.print(f"[dim]Revision {side.revision} is head; no changes since[/dim]")

    between = result.changes_between
    console.print(f"[bold]{len(between)} change(s) differ between the two revisions[/bold]")
