"""Change tracking commands for sqlrev CLI."""

from typing import List, Optional

import typer
from rich.markup import escape

from sqlrev.cli.utils import (
    changes_table,
    console,
    get_vcs_instance,
    parse_metadata,
    print_change,
    print_error,
    resolve_author,
)
from sqlrev.core.classifier import classify
from sqlrev.core.synthesizer import synthesize
from sqlrev.errors import VersionControlError
from sqlrev.models import MANUAL


def classify_statement(sql: str, affected_rows: Optional[int], metadata: Optional[str]):
    """Classify a statement without recording it."""
    change = classify(sql, affected_rows, parse_metadata(metadata))
    if change is None:
        console.print("[yellow]Statement is not tracked (no database mutation)[/yellow]")
        return
    print_change(change)


def synthesize_statement(sql: str, metadata: Optional[str]):
    """Print the inverse of a statement."""
    inverse = synthesize(sql, parse_metadata(metadata))
    if inverse == MANUAL:
        console.print("[red]MANUAL[/red] [dim](no safe inverse without more metadata)[/dim]")
        return
    console.print(escape(inverse))


def track_statement(
    sql: str,
    affected_rows: Optional[int],
    metadata: Optional[str],
    connection: Optional[str],
):
    """Classify a statement and stage it for the next commit."""
    _, vcs, connection_id = get_vcs_instance(connection)
    try:
        change = vcs.track(connection_id, sql, affected_rows, parse_metadata(metadata))
    except VersionControlError as e:
        print_error(e)
        raise typer.Exit(1)

    if change is None:
        console.print("[yellow]Statement is not tracked (no database mutation)[/yellow]")
        return
    console.print(
        f"[green]✅ Staged {escape(change.description)} ({change.id[:8]})[/green]"
    )
    if change.requires_manual_rollback:
        console.print("[yellow]⚠ No automatic rollback for this change[/yellow]")


def show_pending(connection: Optional[str]):
    """List pending changes."""
    _, vcs, connection_id = get_vcs_instance(connection)
    changes = vcs.pending(connection_id)
    if not changes:
        console.print("[yellow]No pending changes[/yellow]")
        return
    console.print(changes_table(changes, f"Pending changes for '{connection_id}'"))


def commit_changes(
    message: str,
    change_ids: Optional[List[str]],
    author_name: Optional[str],
    author_email: Optional[str],
    connection: Optional[str],
):
    """Commit pending changes (all, or the selected ids or id prefixes)."""
    config, vcs, connection_id = get_vcs_instance(connection)
    author = resolve_author(config.config, author_name, author_email)

    try:
        selected = None
        if change_ids:
            selected = _match_pending_ids(vcs.pending(connection_id), change_ids)
        commit = vcs.commit(connection_id, message, author, changes=selected)
    except VersionControlError as e:
        print_error(e)
        raise typer.Exit(1)

    console.print(
        f"[green]✅ Committed {len(commit.changes)} change(s) as {commit.short_id} "
        f"on '{commit.branch_name}'[/green]"
    )


def _match_pending_ids(pending, change_ids: List[str]) -> List[str]:
    """Expand id prefixes to full pending change ids."""
    resolved = []
    for ref in change_ids:
        matches = [c.id for c in pending if c.id.startswith(ref)]
        # Unknown or ambiguous refs are passed through for the commit to reject
        resolved.append(matches[0] if len(matches) == 1 else ref)
    return resolved
