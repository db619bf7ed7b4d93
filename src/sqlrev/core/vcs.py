"""Unified version control interface for sqlrev."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlrev.infrastructure.base import RepositoryStore
from sqlrev.managers.base import ExecutorFactory, RepositoryContext
from sqlrev.managers.commit import AuthorLike
from sqlrev.models import (
    Branch,
    Commit,
    DatabaseChange,
    RevertOutcome,
    RevisionDiff,
)


class VersionControl:
    """Version control for the mutations applied to a set of databases.

    Every operation takes the connection id it applies to. State lives in
    the injected store; this object holds no per-connection caches.

    Examples:
        vc = VersionControl(InMemoryRepositoryStore())
        vc.track("orders", "CREATE TABLE orders (id INTEGER PRIMARY KEY)")
        vc.commit("orders", "create orders", {"name": "alice"})
    """

    def __init__(
        self,
        store: RepositoryStore,
        executor_factory: Optional[ExecutorFactory] = None,
    ):
        """Initialize version control.

        Args:
            store: Persistence backend for repository state
            executor_factory: Returns the executor for a connection id; needed
                to revert or roll back
        """
        self.store = store
        self.executor_factory = executor_factory

    def context(self, connection_id: str) -> RepositoryContext:
        """Manager context for one connection."""
        return RepositoryContext(
            store=self.store,
            connection_id=connection_id,
            executor_factory=self.executor_factory,
        )

    # Pending changes

    def stage(self, connection_id: str, change: DatabaseChange) -> DatabaseChange:
        return self.context(connection_id).pending.stage(change)

    def pending(self, connection_id: str) -> List[DatabaseChange]:
        return self.context(connection_id).pending.pending()

    def track(
        self,
        connection_id: str,
        query: str,
        affected_rows: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[DatabaseChange]:
        """Classify an executed statement and stage it if it is a mutation."""
        return self.context(connection_id).pending.track(query, affected_rows, metadata)

    # Commits

    def commit(
        self,
        connection_id: str,
        message: str,
        author: AuthorLike,
        changes: Optional[Sequence[Union[DatabaseChange, str]]] = None,
        snapshot: Optional[Dict[str, Any]] = None,
    ) -> Commit:
        return self.context(connection_id).commits.commit(
            message, author, changes=changes, snapshot=snapshot
        )

    def history(
        self,
        connection_id: str,
        max_count: Optional[int] = None,
        author: Optional[str] = None,
    ) -> List[Commit]:
        return self.context(connection_id).commits.history(max_count, author)

    def get_commit(self, connection_id: str, commit_id: str) -> Commit:
        return self.context(connection_id).commits.get_commit(commit_id)

    # Branches

    def list_branches(self, connection_id: str) -> List[Branch]:
        return self.context(connection_id).branches.list_branches()

    def current_branch(self, connection_id: str) -> Branch:
        return self.context(connection_id).branches.current_branch()

    def create_branch(
        self, connection_id: str, name: str, from_commit: Optional[str] = None
    ) -> Branch:
        return self.context(connection_id).branches.create_branch(name, from_commit)

    def checkout(self, connection_id: str, name: str) -> Branch:
        return self.context(connection_id).branches.checkout(name)

    def delete_branch(self, connection_id: str, name: str) -> None:
        self.context(connection_id).branches.delete_branch(name)

    def rename_branch(self, connection_id: str, old_name: str, new_name: str) -> Branch:
        return self.context(connection_id).branches.rename_branch(old_name, new_name)

    # Revisions

    def resolve(self, connection_id: str, revision: int) -> Commit:
        return self.context(connection_id).revisions.resolve(revision)

    def revert_commit(
        self,
        connection_id: str,
        commit_id: str,
        author: AuthorLike,
        dry_run: bool = False,
    ) -> RevertOutcome:
        return self.context(connection_id).reverts.revert_commit(
            commit_id, author, dry_run=dry_run
        )

    def rollback_to_revision(
        self,
        connection_id: str,
        target: Union[int, str],
        author: AuthorLike,
        dry_run: bool = False,
    ) -> RevertOutcome:
        return self.context(connection_id).reverts.rollback_to_revision(
            target, author, dry_run=dry_run
        )

    def diff(
        self, connection_id: str, from_revision: int = 0, to_revision: int = -1
    ) -> RevisionDiff:
        return self.context(connection_id).diffs.diff(from_revision, to_revision)

    def close(self) -> None:
        """Release the store and any pooled executors."""
        close_all = getattr(self.executor_factory, "close_all", None)
        if close_all:
            close_all()
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def connect(
    project_dir: Optional[Path] = None,
    store: Optional[RepositoryStore] = None,
    executor_factory: Optional[ExecutorFactory] = None,
) -> VersionControl:
    """Open version control for a project.

    Args:
        project_dir: Project directory containing ``.sqlrev`` (default: cwd or SQLREV_PROJECT_DIR)
        store: Explicit store; skips reading project configuration
        executor_factory: Explicit executor factory

    Returns:
        VersionControl instance

    Examples:
        # Use the project in the current directory
        vc = connect()

        # Embed with in-memory storage
        vc = connect(store=InMemoryRepositoryStore())
    """
    if store is not None:
        return VersionControl(store, executor_factory)

    from sqlrev.config import Config

    config = Config(project_dir)
    if not config.exists:
        raise ValueError("No .sqlrev directory found. Run 'sqlrev init' first.")
    config.load()
    return VersionControl(
        config.create_store(), executor_factory or config.executor_pool()
    )
