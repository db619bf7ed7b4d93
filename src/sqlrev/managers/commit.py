"""Commit creation and history for sqlrev."""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlrev.errors import CommitValidationError
from sqlrev.managers.base import BaseManager
from sqlrev.managers.revision import branch_history, find_commit
from sqlrev.models import Author, Commit, DatabaseChange

logger = logging.getLogger(__name__)


AuthorLike = Union[Author, Dict[str, Any]]


def coerce_author(author: AuthorLike) -> Author:
    """Accept an Author or a plain mapping such as ``{"name": ..., "email": ...}``."""
    if isinstance(author, Author):
        return author
    if not isinstance(author, dict) or not str(author.get("name") or "").strip():
        raise CommitValidationError("Commit author must have a name")
    return Author.model_validate(author)


class CommitManager(BaseManager):
    """Moves pending changes into commits and reads branch history."""

    def commit(
        self,
        message: str,
        author: AuthorLike,
        changes: Optional[Sequence[Union[DatabaseChange, str]]] = None,
        snapshot: Optional[Dict[str, Any]] = None,
    ) -> Commit:
        """Commit pending changes to the current branch.

        Args:
            message: Commit message
            author: Commit author
            changes: Subset of pending changes (objects or ids); all pending if None
            snapshot: Optional point-in-time snapshot stored with the commit

        Returns:
            The new Commit

        Raises:
            CommitValidationError: If the message is empty, nothing would be
                committed, or a requested change is not pending
        """
        if not message or not message.strip():
            raise CommitValidationError("Commit message cannot be empty")
        author = coerce_author(author)

        state = self.load_state()

        if changes is None:
            selected = list(state.pending)
        else:
            wanted = [c.id if isinstance(c, DatabaseChange) else c for c in changes]
            pending_ids = {c.id for c in state.pending}
            missing = [change_id for change_id in wanted if change_id not in pending_ids]
            if missing:
                raise CommitValidationError(
                    f"Changes are not pending: {', '.join(missing)}"
                )
            wanted_ids = set(wanted)
            selected = [c for c in state.pending if c.id in wanted_ids]

        if not selected:
            raise CommitValidationError("No changes to commit")

        branch = state.branches[state.current_branch]
        commit = Commit(
            connection_id=self.connection_id,
            message=message.strip(),
            author=author,
            changes=selected,
            snapshot=snapshot,
            branch_name=branch.name,
            parent_id=branch.head_commit_id,
        )

        committed_ids = {c.id for c in selected}
        state.commits.append(commit)
        branch.head_commit_id = commit.id
        state.pending = [c for c in state.pending if c.id not in committed_ids]
        self.save_state(state)

        logger.info(
            f"Created commit {commit.short_id} on {branch.name} with "
            f"{len(selected)} change(s); {len(state.pending)} still pending"
        )
        return commit

    def history(
        self, max_count: Optional[int] = None, author: Optional[str] = None
    ) -> List[Commit]:
        """Get commits of the current branch, newest first.

        Args:
            max_count: Maximum number of commits to return
            author: Only include commits whose author name or email matches

        Returns:
            List of Commit objects
        """
        commits = branch_history(self.load_state())
        if author:
            commits = [
                c for c in commits if author in (c.author.name, c.author.email)
            ]
        if max_count is not None:
            commits = commits[:max(max_count, 0)]
        return commits

    def get_commit(self, commit_id: str) -> Commit:
        """Get a commit by id or unique id prefix.

        Raises:
            CommitNotFoundError: If the commit does not exist
        """
        return find_commit(self.load_state(), commit_id)
