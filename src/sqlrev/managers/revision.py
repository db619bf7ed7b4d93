"""Revision addressing for sqlrev.

Revision 0 is the head of the current branch and revision -k is the commit k
steps before it, following ``parent_id`` links.
"""

from typing import Dict, List, Optional

from sqlrev.errors import (
    CommitNotFoundError,
    RevisionNotFoundError,
    UnreachableRevisionError,
)
from sqlrev.managers.base import BaseManager
from sqlrev.models import Commit, DatabaseChange, RepositoryState


MIN_PREFIX_LENGTH = 4


def branch_history(state: RepositoryState, branch_name: Optional[str] = None) -> List[Commit]:
    """Walk a branch from its head back to the root commit.

    Args:
        state: Repository state
        branch_name: Branch to walk (defaults to the current branch)

    Returns:
        Commits newest first
    """
    branch = state.get_branch(branch_name or state.current_branch)
    if branch is None:
        return []

    by_id: Dict[str, Commit] = {commit.id: commit for commit in state.commits}
    history = []
    seen = set()
    commit_id = branch.head_commit_id
    while commit_id and commit_id not in seen:
        commit = by_id.get(commit_id)
        if commit is None:
            break
        seen.add(commit_id)
        history.append(commit)
        commit_id = commit.parent_id
    return history


def revision_index(history: List[Commit], revision: int) -> int:
    """Map a relative revision number to a position in a newest-first history.

    Raises:
        RevisionNotFoundError: If the revision is positive or beyond the root
    """
    if revision > 0:
        raise RevisionNotFoundError(
            f"Revision {revision} is invalid; use 0 for head or a negative number"
        )
    index = -revision
    if index >= len(history):
        raise RevisionNotFoundError(
            f"Revision {revision} not found; branch has {len(history)} commit(s)"
        )
    return index


def changes_after(history: List[Commit], index: int) -> List[DatabaseChange]:
    """Changes made after ``history[index]`` up to head, newest first."""
    return [c for commit in history[:index] for c in reversed(commit.changes)]


def find_commit(state: RepositoryState, ref: str) -> Commit:
    """Look up a commit by full id or unique id prefix.

    Raises:
        CommitNotFoundError: If no commit (or more than one) matches
    """
    commit = state.get_commit(ref)
    if commit is not None:
        return commit

    if ref and len(ref) >= MIN_PREFIX_LENGTH:
        matches = [c for c in state.commits if c.id.startswith(ref)]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise CommitNotFoundError(f"Commit id '{ref}' is ambiguous")
    raise CommitNotFoundError(f"Commit '{ref}' not found")


class RevisionNavigator(BaseManager):
    """Resolves relative revision numbers on the current branch."""

    def history(self) -> List[Commit]:
        """Commits of the current branch, newest first."""
        return branch_history(self.load_state())

    def resolve(self, revision: int) -> Commit:
        """Resolve a relative revision number to a commit.

        Args:
            revision: 0 for head, -k for the k-th commit before head

        Returns:
            Resolved Commit

        Raises:
            RevisionNotFoundError: If the revision is positive or beyond the root
        """
        history = self.history()
        return history[revision_index(history, revision)]

    def index_of(self, commit_ref: str) -> int:
        """Position of a commit in the current branch's newest-first history.

        Raises:
            CommitNotFoundError: If the commit does not exist
            UnreachableRevisionError: If the commit is not on the current branch
        """
        state = self.load_state()
        commit = find_commit(state, commit_ref)
        for index, candidate in enumerate(branch_history(state)):
            if candidate.id == commit.id:
                return index
        raise UnreachableRevisionError(
            f"Commit {commit.short_id} is not reachable from the head of "
            f"branch '{state.current_branch}'"
        )

    def revision_of(self, commit_ref: str) -> int:
        """Relative revision number of a commit on the current branch."""
        return -self.index_of(commit_ref)
