"""Branch management for sqlrev."""

import logging
from typing import List, Optional

from sqlrev.errors import (
    BranchInUseError,
    BranchNotFoundError,
    DuplicateBranchError,
    ProtectedBranchError,
    UnreachableRevisionError,
)
from sqlrev.managers.base import BaseManager
from sqlrev.managers.revision import branch_history, find_commit
from sqlrev.models import Branch, DEFAULT_BRANCH, RepositoryState
from sqlrev.utils.name_validator import validate_branch_name

logger = logging.getLogger(__name__)


class BranchManager(BaseManager):
    """Manages the named history lines of a connection."""

    def list_branches(self) -> List[Branch]:
        """List all branches, default branch first.

        Returns:
            List of Branch objects
        """
        branches = self.load_state().branches.values()
        return sorted(branches, key=lambda b: (b.name != DEFAULT_BRANCH, b.name))

    def current_branch(self) -> Branch:
        """Get the checked-out branch."""
        state = self.load_state()
        return state.branches[state.current_branch]

    def get_branch(self, name: str) -> Branch:
        """Get a branch by name.

        Raises:
            BranchNotFoundError: If the branch does not exist
        """
        return self._require(self.load_state(), name)

    def create_branch(self, name: str, from_commit: Optional[str] = None) -> Branch:
        """Create a new branch at the current head.

        Args:
            name: Name for the new branch
            from_commit: Optional commit on the current branch to fork from

        Returns:
            Created Branch object

        Raises:
            InvalidNameError: If the branch name is invalid
            DuplicateBranchError: If the name is already taken
            CommitNotFoundError: If ``from_commit`` does not exist
            UnreachableRevisionError: If ``from_commit`` is not on the current branch
        """
        validate_branch_name(name)
        state = self.load_state()

        if name in state.branches:
            raise DuplicateBranchError(f"Branch '{name}' already exists")

        head = state.head_commit_id
        if from_commit:
            commit = find_commit(state, from_commit)
            if commit.id not in {c.id for c in branch_history(state)}:
                raise UnreachableRevisionError(
                    f"Commit {commit.short_id} is not on branch '{state.current_branch}'"
                )
            head = commit.id

        branch = Branch(name=name, head_commit_id=head, created_from=state.current_branch)
        state.branches[name] = branch
        self.save_state(state)

        logger.info(
            f"Created branch '{name}' from '{state.current_branch}' "
            f"at {head[:8] if head else 'empty history'}"
        )
        return branch

    def checkout(self, name: str) -> Branch:
        """Make a branch current. Commits are not touched.

        Raises:
            BranchNotFoundError: If the branch does not exist
        """
        state = self.load_state()
        branch = self._require(state, name)

        previous = state.current_branch
        state.current_branch = name
        self.save_state(state)

        logger.info(f"Checked out '{name}' (was '{previous}')")
        return branch

    def delete_branch(self, name: str) -> None:
        """Delete a branch pointer. Its commits stay in the repository.

        Raises:
            BranchNotFoundError: If the branch does not exist
            ProtectedBranchError: If the branch is protected
            BranchInUseError: If the branch is checked out
        """
        state = self.load_state()
        branch = self._require(state, name)

        if not branch.can_delete():
            raise ProtectedBranchError(f"Branch '{name}' is protected")
        if name == state.current_branch:
            raise BranchInUseError(f"Cannot delete the current branch '{name}'")

        del state.branches[name]
        self.save_state(state)
        logger.info(f"Deleted branch '{name}'")

    def rename_branch(self, old_name: str, new_name: str) -> Branch:
        """Rename a branch.

        Raises:
            InvalidNameError: If the new name is invalid
            BranchNotFoundError: If the branch does not exist
            ProtectedBranchError: If the branch is protected
            DuplicateBranchError: If the new name is already taken
        """
        validate_branch_name(new_name)
        state = self.load_state()
        branch = self._require(state, old_name)

        if not branch.can_delete():
            raise ProtectedBranchError(f"Branch '{old_name}' is protected")
        if new_name in state.branches:
            raise DuplicateBranchError(f"Branch '{new_name}' already exists")

        renamed = branch.model_copy(update={"name": new_name})
        del state.branches[old_name]
        state.branches[new_name] = renamed
        if state.current_branch == old_name:
            state.current_branch = new_name
        self.save_state(state)

        logger.info(f"Renamed branch '{old_name}' to '{new_name}'")
        return renamed

    def _require(self, state: RepositoryState, name: str) -> Branch:
        branch = state.get_branch(name)
        if branch is None:
            raise BranchNotFoundError(f"Branch '{name}' not found")
        return branch
