"""Per-connection repository state for sqlrev."""

from typing import Dict, List, Optional
from pydantic import Field

from sqlrev.models.base import SqlRevBaseModel
from sqlrev.models.branch import Branch, DEFAULT_BRANCH
from sqlrev.models.change import DatabaseChange
from sqlrev.models.commit import Commit


class RepositoryState(SqlRevBaseModel):
    """Everything stored for one connection: pending changes, commits and branches.

    Commits are kept in the order they were created. Each branch's history is
    the chain of ``parent_id`` links from its head, so branches share the
    commits before their fork point.
    """

    connection_id: str = Field(description="Connection identifier")
    pending: List[DatabaseChange] = Field(
        default_factory=list, description="Uncommitted changes in staging order"
    )
    commits: List[Commit] = Field(
        default_factory=list, description="All commits in creation order"
    )
    branches: Dict[str, Branch] = Field(
        default_factory=dict, description="Branches by name"
    )
    current_branch: str = Field(
        default=DEFAULT_BRANCH, description="Checked-out branch"
    )

    @classmethod
    def initial(cls, connection_id: str) -> "RepositoryState":
        """Create an empty repository with the protected default branch."""
        return cls(
            connection_id=connection_id,
            branches={DEFAULT_BRANCH: Branch(name=DEFAULT_BRANCH, protected=True)},
            current_branch=DEFAULT_BRANCH,
        )

    def get_commit(self, commit_id: str) -> Optional[Commit]:
        for commit in self.commits:
            if commit.id == commit_id:
                return commit
        return None

    def get_branch(self, name: str) -> Optional[Branch]:
        return self.branches.get(name)

    @property
    def head_commit_id(self) -> Optional[str]:
        branch = self.branches.get(self.current_branch)
        return branch.head_commit_id if branch else None
