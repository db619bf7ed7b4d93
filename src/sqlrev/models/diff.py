"""Revision diff models for sqlrev."""

from typing import List, Optional
from pydantic import Field

from sqlrev.models.base import SqlRevBaseModel
from sqlrev.models.change import DatabaseChange
from sqlrev.models.commit import Commit


class RevisionSide(SqlRevBaseModel):
    """One end of a revision diff.

    ``changes`` holds the changes made after ``revision`` up to head,
    newest first, which is exactly what rolling back to it would undo.
    """

    revision: int = Field(description="Relative revision number (0 = head)")
    commit: Optional[Commit] = Field(default=None, description="Resolved commit")
    changes: List[DatabaseChange] = Field(default_factory=list)


class RevisionDiff(SqlRevBaseModel):
    """Comparison of two revisions on the current branch."""

    from_side: RevisionSide = Field(alias="from")
    to_side: RevisionSide = Field(alias="to")

    @property
    def changes_between(self) -> List[DatabaseChange]:
        """Changes present on exactly one side."""
        from_ids = {change.id for change in self.from_side.changes}
        to_ids = {change.id for change in self.to_side.changes}
        only_from = [c for c in self.from_side.changes if c.id not in to_ids]
        only_to = [c for c in self.to_side.changes if c.id not in from_ids]
        return only_from + only_to

    def summary(self) -> dict:
        """Change ids present only in ``from`` or only in ``to``."""
        from_ids = [change.id for change in self.from_side.changes]
        to_ids = [change.id for change in self.to_side.changes]
        return {
            "only_in_from": [i for i in from_ids if i not in set(to_ids)],
            "only_in_to": [i for i in to_ids if i not in set(from_ids)],
        }
