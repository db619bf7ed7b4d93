"""Revision comparison for sqlrev."""

import logging

from sqlrev.errors import InsufficientHistoryError
from sqlrev.managers.base import BaseManager
from sqlrev.managers.revision import branch_history, changes_after, revision_index
from sqlrev.models import RevisionDiff, RevisionSide

logger = logging.getLogger(__name__)


class DiffManager(BaseManager):
    """Compares two revisions of the current branch."""

    def diff(self, from_revision: int = 0, to_revision: int = -1) -> RevisionDiff:
        """Compare two revisions.

        Each side lists the changes between that revision and head, which is
        what ``rollback_to_revision`` would undo for it. Revisions count along
        the current branch, so commits only reachable from other branches do
        not count towards the two-commit minimum.

        Args:
            from_revision: First revision (0 = head)
            to_revision: Second revision

        Returns:
            RevisionDiff with ``from`` and ``to`` sides

        Raises:
            InsufficientHistoryError: If the current branch has fewer than two commits
            RevisionNotFoundError: If either revision is out of range
        """
        history = branch_history(self.load_state())
        if len(history) < 2:
            raise InsufficientHistoryError(
                f"Diff needs at least two commits; branch has {len(history)}"
            )

        sides = []
        for revision in (from_revision, to_revision):
            index = revision_index(history, revision)
            sides.append(
                RevisionSide(
                    revision=revision,
                    commit=history[index],
                    changes=changes_after(history, index),
                )
            )

        logger.debug(
            f"Diff {from_revision}..{to_revision} on {self.connection_id}: "
            f"{len(sides[0].changes)} vs {len(sides[1].changes)} change(s)"
        )
        return RevisionDiff(from_side=sides[0], to_side=sides[1])
