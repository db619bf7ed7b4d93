"""Pending changeset storage for sqlrev."""

import logging
from typing import Any, Dict, List, Optional

from sqlrev.core.classifier import classify
from sqlrev.managers.base import BaseManager
from sqlrev.models import DatabaseChange

logger = logging.getLogger(__name__)


class PendingChangeStore(BaseManager):
    """Stages uncommitted changes for a connection.

    Pending changes are only removed by a successful commit.
    """

    def pending(self) -> List[DatabaseChange]:
        """Get the pending changes in staging order.

        Returns:
            List of DatabaseChange objects, re-read from the store
        """
        return self.load_state().pending

    def stage(self, change: DatabaseChange) -> DatabaseChange:
        """Append a change to the pending set.

        Args:
            change: Classified change to stage

        Returns:
            The staged change
        """
        state = self.load_state()

        # Check if change already exists
        if any(c.id == change.id for c in state.pending):
            logger.debug(f"Change {change.id} already pending for {self.connection_id}")
            return change

        state.pending.append(change)
        self.save_state(state)
        logger.info(
            f"Staged {change.operation} on {change.target} for {self.connection_id} "
            f"({len(state.pending)} pending)"
        )
        return change

    def track(
        self,
        query: str,
        affected_rows: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[DatabaseChange]:
        """Classify an executed statement and stage it.

        Args:
            query: Executed SQL text
            affected_rows: Row count reported by the database
            metadata: Captured state for rollback synthesis

        Returns:
            The staged change, or None when the statement is not tracked
        """
        change = classify(query, affected_rows, metadata)
        if change is None:
            logger.debug(f"Statement not tracked: {query[:80]}")
            return None
        return self.stage(change)
