"""Repository persistence interface for sqlrev."""

from abc import ABC, abstractmethod
from typing import List, Optional

from sqlrev.models import RepositoryState


class RepositoryStore(ABC):
    """Durable storage of repository state keyed by connection id.

    ``save`` replaces whatever was stored for the connection (last write
    wins). ``load`` always returns a fresh copy, so callers can mutate the
    result freely and only persist it with ``save``.
    """

    @abstractmethod
    def load(self, connection_id: str) -> Optional[RepositoryState]:
        """Load the stored state for a connection.

        Args:
            connection_id: Connection identifier

        Returns:
            RepositoryState, or None if nothing has been saved yet
        """

    @abstractmethod
    def save(self, connection_id: str, state: RepositoryState) -> None:
        """Replace the stored state for a connection.

        Args:
            connection_id: Connection identifier
            state: Complete repository state
        """

    @abstractmethod
    def list_connections(self) -> List[str]:
        """List connection ids that have stored state."""

    def close(self) -> None:
        """Release any held resources."""
