"""In-process repository storage."""

from typing import Dict, List, Optional

from sqlrev.infrastructure.base import RepositoryStore
from sqlrev.models import RepositoryState
from sqlrev.utils.name_validator import validate_connection_id


class InMemoryRepositoryStore(RepositoryStore):
    """Keeps serialized state in a dict; used for tests and embedding.

    State is stored as JSON text so that loaded copies never share objects
    with each other or with what was saved.
    """

    def __init__(self):
        self._states: Dict[str, str] = {}

    def load(self, connection_id: str) -> Optional[RepositoryState]:
        validate_connection_id(connection_id)
        data = self._states.get(connection_id)
        if data is None:
            return None
        return RepositoryState.model_validate_json(data)

    def save(self, connection_id: str, state: RepositoryState) -> None:
        validate_connection_id(connection_id)
        self._states[connection_id] = state.model_dump_json()

    def list_connections(self) -> List[str]:
        return sorted(self._states)
