"""JSON file repository storage."""

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from sqlrev.infrastructure.base import RepositoryStore
from sqlrev.models import RepositoryState
from sqlrev.utils.name_validator import validate_connection_id

logger = logging.getLogger(__name__)


STATE_FILENAME = "repository.json"


class JsonFileRepositoryStore(RepositoryStore):
    """Stores each connection's state at ``<root>/<connection_id>/repository.json``."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _state_path(self, connection_id: str) -> Path:
        validate_connection_id(connection_id)
        return self.root / connection_id / STATE_FILENAME

    def load(self, connection_id: str) -> Optional[RepositoryState]:
        path = self._state_path(connection_id)
        if not path.exists():
            return None
        return RepositoryState.model_validate_json(path.read_text())

    def save(self, connection_id: str, state: RepositoryState) -> None:
        path = self._state_path(connection_id)
        path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a sibling temp file and rename so readers never see a
        # partially written state
        fd, tmp_name = tempfile.mkstemp(
            dir=str(path.parent), prefix=".repository-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                f.write(state.model_dump_json(indent=2))
            os.replace(tmp_name, path)
        except Exception:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        logger.debug(f"Saved repository state for {connection_id} to {path}")

    def list_connections(self) -> List[str]:
        return sorted(
            p.parent.name for p in self.root.glob(f"*/{STATE_FILENAME}")
        )
