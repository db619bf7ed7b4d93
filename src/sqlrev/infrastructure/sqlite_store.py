"""SQLite-based repository storage."""

import logging
import sqlite3
from pathlib import Path
from typing import List, Optional, Union

from sqlrev.infrastructure.base import RepositoryStore
from sqlrev.models import RepositoryState
from sqlrev.utils.name_validator import validate_connection_id

logger = logging.getLogger(__name__)


class SQLiteRepositoryStore(RepositoryStore):
    """Keeps one row of serialized state per connection in a SQLite file."""

    def __init__(self, db_path: Union[str, Path]):
        """Initialize the store.

        Args:
            db_path: Path to the SQLite file holding repository state
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn: Optional[sqlite3.Connection] = None
        self._connect()
        self._create_tables()

    def _connect(self):
        """Connect to the SQLite database."""
        self.conn = sqlite3.connect(
            str(self.db_path),
            check_same_thread=False,  # Allow multi-threaded access
            timeout=30.0,
        )
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode = WAL")

    def _create_tables(self):
        """Create the repositories table if it doesn't exist."""
        with self.conn:
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS repositories (
                    connection_id TEXT PRIMARY KEY,
                    state JSON NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

    def load(self, connection_id: str) -> Optional[RepositoryState]:
        validate_connection_id(connection_id)
        cursor = self.conn.execute(
            "SELECT state FROM repositories WHERE connection_id = ?",
            (connection_id,),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return RepositoryState.model_validate_json(row["state"])

    def save(self, connection_id: str, state: RepositoryState) -> None:
        validate_connection_id(connection_id)
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO repositories (connection_id, state)
                VALUES (?, ?)
                ON CONFLICT(connection_id) DO UPDATE SET
                    state = excluded.state,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (connection_id, state.model_dump_json()),
            )
        logger.debug(f"Saved repository state for {connection_id}")

    def list_connections(self) -> List[str]:
        cursor = self.conn.execute(
            "SELECT connection_id FROM repositories ORDER BY connection_id"
        )
        return [row["connection_id"] for row in cursor.fetchall()]

    def close(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
