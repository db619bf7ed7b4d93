"""Statement execution against target databases."""

import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

from pydantic import Field

from sqlrev.models.base import SqlRevBaseModel

logger = logging.getLogger(__name__)


class ExecutionResult(SqlRevBaseModel):
    """Outcome of executing one statement."""

    success: bool = Field(description="Whether the statement ran")
    affected_rows: Optional[int] = Field(default=None)
    error: Optional[str] = Field(default=None, description="Failure message")


class DatabaseExecutor(ABC):
    """Runs one SQL statement at a time against a live database.

    Implementations report failures as ``ExecutionResult(success=False)``
    rather than raising. Statement timeouts are the executor's concern.
    """

    @abstractmethod
    def execute(self, sql: str) -> ExecutionResult:
        """Execute a single statement.

        Args:
            sql: SQL statement to execute

        Returns:
            ExecutionResult describing success or failure
        """

    def close(self) -> None:
        """Release any held resources."""


class SQLiteExecutor(DatabaseExecutor):
    """Executes statements against a SQLite database file in WAL mode."""

    def __init__(self, path: Union[str, Path]):
        """Initialize the executor.

        Args:
            path: Path to SQLite database file
        """
        self.path = Path(path)
        self._conn: Optional[sqlite3.Connection] = None
        self._connect()

    def _connect(self) -> None:
        """Establish database connection and configure WAL mode."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self.path))

        try:
            self._conn.execute("PRAGMA journal_mode = WAL")
            self._conn.execute("PRAGMA synchronous = NORMAL")
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.commit()
        except sqlite3.OperationalError:
            self._conn.close()
            raise

    def execute(self, sql: str) -> ExecutionResult:
        if not self._conn:
            return ExecutionResult(success=False, error="Connection is closed")

        logger.debug(f"Executing on {self.path.name}: {sql}")
        try:
            cursor = self._conn.execute(sql)
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            logger.error(f"Statement failed on {self.path.name}: {e}")
            return ExecutionResult(success=False, error=str(e))

        rows = cursor.rowcount if cursor.rowcount >= 0 else None
        return ExecutionResult(success=True, affected_rows=rows)

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class SQLiteExecutorPool:
    """Hands out one SQLiteExecutor per connection id.

    Instances are callable so they can be passed wherever an executor
    factory is expected.
    """

    def __init__(self, database_paths: Dict[str, Union[str, Path]]):
        self.database_paths = {k: Path(v) for k, v in database_paths.items()}
        self._executors: Dict[str, SQLiteExecutor] = {}

    def get_executor(self, connection_id: str) -> SQLiteExecutor:
        """Get or create the executor for a connection.

        Raises:
            KeyError: If no database path is configured for the connection
        """
        if connection_id not in self._executors:
            if connection_id not in self.database_paths:
                raise KeyError(f"No database configured for connection '{connection_id}'")
            self._executors[connection_id] = SQLiteExecutor(
                self.database_paths[connection_id]
            )
        return self._executors[connection_id]

    def __call__(self, connection_id: str) -> SQLiteExecutor:
        return self.get_executor(connection_id)

    def close_all(self) -> None:
        for executor in self._executors.values():
            executor.close()
        self._executors.clear()
