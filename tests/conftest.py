"""Pytest configuration and shared fixtures."""

from typing import List, Optional

import pytest

from sqlrev.core.executor import DatabaseExecutor, ExecutionResult
from sqlrev.core.vcs import VersionControl
from sqlrev.infrastructure import InMemoryRepositoryStore
from sqlrev.models import Author


class RecordingExecutor(DatabaseExecutor):
    """Executor that records statements instead of running them.

    Any statement containing ``fail_on`` reports a failure.
    """

    def __init__(self, fail_on: Optional[str] = None):
        self.statements: List[str] = []
        self.fail_on = fail_on

    def execute(self, sql: str) -> ExecutionResult:
        if self.fail_on and self.fail_on in sql:
            return ExecutionResult(success=False, error="simulated failure")
        self.statements.append(sql)
        return ExecutionResult(success=True, affected_rows=1)


@pytest.fixture
def executor():
    """Recording executor shared by every connection."""
    return RecordingExecutor()


@pytest.fixture
def store():
    return InMemoryRepositoryStore()


@pytest.fixture
def vcs(store, executor):
    """VersionControl over in-memory storage and the recording executor."""
    return VersionControl(store, lambda connection_id: executor)


@pytest.fixture
def author():
    return Author(name="alice", email="alice@example.com")


@pytest.fixture
def commit_sql(vcs, author):
    """Track statements on a connection and commit them in one step."""

    def _commit(message: str, *statements, connection_id: str = "app"):
        for statement in statements:
            if isinstance(statement, tuple):
                sql, metadata = statement
            else:
                sql, metadata = statement, None
            vcs.track(connection_id, sql, metadata=metadata)
        return vcs.commit(connection_id, message, author)

    return _commit


@pytest.fixture
def recording_executor():
    """The RecordingExecutor class, for tests that need a failing executor."""
    return RecordingExecutor
