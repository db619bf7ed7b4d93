"""Core sqlrev functionality."""

from sqlrev.core.classifier import classify
from sqlrev.core.synthesizer import synthesize
from sqlrev.core.executor import (
    DatabaseExecutor,
    ExecutionResult,
    SQLiteExecutor,
    SQLiteExecutorPool,
)
from sqlrev.core.vcs import VersionControl, connect

__all__ = [
    "classify",
    "synthesize",
    "DatabaseExecutor",
    "ExecutionResult",
    "SQLiteExecutor",
    "SQLiteExecutorPool",
    "VersionControl",
    "connect",
]
