"""Core data models for sqlrev."""

from sqlrev.models.base import SqlRevBaseModel, SqlRevRecordModel
from sqlrev.models.change import (
    MANUAL,
    ChangeOperation,
    ChangeStatus,
    ChangeType,
    DatabaseChange,
)
from sqlrev.models.commit import Author, Commit
from sqlrev.models.branch import Branch, DEFAULT_BRANCH
from sqlrev.models.repository import RepositoryState
from sqlrev.models.diff import RevisionDiff, RevisionSide
from sqlrev.models.revert import RevertOutcome, RevertState

__all__ = [
    "SqlRevBaseModel",
    "SqlRevRecordModel",
    "MANUAL",
    "ChangeOperation",
    "ChangeStatus",
    "ChangeType",
    "DatabaseChange",
    "Author",
    "Commit",
    "Branch",
    "DEFAULT_BRANCH",
    "RepositoryState",
    "RevisionDiff",
    "RevisionSide",
    "RevertOutcome",
    "RevertState",
]
