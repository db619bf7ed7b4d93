"""sqlrev managers."""

from sqlrev.managers.base import RepositoryContext, BaseManager
from sqlrev.managers.pending import PendingChangeStore
from sqlrev.managers.commit import CommitManager
from sqlrev.managers.branch import BranchManager
from sqlrev.managers.revision import RevisionNavigator
from sqlrev.managers.revert import RevertManager
from sqlrev.managers.diff import DiffManager

__all__ = [
    "RepositoryContext",
    "BaseManager",
    "PendingChangeStore",
    "CommitManager",
    "BranchManager",
    "RevisionNavigator",
    "RevertManager",
    "DiffManager",
]
