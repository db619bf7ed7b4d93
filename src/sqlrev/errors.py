"""Exception types raised by sqlrev operations.

Classification and inverse synthesis never raise for statements they cannot
handle; they return None or the MANUAL marker. The exceptions below are
raised by the repository, branch, revision and revert operations.
"""

from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from sqlrev.models.change import DatabaseChange


class VersionControlError(Exception):
    """Base class for all sqlrev errors."""

    pass


class InvalidNameError(VersionControlError, ValueError):
    """Raised when a branch or connection name fails validation."""

    pass


class CommitValidationError(VersionControlError, ValueError):
    """Raised when a commit request is rejected before any state changes."""

    pass


class DuplicateBranchError(VersionControlError, ValueError):
    """Raised when creating or renaming onto a branch name that is taken."""

    pass


class BranchNotFoundError(VersionControlError, LookupError):
    """Raised when a branch name does not exist for the connection."""

    pass


class ProtectedBranchError(VersionControlError):
    """Raised when deleting or renaming a protected branch."""

    pass


class BranchInUseError(VersionControlError):
    """Raised when deleting the currently checked-out branch."""

    pass


class CommitNotFoundError(VersionControlError, LookupError):
    """Raised when a commit id is unknown to the connection."""

    pass


class RevisionNotFoundError(VersionControlError, LookupError):
    """Raised when a relative revision number is outside the branch history."""

    pass


class UnreachableRevisionError(VersionControlError):
    """Raised when a target commit is not an ancestor of the current head."""

    pass


class InsufficientHistoryError(VersionControlError):
    """Raised when a diff is requested with fewer than two commits."""

    pass


class NothingToRevertError(VersionControlError):
    """Raised when a revert or rollback would not undo any change."""

    pass


class ManualInterventionRequiredError(VersionControlError):
    """Raised when changes without a safe inverse block a revert.

    Nothing has been executed when this is raised.
    """

    def __init__(self, blocking_changes: List["DatabaseChange"]):
        self.blocking_changes = list(blocking_changes)
        count = len(self.blocking_changes)
        noun = "change requires" if count == 1 else "changes require"
        labels = ", ".join(change.label for change in self.blocking_changes)
        super().__init__(
            f"Revert blocked: {count} {noun} manual rollback: {labels}"
        )


class ExecutionError(VersionControlError):
    """Raised when the database executor fails part way through a revert.

    Statements listed in ``executed`` ran successfully before the failure and
    remain applied.
    """

    def __init__(
        self,
        statement: str,
        message: str,
        executed: Optional[List[str]] = None,
        change: Optional["DatabaseChange"] = None,
    ):
        self.statement = statement
        self.message = message
        self.executed = list(executed or [])
        self.change = change
        super().__init__(
            f"Execution failed on '{statement}': {message} "
            f"({len(self.executed)} statement(s) already applied)"
        )
