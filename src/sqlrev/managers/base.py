"""Base manager class and shared context for all sqlrev managers."""

from dataclasses import dataclass
from typing import Callable, Optional

from sqlrev.core.executor import DatabaseExecutor
from sqlrev.infrastructure.base import RepositoryStore
from sqlrev.models import Branch, DEFAULT_BRANCH, RepositoryState
from sqlrev.utils.name_validator import validate_connection_id


ExecutorFactory = Callable[[str], DatabaseExecutor]


@dataclass
class RepositoryContext:
    """Shared context for all managers working on one connection.

    Attributes:
        store: Persistence backend holding repository state
        connection_id: Connection the managers operate on
        executor_factory: Builds the executor used to run inverse statements
    """

    store: RepositoryStore
    connection_id: str
    executor_factory: Optional[ExecutorFactory] = None

    def __post_init__(self):
        validate_connection_id(self.connection_id)

    # Manager properties for convenient access
    # These use lazy imports to avoid circular dependencies

    @property
    def pending(self) -> "PendingChangeStore":
        from sqlrev.managers.pending import PendingChangeStore
        return PendingChangeStore(self)

    @property
    def commits(self) -> "CommitManager":
        from sqlrev.managers.commit import CommitManager
        return CommitManager(self)

    @property
    def branches(self) -> "BranchManager":
        from sqlrev.managers.branch import BranchManager
        return BranchManager(self)

    @property
    def revisions(self) -> "RevisionNavigator":
        from sqlrev.managers.revision import RevisionNavigator
        return RevisionNavigator(self)

    @property
    def reverts(self) -> "RevertManager":
        from sqlrev.managers.revert import RevertManager
        return RevertManager(self)

    @property
    def diffs(self) -> "DiffManager":
        from sqlrev.managers.diff import DiffManager
        return DiffManager(self)


class BaseManager:
    """Base class for all sqlrev managers.

    Every operation loads the connection's state from the store, works on
    that copy and saves it back in one write, so a failed operation leaves
    the stored state untouched.
    """

    def __init__(self, context: RepositoryContext):
        """Initialize base manager with repository context.

        Args:
            context: RepositoryContext for the connection
        """
        self.context = context
        self.store = context.store
        self.connection_id = context.connection_id

    def load_state(self) -> RepositoryState:
        """Load the connection's state, creating an empty repository if needed."""
        state = self.store.load(self.connection_id)
        if state is None:
            return RepositoryState.initial(self.connection_id)
        if DEFAULT_BRANCH not in state.branches:
            state.branches[DEFAULT_BRANCH] = Branch(name=DEFAULT_BRANCH, protected=True)
        return state

    def save_state(self, state: RepositoryState) -> None:
        self.store.save(self.connection_id, state)
