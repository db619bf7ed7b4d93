"""Revert and rollback execution for sqlrev."""

import logging
from typing import Dict, List, Optional, Tuple, Union

from sqlrev.core.classifier import classify
from sqlrev.core.executor import DatabaseExecutor
from sqlrev.errors import (
    ExecutionError,
    ManualInterventionRequiredError,
    NothingToRevertError,
    UnreachableRevisionError,
    VersionControlError,
)
from sqlrev.managers.base import BaseManager
from sqlrev.managers.commit import AuthorLike, coerce_author
from sqlrev.managers.revision import (
    branch_history,
    changes_after,
    find_commit,
    revision_index,
)
from sqlrev.models import (
    ChangeStatus,
    Commit,
    DatabaseChange,
    RepositoryState,
    RevertOutcome,
    RevertState,
)
from sqlrev.utils.sql_tokens import parse_statements

logger = logging.getLogger(__name__)


PlanStep = Tuple[DatabaseChange, List[str]]


class RevertManager(BaseManager):
    """Undoes committed changes by executing their inverse statements.

    Every inverse is checked before anything runs: one MANUAL change blocks
    the whole operation. Statements then run one at a time in reverse
    application order. A failure stops the run; statements that already ran
    are not undone. On success a new commit records the inverse changes.
    """

    def revert_commit(
        self, commit_id: str, author: AuthorLike, dry_run: bool = False
    ) -> RevertOutcome:
        """Undo a single commit on the current branch.

        Args:
            commit_id: Commit id or unique prefix
            author: Author of the revert commit
            dry_run: If True, return the planned statements without executing

        Returns:
            RevertOutcome with the new commit (or the plan for a dry run)

        Raises:
            CommitNotFoundError: If the commit does not exist
            UnreachableRevisionError: If the commit is not on the current branch
            NothingToRevertError: If every change in the commit is already reverted
            ManualInterventionRequiredError: If any change has no safe inverse
            ExecutionError: If the executor fails part way through
        """
        author = coerce_author(author)
        state = self.load_state()
        target = find_commit(state, commit_id)
        self._transition("revert", target, RevertState.REQUESTED)

        if target.id not in {c.id for c in branch_history(state)}:
            self._transition("revert", target, RevertState.FAILED)
            raise UnreachableRevisionError(
                f"Commit {target.short_id} is not on branch '{state.current_branch}'"
            )

        changes = [c for c in reversed(target.changes) if not c.is_reverted]
        return self._run(
            state,
            operation="revert",
            target=target,
            changes=changes,
            message=f'Revert "{target.message}"',
            reverts=[target.id],
            author=author,
            dry_run=dry_run,
        )

    def rollback_to_revision(
        self,
        target: Union[int, str],
        author: AuthorLike,
        dry_run: bool = False,
    ) -> RevertOutcome:
        """Undo every commit made after a target revision.

        Args:
            target: Relative revision number (0 = head) or a commit id
            author: Author of the rollback commit
            dry_run: If True, return the planned statements without executing

        Returns:
            RevertOutcome whose ``target`` is the resolved target commit

        Raises:
            RevisionNotFoundError: If the revision number is out of range
            CommitNotFoundError: If the commit id does not exist
            UnreachableRevisionError: If the commit is not on the current branch
            NothingToRevertError: If the target is already the head
            ManualInterventionRequiredError: If any change has no safe inverse
            ExecutionError: If the executor fails part way through
        """
        author = coerce_author(author)
        state = self.load_state()
        history = branch_history(state)

        if isinstance(target, int):
            index = revision_index(history, target)
        else:
            commit = find_commit(state, target)
            positions = [i for i, c in enumerate(history) if c.id == commit.id]
            if not positions:
                raise UnreachableRevisionError(
                    f"Commit {commit.short_id} is not reachable from the head of "
                    f"branch '{state.current_branch}'"
                )
            index = positions[0]

        target_commit = history[index]
        self._transition("rollback", target_commit, RevertState.REQUESTED)

        undone = history[:index]
        changes = changes_after(history, index)
        return self._run(
            state,
            operation="rollback",
            target=target_commit,
            changes=changes,
            message=f"Rollback to: {target_commit.message} ({target_commit.short_id})",
            reverts=[c.id for c in undone],
            author=author,
            dry_run=dry_run,
        )

    def _transition(self, operation: str, target: Commit, new_state: RevertState) -> None:
        log = logger.error if new_state == RevertState.FAILED else logger.info
        log(f"{operation} {target.short_id} on {self.connection_id}: {new_state.value}")

    def _run(
        self,
        state: RepositoryState,
        operation: str,
        target: Commit,
        changes: List[DatabaseChange],
        message: str,
        reverts: List[str],
        author,
        dry_run: bool,
    ) -> RevertOutcome:
        self._transition(operation, target, RevertState.VALIDATING)
        if not changes:
            self._transition(operation, target, RevertState.FAILED)
            if operation == "revert":
                raise NothingToRevertError(
                    f"Commit {target.short_id} has already been reverted"
                )
            raise NothingToRevertError(
                f"Commit {target.short_id} is already the head of '{state.current_branch}'"
            )

        blocking = [c for c in changes if c.requires_manual_rollback]
        if blocking:
            self._transition(operation, target, RevertState.FAILED)
            raise ManualInterventionRequiredError(blocking)

        self._transition(operation, target, RevertState.SYNTHESIZING)
        plan = self._plan(changes)
        statements = [sql for _, step in plan for sql in step]

        if dry_run:
            return RevertOutcome(
                operation=operation,
                state=RevertState.SYNTHESIZING,
                target=target,
                statements=statements,
                dry_run=True,
            )

        self._transition(operation, target, RevertState.EXECUTING)
        self._execute(operation, target, plan)

        commit = self._record(state, changes, message, reverts, author)
        self._transition(operation, target, RevertState.RECORDED)
        return RevertOutcome(
            operation=operation,
            state=RevertState.RECORDED,
            target=target,
            commit=commit,
            statements=statements,
        )

    def _plan(self, changes: List[DatabaseChange]) -> List[PlanStep]:
        plan = []
        for change in changes:
            parsed = parse_statements(change.rollback_sql)
            if len(parsed) == 1:
                # Single statements run as stored, bodies included
                statements = [change.rollback_sql.strip().rstrip(";").rstrip() + ";"]
            else:
                statements = [f"{s.text};" for s in parsed]
            plan.append((change, statements))
        return plan

    def _executor(self) -> DatabaseExecutor:
        factory = self.context.executor_factory
        if factory is None:
            raise VersionControlError(
                f"No database executor configured for connection '{self.connection_id}'"
            )
        try:
            return factory(self.connection_id)
        except KeyError as e:
            raise VersionControlError(e.args[0] if e.args else str(e)) from e

    def _execute(self, operation: str, target: Commit, plan: List[PlanStep]) -> None:
        executor = self._executor()
        executed: List[str] = []
        for change, statements in plan:
            for sql in statements:
                logger.debug(f"Executing inverse of {change.label}: {sql}")
                try:
                    result = executor.execute(sql)
                except Exception as e:
                    self._transition(operation, target, RevertState.FAILED)
                    raise ExecutionError(sql, str(e), executed, change) from e
                if not result.success:
                    self._transition(operation, target, RevertState.FAILED)
                    raise ExecutionError(
                        sql, result.error or "unknown error", executed, change
                    )
                executed.append(sql)

    def _record(
        self,
        state: RepositoryState,
        changes: List[DatabaseChange],
        message: str,
        reverts: List[str],
        author,
    ) -> Commit:
        by_id: Dict[str, DatabaseChange] = {
            change.id: change for commit in state.commits for change in commit.changes
        }

        inverses = []
        for change in changes:
            inverses.append(self._inverse_record(change))
            # A change that undid another puts the other back in effect
            if change.inverse_of and change.inverse_of in by_id:
                by_id[change.inverse_of].status = ChangeStatus.APPLIED.value
            change.status = ChangeStatus.REVERTED.value

        branch = state.branches[state.current_branch]
        commit = Commit(
            connection_id=self.connection_id,
            message=message,
            author=author,
            changes=inverses,
            branch_name=branch.name,
            parent_id=branch.head_commit_id,
            reverts=reverts,
        )
        state.commits.append(commit)
        branch.head_commit_id = commit.id
        self.save_state(state)

        logger.info(
            f"Recorded commit {commit.short_id} undoing {len(changes)} change(s)"
        )
        return commit

    def _inverse_record(self, change: DatabaseChange) -> DatabaseChange:
        """Build the change record for an executed inverse.

        The forward statement becomes the record's own inverse, so the new
        commit can itself be reverted.
        """
        classified: Optional[DatabaseChange] = classify(change.rollback_sql)
        source = classified or change
        return DatabaseChange(
            type=source.type,
            operation=source.operation,
            target=source.target,
            description=f"Revert: {change.description}",
            query=change.rollback_sql,
            rollback_sql=change.query,
            table_name=source.table_name,
            inverse_of=change.id,
        )
