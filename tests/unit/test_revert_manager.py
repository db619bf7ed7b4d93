"""Tests for revert and rollback."""

import pytest

from sqlrev.core.vcs import VersionControl
from sqlrev.errors import (
    ExecutionError,
    ManualInterventionRequiredError,
    NothingToRevertError,
    RevisionNotFoundError,
    UnreachableRevisionError,
    VersionControlError,
)
from sqlrev.models import ChangeStatus, RevertState


def insert(row_id):
    return (f"INSERT INTO users (id) VALUES ({row_id})", {"primaryKey": {"id": row_id}})


class TestRevertCommit:
    """Test reverting a single commit."""

    def test_revert_executes_inverse_and_records_commit(self, vcs, executor, author, commit_sql):
        commit_sql("create users", "CREATE TABLE users (id INTEGER PRIMARY KEY)")
        target = commit_sql("add user", insert(1))

        outcome = vcs.revert_commit("app", target.id, author)

        assert executor.statements == ["DELETE FROM users WHERE id = 1;"]
        assert outcome.state == RevertState.RECORDED
        assert outcome.commit.message == 'Revert "add user"'
        assert outcome.commit.reverts == [target.id]
        assert outcome.commit.parent_id == target.id
        assert vcs.resolve("app", 0).id == outcome.commit.id

        reverted = vcs.get_commit("app", target.id)
        assert reverted.changes[0].status == ChangeStatus.REVERTED

        inverse = outcome.commit.changes[0]
        assert inverse.query == "DELETE FROM users WHERE id = 1;"
        assert inverse.rollback_sql == "INSERT INTO users (id) VALUES (1)"
        assert inverse.inverse_of == target.changes[0].id
        assert inverse.operation == "DELETE"

    def test_revert_runs_changes_in_reverse_order(self, vcs, executor, author, commit_sql):
        target = commit_sql("add users", insert(1), insert(2))

        vcs.revert_commit("app", target.id, author)

        assert executor.statements == [
            "DELETE FROM users WHERE id = 2;",
            "DELETE FROM users WHERE id = 1;",
        ]

    def test_revert_twice_has_nothing_to_do(self, vcs, author, commit_sql):
        target = commit_sql("add user", insert(1))
        vcs.revert_commit("app", target.id, author)

        with pytest.raises(NothingToRevertError):
            vcs.revert_commit("app", target.id, author)

    def test_revert_of_revert_reapplies(self, vcs, executor, author, commit_sql):
        target = commit_sql("add user", insert(1))
        first = vcs.revert_commit("app", target.id, author)

        second = vcs.revert_commit("app", first.commit.id, author)

        assert executor.statements[-1] == "INSERT INTO users (id) VALUES (1);"
        assert second.commit.message == 'Revert "Revert "add user""'
        assert vcs.get_commit("app", target.id).changes[0].status == ChangeStatus.APPLIED
        assert vcs.get_commit("app", first.commit.id).changes[0].status == ChangeStatus.REVERTED

    def test_restored_trigger_runs_as_one_statement(self, vcs, executor, author, commit_sql):
        definition = (
            "CREATE TRIGGER trg AFTER INSERT ON users BEGIN\n"
            "    INSERT INTO log VALUES (NEW.id);\n"
            "END"
        )
        target = commit_sql(
            "drop trigger", ("DROP TRIGGER trg", {"originalTriggerSQL": definition})
        )

        outcome = vcs.revert_commit("app", target.id, author, dry_run=True)

        assert outcome.statements == [definition + ";"]

    def test_manual_change_blocks_everything(self, vcs, executor, author, commit_sql):
        target = commit_sql(
            "reshape",
            "CREATE TABLE a (id INT)",
            "DROP TABLE b",
        )

        with pytest.raises(ManualInterventionRequiredError) as excinfo:
            vcs.revert_commit("app", target.id, author)

        assert [c.label for c in excinfo.value.blocking_changes] == ["DROP TABLE b"]
        assert "DROP TABLE b" in str(excinfo.value)
        assert executor.statements == []
        assert vcs.resolve("app", 0).id == target.id

    def test_truncate_blocks_create_table_inverse(self, vcs, executor, author, commit_sql):
        target = commit_sql("setup", "CREATE TABLE x (id INT)", "TRUNCATE y")

        with pytest.raises(ManualInterventionRequiredError) as excinfo:
            vcs.revert_commit("app", target.id, author)

        assert [c.label for c in excinfo.value.blocking_changes] == ["TRUNCATE y"]
        assert "DROP TABLE IF EXISTS x;" not in executor.statements
        assert executor.statements == []

    def test_execution_failure_reports_partial_progress(
        self, store, author, commit_sql, vcs, recording_executor
    ):
        target = commit_sql("add users", insert(1), insert(2))
        failing = recording_executor(fail_on="id = 1")
        failing_vcs = VersionControl(store, lambda connection_id: failing)

        with pytest.raises(ExecutionError) as excinfo:
            failing_vcs.revert_commit("app", target.id, author)

        assert excinfo.value.executed == ["DELETE FROM users WHERE id = 2;"]
        assert excinfo.value.statement == "DELETE FROM users WHERE id = 1;"
        assert excinfo.value.change.id == target.changes[0].id
        # Nothing is recorded for a failed run
        assert vcs.resolve("app", 0).id == target.id
        assert all(c.status == ChangeStatus.APPLIED for c in vcs.get_commit("app", target.id).changes)

    def test_executor_exception_is_wrapped(self, store, author, commit_sql):
        target = commit_sql("add user", insert(1))

        def broken_factory(connection_id):
            raise KeyError(f"No database configured for connection '{connection_id}'")

        with pytest.raises(VersionControlError, match="No database configured"):
            VersionControl(store, broken_factory).revert_commit("app", target.id, author)

    def test_dry_run_executes_nothing(self, vcs, executor, author, commit_sql):
        target = commit_sql("add user", insert(1))

        outcome = vcs.revert_commit("app", target.id, author, dry_run=True)

        assert outcome.dry_run
        assert outcome.state == RevertState.SYNTHESIZING
        assert outcome.commit is None
        assert outcome.statements == ["DELETE FROM users WHERE id = 1;"]
        assert executor.statements == []
        assert len(vcs.history("app")) == 1

    def test_missing_executor(self, store, author, commit_sql):
        target = commit_sql("add user", insert(1))
        plain = VersionControl(store)

        assert plain.revert_commit("app", target.id, author, dry_run=True).statements
        with pytest.raises(VersionControlError, match="No database executor"):
            plain.revert_commit("app", target.id, author)

    def test_commit_on_other_branch_is_unreachable(self, vcs, author, commit_sql):
        commit_sql("base", "CREATE TABLE users (id INT)")
        vcs.create_branch("app", "feature")
        vcs.checkout("app", "feature")
        feature_commit = commit_sql("feature user", insert(1))
        vcs.checkout("app", "main")

        with pytest.raises(UnreachableRevisionError):
            vcs.revert_commit("app", feature_commit.id, author)


class TestRollback:
    """Test rolling back to a revision."""

    @pytest.fixture
    def commits(self, commit_sql):
        return [
            commit_sql("create users", "CREATE TABLE users (id INTEGER PRIMARY KEY)"),
            commit_sql("add first", insert(1)),
            commit_sql("add second", insert(2)),
        ]

    def test_rollback_to_revision(self, vcs, executor, author, commits):
        outcome = vcs.rollback_to_revision("app", -2, author)

        assert executor.statements == [
            "DELETE FROM users WHERE id = 2;",
            "DELETE FROM users WHERE id = 1;",
        ]
        assert outcome.target.id == commits[0].id
        assert outcome.commit.message == f"Rollback to: create users ({commits[0].short_id})"
        assert outcome.commit.reverts == [commits[2].id, commits[1].id]
        assert len(vcs.history("app")) == 4

    def test_rollback_by_commit_id(self, vcs, executor, author, commits):
        outcome = vcs.rollback_to_revision("app", commits[1].id, author)

        assert executor.statements == ["DELETE FROM users WHERE id = 2;"]
        assert outcome.target.id == commits[1].id

    def test_rollback_to_head(self, vcs, author, commits):
        with pytest.raises(NothingToRevertError):
            vcs.rollback_to_revision("app", 0, author)

    def test_rollback_out_of_range(self, vcs, author, commits):
        with pytest.raises(RevisionNotFoundError):
            vcs.rollback_to_revision("app", -3, author)

    def test_rollback_through_manual_change_is_blocked(self, vcs, executor, author, commits, commit_sql):
        commit_sql("drop legacy", "DROP TABLE legacy")

        with pytest.raises(ManualInterventionRequiredError):
            vcs.rollback_to_revision("app", -3, author)
        assert executor.statements == []

    def test_rollback_across_a_revert(self, vcs, executor, author, commits):
        vcs.revert_commit("app", commits[2].id, author)
        executor.statements.clear()

        outcome = vcs.rollback_to_revision("app", -2, author)

        # The revert commit is undone first, then the original insert
        assert executor.statements == [
            "INSERT INTO users (id) VALUES (2);",
            "DELETE FROM users WHERE id = 2;",
        ]
        assert outcome.target.id == commits[1].id

    def test_rollback_dry_run(self, vcs, executor, author, commits):
        outcome = vcs.rollback_to_revision("app", -1, author, dry_run=True)

        assert outcome.statements == ["DELETE FROM users WHERE id = 2;"]
        assert executor.statements == []
        assert vcs.resolve("app", 0).id == commits[2].id
