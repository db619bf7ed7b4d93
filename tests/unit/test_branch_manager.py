"""Tests for BranchManager."""

import pytest

from sqlrev.errors import (
    BranchInUseError,
    BranchNotFoundError,
    CommitNotFoundError,
    DuplicateBranchError,
    InvalidNameError,
    ProtectedBranchError,
    UnreachableRevisionError,
)


class TestBranchManager:
    """Test branch management functionality."""

    def test_list_branches_initial(self, vcs):
        """Test listing branches in a new repository."""
        branches = vcs.list_branches("app")

        assert [b.name for b in branches] == ["main"]
        assert branches[0].protected
        assert vcs.current_branch("app").name == "main"

    def test_create_branch_at_head(self, vcs, commit_sql):
        commit = commit_sql("one", "CREATE TABLE a (id INT)")

        branch = vcs.create_branch("app", "feature/orders")

        assert branch.head_commit_id == commit.id
        assert branch.created_from == "main"
        # Creating does not switch
        assert vcs.current_branch("app").name == "main"
        assert [b.name for b in vcs.list_branches("app")] == ["main", "feature/orders"]

    def test_create_branch_from_commit(self, vcs, commit_sql):
        first = commit_sql("one", "CREATE TABLE a (id INT)")
        commit_sql("two", "CREATE TABLE b (id INT)")

        branch = vcs.create_branch("app", "old", from_commit=first.id[:8])

        assert branch.head_commit_id == first.id

    def test_create_branch_errors(self, vcs, commit_sql):
        commit_sql("one", "CREATE TABLE a (id INT)")

        with pytest.raises(DuplicateBranchError):
            vcs.create_branch("app", "main")
        with pytest.raises(InvalidNameError):
            vcs.create_branch("app", "-bad")
        with pytest.raises(InvalidNameError):
            vcs.create_branch("app", "a..b")
        with pytest.raises(CommitNotFoundError):
            vcs.create_branch("app", "x", from_commit="nope-nope")

    def test_create_branch_from_commit_on_other_branch(self, vcs, commit_sql):
        commit_sql("base", "CREATE TABLE a (id INT)")
        vcs.create_branch("app", "feature")
        vcs.checkout("app", "feature")
        feature_commit = commit_sql("feature work", "CREATE TABLE f (id INT)")
        vcs.checkout("app", "main")

        with pytest.raises(UnreachableRevisionError):
            vcs.create_branch("app", "other", from_commit=feature_commit.id)

    def test_checkout_switches_history(self, vcs, commit_sql):
        base = commit_sql("base", "CREATE TABLE a (id INT)")
        vcs.create_branch("app", "feature")
        vcs.checkout("app", "feature")
        feature_commit = commit_sql("feature work", "CREATE TABLE f (id INT)")

        assert [c.id for c in vcs.history("app")] == [feature_commit.id, base.id]

        vcs.checkout("app", "main")
        assert [c.id for c in vcs.history("app")] == [base.id]

    def test_checkout_missing_branch_keeps_current(self, vcs):
        with pytest.raises(BranchNotFoundError):
            vcs.checkout("app", "nope")

        assert vcs.current_branch("app").name == "main"

    def test_delete_branch(self, vcs):
        vcs.create_branch("app", "feature")
        vcs.delete_branch("app", "feature")

        assert [b.name for b in vcs.list_branches("app")] == ["main"]

    def test_delete_protected_and_current(self, vcs):
        vcs.create_branch("app", "feature")
        vcs.checkout("app", "feature")

        with pytest.raises(ProtectedBranchError):
            vcs.delete_branch("app", "main")
        with pytest.raises(BranchInUseError):
            vcs.delete_branch("app", "feature")
        with pytest.raises(BranchNotFoundError):
            vcs.delete_branch("app", "ghost")

    def test_delete_keeps_commits(self, vcs, commit_sql):
        vcs.create_branch("app", "feature")
        vcs.checkout("app", "feature")
        commit = commit_sql("feature work", "CREATE TABLE f (id INT)")
        vcs.checkout("app", "main")
        vcs.delete_branch("app", "feature")

        assert vcs.get_commit("app", commit.id).message == "feature work"

    def test_rename_current_branch(self, vcs):
        vcs.create_branch("app", "feature")
        vcs.checkout("app", "feature")

        renamed = vcs.rename_branch("app", "feature", "feature-2")

        assert renamed.name == "feature-2"
        assert vcs.current_branch("app").name == "feature-2"

    def test_rename_errors(self, vcs):
        vcs.create_branch("app", "a")
        vcs.create_branch("app", "b")

        with pytest.raises(ProtectedBranchError):
            vcs.rename_branch("app", "main", "trunk")
        with pytest.raises(DuplicateBranchError):
            vcs.rename_branch("app", "a", "b")
