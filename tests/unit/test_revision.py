"""Tests for relative revision addressing."""

import pytest

from sqlrev.errors import RevisionNotFoundError, UnreachableRevisionError


class TestRevisionNavigator:
    """Test resolving revision numbers on the current branch."""

    @pytest.fixture
    def commits(self, commit_sql):
        return [
            commit_sql("one", "CREATE TABLE a (id INT)"),
            commit_sql("two", "CREATE TABLE b (id INT)"),
            commit_sql("three", "CREATE TABLE c (id INT)"),
        ]

    def test_resolve(self, vcs, commits):
        assert vcs.resolve("app", 0).id == commits[2].id
        assert vcs.resolve("app", -1).id == commits[1].id
        assert vcs.resolve("app", -2).id == commits[0].id

    @pytest.mark.parametrize("revision", [1, -3, -10])
    def test_out_of_range(self, vcs, commits, revision):
        with pytest.raises(RevisionNotFoundError):
            vcs.resolve("app", revision)

    def test_empty_history(self, vcs):
        with pytest.raises(RevisionNotFoundError):
            vcs.resolve("app", 0)

    def test_revision_of(self, vcs, commits):
        revisions = vcs.context("app").revisions

        assert revisions.revision_of(commits[0].id) == -2
        assert revisions.revision_of(commits[2].id[:6]) == 0

    def test_resolve_follows_checked_out_branch(self, vcs, commits):
        vcs.create_branch("app", "old", from_commit=commits[0].id)
        vcs.checkout("app", "old")

        assert vcs.resolve("app", 0).id == commits[0].id
        with pytest.raises(RevisionNotFoundError):
            vcs.resolve("app", -1)
        with pytest.raises(UnreachableRevisionError):
            vcs.context("app").revisions.index_of(commits[2].id)
