"""Fast integration tests for CLI commands using CliRunner."""

import json
import shutil
import sqlite3
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

# Import the app directly
from sqlrev.cli.main import app

runner = CliRunner()


class TestCLIIntegration:
    """CLI workflow tests against a temporary project."""

    @pytest.fixture
    def project(self, monkeypatch):
        """Initialized project with a SQLite database for connection 'app'."""
        temp_dir = tempfile.mkdtemp()
        project_path = Path(temp_dir)
        monkeypatch.setenv("SQLREV_PROJECT_DIR", temp_dir)
        result = runner.invoke(
            app, ["init", temp_dir, "--connection", "app", "--database", "app.db"]
        )
        assert result.exit_code == 0
        yield project_path
        shutil.rmtree(temp_dir)

    def db_rows(self, project):
        conn = sqlite3.connect(project / "app.db")
        try:
            return conn.execute("SELECT id FROM users ORDER BY id").fetchall()
        finally:
            conn.close()

    def run_sql(self, project, sql):
        conn = sqlite3.connect(project / "app.db")
        try:
            conn.execute(sql)
            conn.commit()
        finally:
            conn.close()

    def test_init(self, project):
        assert (project / ".sqlrev" / "config.toml").exists()

        result = runner.invoke(app, ["init", str(project)])
        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_version_and_status(self, project):
        assert runner.invoke(app, ["version"]).exit_code == 0

        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "sqlrev Status" in result.stdout
        assert "Branch: main" in result.stdout
        assert "Pending changes: 0" in result.stdout

    def test_missing_project(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SQLREV_PROJECT_DIR", str(tmp_path / "nowhere"))

        result = runner.invoke(app, ["pending"])

        assert result.exit_code == 1
        assert "sqlrev init" in result.stdout

    def test_classify_and_synthesize(self):
        result = runner.invoke(app, ["classify", "CREATE TABLE users (id INT)"])
        assert result.exit_code == 0
        assert "Create table users" in result.stdout

        result = runner.invoke(app, ["synthesize", "DROP TABLE users"])
        assert result.exit_code == 0
        assert "MANUAL" in result.stdout

    def test_invalid_metadata(self):
        result = runner.invoke(
            app, ["synthesize", "INSERT INTO t (id) VALUES (1)", "--metadata", "[1]"]
        )
        assert result.exit_code == 1

    def test_track_commit_and_log(self, project):
        result = runner.invoke(app, ["track", "CREATE TABLE users (id INTEGER PRIMARY KEY)"])
        assert result.exit_code == 0
        assert "Staged" in result.stdout

        result = runner.invoke(app, ["commit", "-m", "create users"])
        assert result.exit_code == 0
        assert "Committed 1 change(s)" in result.stdout

        result = runner.invoke(app, ["pending"])
        assert "No pending changes" in result.stdout

        result = runner.invoke(app, ["log"])
        assert result.exit_code == 0

    def test_commit_without_changes_fails(self, project):
        result = runner.invoke(app, ["commit", "-m", "nothing"])

        assert result.exit_code == 1
        assert "No changes to commit" in result.stdout

    def test_rollback_executes_against_database(self, project):
        self.run_sql(project, "CREATE TABLE users (id INTEGER PRIMARY KEY)")
        runner.invoke(app, ["track", "CREATE TABLE users (id INTEGER PRIMARY KEY)"])
        runner.invoke(app, ["commit", "-m", "create users"])

        self.run_sql(project, "INSERT INTO users (id) VALUES (7)")
        runner.invoke(
            app,
            [
                "track",
                "INSERT INTO users (id) VALUES (7)",
                "--metadata",
                json.dumps({"primaryKey": {"id": 7}}),
            ],
        )
        runner.invoke(app, ["commit", "-m", "add user"])
        assert self.db_rows(project) == [(7,)]

        dry = runner.invoke(app, ["rollback", "--revision=-1", "--dry-run"])
        assert dry.exit_code == 0
        assert "DELETE FROM users WHERE id = 7;" in dry.stdout
        assert self.db_rows(project) == [(7,)]

        result = runner.invoke(app, ["rollback", "--revision=-1"])
        assert result.exit_code == 0
        assert self.db_rows(project) == []

    def test_rollback_blocked_by_manual_change(self, project):
        runner.invoke(app, ["track", "CREATE TABLE audit (id INT)"])
        runner.invoke(app, ["commit", "-m", "create audit"])
        runner.invoke(app, ["track", "DROP TABLE legacy"])
        runner.invoke(app, ["commit", "-m", "drop legacy"])

        result = runner.invoke(app, ["rollback", "--revision=-1"])

        assert result.exit_code == 1
        assert "DROP TABLE legacy" in result.stdout

        result = runner.invoke(app, ["rollback", "--revision=0"])
        assert result.exit_code == 1

    def test_branch_commands(self, project):
        result = runner.invoke(app, ["branch", "create", "feature", "--switch"])
        assert result.exit_code == 0

        result = runner.invoke(app, ["status"])
        assert "Branch: feature" in result.stdout

        result = runner.invoke(app, ["branch", "checkout", "ghost"])
        assert result.exit_code == 1

        result = runner.invoke(app, ["branch", "delete", "main", "--force"])
        assert result.exit_code == 1
