"""Tests for statement classification."""

import pytest

from sqlrev.core.classifier import classify
from sqlrev.models import MANUAL, ChangeOperation, ChangeType


class TestClassifySchema:
    """Test classification of schema statements."""

    def test_create_table(self):
        change = classify("CREATE TABLE users (id INTEGER PRIMARY KEY)")

        assert change.type == ChangeType.SCHEMA
        assert change.operation == ChangeOperation.CREATE
        assert change.target == "users"
        assert change.table_name == "users"
        assert change.description == "Create table users"
        assert change.rollback_sql == "DROP TABLE IF EXISTS users;"

    def test_lowercase_and_trailing_semicolon(self):
        change = classify("create table foo (id int);")

        assert change.target == "foo"
        assert change.rollback_sql == "DROP TABLE IF EXISTS foo;"

    def test_quoted_identifier(self):
        change = classify('CREATE TABLE "Order Items" (id INT)')

        assert change.target == "Order Items"
        assert change.rollback_sql == 'DROP TABLE IF EXISTS "Order Items";'

    def test_drop_table_requires_manual_rollback(self):
        change = classify("DROP TABLE users")

        assert change.operation == ChangeOperation.DROP
        assert change.rollback_sql == MANUAL
        assert change.requires_manual_rollback
        assert change.label == "DROP TABLE users"

    def test_drop_table_with_captured_definition(self):
        change = classify(
            "DROP TABLE users",
            metadata={"originalCreateSQL": "CREATE TABLE users (id INT)"},
        )
        assert change.rollback_sql == "CREATE TABLE users (id INT);"

    def test_create_index(self):
        change = classify("CREATE UNIQUE INDEX idx_email ON ONLY users (email)")

        assert change.target == "idx_email"
        assert change.table_name == "users"
        assert change.description == "Create unique index idx_email"
        assert change.rollback_sql == "DROP INDEX idx_email;"

    def test_create_schema_is_system(self):
        change = classify("CREATE SCHEMA IF NOT EXISTS reporting")

        assert change.type == ChangeType.SYSTEM
        assert change.target == "reporting"

    def test_drop_materialized_view(self):
        change = classify("DROP MATERIALIZED VIEW IF EXISTS daily_totals")

        assert change.target == "daily_totals"
        assert change.description == "Drop materialized view daily_totals"

    def test_alter_table_rename_is_rename(self):
        change = classify("ALTER TABLE users RENAME TO members")

        assert change.operation == ChangeOperation.RENAME
        assert change.rollback_sql == "ALTER TABLE members RENAME TO users;"

    def test_alter_qualified_table(self):
        change = classify("ALTER TABLE public.users ADD COLUMN email TEXT")

        assert change.operation == ChangeOperation.ALTER
        assert change.target == "public.users"
        assert change.rollback_sql == "ALTER TABLE public.users DROP COLUMN email;"

    def test_create_role_is_acl(self):
        change = classify("CREATE ROLE reporting_reader")

        assert change.type == ChangeType.ACL
        assert change.rollback_sql == "DROP ROLE reporting_reader;"

    def test_create_role_if_not_exists_targets_role(self):
        change = classify("CREATE ROLE IF NOT EXISTS alice")

        assert change.target == "alice"
        assert change.description == "Create role alice"
        assert change.rollback_sql == MANUAL

    def test_create_trigger_with_body(self):
        change = classify(
            "CREATE TRIGGER trg AFTER INSERT ON t BEGIN INSERT INTO log VALUES (1); END"
        )

        assert change.target == "trg"
        assert change.rollback_sql == "DROP TRIGGER trg;"

    def test_comment_on(self):
        change = classify("COMMENT ON TABLE users IS 'People'")

        assert change.operation == ChangeOperation.ALTER
        assert change.target == "users"
        assert change.description == "Update comment on table users"


class TestClassifyData:
    """Test classification of data statements."""

    def test_insert_with_primary_key(self):
        change = classify(
            "INSERT INTO t (id, name) VALUES (5, 'x')",
            affected_rows=1,
            metadata={"primaryKey": {"id": 5}},
        )

        assert change.type == ChangeType.DATA
        assert change.operation == ChangeOperation.INSERT
        assert change.description == "Insert 1 row(s) into t"
        assert change.affected_rows == 1
        assert change.rollback_sql == "DELETE FROM t WHERE id = 5;"
        assert change.metadata == {"primaryKey": {"id": 5}}

    def test_update_without_captured_rows(self):
        change = classify("UPDATE t SET name = 'y' WHERE id = 5")

        assert change.operation == ChangeOperation.UPDATE
        assert change.description == "Update unknown row(s) in t"
        assert change.rollback_sql == MANUAL

    def test_delete_with_row_count(self):
        change = classify("DELETE FROM t WHERE id > 3", affected_rows=4)
        assert change.description == "Delete 4 row(s) from t"

    def test_truncate(self):
        change = classify("TRUNCATE TABLE t")

        assert change.operation == ChangeOperation.TRUNCATE
        assert change.rollback_sql == MANUAL

    def test_merge_is_an_update(self):
        change = classify("MERGE INTO t USING s ON t.id = s.id WHEN MATCHED THEN DELETE")

        assert change.operation == ChangeOperation.UPDATE
        assert change.description == "Merge 1 row(s) into t"
        assert change.rollback_sql == MANUAL


class TestClassifyAcl:
    """Test classification of privilege statements."""

    def test_grant(self):
        change = classify("GRANT SELECT ON t TO alice")

        assert change.type == ChangeType.ACL
        assert change.operation == ChangeOperation.GRANT
        assert change.target == "t"
        assert change.rollback_sql == "REVOKE SELECT ON t FROM alice;"

    def test_grant_role_targets_permissions(self):
        change = classify("GRANT reporting_reader TO bob")

        assert change.target == "permissions"
        assert change.description == "Grant permissions"

    def test_revoke(self):
        change = classify("REVOKE INSERT ON TABLE t FROM alice")

        assert change.operation == ChangeOperation.REVOKE
        assert change.rollback_sql == "GRANT INSERT ON TABLE t TO alice;"


class TestClassifyOther:
    """Test statements that are not tracked or need special handling."""

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * FROM t",
            "EXPLAIN SELECT 1",
            "SHOW TABLES",
            "",
            "   ",
            "-- just a comment",
            "BEGIN",
        ],
    )
    def test_non_mutating_statements_are_ignored(self, sql):
        assert classify(sql) is None

    def test_maintenance_statement(self):
        change = classify("VACUUM")

        assert change.type == ChangeType.SYSTEM
        assert change.target == "database"
        assert change.description == "Run vacuum"

    def test_leading_comment(self):
        change = classify("-- add the table\nCREATE TABLE a (x INT)")
        assert change.target == "a"

    def test_multi_statement_classifies_first_with_manual_rollback(self):
        change = classify("CREATE TABLE a (x INT); DROP TABLE b")

        assert change.target == "a"
        assert change.rollback_sql == MANUAL

    def test_classification_is_deterministic(self):
        sql = "INSERT INTO t (id) VALUES (1)"
        metadata = {"primaryKey": {"id": 1}}

        first = classify(sql, 1, metadata)
        second = classify(sql, 1, metadata)

        assert first.id != second.id
        assert first.model_dump(exclude={"id", "timestamp"}) == second.model_dump(
            exclude={"id", "timestamp"}
        )

    def test_metadata_is_copied(self):
        metadata = {"primaryKey": {"id": 1}}
        change = classify("INSERT INTO t (id) VALUES (1)", metadata=metadata)
        metadata["extra"] = True

        assert "extra" not in change.metadata
