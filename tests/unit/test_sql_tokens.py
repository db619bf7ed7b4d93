"""Tests for the SQL tokenizing helpers."""

from datetime import date

from sqlrev.utils.sql_tokens import (
    format_literal,
    parse_statements,
    single_statement,
    statement_label,
    strip_comments,
    tokenize,
)


class TestStripComments:
    """Test comment removal."""

    def test_line_and_block_comments(self):
        sql = "-- leading\nCREATE /* inline */ TABLE t (id INT)"
        assert strip_comments(sql).split() == ["CREATE", "TABLE", "t", "(id", "INT)"]

    def test_comment_markers_inside_literals_survive(self):
        sql = "INSERT INTO t VALUES ('--not a comment', '/* nor this */')"
        assert "--not a comment" in strip_comments(sql)
        assert "/* nor this */" in strip_comments(sql)

    def test_comment_markers_inside_dollar_bodies_survive(self):
        sql = "CREATE FUNCTION f() AS $$ -- kept\nSELECT 1 $$"
        assert strip_comments(sql) == sql

    def test_empty_input(self):
        assert strip_comments("") == ""


class TestTokenize:
    """Test the tokenizer."""

    def test_token_kinds(self):
        tokens = tokenize("SELECT \"Name\", 'a''b', 42 FROM t")
        kinds = [t.kind for t in tokens]
        assert kinds == ["word", "quoted", "punct", "string", "punct", "number", "word", "word"]

    def test_dollar_quoted_strings(self):
        tokens = tokenize("AS $body$ SELECT ';' $body$ VALUES ($1)")

        assert tokens[1].kind == "string"
        assert tokens[1].text == "$body$ SELECT ';' $body$"
        assert [t.text for t in tokens if t.kind == "param"] == ["$1"]

    def test_is_word_is_case_insensitive(self):
        token = tokenize("create")[0]
        assert token.is_word("CREATE")
        assert not token.is_word("DROP")


class TestParseStatements:
    """Test statement splitting."""

    def test_splits_on_top_level_semicolons(self):
        statements = parse_statements(
            "CREATE TABLE a (x INT); -- note\nINSERT INTO a VALUES ('x;y');"
        )

        assert [s.text for s in statements] == [
            "CREATE TABLE a (x INT)",
            "INSERT INTO a VALUES ('x;y')",
        ]

    def test_trigger_body_is_one_statement(self):
        statements = parse_statements(
            "CREATE TRIGGER count_rows AFTER INSERT ON t BEGIN "
            "INSERT INTO log VALUES (1); "
            "UPDATE c SET n = CASE WHEN n IS NULL THEN 1 ELSE n + 1 END; "
            "END; DELETE FROM t"
        )

        assert len(statements) == 2
        assert statements[0].text.startswith("CREATE TRIGGER count_rows")
        assert statements[0].text.endswith("ELSE n + 1 END; END")
        assert statements[1].text == "DELETE FROM t"

    def test_dollar_quoted_body_is_one_statement(self):
        statements = parse_statements(
            "CREATE FUNCTION f() RETURNS int AS $$ BEGIN RETURN 1; END; $$ "
            "LANGUAGE plpgsql; SELECT 1"
        )

        assert len(statements) == 2
        assert statements[0].text.endswith("$$ LANGUAGE plpgsql")
        assert statements[1].text == "SELECT 1"

    def test_begin_outside_trigger_is_not_nested(self):
        assert len(parse_statements("BEGIN; INSERT INTO t VALUES (1); END")) == 3

    def test_leading_keyword(self):
        statement = parse_statements("  update t set x = 1")[0]
        assert statement.leading_keyword == "UPDATE"

    def test_single_statement(self):
        assert single_statement("DROP TABLE a;").text == "DROP TABLE a"
        assert single_statement("DROP TABLE a; DROP TABLE b") is None
        assert single_statement("-- only a comment") is None

    def test_identifier_handles_qualified_and_quoted_names(self):
        stream = parse_statements('CREATE TABLE public."Order Items" (id INT)')[0].stream()
        stream.accept("CREATE", "TABLE")
        identifier = stream.identifier()

        assert identifier.name == "public.Order Items"
        assert identifier.raw == 'public."Order Items"'

    def test_seek_skips_parenthesized_keywords(self):
        stream = parse_statements("CREATE INDEX i ON t (a) WHERE (b IN (SELECT 1))")[0].stream()
        assert stream.seek("ON")
        assert stream.identifier().name == "t"


class TestFormatLiteral:
    """Test rendering of captured values as SQL literals."""

    def test_scalars(self):
        assert format_literal(None) == "NULL"
        assert format_literal(True) == "TRUE"
        assert format_literal(5) == "5"
        assert format_literal(2.5) == "2.5"

    def test_strings_are_quoted_and_escaped(self):
        assert format_literal("O'Brien") == "'O''Brien'"

    def test_dates_bytes_and_json(self):
        assert format_literal(date(2024, 1, 2)) == "'2024-01-02'"
        assert format_literal(b"\x01\xff") == "X'01ff'"
        assert format_literal({"b": 1, "a": 2}) == '\'{"a": 2, "b": 1}\''


class TestStatementLabel:
    """Test short statement labels."""

    def test_label_ends_at_target(self):
        assert statement_label("DROP TABLE orders CASCADE;", "orders") == "DROP TABLE orders"

    def test_long_statement_is_truncated(self):
        label = statement_label("UPDATE t SET " + ", ".join(f"c{i} = {i}" for i in range(40)))
        assert len(label) <= 60
        assert label.endswith("...")
