"""Inverse statement synthesis for sqlrev.

``synthesize`` maps a forward statement to the statement that undoes it. When
undoing requires state that was not captured (dropped definitions, deleted
rows, previous values) and that state is missing from ``metadata``, the result
is the ``MANUAL`` marker. The synthesizer never guesses "before" data.

Metadata keys may be given in camelCase (``primaryKey``) or snake_case
(``primary_key``):

    previouslyExisted    False when an IF NOT EXISTS / OR REPLACE created a new object
    originalCreateSQL    definition of a dropped table (also originalIndexSQL,
                         originalSeqSQL, originalViewSQL, originalFunctionSQL,
                         originalProcedureSQL, originalTriggerSQL, originalRoleSQL,
                         originalSchemaSQL, originalDatabaseSQL)
    oldViewDefinition    previous definition replaced by CREATE OR REPLACE VIEW
    oldBody              previous definition replaced by CREATE OR REPLACE FUNCTION
    columnDefinition     full definition of a dropped column ("email TEXT NOT NULL")
    constraintDefinition body of a dropped constraint ("CHECK (qty > 0)")
    oldDefault           previous column default expression (None for no default)
    oldColumnState       ALTER COLUMN clause restoring the previous column state
    oldColumnDefinition  MODIFY COLUMN definition restoring the previous column
    oldOwner             previous owner for OWNER TO
    oldSeqState          ALTER SEQUENCE options restoring the previous state
    oldComment           previous comment text (None for no comment)
    primaryKey           key of the inserted row, or a list of keys
    rows                 deleted rows as column/value mappings
    oldRows              rows before an UPDATE, as column/value mappings
    primaryKeyFields     key columns used to address ``oldRows``
"""

import logging
import re
from typing import Any, Dict, List, Optional

from sqlrev.models.change import MANUAL
from sqlrev.utils.sql_tokens import (
    Identifier,
    Statement,
    TokenStream,
    collapse_whitespace,
    format_literal,
    single_statement,
)

logger = logging.getLogger(__name__)


_DROP_DEFINITION_KEYS = {
    "TABLE": ("originalCreateSQL", "originalTableSQL"),
    "INDEX": ("originalIndexSQL",),
    "SEQUENCE": ("originalSeqSQL", "originalSequenceSQL"),
    "VIEW": ("originalViewSQL",),
    "MATERIALIZED VIEW": ("originalViewSQL",),
    "FUNCTION": ("originalFunctionSQL",),
    "PROCEDURE": ("originalProcedureSQL",),
    "TRIGGER": ("originalTriggerSQL",),
    "ROLE": ("originalRoleSQL",),
    "USER": ("originalRoleSQL",),
    "SCHEMA": ("originalSchemaSQL",),
    "DATABASE": ("originalDatabaseSQL",),
}

_UNNAMED_CONSTRAINTS = ("PRIMARY", "UNIQUE", "CHECK", "FOREIGN", "EXCLUDE", "INDEX", "KEY")


def _snake_case(key: str) -> str:
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", key).lower()


class _Metadata:
    """Read-only view of synthesis metadata accepting camel or snake keys."""

    def __init__(self, data: Optional[Dict[str, Any]]):
        self._data = dict(data or {})

    def has(self, key: str) -> bool:
        return key in self._data or _snake_case(key) in self._data

    def raw(self, key: str) -> Any:
        if key in self._data:
            return self._data[key]
        return self._data.get(_snake_case(key))

    def get(self, *keys: str) -> Any:
        """Return the first non-empty value among ``keys``."""
        for key in keys:
            value = self.raw(key)
            if value is not None and value != "" and value != [] and value != {}:
                return value
        return None

    @property
    def created_new(self) -> bool:
        """True when the caller confirmed the object did not exist before."""
        return self.raw("previouslyExisted") is False


def synthesize(query: str, metadata: Optional[Dict[str, Any]] = None) -> str:
    """Produce the inverse of a mutating statement.

    Args:
        query: Forward SQL statement
        metadata: Captured state needed by some inverses

    Returns:
        Inverse SQL (one or more ``;``-terminated statements) or ``MANUAL``
    """
    statement = single_statement(query or "")
    if statement is None:
        return MANUAL

    handler = _HANDLERS.get(statement.leading_keyword)
    if handler is None:
        # TRUNCATE, MERGE, REFRESH and maintenance statements have no inverse
        return MANUAL

    inverse = handler(statement, _Metadata(metadata))
    if not inverse:
        logger.debug(f"No safe inverse for statement: {statement.text[:80]}")
        return MANUAL
    return inverse


def _terminate(sql: str) -> str:
    """Normalize a statement to end with exactly one semicolon."""
    return sql.strip().rstrip(";").rstrip() + ";"


def _where_clause(key: Dict[str, Any]) -> str:
    conditions = []
    for column, value in key.items():
        if value is None:
            conditions.append(f"{column} IS NULL")
        else:
            conditions.append(f"{column} = {format_literal(value)}")
    return " AND ".join(conditions)


def _accept_modifiers(stream: TokenStream) -> None:
    while stream.accept_any("TEMP", "TEMPORARY", "UNLOGGED", "GLOBAL", "LOCAL"):
        pass


def _replacement(meta: _Metadata, identifier: Identifier, drop: str, *keys: str) -> Optional[str]:
    """Inverse of a statement that may have replaced an existing object."""
    previous = meta.get(*keys)
    if previous:
        return _terminate(previous)
    if meta.created_new:
        return f"{drop} {identifier.raw};"
    return None


# ---------------------------------------------------------------- CREATE


def _invert_create(statement: Statement, meta: _Metadata) -> Optional[str]:
    stream = statement.stream()
    stream.next()
    or_replace = stream.accept("OR", "REPLACE")
    _accept_modifiers(stream)

    kind = stream.accept_any("DATABASE", "SCHEMA")
    if kind:
        if_not_exists = stream.accept("IF", "NOT", "EXISTS")
        name = stream.identifier()
        if name is None or (if_not_exists and not meta.created_new):
            return None
        return f"DROP {kind} {name.raw};"

    stream.accept("UNIQUE")
    if stream.accept("INDEX"):
        stream.accept("CONCURRENTLY")
        if_not_exists = stream.accept("IF", "NOT", "EXISTS")
        if stream.at("ON"):
            # Unnamed index, the generated name is unknown
            return None
        name = stream.identifier()
        if name is None or (if_not_exists and not meta.created_new):
            return None
        return f"DROP INDEX {name.raw};"

    if stream.accept("TABLE"):
        if_not_exists = stream.accept("IF", "NOT", "EXISTS")
        name = stream.identifier()
        if name is None or (if_not_exists and not meta.created_new):
            return None
        return f"DROP TABLE IF EXISTS {name.raw};"

    if stream.accept("SEQUENCE"):
        if_not_exists = stream.accept("IF", "NOT", "EXISTS")
        name = stream.identifier()
        if name is None or (if_not_exists and not meta.created_new):
            return None
        return f"DROP SEQUENCE {name.raw};"

    kind = stream.accept_any("ROLE", "USER")
    if kind:
        if_not_exists = stream.accept("IF", "NOT", "EXISTS")
        name = stream.identifier()
        if name is None or (if_not_exists and not meta.created_new):
            return None
        return f"DROP {kind} {name.raw};"

    materialized = stream.accept("MATERIALIZED")
    if stream.accept("VIEW"):
        if_not_exists = stream.accept("IF", "NOT", "EXISTS")
        name = stream.identifier()
        if name is None:
            return None
        drop = "DROP MATERIALIZED VIEW" if materialized else "DROP VIEW"
        if or_replace or if_not_exists:
            return _replacement(meta, name, drop, "oldViewDefinition", "oldViewSQL")
        return f"{drop} {name.raw};"
    if materialized:
        return None

    kind = stream.accept_any("FUNCTION", "PROCEDURE")
    if kind:
        if_not_exists = stream.accept("IF", "NOT", "EXISTS")
        name = stream.identifier()
        if name is None:
            return None
        if or_replace:
            return _replacement(meta, name, f"DROP {kind}", "oldBody", "oldDefinition")
        if if_not_exists and not meta.created_new:
            return None
        return f"DROP {kind} {name.raw};"

    if stream.accept("TRIGGER"):
        if_not_exists = stream.accept("IF", "NOT", "EXISTS")
        name = stream.identifier()
        if name is None:
            return None
        if or_replace and not meta.created_new:
            previous = meta.get("oldTriggerSQL", "oldDefinition")
            return _terminate(previous) if previous else None
        if if_not_exists and not meta.created_new:
            return None
        if any(token.is_word("BEGIN") for token in stream.tokens):
            # SQLite trigger bodies; DROP TRIGGER there takes no table
            return f"DROP TRIGGER {name.raw};"
        if stream.seek("ON"):
            table = stream.identifier()
            if table is not None:
                return f"DROP TRIGGER {name.raw} ON {table.raw};"
        return f"DROP TRIGGER {name.raw};"

    return None


# ---------------------------------------------------------------- DROP


def _invert_drop(statement: Statement, meta: _Metadata) -> Optional[str]:
    stream = statement.stream()
    stream.next()
    materialized = stream.accept("MATERIALIZED")
    kind = stream.accept_any(*[k for k in _DROP_DEFINITION_KEYS if " " not in k])
    if kind is None:
        return None
    if materialized:
        if kind != "VIEW":
            return None
        kind = "MATERIALIZED VIEW"

    stream.accept("IF", "EXISTS")
    if stream.has_top_level(","):
        # Several objects dropped at once cannot be restored from one definition
        return None

    definition = meta.get(*_DROP_DEFINITION_KEYS[kind])
    return _terminate(definition) if definition else None


# ---------------------------------------------------------------- ALTER / RENAME


def _invert_alter(statement: Statement, meta: _Metadata) -> Optional[str]:
    stream = statement.stream()
    stream.next()
    materialized = stream.accept("MATERIALIZED")
    kind = stream.accept_any("DATABASE", "SCHEMA", "TABLE", "INDEX", "SEQUENCE", "VIEW")
    if kind is None or (materialized and kind != "VIEW"):
        return None
    if materialized:
        kind = "MATERIALIZED VIEW"

    stream.accept("IF", "EXISTS")
    if kind == "TABLE":
        stream.accept("ONLY")
    name = stream.identifier()
    if name is None:
        return None

    if kind == "TABLE":
        return _invert_alter_table(stream, name, meta)

    if stream.accept("RENAME", "TO"):
        new_name = stream.identifier()
        if new_name is None or not stream.at_end:
            return None
        return f"ALTER {kind} {new_name.raw} RENAME TO {name.raw};"

    if stream.accept("OWNER", "TO"):
        old_owner = meta.get("oldOwner")
        return f"ALTER {kind} {name.raw} OWNER TO {old_owner};" if old_owner else None

    if kind == "SEQUENCE":
        if any(token.is_word("RESTART") for token in stream.tokens):
            return None
        old_state = meta.get("oldSeqState")
        return f"ALTER SEQUENCE {name.raw} {old_state};" if old_state else None

    return None


def _invert_alter_table(stream: TokenStream, table: Identifier, meta: _Metadata) -> Optional[str]:
    if stream.has_top_level(","):
        # Multiple actions in one ALTER TABLE are not inverted piecemeal
        return None

    if stream.accept("RENAME", "TO"):
        new_name = stream.identifier()
        if new_name is None:
            return None
        return f"ALTER TABLE {new_name.raw} RENAME TO {table.raw};"

    if stream.accept("RENAME"):
        kind = "CONSTRAINT" if stream.accept("CONSTRAINT") else "COLUMN"
        stream.accept("COLUMN")
        old_name = stream.identifier()
        if old_name is None or not stream.accept("TO"):
            return None
        new_name = stream.identifier()
        if new_name is None:
            return None
        return f"ALTER TABLE {table.raw} RENAME {kind} {new_name.raw} TO {old_name.raw};"

    if stream.accept("OWNER", "TO"):
        old_owner = meta.get("oldOwner")
        return f"ALTER TABLE {table.raw} OWNER TO {old_owner};" if old_owner else None

    if stream.accept("ADD"):
        if stream.accept("CONSTRAINT"):
            constraint = stream.identifier()
            if constraint is None:
                return None
            return f"ALTER TABLE {table.raw} DROP CONSTRAINT {constraint.raw};"
        if stream.at_end or stream.peek().is_word(*_UNNAMED_CONSTRAINTS):
            return None
        stream.accept("COLUMN")
        if_not_exists = stream.accept("IF", "NOT", "EXISTS")
        column = stream.identifier()
        if column is None or (if_not_exists and not meta.created_new):
            return None
        return f"ALTER TABLE {table.raw} DROP COLUMN {column.raw};"

    if stream.accept("DROP"):
        if stream.accept("CONSTRAINT"):
            stream.accept("IF", "EXISTS")
            constraint = stream.identifier()
            definition = meta.get("constraintDefinition")
            if constraint is None or not definition:
                return None
            return f"ALTER TABLE {table.raw} ADD CONSTRAINT {constraint.raw} {definition};"
        if stream.at_end or stream.peek().is_word(*_UNNAMED_CONSTRAINTS):
            return None
        stream.accept("COLUMN")
        stream.accept("IF", "EXISTS")
        column = stream.identifier()
        definition = meta.get("columnDefinition")
        if column is None or not definition:
            return None
        return f"ALTER TABLE {table.raw} ADD COLUMN {definition};"

    if stream.accept("ALTER"):
        stream.accept("COLUMN")
        column = stream.identifier()
        if column is None:
            return None
        prefix = f"ALTER TABLE {table.raw} ALTER COLUMN {column.raw}"
        if stream.accept("SET", "DEFAULT"):
            old_default = meta.raw("oldDefault")
            if old_default is None:
                return f"{prefix} DROP DEFAULT;"
            return f"{prefix} SET DEFAULT {old_default};"
        if stream.accept("DROP", "DEFAULT"):
            old_default = meta.raw("oldDefault")
            return f"{prefix} SET DEFAULT {old_default};" if old_default is not None else None
        if stream.accept("SET", "NOT", "NULL"):
            return f"{prefix} DROP NOT NULL;"
        if stream.accept("DROP", "NOT", "NULL"):
            return f"{prefix} SET NOT NULL;"
        old_state = meta.get("oldColumnState")
        return f"{prefix} {old_state};" if old_state else None

    if stream.accept("MODIFY"):
        stream.accept("COLUMN")
        old_definition = meta.get("oldColumnDefinition")
        return f"ALTER TABLE {table.raw} MODIFY COLUMN {old_definition};" if old_definition else None

    toggle = stream.accept_any("ENABLE", "DISABLE")
    if toggle and stream.accept("TRIGGER"):
        trigger = stream.identifier()
        if trigger is None:
            return None
        inverse = "DISABLE" if toggle == "ENABLE" else "ENABLE"
        return f"ALTER TABLE {table.raw} {inverse} TRIGGER {trigger.raw};"

    return None


def _invert_rename(statement: Statement, meta: _Metadata) -> Optional[str]:
    stream = statement.stream()
    stream.next()
    if not stream.accept("TABLE") or stream.has_top_level(","):
        return None
    old_name = stream.identifier()
    if old_name is None or not stream.accept("TO"):
        return None
    new_name = stream.identifier()
    if new_name is None:
        return None
    return f"RENAME TABLE {new_name.raw} TO {old_name.raw};"


# ---------------------------------------------------------------- DML


def _invert_insert(statement: Statement, meta: _Metadata) -> Optional[str]:
    stream = statement.stream()
    stream.next()
    stream.accept("INTO")
    table = stream.identifier()
    if table is None:
        return None

    # Upserts may have changed existing rows instead of inserting new ones
    tokens = statement.tokens
    for index, token in enumerate(tokens[:-1]):
        if token.is_word("ON") and tokens[index + 1].is_word("CONFLICT", "DUPLICATE"):
            return None

    keys = meta.get("primaryKey", "primaryKeys")
    if isinstance(keys, dict):
        keys = [keys]
    if not isinstance(keys, list) or not all(isinstance(k, dict) and k for k in keys):
        return None
    return "\n".join(
        f"DELETE FROM {table.raw} WHERE {_where_clause(key)};" for key in keys
    )


def _invert_delete(statement: Statement, meta: _Metadata) -> Optional[str]:
    stream = statement.stream()
    stream.next()
    stream.accept("FROM")
    stream.accept("ONLY")
    table = stream.identifier()
    rows = meta.get("rows")
    if table is None or not isinstance(rows, list):
        return None

    inserts = []
    for row in rows:
        if not isinstance(row, dict) or not row:
            return None
        columns = ", ".join(row.keys())
        values = ", ".join(format_literal(v) for v in row.values())
        inserts.append(f"INSERT INTO {table.raw} ({columns}) VALUES ({values});")
    return "\n".join(inserts)


def _assigned_columns(stream: TokenStream) -> List[str]:
    """Collect the column names assigned in an UPDATE's SET clause."""
    columns = []
    depth = 0
    expect_column = True
    while not stream.at_end:
        token = stream.next()
        if token.is_punct("("):
            depth += 1
        elif token.is_punct(")"):
            depth = max(depth - 1, 0)
        elif depth == 0 and token.is_word("WHERE", "FROM", "RETURNING"):
            break
        elif depth == 0 and token.is_punct(","):
            expect_column = True
        elif depth == 0 and expect_column and token.kind in ("word", "quoted"):
            following = stream.peek()
            if following is not None and following.is_punct("."):
                continue
            columns.append(token.text.strip('"`').lower())
            expect_column = False
    return columns


def _invert_update(statement: Statement, meta: _Metadata) -> Optional[str]:
    stream = statement.stream()
    stream.next()
    stream.accept("ONLY")
    table = stream.identifier()
    old_rows = meta.get("oldRows")
    key_fields = meta.get("primaryKeyFields")
    if table is None or not isinstance(old_rows, list) or not isinstance(key_fields, list):
        return None

    if stream.seek("SET"):
        assigned = _assigned_columns(stream)
        if any(field.lower() in assigned for field in key_fields):
            # Rows whose key changed cannot be found again by their old key
            return None

    updates = []
    for row in old_rows:
        if not isinstance(row, dict) or any(field not in row for field in key_fields):
            return None
        key = {field: row[field] for field in key_fields}
        assignments = [
            f"{column} = {format_literal(value)}"
            for column, value in row.items()
            if column not in key_fields
        ]
        if not assignments:
            return None
        updates.append(
            f"UPDATE {table.raw} SET {', '.join(assignments)} WHERE {_where_clause(key)};"
        )
    return "\n".join(updates)


# ---------------------------------------------------------------- ACL / COMMENT


def _top_level_word_index(statement: Statement, word: str, start: int = 1) -> Optional[int]:
    depth = 0
    for index, token in enumerate(statement.tokens):
        if token.is_punct("("):
            depth += 1
        elif token.is_punct(")"):
            depth = max(depth - 1, 0)
        elif index >= start and depth == 0 and token.is_word(word):
            return index
    return None


def _contains_sequence(statement: Statement, *words: str) -> bool:
    tokens = statement.tokens
    for index in range(len(tokens) - len(words) + 1):
        if all(tokens[index + offset].is_word(w) for offset, w in enumerate(words)):
            return True
    return False


def _invert_grant(statement: Statement, meta: _Metadata) -> Optional[str]:
    if (
        _contains_sequence(statement, "WITH", "GRANT", "OPTION")
        or _contains_sequence(statement, "WITH", "ADMIN", "OPTION")
        or _contains_sequence(statement, "GRANTED", "BY")
    ):
        # The grantee may already have held part of what was granted
        return None
    to_index = _top_level_word_index(statement, "TO")
    if to_index is None:
        return None
    return _terminate(
        collapse_whitespace(statement.replace({0: "REVOKE", to_index: "FROM"}))
    )


def _invert_revoke(statement: Statement, meta: _Metadata) -> Optional[str]:
    stream = statement.stream()
    stream.next()
    if stream.at("GRANT", "OPTION") or stream.at("ADMIN", "OPTION"):
        return None
    if any(token.is_word("CASCADE") for token in statement.tokens):
        return None
    from_index = _top_level_word_index(statement, "FROM")
    if from_index is None:
        return None
    replacements = {0: "GRANT", from_index: "TO"}
    for index, token in enumerate(statement.tokens):
        if token.is_word("RESTRICT"):
            replacements[index] = ""
    return _terminate(collapse_whitespace(statement.replace(replacements)))


def _invert_comment(statement: Statement, meta: _Metadata) -> Optional[str]:
    stream = statement.stream()
    stream.next()
    if not stream.accept("ON") or not meta.has("oldComment"):
        return None
    is_index = _top_level_word_index(statement, "IS", start=2)
    if is_index is None:
        return None
    target = statement.text_between(2, is_index)
    old_comment = meta.raw("oldComment")
    return f"COMMENT ON {target} IS {format_literal(old_comment)};"


_HANDLERS = {
    "CREATE": _invert_create,
    "DROP": _invert_drop,
    "ALTER": _invert_alter,
    "RENAME": _invert_rename,
    "INSERT": _invert_insert,
    "DELETE": _invert_delete,
    "UPDATE": _invert_update,
    "GRANT": _invert_grant,
    "REVOKE": _invert_revoke,
    "COMMENT": _invert_comment,
}
