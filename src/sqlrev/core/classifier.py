"""Statement classification for sqlrev.

``classify`` turns an executed statement into a ``DatabaseChange`` by looking
at its leading keyword and walking the tokens that follow. Statements that do
not mutate anything (SELECT, EXPLAIN, SHOW, ...) classify to None.
"""

import logging
from typing import Any, Callable, Dict, Optional

from sqlrev.core.synthesizer import synthesize
from sqlrev.models.change import ChangeOperation, ChangeType, DatabaseChange
from sqlrev.utils.sql_tokens import Statement, TokenStream, parse_statements

logger = logging.getLogger(__name__)


_MAINTENANCE = ("VACUUM", "ANALYZE", "REINDEX", "OPTIMIZE", "CLUSTER")


class _Match:
    """Fields extracted by a matcher, before synthesis."""

    def __init__(
        self,
        type: ChangeType,
        operation: ChangeOperation,
        target: str,
        description: str,
        table_name: Optional[str] = None,
    ):
        self.type = type
        self.operation = operation
        self.target = target
        self.description = description
        self.table_name = table_name


def classify(
    query: str,
    affected_rows: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[DatabaseChange]:
    """Classify a mutating statement into a change record.

    Args:
        query: Executed SQL text
        affected_rows: Row count reported by the database, when known
        metadata: Captured state handed to the rollback synthesizer

    Returns:
        DatabaseChange, or None for non-mutating or unrecognized statements
    """
    statements = parse_statements(query or "")
    if not statements:
        return None
    if len(statements) > 1:
        logger.debug(
            f"Classifying first of {len(statements)} statements; "
            f"inverse of multi-statement text is MANUAL"
        )

    statement = statements[0]
    matcher = _MATCHERS.get(statement.leading_keyword)
    if matcher is None:
        return None

    match = matcher(statement, affected_rows)
    if match is None:
        return None

    return DatabaseChange(
        type=match.type,
        operation=match.operation,
        target=match.target,
        description=match.description,
        query=query.strip(),
        rollback_sql=synthesize(query, metadata),
        table_name=match.table_name,
        affected_rows=affected_rows,
        metadata=dict(metadata or {}),
    )


def _rows(affected_rows: Optional[int], default: str) -> str:
    return str(affected_rows) if affected_rows else default


def _skip_modifiers(stream: TokenStream) -> None:
    while stream.accept_any("TEMP", "TEMPORARY", "UNLOGGED", "GLOBAL", "LOCAL"):
        pass


def _match_create(statement: Statement, affected_rows: Optional[int]) -> Optional[_Match]:
    stream = statement.stream()
    stream.next()
    stream.accept("OR", "REPLACE")
    _skip_modifiers(stream)

    kind = stream.accept_any("DATABASE", "SCHEMA")
    if kind:
        stream.accept("IF", "NOT", "EXISTS")
        name = stream.identifier()
        if name is None:
            return None
        return _Match(
            ChangeType.SYSTEM,
            ChangeOperation.CREATE,
            name.name,
            f"Create {kind.lower()} {name.name}",
        )

    unique = stream.accept("UNIQUE")
    if stream.accept("INDEX"):
        stream.accept("CONCURRENTLY")
        stream.accept("IF", "NOT", "EXISTS")
        name = None if stream.at("ON") else stream.identifier()
        table = None
        if stream.seek("ON"):
            stream.accept("ONLY")
            table = stream.identifier()
        if name is None and table is None:
            return None
        target = name.name if name else table.name
        return _Match(
            ChangeType.SCHEMA,
            ChangeOperation.CREATE,
            target,
            f"Create {'unique ' if unique else ''}index {target}",
            table_name=table.name if table else None,
        )
    if unique:
        return None

    kind = stream.accept_any("TRIGGER", "SEQUENCE")
    if kind:
        stream.accept("IF", "NOT", "EXISTS")
        name = stream.identifier()
        if name is None:
            return None
        return _Match(
            ChangeType.SCHEMA,
            ChangeOperation.CREATE,
            name.name,
            f"Create {kind.lower()} {name.name}",
        )

    if stream.accept("TABLE"):
        stream.accept("IF", "NOT", "EXISTS")
        name = stream.identifier()
        if name is None:
            return None
        return _Match(
            ChangeType.SCHEMA,
            ChangeOperation.CREATE,
            name.name,
            f"Create table {name.name}",
            table_name=name.name,
        )

    materialized = stream.accept("MATERIALIZED")
    kind = stream.accept_any("VIEW", "FUNCTION", "PROCEDURE")
    if kind:
        if materialized and kind != "VIEW":
            return None
        stream.accept("IF", "NOT", "EXISTS")
        name = stream.identifier()
        if name is None:
            return None
        label = f"materialized {kind.lower()}" if materialized else kind.lower()
        return _Match(
            ChangeType.SCHEMA,
            ChangeOperation.CREATE,
            name.name,
            f"Create {label} {name.name}",
        )

    kind = stream.accept_any("ROLE", "USER")
    if kind:
        stream.accept("IF", "NOT", "EXISTS")
        name = stream.identifier()
        if name is None:
            return None
        return _Match(
            ChangeType.ACL,
            ChangeOperation.CREATE,
            name.name,
            f"Create {kind.lower()} {name.name}",
        )

    return None


_DROP_KINDS = (
    "TABLE",
    "INDEX",
    "VIEW",
    "SEQUENCE",
    "TRIGGER",
    "FUNCTION",
    "PROCEDURE",
    "TYPE",
    "ROLE",
    "USER",
)


def _match_drop(statement: Statement, affected_rows: Optional[int]) -> Optional[_Match]:
    stream = statement.stream()
    stream.next()

    kind = stream.accept_any("DATABASE", "SCHEMA")
    if kind:
        stream.accept("IF", "EXISTS")
        name = stream.identifier()
        if name is None:
            return None
        return _Match(
            ChangeType.SYSTEM,
            ChangeOperation.DROP,
            name.name,
            f"Drop {kind.lower()} {name.name}",
        )

    materialized = stream.accept("MATERIALIZED")
    kind = stream.accept_any(*_DROP_KINDS)
    if kind is None or (materialized and kind != "VIEW"):
        return None
    stream.accept("CONCURRENTLY")
    stream.accept("IF", "EXISTS")
    name = stream.identifier()
    if name is None:
        return None

    if kind == "TABLE":
        return _Match(
            ChangeType.SCHEMA,
            ChangeOperation.DROP,
            name.name,
            f"Drop table {name.name}",
            table_name=name.name,
        )
    label = "materialized view" if materialized else kind.lower()
    return _Match(
        ChangeType.ACL if kind in ("ROLE", "USER") else ChangeType.SCHEMA,
        ChangeOperation.DROP,
        name.name,
        f"Drop {label} {name.name}",
    )


def _match_alter(statement: Statement, affected_rows: Optional[int]) -> Optional[_Match]:
    stream = statement.stream()
    stream.next()
    materialized = stream.accept("MATERIALIZED")
    kind = stream.accept_any(
        "TABLE",
        "DATABASE",
        "SCHEMA",
        "INDEX",
        "SEQUENCE",
        "VIEW",
        "FUNCTION",
        "PROCEDURE",
        "TRIGGER",
        "ROLE",
        "USER",
    )
    if kind is None or (materialized and kind != "VIEW"):
        return None
    stream.accept("IF", "EXISTS")
    stream.accept("ONLY")
    name = stream.identifier()
    if name is None:
        return None

    renamed = stream.at("RENAME", "TO")
    operation = ChangeOperation.RENAME if renamed else ChangeOperation.ALTER

    if kind == "TABLE":
        verb = "Rename" if renamed else "Alter"
        return _Match(
            ChangeType.SCHEMA,
            operation,
            name.name,
            f"{verb} table {name.name}",
            table_name=name.name,
        )
    label = "materialized view" if materialized else kind.lower()
    return _Match(
        ChangeType.ACL if kind in ("ROLE", "USER") else ChangeType.SCHEMA,
        operation,
        name.name,
        f"{'Rename' if renamed else 'Alter'} {label} {name.name}",
    )


def _match_rename(statement: Statement, affected_rows: Optional[int]) -> Optional[_Match]:
    stream = statement.stream()
    stream.next()
    if not stream.accept("TABLE"):
        return None
    name = stream.identifier()
    if name is None:
        return None
    return _Match(
        ChangeType.SCHEMA,
        ChangeOperation.RENAME,
        name.name,
        f"Rename table {name.name}",
        table_name=name.name,
    )


def _match_refresh(statement: Statement, affected_rows: Optional[int]) -> Optional[_Match]:
    stream = statement.stream()
    stream.next()
    if not stream.accept("MATERIALIZED", "VIEW"):
        return None
    stream.accept("CONCURRENTLY")
    name = stream.identifier()
    if name is None:
        return None
    return _Match(
        ChangeType.SCHEMA,
        ChangeOperation.ALTER,
        name.name,
        f"Refresh materialized view {name.name}",
    )


def _match_acl(statement: Statement, affected_rows: Optional[int]) -> Optional[_Match]:
    operation = ChangeOperation(statement.leading_keyword)
    stream = statement.stream()
    stream.next()
    target = "permissions"
    if stream.seek("ON", "FROM", "TO"):
        previous = stream.tokens[stream.pos - 1]
        if previous.is_word("ON"):
            stream.accept_any(
                "TABLE", "SEQUENCE", "SCHEMA", "DATABASE", "FUNCTION", "PROCEDURE"
            )
            stream.accept("ALL", "TABLES", "IN", "SCHEMA")
            name = stream.identifier()
            if name is not None:
                target = name.name
    verb = "Grant" if operation == ChangeOperation.GRANT else "Revoke"
    suffix = "" if target == "permissions" else f" on {target}"
    return _Match(ChangeType.ACL, operation, target, f"{verb} permissions{suffix}")


def _match_comment(statement: Statement, affected_rows: Optional[int]) -> Optional[_Match]:
    stream = statement.stream()
    stream.next()
    if not stream.accept("ON"):
        return None
    kind = stream.next()
    if kind is None:
        return None
    label = kind.text.lower()
    if stream.accept("VIEW"):
        label += " view"
    name = stream.identifier()
    if name is None:
        return _Match(ChangeType.SCHEMA, ChangeOperation.ALTER, "comment", "Update comment")
    return _Match(
        ChangeType.SCHEMA,
        ChangeOperation.ALTER,
        name.name,
        f"Update comment on {label} {name.name}",
    )


def _match_insert(statement: Statement, affected_rows: Optional[int]) -> Optional[_Match]:
    stream = statement.stream()
    merge = stream.next().is_word("MERGE")
    stream.accept("INTO")
    table = stream.identifier()
    if table is None:
        return None
    if merge:
        return _Match(
            ChangeType.DATA,
            ChangeOperation.UPDATE,
            table.name,
            f"Merge {_rows(affected_rows, '1')} row(s) into {table.name}",
            table_name=table.name,
        )
    return _Match(
        ChangeType.DATA,
        ChangeOperation.INSERT,
        table.name,
        f"Insert {_rows(affected_rows, '1')} row(s) into {table.name}",
        table_name=table.name,
    )


def _match_update(statement: Statement, affected_rows: Optional[int]) -> Optional[_Match]:
    stream = statement.stream()
    stream.next()
    stream.accept("ONLY")
    table = stream.identifier()
    if table is None:
        return None
    return _Match(
        ChangeType.DATA,
        ChangeOperation.UPDATE,
        table.name,
        f"Update {_rows(affected_rows, 'unknown')} row(s) in {table.name}",
        table_name=table.name,
    )


def _match_delete(statement: Statement, affected_rows: Optional[int]) -> Optional[_Match]:
    stream = statement.stream()
    stream.next()
    stream.accept("FROM")
    stream.accept("ONLY")
    table = stream.identifier()
    if table is None:
        return None
    return _Match(
        ChangeType.DATA,
        ChangeOperation.DELETE,
        table.name,
        f"Delete {_rows(affected_rows, 'unknown')} row(s) from {table.name}",
        table_name=table.name,
    )


def _match_truncate(statement: Statement, affected_rows: Optional[int]) -> Optional[_Match]:
    stream = statement.stream()
    stream.next()
    stream.accept("TABLE")
    stream.accept("ONLY")
    table = stream.identifier()
    if table is None:
        return None
    return _Match(
        ChangeType.DATA,
        ChangeOperation.TRUNCATE,
        table.name,
        f"Truncate table {table.name}",
        table_name=table.name,
    )


def _match_maintenance(statement: Statement, affected_rows: Optional[int]) -> Optional[_Match]:
    keyword = statement.leading_keyword
    return _Match(
        ChangeType.SYSTEM,
        ChangeOperation.ALTER,
        "database",
        f"Run {keyword.lower()}",
    )


# Keyed on the leading keyword. Within CREATE and DROP the matchers check
# database/schema first, then index/trigger/sequence, then table, then
# view/function/procedure.
_MATCHERS: Dict[Optional[str], Callable[[Statement, Optional[int]], Optional[_Match]]] = {
    "CREATE": _match_create,
    "DROP": _match_drop,
    "ALTER": _match_alter,
    "RENAME": _match_rename,
    "REFRESH": _match_refresh,
    "GRANT": _match_acl,
    "REVOKE": _match_acl,
    "COMMENT": _match_comment,
    "INSERT": _match_insert,
    "MERGE": _match_insert,
    "UPDATE": _match_update,
    "DELETE": _match_delete,
    "TRUNCATE": _match_truncate,
}
_MATCHERS.update({keyword: _match_maintenance for keyword in _MAINTENANCE})
