"""Utility modules for sqlrev."""

from sqlrev.utils.sql_tokens import (
    Identifier,
    Statement,
    Token,
    TokenStream,
    format_literal,
    parse_statements,
    single_statement,
    statement_label,
    strip_comments,
    tokenize,
)
from sqlrev.utils.name_validator import (
    validate_branch_name,
    validate_connection_id,
    is_valid_branch_name,
)

__all__ = [
    "Identifier",
    "Statement",
    "Token",
    "TokenStream",
    "format_literal",
    "parse_statements",
    "single_statement",
    "statement_label",
    "strip_comments",
    "tokenize",
    "validate_branch_name",
    "validate_connection_id",
    "is_valid_branch_name",
]
