"""Lightweight SQL tokenizing for sqlrev.

Statements are never parsed into a syntax tree. They are split into a flat
token list that classifiers and synthesizers walk keyword by keyword, which
is enough to recognize statement shapes and pull out object names.
"""

import json
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence


# String literals and quoted identifiers are matched first so comment markers
# inside them survive. ``$tag$ ... $tag$`` bodies count as literals.
_COMMENT_OR_LITERAL = re.compile(
    r"""('(?:[^']|'')*'|"(?:[^"]|"")*"|`[^`]*`|\$([A-Za-z_]\w*|)\$[\s\S]*?\$\2\$)"""
    r"""|--[^\n]*|/\*[\s\S]*?\*/"""
)

_TOKEN_PATTERN = re.compile(
    r"""
    (?P<space>\s+)
  | (?P<string>[EeNn]?'(?:[^']|'')*')
  | (?P<dollar>\$(?P<dollar_tag>[A-Za-z_]\w*|)\$[\s\S]*?\$(?P=dollar_tag)\$)
  | (?P<quoted>"(?:[^"]|"")*"|`[^`]*`)
  | (?P<number>\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)
  | (?P<word>[A-Za-z_][A-Za-z0-9_$]*)
  | (?P<param>[$:@][A-Za-z0-9_]+|\?)
  | (?P<punct>::|<>|!=|<=|>=|\|\||.)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Token:
    """A single lexical token with its offsets in the source text."""

    kind: str
    text: str
    start: int
    end: int

    @property
    def upper(self) -> str:
        return self.text.upper()

    def is_word(self, *words: str) -> bool:
        """Check whether this is a bare word matching one of ``words``."""
        if self.kind != "word":
            return False
        return not words or self.upper in words

    def is_punct(self, text: str) -> bool:
        return self.kind == "punct" and self.text == text


@dataclass(frozen=True)
class Identifier:
    """An object name as written (``raw``) and with delimiters removed (``name``)."""

    name: str
    raw: str


def strip_comments(sql: str) -> str:
    """Remove ``--`` line comments and ``/* */`` block comments.

    Args:
        sql: Raw SQL text

    Returns:
        SQL text without comments, trimmed
    """
    if not sql:
        return ""
    return _COMMENT_OR_LITERAL.sub(lambda m: m.group(1) or " ", sql).strip()


def collapse_whitespace(sql: str) -> str:
    return re.sub(r"\s+", " ", sql).strip()


def tokenize(sql: str) -> List[Token]:
    """Split SQL text into tokens, dropping whitespace."""
    tokens = []
    for match in _TOKEN_PATTERN.finditer(sql):
        kind = match.lastgroup
        if kind == "space":
            continue
        if kind == "dollar":
            kind = "string"
        tokens.append(Token(kind, match.group(), match.start(), match.end()))
    return tokens


def unquote(text: str) -> str:
    """Strip identifier delimiters from a single name part."""
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ('"', "`"):
        inner = text[1:-1]
        return inner.replace('""', '"') if text[0] == '"' else inner
    return text


@dataclass
class Statement:
    """One SQL statement with tokens positioned relative to ``text``."""

    text: str
    tokens: List[Token] = field(default_factory=list)

    @property
    def leading_keyword(self) -> Optional[str]:
        if self.tokens and self.tokens[0].kind == "word":
            return self.tokens[0].upper
        return None

    def stream(self) -> "TokenStream":
        return TokenStream(self.tokens)

    def text_from(self, index: int) -> str:
        """Return the statement text starting at token ``index``."""
        if index >= len(self.tokens):
            return ""
        return self.text[self.tokens[index].start:].strip()

    def text_between(self, start: int, end: int) -> str:
        """Return the text covered by tokens ``start`` up to (excluding) ``end``."""
        if start >= end or start >= len(self.tokens):
            return ""
        last = self.tokens[min(end, len(self.tokens)) - 1]
        return self.text[self.tokens[start].start:last.end].strip()

    def replace(self, replacements: Dict[int, str]) -> str:
        """Rewrite the statement with some tokens substituted.

        Args:
            replacements: Mapping of token index to replacement text

        Returns:
            Rewritten statement text
        """
        pieces = []
        cursor = 0
        for index in sorted(replacements):
            token = self.tokens[index]
            pieces.append(self.text[cursor:token.start])
            pieces.append(replacements[index])
            cursor = token.end
        pieces.append(self.text[cursor:])
        return "".join(pieces)


def parse_statements(sql: str) -> List[Statement]:
    """Strip comments and split text into statements on top-level semicolons.

    Semicolons inside a trigger's ``BEGIN ... END`` body do not end the
    statement. Dollar-quoted bodies are single string tokens, so their
    semicolons never reach the splitter.
    """
    cleaned = strip_comments(sql)
    statements = []
    current: List[Token] = []
    depth = 0
    for token in tokenize(cleaned):
        if token.is_punct(";") and depth == 0:
            if current:
                statements.append(_build_statement(cleaned, current))
            current = []
            continue
        if _is_trigger(current):
            if token.is_word("BEGIN", "CASE"):
                depth += 1
            elif token.is_word("END") and depth > 0:
                depth -= 1
        current.append(token)
    if current:
        statements.append(_build_statement(cleaned, current))
    return statements


def _is_trigger(tokens: List[Token]) -> bool:
    """Check whether ``tokens`` open a ``CREATE [OR REPLACE] [TEMP] TRIGGER``."""
    if not tokens or not tokens[0].is_word("CREATE"):
        return False
    return any(token.is_word("TRIGGER") for token in tokens[1:5])


def single_statement(sql: str) -> Optional[Statement]:
    """Return the only statement in ``sql``, or None for empty/multi-statement text."""
    statements = parse_statements(sql)
    if len(statements) != 1:
        return None
    return statements[0]


def _build_statement(source: str, tokens: List[Token]) -> Statement:
    offset = tokens[0].start
    text = source[offset:tokens[-1].end]
    rebased = [
        Token(t.kind, t.text, t.start - offset, t.end - offset) for t in tokens
    ]
    return Statement(text=text, tokens=rebased)


class TokenStream:
    """Cursor over a statement's tokens with keyword matching helpers."""

    def __init__(self, tokens: Sequence[Token]):
        self.tokens = list(tokens)
        self.pos = 0

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def peek(self, offset: int = 0) -> Optional[Token]:
        index = self.pos + offset
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    def next(self) -> Optional[Token]:
        token = self.peek()
        if token is not None:
            self.pos += 1
        return token

    def at(self, *sequence: str) -> bool:
        """Check whether the upcoming words match ``sequence`` without consuming."""
        for offset, word in enumerate(sequence):
            token = self.peek(offset)
            if token is None or not token.is_word(word):
                return False
        return True

    def accept(self, *sequence: str) -> bool:
        """Consume the upcoming words if they match ``sequence``."""
        if not self.at(*sequence):
            return False
        self.pos += len(sequence)
        return True

    def accept_any(self, *words: str) -> Optional[str]:
        """Consume and return the next word if it is one of ``words``."""
        token = self.peek()
        if token is not None and token.is_word(*words):
            self.pos += 1
            return token.upper
        return None

    def identifier(self) -> Optional[Identifier]:
        """Consume a possibly-qualified name such as ``schema."table"``."""
        parts = []
        raw_parts = []
        while True:
            token = self.peek()
            if token is None or token.kind not in ("word", "quoted"):
                break
            parts.append(unquote(token.text))
            raw_parts.append(token.text)
            self.pos += 1
            dot = self.peek()
            following = self.peek(1)
            if (
                dot is not None
                and dot.is_punct(".")
                and following is not None
                and following.kind in ("word", "quoted")
            ):
                self.pos += 1
                continue
            break
        if not parts:
            return None
        return Identifier(name=".".join(parts), raw=".".join(raw_parts))

    def seek(self, *words: str) -> bool:
        """Advance past the next top-level (unparenthesized) keyword in ``words``."""
        depth = 0
        while not self.at_end:
            token = self.next()
            if token.is_punct("("):
                depth += 1
            elif token.is_punct(")"):
                depth = max(depth - 1, 0)
            elif depth == 0 and token.is_word(*words):
                return True
        return False

    def has_top_level(self, text: str) -> bool:
        """Check for a top-level punctuation token from the current position on."""
        depth = 0
        for token in self.tokens[self.pos:]:
            if token.is_punct("("):
                depth += 1
            elif token.is_punct(")"):
                depth = max(depth - 1, 0)
            elif depth == 0 and token.is_punct(text):
                return True
        return False


def format_literal(value: Any) -> str:
    """Render a Python value as a SQL literal.

    Args:
        value: Captured column value

    Returns:
        SQL literal text (strings are single-quoted with quotes doubled)
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return _quote(value.isoformat())
    if isinstance(value, (dict, list)):
        return _quote(json.dumps(value, sort_keys=True))
    if isinstance(value, bytes):
        return f"X'{value.hex()}'"
    return _quote(str(value))


def _quote(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def statement_label(query: str, target: Optional[str] = None, limit: int = 60) -> str:
    """Build a short label such as ``DROP TABLE orders`` for a statement.

    The label runs from the start of the statement through the first mention
    of ``target``, falling back to a truncated statement.
    """
    text = collapse_whitespace(strip_comments(query)).rstrip(";").strip()
    if target:
        match = re.search(
            r"[`\"]?" + re.escape(target) + r"[`\"]?(?![A-Za-z0-9_])",
            text,
            flags=re.IGNORECASE,
        )
        if match and match.end() <= limit:
            return text[:match.end()]
    if len(text) > limit:
        return text[:limit - 3].rstrip() + "..."
    return text
