"""SQLGlot-backed implementation of the :class:`SqlLexer` protocol.

This is the ONLY file in the codebase that imports ``sqlglot`` directly.

SQLGlot's tokenizer is built for AST round-tripping, not for lossless text
rewriting, so its output is adapted here:

1. Whitespace and comments are dropped by SQLGlot.  They are recovered from
   the gaps between token spans and emitted as hidden-channel tokens.
2. Multi-word keywords (``SORT BY``, ``CLUSTER BY`` ...) arrive as a single
   token.  They are split back into one token per word so that rules can
   anchor edits on each word.
3. ``>>`` is split into two ``>`` tokens so nested complex types close.
4. Synthetic tokens (numeric suffixes such as ``1L`` expand into
   ``1 :: BIGINT``) share the span of the real token and are dropped.

Supports SQLGlot v25.x.
"""

from __future__ import annotations

import logging
import re

import sqlglot
from sqlglot.errors import TokenError
from sqlglot.tokens import Token as GlotToken
from sqlglot.tokens import TokenType as GlotTokenType

from rewrite_engine.errors import SqlLexError
from rewrite_engine.tokens import Token, TokenStream, TokenType

logger = logging.getLogger(__name__)

# sqlglot dialects whose tokenizers share Hive's lexical rules.
HIVE_FAMILY = frozenset({"hive", "spark2", "spark", "databricks"})

_TRIVIA_RE = re.compile(r"(?P<ws>\s+)|(?P<comment>--[^\n]*|/\*.*?\*/)", re.DOTALL)
_WORD_RE = re.compile(r"^[\w$]+$")
_PIECE_RE = re.compile(r"\s+|\S+")

_Piece = tuple[str, TokenType]


def _classify(glot_token: GlotToken, text: str) -> TokenType:
    if glot_token.token_type == GlotTokenType.NUMBER:
        return TokenType.NUMBER
    first = text[0]
    if first in ("'", '"'):
        return TokenType.STRING
    if first == "`":
        return TokenType.QUOTED_IDENTIFIER
    if _WORD_RE.match(text):
        return TokenType.WORD
    return TokenType.SYMBOL


def _split_trivia(gap: str) -> list[_Piece]:
    """Split the text between two SQLGlot tokens into trivia pieces."""
    pieces: list[_Piece] = []
    pos = 0
    while pos < len(gap):
        match = _TRIVIA_RE.match(gap, pos)
        if match is None:
            raise SqlLexError(f"Unrecognised text {gap[pos:pos + 20]!r}")
        kind = TokenType.WHITESPACE if match.group("ws") else TokenType.COMMENT
        pieces.append((match.group(0), kind))
        pos = match.end()
    return pieces


def _split_token(token_type: TokenType, text: str) -> list[_Piece]:
    """Split fused multi-word keywords and ``>>`` into separate pieces."""
    if token_type in (TokenType.STRING, TokenType.QUOTED_IDENTIFIER):
        return [(text, token_type)]
    if text == ">>":
        return [(">", TokenType.SYMBOL), (">", TokenType.SYMBOL)]
    if not any(ch.isspace() for ch in text):
        return [(text, token_type)]

    pieces: list[_Piece] = []
    for match in _PIECE_RE.finditer(text):
        part = match.group(0)
        if part.isspace():
            pieces.append((part, TokenType.WHITESPACE))
        elif _WORD_RE.match(part):
            pieces.append((part, TokenType.WORD))
        else:
            pieces.append((part, TokenType.SYMBOL))
    return pieces


def _merge_digit_identifiers(pieces: list[_Piece]) -> list[_Piece]:
    """Join a number immediately followed by a word (``1var``) into one word."""
    merged: list[_Piece] = []
    for text, token_type in pieces:
        if (
            merged
            and token_type is TokenType.WORD
            and merged[-1][1] is TokenType.NUMBER
            and (text[0].isalpha() or text[0] == "_")
        ):
            merged[-1] = (merged[-1][0] + text, TokenType.WORD)
            continue
        merged.append((text, token_type))
    return merged


class SqlGlotHiveLexer:
    """SQLGlot-backed lexer for the Hive family, producing lossless token streams.

    Parameters
    ----------
    dialect:
        sqlglot dialect whose tokenizer is used; one of :data:`HIVE_FAMILY`.
    """

    def __init__(self, dialect: str = "hive") -> None:
        name = dialect.lower()
        if name not in HIVE_FAMILY:
            known = ", ".join(sorted(HIVE_FAMILY))
            raise ValueError(f"Unsupported lexer dialect {dialect!r}; expected one of {known}")
        self.dialect = name

    def __repr__(self) -> str:
        return f"SqlGlotHiveLexer(dialect={self.dialect!r})"

    def tokenize(self, sql: str) -> TokenStream:
        try:
            glot_tokens = sqlglot.tokenize(sql, read=self.dialect)
        except TokenError as exc:
            raise SqlLexError(f"Cannot tokenize SQL: {exc}") from exc

        pieces: list[_Piece] = []
        cursor = 0
        for glot_token in glot_tokens:
            if glot_token.start < cursor:
                continue
            pieces.extend(_split_trivia(sql[cursor : glot_token.start]))
            text = sql[glot_token.start : glot_token.end + 1]
            pieces.extend(_split_token(_classify(glot_token, text), text))
            cursor = glot_token.end + 1
        pieces.extend(_split_trivia(sql[cursor:]))

        tokens = [
            Token(index=i, text=text, type=token_type, channel=token_type.channel)
            for i, (text, token_type) in enumerate(_merge_digit_identifiers(pieces))
        ]
        logger.debug("Tokenized %d chars into %d tokens", len(sql), len(tokens))
        return TokenStream(tokens, sql)
