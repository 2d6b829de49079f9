"""Token-preserving Hive → Presto SQL rewriter.

Usage::

    from rewrite_engine import rewrite

    rewrite("SELECT `a` % 2 FROM t SORT BY b")
    # 'SELECT mod("a", 2) FROM t order BY b'

Everything outside a dialect difference (whitespace, comments, casing,
token order) is reproduced byte-for-byte.
"""

from __future__ import annotations

from rewrite_engine.errors import (
    EditConflictError,
    RewriteEngineError,
    SqlLexError,
    SqlParseError,
    UnsupportedConstructError,
)
from rewrite_engine.grammar import parse
from rewrite_engine.ledger import EditLedger
from rewrite_engine.lexer import tokenize
from rewrite_engine.pipeline import (
    RewritePipeline,
    RewriteReport,
    StageReport,
    StageStatus,
    check_syntax,
    rewrite,
    validate,
)
from rewrite_engine.rules import PRESTO_STAGES, presto_stage
from rewrite_engine.syntax import NodeKind, SyntaxNode
from rewrite_engine.tokens import Channel, Token, TokenStream, TokenType
from rewrite_engine.walker import Stage, walk

__all__ = [
    "Channel",
    "EditConflictError",
    "EditLedger",
    "NodeKind",
    "PRESTO_STAGES",
    "RewriteEngineError",
    "RewritePipeline",
    "RewriteReport",
    "SqlLexError",
    "SqlParseError",
    "Stage",
    "StageReport",
    "StageStatus",
    "SyntaxNode",
    "Token",
    "TokenStream",
    "TokenType",
    "UnsupportedConstructError",
    "check_syntax",
    "parse",
    "presto_stage",
    "rewrite",
    "tokenize",
    "validate",
    "walk",
]
