"""Lexer -- implementation-agnostic tokenization of Hive SQL.

Usage::

    from rewrite_engine.lexer import tokenize

    tokens = tokenize("SELECT `col` FROM t")
    assert tokens.text() == "SELECT `col` FROM t"

The default implementation delegates to SQLGlot.  A different backend can be
swapped in per dialect via ``register_lexer()`` without touching consumer
code.
"""

from rewrite_engine.tokens import TokenStream

from ._factory import DEFAULT_DIALECT, get_lexer, register_lexer, reset_lexer
from ._protocols import SqlLexer


def tokenize(sql: str, dialect: str = DEFAULT_DIALECT) -> TokenStream:
    """Tokenize *sql* with the lexer for *dialect*."""
    return get_lexer(dialect).tokenize(sql)


__all__ = [
    "DEFAULT_DIALECT",
    "SqlLexer",
    "get_lexer",
    "register_lexer",
    "reset_lexer",
    "tokenize",
]
