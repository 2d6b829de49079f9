"""Lexer protocol definition.

Any lexer backend must satisfy this contract.  Consumer code depends on the
protocol, never on a concrete implementation.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from rewrite_engine.tokens import TokenStream


@runtime_checkable
class SqlLexer(Protocol):
    """Tokenize Hive SQL into a lossless token stream."""

    def tokenize(self, sql: str) -> TokenStream:
        """Tokenize *sql*.

        The returned stream must cover *sql* byte-for-byte, with whitespace
        and comments on the hidden channel.

        Raises:
            SqlLexError: If *sql* contains text the lexer cannot tokenize.
        """
        ...
