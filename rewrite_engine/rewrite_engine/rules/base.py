"""Shared helpers for rule handlers.

Handlers only ever record edits; these helpers encode the common
deletion patterns so individual rules stay declarative.
"""

from __future__ import annotations

from rewrite_engine.ledger import EditLedger
from rewrite_engine.syntax import SyntaxNode
from rewrite_engine.tokens import Token


def delete_token(ledger: EditLedger, token: Token) -> None:
    """Delete *token* and one blank trivia token right after it."""
    ledger.delete(token.index)


def delete_clause(ledger: EditLedger, start: int, stop: int) -> None:
    """Delete tokens ``start..stop`` without leaving a stray blank behind.

    A trailing blank is absorbed as usual.  When there is none (the clause
    ends the statement or is followed by ``;``), the blank before the
    clause goes instead.  Blankness is judged by the ledger's own predicate.
    """
    tokens = ledger.tokens
    if ledger.is_blank_trivia(tokens.next_index(stop)):
        ledger.delete(start, stop)
        return
    previous = tokens.previous_index(start)
    if previous is not None and ledger.is_blank_trivia(previous):
        ledger.delete(previous, stop, absorb_blank=False)
    else:
        ledger.delete(start, stop, absorb_blank=False)


def name_parts(name: SyntaxNode | None) -> tuple[SyntaxNode, ...]:
    """Identifier nodes of a ``QUALIFIED_NAME``."""
    if name is None:
        return ()
    return name.get_all("parts")


def identifier_token(identifier: SyntaxNode) -> Token:
    """The single token an identifier node wraps."""
    return next(identifier.child_tokens())


def identifier_text(identifier: SyntaxNode) -> str:
    """The identifier's name with any backtick quoting removed."""
    text = identifier_token(identifier).text
    if text.startswith("`"):
        return text[1:-1].replace("``", "`")
    return text


def is_simple_name(name: SyntaxNode | None, expected: str) -> bool:
    """``True`` if *name* is a single unquoted identifier equal to *expected*."""
    parts = name_parts(name)
    if len(parts) != 1:
        return False
    return identifier_token(parts[0]).matches(expected)
