"""Lexer lookup by source dialect.

Lexers hold no per-call state, so one instance per dialect is built on
first use and shared.  Without a registration, a dialect gets the built-in
sqlglot lexer for that dialect.
"""

from __future__ import annotations

import threading
from typing import Callable

from ._protocols import SqlLexer

DEFAULT_DIALECT = "hive"

_lock = threading.Lock()
_factories: dict[str, Callable[[], SqlLexer]] = {}
_lexers: dict[str, SqlLexer] = {}


def register_lexer(factory_fn: Callable[[], SqlLexer], dialect: str = DEFAULT_DIALECT) -> None:
    """Use *factory_fn* to build the lexer for *dialect*.

    Replaces the built-in lexer and any instance already built for it.
    """
    key = dialect.lower()
    with _lock:
        _factories[key] = factory_fn
        _lexers.pop(key, None)


def get_lexer(dialect: str = DEFAULT_DIALECT) -> SqlLexer:
    """Return the shared lexer for *dialect*.

    Raises
    ------
    ValueError
        If nothing is registered for *dialect* and the built-in lexer does
        not support it.
    """
    key = dialect.lower()
    with _lock:
        lexer = _lexers.get(key)
        if lexer is None:
            factory = _factories.get(key)
            if factory is not None:
                lexer = factory()
            else:
                from .sqlglot_impl import SqlGlotHiveLexer

                lexer = SqlGlotHiveLexer(key)
            _lexers[key] = lexer
        return lexer


def reset_lexer() -> None:
    """Drop registrations and built instances (for testing)."""
    with _lock:
        _factories.clear()
        _lexers.clear()
