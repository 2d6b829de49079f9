"""Exception hierarchy for the rewrite engine.

Lex, parse and unsupported-construct errors are *input* errors: the pipeline
catches them per stage and passes the stage's input through unchanged.
:class:`EditConflictError` is a *rule authoring* defect and is never swallowed.
"""

from __future__ import annotations


class RewriteEngineError(Exception):
    """Base exception for all rewrite engine errors."""


class SqlLexError(RewriteEngineError):
    """SQL text could not be tokenized."""


class SqlParseError(RewriteEngineError):
    """SQL token stream does not match the Hive grammar.

    Carries the stream index of the offending token (``-1`` at end of input).
    """

    def __init__(self, message: str, token_index: int = -1) -> None:
        super().__init__(message)
        self.token_index = token_index


class UnsupportedConstructError(RewriteEngineError):
    """A rule met a construct it cannot translate.

    Raised only by callers that want exception semantics; rules themselves
    return :class:`rewrite_engine.walker.Unsupported` values.
    """

    def __init__(self, rule: str, reason: str) -> None:
        super().__init__(f"{rule}: {reason}")
        self.rule = rule
        self.reason = reason


class EditConflictError(RewriteEngineError):
    """Two replace/delete edits partially overlap.

    This is a defect in a rule, not an input error.
    """
