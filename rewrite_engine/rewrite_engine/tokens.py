"""Token model shared by the lexer, grammar, ledger and rules.

A :class:`TokenStream` covers its source text byte-for-byte: concatenating
the text of every token reproduces the input exactly.  Whitespace and
comments live on the hidden channel; the grammar only sees the main channel.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator, Sequence
from dataclasses import dataclass


class Channel(str, enum.Enum):
    """Token channel."""

    MAIN = "main"
    HIDDEN = "hidden"


class TokenType(str, enum.Enum):
    """Lexical categories.

    Keywords and bare identifiers are both ``WORD``; the grammar decides
    which is which, case-insensitively.
    """

    WORD = "word"
    QUOTED_IDENTIFIER = "quoted_identifier"
    STRING = "string"
    NUMBER = "number"
    SYMBOL = "symbol"
    WHITESPACE = "whitespace"
    COMMENT = "comment"

    @property
    def channel(self) -> Channel:
        if self in (TokenType.WHITESPACE, TokenType.COMMENT):
            return Channel.HIDDEN
        return Channel.MAIN


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexical token.  Immutable once lexed."""

    index: int
    text: str
    type: TokenType
    channel: Channel

    @property
    def is_hidden(self) -> bool:
        return self.channel is Channel.HIDDEN

    def matches(self, text: str) -> bool:
        """Case-insensitive comparison against *text*."""
        return self.text.lower() == text.lower()


class TokenStream(Sequence[Token]):
    """Read-only, indexable view over the tokens of one lex.

    Parameters
    ----------
    tokens:
        Tokens in source order.  ``tokens[i].index`` must equal ``i``.
    source:
        The text the tokens were produced from.
    """

    def __init__(self, tokens: Sequence[Token], source: str) -> None:
        for position, token in enumerate(tokens):
            if token.index != position:
                raise ValueError(f"Token at position {position} carries index {token.index}")
        self._tokens: tuple[Token, ...] = tuple(tokens)
        self._source = source

    @property
    def source(self) -> str:
        return self._source

    def __len__(self) -> int:
        return len(self._tokens)

    def __getitem__(self, index):  # type: ignore[override]
        return self._tokens[index]

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def main_tokens(self) -> list[Token]:
        """Return the main-channel tokens in order."""
        return [t for t in self._tokens if not t.is_hidden]

    def text(self, start: int = 0, stop: int | None = None) -> str:
        """Return the original text of tokens ``start`` through ``stop`` inclusive."""
        if stop is None:
            stop = len(self._tokens) - 1
        return "".join(t.text for t in self._tokens[start : stop + 1])

    def find(self, start: int, text: str) -> int:
        """Return the index of the first token at or after *start* whose text
        equals *text* case-insensitively, or ``-1``.
        """
        for token in self._tokens[start:]:
            if token.matches(text):
                return token.index
        return -1

    def next_index(self, index: int) -> int | None:
        """Index of the token right after *index*, or ``None`` at the end."""
        nxt = index + 1
        return nxt if nxt < len(self._tokens) else None

    def previous_index(self, index: int) -> int | None:
        """Index of the token right before *index*, or ``None`` at the start."""
        return index - 1 if index > 0 else None
