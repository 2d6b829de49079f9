"""Edit ledger and materializer.

Rules never touch text directly.  They *record* edits anchored to token
indices; once the walk is complete the ledger is *materialized* in a single
linear pass over the original token stream:

    for each token, in index order:
        insert-before texts (recorded order)
        token text | replacement text (once, at range start) | nothing
        insert-after texts (recorded order)

Deleting a token also deletes one immediately-following trivia token if that
token is blank, so removing a keyword does not leave a double space behind.

Replace/Delete ranges may nest (the outermost wins) but must never partially
overlap; partial overlap raises :class:`EditConflictError` at materialize
time.  Inserts anchored inside a deleted range are dropped with it, as are
inserts inside a replaced range other than those on its outer edges.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from rewrite_engine.errors import EditConflictError
from rewrite_engine.tokens import TokenStream

logger = logging.getLogger(__name__)


def default_is_blank(text: str) -> bool:
    """Return ``True`` if *text* is non-empty and contains only whitespace."""
    return bool(text) and text.isspace()


# ---------------------------------------------------------------------------
# Edit types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class InsertBefore:
    anchor: int
    text: str


@dataclass(frozen=True, slots=True)
class InsertAfter:
    anchor: int
    text: str


@dataclass(frozen=True, slots=True)
class Replace:
    start: int
    stop: int
    text: str

    def __post_init__(self) -> None:
        if self.stop < self.start:
            raise ValueError(f"Replace range [{self.start}, {self.stop}] is inverted")


@dataclass(frozen=True, slots=True)
class Delete:
    """Delete tokens ``start`` through ``stop`` inclusive.

    When ``absorb_blank`` is set, one blank trivia token directly after
    ``stop`` is deleted too.
    """

    start: int
    stop: int
    absorb_blank: bool = True

    def __post_init__(self) -> None:
        if self.stop < self.start:
            raise ValueError(f"Delete range [{self.start}, {self.stop}] is inverted")


Edit = InsertBefore | InsertAfter | Replace | Delete


@dataclass(frozen=True, slots=True)
class _Range:
    start: int
    stop: int
    text: str
    seq: int
    deletes: bool = False


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


class EditLedger:
    """Append-only record of pending edits for one token stream.

    Parameters
    ----------
    tokens:
        The stream every anchor refers to.
    is_blank:
        Predicate deciding whether a trivia token's text is blank.
    check_conflicts:
        Validate replace/delete ranges before materializing.
    """

    def __init__(
        self,
        tokens: TokenStream,
        *,
        is_blank: Callable[[str], bool] = default_is_blank,
        check_conflicts: bool = True,
    ) -> None:
        self._tokens = tokens
        self._is_blank = is_blank
        self._check_conflicts = check_conflicts
        self._edits: dict[int, list[Edit]] = defaultdict(list)
        self._count = 0
        self._consumed = False

    @property
    def tokens(self) -> TokenStream:
        return self._tokens

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[Edit]:
        """Iterate all edits in anchor order, then recorded order."""
        for anchor in sorted(self._edits):
            yield from self._edits[anchor]

    def edits_at(self, anchor: int) -> list[Edit]:
        """Return the edits anchored at *anchor*, in recorded order."""
        return list(self._edits.get(anchor, ()))

    def is_blank_trivia(self, index: int | None) -> bool:
        """Return ``True`` if *index* names a hidden token this ledger treats as blank."""
        if index is None or not 0 <= index < len(self._tokens):
            return False
        token = self._tokens[index]
        return token.is_hidden and self._is_blank(token.text)

    # -- recording ------------------------------------------------------------

    def record(self, edit: Edit) -> None:
        """Append *edit* to its anchor's list."""
        anchor = edit.anchor if isinstance(edit, (InsertBefore, InsertAfter)) else edit.start
        self._edits[anchor].append(edit)
        self._count += 1

    def insert_before(self, anchor: int, text: str) -> None:
        self.record(InsertBefore(anchor, text))

    def insert_after(self, anchor: int, text: str) -> None:
        self.record(InsertAfter(anchor, text))

    def replace(self, start: int, stop: int, text: str) -> None:
        self.record(Replace(start, stop, text))

    def delete(self, start: int, stop: int | None = None, *, absorb_blank: bool = True) -> None:
        self.record(Delete(start, start if stop is None else stop, absorb_blank))

    # -- materializing --------------------------------------------------------

    def materialize(self, tokens: TokenStream | None = None) -> str:
        """Replay the token stream with all recorded edits applied.

        Raises
        ------
        ValueError
            If *tokens* is not the stream this ledger was built for, or the
            ledger was already materialized.
        EditConflictError
            If two replace/delete ranges partially overlap.
        """
        if tokens is not None and tokens is not self._tokens:
            raise ValueError("Edits must be materialized against the token stream they were computed from")
        if self._consumed:
            raise ValueError("EditLedger has already been materialized")
        self._consumed = True

        before: dict[int, list[str]] = defaultdict(list)
        after: dict[int, list[str]] = defaultdict(list)
        ranges: list[_Range] = []
        absorb_candidates: list[int] = []

        seq = 0
        for anchor in sorted(self._edits):
            for edit in self._edits[anchor]:
                seq += 1
                if isinstance(edit, InsertBefore):
                    before[edit.anchor].append(edit.text)
                elif isinstance(edit, InsertAfter):
                    after[edit.anchor].append(edit.text)
                elif isinstance(edit, Replace):
                    ranges.append(_Range(edit.start, edit.stop, edit.text, seq))
                else:
                    ranges.append(_Range(edit.start, edit.stop, "", seq, deletes=True))
                    if edit.absorb_blank:
                        absorb_candidates.append(edit.stop + 1)

        if self._check_conflicts:
            self._validate(ranges)

        winners = self._outermost(ranges)
        range_starts = {r.start for r in ranges}
        absorbed = {
            index
            for index in absorb_candidates
            if index not in range_starts and self.is_blank_trivia(index)
        }

        out: list[str] = []
        enclosing: _Range | None = None
        for token in self._tokens:
            i = token.index
            if enclosing is not None and i > enclosing.stop:
                enclosing = None
            if enclosing is None:
                enclosing = winners.get(i)

            if enclosing is None:
                out.extend(before.get(i, ()))
                if i not in absorbed:
                    out.append(token.text)
                out.extend(after.get(i, ()))
                continue

            # Inserts inside a range are dropped with it; a replacement
            # keeps the ones on its outer edges.
            if i == enclosing.start:
                if not enclosing.deletes:
                    out.extend(before.get(i, ()))
                out.append(enclosing.text)
            if i == enclosing.stop and not enclosing.deletes:
                out.extend(after.get(i, ()))

        logger.debug("Materialized %d edits over %d tokens", self._count, len(self._tokens))
        return "".join(out)

    @staticmethod
    def _validate(ranges: list[_Range]) -> None:
        ordered = sorted(ranges, key=lambda r: (r.start, -r.stop))
        for i, outer in enumerate(ordered):
            for inner in ordered[i + 1 :]:
                if inner.start > outer.stop:
                    break
                if inner.stop > outer.stop:
                    raise EditConflictError(
                        f"Edit range [{inner.start}, {inner.stop}] partially overlaps "
                        f"[{outer.start}, {outer.stop}]"
                    )

    @staticmethod
    def _outermost(ranges: list[_Range]) -> dict[int, _Range]:
        """Map start index → winning range, dropping ranges nested in another.

        Among identical ranges the latest recorded wins.
        """
        ordered = sorted(ranges, key=lambda r: (r.start, -r.stop, -r.seq))
        winners: dict[int, _Range] = {}
        covered_until = -1
        for candidate in ordered:
            if candidate.start <= covered_until:
                continue
            winners[candidate.start] = candidate
            covered_until = candidate.stop
        return winners


def render(tokens: TokenStream) -> str:
    """Materialize *tokens* with no edits (the identity rewrite)."""
    return EditLedger(tokens).materialize()
