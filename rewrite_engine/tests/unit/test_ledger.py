"""Unit tests for rewrite_engine.ledger.

Token streams are built by hand so the materializer is exercised without
the lexer.  ``_stream("a", " ", "b")`` yields indices 0, 1, 2.
"""

from __future__ import annotations

import pytest
from rewrite_engine.errors import EditConflictError
from rewrite_engine.ledger import (
    Delete,
    EditLedger,
    InsertAfter,
    InsertBefore,
    Replace,
    render,
)
from rewrite_engine.tokens import Token, TokenStream, TokenType


def _stream(*texts: str) -> TokenStream:
    tokens = []
    for i, text in enumerate(texts):
        if text.isspace():
            token_type = TokenType.WHITESPACE
        elif text.startswith("--") or text.startswith("/*"):
            token_type = TokenType.COMMENT
        else:
            token_type = TokenType.WORD
        tokens.append(Token(i, text, token_type, token_type.channel))
    return TokenStream(tokens, "".join(texts))


# ---------------------------------------------------------------------------
# Fidelity
# ---------------------------------------------------------------------------


class TestFidelity:
    def test_empty_ledger_reproduces_input(self) -> None:
        stream = _stream("SELECT", "  ", "a", " ", "/* c */", "\n", "FROM", " ", "t")
        assert EditLedger(stream).materialize() == stream.source

    def test_render(self) -> None:
        stream = _stream("a", " ", "b")
        assert render(stream) == "a b"

    def test_empty_stream(self) -> None:
        assert EditLedger(_stream()).materialize() == ""


# ---------------------------------------------------------------------------
# Inserts
# ---------------------------------------------------------------------------


class TestInserts:
    def test_accumulate_in_recorded_order(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", "c"))
        ledger.insert_before(2, "1")
        ledger.insert_before(2, "2")
        ledger.insert_after(2, "3")
        ledger.insert_after(2, "4")
        assert ledger.materialize() == "a 12b34 c"

    def test_record_accepts_edit_values(self) -> None:
        ledger = EditLedger(_stream("a"))
        ledger.record(InsertBefore(0, "<"))
        ledger.record(InsertAfter(0, ">"))
        assert len(ledger) == 2
        assert ledger.materialize() == "<a>"

    def test_edits_at(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b"))
        ledger.insert_after(2, "!")
        ledger.delete(2)
        assert ledger.edits_at(2) == [InsertAfter(2, "!"), Delete(2, 2, True)]
        assert ledger.edits_at(0) == []


# ---------------------------------------------------------------------------
# Replace / delete
# ---------------------------------------------------------------------------


class TestReplace:
    def test_single_token(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", "c"))
        ledger.replace(2, 2, "B")
        assert ledger.materialize() == "a B c"

    def test_range_emitted_once(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", "c"))
        ledger.replace(0, 2, "X")
        assert ledger.materialize() == "X c"

    def test_nested_outermost_wins(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", "c"))
        ledger.replace(2, 2, "Y")
        ledger.replace(0, 4, "X")
        assert ledger.materialize() == "X"

    def test_identical_latest_wins(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", "c"))
        ledger.replace(2, 2, "Y")
        ledger.replace(2, 2, "Z")
        assert ledger.materialize() == "a Z c"

    def test_inserts_inside_range_dropped(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", "c"))
        ledger.replace(0, 4, "X")
        ledger.insert_before(2, "<")
        ledger.insert_after(2, ">")
        assert ledger.materialize() == "X"

    def test_inserts_on_outer_edges_kept(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", "c"))
        ledger.replace(2, 4, "X")
        ledger.insert_before(2, "<")
        ledger.insert_after(4, ">")
        ledger.insert_after(2, "!")
        ledger.insert_before(4, "!")
        assert ledger.materialize() == "a <X>"

    def test_inverted_range_rejected(self) -> None:
        with pytest.raises(ValueError, match="inverted"):
            Replace(3, 1, "x")


class TestDelete:
    def test_absorbs_one_trailing_blank(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", "c"))
        ledger.delete(2)
        assert ledger.materialize() == "a c"

    def test_absorbs_only_one_blank(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", " ", "c"))
        ledger.delete(2)
        assert ledger.materialize() == "a  c"

    def test_does_not_absorb_comment(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", "-- x", "\n", "c"))
        ledger.delete(2)
        assert ledger.materialize() == "a -- x\nc"

    def test_does_not_absorb_main_token(self) -> None:
        ledger = EditLedger(_stream("a", "b", "c"))
        ledger.delete(1)
        assert ledger.materialize() == "ac"

    def test_last_token_keeps_preceding_blank(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b"))
        ledger.delete(2)
        assert ledger.materialize() == "a "

    def test_absorb_disabled(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", "c"))
        ledger.delete(2, absorb_blank=False)
        assert ledger.materialize() == "a  c"

    def test_range(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", "c", " ", "d"))
        ledger.delete(2, 4)
        assert ledger.materialize() == "a d"

    def test_absorption_never_swallows_range_start(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b"))
        ledger.delete(0)
        ledger.replace(1, 1, "-")
        assert ledger.materialize() == "-b"

    def test_inserts_inside_deleted_range_dropped(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", "c", " ", "d"))
        ledger.delete(2, 4)
        ledger.insert_before(2, "<")
        ledger.insert_after(3, "|")
        ledger.insert_after(4, ">")
        assert ledger.materialize() == "a d"

    def test_inserts_outside_deleted_range_kept(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", "c"))
        ledger.delete(2)
        ledger.insert_after(0, "<")
        ledger.insert_before(4, ">")
        assert ledger.materialize() == "a< >c"

    def test_injected_blank_predicate(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b"), is_blank=lambda text: False)
        ledger.delete(0)
        assert ledger.materialize() == " b"


# ---------------------------------------------------------------------------
# Conflicts and consumption
# ---------------------------------------------------------------------------


class TestConflicts:
    def test_partial_overlap_raises(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", "c"))
        ledger.replace(0, 2, "X")
        ledger.delete(2, 4)
        with pytest.raises(EditConflictError, match="partially overlaps"):
            ledger.materialize()

    def test_record_never_raises_on_conflict(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", "c"))
        ledger.replace(0, 2, "X")
        ledger.replace(1, 3, "Y")
        assert len(ledger) == 2

    def test_adjacent_ranges_are_fine(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", " ", "c"))
        ledger.replace(0, 1, "X")
        ledger.replace(2, 3, "Y")
        assert ledger.materialize() == "XYc"


class TestConsumption:
    def test_materialize_once(self) -> None:
        ledger = EditLedger(_stream("a"))
        ledger.materialize()
        with pytest.raises(ValueError, match="already been materialized"):
            ledger.materialize()

    def test_foreign_stream_rejected(self) -> None:
        ledger = EditLedger(_stream("a"))
        with pytest.raises(ValueError, match="token stream"):
            ledger.materialize(_stream("a"))

    def test_same_stream_accepted(self) -> None:
        stream = _stream("a")
        ledger = EditLedger(stream)
        ledger.replace(0, 0, "b")
        assert ledger.materialize(stream) == "b"


class TestBlankTrivia:
    def test_default_predicate(self) -> None:
        ledger = EditLedger(_stream("a", " ", "b", "-- x"))
        assert ledger.is_blank_trivia(1)
        assert not ledger.is_blank_trivia(0)
        assert not ledger.is_blank_trivia(3)

    def test_out_of_range(self) -> None:
        ledger = EditLedger(_stream("a", " "))
        assert not ledger.is_blank_trivia(None)
        assert not ledger.is_blank_trivia(-1)
        assert not ledger.is_blank_trivia(2)

    def test_injected_predicate(self) -> None:
        ledger = EditLedger(_stream("a", "\n", "b"), is_blank=lambda text: text == " ")
        assert not ledger.is_blank_trivia(1)
