"""Unit tests for rewrite_engine.pipeline -- stage chaining and failure isolation."""

from __future__ import annotations

import logging

import pytest
from rewrite_engine.config import load_settings
from rewrite_engine.errors import EditConflictError, SqlLexError, SqlParseError
from rewrite_engine.pipeline import (
    RewritePipeline,
    RewriteReport,
    StageStatus,
    check_syntax,
    rewrite,
    validate,
)
from rewrite_engine.rules.presto import presto_stage
from rewrite_engine.syntax import NodeKind
from rewrite_engine.telemetry.profiling import ProfileCollector
from rewrite_engine.tokens import TokenStream
from rewrite_engine.walker import Phase, Rule, RuleOutcome, Stage

# ---------------------------------------------------------------------------
# Helper stages
# ---------------------------------------------------------------------------


def _upper_select(tokens: TokenStream) -> Stage:
    """Stage that rewrites the first ``select`` keyword to ``SELECT``."""

    def handler(node, toks, ledger):
        ledger.replace(node.start, node.start, "SELECT")
        return RuleOutcome.APPLIED

    return Stage("upper_select", tokens, [Rule("upper", NodeKind.QUERY_SPECIFICATION, Phase.ENTER, handler)])


def _exploding(tokens: TokenStream) -> Stage:
    def handler(node, toks, ledger):
        ledger.replace(node.start, node.stop, "garbage")
        raise RuntimeError("rule bug")

    return Stage("exploding", tokens, [Rule("boom", NodeKind.SINGLE_STATEMENT, Phase.ENTER, handler)])


def _conflicting(tokens: TokenStream) -> Stage:
    def handler(node, toks, ledger):
        ledger.replace(node.start, node.start + 2, "x")
        ledger.delete(node.start + 1, node.stop)
        return RuleOutcome.APPLIED

    return Stage("conflicting", tokens, [Rule("overlap", NodeKind.SINGLE_STATEMENT, Phase.ENTER, handler)])


def _broken_factory(tokens: TokenStream) -> Stage:
    raise RuntimeError("cannot build stage")


# ---------------------------------------------------------------------------
# Module-level rewrite
# ---------------------------------------------------------------------------


class TestRewrite:
    def test_default_stages_are_presto(self) -> None:
        assert rewrite("SELECT 7 % 2") == "SELECT mod(7, 2)"

    def test_malformed_input_returned_unchanged(self) -> None:
        assert rewrite("SELECT FROM") == "SELECT FROM"

    def test_unlexable_input_returned_unchanged(self) -> None:
        assert rewrite("SELECT 'open") == "SELECT 'open"

    def test_empty_input(self) -> None:
        assert rewrite("") == ""

    def test_explicit_stage_list(self) -> None:
        assert rewrite("select 1", stages=[_upper_select]) == "SELECT 1"

    def test_no_stages_is_identity(self) -> None:
        assert rewrite("SELECT 7 % 2", stages=[]) == "SELECT 7 % 2"


class TestSyntaxCheck:
    def test_valid(self) -> None:
        check_syntax("SELECT a FROM t WHERE a RLIKE 'x'")
        assert validate("SELECT a FROM t")

    def test_parse_error(self) -> None:
        with pytest.raises(SqlParseError):
            check_syntax("SELECT FROM")
        assert not validate("SELECT FROM")

    def test_lex_error(self) -> None:
        with pytest.raises(SqlLexError):
            check_syntax("SELECT 'open")
        assert not validate("SELECT 'open")


# ---------------------------------------------------------------------------
# Chaining and isolation
# ---------------------------------------------------------------------------


class TestChaining:
    def test_output_feeds_next_stage(self) -> None:
        pipeline = RewritePipeline([presto_stage, _upper_select])
        assert pipeline.rewrite("select 7 % 2") == "SELECT mod(7, 2)"

    def test_each_stage_relexes(self) -> None:
        # The second presto pass sees the first pass's output as fresh text.
        pipeline = RewritePipeline([presto_stage, presto_stage])
        assert pipeline.rewrite("SELECT 7 % 2") == "SELECT mod(7, 2)"


class TestIsolation:
    def test_failing_stage_does_not_affect_others(self) -> None:
        alone = RewritePipeline([presto_stage]).rewrite("SELECT 7 % 2")
        isolated = RewritePipeline([_exploding, presto_stage]).rewrite("SELECT 7 % 2")
        assert isolated == alone

    def test_failing_stage_edits_discarded(self) -> None:
        assert RewritePipeline([_exploding]).rewrite("SELECT 1") == "SELECT 1"

    def test_unsupported_discards_whole_stage(self) -> None:
        sql = "SELECT a % 2 FROM t LATERAL VIEW posexplode(b) x AS i, a"
        assert RewritePipeline([presto_stage]).rewrite(sql) == sql

    def test_broken_factory_skipped(self) -> None:
        assert RewritePipeline([_broken_factory, _upper_select]).rewrite("select 1") == "SELECT 1"

    def test_edit_conflict_escapes(self) -> None:
        with pytest.raises(EditConflictError):
            RewritePipeline([_conflicting]).rewrite("SELECT a FROM t")


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class TestLogging:
    def test_parse_failure_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="rewrite_engine.pipeline"):
            RewritePipeline([presto_stage]).rewrite("SELECT FROM")
        assert any("presto" in r.getMessage() and r.levelno == logging.WARNING for r in caplog.records)

    def test_unexpected_error_logged_with_traceback(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="rewrite_engine.pipeline"):
            RewritePipeline([_exploding]).rewrite("SELECT 1")
        record = next(r for r in caplog.records if "exploding" in r.getMessage())
        assert record.exc_info is not None

    def test_injected_logger(self, caplog: pytest.LogCaptureFixture) -> None:
        custom = logging.getLogger("tests.custom_rewrite")
        with caplog.at_level(logging.WARNING, logger="tests.custom_rewrite"):
            RewritePipeline([presto_stage], logger=custom).rewrite("SELECT FROM")
        assert [r.name for r in caplog.records] == ["tests.custom_rewrite"]

    def test_success_logs_no_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            rewrite("SELECT 7 % 2")
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


class TestReport:
    def test_statuses(self) -> None:
        pipeline = RewritePipeline([presto_stage, _exploding, presto_stage])
        report = pipeline.rewrite_with_report("SELECT 7 % 2")
        assert isinstance(report, RewriteReport)
        assert [s.stage for s in report.stages] == ["presto", "exploding", "presto"]
        assert [s.status for s in report.stages] == [
            StageStatus.APPLIED,
            StageStatus.SKIPPED,
            StageStatus.UNCHANGED,
        ]
        assert report.stages[0].edits == 4
        assert "rule bug" in report.stages[1].reason
        assert report.changed
        assert report.skipped == [report.stages[1]]

    def test_unsupported_reason(self) -> None:
        report = RewritePipeline([presto_stage]).rewrite_with_report(
            "SELECT a FROM t LATERAL VIEW json_tuple(j, 'k') x AS a"
        )
        assert report.stages[0].status is StageStatus.SKIPPED
        assert report.stages[0].reason.startswith("lateral_view:")
        assert not report.changed

    def test_factory_name_used_when_stage_never_built(self) -> None:
        report = RewritePipeline([_broken_factory]).rewrite_with_report("SELECT 1")
        assert report.stages[0].stage == "_broken_factory"

    def test_serializable(self) -> None:
        report = RewritePipeline([presto_stage]).rewrite_with_report("SELECT 1")
        data = report.model_dump(mode="json")
        assert data["stages"][0]["status"] == "UNCHANGED"
        assert data["output"] == "SELECT 1"


# ---------------------------------------------------------------------------
# Settings and profiling integration
# ---------------------------------------------------------------------------


class TestFromSettings:
    def test_builds_configured_stages(self) -> None:
        pipeline = RewritePipeline.from_settings(load_settings(stages=["presto"]))
        assert len(pipeline.stage_factories) == 1
        assert pipeline.rewrite("SELECT `a`") == 'SELECT "a"'

    def test_conflict_check_flag_forwarded(self) -> None:
        pipeline = RewritePipeline.from_settings(load_settings(check_edit_conflicts=False))
        stage = pipeline.stage_factories[0](TokenStream([], ""))
        assert stage.ledger._check_conflicts is False

    def test_unknown_stage_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown stage"):
            RewritePipeline.from_settings(load_settings(stages=["oracle"]))


class TestProfiling:
    @pytest.fixture(autouse=True)
    def _reset_collector(self):
        ProfileCollector.reset()
        yield
        ProfileCollector.reset()

    def test_rewrite_is_timed(self) -> None:
        rewrite("SELECT 1")
        rewrite("SELECT 2")
        stats = ProfileCollector.get_instance().get_stats("sql.rewrite")
        assert stats is not None
        assert stats.count == 2
        assert stats.failures == 0
