"""Multi-stage rewrite pipeline with per-stage failure isolation.

For each stage factory, in order::

    lex current text → build stage → parse → walk → materialize

and the output feeds the next stage.  If a stage fails to lex or parse,
hits an :class:`Unsupported` rule, or raises anything unexpected, its edits
are discarded, a warning is logged and its input passes through unchanged.
The only exception that escapes is :class:`EditConflictError`, which means
a rule recorded overlapping edits and is a bug in the rule catalog.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Sequence
from enum import Enum

from pydantic import BaseModel, Field

from rewrite_engine.config import Settings
from rewrite_engine.errors import (
    EditConflictError,
    SqlLexError,
    SqlParseError,
    UnsupportedConstructError,
)
from rewrite_engine.grammar import parse
from rewrite_engine.lexer import tokenize
from rewrite_engine.rules.presto import PRESTO_STAGES
from rewrite_engine.rules.registry import StageFactory, resolve_stages
from rewrite_engine.telemetry.profiling import profile_operation
from rewrite_engine.walker import walk

logger = logging.getLogger(__name__)


class StageStatus(str, Enum):
    """Outcome of a single stage."""

    APPLIED = "APPLIED"
    UNCHANGED = "UNCHANGED"
    SKIPPED = "SKIPPED"


class StageReport(BaseModel):
    """The outcome of one stage of a rewrite."""

    stage: str = Field(..., description="Stage name, or the factory name if the stage was never built.")
    status: StageStatus = Field(..., description="Whether the stage's edits were applied.")
    reason: str = Field(default="", description="Why the stage was skipped.")
    edits: int = Field(default=0, description="Number of edits recorded by the stage's rules.")


class RewriteReport(BaseModel):
    """Input, output and per-stage outcomes of one rewrite."""

    source: str = Field(..., description="SQL text given to the pipeline.")
    output: str = Field(..., description="SQL text after every stage ran.")
    stages: list[StageReport] = Field(default_factory=list, description="One report per stage, in order.")

    @property
    def changed(self) -> bool:
        return self.output != self.source

    @property
    def skipped(self) -> list[StageReport]:
        return [s for s in self.stages if s.status == StageStatus.SKIPPED]


def _factory_name(factory: StageFactory) -> str:
    target = factory.func if isinstance(factory, functools.partial) else factory
    return getattr(target, "__name__", repr(target))


class RewritePipeline:
    """Ordered sequence of stage factories applied to SQL text.

    Parameters
    ----------
    stage_factories:
        Callables taking a fresh :class:`TokenStream` and returning a
        :class:`Stage` bound to it.
    logger:
        Logger used for stage warnings.  Defaults to this module's logger.
    """

    def __init__(
        self,
        stage_factories: Sequence[StageFactory],
        logger: logging.Logger | None = None,
    ) -> None:
        self._factories = tuple(stage_factories)
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    @classmethod
    def from_settings(cls, settings: Settings, logger: logging.Logger | None = None) -> RewritePipeline:
        """Build a pipeline from configured stage names.

        Raises
        ------
        ValueError
            If a configured stage name is not registered.
        """
        factories = [
            functools.partial(factory, check_conflicts=settings.check_edit_conflicts)
            for factory in resolve_stages(settings.stages)
        ]
        return cls(factories, logger=logger)

    @property
    def stage_factories(self) -> tuple[StageFactory, ...]:
        return self._factories

    def rewrite(self, sql: str) -> str:
        """Rewrite *sql* through every stage and return the final text."""
        return self.rewrite_with_report(sql).output

    @profile_operation("sql.rewrite")
    def rewrite_with_report(self, sql: str) -> RewriteReport:
        """Rewrite *sql* and report what each stage did."""
        current = sql
        reports: list[StageReport] = []
        for factory in self._factories:
            current, report = self._run_stage(factory, current)
            reports.append(report)
        return RewriteReport(source=sql, output=current, stages=reports)

    def _run_stage(self, factory: StageFactory, sql: str) -> tuple[str, StageReport]:
        name = _factory_name(factory)
        try:
            tokens = tokenize(sql)
            stage = factory(tokens)
            name = stage.name
            tree = parse(tokens)
            result = walk(tree, stage)
            if result.unsupported is not None:
                raise UnsupportedConstructError(result.unsupported.rule, result.unsupported.reason)
            output = stage.ledger.materialize(tokens)
        except EditConflictError:
            raise
        except (SqlLexError, SqlParseError, UnsupportedConstructError) as exc:
            self._logger.warning("Stage %s skipped, input passed through unchanged: %s", name, exc)
            return sql, StageReport(stage=name, status=StageStatus.SKIPPED, reason=str(exc))
        except Exception as exc:
            self._logger.warning("Stage %s failed unexpectedly, input passed through unchanged", name, exc_info=True)
            return sql, StageReport(stage=name, status=StageStatus.SKIPPED, reason=f"{type(exc).__name__}: {exc}")

        status = StageStatus.APPLIED if output != sql else StageStatus.UNCHANGED
        return output, StageReport(stage=name, status=status, edits=len(stage.ledger))


def rewrite(sql: str, stages: Sequence[StageFactory] | None = None) -> str:
    """Rewrite Hive *sql* into Presto SQL.

    Returns *sql* unchanged if no stage could be applied.
    """
    return RewritePipeline(PRESTO_STAGES if stages is None else stages).rewrite(sql)


def check_syntax(sql: str) -> None:
    """Lex and parse *sql*, raising on the first error.

    Raises
    ------
    SqlLexError
        If *sql* cannot be tokenized.
    SqlParseError
        If *sql* is not a supported Hive statement.
    """
    parse(tokenize(sql))


def validate(sql: str) -> bool:
    """Return ``True`` if *sql* lexes and parses as a supported Hive statement."""
    try:
        check_syntax(sql)
    except (SqlLexError, SqlParseError):
        return False
    return True
