"""sqlshift CLI application -- Typer-based front end for the rewrite engine.

Rewritten SQL goes to *stdout* so the command composes in shell pipelines;
reports, diagnostics and the rule catalog go to *stderr* via Rich.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer
from rich.console import Console

from cli.display import display_rewrite_report, display_rules

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="sqlshift",
    help="sqlshift - token-preserving Hive to Presto SQL rewriter",
    no_args_is_help=True,
)
console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _read_sql(sql: str | None, file: Path | None) -> str:
    """Return SQL from the argument, the file, or stdin, in that order."""
    if sql is not None and file is not None:
        console.print("[red]Pass either a SQL argument or --file, not both.[/red]")
        raise typer.Exit(code=2)
    if sql is not None:
        return sql
    if file is not None:
        try:
            return file.read_text(encoding="utf-8")
        except OSError as exc:
            console.print(f"[red]Cannot read {file}: {exc}[/red]")
            raise typer.Exit(code=2) from exc
    if sys.stdin.isatty():
        console.print("[red]No SQL given. Pass it as an argument, with --file, or on stdin.[/red]")
        raise typer.Exit(code=2)
    return sys.stdin.read()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def rewrite(
    sql: str | None = typer.Argument(None, help="Hive SQL to rewrite."),
    file: Path | None = typer.Option(None, "--file", "-f", help="Read Hive SQL from this file."),
    report: bool = typer.Option(
        False,
        "--report/--no-report",
        help="Print a per-stage report to stderr.",
    ),
) -> None:
    """Rewrite Hive SQL into Presto SQL."""
    from rewrite_engine.config import load_settings
    from rewrite_engine.pipeline import RewritePipeline

    settings = load_settings()
    _configure_logging(settings.log_level)
    text = _read_sql(sql, file)

    try:
        pipeline = RewritePipeline.from_settings(settings)
    except ValueError as exc:
        console.print(f"[red]Invalid configuration: {exc}[/red]")
        raise typer.Exit(code=3) from exc

    result = pipeline.rewrite_with_report(text)
    typer.echo(result.output, nl=not result.output.endswith("\n"))

    if report:
        display_rewrite_report(console, result)


@app.command()
def validate(
    sql: str | None = typer.Argument(None, help="Hive SQL to check."),
    file: Path | None = typer.Option(None, "--file", "-f", help="Read Hive SQL from this file."),
) -> None:
    """Check whether SQL lexes and parses as a supported Hive statement."""
    from rewrite_engine.errors import SqlLexError, SqlParseError
    from rewrite_engine.pipeline import check_syntax

    text = _read_sql(sql, file)
    try:
        check_syntax(text)
    except (SqlLexError, SqlParseError) as exc:
        console.print(f"[red]Invalid:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    console.print("[green]Valid.[/green]")


@app.command()
def rules() -> None:
    """List the Hive to Presto rule catalog."""
    from rewrite_engine.rules import PRESTO_RULES

    display_rules(console, PRESTO_RULES)
