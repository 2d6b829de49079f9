"""Rich output formatting for the sqlshift CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that rewritten SQL on *stdout* is never polluted with
human-readable decoration.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from rewrite_engine.pipeline import RewriteReport
    from rewrite_engine.walker import Rule


_STATUS_COLOURS: dict[str, str] = {
    "APPLIED": "green",
    "UNCHANGED": "dim",
    "SKIPPED": "yellow",
}


def _coloured_status(status: str) -> str:
    """Return a Rich markup string with the status colour-coded."""
    colour = _STATUS_COLOURS.get(status, "white")
    return f"[{colour}]{status}[/{colour}]"


def display_rewrite_report(console: Console, report: RewriteReport) -> None:
    """Render one row per stage with its status, edit count and skip reason.

    Parameters
    ----------
    console:
        Rich console to write to (typically stderr).
    report:
        The report returned by ``RewritePipeline.rewrite_with_report``.
    """
    table = Table(title="Rewrite stages", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Stage", style="bold")
    table.add_column("Status")
    table.add_column("Edits", justify="right")
    table.add_column("Reason", style="dim")

    for position, stage in enumerate(report.stages, start=1):
        table.add_row(
            str(position),
            stage.stage,
            _coloured_status(stage.status.value),
            str(stage.edits),
            stage.reason or "-",
        )

    console.print(table)
    if not report.changed:
        console.print("[dim]No changes.[/dim]")


def display_rules(console: Console, rules: Iterable[Rule]) -> None:
    """Render the rule catalog, one row per rule name."""
    table = Table(title="Presto rule catalog")
    table.add_column("Rule", style="bold")
    table.add_column("Node kind")
    table.add_column("Phases")
    table.add_column("Rewrite")

    grouped: dict[str, list[Rule]] = {}
    for rule in rules:
        grouped.setdefault(rule.name, []).append(rule)

    for name, entries in grouped.items():
        phases = ", ".join(rule.phase.value for rule in entries)
        description = next((rule.description for rule in entries if rule.description), "")
        table.add_row(name, entries[0].kind.value, phases, description)

    console.print(table)
