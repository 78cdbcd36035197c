"""CLI command: leaktrail patterns — show the active leak pattern set."""

from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.table import Table

from leaktrail.config import LeakTrailConfig
from leaktrail.errors import PatternError
from leaktrail.scanner.patterns import load_patterns

console = Console()


@click.command()
@click.option(
    "--patterns",
    "patterns_file",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with leak patterns.",
)
def patterns(patterns_file: str | None) -> None:
    """List the leak patterns a scan would use, in match order."""
    try:
        if patterns_file:
            active = load_patterns(patterns_file)
        else:
            active = LeakTrailConfig.load().load_patterns()
    except (OSError, PatternError) as e:
        console.print(f"[red]Invalid pattern file:[/red] {e}")
        sys.exit(2)

    table = Table(title="Leak patterns")
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Leak type (regex)", overflow="fold")
    for i, pattern in enumerate(active, start=1):
        table.add_row(str(i), pattern.name or "-", pattern.identifier)
    console.print(table)
