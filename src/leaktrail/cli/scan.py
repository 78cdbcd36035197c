"""CLI command: leaktrail scan [REPO_URL] — scan commit history for leaks."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from leaktrail.config import LeakTrailConfig, RepoConfig, ScanConfig
from leaktrail.errors import LeakTrailError, PatternError
from leaktrail.git.base import GitCommandError
from leaktrail.scanner.engine import ScanOrchestrator
from leaktrail.scanner.models import ResultSnapshot
from leaktrail.scanner.patterns import load_patterns

console = Console(stderr=True)


@click.command()
@click.argument("repo_url", required=False)
@click.option("--branch", "default_branch", help="Preferred default branch.")
@click.option(
    "--branches",
    "-b",
    multiple=True,
    help="Branch to scan (repeatable). Default: all remote branches.",
)
@click.option(
    "--max-commits",
    type=click.IntRange(min=0),
    default=None,
    help="Max commits per branch per run (0 = unlimited).",
)
@click.option("--force-full", is_flag=True, help="Ignore checkpoints and rescan.")
@click.option("--state-file", type=click.Path(dir_okay=False), help="Checkpoint file.")
@click.option("--output-file", type=click.Path(dir_okay=False), help="Findings report.")
@click.option(
    "--patterns",
    "patterns_file",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with leak patterns.",
)
@click.option("--keep-clone", is_flag=True, help="Keep the temporary clone.")
@click.pass_context
def scan(
    ctx: click.Context,
    repo_url: str | None,
    default_branch: str | None,
    branches: tuple[str, ...],
    max_commits: int | None,
    force_full: bool,
    state_file: str | None,
    output_file: str | None,
    patterns_file: str | None,
    keep_clone: bool,
) -> None:
    """Scan a repository's commit history for cloud credential leaks."""
    config = LeakTrailConfig.load()
    repo_url = repo_url or config.repo_url
    if not repo_url:
        raise click.UsageError("REPO_URL is required (or set LEAKTRAIL_REPO).")

    max_per_run = config.max_commits_per_run
    if max_commits is not None:
        max_per_run = max_commits or None

    try:
        patterns = (
            load_patterns(patterns_file) if patterns_file else config.load_patterns()
        )
    except (OSError, PatternError) as e:
        console.print(f"[red]Invalid pattern file:[/red] {e}")
        sys.exit(2)

    repo_config = RepoConfig(
        repo_url=repo_url,
        default_branch=default_branch or config.default_branch,
        branches=list(branches) or list(config.branches),
        remove_clone_on_exit=not keep_clone,
        max_commits_per_run=max_per_run,
    )
    scan_config = ScanConfig(
        state_file=Path(state_file) if state_file else config.state_file,
        output_file=Path(output_file) if output_file else config.output_file,
        patterns=patterns,
        force_full_scan=force_full or config.force_full_scan,
    )

    console.print(
        f"[bold]LeakTrail[/bold] scanning [cyan]{repo_url}[/cyan] "
        f"with {len(patterns)} pattern(s)\n"
    )

    orchestrator = ScanOrchestrator(repo_config, scan_config, auth=config.auth)
    try:
        result = orchestrator.scan()
    except (LeakTrailError, GitCommandError) as e:
        console.print(f"[red]Scan failed:[/red] {config.auth.mask(str(e))}")
        sys.exit(2)

    if keep_clone and orchestrator.work_dir:
        console.print(f"[dim]Clone kept at {orchestrator.work_dir}[/dim]")

    snapshot = result.snapshot
    if not snapshot.findings:
        console.print("[green]No leaks detected in scanned commits.[/green]")
    else:
        console.print(_findings_table(snapshot))

    _print_summary(result.processed_commits, snapshot, scan_config.output_file)

    if snapshot.findings:
        console.print(
            f"\n[red]{len(snapshot.findings)} potential leak(s)[/red] "
            f"({len(result.findings)} new this run)"
        )
        sys.exit(1)


def _findings_table(snapshot: ResultSnapshot) -> Table:
    table = Table(title="Findings", show_lines=False)
    table.add_column("Commit", style="cyan", width=8)
    table.add_column("Branch")
    table.add_column("Committer")
    table.add_column("File", style="cyan")
    table.add_column("Match", style="red", max_width=50)
    table.add_column("Line", max_width=60)

    for finding in snapshot.findings:
        table.add_row(
            finding.commit_sha[:8],
            finding.branch,
            finding.committer,
            finding.file_path,
            finding.leak_value,
            finding.line_preview,
        )
    return table


def _print_summary(
    processed: int, snapshot: ResultSnapshot, output_file: Path
) -> None:
    console.print(
        f"\nProcessed {processed} commits this run "
        f"({snapshot.processed_commits} total)"
    )
    for branch, sha in snapshot.branch_placeholders.items():
        console.print(f"  [dim]{branch}: resumes after {sha[:12]}[/dim]")
    console.print(f"Results written to {output_file}")
