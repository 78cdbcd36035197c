"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click

from leaktrail import __version__


@click.group()
@click.version_option(version=__version__, prog_name="leaktrail")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """LeakTrail — resumable cloud-credential leak scanning over git history."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _register_commands() -> None:
    from leaktrail.cli.patterns import patterns  # noqa: F811
    from leaktrail.cli.scan import scan  # noqa: F811
    from leaktrail.cli.server import server  # noqa: F811

    main.add_command(scan)
    main.add_command(patterns)
    main.add_command(server)


_register_commands()
