"""CLI command: leaktrail server — run the scan API over HTTP."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click
from rich.console import Console

from leaktrail.config import LeakTrailConfig

console = Console(stderr=True)


@click.command()
@click.option("--host", default=None, help="Interface to bind (default: 127.0.0.1).")
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port to listen on (default: LEAKTRAIL_WEB_PORT or 8471).",
)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for scan history and per-repository checkpoints.",
)
def server(host: str | None, port: int | None, data_dir: Path | None) -> None:
    """Serve POST /api/scan and the scan history endpoints."""
    try:
        import uvicorn
    except ImportError:
        console.print(
            "[red]Web dependencies not installed.[/red]\n"
            "Install with: pip install leaktrail[web]"
        )
        raise SystemExit(1)

    config = LeakTrailConfig.load()
    if host:
        config.web_host = host
    if port is not None:
        config.web_port = port
    if data_dir is not None:
        config.data_dir = data_dir

    console.print(
        f"[bold]LeakTrail[/bold] API on "
        f"[cyan]http://{config.web_host}:{config.web_port}[/cyan]"
    )
    console.print(f"  Scan history: {config.data_dir / 'leaktrail.db'}")
    console.print(f"  Repository state: {config.data_dir / 'repos'}")
    if config.repo_url:
        console.print(f"  Default repository: {config.repo_url}")
    if config.auth.enabled:
        console.print("  [dim]Cloning with GITHUB_USERNAME/GITHUB_PAT[/dim]")
    console.print()

    from leaktrail.web.app import create_app

    async def _run() -> None:
        app = await create_app(config)
        srv = uvicorn.Server(
            uvicorn.Config(
                app,
                host=config.web_host,
                port=config.web_port,
                log_level="info",
            )
        )
        await srv.serve()

    asyncio.run(_run())
