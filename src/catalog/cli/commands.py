"""Catalog service CLI commands."""

import asyncio
from datetime import timedelta

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.catalog.runtime.context import get_config

console = Console()

app = typer.Typer(
    help="🛒 Product catalog service commands",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.command(name="serve")
def serve(
    host: str | None = typer.Option(None, help="Host to bind (defaults to app.host)"),
    port: int | None = typer.Option(None, help="Port to bind (defaults to app.port)"),
    reload: bool = typer.Option(False, help="Enable auto-reload on code changes"),
) -> None:
    """
    🚀 Start the API server with uvicorn.
    """
    import uvicorn

    config = get_config()
    host = host or config.app.host
    port = port or config.app.port
    console.print(
        Panel.fit(
            f"[bold green]Starting catalog API on {host}:{port}[/bold green]",
            border_style="green",
        )
    )
    uvicorn.run(
        "src.catalog.api.http.app:app",
        host=host,
        port=port,
        reload=reload,
        access_log=False,
    )


@app.command(name="init-db")
def init_db() -> None:
    """
    🗄️  Create the database tables.
    """
    from src.catalog.runtime.init_db import init_db as _init_db

    _init_db()
    console.print("[green]✓[/green] Database tables created")


@app.command(name="prune-images")
def prune_images(
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Only list orphaned files, do not delete them"
    ),
    min_age: int | None = typer.Option(
        None,
        "--min-age",
        min=0,
        help="Skip files younger than this many seconds (defaults to images.orphan_min_age_seconds)",
    ),
) -> None:
    """
    🧹 Delete stored preview images that no product references.
    """
    from src.catalog.api.http.app import build_dependencies

    deps = build_dependencies()
    try:
        orphans = asyncio.run(
            deps.image_asset_manager.prune_orphans(
                dry_run=dry_run,
                min_age=None if min_age is None else timedelta(seconds=min_age),
            )
        )
    finally:
        deps.database_service.dispose()

    if not orphans:
        console.print("[green]No orphaned preview images found[/green]")
        return

    table = Table(title="Orphaned preview images")
    table.add_column("File", style="cyan")
    table.add_column("Action", style="magenta")
    for name in orphans:
        table.add_row(name, "listed" if dry_run else "deleted")
    console.print(table)
