"""Render command — quiverlink render."""

from __future__ import annotations

import sys
import time
from pathlib import Path

import click
from rich import box
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from quiverlink.cli.main import console, root_option, setup_logging


@click.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@root_option
@click.option("--renderer", type=click.Choice(["svg", "command"]), default=None, help="Override the configured renderer")
@click.option("--verbose", "-v", count=True, help="Verbosity level: -v per-reference, -vv debug/renderer details")
def render(paths: tuple[Path, ...], root: Path | None, renderer: str | None, verbose: int):
    """Render diagram URLs in markdown files and link the images in place.

    PATHS are markdown files or directories searched recursively for *.md.
    References already wrapped in a link are left alone, and unchanged
    references reuse their cached image.
    """
    from quiverlink.build.runner import run
    from quiverlink.config import get_settings
    from quiverlink.core.errors import QuiverlinkError, format_error
    from quiverlink.render import create_renderer

    setup_logging(verbose)
    settings = get_settings()
    if renderer:
        settings = settings.model_copy(update={"renderer": renderer})
    root = (root or Path.cwd()).absolute()

    console.print(
        Panel(
            f"[bold]Root:[/bold] {root}\n"
            f"[bold]Images:[/bold] {settings.images_path(root)}\n"
            f"[bold]Cache:[/bold] {settings.cache_path(root)}\n"
            f"[bold]Renderer:[/bold] {settings.renderer}",
            title="[bold cyan]quiverlink render[/bold cyan]",
            border_style="cyan",
        )
    )

    try:
        diagram_renderer = create_renderer(settings)
    except ValueError as e:
        console.print(f"[red]Invalid renderer configuration:[/red] {e}")
        sys.exit(1)

    start_time = time.time()
    try:
        with diagram_renderer:
            result = run(paths, diagram_renderer, root=root, settings=settings, verbosity=verbose)
    except QuiverlinkError as e:
        console.print(f"\n[red]Run failed:[/red] {escape(format_error(e))}")
        sys.exit(1)
    elapsed = time.time() - start_time

    table = Table(title="Summary", box=box.ROUNDED)
    table.add_column("Document", style="bold")
    table.add_column("Rendered", justify="right", style="green")
    table.add_column("Cached", justify="right", style="cyan")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Updated", justify="center")
    for doc in result.documents:
        table.add_row(
            str(doc.path.relative_to(root)) if doc.path.is_relative_to(root) else str(doc.path),
            str(doc.rendered),
            str(doc.cached),
            str(doc.failed),
            "yes" if doc.document_written else "-",
        )
    table.add_row(
        "[bold]Total[/bold]",
        str(result.rendered),
        str(result.cached),
        str(result.failed),
        str(result.updated),
    )
    console.print(table)
    console.print(f"\n[green]Done[/green] in {elapsed:.1f}s")
