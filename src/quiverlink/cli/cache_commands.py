"""Cache commands — quiverlink cache list, quiverlink cache prune."""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path

import click
from rich import box
from rich.table import Table

from quiverlink.cli.main import console, root_option


@click.group()
def cache():
    """Inspect and maintain the render cache."""
    pass


@cache.command("list")
@root_option
def list_records(root: Path | None):
    """List cached references and whether their images still exist."""
    from quiverlink.build import cache as cache_store
    from quiverlink.config import get_settings

    settings = get_settings()
    root = (root or Path.cwd()).absolute()
    records = cache_store.load(settings.cache_path(root))

    if not records:
        console.print("[dim]Cache is empty.[/dim]")
        return

    table = Table(title=f"{settings.cache_path(root)} — {len(records)} records", box=box.ROUNDED)
    table.add_column("Artifact", style="bold", no_wrap=True)
    table.add_column("Rendered", no_wrap=True)
    table.add_column("Exists", justify="center")
    table.add_column("URL", style="dim", max_width=60)
    for record in records:
        rendered = datetime.fromtimestamp(record.timestamp / 1000).strftime("%Y-%m-%d %H:%M")
        exists = (root / record.artifact_path).exists()
        table.add_row(
            record.artifact_path,
            rendered,
            "[green]yes[/green]" if exists else "[red]no[/red]",
            record.url,
        )
    console.print(table)


@cache.command("prune")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@root_option
@click.option("--delete-images", is_flag=True, help="Also delete image files of pruned records")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation prompt")
def prune(paths: tuple[Path, ...], root: Path | None, delete_images: bool, yes: bool):
    """Drop cache records whose URL no longer appears in any document.

    PATHS are the markdown files or directories that make up the workspace.
    """
    from quiverlink.build import cache as cache_store
    from quiverlink.build.runner import collect_documents
    from quiverlink.config import get_settings
    from quiverlink.core.errors import FileIoError
    from quiverlink.scanner import referenced_urls

    settings = get_settings()
    root = (root or Path.cwd()).absolute()
    cache_path = settings.cache_path(root)
    records = cache_store.load(cache_path)

    urls: set[str] = set()
    for document in collect_documents(paths, exclude=[settings.state_path(root)]):
        try:
            urls |= referenced_urls(document.read_bytes().decode("utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            console.print(f"[red]Error reading {document}:[/red] {e}")
            sys.exit(1)

    kept = cache_store.prune(records, urls)
    dropped = [r for r in records if r not in kept]
    if not dropped:
        console.print("[dim]Nothing to prune.[/dim]")
        return

    if not yes:
        console.print(f"This will remove [bold]{len(dropped)}[/bold] of {len(records)} cache records.")
        if not click.confirm("Continue?"):
            console.print("[dim]Aborted.[/dim]")
            return

    try:
        cache_store.save(cache_path, kept)
    except FileIoError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)

    if delete_images:
        still_used = {r.artifact_path for r in kept}
        for record in dropped:
            artifact = root / record.artifact_path
            if record.artifact_path not in still_used and artifact.exists():
                artifact.unlink()
                console.print(f"[dim]Deleted {record.artifact_path}[/dim]")

    console.print(f"[green]Pruned:[/green] {len(dropped)} records ({len(kept)} kept)")
