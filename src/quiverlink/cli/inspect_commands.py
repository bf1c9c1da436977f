"""Inspection commands — quiverlink scan, quiverlink decode."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich import box
from rich.markup import escape
from rich.table import Table

from quiverlink.cli.main import console


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def scan(path: Path):
    """List fresh diagram references in a markdown file.

    References already used as a link target are not listed.
    """
    from quiverlink.codec import decode as decode_payload
    from quiverlink.core.errors import DecodeError
    from quiverlink.scanner import scan as scan_text

    try:
        text = path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Error reading {path}:[/red] {e}")
        sys.exit(1)

    matches = scan_text(text)
    if not matches:
        console.print("[dim]No fresh diagram references found.[/dim]")
        return

    table = Table(title=f"{path} — {len(matches)} references", box=box.ROUNDED)
    table.add_column("Span", no_wrap=True)
    table.add_column("Line", justify="right")
    table.add_column("Nodes", justify="right")
    table.add_column("Edges", justify="right")
    table.add_column("URL", style="dim", max_width=60)
    for match in matches:
        line = text.count("\n", 0, match.span.start) + 1
        try:
            graph = decode_payload(match.payload)
            nodes, edges = str(len(graph.nodes)), str(len(graph.edges))
        except DecodeError:
            nodes, edges = "[red]invalid[/red]", "-"
        table.add_row(f"{match.span.start}-{match.span.end}", str(line), nodes, edges, match.url)
    console.print(table)


@click.command()
@click.argument("reference")
def decode(reference: str):
    """Decode a diagram URL or bare payload and print its nodes and edges."""
    from quiverlink.codec import decode as decode_payload
    from quiverlink.core.errors import DecodeError, format_error
    from quiverlink.scanner import REFERENCE_PATTERN

    m = REFERENCE_PATTERN.search(reference)
    payload = m.group(1) if m else reference

    try:
        graph = decode_payload(payload)
    except DecodeError as e:
        console.print(f"[red]Decode failed:[/red] {escape(format_error(e))}")
        sys.exit(1)

    nodes = Table(title=f"Nodes ({len(graph.nodes)})", box=box.ROUNDED)
    nodes.add_column("ID", justify="right")
    nodes.add_column("Position")
    nodes.add_column("Label")
    for node in graph.nodes:
        nodes.add_row(str(node.id), f"({node.x}, {node.y})", escape(node.label))
    console.print(nodes)

    edges = Table(title=f"Edges ({len(graph.edges)})", box=box.ROUNDED)
    edges.add_column("ID", justify="right")
    edges.add_column("Source -> Target")
    edges.add_column("Label")
    edges.add_column("Style", style="dim")
    for edge in graph.edges:
        style = ""
        if edge.style is not None:
            parts = []
            if edge.style.body_name is not None:
                parts.append(f"body={edge.style.body_name}")
            if edge.style.head_name is not None:
                parts.append(f"head={edge.style.head_name}")
            if edge.style.offset is not None:
                parts.append(f"offset={edge.style.offset}")
            style = " ".join(parts)
        edges.add_row(str(edge.id), f"{edge.source} -> {edge.target}", escape(edge.label or ""), style)
    console.print(edges)
