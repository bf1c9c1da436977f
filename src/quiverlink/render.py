"""Renderers: turn one diagram reference into an artifact file.

A renderer is an explicit resource: the caller acquires it once (``with``
block or ``open()``), injects it into the document processor, and releases
it on shutdown. Failures are reported as ``RenderError``.
"""

from __future__ import annotations

import logging
import math
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING
from xml.sax.saxutils import escape

from quiverlink.core.errors import RenderError
from quiverlink.core.models import DiagramGraph, Edge, Node

if TYPE_CHECKING:
    from quiverlink.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderRequest:
    """What to render and where to put it."""

    url: str
    graph: DiagramGraph
    output_path: Path


class Renderer(ABC):
    """Base class for render collaborators."""

    name = "renderer"

    def open(self) -> None:
        """Acquire long-lived resources (browser, worker process, ...)."""

    def close(self) -> None:
        """Release whatever ``open`` acquired. Safe to call more than once."""

    def __enter__(self) -> Renderer:
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @abstractmethod
    def render(self, request: RenderRequest) -> None:
        """Write an artifact to ``request.output_path`` or raise RenderError."""
        ...


@dataclass
class CommandRenderer(Renderer):
    """Run an external program (e.g. a headless-browser screenshot script).

    Each argument may contain ``{url}`` and ``{output}`` placeholders.
    """

    command: list[str] = field(default_factory=list)
    timeout: float = 60.0
    name = "command"

    def __post_init__(self) -> None:
        if not self.command:
            msg = "command is required"
            raise ValueError(msg)

    def render(self, request: RenderRequest) -> None:
        args = [
            arg.format(url=request.url, output=str(request.output_path))
            for arg in self.command
        ]
        request.output_path.parent.mkdir(parents=True, exist_ok=True)
        logger.debug("Running renderer: %s", " ".join(args))
        try:
            subprocess.run(args, check=True, capture_output=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise RenderError(request.url, request.output_path, f"renderer not found: {args[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise RenderError(request.url, request.output_path, f"renderer timed out after {self.timeout}s") from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip()
            raise RenderError(
                request.url,
                request.output_path,
                f"renderer exited with status {e.returncode}: {stderr[:200]}",
            ) from e

        if not request.output_path.exists():
            raise RenderError(request.url, request.output_path, "renderer did not produce an output file")


# -- Built-in SVG renderer --

CELL_WIDTH = 160
CELL_HEIGHT = 100
MARGIN = 40
NODE_RADIUS = 18
OFFSET_STEP = 6

_DASH_PATTERNS = {"dashed": "6 4", "dotted": "2 4", "squiggly": "2 2"}


@dataclass
class SvgRenderer(Renderer):
    """Draw a graph on its own grid coordinates as a standalone SVG file.

    No layout is computed: node (x, y) are grid cells. Edge styles map onto
    dash patterns, hidden bodies, and missing arrowheads.
    """

    font_family: str = "serif"
    font_size: int = 16
    name = "svg"

    def render(self, request: RenderRequest) -> None:
        try:
            svg = self.to_svg(request.graph)
            request.output_path.parent.mkdir(parents=True, exist_ok=True)
            request.output_path.write_text(svg, encoding="utf-8")
        except (OSError, ValueError) as e:
            raise RenderError(request.url, request.output_path, str(e)) from e

    def to_svg(self, graph: DiagramGraph) -> str:
        nodes = {node.id: node for node in graph.nodes}
        max_x = max((n.x for n in graph.nodes), default=0)
        max_y = max((n.y for n in graph.nodes), default=0)
        width = int(max_x * CELL_WIDTH + 2 * MARGIN)
        height = int(max_y * CELL_HEIGHT + 2 * MARGIN)

        parts = [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
            f'viewBox="0 0 {width} {height}">',
            "<defs>",
            '<marker id="head" viewBox="0 0 10 10" refX="9" refY="5" markerWidth="8" '
            'markerHeight="8" orient="auto-start-reverse"><path d="M 0 0 L 10 5 L 0 10 z"/></marker>',
            "</defs>",
            f'<rect width="{width}" height="{height}" fill="white"/>',
        ]
        for edge in graph.edges:
            source, target = nodes.get(edge.source), nodes.get(edge.target)
            if source is None or target is None:
                msg = f"edge {edge.id} references a missing node"
                raise ValueError(msg)
            parts.extend(self._edge_svg(edge, source, target))
        for node in graph.nodes:
            cx, cy = _center(node)
            parts.append(self._text(cx, cy, node.label))
        parts.append("</svg>")
        return "\n".join(parts) + "\n"

    def _text(self, x: float, y: float, label: str) -> str:
        return (
            f'<text x="{x:.1f}" y="{y:.1f}" font-family="{escape(self.font_family)}" '
            f'font-size="{self.font_size}" text-anchor="middle" '
            f'dominant-baseline="central">{escape(label)}</text>'
        )

    def _edge_svg(self, edge: Edge, source: Node, target: Node) -> list[str]:
        x1, y1 = _center(source)
        x2, y2 = _center(target)
        dx, dy = x2 - x1, y2 - y1
        length = math.hypot(dx, dy)
        style = edge.style
        if length == 0:
            # Loops are drawn as a label above the node
            return [self._text(x1, y1 - NODE_RADIUS * 2, edge.label)] if edge.label else []

        ux, uy = dx / length, dy / length
        # Perpendicular shift for parallel arrows
        shift = (style.offset or 0) * OFFSET_STEP if style else 0
        px, py = -uy * shift, ux * shift
        x1, y1 = x1 + ux * NODE_RADIUS + px, y1 + uy * NODE_RADIUS + py
        x2, y2 = x2 - ux * NODE_RADIUS + px, y2 - uy * NODE_RADIUS + py

        parts = []
        body = style.body_name if style else None
        if body != "none":
            attrs = 'stroke="black" stroke-width="1.5"'
            if body in _DASH_PATTERNS:
                attrs += f' stroke-dasharray="{_DASH_PATTERNS[body]}"'
            if not (style and style.head_name == "none"):
                attrs += ' marker-end="url(#head)"'
            parts.append(f'<line x1="{x1:.1f}" y1="{y1:.1f}" x2="{x2:.1f}" y2="{y2:.1f}" {attrs}/>')

        if edge.label:
            mx, my = (x1 + x2) / 2 - uy * 14, (y1 + y2) / 2 + ux * 14
            parts.append(self._text(mx, my, edge.label))
        return parts


def _center(node: Node) -> tuple[float, float]:
    return node.x * CELL_WIDTH + MARGIN, node.y * CELL_HEIGHT + MARGIN


def create_renderer(settings: Settings) -> Renderer:
    """Build the renderer selected in settings."""
    if settings.renderer == "command":
        return CommandRenderer(command=list(settings.render_command), timeout=settings.render_timeout)
    return SvgRenderer()
