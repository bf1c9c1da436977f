"""quiverlink - Turn diagram URLs in markdown into linked, cached images.

Usage:
    from quiverlink import DocumentProcessor, SvgRenderer

    with SvgRenderer() as renderer:
        processor = DocumentProcessor(renderer, root=".")
        result = processor.process_file("articles/intro.md")
"""

from quiverlink.build.runner import (
    DocumentProcessor,
    DocumentResult,
    ReferenceOutcome,
    ReferenceStatus,
    RunResult,
    run,
)
from quiverlink.codec import decode, encode, validate
from quiverlink.core.errors import (
    DecodeError,
    FileIoError,
    QuiverlinkError,
    RenderError,
    UrlParseError,
)
from quiverlink.core.models import (
    CacheRecord,
    DiagramGraph,
    Edge,
    EdgeStyle,
    Node,
    ReferenceMatch,
    Span,
)
from quiverlink.render import CommandRenderer, Renderer, RenderRequest, SvgRenderer
from quiverlink.scanner import scan

__all__ = [
    "CacheRecord",
    "CommandRenderer",
    "DecodeError",
    "DiagramGraph",
    "DocumentProcessor",
    "DocumentResult",
    "Edge",
    "EdgeStyle",
    "FileIoError",
    "Node",
    "QuiverlinkError",
    "ReferenceMatch",
    "ReferenceOutcome",
    "ReferenceStatus",
    "RenderError",
    "RenderRequest",
    "Renderer",
    "RunResult",
    "Span",
    "SvgRenderer",
    "UrlParseError",
    "decode",
    "encode",
    "run",
    "scan",
    "validate",
]

__version__ = "0.1.0"
