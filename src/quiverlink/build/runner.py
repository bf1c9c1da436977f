"""Document runner: scan, decide per reference, render, splice, persist."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from quiverlink import codec
from quiverlink.build import cache
from quiverlink.build.splice import apply_all, replacement_for
from quiverlink.config import Settings, get_settings
from quiverlink.core.errors import (
    DecodeError,
    FileIoError,
    QuiverlinkError,
    RenderError,
    atomic_write,
    format_error,
)
from quiverlink.core.logging import RunLogger, Verbosity
from quiverlink.core.models import CacheRecord, ReferenceMatch, Span
from quiverlink.layout import (
    artifact_file_name,
    extract_content_type,
    extract_slug,
    link_path,
    workspace_relative,
)
from quiverlink.render import Renderer, RenderRequest
from quiverlink.scanner import scan

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES = (".md", ".markdown")


class ReferenceStatus(str, Enum):
    """Terminal state of one reference within a run."""

    CACHED = "cached"
    RENDERED = "rendered"
    FAILED = "failed"


@dataclass
class ReferenceOutcome:
    """What happened to one reference."""

    match: ReferenceMatch
    status: ReferenceStatus
    artifact_path: str | None = None  # workspace-relative, as stored in the cache
    link: str | None = None  # document-relative, as written into the text
    error: QuiverlinkError | None = None


@dataclass
class TextResult:
    """Result of processing document text in memory."""

    text: str
    records: list[CacheRecord]
    outcomes: list[ReferenceOutcome] = field(default_factory=list)
    records_changed: bool = False


@dataclass
class DocumentResult:
    """Result of processing one document file."""

    path: Path
    text: str
    outcomes: list[ReferenceOutcome] = field(default_factory=list)
    document_written: bool = False
    cache_written: bool = False

    def count(self, status: ReferenceStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)

    @property
    def rendered(self) -> int:
        return self.count(ReferenceStatus.RENDERED)

    @property
    def cached(self) -> int:
        return self.count(ReferenceStatus.CACHED)

    @property
    def failed(self) -> int:
        return self.count(ReferenceStatus.FAILED)


@dataclass
class RunResult:
    """Summary of a run over several documents."""

    documents: list[DocumentResult] = field(default_factory=list)
    total_time: float = 0.0
    run_log: dict = field(default_factory=dict)

    @property
    def rendered(self) -> int:
        return sum(d.rendered for d in self.documents)

    @property
    def cached(self) -> int:
        return sum(d.cached for d in self.documents)

    @property
    def failed(self) -> int:
        return sum(d.failed for d in self.documents)

    @property
    def updated(self) -> int:
        return sum(1 for d in self.documents if d.document_written)


class DocumentProcessor:
    """Drives one document at a time through the reference pipeline.

    The renderer is owned by the caller; the processor never opens or
    closes it. Documents are processed sequentially and the processor does
    no locking, so callers must not run two passes over the same document
    at once.
    """

    def __init__(
        self,
        renderer: Renderer,
        root: str | Path,
        settings: Settings | None = None,
        run_logger: RunLogger | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.renderer = renderer
        self.root = Path(root).absolute()
        self.settings = settings or get_settings()
        self.run_logger = run_logger or RunLogger(verbosity=Verbosity.DEFAULT)
        self.clock = clock

    @property
    def cache_path(self) -> Path:
        return self.settings.cache_path(self.root)

    @property
    def images_dir(self) -> Path:
        return self.settings.images_path(self.root)

    def _display(self, document: Path) -> str:
        return workspace_relative(document, self.root)

    # -- Per reference --

    def _fail(self, document: Path, match: ReferenceMatch, error: QuiverlinkError) -> ReferenceOutcome:
        logger.warning(
            "Skipping reference at %s:%d\n%s",
            self._display(document),
            match.span.start,
            format_error(error),
        )
        self.run_logger.reference_failed(
            self._display(document), match.url, error.kind, error.message, error.remediation,
        )
        return ReferenceOutcome(match=match, status=ReferenceStatus.FAILED, error=error)

    def _evaluate(
        self,
        match: ReferenceMatch,
        document: Path,
        content_type: str,
        slug: str,
        records: Sequence[CacheRecord],
    ) -> ReferenceOutcome:
        record = cache.get(match.url, records)
        if record is not None and not cache.changed(match.url, match.payload, records):
            artifact = self.root / record.artifact_path
            if artifact.exists():
                self.run_logger.reference_cached(self._display(document), match.url, record.artifact_path)
                return ReferenceOutcome(
                    match=match,
                    status=ReferenceStatus.CACHED,
                    artifact_path=record.artifact_path,
                    link=link_path(artifact, document),
                )
            logger.debug("Cached artifact %s is missing; rendering again", record.artifact_path)

        try:
            graph = codec.decode(match.payload)
        except DecodeError as e:
            return self._fail(document, match, e)

        output = self.images_dir / artifact_file_name(
            content_type, slug, graph, self.settings.artifact_extension,
        )
        start = time.time()
        try:
            self.renderer.render(RenderRequest(url=match.url, graph=graph, output_path=output))
        except RenderError as e:
            return self._fail(document, match, e)
        except Exception as e:
            return self._fail(document, match, RenderError(match.url, output, str(e) or type(e).__name__))

        artifact_path = workspace_relative(output, self.root)
        self.run_logger.reference_rendered(
            self._display(document), match.url, artifact_path, time.time() - start,
        )
        return ReferenceOutcome(
            match=match,
            status=ReferenceStatus.RENDERED,
            artifact_path=artifact_path,
            link=link_path(output, document),
        )

    # -- Per document --

    def process_text(self, text: str, document: str | Path, records: Sequence[CacheRecord]) -> TextResult:
        """Process document text in memory.

        References are evaluated left to right; splices are applied right to
        left against the original offsets. A failed reference is left as is.
        """
        document = Path(document).absolute()
        matches = scan(text)
        if not matches:
            return TextResult(text=text, records=list(records))

        content_type = extract_content_type(document)
        slug = extract_slug(document, text, content_type)

        current = list(records)
        records_changed = False
        outcomes: list[ReferenceOutcome] = []
        edits: list[tuple[Span, str]] = []

        for match in matches:
            outcome = self._evaluate(match, document, content_type, slug, current)
            outcomes.append(outcome)
            if outcome.status is ReferenceStatus.FAILED:
                continue
            if outcome.status is ReferenceStatus.RENDERED:
                current = cache.put(current, CacheRecord(
                    url=match.url,
                    payload=match.payload,
                    artifact_path=outcome.artifact_path,
                    timestamp=int(self.clock() * 1000),
                ))
                records_changed = True
            edits.append((match.span, replacement_for(outcome.link, match.url)))

        return TextResult(
            text=apply_all(text, edits),
            records=current,
            outcomes=outcomes,
            records_changed=records_changed,
        )

    def process_file(self, path: str | Path) -> DocumentResult:
        """Process one document on disk.

        The document is rewritten only if its text changed and the cache only
        if a record changed. Read and write failures raise FileIoError.
        """
        path = Path(path).absolute()
        display = self._display(path)
        self.run_logger.document_start(display)

        try:
            original = path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FileIoError(path, f"Failed to read document {path}: {e}") from e

        records = cache.load(self.cache_path)
        result = self.process_text(original, path, records)

        document_written = False
        if result.text != original:
            try:
                atomic_write(path, result.text)
            except OSError as e:
                raise FileIoError(path, f"Failed to write document {path}: {e}") from e
            document_written = True

        cache_written = False
        if result.records_changed:
            cache.save(self.cache_path, result.records)
            cache_written = True

        self.run_logger.document_finish(display, document_written, cache_written)
        return DocumentResult(
            path=path,
            text=result.text,
            outcomes=result.outcomes,
            document_written=document_written,
            cache_written=cache_written,
        )


def collect_documents(paths: Iterable[str | Path], exclude: Iterable[Path] = ()) -> list[Path]:
    """Expand files and directories into a sorted, de-duplicated document list."""
    excluded = [Path(p).absolute() for p in exclude]
    found: dict[Path, None] = {}
    for p in paths:
        p = Path(p).absolute()
        if p.is_dir():
            candidates = sorted(
                c for c in p.rglob("*") if c.is_file() and c.suffix.lower() in DOCUMENT_SUFFIXES
            )
        else:
            candidates = [p]
        for c in candidates:
            if any(c == e or e in c.parents for e in excluded):
                continue
            found.setdefault(c, None)
    return list(found)


def run(
    paths: Iterable[str | Path],
    renderer: Renderer,
    root: str | Path | None = None,
    settings: Settings | None = None,
    verbosity: int = 0,
) -> RunResult:
    """Process every document under ``paths`` sequentially.

    Args:
        paths: Documents or directories (searched for markdown files).
        renderer: An already-opened renderer.
        root: Workspace root; defaults to the current directory.
        settings: Overrides for the global settings.
        verbosity: Verbosity level (0=default, 1=verbose, 2=debug).

    Returns:
        RunResult with per-document outcomes. A FileIoError aborts the run.
    """
    start_time = time.time()
    settings = settings or get_settings()
    root = Path(root or Path.cwd()).absolute()

    run_logger = RunLogger(
        verbosity=Verbosity(min(verbosity, Verbosity.DEBUG)),
        log_dir=settings.state_path(root) / "logs" if settings.write_run_log else None,
    )
    processor = DocumentProcessor(renderer, root, settings=settings, run_logger=run_logger)

    documents = collect_documents(paths, exclude=[settings.state_path(root)])
    run_logger.run_start(len(documents))

    result = RunResult()
    try:
        for document in documents:
            result.documents.append(processor.process_file(document))
    finally:
        result.total_time = time.time() - start_time
        run_logger.run_finish(result.total_time)
        result.run_log = run_logger.run_log.to_dict()
    return result
