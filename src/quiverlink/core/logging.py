"""Structured logging and verbosity levels for quiverlink runs."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape


class Verbosity(IntEnum):
    """Verbosity levels for console output."""

    DEFAULT = 0   # Summary table only
    VERBOSE = 1   # + per-document progress, per-reference status
    DEBUG = 2     # + renderer details, timing


@dataclass
class DocumentLog:
    """Per-document run statistics."""

    path: str
    rendered: list[str] = field(default_factory=list)
    cached: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    time_seconds: float = 0.0
    updated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "rendered": list(self.rendered),
            "cached": list(self.cached),
            "failed": list(self.failed),
            "time_seconds": self.time_seconds,
            "updated": self.updated,
        }


@dataclass
class RunLog:
    """Structured log of a complete run.

    The dict format is::

        {
            "run_id": "20260101T120000Z",
            "documents": {
                "articles/intro.md": {
                    "rendered": ["images/article-intro-diagram-3f2a....svg"],
                    "cached": [],
                    "failed": [],
                    "time_seconds": 0.4,
                    "updated": true,
                },
                ...
            },
            "total_rendered": 1,
            "total_cached": 0,
            "total_failed": 0,
            "total_time": 0.5,
        }
    """

    run_id: str = ""
    documents: dict[str, DocumentLog] = field(default_factory=dict)
    total_time: float = 0.0
    total_rendered: int = 0
    total_cached: int = 0
    total_failed: int = 0

    def get_or_create_document(self, path: str) -> DocumentLog:
        """Get existing document log or create a new one."""
        if path not in self.documents:
            self.documents[path] = DocumentLog(path=path)
        return self.documents[path]

    def finalize(self) -> None:
        """Compute totals from document data."""
        self.total_rendered = sum(len(d.rendered) for d in self.documents.values())
        self.total_cached = sum(len(d.cached) for d in self.documents.values())
        self.total_failed = sum(len(d.failed) for d in self.documents.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "documents": {
                path: doc.to_dict() for path, doc in self.documents.items()
            },
            "total_rendered": self.total_rendered,
            "total_cached": self.total_cached,
            "total_failed": self.total_failed,
            "total_time": self.total_time,
        }


class RunLogger:
    """Structured logger for quiverlink runs.

    Writes JSONL log files to <log_dir>/<run_id>.jsonl and optionally emits
    console output via Rich based on verbosity level.
    """

    def __init__(
        self,
        verbosity: Verbosity = Verbosity.DEFAULT,
        log_dir: Path | None = None,
        console: Console | None = None,
    ):
        self.verbosity = verbosity
        self.console = console or Console(stderr=True)
        self.run_log = RunLog(
            run_id=datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ"),
        )
        self._log_file = None
        self._log_path: Path | None = None
        self._doc_start: float = 0.0

        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            self._log_path = log_dir / f"{self.run_log.run_id}.jsonl"
            self._log_file = open(self._log_path, "a", encoding="utf-8")

    @property
    def log_path(self) -> Path | None:
        return self._log_path

    def _write_event(self, event: dict[str, Any]) -> None:
        if self._log_file is not None:
            event["timestamp"] = datetime.now(timezone.utc).isoformat()
            self._log_file.write(json.dumps(event, ensure_ascii=False) + "\n")
            self._log_file.flush()

    def _console_print(self, message: str, min_verbosity: Verbosity) -> None:
        if self.verbosity >= min_verbosity:
            self.console.print(message)

    # -- Run lifecycle --

    def run_start(self, document_count: int) -> None:
        self._write_event({"event": "run_start", "document_count": document_count})

    def run_finish(self, total_time: float) -> None:
        """Log the completion of a run and finalize stats."""
        self.run_log.total_time = total_time
        self.run_log.finalize()
        self._write_event({
            "event": "run_finish",
            "total_time": round(total_time, 3),
            "total_rendered": self.run_log.total_rendered,
            "total_cached": self.run_log.total_cached,
            "total_failed": self.run_log.total_failed,
        })
        self.close()

    # -- Document events --

    def document_start(self, path: str) -> None:
        self._doc_start = time.time()
        self.run_log.get_or_create_document(path)
        self._write_event({
            "event": "document_start",
            "path": path,
        })
        self._console_print(
            f"  [bold]Processing:[/bold] {escape(path)}",
            Verbosity.VERBOSE,
        )

    def document_finish(self, path: str, updated: bool, cache_written: bool) -> None:
        elapsed = time.time() - self._doc_start
        doc = self.run_log.get_or_create_document(path)
        doc.time_seconds = elapsed
        doc.updated = updated
        self._write_event({
            "event": "document_finish",
            "path": path,
            "updated": updated,
            "cache_written": cache_written,
            "rendered": len(doc.rendered),
            "cached": len(doc.cached),
            "failed": len(doc.failed),
            "time_seconds": round(elapsed, 3),
        })
        self._console_print(
            f"    {escape(path)}: {len(doc.rendered)} rendered, {len(doc.cached)} cached, "
            f"{len(doc.failed)} failed ({elapsed:.1f}s)",
            Verbosity.VERBOSE,
        )

    # -- Reference events --

    def reference_rendered(self, path: str, url: str, artifact_path: str, elapsed: float) -> None:
        self.run_log.get_or_create_document(path).rendered.append(artifact_path)
        self._write_event({
            "event": "reference_rendered",
            "path": path,
            "url": url,
            "artifact_path": artifact_path,
            "duration_seconds": round(elapsed, 3),
        })
        self._console_print(f"      [green]+[/green] {escape(artifact_path)}", Verbosity.VERBOSE)
        self._console_print(f"        [dim]rendered in {elapsed:.2f}s[/dim]", Verbosity.DEBUG)

    def reference_cached(self, path: str, url: str, artifact_path: str) -> None:
        self.run_log.get_or_create_document(path).cached.append(artifact_path)
        self._write_event({
            "event": "reference_cached",
            "path": path,
            "url": url,
            "artifact_path": artifact_path,
        })
        self._console_print(f"      [cyan]=[/cyan] {escape(artifact_path)} (cached)", Verbosity.VERBOSE)

    def reference_failed(self, path: str, url: str, kind: str, message: str, hint: str) -> None:
        self.run_log.get_or_create_document(path).failed.append(url)
        self._write_event({
            "event": "reference_failed",
            "path": path,
            "url": url,
            "error": kind,
            "message": message,
            "hint": hint,
        })
        self._console_print(
            f"      [red]![/red] {escape(message)}\n        [dim]{escape(hint)}[/dim]",
            Verbosity.DEFAULT,
        )

    def close(self) -> None:
        """Close the log file if open."""
        if self._log_file is not None:
            self._log_file.close()
            self._log_file = None
