"""quiverlink error types and utilities."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def atomic_write(path: Path, content: str) -> None:
    """Write content to a file atomically using temp file + rename.

    Writes to a temporary file in the same directory, fsyncs it,
    then atomically replaces the target path.
    """
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        os.write(fd, content.encode("utf-8"))
        os.fsync(fd)
        os.close(fd)
        os.replace(tmp, str(path))
    except BaseException:
        try:
            os.close(fd)
        except OSError:
            pass
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


class QuiverlinkError(Exception):
    """Base exception for quiverlink.

    Every subclass carries a ``kind`` tag and a ``remediation`` hint so that
    callers can report it without inspecting its shape.
    """

    kind = "error"
    remediation = "If the problem persists, re-run with -vv and inspect the run log."

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def context(self) -> dict[str, str]:
        return {}


class UrlParseError(QuiverlinkError):
    """A candidate does not have the fixed reference URL shape."""

    kind = "url-parse-error"
    remediation = "Make sure the URL has the form https://q.uiver.app/#q=<payload>."

    def __init__(self, url: str, message: str | None = None):
        super().__init__(message or f"Invalid diagram URL format: {url}")
        self.url = url

    @property
    def context(self) -> dict[str, str]:
        return {"url": self.url}


class DecodeError(QuiverlinkError):
    """A payload fails the base64, JSON, or schema checks."""

    kind = "decode-error"
    remediation = "The URL may be truncated or corrupted. Export the diagram again and paste the new URL."

    def __init__(self, payload: str, message: str):
        super().__init__(f"Failed to decode diagram data: {message}")
        self.payload = payload
        self.reason = message

    @property
    def context(self) -> dict[str, str]:
        preview = self.payload if len(self.payload) <= 40 else f"{self.payload[:40]}..."
        return {"payload": preview}


class RenderError(QuiverlinkError):
    """The render collaborator failed to produce an artifact."""

    kind = "render-error"
    remediation = (
        "Check that the renderer can start and that the diagram site is reachable, "
        "then save the document again."
    )

    def __init__(self, url: str, output_path: Path | str, message: str):
        super().__init__(f"Failed to render diagram: {message}")
        self.url = url
        self.output_path = str(output_path)

    @property
    def context(self) -> dict[str, str]:
        return {"url": self.url, "path": self.output_path}


class FileIoError(QuiverlinkError):
    """Reading or writing a document or the cache file failed."""

    kind = "file-io-error"
    remediation = "Check that the file is writable and that there is enough disk space."

    def __init__(self, path: Path | str, message: str):
        super().__init__(message)
        self.path = str(path)

    @property
    def context(self) -> dict[str, str]:
        return {"path": self.path}


def format_error(error: BaseException) -> str:
    """Render an error as message, context lines, and a remediation hint."""
    if isinstance(error, QuiverlinkError):
        lines = [error.message]
        lines.extend(f"{key}: {value}" for key, value in error.context.items())
        lines.append(f"hint: {error.remediation}")
        return "\n".join(lines)
    return f"Unexpected error: {error}\nhint: {QuiverlinkError.remediation}"
