"""Project layout conventions: content type, slug, and artifact naming.

Documents live in a Zenn-style tree::

    articles/<slug>.md             -> article-<slug>-diagram-<fp>.<ext>
    books/<book>/<page>.md         -> book-<book>-<page>-diagram-<fp>.<ext>

A ``slug`` key in the YAML frontmatter overrides the path-derived slug.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path, PurePath

import yaml

from quiverlink.build.fingerprint import fingerprint
from quiverlink.core.models import DiagramGraph

logger = logging.getLogger(__name__)

# Pattern to match YAML frontmatter between --- markers
_FRONTMATTER_RE = re.compile(r"\A---\s*\n(.*?)\n---\s*(?:\n|\Z)", re.DOTALL)

_BOOK_PAGE_RE = re.compile(r"/books/([^/]+)/([^/]+)\.md$")

_UNSAFE_SLUG_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _posix(path: str | PurePath) -> str:
    return str(path).replace("\\", "/")


def extract_content_type(document: str | Path) -> str:
    """Return "book" for documents under books/, otherwise "article"."""
    normalized = _posix(Path(document).absolute())
    if "/books/" in normalized:
        return "book"
    if "/articles/" not in normalized:
        logger.warning(
            "Path %s is not under articles/ or books/; treating it as an article",
            document,
        )
    return "article"


def read_frontmatter(text: str) -> dict:
    """Parse the YAML frontmatter block, returning {} when absent or invalid."""
    m = _FRONTMATTER_RE.match(text)
    if m is None:
        return {}
    try:
        data = yaml.safe_load(m.group(1))
    except yaml.YAMLError as e:
        logger.warning("Ignoring invalid frontmatter: %s", e)
        return {}
    return data if isinstance(data, dict) else {}


def extract_slug(document: str | Path, text: str, content_type: str | None = None) -> str:
    """Slug used in artifact names: frontmatter, then book/page, then file stem."""
    slug = read_frontmatter(text).get("slug")
    if isinstance(slug, str) and slug.strip():
        return _sanitize(slug.strip())

    content_type = content_type or extract_content_type(document)
    if content_type == "book":
        m = _BOOK_PAGE_RE.search(_posix(Path(document).absolute()))
        if m:
            return _sanitize(f"{m.group(1)}-{m.group(2)}")

    return _sanitize(Path(document).stem)


def _sanitize(slug: str) -> str:
    return _UNSAFE_SLUG_CHARS.sub("-", slug).strip("-") or "document"


def artifact_file_name(content_type: str, slug: str, graph: DiagramGraph, extension: str = "png") -> str:
    """``<content_type>-<slug>-diagram-<fingerprint>.<extension>``"""
    return f"{content_type}-{slug}-diagram-{fingerprint(graph)}.{extension.lstrip('.')}"


def link_path(artifact: Path, document: Path) -> str:
    """Relative POSIX path from the document's directory to the artifact."""
    return _posix(os.path.relpath(artifact, document.parent))


def workspace_relative(path: Path, root: Path) -> str:
    """POSIX path of ``path`` relative to the workspace root (as stored in the cache)."""
    return _posix(os.path.relpath(path, root))
