"""Reference scanner: find diagram URLs in a document that still need splicing."""

from __future__ import annotations

import logging
import re

from quiverlink.core.errors import UrlParseError
from quiverlink.core.models import ReferenceMatch, Span

logger = logging.getLogger(__name__)

REFERENCE_HOST = "q.uiver.app"

# https://q.uiver.app/#q=<base64 payload>
REFERENCE_PATTERN = re.compile(r"https://q\.uiver\.app/#q=([A-Za-z0-9_-]+={0,2})")

# Characters that may still belong to a payload when they follow a regex hit.
# Standard-alphabet base64 or extra padding means the hit was truncated.
_PAYLOAD_TAIL_CHARS = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_+/=")

# Image reference opener directly before a URL: ![alt](
_IMAGE_OPEN_RE = re.compile(r"!\[[^\]]*\]\($")


def parse_reference_url(url: str, span: Span) -> ReferenceMatch:
    """Build a ReferenceMatch from a raw URL, or raise UrlParseError."""
    m = REFERENCE_PATTERN.fullmatch(url)
    if m is None:
        raise UrlParseError(url)
    return ReferenceMatch(url=url, payload=m.group(1), span=span)


def in_link_syntax(text: str, start: int) -> bool:
    """True when the URL at ``start`` is the target of a markdown link or image.

    Whitespace and a single ``<`` between ``](`` and the URL are allowed.
    """
    before = text[:start].rstrip()
    if before.endswith("<"):
        before = before[:-1].rstrip()
    return before.endswith("](")


def is_replaced(text: str, match: ReferenceMatch) -> bool:
    """True when the match sits directly inside an image reference ``![...](url)``."""
    before = text[max(0, match.span.start - 200):match.span.start]
    after = text[match.span.end:match.span.end + 1]
    return bool(_IMAGE_OPEN_RE.search(before)) and after == ")"


def _candidate_end(text: str, end: int) -> int:
    while end < len(text) and text[end] in _PAYLOAD_TAIL_CHARS:
        end += 1
    return end


def scan(text: str) -> list[ReferenceMatch]:
    """Return every fresh reference in ``text``, left to right.

    References already used as a link target are skipped. Malformed
    candidates are logged and dropped; scanning itself never fails.
    """
    matches: list[ReferenceMatch] = []
    for m in REFERENCE_PATTERN.finditer(text):
        start = m.start()
        if in_link_syntax(text, start):
            logger.debug("Skipping reference at %d: already inside link syntax", start)
            continue

        end = _candidate_end(text, m.end())
        candidate = text[start:end]
        try:
            matches.append(parse_reference_url(candidate, Span(start, end)))
        except UrlParseError as e:
            logger.warning(
                "Skipping invalid diagram URL at position %d: %s (%s)",
                start,
                e.message,
                e.remediation,
            )
    return matches


def referenced_urls(text: str) -> set[str]:
    """Every well-formed reference URL in ``text``, linked or not."""
    urls: set[str] = set()
    for m in REFERENCE_PATTERN.finditer(text):
        end = _candidate_end(text, m.end())
        if end == m.end():
            urls.add(m.group(0))
    return urls
