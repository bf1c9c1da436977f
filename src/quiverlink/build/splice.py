"""Offset-safe text splicing."""

from __future__ import annotations

from collections.abc import Iterable

from quiverlink.core.models import Span

REPLACEMENT_TEMPLATE = "[![diagram]({artifact_path})]({url})"


def replacement_for(artifact_path: str, url: str) -> str:
    """Image reference wrapped in a link back to the original diagram URL."""
    return REPLACEMENT_TEMPLATE.format(artifact_path=artifact_path, url=url)


def apply(text: str, span: Span, replacement: str) -> str:
    """Replace ``text[span.start:span.end]``; everything else is left untouched."""
    if span.end > len(text):
        msg = f"span [{span.start}, {span.end}) is outside text of length {len(text)}"
        raise ValueError(msg)
    return text[:span.start] + replacement + text[span.end:]


def apply_all(text: str, edits: Iterable[tuple[Span, str]]) -> str:
    """Apply several splices at once.

    Edits are folded in descending start order so that each replacement only
    shifts text that has already been handled. Spans refer to the original text.
    """
    ordered = sorted(edits, key=lambda edit: edit[0].start, reverse=True)
    for later, earlier in zip(ordered, ordered[1:]):
        if earlier[0].overlaps(later[0]):
            msg = f"overlapping spans {earlier[0]} and {later[0]}"
            raise ValueError(msg)

    result = text
    for span, replacement in ordered:
        result = apply(result, span, replacement)
    return result
