"""Tests for offset-safe splicing."""

from __future__ import annotations

import pytest

from quiverlink.build.splice import apply, apply_all, replacement_for
from quiverlink.core.models import Span


class TestReplacement:
    def test_template(self):
        url = "https://q.uiver.app/#q=AAAA"
        assert replacement_for("../images/a.svg", url) == f"[![diagram](../images/a.svg)]({url})"


class TestApply:
    def test_replaces_span(self):
        assert apply("hello world", Span(6, 11), "there") == "hello there"

    def test_text_outside_span_untouched(self):
        text = "prefix ~~~~ suffix\nwith more lines\n"
        span = Span(7, 11)
        result = apply(text, span, "a much longer replacement")

        assert result[:span.start] == text[:span.start]
        assert result.endswith(text[span.end:])

    def test_empty_span_inserts(self):
        assert apply("ab", Span(1, 1), "X") == "aXb"

    def test_span_past_end(self):
        with pytest.raises(ValueError, match="outside text"):
            apply("short", Span(2, 10), "x")

    def test_invalid_span(self):
        with pytest.raises(ValueError, match="invalid span"):
            Span(5, 2)


class TestApplyAll:
    def test_offsets_refer_to_original_text(self):
        """Edits given in any order land where the original offsets point."""
        text = "a X b Y c"
        edits = [(Span(2, 3), "longer-one"), (Span(6, 7), "L2")]

        assert apply_all(text, edits) == "a longer-one b L2 c"
        assert apply_all(text, list(reversed(edits))) == "a longer-one b L2 c"

    def test_shrinking_replacements(self):
        text = "[one] [two] [three]"
        edits = [(Span(0, 5), "1"), (Span(6, 11), "2"), (Span(12, 19), "3")]
        assert apply_all(text, edits) == "1 2 3"

    def test_adjacent_spans(self):
        assert apply_all("abcd", [(Span(0, 2), "X"), (Span(2, 4), "Y")]) == "XY"

    def test_no_edits(self):
        assert apply_all("unchanged", []) == "unchanged"

    def test_overlapping_spans_rejected(self):
        with pytest.raises(ValueError, match="overlapping"):
            apply_all("abcdef", [(Span(0, 3), "x"), (Span(2, 5), "y")])
