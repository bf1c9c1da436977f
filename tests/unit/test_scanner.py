"""Tests for the reference scanner."""

from __future__ import annotations

import logging

import pytest

from quiverlink.core.errors import UrlParseError
from quiverlink.core.models import Span
from quiverlink.scanner import in_link_syntax, is_replaced, parse_reference_url, referenced_urls, scan
from tests.helpers.diagrams import SCENARIO_A_DATA, SQUARE_DATA, make_url

URL_A = make_url(SCENARIO_A_DATA)
URL_SQUARE = make_url(SQUARE_DATA)


class TestScan:
    def test_single_reference(self):
        text = f"see {URL_A} end"
        matches = scan(text)

        assert len(matches) == 1
        match = matches[0]
        assert match.url == URL_A
        assert match.payload == URL_A.split("#q=", 1)[1]
        assert text[match.span.start:match.span.end] == URL_A

    def test_left_to_right(self):
        text = f"{URL_SQUARE}\n\nthen {URL_A}\n"
        assert [m.url for m in scan(text)] == [URL_SQUARE, URL_A]

    def test_no_references(self):
        assert scan("# Title\n\nJust prose, and https://example.com/#q=abc.") == []

    def test_trailing_punctuation_not_included(self):
        text = f"Look at ({URL_A}). Done."
        assert scan(text)[0].url == URL_A

    def test_skips_replaced_reference(self):
        """A reference already wrapped by a previous run is not a candidate."""
        text = f"[![diagram](../images/a.svg)]({URL_A})"
        assert scan(text) == []

    def test_skips_hand_made_image_link(self):
        text = f"![my drawing]({URL_A})"
        assert scan(text) == []

    def test_skips_plain_link(self):
        text = f"[the diagram]({URL_A})"
        assert scan(text) == []

    @pytest.mark.parametrize("opener", ["](<", "]( ", "](\n  <"])
    def test_skips_link_with_padding(self, opener):
        text = f"[x{opener}{URL_A})"
        assert scan(text) == []

    def test_completeness(self):
        """Every occurrence outside link syntax is returned, and only those."""
        text = (
            f"{URL_A}\n"
            f"[![diagram](images/a.svg)]({URL_A})\n"
            f"- item {URL_SQUARE}\n"
            f"[link]({URL_SQUARE})\n"
            f"{URL_A}\n"
        )
        matches = scan(text)
        assert [m.url for m in matches] == [URL_A, URL_SQUARE, URL_A]
        assert matches[0].span.start < matches[1].span.start < matches[2].span.start

    def test_truncated_payload_dropped(self, caplog):
        text = f"broken {URL_A}+/abc here"
        with caplog.at_level(logging.WARNING, logger="quiverlink.scanner"):
            assert scan(text) == []
        assert "Skipping invalid diagram URL at position 7" in caplog.text

    def test_excess_padding_dropped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="quiverlink.scanner"):
            assert scan(f"{URL_A}=== x") == []
        assert "Invalid diagram URL format" in caplog.text

    def test_invalid_candidate_does_not_stop_scan(self, caplog):
        text = f"{URL_A}+bad and {URL_SQUARE}"
        with caplog.at_level(logging.WARNING, logger="quiverlink.scanner"):
            matches = scan(text)
        assert [m.url for m in matches] == [URL_SQUARE]


class TestParseReferenceUrl:
    def test_valid(self):
        match = parse_reference_url("https://q.uiver.app/#q=AAAA==", Span(0, 29))
        assert match.payload == "AAAA=="
        assert match.span == Span(0, 29)

    @pytest.mark.parametrize(
        "url",
        [
            "https://q.uiver.app/#q=",
            "http://q.uiver.app/#q=AAAA",
            "https://example.com/#q=AAAA",
            "https://q.uiver.app/#q=AA+A",
            "https://q.uiver.app/#q=AAAA===",
        ],
    )
    def test_invalid(self, url):
        with pytest.raises(UrlParseError) as exc_info:
            parse_reference_url(url, Span(0, len(url)))
        assert exc_info.value.url == url
        assert exc_info.value.kind == "url-parse-error"


class TestLinkSyntax:
    def test_bare_url(self):
        text = f"intro {URL_A}"
        assert not in_link_syntax(text, text.index(URL_A))

    def test_link_target(self):
        text = f"[a]({URL_A})"
        assert in_link_syntax(text, text.index(URL_A))

    def test_bracket_elsewhere_on_line(self):
        text = f"[a](b) then {URL_A}"
        assert not in_link_syntax(text, text.index(URL_A))

    def test_start_of_text(self):
        assert not in_link_syntax(URL_A, 0)


class TestIsReplaced:
    def test_image_reference(self):
        text = f"![alt]({URL_A})"
        start = text.index(URL_A)
        match = parse_reference_url(URL_A, Span(start, start + len(URL_A)))
        assert is_replaced(text, match)

    def test_raw_reference(self):
        text = f"see {URL_A} end"
        match = scan(text)[0]
        assert not is_replaced(text, match)

    def test_link_without_image(self):
        text = f"[alt]({URL_A})"
        start = text.index(URL_A)
        match = parse_reference_url(URL_A, Span(start, start + len(URL_A)))
        assert not is_replaced(text, match)


class TestReferencedUrls:
    def test_includes_linked_and_raw(self):
        text = f"[![diagram](images/a.svg)]({URL_A})\n{URL_SQUARE}\n"
        assert referenced_urls(text) == {URL_A, URL_SQUARE}

    def test_excludes_malformed(self):
        assert referenced_urls(f"{URL_A}+/x") == set()

    def test_empty(self):
        assert referenced_urls("nothing here") == set()
