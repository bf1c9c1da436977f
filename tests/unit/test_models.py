"""Tests for core data models."""

from __future__ import annotations

import pytest

from quiverlink.core.models import CacheRecord, DiagramGraph, Edge, EdgeStyle, Node, Span


class TestEdge:
    def test_empty_label_is_absent(self):
        assert Edge(0, 0, 1, "") == Edge(0, 0, 1)

    def test_empty_style_is_absent(self):
        assert Edge(0, 0, 1, "f", EdgeStyle()).style is None

    def test_style_kept(self):
        assert Edge(0, 0, 1, style=EdgeStyle(offset=0)).style == EdgeStyle(offset=0)


class TestDiagramGraph:
    def test_lists_become_tuples(self):
        graph = DiagramGraph(nodes=[Node(0, 0, 0, "A")], edges=[])
        assert graph == DiagramGraph(nodes=(Node(0, 0, 0, "A"),))
        assert isinstance(graph.nodes, tuple)


class TestSpan:
    def test_overlaps(self):
        assert Span(0, 5).overlaps(Span(4, 8))
        assert not Span(0, 5).overlaps(Span(5, 8))

    def test_negative_start(self):
        with pytest.raises(ValueError):
            Span(-1, 3)


class TestCacheRecord:
    def test_dict_round_trip(self):
        record = CacheRecord("https://q.uiver.app/#q=AAAA", "AAAA", "images/a.svg", 1_700_000_000_000)
        assert CacheRecord.from_dict(record.to_dict()) == record

    def test_float_timestamp_truncated(self):
        record = CacheRecord.from_dict({"url": "u", "payload": "p", "artifactPath": "a", "timestamp": 12.9})
        assert record.timestamp == 12

    def test_bool_timestamp_rejected(self):
        with pytest.raises(TypeError, match="timestamp"):
            CacheRecord.from_dict({"url": "u", "payload": "p", "artifactPath": "a", "timestamp": True})

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_timestamp_rejected(self, value):
        with pytest.raises(ValueError, match="finite"):
            CacheRecord.from_dict({"url": "u", "payload": "p", "artifactPath": "a", "timestamp": value})

    def test_missing_url(self):
        with pytest.raises(KeyError):
            CacheRecord.from_dict({"payload": "p", "artifactPath": "a"})
