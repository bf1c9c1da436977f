"""Content fingerprints: deterministic digests of diagram structure for artifact naming."""

from __future__ import annotations

import hashlib
import json
from typing import Any

from quiverlink.core.models import DiagramGraph, EdgeStyle

FINGERPRINT_LENGTH = 16


def _style_projection(style: EdgeStyle | None) -> dict[str, Any] | None:
    if style is None:
        return None
    return {"body": style.body_name, "head": style.head_name, "offset": style.offset}


def canonical_form(graph: DiagramGraph) -> str:
    """Serialize the structural fields of a graph in a stable, key-sorted form.

    Python's built-in hash() is NOT suitable here: PYTHONHASHSEED randomizes
    it across sessions, so names derived from it would change between runs.
    """
    projection = {
        "nodes": [
            {"id": n.id, "x": n.x, "y": n.y, "label": n.label}
            for n in graph.nodes
        ],
        "edges": [
            {
                "id": e.id,
                "source": e.source,
                "target": e.target,
                "label": e.label,
                "style": _style_projection(e.style),
            }
            for e in graph.edges
        ],
    }
    return json.dumps(projection, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def fingerprint(graph: DiagramGraph) -> str:
    """Fixed-width hex digest of a graph's structure.

    Structurally identical graphs always share a fingerprint. Used to name
    artifacts; cache staleness is decided on the raw payload instead.
    """
    return hashlib.sha256(canonical_form(graph).encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
