"""Core data models for quiverlink."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Node:
    """A diagram object placed on the grid. ``id`` is its position in the payload."""

    id: int
    x: float
    y: float
    label: str


@dataclass(frozen=True)
class EdgeStyle:
    """Optional arrow styling. An empty style is treated as no style at all."""

    body_name: str | None = None
    head_name: str | None = None
    offset: float | None = None

    @property
    def is_empty(self) -> bool:
        return self.body_name is None and self.head_name is None and self.offset is None


@dataclass(frozen=True)
class Edge:
    """A morphism between two nodes."""

    id: int
    source: int
    target: int
    label: str | None = None
    style: EdgeStyle | None = None

    def __post_init__(self):
        # Normalize so that equality never depends on "" vs None or {} vs None
        if self.label == "":
            object.__setattr__(self, "label", None)
        if self.style is not None and self.style.is_empty:
            object.__setattr__(self, "style", None)


@dataclass(frozen=True)
class DiagramGraph:
    """The structured (nodes, edges) form of one diagram."""

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", tuple(self.edges))


@dataclass(frozen=True)
class Span:
    """Half-open ``[start, end)`` character range within a document."""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.start > self.end:
            msg = f"invalid span [{self.start}, {self.end})"
            raise ValueError(msg)

    def overlaps(self, other: Span) -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class ReferenceMatch:
    """One fresh diagram reference found by a scan."""

    url: str
    payload: str
    span: Span


@dataclass
class CacheRecord:
    """Persisted mapping from a reference URL to its last rendered artifact.

    ``artifact_path`` is relative to the workspace root, POSIX separators.
    ``timestamp`` is milliseconds since the epoch.
    """

    url: str
    payload: str
    artifact_path: str
    timestamp: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "payload": self.payload,
            "artifactPath": self.artifact_path,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheRecord:
        """Build a record from its stored form.

        Accepts the older ``encodedData`` / ``imagePath`` key names. Raises
        ``KeyError`` or ``TypeError`` when a required field is missing or has
        the wrong type, and ``ValueError`` for a non-finite timestamp.
        """
        url = data["url"]
        payload = data["payload"] if "payload" in data else data["encodedData"]
        artifact_path = data["artifactPath"] if "artifactPath" in data else data["imagePath"]
        timestamp = data.get("timestamp", 0)

        for name, value in (("url", url), ("payload", payload), ("artifactPath", artifact_path)):
            if not isinstance(value, str):
                msg = f"{name} must be a string, got {type(value).__name__}"
                raise TypeError(msg)
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            msg = f"timestamp must be a number, got {type(timestamp).__name__}"
            raise TypeError(msg)
        if not math.isfinite(timestamp):
            msg = f"timestamp must be finite, got {timestamp}"
            raise ValueError(msg)

        return cls(url=url, payload=payload, artifact_path=artifact_path, timestamp=int(timestamp))
