"""Compact diagram codec: payload string <-> DiagramGraph.

Wire format (base64 of UTF-8 JSON)::

    [version, nodeCount, node_0, ..., node_{n-1}, edge_0, ..., edge_m]

    node = [x, y, label]
    edge = [source, target, label?, style?]
    style = {"body": {"name": ...}, "head": {"name": ...}, "offset": n}

When an edge has a style but no label, an empty string fills the label slot
so positional decoding stays unambiguous.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from quiverlink.core.errors import DecodeError
from quiverlink.core.models import DiagramGraph, Edge, EdgeStyle, Node

FORMAT_VERSION = 0


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_index(value: Any) -> int | None:
    """Return value as a non-negative int when it is an integral JSON number."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        return None
    return value


def _b64decode(payload: str) -> bytes:
    """Decode URL-safe or standard base64, tolerating missing padding."""
    data = payload.strip().replace("-", "+").replace("_", "/")
    stripped = data.rstrip("=")
    if len(stripped) % 4 == 1:
        raise ValueError("invalid base64 length")
    padded = stripped + "=" * (-len(stripped) % 4)
    return base64.b64decode(padded, validate=True)


def _parse_node(data: Any, index: int) -> Node:
    if not isinstance(data, list) or len(data) < 3:
        raise ValueError(f"node at index {index} is not an [x, y, label] array")
    x, y, label = data[0], data[1], data[2]
    if not _is_number(x) or not _is_number(y):
        raise ValueError(f"node at index {index} has invalid coordinates")
    if not isinstance(label, str):
        raise ValueError(f"node at index {index} has invalid label")
    return Node(id=index, x=x, y=y, label=label)


def _parse_style(options: Any) -> EdgeStyle | None:
    if not isinstance(options, dict):
        return None

    body = options.get("body")
    head = options.get("head")
    offset = options.get("offset")
    style = EdgeStyle(
        body_name=body["name"] if isinstance(body, dict) and isinstance(body.get("name"), str) else None,
        head_name=head["name"] if isinstance(head, dict) and isinstance(head.get("name"), str) else None,
        offset=offset if _is_number(offset) else None,
    )
    return None if style.is_empty else style


def _parse_edge(data: Any, index: int) -> Edge:
    if not isinstance(data, list) or len(data) < 2:
        raise ValueError(f"edge at index {index} is not a [source, target, ...] array")
    source, target = _as_index(data[0]), _as_index(data[1])
    if source is None or target is None:
        raise ValueError(f"edge at index {index} has invalid source or target")

    label = data[2] if len(data) > 2 else None
    if label is not None and not isinstance(label, str):
        raise ValueError(f"edge at index {index} has invalid label")

    style = _parse_style(data[3]) if len(data) > 3 else None
    return Edge(id=index, source=source, target=target, label=label or None, style=style)


def decode(payload: str) -> DiagramGraph:
    """Decode a reference payload into a DiagramGraph.

    Raises:
        DecodeError: the payload is not base64, not JSON, or not a valid
            diagram array.
    """
    try:
        raw = _b64decode(payload)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(payload, f"invalid base64: {e}") from e

    try:
        parsed = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(payload, f"invalid JSON: {e}") from e

    if not isinstance(parsed, list) or len(parsed) < 2:
        raise DecodeError(payload, "expected an array with at least 2 elements")

    node_count = _as_index(parsed[1])
    if node_count is None:
        raise DecodeError(payload, "second element must be the node count")

    nodes_data = parsed[2:2 + node_count]
    if len(nodes_data) < node_count:
        raise DecodeError(payload, f"expected {node_count} nodes, found {len(nodes_data)}")
    edges_data = parsed[2 + node_count:]

    try:
        nodes = tuple(_parse_node(item, i) for i, item in enumerate(nodes_data))
        edges = tuple(_parse_edge(item, i) for i, item in enumerate(edges_data))
    except ValueError as e:
        raise DecodeError(payload, str(e)) from e

    return DiagramGraph(nodes=nodes, edges=edges)


def _style_options(style: EdgeStyle | None) -> dict[str, Any] | None:
    if style is None:
        return None
    options: dict[str, Any] = {}
    if style.body_name is not None:
        options["body"] = {"name": style.body_name}
    if style.head_name is not None:
        options["head"] = {"name": style.head_name}
    if style.offset is not None:
        options["offset"] = style.offset
    return options or None


def _edge_array(edge: Edge) -> list[Any]:
    item: list[Any] = [edge.source, edge.target]
    options = _style_options(edge.style)
    if edge.label:
        item.append(edge.label)
    elif options is not None:
        item.append("")
    if options is not None:
        item.append(options)
    return item


def encode(graph: DiagramGraph, version: int = FORMAT_VERSION) -> str:
    """Encode a DiagramGraph as a URL-safe base64 payload (inverse of decode)."""
    data: list[Any] = [version, len(graph.nodes)]
    data.extend([node.x, node.y, node.label] for node in graph.nodes)
    data.extend(_edge_array(edge) for edge in graph.edges)
    raw = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


def validate(graph: DiagramGraph) -> bool:
    """Check ids are unique, edges point at existing nodes, and field types are right."""
    node_ids: set[int] = set()
    for node in graph.nodes:
        if not isinstance(node.id, int) or isinstance(node.id, bool):
            return False
        if not _is_number(node.x) or not _is_number(node.y) or not isinstance(node.label, str):
            return False
        if node.id in node_ids:
            return False
        node_ids.add(node.id)

    edge_ids: set[int] = set()
    for edge in graph.edges:
        if not isinstance(edge.id, int) or isinstance(edge.id, bool) or edge.id in edge_ids:
            return False
        edge_ids.add(edge.id)
        if edge.source not in node_ids or edge.target not in node_ids:
            return False
        if edge.label is not None and not isinstance(edge.label, str):
            return False
        style = edge.style
        if style is not None:
            if style.body_name is not None and not isinstance(style.body_name, str):
                return False
            if style.head_name is not None and not isinstance(style.head_name, str):
                return False
            if style.offset is not None and not _is_number(style.offset):
                return False

    return True
