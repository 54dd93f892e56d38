"""Map store responses onto typed records.

The store returns ``{"<block name>": [node, ...]}``; a block with no
matches is omitted, so a missing root decodes to an empty list. Any other
shape mismatch raises :class:`~costgraph.errors.DecodeError`.
"""

from __future__ import annotations

from typing import Any

from costgraph.errors import DecodeError
from costgraph.models.pods import HierarchyNode, HierarchyResult, Pod, PodRef


def _nodes(data: Any, root: str) -> list[dict[str, Any]]:
    if not isinstance(data, dict):
        raise DecodeError(f"expected an object, got {type(data).__name__}", root)
    nodes = data.get(root, [])
    if not isinstance(nodes, list) or not all(isinstance(n, dict) for n in nodes):
        raise DecodeError("expected a list of objects", root)
    return nodes


def _number(node: dict[str, Any], key: str, root: str) -> float | None:
    value = node.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise DecodeError(f"{key} is not numeric: {value!r}", root)
    return float(value)


def _refs(node: dict[str, Any], key: str, root: str) -> list[PodRef]:
    return [PodRef(name=str(n.get("name", "")), uid=str(n.get("uid", ""))) for n in _nodes(node, key)]


def decode_pod(node: dict[str, Any], root: str = "pods") -> Pod:
    return Pod(
        name=str(node.get("name", "")),
        uid=str(node.get("uid", "")),
        cpu_price=_number(node, "cpuPrice", root),
        memory_price=_number(node, "memoryPrice", root),
        outbound=_refs(node, "pod", root),
        outbound_count=int(_number(node, "outboundCount", root) or 0),
        services=_refs(node, "cid", root),
    )


def decode_pods(data: Any, root: str = "pods") -> list[Pod]:
    """Decode every node under *root* into a :class:`Pod`."""
    return [decode_pod(node, root) for node in _nodes(data, root)]


def _hierarchy_node(node: dict[str, Any], root: str) -> HierarchyNode:
    return HierarchyNode(
        name=str(node.get("name", "")),
        type=str(node.get("type", "")),
        cpu=_number(node, "cpu", root),
        memory=_number(node, "memory", root),
        storage=_number(node, "storage", root),
        cpu_cost=_number(node, "cpuCost", root),
        memory_cost=_number(node, "memoryCost", root),
        storage_cost=_number(node, "storageCost", root),
        children=[_hierarchy_node(child, root) for child in _nodes(node, "children")],
    )


def decode_hierarchy(data: Any, root: str = "parent") -> HierarchyResult:
    """Decode the first node under *root*; no match gives an empty result."""
    nodes = _nodes(data, root)
    if not nodes:
        return HierarchyResult()
    return HierarchyResult(data=_hierarchy_node(nodes[0], root))
