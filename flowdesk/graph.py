from __future__ import annotations

import time
from typing import Any

from .models import NODE_ADAPTER, Edge, Node, NodeKind, Position, Workflow
from .nodes import NodeRegistry, default_registry


class NodeIdFactory:
    """Generates ``<type>-<epoch ms>`` ids that never repeat within a session."""

    def __init__(self) -> None:
        self._last = 0

    def next_id(self, kind: NodeKind | str) -> str:
        stamp = max(time.time_ns() // 1_000_000, self._last + 1)
        self._last = stamp
        return f"{NodeKind(kind).value}-{stamp}"


_default_ids = NodeIdFactory()


def default_label(kind: NodeKind, node_count: int) -> str:
    value = kind.value
    return f"{value[:1].upper()}{value[1:]} {node_count + 1}"


def build_node(
    kind: NodeKind | str,
    position: Position,
    *,
    node_id: str,
    label: str,
    registry: NodeRegistry | None = None,
) -> Node:
    registry = registry or default_registry()
    kind = NodeKind(kind)
    properties = registry.default_properties(kind)
    payload = {
        "id": node_id,
        "type": kind.value,
        "position": position,
        "data": {"label": label, "properties": properties},
    }
    return NODE_ADAPTER.validate_python(payload)


def add_node(
    workflow: Workflow,
    kind: NodeKind | str,
    position: Position,
    *,
    node_id: str | None = None,
    registry: NodeRegistry | None = None,
) -> Workflow:
    kind = NodeKind(kind)
    node = build_node(
        kind,
        position,
        node_id=node_id or _default_ids.next_id(kind),
        label=default_label(kind, len(workflow.nodes)),
        registry=registry,
    )
    return workflow.model_copy(update={"nodes": [*workflow.nodes, node]})


def edge_id(source: str, target: str) -> str:
    return f"reactflow__edge-{source}-{target}"


def add_edge(workflow: Workflow, source: str, target: str) -> Workflow:
    if not (workflow.has_node(source) and workflow.has_node(target)):
        return workflow

    base = edge_id(source, target)
    taken = {edge.id for edge in workflow.edges}
    new_id = base
    suffix = 1
    while new_id in taken:
        suffix += 1
        new_id = f"{base}-{suffix}"

    edge = Edge(id=new_id, source=source, target=target, animated=True)
    return workflow.model_copy(update={"edges": [*workflow.edges, edge]})


def replace_node(workflow: Workflow, node: Node) -> Workflow:
    nodes = [node if existing.id == node.id else existing for existing in workflow.nodes]
    return workflow.model_copy(update={"nodes": nodes})


def find_node(workflow: Workflow, node_id: str | None) -> Node | None:
    if node_id is None:
        return None
    return workflow.nodes_by_id.get(node_id)


def merge_properties(node: Node, changes: dict[str, Any]) -> Node | None:
    merged = {**node.data.properties.to_wire(), **changes}
    try:
        properties = type(node.data.properties).model_validate(merged)
    except ValueError:
        return None
    data = node.data.model_copy(update={"properties": properties})
    return node.model_copy(update={"data": data})


def update_properties(workflow: Workflow, node_id: str, changes: dict[str, Any]) -> Workflow:
    """Shallow-merge ``changes`` into one node; invalid merges leave the workflow as is."""
    node = find_node(workflow, node_id)
    if node is None or not changes:
        return workflow
    updated = merge_properties(node, changes)
    if updated is None:
        return workflow
    return replace_node(workflow, updated)


def update_label(workflow: Workflow, node_id: str, label: str) -> Workflow:
    node = find_node(workflow, node_id)
    if node is None:
        return workflow
    data = node.data.model_copy(update={"label": label})
    return replace_node(workflow, node.model_copy(update={"data": data}))


def move_node(workflow: Workflow, node_id: str, position: Position) -> Workflow:
    node = find_node(workflow, node_id)
    if node is None:
        return workflow
    return replace_node(workflow, node.model_copy(update={"position": position}))


def remove_node(workflow: Workflow, node_id: str) -> Workflow:
    """Delete a node together with every edge that touches it."""
    if not workflow.has_node(node_id):
        return workflow
    nodes = [node for node in workflow.nodes if node.id != node_id]
    edges = [
        edge for edge in workflow.edges if edge.source != node_id and edge.target != node_id
    ]
    return workflow.model_copy(update={"nodes": nodes, "edges": edges})


def remove_edge(workflow: Workflow, edge_id: str) -> Workflow:
    edges = [edge for edge in workflow.edges if edge.id != edge_id]
    if len(edges) == len(workflow.edges):
        return workflow
    return workflow.model_copy(update={"edges": edges})


def dangling_edges(workflow: Workflow) -> list[Edge]:
    ids = set(workflow.nodes_by_id)
    return [edge for edge in workflow.edges if edge.source not in ids or edge.target not in ids]


def prune_dangling_edges(workflow: Workflow) -> Workflow:
    dangling = dangling_edges(workflow)
    if not dangling:
        return workflow
    dropped = {edge.id for edge in dangling}
    edges = [edge for edge in workflow.edges if edge.id not in dropped]
    return workflow.model_copy(update={"edges": edges})


def replace_graph(workflow: Workflow, nodes: list[Node], edges: list[Edge]) -> Workflow:
    return workflow.model_copy(update={"nodes": list(nodes), "edges": list(edges)})


def reset(default_name: str = "New Workflow") -> Workflow:
    return Workflow(name=default_name)


def to_json(workflow: Workflow) -> str:
    return workflow.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def from_json(text: str | bytes) -> Workflow:
    return Workflow.model_validate_json(text)
