from __future__ import annotations

import pytest

from flowdesk import graph
from flowdesk.models import Edge, NodeKind, Position, Workflow
from flowdesk.nodes import default_registry


def _workflow_with(*kinds: NodeKind) -> Workflow:
    workflow = Workflow()
    for index, kind in enumerate(kinds):
        workflow = graph.add_node(workflow, kind, Position(x=0, y=index * 100), node_id=f"n{index}")
    return workflow


@pytest.mark.parametrize(
    ("kind", "expected"),
    [
        (NodeKind.TRIGGER, {"triggerType": "Manual", "schedule": "", "conditions": []}),
        (NodeKind.TOOL, {"toolType": "API", "endpoint": "", "method": "GET", "headers": {}}),
        (
            NodeKind.AI_AGENT,
            {"agentType": "Chat", "model": "gpt-3.5-turbo", "temperature": 0.7, "maxTokens": 1000},
        ),
        (NodeKind.OUTPUT, {"format": "JSON", "destination": "default"}),
    ],
)
def test_new_nodes_get_exact_default_properties(kind: NodeKind, expected: dict) -> None:
    workflow = graph.add_node(Workflow(), kind, Position(x=10, y=20))
    node = workflow.nodes[0]
    assert node.type == kind.value
    assert node.data.properties.to_wire() == expected


def test_labels_count_existing_nodes() -> None:
    workflow = _workflow_with(NodeKind.TRIGGER, NodeKind.AI_AGENT, NodeKind.AI_AGENT)
    assert [node.data.label for node in workflow.nodes] == ["Trigger 1", "AiAgent 2", "AiAgent 3"]


def test_generated_ids_are_unique_and_prefixed() -> None:
    factory = graph.NodeIdFactory()
    ids = [factory.next_id(NodeKind.TOOL) for _ in range(50)]
    assert len(set(ids)) == 50
    assert all(node_id.startswith("tool-") for node_id in ids)


def test_add_node_does_not_mutate_input() -> None:
    original = Workflow()
    updated = graph.add_node(original, NodeKind.OUTPUT, Position())
    assert original.nodes == []
    assert len(updated.nodes) == 1


def test_add_edge_requires_both_endpoints() -> None:
    workflow = _workflow_with(NodeKind.TRIGGER, NodeKind.OUTPUT)
    assert graph.add_edge(workflow, "n0", "missing") is workflow
    assert graph.add_edge(workflow, "missing", "n1") is workflow

    connected = graph.add_edge(workflow, "n0", "n1")
    assert connected.edges == [Edge(id="reactflow__edge-n0-n1", source="n0", target="n1", animated=True)]


def test_parallel_and_cyclic_edges_are_allowed() -> None:
    workflow = _workflow_with(NodeKind.TRIGGER, NodeKind.OUTPUT)
    workflow = graph.add_edge(workflow, "n0", "n1")
    workflow = graph.add_edge(workflow, "n0", "n1")
    workflow = graph.add_edge(workflow, "n1", "n0")
    workflow = graph.add_edge(workflow, "n0", "n0")

    ids = [edge.id for edge in workflow.edges]
    assert ids == [
        "reactflow__edge-n0-n1",
        "reactflow__edge-n0-n1-2",
        "reactflow__edge-n1-n0",
        "reactflow__edge-n0-n0",
    ]


def test_remove_node_prunes_incident_edges() -> None:
    workflow = _workflow_with(NodeKind.TRIGGER, NodeKind.AI_AGENT, NodeKind.OUTPUT)
    workflow = graph.add_edge(workflow, "n0", "n1")
    workflow = graph.add_edge(workflow, "n1", "n2")
    workflow = graph.add_edge(workflow, "n0", "n2")

    pruned = graph.remove_node(workflow, "n1")
    assert [node.id for node in pruned.nodes] == ["n0", "n2"]
    assert [(edge.source, edge.target) for edge in pruned.edges] == [("n0", "n2")]
    assert graph.dangling_edges(pruned) == []


def test_prune_dangling_edges_drops_edges_to_missing_nodes() -> None:
    workflow = _workflow_with(NodeKind.TRIGGER)
    workflow = workflow.model_copy(
        update={"edges": [Edge(id="stale", source="n0", target="gone"), Edge(id="self", source="n0", target="n0")]}
    )
    assert [edge.id for edge in graph.dangling_edges(workflow)] == ["stale"]
    assert [edge.id for edge in graph.prune_dangling_edges(workflow).edges] == ["self"]


def test_update_properties_merges_shallowly() -> None:
    workflow = _workflow_with(NodeKind.TOOL)
    updated = graph.update_properties(workflow, "n0", {"toolType": "Database", "connectionString": "pg://h/db"})
    properties = updated.nodes[0].data.properties.to_wire()
    assert properties["toolType"] == "Database"
    assert properties["connectionString"] == "pg://h/db"
    assert properties["method"] == "GET"


def test_update_properties_rejects_shape_violations() -> None:
    workflow = _workflow_with(NodeKind.AI_AGENT)
    assert graph.update_properties(workflow, "n0", {"temperature": 5}) is workflow
    assert graph.update_properties(workflow, "missing", {"temperature": 1}) is workflow


def test_label_and_position_edits() -> None:
    workflow = _workflow_with(NodeKind.TRIGGER)
    workflow = graph.update_label(workflow, "n0", "Inbox")
    workflow = graph.move_node(workflow, "n0", Position(x=42, y=7))
    node = workflow.nodes[0]
    assert node.data.label == "Inbox"
    assert node.position == Position(x=42, y=7)


def test_reset_clears_everything() -> None:
    workflow = _workflow_with(NodeKind.TRIGGER).model_copy(update={"id": "wf-1", "description": "x"})
    fresh = graph.reset("Untitled")
    assert fresh.id is None
    assert fresh.name == "Untitled"
    assert fresh.nodes == [] and fresh.edges == []
    assert workflow.nodes


def test_json_round_trip_preserves_workflow() -> None:
    workflow = _workflow_with(NodeKind.TRIGGER, NodeKind.TOOL, NodeKind.AI_AGENT, NodeKind.OUTPUT)
    workflow = graph.add_edge(workflow, "n0", "n1")
    workflow = graph.update_properties(workflow, "n0", {"inputParams": [{"name": "query", "required": True}]})
    workflow = workflow.model_copy(update={"id": "wf-9", "name": "Round trip"})

    text = graph.to_json(workflow)
    assert '"triggerType": "Manual"' in text
    assert graph.from_json(text) == workflow


def test_registry_lists_builtin_kinds_in_palette_order() -> None:
    registry = default_registry()
    assert registry.list_types() == ["aiAgent", "tool", "trigger", "output"]
    assert registry.find("unknown") is None
    assert registry.find(None) is None
    with pytest.raises(KeyError):
        registry.get("unknown")
