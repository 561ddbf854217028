from __future__ import annotations

from typing import assert_never

from ..models import (
    AgentProperties,
    NodeKind,
    NodeProperties,
    OutputProperties,
    ToolProperties,
    TriggerProperties,
)
from .base import NodeRegistry, NodeSpec


def default_properties(kind: NodeKind) -> NodeProperties:
    """Properties assigned to a freshly dropped node of the given kind."""
    match kind:
        case NodeKind.TRIGGER:
            return TriggerProperties(trigger_type="Manual", schedule="", conditions=[])
        case NodeKind.TOOL:
            return ToolProperties(tool_type="API", endpoint="", method="GET", headers={})
        case NodeKind.AI_AGENT:
            return AgentProperties(
                agent_type="Chat",
                model="gpt-3.5-turbo",
                temperature=0.7,
                max_tokens=1000,
            )
        case NodeKind.OUTPUT:
            return OutputProperties(format="JSON", destination="default")
        case _:
            assert_never(kind)


def trigger_summary(properties: TriggerProperties) -> list[tuple[str, str]]:
    rows = [("Type", properties.trigger_type)]
    if properties.trigger_type == "Scheduled":
        rows.append(("Schedule", properties.schedule or "Not set"))
    elif properties.trigger_type == "Webhook":
        rows.append(("Path", properties.webhook_path or "/webhook"))
    return rows


def tool_summary(properties: ToolProperties) -> list[tuple[str, str]]:
    rows = [("Type", properties.tool_type)]
    if properties.tool_type == "API":
        rows.append(("Method", properties.method or "GET"))
    elif properties.tool_type == "Database":
        database = (properties.connection_string or "").rsplit("/", 1)[-1]
        rows.append(("Database", database or "undefined"))
    return rows


def agent_summary(properties: AgentProperties) -> list[tuple[str, str]]:
    model = properties.model
    if model == "custom" and properties.custom_model:
        model = properties.custom_model
    return [("Type", properties.agent_type), ("Model", model)]


def output_summary(properties: OutputProperties) -> list[tuple[str, str]]:
    destination = "Default" if properties.destination == "default" else properties.destination
    return [("Format", properties.format), ("Destination", destination)]


def register_builtin_nodes(registry: NodeRegistry) -> None:
    registry.register(
        NodeSpec(
            kind=NodeKind.AI_AGENT,
            title="AI Agent",
            icon="🤖",
            description="Calls a language model with a system prompt and sampling settings.",
            defaults=lambda: default_properties(NodeKind.AI_AGENT),
            summary=agent_summary,
        )
    )
    registry.register(
        NodeSpec(
            kind=NodeKind.TOOL,
            title="Tool",
            icon="🔧",
            description="Invokes an API, a custom function, a database query or a file operation.",
            defaults=lambda: default_properties(NodeKind.TOOL),
            summary=tool_summary,
        )
    )
    registry.register(
        NodeSpec(
            kind=NodeKind.TRIGGER,
            title="Trigger",
            icon="⚡",
            description="Starts the workflow manually, on a schedule, from a webhook or an event.",
            defaults=lambda: default_properties(NodeKind.TRIGGER),
            summary=trigger_summary,
        )
    )
    registry.register(
        NodeSpec(
            kind=NodeKind.OUTPUT,
            title="Output",
            icon="📤",
            description="Formats the result and delivers it to a destination.",
            defaults=lambda: default_properties(NodeKind.OUTPUT),
            summary=output_summary,
        )
    )
