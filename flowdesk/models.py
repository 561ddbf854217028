from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class NodeKind(str, Enum):
    TRIGGER = "trigger"
    AI_AGENT = "aiAgent"
    TOOL = "tool"
    OUTPUT = "output"


TriggerType = Literal["Manual", "Scheduled", "Webhook", "Event"]
ToolType = Literal["API", "Function", "Database", "FileOperation"]
HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH"]
AgentType = Literal["Chat", "Completion", "Classifier", "Custom"]
OutputFormat = Literal["JSON", "Text", "HTML", "Markdown", "CSV"]
Destination = Literal["default", "file", "database", "api", "email"]
ApiMethod = Literal["POST", "PUT", "PATCH"]


class WireModel(BaseModel):
    """Base for everything that crosses the wire with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Position(BaseModel):
    x: float = 0.0
    y: float = 0.0


class InputParam(WireModel):
    name: str
    type: str = "string"
    required: bool = False


class TriggerProperties(WireModel):
    trigger_type: TriggerType = "Manual"
    schedule: str | None = None
    webhook_path: str | None = None
    event_source: str | None = None
    event_condition: str | None = None
    input_params: list[InputParam] | None = None
    conditions: list[str] | None = None


class ToolProperties(WireModel):
    tool_type: ToolType = "API"
    endpoint: str | None = None
    method: HttpMethod | None = None
    headers: dict[str, Any] | None = None
    function_code: str | None = None
    connection_string: str | None = None
    query: str | None = None


class AgentProperties(WireModel):
    agent_type: AgentType = "Chat"
    model: str = "gpt-3.5-turbo"
    custom_model: str | None = None
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=1000, ge=1, le=32000)
    system_prompt: str | None = None


class OutputProperties(WireModel):
    format: OutputFormat = "JSON"
    destination: Destination = "default"
    file_path: str | None = None
    db_connection: str | None = None
    db_table: str | None = None
    api_endpoint: str | None = None
    api_method: ApiMethod | None = None
    email_recipients: str | None = None
    email_subject: str | None = None
    transform_function: str | None = None


NodeProperties = Union[TriggerProperties, ToolProperties, AgentProperties, OutputProperties]


class TriggerData(WireModel):
    label: str
    properties: TriggerProperties = Field(default_factory=TriggerProperties)


class ToolData(WireModel):
    label: str
    properties: ToolProperties = Field(default_factory=ToolProperties)


class AgentData(WireModel):
    label: str
    properties: AgentProperties = Field(default_factory=AgentProperties)


class OutputData(WireModel):
    label: str
    properties: OutputProperties = Field(default_factory=OutputProperties)


class TriggerNode(WireModel):
    id: str
    type: Literal["trigger"] = "trigger"
    position: Position = Field(default_factory=Position)
    data: TriggerData


class ToolNode(WireModel):
    id: str
    type: Literal["tool"] = "tool"
    position: Position = Field(default_factory=Position)
    data: ToolData


class AgentNode(WireModel):
    id: str
    type: Literal["aiAgent"] = "aiAgent"
    position: Position = Field(default_factory=Position)
    data: AgentData


class OutputNode(WireModel):
    id: str
    type: Literal["output"] = "output"
    position: Position = Field(default_factory=Position)
    data: OutputData


Node = Annotated[
    Union[TriggerNode, ToolNode, AgentNode, OutputNode],
    Field(discriminator="type"),
]


NODE_ADAPTER: TypeAdapter[Node] = TypeAdapter(Node)


class Edge(WireModel):
    id: str
    source: str
    target: str
    animated: bool = False


class Workflow(WireModel):
    id: str | None = None
    name: str = "New Workflow"
    description: str = ""
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)

    @property
    def nodes_by_id(self) -> dict[str, Node]:
        return {node.id: node for node in self.nodes}

    def has_node(self, node_id: str) -> bool:
        return any(node.id == node_id for node in self.nodes)


class WorkflowSummary(WireModel):
    id: str
    name: str
    description: str = ""


class Task(WireModel):
    name: str
    task_reference_name: str
    type: str = "SIMPLE"


class TaskChain(WireModel):
    name: str = ""
    description: str = ""
    tasks: list[Task] = Field(default_factory=list)


def node_kind(node: Node) -> NodeKind:
    return NodeKind(node.type)
