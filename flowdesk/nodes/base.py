from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ..models import NodeKind, NodeProperties


DefaultsFactory = Callable[[], NodeProperties]
SummaryBuilder = Callable[[NodeProperties], list[tuple[str, str]]]


@dataclass(slots=True)
class NodeSpec:
    kind: NodeKind
    title: str
    icon: str
    description: str
    defaults: DefaultsFactory
    summary: SummaryBuilder


class NodeRegistry:
    def __init__(self) -> None:
        self._nodes: dict[NodeKind, NodeSpec] = {}

    def register(self, spec: NodeSpec) -> None:
        self._nodes[spec.kind] = spec

    def get(self, type_name: str | NodeKind) -> NodeSpec:
        spec = self.find(type_name)
        if spec is None:
            raise KeyError(f"Unknown node type: {type_name}")
        return spec

    def find(self, type_name: str | NodeKind | None) -> NodeSpec | None:
        """Like get(), but answers None for missing or unknown type tags."""
        if not type_name:
            return None
        try:
            kind = NodeKind(type_name)
        except ValueError:
            return None
        return self._nodes.get(kind)

    def default_properties(self, type_name: str | NodeKind) -> NodeProperties:
        return self.get(type_name).defaults()

    def list_types(self) -> list[str]:
        return [kind.value for kind in self._nodes]

    def list_specs(self) -> list[dict[str, str]]:
        return [
            {
                "type": spec.kind.value,
                "label": spec.title,
                "icon": spec.icon,
                "description": spec.description,
            }
            for spec in self._nodes.values()
        ]
