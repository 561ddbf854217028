from functools import lru_cache

from .base import NodeRegistry, NodeSpec
from .builtin import default_properties, register_builtin_nodes


@lru_cache(maxsize=1)
def default_registry() -> NodeRegistry:
    registry = NodeRegistry()
    register_builtin_nodes(registry)
    return registry


__all__ = [
    "NodeRegistry",
    "NodeSpec",
    "default_properties",
    "default_registry",
    "register_builtin_nodes",
]
