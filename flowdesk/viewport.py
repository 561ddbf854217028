from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel

from .models import Node, Position

MIN_ZOOM = 0.5
MAX_ZOOM = 2.0

# Canvas footprint of a rendered node card.
NODE_WIDTH = 180.0
NODE_HEIGHT = 80.0


class Viewport(BaseModel):
    """Pan/zoom transform of the canvas: screen = model * zoom + (x, y)."""

    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0

    def project(self, screen_x: float, screen_y: float) -> Position:
        return Position(x=(screen_x - self.x) / self.zoom, y=(screen_y - self.y) / self.zoom)

    def to_screen(self, position: Position) -> tuple[float, float]:
        return position.x * self.zoom + self.x, position.y * self.zoom + self.y


def clamp_zoom(zoom: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, zoom))


def fit(nodes: Sequence[Node], width: float, height: float, padding: float = 0.1) -> Viewport:
    """Viewport that centres the bounding box of ``nodes`` in a width x height pane."""
    if not nodes:
        return Viewport()

    min_x = min(node.position.x for node in nodes)
    min_y = min(node.position.y for node in nodes)
    max_x = max(node.position.x for node in nodes) + NODE_WIDTH
    max_y = max(node.position.y for node in nodes) + NODE_HEIGHT

    box_w = max_x - min_x
    box_h = max_y - min_y
    usable_w = width * (1 - 2 * padding)
    usable_h = height * (1 - 2 * padding)
    zoom = clamp_zoom(min(usable_w / box_w, usable_h / box_h))

    x = (width - box_w * zoom) / 2 - min_x * zoom
    y = (height - box_h * zoom) / 2 - min_y * zoom
    return Viewport(x=x, y=y, zoom=zoom)
