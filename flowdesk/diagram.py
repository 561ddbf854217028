from __future__ import annotations

from dataclasses import asdict, dataclass
from xml.sax.saxutils import escape

from .models import TaskChain

WIDTH = 480
ROW_HEIGHT = 120
CENTER_X = WIDTH // 2
BOX_X = 120
BOX_WIDTH = 240
BOX_HEIGHT = 70
FIRST_BOX_Y = 140
DEFAULT_TITLE = "Workflow Diagram"


@dataclass(frozen=True, slots=True)
class Theme:
    background: str
    start_fill: str
    start_stroke: str
    title_color: str
    box_fill: str
    box_stroke: str
    box_shadow: str
    primary_text: str
    secondary_text: str
    arrow_color: str

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


THEMES: dict[str, Theme] = {
    "blue": Theme(
        background="#f8fafc",
        start_fill="#dbeafe",
        start_stroke="#3b82f6",
        title_color="#1e40af",
        box_fill="#ffffff",
        box_stroke="#93c5fd",
        box_shadow="#dbeafe",
        primary_text="#1e40af",
        secondary_text="#3b82f6",
        arrow_color="#60a5fa",
    ),
    "green": Theme(
        background="#f0fdf4",
        start_fill="#dcfce7",
        start_stroke="#22c55e",
        title_color="#166534",
        box_fill="#ffffff",
        box_stroke="#86efac",
        box_shadow="#dcfce7",
        primary_text="#166534",
        secondary_text="#22c55e",
        arrow_color="#4ade80",
    ),
    "purple": Theme(
        background="#faf5ff",
        start_fill="#f3e8ff",
        start_stroke="#a855f7",
        title_color="#7e22ce",
        box_fill="#ffffff",
        box_stroke="#d8b4fe",
        box_shadow="#f3e8ff",
        primary_text="#7e22ce",
        secondary_text="#a855f7",
        arrow_color="#c084fc",
    ),
    "dark": Theme(
        background="#1e293b",
        start_fill="#334155",
        start_stroke="#94a3b8",
        title_color="#f1f5f9",
        box_fill="#334155",
        box_stroke="#64748b",
        box_shadow="#0f172a",
        primary_text="#f1f5f9",
        secondary_text="#cbd5e1",
        arrow_color="#94a3b8",
    ),
}

DEFAULT_THEME = "blue"


def resolve_theme(theme: str | Theme | None) -> Theme:
    if isinstance(theme, Theme):
        return theme
    return THEMES.get(theme or DEFAULT_THEME, THEMES[DEFAULT_THEME])


def diagram_height(task_count: int) -> int:
    return (task_count + 1) * ROW_HEIGHT + 50


def _arrow(y1: int, y2: int, color: str, marker: str) -> str:
    return (
        f'<line x1="{CENTER_X}" y1="{y1}" x2="{CENTER_X}" y2="{y2}" '
        f'stroke="{color}" stroke-width="2" marker-end="url(#{marker})" />'
    )


def _defs(count: int, theme: Theme, scope: str) -> list[str]:
    lines = [
        "<defs>",
        f'<filter id="{scope}shadow" x="-20%" y="-20%" width="140%" height="140%">',
        '<feDropShadow dx="0" dy="3" stdDeviation="3" flood-color="#00000022" />',
        "</filter>",
        f'<marker id="{scope}arrowhead" markerWidth="10" markerHeight="7" '
        'refX="10" refY="3.5" orient="auto">',
        f'<polygon points="0 0, 10 3.5, 0 7" fill="{theme.arrow_color}" />',
        "</marker>",
    ]
    for index in range(count):
        lines += [
            f'<linearGradient id="{scope}boxGradient{index}" x1="0%" y1="0%" x2="0%" y2="100%">',
            f'<stop offset="0%" stop-color="{theme.box_fill}" />',
            f'<stop offset="100%" stop-color="{theme.box_shadow}" stop-opacity="0.1" />',
            "</linearGradient>",
        ]
    lines.append("</defs>")
    return lines


def render(chain: TaskChain, theme: str | Theme | None = DEFAULT_THEME, *, scope: str = "") -> str:
    palette = resolve_theme(theme)
    tasks = chain.tasks
    height = diagram_height(len(tasks))
    title = escape(chain.name or DEFAULT_TITLE)
    marker = f"{scope}arrowhead"

    lines = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{WIDTH}" height="{height}" '
        f'viewBox="0 0 {WIDTH} {height}">',
        *_defs(len(tasks), palette, scope),
        f'<rect x="0" y="0" width="{WIDTH}" height="{height}" rx="10" fill="{palette.background}" />',
        f'<text x="{CENTER_X}" y="30" text-anchor="middle" font-family="Arial, sans-serif" '
        f'font-size="18" font-weight="bold" fill="{palette.title_color}">{title}</text>',
        f'<circle cx="{CENTER_X}" cy="80" r="30" fill="{palette.start_fill}" '
        f'stroke="{palette.start_stroke}" stroke-width="2" filter="url(#{scope}shadow)" />',
        f'<text x="{CENTER_X}" y="85" text-anchor="middle" font-family="Arial, sans-serif" '
        f'font-size="14" font-weight="500" fill="{palette.primary_text}">start</text>',
    ]
    if tasks:
        lines.append(_arrow(110, 130, palette.arrow_color, marker))

    for index, task in enumerate(tasks):
        y = FIRST_BOX_Y + index * ROW_HEIGHT
        lines += [
            f'<rect x="{BOX_X}" y="{y}" width="{BOX_WIDTH}" height="{BOX_HEIGHT}" rx="8" '
            f'fill="url(#{scope}boxGradient{index})" stroke="{palette.box_stroke}" '
            f'stroke-width="2" filter="url(#{scope}shadow)" />',
            f'<text x="{CENTER_X}" y="{y + 30}" text-anchor="middle" '
            f'font-family="Arial, sans-serif" font-size="15" font-weight="500" '
            f'fill="{palette.primary_text}">{escape(task.task_reference_name)}</text>',
            f'<text x="{CENTER_X}" y="{y + 50}" text-anchor="middle" '
            f'font-family="Arial, sans-serif" font-size="12" '
            f'fill="{palette.secondary_text}">({escape(task.name)})</text>',
        ]
        if index < len(tasks) - 1:
            lines.append(_arrow(y + BOX_HEIGHT, y + ROW_HEIGHT - 10, palette.arrow_color, marker))

    lines.append("</svg>")
    return "\n".join(lines)


def theme_names() -> list[str]:
    return list(THEMES)
