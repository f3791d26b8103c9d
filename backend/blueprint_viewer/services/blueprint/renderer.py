"""
Blueprint diagram renderer

Turns validated geometry plus the current viewport into an HTML fragment
holding the zoom controls and an inline SVG diagram. Rendering is a pure
function of ``(geometry, viewport)``; placeholders are rendered for every
state that cannot be drawn.

Usage:
    from blueprint_viewer.services.blueprint.renderer import render_diagram

    html = render_diagram(geometry, ViewportState())
"""

from __future__ import annotations

import math
from html import escape as html_escape

from blueprint_viewer.schemas.job import JobStatus

from .contracts import CanonicalGeometry, ValidationReason, Vertex
from .validator import PROCESSING_COPY, PlaceholderCopy, filter_renderable_vertices, placeholder_copy
from .viewport import ViewportState, compute_viewbox, format_number, transform_style

# ── Palette ───────────────────────────────────────────────────
COLOR_CANVAS = "#121212"
COLOR_PANEL = "#1a1a1a"
COLOR_TEXT = "#F5F5F0"
COLOR_OUTLINE = "#FF5722"
COLOR_OUTLINE_FILL = "rgba(255, 87, 34, 0.1)"
COLOR_DIMENSION = "#10b981"
COLOR_CALIBRATION = "#fbbf24"
COLOR_CALIBRATION_STROKE = "#f59e0b"
COLOR_GRID = "rgba(245, 245, 240, 0.03)"
COLOR_ERROR = "#ef4444"

FONT_MONO = "monospace"

# ── Layout (diagram units) ────────────────────────────────────
GRID_SIZE = 50
GRID_MARGIN = 40
VERTEX_RADIUS = 4
LEADER_OFFSET = 20
LABEL_OFFSET = 10
LABEL_SIDE_OFFSET = 15
ARROW_LENGTH = 5.0
ARROW_HALF_WIDTH = 5.0
CALIBRATION_BAR_WIDTH = 100
CALIBRATION_BAR_HEIGHT = 10
CALIBRATION_BAR_INSET = 20
CALIBRATION_LABEL_RISE = 35

DEFAULT_CALIBRATION_INCHES = 12.0


def _n(value: float) -> str:
    return format_number(value)


def arrow_head(x: float, y: float, angle: float) -> str:
    """Filled triangle whose tip sits at (x, y), pointing along *angle* radians."""
    ca, sa = math.cos(angle), math.sin(angle)
    bx = x - ARROW_LENGTH * ca
    by = y - ARROW_LENGTH * sa
    lx = bx + ARROW_HALF_WIDTH * sa
    ly = by - ARROW_HALF_WIDTH * ca
    rx = bx - ARROW_HALF_WIDTH * sa
    ry = by + ARROW_HALF_WIDTH * ca
    return (
        f'<path class="dimension-arrow" d="M {_n(x)} {_n(y)} L {_n(lx)} {_n(ly)} '
        f'L {_n(rx)} {_n(ry)} Z" fill="{COLOR_DIMENSION}" />'
    )


def outline_path_data(vertices: list[Vertex], scale: float) -> str:
    """Closed path: move to the first vertex, line to each next one, close."""
    commands: list[str] = []
    for index, point in enumerate(vertices):
        op = "M" if index == 0 else "L"
        commands.append(f"{op} {_n(point.x * scale)} {_n(point.y * scale)}")
    return " ".join(commands) + " Z"


def render_grid(scaled_width: float, scaled_height: float) -> str:
    return (
        "<defs>"
        f'<pattern id="grid" width="{GRID_SIZE}" height="{GRID_SIZE}" patternUnits="userSpaceOnUse">'
        f'<path d="M {GRID_SIZE} 0 L 0 0 0 {GRID_SIZE}" fill="none" stroke="{COLOR_GRID}" stroke-width="1" />'
        "</pattern>"
        "</defs>"
        f'<rect class="grid" x="0" y="0" width="{_n(scaled_width + GRID_MARGIN)}" '
        f'height="{_n(scaled_height + GRID_MARGIN)}" fill="url(#grid)" />'
    )


def render_outline(vertices: list[Vertex], scale: float) -> str:
    return (
        f'<path class="outline" d="{outline_path_data(vertices, scale)}" '
        f'fill="{COLOR_OUTLINE_FILL}" stroke="{COLOR_OUTLINE}" stroke-width="2" '
        'stroke-linejoin="round" stroke-linecap="round" />'
    )


def render_vertex_markers(vertices: list[Vertex], scale: float) -> str:
    return "".join(
        f'<circle class="vertex" cx="{_n(v.x * scale)}" cy="{_n(v.y * scale)}" r="{VERTEX_RADIUS}" '
        f'fill="{COLOR_OUTLINE}" stroke="{COLOR_CANVAS}" stroke-width="2" />'
        for v in vertices
    )


def _leader(x1: float, y1: float, x2: float, y2: float) -> str:
    angle = math.atan2(y2 - y1, x2 - x1)
    return (
        f'<line class="dimension-leader" x1="{_n(x1)}" y1="{_n(y1)}" x2="{_n(x2)}" y2="{_n(y2)}" '
        f'stroke="{COLOR_DIMENSION}" stroke-width="2" />'
        f"{arrow_head(x1, y1, angle + math.pi)}"
        f"{arrow_head(x2, y2, angle)}"
    )


def _dimension_label(value: float) -> str:
    return html_escape(f'{value:.1f}"')


def render_dimensions(vertices: list[Vertex], geometry: CanonicalGeometry) -> str:
    """Width leader on the first edge; height leader to the third vertex if any."""
    if len(vertices) < 2:
        return ""

    scale = float(geometry.scale)
    first, second = vertices[0], vertices[1]
    x0, y0 = first.x * scale, first.y * scale
    x1, y1 = second.x * scale, second.y * scale

    parts = [
        '<g class="dimension dimension-width">',
        _leader(x0, y0 - LEADER_OFFSET, x1, y1 - LEADER_OFFSET),
        f'<text x="{_n((x0 + x1) / 2)}" y="{_n(y0 - LEADER_OFFSET - LABEL_OFFSET)}" text-anchor="middle" '
        f'fill="{COLOR_DIMENSION}" font-size="12" font-weight="bold" font-family="{FONT_MONO}">'
        f"{_dimension_label(geometry.dimensions.width)}</text>",
        "</g>",
    ]

    if len(vertices) >= 3:
        third = vertices[2]
        x2, y2 = third.x * scale, third.y * scale
        lx = x0 + LEADER_OFFSET
        tx = lx + LABEL_SIDE_OFFSET
        ty = (y0 + y2) / 2
        parts += [
            '<g class="dimension dimension-height">',
            _leader(lx, y0, lx, y2),
            f'<text x="{_n(tx)}" y="{_n(ty)}" text-anchor="middle" dominant-baseline="middle" '
            f'fill="{COLOR_DIMENSION}" font-size="12" font-weight="bold" font-family="{FONT_MONO}" '
            f'transform="rotate(90, {_n(tx)}, {_n(ty)})">'
            f"{_dimension_label(geometry.dimensions.height)}</text>",
            "</g>",
        ]

    return "".join(parts)


def render_calibration_reference(scaled_width: float, scaled_height: float, length_inches: float) -> str:
    """Fixed-size reference bar at the bottom-right corner of the scaled canvas."""
    label = html_escape(f'{format_number(length_inches, 1)}" Calibration Stick')
    return (
        '<g class="calibration">'
        f'<rect x="{_n(scaled_width - CALIBRATION_BAR_WIDTH)}" y="{_n(scaled_height - CALIBRATION_BAR_INSET)}" '
        f'width="{CALIBRATION_BAR_WIDTH}" height="{CALIBRATION_BAR_HEIGHT}" '
        f'fill="{COLOR_CALIBRATION}" stroke="{COLOR_CALIBRATION_STROKE}" stroke-width="2" />'
        f'<text x="{_n(scaled_width - CALIBRATION_BAR_WIDTH / 2)}" '
        f'y="{_n(scaled_height - CALIBRATION_LABEL_RISE)}" text-anchor="middle" '
        f'fill="{COLOR_TEXT}" font-size="10" font-family="{FONT_MONO}">{label}</text>'
        "</g>"
    )


def render_controls() -> str:
    buttons = (
        ("zoom-in", "Zoom in", "+"),
        ("zoom-out", "Zoom out", "-"),
        ("reset", "Reset view", "Reset"),
    )
    inner = "".join(
        f'<button type="button" data-action="{action}" aria-label="{label}">{glyph}</button>'
        for action, label, glyph in buttons
    )
    return f'<div class="blueprint-controls" style="background-color:{COLOR_PANEL};">{inner}</div>'


def render_diagram(
    geometry: CanonicalGeometry,
    viewport: ViewportState,
    *,
    default_width: float = 600,
    default_height: float = 400,
    calibration_length_inches: float = DEFAULT_CALIBRATION_INCHES,
) -> str:
    """Render the interactive diagram for validated, renderable geometry.

    Args:
        geometry: Geometry that passed ``validate`` and ``check_renderable``.
        viewport: Current pan/zoom state.
        default_width: Fallback viewbox width (unused for valid geometry).
        default_height: Fallback viewbox height.
        calibration_length_inches: Physical length named on the reference bar.

    Returns:
        HTML fragment with controls and the inline SVG.
    """
    vertices = filter_renderable_vertices(geometry.vertices)
    scale = float(geometry.scale)
    scaled_width = geometry.dimensions.width * scale
    scaled_height = geometry.dimensions.height * scale
    viewbox = compute_viewbox(geometry, default_width, default_height)
    cursor = "cursor-grabbing" if viewport.dragging else "cursor-grab"

    svg = (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="100%" height="100%" '
        f'viewBox="{viewbox}" class="blueprint-surface {cursor}" '
        f'style="{html_escape(transform_style(viewport))}">'
        f"{render_grid(scaled_width, scaled_height)}"
        f"{render_outline(vertices, scale)}"
        f"{render_vertex_markers(vertices, scale)}"
        f"{render_dimensions(vertices, geometry)}"
        f"{render_calibration_reference(scaled_width, scaled_height, calibration_length_inches)}"
        "</svg>"
    )

    return (
        '<div class="blueprint-view" style="position:relative;">'
        f"{render_controls()}"
        f'<div class="blueprint-canvas" style="background-color:{COLOR_CANVAS};width:100%;'
        f'max-width:100%;aspect-ratio:1.5;">{svg}</div>'
        "</div>"
    )


def _render_placeholder_block(state: str, copy: PlaceholderCopy, width: float, height: float, accent: str) -> str:
    frame = (
        f'<svg xmlns="http://www.w3.org/2000/svg" class="blueprint-placeholder-frame" width="100%" '
        f'viewBox="{_n(0)} {_n(0)} {_n(width)} {_n(height)}">'
        f'<rect x="0" y="0" width="{_n(width)}" height="{_n(height)}" fill="none" '
        f'stroke="{accent}" stroke-opacity="0.2" stroke-dasharray="8 8" />'
        "</svg>"
    )
    return (
        f'<div class="blueprint-placeholder" data-state="{html_escape(state)}" role="status" '
        f'style="background-color:{COLOR_PANEL};color:{COLOR_TEXT};text-align:center;">'
        f"{frame}"
        f'<p class="blueprint-placeholder-title">{html_escape(copy.title)}</p>'
        f'<p class="blueprint-placeholder-message">{html_escape(copy.message)}</p>'
        "</div>"
    )


def render_placeholder(
    reason: ValidationReason,
    job_status: JobStatus | str | None = None,
    *,
    default_width: float = 600,
    default_height: float = 400,
) -> str:
    """Placeholder for a validation failure, sized to the default viewbox."""
    accent = COLOR_ERROR if reason == ValidationReason.INVALID_EDGE_DATA else COLOR_TEXT
    copy = placeholder_copy(reason, job_status)
    return _render_placeholder_block(str(reason), copy, default_width, default_height, accent)


def render_processing(*, default_width: float = 600, default_height: float = 400) -> str:
    """Shown while the upstream job is still generating the blueprint."""
    return _render_placeholder_block("processing", PROCESSING_COPY, default_width, default_height, COLOR_OUTLINE)
