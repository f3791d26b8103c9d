"""Viewbox computation and the pan/zoom state machine.

Every transition is a pure function returning a new ``ViewportState``;
the controller is the only caller that keeps the result.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import NamedTuple

from .contracts import CanonicalGeometry

MIN_ZOOM = 0.5
MAX_ZOOM = 3.0

WHEEL_ZOOM_OUT = 0.9
WHEEL_ZOOM_IN = 1.1
BUTTON_ZOOM_IN = 1.2
BUTTON_ZOOM_OUT = 0.8

VIEWBOX_PADDING_RATIO = 0.1
TRANSITION = "transform 0.2s ease-in-out"


class Point(NamedTuple):
    x: float
    y: float


ORIGIN = Point(0.0, 0.0)


class ViewBox(NamedTuple):
    min_x: float
    min_y: float
    width: float
    height: float

    def __str__(self) -> str:
        return " ".join(format_number(value) for value in self)


@dataclass(frozen=True)
class ViewportState:
    zoom_factor: float = 1.0
    pan: Point = ORIGIN
    dragging: bool = False
    drag_anchor: Point = ORIGIN


def format_number(value: float, precision: int = 2) -> str:
    """Fixed-point text without trailing zeros (12.50 -> "12.5", 3.00 -> "3")."""
    text = f"{value:.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def clamp_zoom(zoom: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, zoom))


def compute_viewbox(
    geometry: CanonicalGeometry | None,
    default_width: float,
    default_height: float,
) -> ViewBox:
    """Padded viewbox around the scaled geometry, or the default placeholder box.

    Pass ``None`` for geometry that did not validate.
    """
    if geometry is None:
        return ViewBox(0, 0, default_width, default_height)

    scaled_width = float(geometry.dimensions.width) * float(geometry.scale)
    scaled_height = float(geometry.dimensions.height) * float(geometry.scale)
    padding = VIEWBOX_PADDING_RATIO * min(scaled_width, scaled_height)
    return ViewBox(0, 0, scaled_width + padding * 2, scaled_height + padding * 2)


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def apply_wheel(state: ViewportState, delta_y: float) -> ViewportState:
    """Scrolling away (positive delta) zooms out, anything else zooms in."""
    factor = WHEEL_ZOOM_OUT if delta_y > 0 else WHEEL_ZOOM_IN
    return replace(state, zoom_factor=clamp_zoom(state.zoom_factor * factor))


def zoom_in(state: ViewportState) -> ViewportState:
    return replace(state, zoom_factor=clamp_zoom(state.zoom_factor * BUTTON_ZOOM_IN))


def zoom_out(state: ViewportState) -> ViewportState:
    return replace(state, zoom_factor=clamp_zoom(state.zoom_factor * BUTTON_ZOOM_OUT))


def pointer_down(state: ViewportState, point: Point) -> ViewportState:
    return replace(state, dragging=True, drag_anchor=Point(*point))


def pointer_move(state: ViewportState, point: Point) -> ViewportState:
    """Accumulate the delta since the last anchor while dragging."""
    if not state.dragging:
        return state
    point = Point(*point)
    pan = Point(
        state.pan.x + (point.x - state.drag_anchor.x),
        state.pan.y + (point.y - state.drag_anchor.y),
    )
    return replace(state, pan=pan, drag_anchor=point)


def pointer_up(state: ViewportState) -> ViewportState:
    """Ends a drag; also used for pointer-leave."""
    if not state.dragging:
        return state
    return replace(state, dragging=False)


def reset(state: ViewportState) -> ViewportState:
    return replace(state, zoom_factor=1.0, pan=ORIGIN)


# ---------------------------------------------------------------------------
# Render transform
# ---------------------------------------------------------------------------


def transform_style(state: ViewportState) -> str:
    """CSS for the render surface: translate(pan) then scale(zoom), centred.

    Animated when idle; unanimated while dragging so the outline tracks the
    pointer without lag.
    """
    transition = "none" if state.dragging else TRANSITION
    return (
        f"transform: translate({format_number(state.pan.x)}px, {format_number(state.pan.y)}px) "
        f"scale({format_number(state.zoom_factor, 4)}); "
        f"transform-origin: center; "
        f"transition: {transition};"
    )
