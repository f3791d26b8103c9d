"""Blueprint pipeline: normalize, sanitize, validate and render vector outlines."""

from __future__ import annotations

from .contracts import (
    CanonicalGeometry,
    Dimensions,
    Invalid,
    RawBlueprintInput,
    SanitizationResult,
    Valid,
    ValidationOutcome,
    ValidationReason,
    Vertex,
)
from .controller import BlueprintViewController, PointerEvent, RenderSurface, WheelEvent
from .normalizer import classify_input, normalize
from .path_parser import parse_path_markup
from .renderer import render_diagram, render_placeholder, render_processing
from .sanitizer import extract_markup, is_markup_safe, sanitize, sanitize_markup, validate_markup_dimensions
from .validator import check_renderable, validate
from .viewport import ViewBox, ViewportState, compute_viewbox, transform_style

__all__ = [
    "BlueprintViewController",
    "CanonicalGeometry",
    "Dimensions",
    "Invalid",
    "PointerEvent",
    "RawBlueprintInput",
    "RenderSurface",
    "SanitizationResult",
    "Valid",
    "ValidationOutcome",
    "ValidationReason",
    "Vertex",
    "ViewBox",
    "ViewportState",
    "WheelEvent",
    "check_renderable",
    "classify_input",
    "compute_viewbox",
    "extract_markup",
    "is_markup_safe",
    "normalize",
    "parse_path_markup",
    "render_diagram",
    "render_placeholder",
    "render_processing",
    "sanitize",
    "sanitize_markup",
    "transform_style",
    "validate",
    "validate_markup_dimensions",
]
