"""Contracts for blueprint geometry: input variants, geometry and outcomes."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, NamedTuple, Union

# Wire keys accepted for the vertex list. The vision service emits "edges".
VERTEX_KEYS = ("vertices", "edges")


class Vertex(NamedTuple):
    """One outline corner. Passed-through values are not coerced."""

    x: Any
    y: Any


@dataclass(frozen=True)
class Dimensions:
    width: Any
    height: Any


@dataclass(frozen=True)
class CanonicalGeometry:
    """Normalized blueprint outline: vertices, bounding dimensions, scale."""

    vertices: tuple[Vertex, ...]
    dimensions: Dimensions
    scale: Any = 1.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "vertices": [{"x": v.x, "y": v.y} for v in self.vertices],
            "dimensions": {
                "width": self.dimensions.width,
                "height": self.dimensions.height,
            },
            "scale": self.scale,
        }


class ValidationReason(StrEnum):
    NO_DATA = "no-data"
    INSUFFICIENT_EDGES = "insufficient-edges"
    INVALID_DIMENSIONS = "invalid-dimensions"
    INVALID_SCALE = "invalid-scale"
    ZERO_DIMENSIONS = "zero-dimensions"
    INVALID_EDGE_DATA = "invalid-edge-data"


@dataclass(frozen=True)
class Valid:
    geometry: CanonicalGeometry
    is_valid: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Invalid:
    reason: ValidationReason
    is_valid: bool = field(default=False, init=False)


ValidationOutcome = Union[Valid, Invalid]


@dataclass(frozen=True)
class SanitizationResult:
    clean_markup: str | None
    flagged_dangerous: bool = False


# ---------------------------------------------------------------------------
# RawBlueprintInput variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Absent:
    """Nothing usable was supplied."""


@dataclass(frozen=True)
class CanonicalShape:
    payload: Mapping[str, Any]


@dataclass(frozen=True)
class EncodedString:
    """A JSON document or vector markup; which one is decided by decoding."""

    text: str


@dataclass(frozen=True)
class MarkupEnvelope:
    """An object carrying markup under one of the known field names."""

    payload: Mapping[str, Any]


RawBlueprintInput = Union[Absent, CanonicalShape, EncodedString, MarkupEnvelope]
RAW_INPUT_TYPES = (Absent, CanonicalShape, EncodedString, MarkupEnvelope)


# ---------------------------------------------------------------------------
# Shape checks
# ---------------------------------------------------------------------------


def is_number(value: Any) -> bool:
    """Real ``int``/``float`` (bools excluded). NaN and infinities count."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_real_number(value: Any) -> bool:
    """Like :func:`is_number` but rejects NaN and ints too large for a float."""
    if not is_number(value):
        return False
    try:
        return not math.isnan(float(value))
    except OverflowError:
        return False


def _coerce_vertex(entry: Any) -> Vertex | None:
    if isinstance(entry, Mapping):
        if "x" in entry and "y" in entry:
            return Vertex(entry["x"], entry["y"])
        return None
    if isinstance(entry, Sequence) and not isinstance(entry, (str, bytes)) and len(entry) == 2:
        return Vertex(entry[0], entry[1])
    return None


def vertex_list(payload: Mapping[str, Any]) -> Any:
    for key in VERTEX_KEYS:
        if key in payload:
            return payload[key]
    return None


def is_canonical_shape(value: Any) -> bool:
    """True when *value* already looks like canonical geometry.

    Requires a non-empty list of point-like entries, numeric
    ``dimensions.width``/``dimensions.height`` and a numeric ``scale``.
    """
    if not isinstance(value, Mapping):
        return False
    points = vertex_list(value)
    if not isinstance(points, (list, tuple)) or len(points) == 0:
        return False
    if any(_coerce_vertex(p) is None for p in points):
        return False
    dims = value.get("dimensions")
    if not isinstance(dims, Mapping):
        return False
    return is_number(dims.get("width")) and is_number(dims.get("height")) and is_number(value.get("scale"))


def geometry_from_mapping(payload: Mapping[str, Any]) -> CanonicalGeometry:
    """Build geometry from a canonical-shaped mapping without altering values."""
    points = vertex_list(payload) or []
    dims = payload.get("dimensions") or {}
    return CanonicalGeometry(
        vertices=tuple(v for v in (_coerce_vertex(p) for p in points) if v is not None),
        dimensions=Dimensions(width=dims.get("width"), height=dims.get("height")),
        scale=payload.get("scale"),
    )
