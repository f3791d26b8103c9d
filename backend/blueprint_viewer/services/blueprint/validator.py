"""Staged validation of canonical geometry and the placeholder copy per reason."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from blueprint_viewer.schemas.job import JobStatus

from .contracts import (
    CanonicalGeometry,
    Invalid,
    Valid,
    ValidationOutcome,
    ValidationReason,
    Vertex,
    is_real_number,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlaceholderCopy:
    title: str
    message: str


PLACEHOLDER_COPY: dict[ValidationReason, PlaceholderCopy] = {
    ValidationReason.NO_DATA: PlaceholderCopy(
        "No Blueprint Data",
        "No blueprint data available for this job",
    ),
    ValidationReason.INSUFFICIENT_EDGES: PlaceholderCopy(
        "Invalid Blueprint",
        "The blueprint data contains insufficient edge points to render",
    ),
    ValidationReason.INVALID_DIMENSIONS: PlaceholderCopy(
        "Invalid Dimensions",
        "The blueprint dimensions are missing or invalid",
    ),
    ValidationReason.INVALID_SCALE: PlaceholderCopy(
        "Invalid Scale",
        "The blueprint scale value is invalid",
    ),
    ValidationReason.ZERO_DIMENSIONS: PlaceholderCopy(
        "Zero Dimensions",
        "The blueprint has zero or negative dimensions",
    ),
    ValidationReason.INVALID_EDGE_DATA: PlaceholderCopy(
        "Invalid Edge Data",
        "The blueprint contains invalid or corrupted edge coordinates",
    ),
}

CAPTURING_NO_DATA_MESSAGE = "Blueprint will be generated after video capture is complete"

PROCESSING_COPY = PlaceholderCopy(
    "PROCESSING BLUEPRINT...",
    "AI is generating the blueprint from captured video",
)


def _fail(reason: ValidationReason) -> Invalid:
    logger.info("Blueprint validation failed: reason=%s", reason)
    return Invalid(reason)


def validate(geometry: CanonicalGeometry | None) -> ValidationOutcome:
    """Run the structural checks in order; the first failure wins."""
    if geometry is None:
        return _fail(ValidationReason.NO_DATA)

    if not geometry.vertices or len(geometry.vertices) < 2:
        return _fail(ValidationReason.INSUFFICIENT_EDGES)

    dims = geometry.dimensions
    if dims is None or not is_real_number(dims.width) or not is_real_number(dims.height):
        return _fail(ValidationReason.INVALID_DIMENSIONS)

    if not is_real_number(geometry.scale) or geometry.scale <= 0:
        return _fail(ValidationReason.INVALID_SCALE)

    if dims.width <= 0 or dims.height <= 0:
        return _fail(ValidationReason.ZERO_DIMENSIONS)

    return Valid(geometry)


def filter_renderable_vertices(vertices: Iterable[Vertex]) -> list[Vertex]:
    """Keep vertices with numeric, non-NaN coordinates.

    Infinite coordinates are kept.
    """
    return [v for v in vertices if is_real_number(v.x) and is_real_number(v.y)]


def check_renderable(geometry: CanonicalGeometry) -> ValidationOutcome:
    """Second checkpoint, run at render time after ``validate`` passed."""
    renderable = filter_renderable_vertices(geometry.vertices)
    if len(renderable) < 2:
        logger.info(
            "Blueprint has %d renderable vertices of %d; showing invalid-edge-data",
            len(renderable),
            len(geometry.vertices),
        )
        return Invalid(ValidationReason.INVALID_EDGE_DATA)
    return Valid(geometry)


def placeholder_copy(reason: ValidationReason, job_status: JobStatus | str | None = None) -> PlaceholderCopy:
    """Title and message for *reason*; ``no-data`` varies while capturing."""
    copy = PLACEHOLDER_COPY.get(reason, PLACEHOLDER_COPY[ValidationReason.NO_DATA])
    if reason == ValidationReason.NO_DATA and job_status == JobStatus.CAPTURING:
        return PlaceholderCopy(copy.title, CAPTURING_NO_DATA_MESSAGE)
    return copy
