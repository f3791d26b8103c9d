"""
Interaction controller for the blueprint view.

Owns the viewport state, memoizes normalization/validation on input
identity and wires the imperative wheel listener to a render surface for
exactly the lifetime of a mount.

Usage:
    controller = BlueprintViewController.from_job(job)
    with controller.mount(surface):
        html = controller.render()
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, NamedTuple

from pydantic import ValidationError

from blueprint_viewer.core.config import get_settings
from blueprint_viewer.schemas.job import JobSnapshot, JobStatus
from blueprint_viewer.services.security_audit import SecurityEvent, log_security_event

from .contracts import CanonicalGeometry, ValidationOutcome, ValidationReason
from .normalizer import normalize
from .renderer import render_diagram, render_placeholder, render_processing
from .validator import check_renderable, validate
from .viewport import (
    Point,
    ViewportState,
    apply_wheel,
    pointer_down,
    pointer_move,
    pointer_up,
    reset,
    zoom_in,
    zoom_out,
)

logger = logging.getLogger(__name__)

_UNSET = object()

EventHandler = Callable[[Any], None]


# ---------------------------------------------------------------------------
# Render surface
# ---------------------------------------------------------------------------


@dataclass
class WheelEvent:
    delta_y: float
    passive: bool = False
    default_prevented: bool = False

    def prevent_default(self) -> None:
        # Passive listeners cannot cancel the event.
        if self.passive:
            logger.debug("prevent_default ignored inside passive wheel listener")
            return
        self.default_prevented = True


class PointerEvent(NamedTuple):
    x: float
    y: float


class RenderSurface:
    """Minimal listener registry standing in for the page element."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[tuple[EventHandler, bool]]] = defaultdict(list)

    def add_event_listener(self, event_type: str, handler: EventHandler, *, passive: bool = True) -> None:
        self._listeners[event_type].append((handler, passive))

    def remove_event_listener(self, event_type: str, handler: EventHandler) -> None:
        self._listeners[event_type] = [
            (registered, passive) for registered, passive in self._listeners[event_type] if registered != handler
        ]

    def listeners(self, event_type: str) -> list[EventHandler]:
        return [handler for handler, _ in self._listeners.get(event_type, [])]

    def dispatch(self, event_type: str, event: Any) -> Any:
        for handler, passive in list(self._listeners.get(event_type, [])):
            if hasattr(event, "passive"):
                event.passive = passive
            handler(event)
        return event


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


def _coerce_status(value: JobStatus | str | None) -> JobStatus:
    if value is None:
        return JobStatus.COMPLETE
    if isinstance(value, JobStatus):
        return value
    try:
        return JobSnapshot(status=value).status
    except ValidationError:
        logger.warning("Unknown job status %r; treating as complete", value)
        return JobStatus.COMPLETE


class BlueprintViewController:
    """Holds one blueprint input and the interactive viewport drawn over it."""

    def __init__(
        self,
        raw_input: Any = None,
        job_status: JobStatus | str | None = JobStatus.COMPLETE,
        *,
        default_width: float | None = None,
        default_height: float | None = None,
        calibration_length_inches: float | None = None,
    ) -> None:
        settings = get_settings()
        self.raw_input = raw_input
        self.job_status = _coerce_status(job_status)
        self.default_width = default_width if default_width is not None else settings.default_width
        self.default_height = default_height if default_height is not None else settings.default_height
        self.calibration_length_inches = (
            calibration_length_inches
            if calibration_length_inches is not None
            else settings.calibration_length_inches
        )
        self.viewport = ViewportState()
        self._memo_key: Any = _UNSET
        self._geometry: CanonicalGeometry | None = None
        self._outcome: ValidationOutcome | None = None
        self._reported_key: Any = _UNSET
        self._surface: RenderSurface | None = None

    @classmethod
    def from_job(cls, job: JobSnapshot | Mapping[str, Any], **kwargs: Any) -> "BlueprintViewController":
        snapshot = job if isinstance(job, JobSnapshot) else JobSnapshot.model_validate(job)
        return cls(snapshot.blueprint_data, snapshot.status, **kwargs)

    # -- input -------------------------------------------------------------

    def set_input(self, raw_input: Any, job_status: JobStatus | str | None = None) -> None:
        """Swap the input; geometry is recomputed only if its identity changed."""
        self.raw_input = raw_input
        if job_status is not None:
            self.job_status = _coerce_status(job_status)

    def update_job(self, job: JobSnapshot | Mapping[str, Any]) -> None:
        snapshot = job if isinstance(job, JobSnapshot) else JobSnapshot.model_validate(job)
        self.set_input(snapshot.blueprint_data, snapshot.status)

    def _resolve(self) -> tuple[CanonicalGeometry | None, ValidationOutcome]:
        if self._memo_key is not self.raw_input or self._outcome is None:
            self._geometry = normalize(self.raw_input)
            self._outcome = validate(self._geometry)
            self._memo_key = self.raw_input
        return self._geometry, self._outcome

    @property
    def geometry(self) -> CanonicalGeometry | None:
        return self._resolve()[0]

    @property
    def outcome(self) -> ValidationOutcome:
        return self._resolve()[1]

    def _report_failure(self, reason: ValidationReason) -> None:
        # Missing data is routine while a job is in flight; only malformed data is audited.
        if reason == ValidationReason.NO_DATA or self._reported_key is self.raw_input:
            return
        self._reported_key = self.raw_input
        markup = self.raw_input if isinstance(self.raw_input, str) else None
        log_security_event(
            SecurityEvent.VALIDATION_FAILED,
            "validator",
            markup=markup,
            details={"reason": str(reason), "job_status": self.job_status.value},
        )

    # -- lifecycle ---------------------------------------------------------

    @contextmanager
    def mount(self, surface: RenderSurface) -> Iterator["BlueprintViewController"]:
        """Attach the non-passive wheel listener for the duration of the block."""
        self.viewport = ViewportState()
        surface.add_event_listener("wheel", self.on_wheel, passive=False)
        self._surface = surface
        try:
            yield self
        finally:
            surface.remove_event_listener("wheel", self.on_wheel)
            self._surface = None

    @property
    def mounted(self) -> bool:
        return self._surface is not None

    # -- interaction -------------------------------------------------------

    def on_wheel(self, event: WheelEvent) -> None:
        event.prevent_default()
        self.viewport = apply_wheel(self.viewport, event.delta_y)

    def on_pointer_down(self, event: PointerEvent) -> None:
        self.viewport = pointer_down(self.viewport, Point(event.x, event.y))

    def on_pointer_move(self, event: PointerEvent) -> None:
        self.viewport = pointer_move(self.viewport, Point(event.x, event.y))

    def on_pointer_up(self, event: PointerEvent | None = None) -> None:
        self.viewport = pointer_up(self.viewport)

    def on_pointer_leave(self, event: PointerEvent | None = None) -> None:
        self.viewport = pointer_up(self.viewport)

    def zoom_in(self) -> None:
        self.viewport = zoom_in(self.viewport)

    def zoom_out(self) -> None:
        self.viewport = zoom_out(self.viewport)

    def reset_view(self) -> None:
        self.viewport = reset(self.viewport)

    def handle_action(self, action: str) -> None:
        """Dispatch a ``data-action`` value from the rendered controls."""
        handlers = {
            "zoom-in": self.zoom_in,
            "zoom-out": self.zoom_out,
            "reset": self.reset_view,
        }
        handler = handlers.get(action)
        if handler is None:
            logger.debug("Ignoring unknown blueprint action %r", action)
            return
        handler()

    # -- output ------------------------------------------------------------

    def render(self) -> str:
        size = {"default_width": self.default_width, "default_height": self.default_height}

        if self.job_status == JobStatus.PROCESSING:
            return render_processing(**size)

        _, outcome = self._resolve()
        if not outcome.is_valid:
            self._report_failure(outcome.reason)
            return render_placeholder(outcome.reason, self.job_status, **size)

        checked = check_renderable(outcome.geometry)
        if not checked.is_valid:
            self._report_failure(checked.reason)
            return render_placeholder(checked.reason, self.job_status, **size)

        return render_diagram(
            outcome.geometry,
            self.viewport,
            calibration_length_inches=self.calibration_length_inches,
            **size,
        )
