import random

import pytest

from blueprint_viewer.services.blueprint.contracts import CanonicalGeometry, Dimensions, Vertex
from blueprint_viewer.services.blueprint.viewport import (
    MAX_ZOOM,
    MIN_ZOOM,
    ORIGIN,
    Point,
    ViewBox,
    ViewportState,
    apply_wheel,
    clamp_zoom,
    compute_viewbox,
    format_number,
    pointer_down,
    pointer_move,
    pointer_up,
    reset,
    transform_style,
    zoom_in,
    zoom_out,
)


def _geometry(width, height, scale=1):
    return CanonicalGeometry(
        vertices=(Vertex(0, 0), Vertex(width, 0)),
        dimensions=Dimensions(width, height),
        scale=scale,
    )


def test_viewbox_is_padded_by_tenth_of_short_side():
    viewbox = compute_viewbox(_geometry(100, 50, scale=2), 600, 400)
    # scaled 200x100, padding 10 on each side
    assert viewbox == ViewBox(0, 0, 220, 120)
    assert str(viewbox) == "0 0 220 120"


def test_viewbox_falls_back_to_defaults():
    assert compute_viewbox(None, 600, 400) == ViewBox(0, 0, 600, 400)


def test_wheel_direction():
    state = ViewportState()
    assert apply_wheel(state, 120).zoom_factor == pytest.approx(0.9)
    assert apply_wheel(state, -120).zoom_factor == pytest.approx(1.1)
    assert apply_wheel(state, 0).zoom_factor == pytest.approx(1.1)


def test_buttons_zoom():
    state = ViewportState()
    assert zoom_in(state).zoom_factor == pytest.approx(1.2)
    assert zoom_out(state).zoom_factor == pytest.approx(0.8)


def test_zoom_is_clamped():
    state = ViewportState()
    for _ in range(50):
        state = zoom_in(state)
    assert state.zoom_factor == MAX_ZOOM
    for _ in range(50):
        state = apply_wheel(state, 1)
    assert state.zoom_factor == MIN_ZOOM
    assert clamp_zoom(10) == MAX_ZOOM
    assert clamp_zoom(0) == MIN_ZOOM


def test_zoom_stays_in_range_for_any_sequence():
    rng = random.Random(11)
    operations = [
        lambda s: apply_wheel(s, rng.uniform(-500, 500)),
        zoom_in,
        zoom_out,
        reset,
    ]
    state = ViewportState()
    for _ in range(2000):
        state = rng.choice(operations)(state)
        assert MIN_ZOOM <= state.zoom_factor <= MAX_ZOOM


def test_drag_pans_incrementally():
    state = pointer_down(ViewportState(), Point(10, 10))
    state = pointer_move(state, Point(15, 20))
    state = pointer_move(state, Point(25, 20))
    assert state.pan == Point(15, 10)
    assert state.drag_anchor == Point(25, 20)

    state = pointer_up(state)
    assert state.dragging is False
    assert pointer_move(state, Point(100, 100)) is state


def test_pointer_up_when_idle_is_noop():
    state = ViewportState()
    assert pointer_up(state) is state


def test_reset_restores_zoom_and_pan():
    state = zoom_in(pointer_move(pointer_down(ViewportState(), Point(0, 0)), Point(30, -4)))
    state = reset(state)
    assert state.zoom_factor == 1.0
    assert state.pan == ORIGIN


def test_transitions_do_not_mutate():
    state = ViewportState()
    zoom_in(state)
    pointer_down(state, Point(1, 1))
    assert state == ViewportState()


def test_transform_style_idle_and_dragging():
    idle = transform_style(ViewportState(zoom_factor=1.5, pan=Point(12.5, -3)))
    assert idle == (
        "transform: translate(12.5px, -3px) scale(1.5); "
        "transform-origin: center; transition: transform 0.2s ease-in-out;"
    )
    dragging = transform_style(ViewportState(dragging=True))
    assert "transition: none;" in dragging
    assert "translate(0px, 0px) scale(1)" in dragging


@pytest.mark.parametrize(
    "value,expected",
    [(12.5, "12.5"), (3.0, "3"), (-0.001, "0"), (1 / 3, "0.33"), (100, "100")],
)
def test_format_number(value, expected):
    assert format_number(value) == expected
