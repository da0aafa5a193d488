import math

import pytest

from circlesnip.errors import ScaleMismatchError
from circlesnip.geometry import (
    Circle,
    ScalePolicy,
    Viewport,
    compute_geometry,
    constrain_circle,
    default_circle,
    derive_scale,
    round_half_up,
    snap_diameter,
)


@pytest.mark.parametrize("k", [0.5, 1, 1.25, 2, 3])
def test_scale_matches_image_to_viewport_ratio(k):
    scale, scale_x, scale_y = derive_scale(int(400 * k), int(300 * k), Viewport(400, 300))
    assert scale == pytest.approx(k)
    assert scale_x == pytest.approx(k)
    assert scale_y == pytest.approx(k)


def test_scale_averages_mismatched_axes():
    scale, scale_x, scale_y = derive_scale(800, 620, Viewport(400, 300))
    assert scale_x == pytest.approx(2.0)
    assert scale_y == pytest.approx(620 / 300)
    assert scale == pytest.approx((scale_x + scale_y) / 2)


def test_strict_policy_rejects_mismatch():
    with pytest.raises(ScaleMismatchError) as exc:
        derive_scale(800, 620, Viewport(400, 300), policy=ScalePolicy.STRICT)
    assert exc.value.scale_x == pytest.approx(2.0)


def test_strict_policy_accepts_within_tolerance():
    scale, _, _ = derive_scale(801, 600, Viewport(400, 300), policy=ScalePolicy.STRICT, tolerance=0.01)
    assert scale == pytest.approx((801 / 400 + 2.0) / 2)


def test_geometry_end_to_end_example():
    geometry = compute_geometry(Circle(200, 150, 100), 800, 600, Viewport(400, 300))
    assert geometry.scale == pytest.approx(2.0)
    assert geometry.diameter == 200
    assert (geometry.center_x, geometry.center_y) == (400, 300)
    assert geometry.radius == 100
    assert geometry.source_rect == (300, 200, 500, 400)


def test_geometry_rounds_after_scaling():
    # 33.5 * 1.5 = 50.25 -> 50; rounding the CSS value first would give 34 * 1.5 = 51
    geometry = compute_geometry(Circle(33.5, 33.5, 100.3), 600, 450, Viewport(400, 300))
    assert geometry.diameter == 150
    assert geometry.center_x == 50


def test_odd_diameter_gives_half_pixel_source_origin():
    geometry = compute_geometry(Circle(200, 150, 101), 400, 300, Viewport(400, 300))
    assert geometry.diameter == 101
    assert geometry.source_x == pytest.approx(149.5)
    assert geometry.source_y == pytest.approx(99.5)


def test_round_half_up_matches_browser_rounding():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(-2.5) == -2
    assert round_half_up(1.49) == 1


def test_circle_rejects_non_positive_diameter():
    with pytest.raises(ValueError):
        Circle(10, 10, 0)
    with pytest.raises(ValueError):
        Circle(10, 10, -5)


@pytest.mark.parametrize(
    "x, y, diameter",
    [(math.inf, 150, 100), (math.nan, 150, 100), (200, -math.inf, 100), (200, 150, math.inf), (200, 150, math.nan)],
)
def test_circle_rejects_non_finite_values(x, y, diameter):
    with pytest.raises(ValueError):
        Circle(x, y, diameter)


def test_viewport_rejects_empty_size():
    with pytest.raises(ValueError):
        Viewport(0, 300)


@pytest.mark.parametrize("width, height", [(math.inf, 300), (400, math.nan)])
def test_viewport_rejects_non_finite_size(width, height):
    with pytest.raises(ValueError):
        Viewport(width, height)


def test_out_of_viewport_circle_is_valid_input():
    circle = Circle(-50, 900, 100)
    geometry = compute_geometry(circle, 800, 600, Viewport(400, 300))
    assert geometry.center_x == -100
    assert geometry.center_y == 1800


def test_snap_diameter():
    assert snap_diameter(250) == 256
    assert snap_diameter(270) == 256
    assert snap_diameter(300) == 300
    assert snap_diameter(1010) == 1024


def test_default_circle_is_centered():
    circle = default_circle(Viewport(1280, 720))
    assert (circle.x, circle.y, circle.diameter) == (640, 360, 256)


def test_constrain_circle_clamps_position_and_size():
    viewport = Viewport(400, 300)
    constrained = constrain_circle(Circle(0, 0, 500), viewport)
    # max diameter = min(400, 300) - 20
    assert constrained.diameter == 280
    assert constrained.x == 150
    assert constrained.y == 150


def test_constrain_circle_enforces_minimum_diameter():
    constrained = constrain_circle(Circle(200, 150, 10), Viewport(400, 300))
    assert constrained.diameter == 64


def test_constrain_circle_keeps_diameter_when_moving():
    constrained = constrain_circle(Circle(395, 150, 100), Viewport(400, 300), allow_resize=False)
    assert constrained.diameter == 100
    assert constrained.x == 340
