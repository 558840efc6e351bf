import math

import pytest

from pathforge.core.geo.bezier import (
    bezier_derivative,
    bezier_point,
    control_box,
    crop_bezier,
    elevate_to_cubic,
    flatness,
    is_degenerate,
    polyline_length,
    reverse_bezier,
    split_bezier,
)

CUBIC = ((0, 0), (0, 10), (10, 10), (10, 0))
QUAD = ((0, 0), (5, 10), (10, 0))


def test_bezier_point_endpoints_and_middle():
    assert bezier_point(CUBIC, 0) == pytest.approx((0, 0))
    assert bezier_point(CUBIC, 1) == pytest.approx((10, 0))
    assert bezier_point(CUBIC, 0.5) == pytest.approx((5, 7.5))
    assert bezier_point(QUAD, 0.5) == pytest.approx((5, 5))
    assert bezier_point(((0, 0), (10, 4)), 0.25) == pytest.approx((2.5, 1))


def test_split_bezier_shares_the_split_point():
    left, right = split_bezier(CUBIC, 0.3)
    assert len(left) == 4
    assert len(right) == 4
    assert left[-1] is right[0]
    assert left[0] == (0, 0)
    assert right[-1] == (10, 0)
    assert left[-1] == pytest.approx(bezier_point(CUBIC, 0.3))
    # The halves trace the same curve
    assert bezier_point(left, 0.5) == pytest.approx(
        bezier_point(CUBIC, 0.15)
    )
    assert bezier_point(right, 0.5) == pytest.approx(
        bezier_point(CUBIC, 0.65)
    )


def test_crop_bezier():
    piece = crop_bezier(CUBIC, 0.25, 0.75)
    assert piece[0] == pytest.approx(bezier_point(CUBIC, 0.25))
    assert piece[-1] == pytest.approx(bezier_point(CUBIC, 0.75))
    assert bezier_point(piece, 0.5) == pytest.approx(bezier_point(CUBIC, 0.5))

    whole = crop_bezier(CUBIC, 0.0, 1.0)
    assert whole == tuple(CUBIC)

    backwards = crop_bezier(CUBIC, 0.75, 0.25)
    assert backwards[0] == pytest.approx(bezier_point(CUBIC, 0.75))
    assert backwards[-1] == pytest.approx(bezier_point(CUBIC, 0.25))


def test_reverse_bezier():
    assert reverse_bezier(QUAD) == ((10, 0), (5, 10), (0, 0))


def test_bezier_derivative():
    assert bezier_derivative(((0, 0), (10, 4)), 0.7) == (10, 4)
    # Cubic tangent at the start points at the first control point
    assert bezier_derivative(CUBIC, 0) == pytest.approx((0, 30))
    assert bezier_derivative(CUBIC, 1) == pytest.approx((0, -30))
    assert bezier_derivative(CUBIC, 0.5) == pytest.approx((15, 0))
    assert bezier_derivative(((1, 1),), 0.5) == (0.0, 0.0)


def test_control_box():
    assert control_box(CUBIC) == (0, 0, 10, 10)


def test_elevate_to_cubic():
    line = elevate_to_cubic(((0, 0), (3, 6)))
    assert line[1] == pytest.approx((1, 2))
    assert line[2] == pytest.approx((2, 4))

    cubic = elevate_to_cubic(QUAD)
    assert len(cubic) == 4
    for t in (0.1, 0.5, 0.9):
        assert bezier_point(cubic, t) == pytest.approx(bezier_point(QUAD, t))

    with pytest.raises(ValueError):
        elevate_to_cubic(((0, 0),))


def test_flatness():
    assert flatness(((0, 0), (10, 0))) == 0.0
    assert flatness(QUAD) == pytest.approx(10)
    assert flatness(CUBIC) == pytest.approx(10)
    # Closed loop: distance from the start point
    assert flatness(((0, 0), (3, 4), (0, 0))) == pytest.approx(5)


def test_is_degenerate():
    assert is_degenerate(((1, 1), (1, 1), (1, 1)))
    assert not is_degenerate(((1, 1), (1, 1), (1, 2)))


def test_polyline_length():
    assert polyline_length(((0, 0), (3, 4))) == pytest.approx(5)
    # A straight cubic is measured exactly
    straight = ((0, 0), (1, 0), (2, 0), (3, 0))
    assert polyline_length(straight) == pytest.approx(3)
    # A quarter circle approximation has a length close to pi/2
    k = 0.5522847498
    arc = ((1, 0), (1, k), (k, 1), (0, 1))
    assert polyline_length(arc, samples=64) == pytest.approx(
        math.pi / 2, rel=1e-3
    )
