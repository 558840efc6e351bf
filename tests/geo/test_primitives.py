import pytest

from pathforge.config import POINT_TOLERANCE
from pathforge.core.geo.primitives import (
    Point,
    boxes_intersect,
    is_point_in_polygon,
    line_segment_parameters,
    points_bbox,
    polygon_signed_area,
    winding_number,
)


@pytest.fixture
def square_polygon():
    return [(0, 0), (10, 0), (10, 10), (0, 10)]


def test_point_helpers():
    p = Point.of((1, 2))
    assert isinstance(p, Point)
    assert p == (1.0, 2.0)
    assert Point.of(p) is p
    assert p.is_close((1.0 + 1e-9, 2.0))
    assert not p.is_close((1.1, 2.0))
    assert not p.is_close((1.0 + 2 * POINT_TOLERANCE, 2.0))
    assert Point(0, 0).distance_to((3, 4)) == pytest.approx(5)
    assert Point(0, 0).lerp((10, 20), 0.25) == pytest.approx((2.5, 5))
    assert p.translated(1, 1) == (2.0, 3.0)


def test_is_point_in_polygon(square_polygon):
    # Points inside
    assert is_point_in_polygon((5, 5), square_polygon) is True
    assert is_point_in_polygon((0.1, 0.1), square_polygon) is True

    # Points outside
    assert is_point_in_polygon((15, 5), square_polygon) is False
    assert is_point_in_polygon((-5, 5), square_polygon) is False
    assert is_point_in_polygon((5, 15), square_polygon) is False
    assert is_point_in_polygon((5, -5), square_polygon) is False

    # Points on edge should be considered inside
    assert is_point_in_polygon((5, 0), square_polygon) is True  # Bottom edge
    assert is_point_in_polygon((10, 5), square_polygon) is True  # Right edge
    assert is_point_in_polygon((0, 0), square_polygon) is True  # Corner


class TestLineSegmentParameters:
    def test_crossing(self):
        result = line_segment_parameters((0, 0), (10, 10), (0, 10), (10, 0))
        assert len(result) == 1
        assert result[0] == pytest.approx((0.5, 0.5))

    def test_parallel(self):
        assert line_segment_parameters((0, 0), (10, 0), (0, 1), (10, 1)) == []

    def test_collinear_overlap_reports_interval_ends(self):
        result = line_segment_parameters((0, 0), (10, 0), (5, 0), (15, 0))
        assert result == [
            pytest.approx((0.5, 0.0)),
            pytest.approx((1.0, 0.5)),
        ]

    def test_collinear_opposite_directions(self):
        result = line_segment_parameters((0, 0), (10, 0), (8, 0), (2, 0))
        assert result == [
            pytest.approx((0.2, 1.0)),
            pytest.approx((0.8, 0.0)),
        ]

    def test_collinear_touching_in_one_point(self):
        result = line_segment_parameters((0, 0), (10, 0), (10, 0), (20, 0))
        assert result == [pytest.approx((1.0, 0.0))]

    def test_collinear_disjoint(self):
        assert (
            line_segment_parameters((0, 0), (10, 0), (11, 0), (20, 0)) == []
        )

    def test_zero_length_segment(self):
        result = line_segment_parameters((5, 0), (5, 0), (0, 0), (10, 0))
        assert result == [pytest.approx((0.0, 0.5))]
        assert line_segment_parameters((5, 1), (5, 1), (0, 0), (10, 0)) == []


def test_points_bbox():
    assert points_bbox([(1, 5), (-2, 3), (4, -1)]) == (-2, -1, 4, 5)
    assert points_bbox([]) == (0.0, 0.0, 0.0, 0.0)


def test_boxes_intersect():
    assert boxes_intersect((0, 0, 10, 10), (5, 5, 15, 15))
    # Touching boxes overlap
    assert boxes_intersect((0, 0, 10, 10), (10, 0, 20, 10))
    assert not boxes_intersect((0, 0, 10, 10), (11, 0, 20, 10))
    assert boxes_intersect((0, 0, 10, 10), (10.5, 0, 20, 10), tolerance=1)


def test_polygon_signed_area(square_polygon):
    assert polygon_signed_area(square_polygon) == pytest.approx(100)
    assert polygon_signed_area(square_polygon[::-1]) == pytest.approx(-100)
    assert polygon_signed_area([(0, 0), (1, 1)]) == pytest.approx(0)


def test_winding_number(square_polygon):
    inner = [(2, 2), (2, 8), (8, 8), (8, 2)]  # clockwise
    assert winding_number((5, 5), [square_polygon]) == (1, 1)
    assert winding_number((5, 5), [square_polygon[::-1]]) == (-1, 1)
    # Inside the hole, the windings cancel out
    assert winding_number((5, 5), [square_polygon, inner]) == (0, 2)
    # Left of the hole the ray crosses both of its vertical edges
    assert winding_number((1, 5), [square_polygon, inner]) == (1, 3)
    assert winding_number((50, 5), [square_polygon]) == (0, 0)


def test_winding_number_ray_through_vertex():
    diamond = [(0, -5), (5, 0), (0, 5), (-5, 0)]
    # The ray from the center passes exactly through the vertex (5, 0)
    winding, crossings = winding_number((0, 0), [diamond])
    assert winding == 1
    assert crossings == 1
