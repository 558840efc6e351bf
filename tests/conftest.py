import pytest

from pathforge.core.geo import Path


@pytest.fixture
def square() -> Path:
    """A counter-clockwise 10x10 square at the origin."""
    return Path.from_points([(0, 0), (10, 0), (10, 10), (0, 10)])


@pytest.fixture
def offset_square() -> Path:
    """A 10x10 square overlapping `square` in (5,5)-(10,10)."""
    return Path.from_points([(5, 5), (15, 5), (15, 15), (5, 15)])


@pytest.fixture
def far_square() -> Path:
    """A square that does not touch `square`."""
    return Path.from_points([(20, 20), (30, 20), (30, 30), (20, 30)])


@pytest.fixture
def triangle() -> Path:
    return Path.from_points([(0, 0), (10, 0), (5, 8)])


@pytest.fixture
def curved_path() -> Path:
    """An open path using every drawing command."""
    path = Path()
    path.move_to(0, 0)
    path.line_to(10, 0)
    path.quad_to(15, 0, 15, 5)
    path.curve_to(15, 10, 10, 15, 5, 15)
    path.arc_to(0, 15, 0, 10, 3)
    return path


@pytest.fixture
def cubic_circle():
    """Builds a circle from four cubics, for any center and radius."""
    kappa = 0.5522847498

    def make(cx: float, cy: float, r: float) -> Path:
        k = kappa * r
        path = Path().move_to(cx + r, cy)
        path.curve_to(cx + r, cy + k, cx + k, cy + r, cx, cy + r)
        path.curve_to(cx - k, cy + r, cx - r, cy + k, cx - r, cy)
        path.curve_to(cx - r, cy - k, cx - k, cy - r, cx, cy - r)
        path.curve_to(cx + k, cy - r, cx + r, cy - k, cx + r, cy)
        path.close()
        return path

    return make
