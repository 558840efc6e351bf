"""
Degree-generic Bezier helpers.

A Bezier is represented by its tuple of control points: two points for a
line, three for a quadratic and four for a cubic. All functions accept any
of these degrees.
"""
import math
from typing import List, Sequence, Tuple

from .primitives import BBox, Point, points_bbox

Bezier = Tuple[Point, ...]


def bezier_point(points: Sequence[Sequence[float]], t: float) -> Point:
    """Evaluates the Bezier at t using De Casteljau's algorithm."""
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    n = len(points)
    mt = 1.0 - t
    for level in range(1, n):
        for i in range(n - level):
            xs[i] = mt * xs[i] + t * xs[i + 1]
            ys[i] = mt * ys[i] + t * ys[i + 1]
    return Point(xs[0], ys[0])


def split_bezier(
    points: Sequence[Sequence[float]], t: float
) -> Tuple[Bezier, Bezier]:
    """
    Uses De Casteljau's recursion to split the Bezier at t into two
    Beziers of the same degree. The left part runs from t=0 to t, the
    right part from t to 1, and they share the point at t exactly.
    """
    left: List[Point] = []
    right: List[Point] = []
    current = [Point.of(p) for p in points]
    while current:
        left.append(current[0])
        right.append(current[-1])
        current = [
            current[i].lerp(current[i + 1], t)
            for i in range(len(current) - 1)
        ]
    right.reverse()
    # Both halves must meet in the very same point object.
    right[0] = left[-1]
    return tuple(left), tuple(right)


def crop_bezier(
    points: Sequence[Sequence[float]], t0: float, t1: float
) -> Bezier:
    """Returns the part of the Bezier between parameters t0 and t1."""
    if t0 > t1:
        return reverse_bezier(crop_bezier(points, t1, t0))
    bez = tuple(Point.of(p) for p in points)
    if t1 < 1.0:
        bez, _ = split_bezier(bez, t1)
    if t0 > 0.0:
        _, bez = split_bezier(bez, t0 / t1)
    return bez


def halve_bezier(points: Sequence[Sequence[float]]) -> Tuple[Bezier, Bezier]:
    return split_bezier(points, 0.5)


def reverse_bezier(points: Sequence[Sequence[float]]) -> Bezier:
    return tuple(Point.of(p) for p in reversed(points))


def bezier_derivative(
    points: Sequence[Sequence[float]], t: float
) -> Tuple[float, float]:
    """First derivative of the Bezier with respect to t."""
    n = len(points) - 1
    if n < 1:
        return 0.0, 0.0
    hodograph = [
        (
            n * (points[i + 1][0] - points[i][0]),
            n * (points[i + 1][1] - points[i][1]),
        )
        for i in range(n)
    ]
    if n == 1:
        return hodograph[0]
    d = bezier_point(hodograph, t)
    return d.x, d.y


def control_box(points: Sequence[Sequence[float]]) -> BBox:
    """
    Bounding box of the control polygon. Not tight, but guaranteed to
    contain the curve by the convex hull property.
    """
    return points_bbox(points)


def elevate_to_cubic(points: Sequence[Sequence[float]]) -> Bezier:
    """Returns the cubic Bezier describing the same curve."""
    pts = [Point.of(p) for p in points]
    if len(pts) == 4:
        return tuple(pts)
    if len(pts) == 3:
        p0, c, p1 = pts
        return (
            p0,
            Point(p0.x + 2 / 3 * (c.x - p0.x), p0.y + 2 / 3 * (c.y - p0.y)),
            Point(p1.x + 2 / 3 * (c.x - p1.x), p1.y + 2 / 3 * (c.y - p1.y)),
            p1,
        )
    if len(pts) == 2:
        p0, p1 = pts
        return (p0, p0.lerp(p1, 1 / 3), p0.lerp(p1, 2 / 3), p1)
    raise ValueError(f"Cannot elevate Bezier of {len(pts)} points")


def flatness(points: Sequence[Sequence[float]]) -> float:
    """
    Largest distance of an inner control point from the chord. Zero for
    lines; an upper bound for the distance of the curve from its chord.
    """
    if len(points) <= 2:
        return 0.0
    p0, p1 = points[0], points[-1]
    dx, dy = p1[0] - p0[0], p1[1] - p0[1]
    chord = math.hypot(dx, dy)
    result = 0.0
    for c in points[1:-1]:
        if chord < 1e-12:
            d = math.hypot(c[0] - p0[0], c[1] - p0[1])
        else:
            d = abs(dx * (c[1] - p0[1]) - dy * (c[0] - p0[0])) / chord
        result = max(result, d)
    return result


def is_degenerate(
    points: Sequence[Sequence[float]], tolerance: float = 1e-12
) -> bool:
    """True if all control points coincide."""
    p0 = points[0]
    return all(
        abs(p[0] - p0[0]) <= tolerance and abs(p[1] - p0[1]) <= tolerance
        for p in points[1:]
    )


def polyline_length(
    points: Sequence[Sequence[float]], samples: int = 32
) -> float:
    """Approximates the arc length by sampling the curve as a polyline."""
    if len(points) == 2:
        return math.dist(points[0][:2], points[1][:2])
    samples = max(1, samples)
    length = 0.0
    prev = bezier_point(points, 0.0)
    for i in range(1, samples + 1):
        pt = bezier_point(points, i / samples)
        length += math.dist(prev, pt)
        prev = pt
    return length
