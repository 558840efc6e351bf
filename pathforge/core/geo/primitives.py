import math
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

from ...config import EPSILON, POINT_TOLERANCE


class Point(NamedTuple):
    """
    An immutable 2D point.

    Equality (`==`) is exact, which is what serialization round trips rely
    on. Geometric comparisons should use `is_close()`.
    """

    x: float
    y: float

    @classmethod
    def of(cls, value: Sequence[float]) -> "Point":
        """Converts any (x, y) sequence into a Point of floats."""
        if isinstance(value, Point):
            return value
        return cls(float(value[0]), float(value[1]))

    def is_close(
        self, other: Sequence[float], tolerance: float = POINT_TOLERANCE
    ) -> bool:
        return (
            abs(self.x - other[0]) <= tolerance
            and abs(self.y - other[1]) <= tolerance
        )

    def distance_to(self, other: Sequence[float]) -> float:
        return math.hypot(self.x - other[0], self.y - other[1])

    def lerp(self, other: Sequence[float], t: float) -> "Point":
        """Linear interpolation from this point (t=0) to other (t=1)."""
        return Point(
            self.x + (other[0] - self.x) * t,
            self.y + (other[1] - self.y) * t,
        )

    def translated(self, dx: float, dy: float) -> "Point":
        return Point(self.x + dx, self.y + dy)


BBox = Tuple[float, float, float, float]


def cross(ax: float, ay: float, bx: float, by: float) -> float:
    return ax * by - ay * bx


def points_bbox(points: Iterable[Sequence[float]]) -> BBox:
    """Returns (min_x, min_y, max_x, max_y) of the given points."""
    xs: List[float] = []
    ys: List[float] = []
    for p in points:
        xs.append(p[0])
        ys.append(p[1])
    if not xs:
        return 0.0, 0.0, 0.0, 0.0
    return min(xs), min(ys), max(xs), max(ys)


def boxes_intersect(box1: BBox, box2: BBox, tolerance: float = 0.0) -> bool:
    """
    Determines if two boxes, each given as (min_x, min_y, max_x, max_y),
    overlap. Touching boxes count as overlapping.
    """
    return not (
        box1[2] < box2[0] - tolerance
        or box2[2] < box1[0] - tolerance
        or box1[3] < box2[1] - tolerance
        or box2[3] < box1[1] - tolerance
    )


def box_size(box: BBox) -> float:
    """The larger of the box's two side lengths."""
    return max(box[2] - box[0], box[3] - box[1])


def _point_parameter_on_segment(
    p: Sequence[float],
    a: Sequence[float],
    b: Sequence[float],
    tolerance: float,
) -> Optional[float]:
    """
    Returns the parameter of the point p on the segment a-b, or None if p
    is not within `tolerance` of the segment.
    """
    dx, dy = b[0] - a[0], b[1] - a[1]
    len_sq = dx * dx + dy * dy
    if len_sq < EPSILON * EPSILON:
        if math.dist(p[:2], a[:2]) <= tolerance:
            return 0.0
        return None
    t = ((p[0] - a[0]) * dx + (p[1] - a[1]) * dy) / len_sq
    t = max(0.0, min(1.0, t))
    closest = (a[0] + t * dx, a[1] + t * dy)
    if math.dist(p[:2], closest) <= tolerance:
        return t
    return None


def line_segment_parameters(
    p1: Sequence[float],
    p2: Sequence[float],
    p3: Sequence[float],
    p4: Sequence[float],
    tolerance: float = 1e-7,
) -> List[Tuple[float, float]]:
    """
    Finds where segment p1-p2 meets segment p3-p4.

    Returns a list of (t, u) parameter pairs, t along the first segment and
    u along the second, both clamped to [0, 1]:
    - crossing or touching segments yield one pair,
    - parallel segments yield nothing,
    - collinear overlapping segments yield the two ends of the overlap
      interval (a single pair if the overlap is one point).
    """
    rx, ry = p2[0] - p1[0], p2[1] - p1[1]
    sx, sy = p4[0] - p3[0], p4[1] - p3[1]
    r_len = math.hypot(rx, ry)
    s_len = math.hypot(sx, sy)

    # Zero-length segments degrade to point-on-segment tests.
    if r_len < EPSILON:
        u = _point_parameter_on_segment(p1, p3, p4, tolerance)
        return [] if u is None else [(0.0, u)]
    if s_len < EPSILON:
        t = _point_parameter_on_segment(p3, p1, p2, tolerance)
        return [] if t is None else [(t, 0.0)]

    qpx, qpy = p3[0] - p1[0], p3[1] - p1[1]
    denom = cross(rx, ry, sx, sy)

    if abs(denom) <= EPSILON * r_len * s_len:
        # Parallel. Only collinear segments can still meet.
        if abs(cross(qpx, qpy, rx, ry)) / r_len > tolerance:
            return []
        r_sq = r_len * r_len
        t0 = (qpx * rx + qpy * ry) / r_sq
        t1 = t0 + (sx * rx + sy * ry) / r_sq
        lo = max(0.0, min(t0, t1))
        hi = min(1.0, max(t0, t1))
        t_tol = tolerance / r_len
        if lo > hi + t_tol:
            return []
        hi = max(lo, hi)
        result = []
        for t in (lo, hi):
            px, py = p1[0] + t * rx, p1[1] + t * ry
            u = ((px - p3[0]) * sx + (py - p3[1]) * sy) / (s_len * s_len)
            result.append((t, max(0.0, min(1.0, u))))
        if (hi - lo) * r_len <= tolerance:
            return result[:1]
        return result

    t = cross(qpx, qpy, sx, sy) / denom
    u = cross(qpx, qpy, rx, ry) / denom
    t_tol = tolerance / r_len
    u_tol = tolerance / s_len
    if -t_tol <= t <= 1 + t_tol and -u_tol <= u <= 1 + u_tol:
        return [(max(0.0, min(1.0, t)), max(0.0, min(1.0, u)))]
    return []


def polygon_signed_area(polygon: Sequence[Sequence[float]]) -> float:
    """
    Shoelace formula. Positive for counter-clockwise polygons in a Y-up
    coordinate system.
    """
    area = 0.0
    n = len(polygon)
    for i in range(n):
        p1 = polygon[i]
        p2 = polygon[(i + 1) % n]
        area += (p1[0] * p2[1]) - (p2[0] * p1[1])
    return area / 2.0


def winding_number(
    point: Sequence[float], rings: Iterable[Sequence[Sequence[float]]]
) -> Tuple[int, int]:
    """
    Casts a horizontal ray from `point` towards +x and counts how the rings
    cross it.

    Each ring is an implicitly closed polyline. A crossing is counted when
    exactly one endpoint of an edge lies strictly below the ray, which
    avoids double counting at shared vertices and skips horizontal edges.

    Returns:
        A tuple (winding, crossings): the signed winding number and the
        unsigned crossing count.
    """
    px, py = point[0], point[1]
    winding = 0
    crossings = 0
    for ring in rings:
        n = len(ring)
        if n < 2:
            continue
        for i in range(n):
            x0, y0 = ring[i][0], ring[i][1]
            x1, y1 = ring[(i + 1) % n][0], ring[(i + 1) % n][1]
            if (y0 < py) == (y1 < py):
                continue
            t = (py - y0) / (y1 - y0)
            x_intercept = x0 + t * (x1 - x0)
            if x_intercept > px:
                crossings += 1
                winding += 1 if y1 > y0 else -1
    return winding, crossings


def is_point_in_polygon(
    point: Sequence[float], polygon: Sequence[Sequence[float]]
) -> bool:
    """
    Checks if a point is inside a polygon using ray casting. Points on the
    boundary count as inside.
    """
    n = len(polygon)
    if n < 3:
        return False
    for i in range(n):
        a, b = polygon[i], polygon[(i + 1) % n]
        if _point_parameter_on_segment(point, a, b, 1e-9) is not None:
            return True
    _, crossings = winding_number(point, [polygon])
    return crossings % 2 == 1
