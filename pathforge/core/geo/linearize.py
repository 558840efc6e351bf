import math
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from ...config import EPSILON, FLATTEN_TOLERANCE
from .bezier import Bezier, flatness, split_bezier
from .primitives import Point, cross


class TangentArc(NamedTuple):
    """
    Resolved geometry of a canvas-style tangent arc: the arc touches the
    line start->through1 in `tangent1` and the line through1->through2 in
    `tangent2`.
    """

    tangent1: Point
    tangent2: Point
    center: Point
    radius: float
    start_angle: float
    sweep: float


def resolve_tangent_arc(
    start: Sequence[float],
    through1: Sequence[float],
    through2: Sequence[float],
    radius: float,
) -> Optional[TangentArc]:
    """
    Resolves a tangent arc the way a 2D canvas `arcTo(x1, y1, x2, y2, r)`
    does.

    Returns None for the degenerate cases (zero radius, coincident points,
    collinear points) in which the arc collapses into a straight line to
    `through1`.
    """
    p0, p1, p2 = Point.of(start), Point.of(through1), Point.of(through2)
    if radius <= EPSILON or p0.is_close(p1, EPSILON) or p1.is_close(
        p2, EPSILON
    ):
        return None

    v1 = (p0.x - p1.x, p0.y - p1.y)
    v2 = (p2.x - p1.x, p2.y - p1.y)
    len1 = math.hypot(*v1)
    len2 = math.hypot(*v2)
    u1 = (v1[0] / len1, v1[1] / len1)
    u2 = (v2[0] / len2, v2[1] / len2)

    turn = cross(-u1[0], -u1[1], u2[0], u2[1])
    if abs(turn) < EPSILON:
        return None

    cos_theta = max(-1.0, min(1.0, u1[0] * u2[0] + u1[1] * u2[1]))
    half = math.acos(cos_theta) / 2.0
    tangent_dist = radius / math.tan(half)
    center_dist = radius / math.sin(half)

    tangent1 = Point(p1.x + u1[0] * tangent_dist, p1.y + u1[1] * tangent_dist)
    tangent2 = Point(p1.x + u2[0] * tangent_dist, p1.y + u2[1] * tangent_dist)
    bx, by = u1[0] + u2[0], u1[1] + u2[1]
    b_len = math.hypot(bx, by)
    center = Point(
        p1.x + bx / b_len * center_dist, p1.y + by / b_len * center_dist
    )

    start_angle = math.atan2(tangent1.y - center.y, tangent1.x - center.x)
    sweep = math.pi - 2.0 * half
    # A left turn (counter-clockwise in a Y-up system) sweeps positively.
    if turn < 0:
        sweep = -sweep
    return TangentArc(tangent1, tangent2, center, radius, start_angle, sweep)


def arc_to_cubics(
    center: Sequence[float],
    radius: float,
    start_angle: float,
    sweep: float,
) -> List[Bezier]:
    """
    Approximates a circular arc with cubic Beziers, one per quarter turn
    or less.
    """
    count = max(1, int(math.ceil(abs(sweep) / (math.pi / 2) - 1e-9)))
    step = sweep / count
    k = 4.0 / 3.0 * math.tan(step / 4.0)
    cx, cy = center[0], center[1]
    result: List[Bezier] = []
    angle = start_angle
    for _ in range(count):
        a0, a1 = angle, angle + step
        cos0, sin0 = math.cos(a0), math.sin(a0)
        cos1, sin1 = math.cos(a1), math.sin(a1)
        p0 = Point(cx + radius * cos0, cy + radius * sin0)
        p3 = Point(cx + radius * cos1, cy + radius * sin1)
        p1 = Point(p0.x - k * radius * sin0, p0.y + k * radius * cos0)
        p2 = Point(p3.x + k * radius * sin1, p3.y - k * radius * cos1)
        result.append((p0, p1, p2, p3))
        angle = a1
    return result


def tangent_arc_beziers(
    start: Sequence[float],
    through1: Sequence[float],
    through2: Sequence[float],
    radius: float,
) -> List[Bezier]:
    """
    Converts a tangent arc into Beziers: the straight lead-in from the
    start point to the first tangent point (if it has any length),
    followed by the cubic approximation of the arc itself.
    """
    p0 = Point.of(start)
    arc = resolve_tangent_arc(p0, through1, through2, radius)
    if arc is None:
        return [(p0, Point.of(through1))]
    result: List[Bezier] = []
    arc_start = p0
    if not p0.is_close(arc.tangent1, EPSILON):
        result.append((p0, arc.tangent1))
        arc_start = arc.tangent1
    cubics = arc_to_cubics(arc.center, arc.radius, arc.start_angle, arc.sweep)
    # Pin the exact end points so neighbouring pieces meet exactly.
    first = cubics[0]
    cubics[0] = (arc_start,) + first[1:]
    last = cubics[-1]
    cubics[-1] = last[:-1] + (arc.tangent2,)
    result.extend(cubics)
    return result


def flatten_bezier(
    points: Sequence[Sequence[float]],
    tolerance: float = FLATTEN_TOLERANCE,
    max_depth: int = 16,
) -> List[Point]:
    """
    Adaptively subdivides a Bezier until every piece is within `tolerance`
    of its chord.

    Returns:
        The polyline vertices, starting with the curve's first point and
        ending with its last.
    """
    first = Point.of(points[0])
    result = [first]
    stack: List[Tuple[Bezier, int]] = [
        (tuple(Point.of(p) for p in points), 0)
    ]
    while stack:
        bez, depth = stack.pop()
        if len(bez) <= 2 or depth >= max_depth or flatness(bez) <= tolerance:
            result.append(bez[-1])
            continue
        left, right = split_bezier(bez, 0.5)
        # Right is pushed first so that left is processed first.
        stack.append((right, depth + 1))
        stack.append((left, depth + 1))
    return result


def resample_by_length(
    polyline: Sequence[Sequence[float]], count: int
) -> List[Point]:
    """
    Places `count` points at equal arc-length spacing along a polyline,
    including both of its ends (for count >= 2).
    """
    arr = np.asarray([(p[0], p[1]) for p in polyline], dtype=float)
    if len(arr) == 0:
        return []
    if count <= 1 or len(arr) == 1:
        return [Point(float(arr[0, 0]), float(arr[0, 1]))]
    seg_lengths = np.hypot(np.diff(arr[:, 0]), np.diff(arr[:, 1]))
    cumulative = np.concatenate(([0.0], np.cumsum(seg_lengths)))
    total = cumulative[-1]
    if total < EPSILON:
        return [Point(float(arr[0, 0]), float(arr[0, 1]))] * count
    targets = np.linspace(0.0, total, count)
    xs = np.interp(targets, cumulative, arr[:, 0])
    ys = np.interp(targets, cumulative, arr[:, 1])
    return [Point(float(x), float(y)) for x, y in zip(xs, ys)]
