"""
Shape morphing by point correspondence.

Both shapes are sampled into "significant points", the two point
sequences are aligned with an edit-distance dynamic program, and
intermediate shapes are produced by interpolating matched points and
fitting a smooth Catmull-Rom curve through the result.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from ...config import EPSILON, FLATTEN_TOLERANCE, MORPH_SAMPLES
from ..errors import PreconditionError
from .analysis import get_subpath_ranges, iter_drawing_commands
from .commands import bezier_pieces
from .easing import EasingFunction, get_easing
from .geometry import FillRule, Path
from .linearize import flatten_bezier, resample_by_length
from .primitives import Point, polygon_signed_area

logger = logging.getLogger(__name__)

Correspondence = List[Tuple[Optional[int], Optional[int]]]


def _polyline_length(points: Sequence[Point]) -> float:
    return sum(a.distance_to(b) for a, b in zip(points, points[1:]))


def extract_significant_points(
    path: Path,
    count: int = MORPH_SAMPLES,
    tolerance: float = FLATTEN_TOLERANCE,
) -> List[Point]:
    """
    Samples about `count` points along the path, spaced by arc length.

    Every segment gets a share of the samples proportional to its length,
    and at least one: its start point. The segment vertices are therefore
    always part of the result. Closed paths do not repeat their start
    point at the end; open paths end with their end point.

    Raises:
        PreconditionError: if the path is empty or has several subpaths.
    """
    ranges = get_subpath_ranges(path.commands)
    if not ranges:
        raise PreconditionError("Cannot sample an empty path")
    if len(ranges) > 1:
        raise PreconditionError(
            f"Morphing supports single contours only, got {len(ranges)}"
        )

    polylines: List[List[Point]] = []
    for _, cmd, start in iter_drawing_commands(path.commands):
        polyline = [Point.of(start)]
        for bez in bezier_pieces(cmd, start):
            polyline.extend(flatten_bezier(bez, tolerance)[1:])
        if _polyline_length(polyline) > EPSILON:
            polylines.append(polyline)

    if not polylines:
        return [path.commands[0].end]

    lengths = [_polyline_length(p) for p in polylines]
    total = sum(lengths)
    points: List[Point] = []
    for polyline, length in zip(polylines, lengths):
        share = max(1, int(round(count * length / total)))
        # share + 1 samples include both ends; the end is the start of the
        # next segment.
        points.extend(resample_by_length(polyline, share + 1)[:-1])
    if not path.closed:
        points.append(polylines[-1][-1])
    return points


def _mean_spacing(*sequences: Sequence[Point]) -> float:
    distances = [
        a.distance_to(b) for seq in sequences for a, b in zip(seq, seq[1:])
    ]
    if not distances:
        return 1.0
    return float(np.mean(distances))


def align(
    points_a: Sequence[Point],
    points_b: Sequence[Point],
    gap_penalty: Optional[float] = None,
) -> Correspondence:
    """
    Aligns two point sequences with an edit-distance dynamic program.

    cost[i][j] is the cheapest alignment of the first i points of A with
    the first j points of B, where matching two points costs their
    distance and skipping a point costs `gap_penalty`. Larger penalties
    favour matching over skipping. If not given, the penalty is the mean
    spacing of the samples.

    Returns:
        (index_a, index_b) pairs in order; None on one side marks a point
        without a partner.
    """
    a = np.asarray([(p[0], p[1]) for p in points_a], dtype=float)
    b = np.asarray([(p[0], p[1]) for p in points_b], dtype=float)
    n, m = len(a), len(b)
    if gap_penalty is None:
        gap_penalty = _mean_spacing(
            [Point.of(p) for p in points_a], [Point.of(p) for p in points_b]
        )

    dist = np.zeros((n, m))
    if n and m:
        dist = np.hypot(
            a[:, 0][:, None] - b[:, 0][None, :],
            a[:, 1][:, None] - b[:, 1][None, :],
        )

    cost = np.zeros((n + 1, m + 1))
    cost[:, 0] = np.arange(n + 1) * gap_penalty
    cost[0, :] = np.arange(m + 1) * gap_penalty
    for i in range(1, n + 1):
        for j in range(1, m + 1):
            cost[i, j] = min(
                cost[i - 1, j - 1] + dist[i - 1, j - 1],
                cost[i - 1, j] + gap_penalty,
                cost[i, j - 1] + gap_penalty,
            )

    correspondence: Correspondence = []
    i, j = n, m
    while i > 0 or j > 0:
        if (
            i > 0
            and j > 0
            and np.isclose(
                cost[i, j], cost[i - 1, j - 1] + dist[i - 1, j - 1]
            )
        ):
            correspondence.append((i - 1, j - 1))
            i, j = i - 1, j - 1
        elif i > 0 and np.isclose(cost[i, j], cost[i - 1, j] + gap_penalty):
            correspondence.append((i - 1, None))
            i -= 1
        else:
            correspondence.append((None, j - 1))
            j -= 1
    correspondence.reverse()
    logger.debug(
        f"Aligned {n} and {m} points with total cost {cost[n, m]:.4f}"
    )
    return correspondence


def _mix(a: Point, b: Point, t: float) -> Point:
    # Exact at both ends: returns a for t=0 and b for t=1.
    return Point(a.x * (1.0 - t) + b.x * t, a.y * (1.0 - t) + b.y * t)


def _nearest_partner(
    correspondence: Correspondence, k: int, side: int
) -> int:
    """
    Index (into A for side 0, B for side 1) of the pair nearest to
    position k of the correspondence that has a point on the given side.
    Ties go to the earlier pair.
    """
    best: Optional[Tuple[int, int]] = None
    for pos, pair in enumerate(correspondence):
        index = pair[side]
        if index is None:
            continue
        distance = abs(pos - k)
        if best is None or distance < best[0]:
            best = (distance, index)
    if best is None:
        raise PreconditionError("Cannot interpolate from an empty shape")
    return best[1]


def smooth_path(
    points: Sequence[Sequence[float]],
    closed: bool = True,
    fill_rule: Union[FillRule, str] = FillRule.NONZERO,
) -> Path:
    """
    Fits a uniform Catmull-Rom spline through the points and returns it
    as a path of cubic Beziers. Open splines repeat their end points as
    outer neighbours.
    """
    pts = [Point.of(p) for p in points]
    path = Path(fill_rule)
    if not pts:
        return path
    path.move_to(*pts[0])
    n = len(pts)
    if n == 1:
        return path

    def neighbour(i: int) -> Point:
        if closed:
            return pts[i % n]
        return pts[max(0, min(n - 1, i))]

    segment_count = n if closed else n - 1
    for i in range(segment_count):
        p0, p1 = neighbour(i - 1), neighbour(i)
        p2, p3 = neighbour(i + 1), neighbour(i + 2)
        c1 = Point(p1.x + (p2.x - p0.x) / 6.0, p1.y + (p2.y - p0.y) / 6.0)
        c2 = Point(p2.x - (p3.x - p1.x) / 6.0, p2.y - (p3.y - p1.y) / 6.0)
        path.curve_to(c1.x, c1.y, c2.x, c2.y, p2.x, p2.y)
    if closed:
        path.close()
    return path


def interpolate(
    points_a: Sequence[Point],
    points_b: Sequence[Point],
    correspondence: Correspondence,
    t: float,
    closed: bool = True,
    fill_rule: Union[FillRule, str] = FillRule.NONZERO,
) -> Path:
    """
    Builds the intermediate shape at progress t.

    Matched points move on a straight line from A to B. A point of A
    without partner collapses towards the B position of the nearest
    matched pair as t approaches 1; a point of B without partner grows out
    of the A position of the nearest pair as t leaves 0. Coinciding
    neighbours are merged before the spline is fitted, so at t=0 the
    result is exactly the smoothed A and at t=1 exactly the smoothed B.
    """
    result: List[Point] = []
    for k, (i, j) in enumerate(correspondence):
        if i is not None and j is not None:
            start, end = points_a[i], points_b[j]
        elif i is not None:
            start = points_a[i]
            end = points_b[_nearest_partner(correspondence, k, 1)]
        else:
            start = points_a[_nearest_partner(correspondence, k, 0)]
            end = points_b[j]
        point = _mix(Point.of(start), Point.of(end), t)
        if result and result[-1] == point:
            continue
        result.append(point)
    return smooth_path(result, closed, fill_rule)


def _match_orientation(
    points_a: List[Point], points_b: List[Point]
) -> List[Point]:
    """
    Reverses B if it winds opposite to A, and rotates it to start at the
    point nearest to A's start.
    """
    if len(points_a) < 3 or len(points_b) < 3:
        return points_b
    area_a = polygon_signed_area(points_a)
    area_b = polygon_signed_area(points_b)
    if area_a * area_b < 0:
        points_b = [points_b[0]] + points_b[:0:-1]
    first = points_a[0]
    start = min(
        range(len(points_b)), key=lambda k: first.distance_to(points_b[k])
    )
    return points_b[start:] + points_b[:start]


@dataclass(frozen=True)
class MorphHandle:
    """
    A prepared morph between two shapes. Calling `at(t)` is cheap; all
    sampling and alignment happened when the handle was created.
    """

    points_a: Tuple[Point, ...]
    points_b: Tuple[Point, ...]
    correspondence: Tuple[Tuple[Optional[int], Optional[int]], ...]
    closed: bool = True
    fill_rule: FillRule = FillRule.NONZERO

    def at(
        self,
        t: float,
        easing: Union[str, EasingFunction, None] = None,
    ) -> Path:
        """
        Returns the intermediate shape at progress t in [0, 1]. The
        optional easing (a function or its name) is applied to t first.

        Raises:
            PreconditionError: if t is outside [0, 1].
        """
        if not 0.0 <= t <= 1.0:
            raise PreconditionError(f"Morph progress t={t} is outside [0, 1]")
        eased = get_easing(easing)(t)
        return interpolate(
            self.points_a,
            self.points_b,
            list(self.correspondence),
            eased,
            self.closed,
            self.fill_rule,
        )


def morph(
    path_a: Path,
    path_b: Path,
    count: int = MORPH_SAMPLES,
    gap_penalty: Optional[float] = None,
    tolerance: float = FLATTEN_TOLERANCE,
) -> MorphHandle:
    """
    Prepares a morph from path A to path B.

    Args:
        path_a: The start shape (a single contour).
        path_b: The end shape (a single contour).
        count: Approximate number of significant points per shape.
        gap_penalty: Cost of leaving a point unmatched. Defaults to the
                     mean sample spacing.
        tolerance: Flattening tolerance used while sampling.

    Raises:
        PreconditionError: if a path is empty or has several subpaths.
    """
    points_a = extract_significant_points(path_a, count, tolerance)
    points_b = extract_significant_points(path_b, count, tolerance)
    closed = path_a.closed and path_b.closed
    if closed:
        points_b = _match_orientation(points_a, points_b)
    correspondence = align(points_a, points_b, gap_penalty)
    logger.debug(
        f"Prepared morph of {len(points_a)} -> {len(points_b)} points, "
        f"{len(correspondence)} pairs"
    )
    return MorphHandle(
        tuple(points_a),
        tuple(points_b),
        tuple(correspondence),
        closed,
        path_a.fill_rule,
    )
