from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, NamedTuple, Sequence, Tuple

from ...config import (
    EPSILON,
    INTERSECTION_TOLERANCE,
    MAX_SUBDIVISION_DEPTH,
    MAX_SUBDIVISION_PAIRS,
    MERGE_TOLERANCE,
)
from .analysis import get_subpath_ranges, iter_drawing_commands
from .bezier import (
    Bezier,
    bezier_point,
    control_box,
    halve_bezier,
    is_degenerate,
)
from .commands import (
    ArcToCommand,
    Command,
    arc_lead_in_fraction,
    bezier_pieces,
)
from .primitives import (
    BBox,
    Point,
    box_size,
    boxes_intersect,
    line_segment_parameters,
    points_bbox,
)

if TYPE_CHECKING:
    from .geometry import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntersectionRecord:
    """
    A point where two paths meet. Indices refer to `Path.commands` of the
    respective path, parameters are command parameters in [0, 1].
    """

    segment_index_a: int
    t_a: float
    segment_index_b: int
    t_b: float
    point: Point


class Edge(NamedTuple):
    """
    One Bezier piece of a command, together with the range of command
    parameters [t0, t1] it covers.
    """

    index: int
    bezier: Bezier
    t0: float
    t1: float

    def command_t(self, u: float) -> float:
        """Maps a parameter of the piece to a parameter of its command."""
        t = self.t0 + (self.t1 - self.t0) * u
        return max(0.0, min(1.0, t))


def command_edges(
    index: int, cmd: Command, start: Sequence[float]
) -> List[Edge]:
    """
    Resolves a drawing command into edges. Lines, quadratics and cubics
    are a single edge. A tangent arc is its lead-in line followed by one
    cubic per quarter turn, with the parameter ranges used by evaluate().
    """
    p0 = Point.of(start)
    pieces = bezier_pieces(cmd, p0)
    ranges: List[Tuple[float, float]] = [(0.0, 1.0)]
    if isinstance(cmd, ArcToCommand):
        arc = cmd.resolve(p0)
        if arc is not None:
            f = arc_lead_in_fraction(p0, arc)
            arc_pieces = pieces
            ranges = []
            if not p0.is_close(arc.tangent1, EPSILON):
                ranges.append((0.0, f))
                arc_pieces = pieces[1:]
            count = len(arc_pieces)
            for k in range(count):
                ranges.append(
                    (
                        f + (1.0 - f) * k / count,
                        f + (1.0 - f) * (k + 1) / count,
                    )
                )
    return [
        Edge(index, bez, t0, t1)
        for bez, (t0, t1) in zip(pieces, ranges)
        if not is_degenerate(bez, EPSILON)
    ]


def path_edges(commands: Sequence[Command]) -> List[Edge]:
    """Resolves every drawing command of a command list into edges."""
    edges: List[Edge] = []
    for i, cmd, start in iter_drawing_commands(commands):
        edges.extend(command_edges(i, cmd, start))
    return edges


def _same_curve(a: Bezier, b: Bezier, tolerance: float) -> bool:
    return len(a) == len(b) and all(
        p.is_close(q, tolerance) for p, q in zip(a, b)
    )


def _linear_deviation(bez: Bezier) -> float:
    """
    Largest distance of an inner control point from its evenly spaced
    position on the chord. The piece stays within this distance of the
    chord traversed at constant speed.
    """
    p0, p1 = bez[0], bez[-1]
    n = len(bez) - 1
    return max(
        (c.distance_to(p0.lerp(p1, k / n)) for k, c in enumerate(bez)),
        default=0.0,
    )


def _scale(edges: Sequence[Edge]) -> float:
    """Size of the edges' control box, at least 1."""
    points = [p for edge in edges for p in edge.bezier]
    if not points:
        return 1.0
    return max(1.0, box_size(points_bbox(points)))


def _subdivide(
    a: Bezier,
    b: Bezier,
    tolerance: float,
    max_depth: int,
    max_pairs: int,
) -> List[Tuple[float, float]]:
    """
    Finds intersections of two Beziers by recursively halving both and
    discarding pairs whose control boxes do not overlap. Once both pieces
    are straight to within `tolerance`, their chords are intersected.
    """
    results: List[Tuple[float, float]] = []
    stack = [(a, 0.0, 1.0, b, 0.0, 1.0, 0)]
    pairs = 0
    while stack:
        bez_a, a0, a1, bez_b, b0, b1, depth = stack.pop()
        box_a = control_box(bez_a)
        box_b = control_box(bez_b)
        if not boxes_intersect(box_a, box_b, tolerance):
            continue
        pairs += 1
        if pairs > max_pairs:
            logger.warning(
                f"Curve intersection gave up after {max_pairs} candidate "
                f"pairs; the curves probably overlap"
            )
            break
        flat_a = (
            box_size(box_a) < tolerance
            or _linear_deviation(bez_a) < tolerance
        )
        flat_b = (
            box_size(box_b) < tolerance
            or _linear_deviation(bez_b) < tolerance
        )
        if flat_a and flat_b:
            for u, v in line_segment_parameters(
                bez_a[0], bez_a[-1], bez_b[0], bez_b[-1], tolerance
            ):
                results.append((a0 + (a1 - a0) * u, b0 + (b1 - b0) * v))
            continue
        if depth >= max_depth:
            continue

        parts_a = [(bez_a, a0, a1)]
        if not flat_a:
            left, right = halve_bezier(bez_a)
            mid = (a0 + a1) / 2.0
            parts_a = [(left, a0, mid), (right, mid, a1)]
        parts_b = [(bez_b, b0, b1)]
        if not flat_b:
            left, right = halve_bezier(bez_b)
            mid = (b0 + b1) / 2.0
            parts_b = [(left, b0, mid), (right, mid, b1)]

        for part_a, pa0, pa1 in parts_a:
            for part_b, pb0, pb1 in parts_b:
                stack.append((part_a, pa0, pa1, part_b, pb0, pb1, depth + 1))
    return results


def edge_intersections(
    edge_a: Edge,
    edge_b: Edge,
    tolerance: float = INTERSECTION_TOLERANCE,
    max_depth: int = MAX_SUBDIVISION_DEPTH,
    max_pairs: int = MAX_SUBDIVISION_PAIRS,
) -> List[Tuple[float, float]]:
    """
    Returns (u, v) parameter pairs, local to the two edges, where the
    edges meet.

    Two lines are solved analytically; collinear overlaps yield the ends
    of the overlap interval. Identical curves (in either direction) are
    reported as an overlap from end to end. Everything else is found by
    subdivision.
    """
    a, b = edge_a.bezier, edge_b.bezier
    if len(a) == 2 and len(b) == 2:
        return line_segment_parameters(a[0], a[1], b[0], b[1], tolerance)
    if _same_curve(a, b, tolerance):
        return [(0.0, 0.0), (1.0, 1.0)]
    if _same_curve(a, tuple(reversed(b)), tolerance):
        return [(0.0, 1.0), (1.0, 0.0)]
    return _subdivide(a, b, tolerance, max_depth, max_pairs)


def _add_record(
    records: List[IntersectionRecord],
    record: IntersectionRecord,
    merge_tolerance: float,
) -> None:
    for existing in records:
        if existing.point.distance_to(record.point) <= merge_tolerance:
            return
    records.append(record)


def _edge_records(
    edges_a: List[Edge],
    edges_b: List[Edge],
    tolerance: float,
    max_depth: int,
    max_pairs: int,
) -> List[Tuple[Edge, Edge, float, float]]:
    boxes_b: Dict[int, BBox] = {
        id(edge): control_box(edge.bezier) for edge in edges_b
    }
    hits = []
    for edge_a in edges_a:
        box_a = control_box(edge_a.bezier)
        for edge_b in edges_b:
            if not boxes_intersect(box_a, boxes_b[id(edge_b)], tolerance):
                continue
            for u, v in edge_intersections(
                edge_a, edge_b, tolerance, max_depth, max_pairs
            ):
                hits.append((edge_a, edge_b, u, v))
    return hits


def intersect(
    path_a: Path,
    path_b: Path,
    tolerance: float = INTERSECTION_TOLERANCE,
    max_depth: int = MAX_SUBDIVISION_DEPTH,
    merge_tolerance: float = MERGE_TOLERANCE,
    max_pairs: int = MAX_SUBDIVISION_PAIRS,
) -> List[IntersectionRecord]:
    """
    Finds all points where the outlines of two paths meet.

    Args:
        path_a: The first path.
        path_b: The second path.
        tolerance: Distance below which subdivided curve pieces count as
                   straight, relative to the size of both paths (sizes
                   below 1 count as 1).
        max_depth: Recursion cap for curve subdivision. Branches that hit
                   it yield no intersection.
        merge_tolerance: Records closer than this to an earlier record
                         are dropped. Relative like `tolerance`.
        max_pairs: Budget of candidate pairs per pair of curves.

    Returns:
        The intersection records, sorted by (segment_index_a, t_a).
    """
    edges_a = path_edges(path_a.commands)
    edges_b = path_edges(path_b.commands)
    scale = _scale(edges_a + edges_b)
    tolerance *= scale
    merge_tolerance *= scale
    records: List[IntersectionRecord] = []
    for edge_a, edge_b, u, v in _edge_records(
        edges_a, edges_b, tolerance, max_depth, max_pairs
    ):
        record = IntersectionRecord(
            segment_index_a=edge_a.index,
            t_a=edge_a.command_t(u),
            segment_index_b=edge_b.index,
            t_b=edge_b.command_t(v),
            point=bezier_point(edge_a.bezier, u),
        )
        _add_record(records, record, merge_tolerance)
    records.sort(key=lambda r: (r.segment_index_a, r.t_a))
    logger.debug(
        f"Found {len(records)} intersections between {len(edges_a)} and "
        f"{len(edges_b)} edges"
    )
    return records


def _command_endpoints(
    commands: Sequence[Command],
) -> Dict[int, Tuple[Point, Point]]:
    return {
        i: (start, cmd.end)
        for i, cmd, start in iter_drawing_commands(commands)
    }


def _is_endpoint(
    point: Point, endpoints: Tuple[Point, Point], tolerance: float
) -> bool:
    return any(point.is_close(p, tolerance) for p in endpoints)


def has_self_intersections(
    path: Path,
    fail_on_t_junction: bool = False,
    tolerance: float = INTERSECTION_TOLERANCE,
    merge_tolerance: float = MERGE_TOLERANCE,
) -> bool:
    """
    Checks if any subpath of the path crosses itself. Subpaths are checked
    independently of each other.

    A meeting point that is an end point of both commands involved is a
    connection, not a crossing. A meeting point that is an end point of
    only one of them (a vertex touching another command) is a T-junction,
    which only counts if `fail_on_t_junction` is set.

    Both tolerances are relative to the size of the path, like in
    intersect().
    """
    commands = path.commands
    endpoints = _command_endpoints(commands)
    all_edges = path_edges(commands)
    scale = _scale(all_edges)
    tolerance *= scale
    merge_tolerance *= scale

    for start, stop in get_subpath_ranges(commands):
        edges = [e for e in all_edges if start <= e.index < stop]
        for i, edge_a in enumerate(edges):
            for edge_b in edges[i + 1 :]:
                if edge_a.index == edge_b.index:
                    continue
                if not boxes_intersect(
                    control_box(edge_a.bezier),
                    control_box(edge_b.bezier),
                    tolerance,
                ):
                    continue
                for u, _ in edge_intersections(edge_a, edge_b, tolerance):
                    point = bezier_point(edge_a.bezier, u)
                    at_a = _is_endpoint(
                        point, endpoints[edge_a.index], merge_tolerance
                    )
                    at_b = _is_endpoint(
                        point, endpoints[edge_b.index], merge_tolerance
                    )
                    if at_a and at_b:
                        # A shared vertex is a connection, not a crossing.
                        continue
                    if (at_a or at_b) and not fail_on_t_junction:
                        continue
                    logger.debug(
                        f"Commands {edge_a.index} and {edge_b.index} "
                        f"cross at {point}"
                    )
                    return True
    return False
