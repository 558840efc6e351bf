"""
Boolean operations (union, intersection, difference) on closed paths.

The operation is a linear pipeline: both paths are validated and
normalized, intersected, split at every intersection, and every resulting
piece is classified against the other path. The pieces selected for the
operation are stitched back into closed loops, which are finally grouped
into components (outer contours with their holes).
"""
import logging
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

from ...config import EPSILON, FLATTEN_TOLERANCE, MERGE_TOLERANCE
from ..errors import PreconditionError
from .analysis import get_subpath_rings
from .bezier import (
    Bezier,
    bezier_point,
    crop_bezier,
    elevate_to_cubic,
    is_degenerate,
    reverse_bezier,
)
from .commands import bezier_pieces
from .geometry import FillRule, Path
from .intersect import IntersectionRecord, intersect
from .primitives import (
    Point,
    box_size,
    is_point_in_polygon,
    points_bbox,
    polygon_signed_area,
    winding_number,
)

logger = logging.getLogger(__name__)

# Classification rings are flattened more finely than the default, since
# piece midpoints may lie close to the other outline. Flattening tolerances
# here are relative to the size of the paths involved.
_CLASSIFY_FLATTEN_TOLERANCE = FLATTEN_TOLERANCE / 100.0

# (t, point) cut positions per command index
Splits = Dict[int, List[Tuple[float, Point]]]


class BooleanOp(Enum):
    UNION = "union"
    INTERSECTION = "intersection"
    DIFFERENCE = "difference"


class PieceClass(Enum):
    INSIDE = "inside"
    OUTSIDE = "outside"
    SHARED_SAME = "shared_same"
    SHARED_OPPOSITE = "shared_opposite"


class Piece(NamedTuple):
    """A part of a split outline, between two intersections or vertices."""

    bezier: Bezier
    index: int

    @property
    def start(self) -> Point:
        return self.bezier[0]

    @property
    def end(self) -> Point:
        return self.bezier[-1]


def _validate(path: Path, name: str) -> None:
    if not path.closed:
        raise PreconditionError(
            f"Boolean operations need closed paths, but {name} is open"
        )
    if path.has_self_intersections(fail_on_t_junction=True):
        raise PreconditionError(
            f"Boolean operations need simple paths, but {name} intersects "
            f"itself"
        )


def _contour_beziers(path: Path) -> List[List[Bezier]]:
    """
    Returns every contour as a list of lines and cubics. Quadratics are
    elevated and tangent arcs converted to cubics.
    """
    contours: List[List[Bezier]] = []
    for contour in path.split_into_contours():
        beziers: List[Bezier] = []
        for _, cmd, start in contour.segments():
            for bez in bezier_pieces(cmd, start):
                if is_degenerate(bez, EPSILON):
                    continue
                if len(bez) == 3:
                    bez = elevate_to_cubic(bez)
                beziers.append(bez)
        if beziers:
            contours.append(beziers)
    return contours


def _scale(*paths: Path) -> float:
    """Size of the box around all given paths, at least 1."""
    corners: List[Tuple[float, float]] = []
    for path in paths:
        x0, y0, x1, y1 = path.rect()
        corners += [(x0, y0), (x1, y1)]
    return max(1.0, box_size(points_bbox(corners)))


def _contour_probe(beziers: Sequence[Bezier]) -> Point:
    return bezier_point(beziers[0], 0.5)


def normalize(path: Path) -> Path:
    """
    Returns an equivalent path made of lines and cubics only, in which
    outer contours run counter-clockwise and holes (contours nested inside
    an odd number of other contours) run clockwise.
    """
    contours = _contour_beziers(path)
    probe_path = Path.from_beziers(contours, fill_rule=path.fill_rule)
    rings = get_subpath_rings(
        probe_path.commands, FLATTEN_TOLERANCE * _scale(path)
    )

    oriented: List[List[Bezier]] = []
    for i, beziers in enumerate(contours):
        probe = _contour_probe(beziers)
        depth = sum(
            1
            for j, ring in enumerate(rings)
            if j != i and is_point_in_polygon(probe, ring)
        )
        want_ccw = depth % 2 == 0
        is_ccw = polygon_signed_area(rings[i]) > 0
        if want_ccw != is_ccw:
            beziers = [reverse_bezier(b) for b in reversed(beziers)]
        oriented.append(beziers)
    return Path.from_beziers(oriented, fill_rule=path.fill_rule)


def _snap_point(
    record: IntersectionRecord, path_a: Path, path_b: Path
) -> Point:
    """
    The point both paths are split at. Existing vertices win over computed
    crossing points, so that split pieces meet vertices exactly.
    """
    for path, index, t in (
        (path_a, record.segment_index_a, record.t_a),
        (path_b, record.segment_index_b, record.t_b),
    ):
        if t <= EPSILON:
            return path.segment_start(index)
        if t >= 1.0 - EPSILON:
            return path.commands[index].end
    return record.point


def _collect_splits(
    records: Sequence[IntersectionRecord],
    path_a: Path,
    path_b: Path,
) -> Tuple[Splits, Splits]:
    splits_a: Splits = {}
    splits_b: Splits = {}
    for record in records:
        point = _snap_point(record, path_a, path_b)
        splits_a.setdefault(record.segment_index_a, []).append(
            (record.t_a, point)
        )
        splits_b.setdefault(record.segment_index_b, []).append(
            (record.t_b, point)
        )
    return splits_a, splits_b


def split_at(path: Path, splits: Splits) -> List[Piece]:
    """
    Splits a normalized path into pieces at the given (t, point) positions
    per command index. Piece ends are snapped to the given points.
    """
    pieces: List[Piece] = []
    for index, cmd, start in path.segments():
        for bez in bezier_pieces(cmd, start):
            cuts: List[Tuple[float, Point]] = []
            for t, point in sorted(splits.get(index, [])):
                if t <= EPSILON or t >= 1.0 - EPSILON:
                    continue
                if cuts and t - cuts[-1][0] <= EPSILON:
                    continue
                cuts.append((t, point))

            bounds = [(0.0, bez[0])] + cuts + [(1.0, bez[-1])]
            for (t0, p0), (t1, p1) in zip(bounds, bounds[1:]):
                cropped = crop_bezier(bez, t0, t1)
                piece = (p0,) + cropped[1:-1] + (p1,)
                if is_degenerate(piece, EPSILON):
                    continue
                pieces.append(Piece(piece, index))
    return pieces


def _same_points(a: Point, b: Point, tolerance: float) -> bool:
    return a.is_close(b, tolerance)


def _find_shared(
    piece: Piece, others: Sequence[Piece], tolerance: float
) -> Optional[PieceClass]:
    mid = bezier_point(piece.bezier, 0.5)
    for other in others:
        if not _same_points(mid, bezier_point(other.bezier, 0.5), tolerance):
            continue
        if _same_points(piece.start, other.start, tolerance) and _same_points(
            piece.end, other.end, tolerance
        ):
            return PieceClass.SHARED_SAME
        if _same_points(piece.start, other.end, tolerance) and _same_points(
            piece.end, other.start, tolerance
        ):
            return PieceClass.SHARED_OPPOSITE
    return None


def classify(
    pieces: Sequence[Piece],
    other_pieces: Sequence[Piece],
    other: Path,
    tolerance: float = MERGE_TOLERANCE,
) -> List[PieceClass]:
    """
    Classifies every piece against the other path. Pieces that coincide
    with a piece of the other path are shared; all others are inside or
    outside by the winding of the other path around their midpoint, under
    its fill rule.
    """
    rings = get_subpath_rings(
        other.commands, _CLASSIFY_FLATTEN_TOLERANCE * _scale(other)
    )
    evenodd = other.fill_rule == FillRule.EVENODD
    result: List[PieceClass] = []
    for piece in pieces:
        shared = _find_shared(piece, other_pieces, tolerance)
        if shared is not None:
            result.append(shared)
            continue
        mid = bezier_point(piece.bezier, 0.5)
        winding, crossings = winding_number(mid, rings)
        inside = crossings % 2 == 1 if evenodd else winding != 0
        result.append(PieceClass.INSIDE if inside else PieceClass.OUTSIDE)
    return result


def select(
    kind: BooleanOp,
    pieces_a: Sequence[Piece],
    classes_a: Sequence[PieceClass],
    pieces_b: Sequence[Piece],
    classes_b: Sequence[PieceClass],
) -> List[Bezier]:
    """Picks the pieces that bound the result of the operation."""
    if kind == BooleanOp.UNION:
        keep_a = {PieceClass.OUTSIDE, PieceClass.SHARED_SAME}
        keep_b = {PieceClass.OUTSIDE}
    elif kind == BooleanOp.INTERSECTION:
        keep_a = {PieceClass.INSIDE, PieceClass.SHARED_SAME}
        keep_b = {PieceClass.INSIDE}
    else:
        keep_a = {PieceClass.OUTSIDE, PieceClass.SHARED_OPPOSITE}
        keep_b = {PieceClass.INSIDE}

    selected = [p.bezier for p, c in zip(pieces_a, classes_a) if c in keep_a]
    for piece, cls in zip(pieces_b, classes_b):
        if cls not in keep_b:
            continue
        if kind == BooleanOp.DIFFERENCE:
            selected.append(reverse_bezier(piece.bezier))
        else:
            selected.append(piece.bezier)
    return selected


def stitch(
    beziers: Sequence[Bezier], tolerance: float = MERGE_TOLERANCE
) -> List[List[Bezier]]:
    """
    Chains pieces into closed loops by matching end points to start
    points. A chain that cannot be continued is closed with a warning.
    """
    unused = list(beziers)
    loops: List[List[Bezier]] = []
    while unused:
        chain = [unused.pop(0)]
        start = chain[0][0]
        while not chain[-1][-1].is_close(start, tolerance):
            current = chain[-1][-1]
            next_index = next(
                (
                    i
                    for i, bez in enumerate(unused)
                    if bez[0].is_close(current, tolerance)
                ),
                None,
            )
            if next_index is None:
                logger.warning(
                    f"Stitching stopped at {current}, closing the loop "
                    f"back to {start}"
                )
                break
            chain.append(unused.pop(next_index))
        loops.append(chain)
    logger.debug(f"Stitched {len(beziers)} pieces into {len(loops)} loops")
    return loops


def _loop_area(loop: Sequence[Bezier]) -> float:
    path = Path.from_beziers([loop])
    return path.signed_area(FLATTEN_TOLERANCE * _scale(path))


def boolean_op(
    path_a: Path,
    path_b: Path,
    kind: Union[BooleanOp, str],
    tolerance: float = MERGE_TOLERANCE,
) -> List[Path]:
    """
    Computes a boolean operation of two closed paths.

    Args:
        path_a: The first operand.
        path_b: The second operand.
        kind: A BooleanOp, or its string value ("union", "intersection"
              or "difference"). Difference computes A minus B.
        tolerance: Distance within which piece end points are considered
                   the same point, relative to the size of both paths
                   (sizes below 1 count as 1).

    Returns:
        One path per component of the result: an outer contour
        (counter-clockwise) with its holes (clockwise). Empty if the
        result is empty.

    Raises:
        PreconditionError: if a path is open or intersects itself, or the
            kind is unknown.
    """
    try:
        kind = BooleanOp(kind)
    except ValueError:
        raise PreconditionError(f"Unknown boolean operation: {kind!r}")

    _validate(path_a, "path A")
    _validate(path_b, "path B")

    norm_a = normalize(path_a)
    norm_b = normalize(path_b)
    tolerance *= _scale(norm_a, norm_b)

    records = intersect(norm_a, norm_b)
    splits_a, splits_b = _collect_splits(records, norm_a, norm_b)
    pieces_a = split_at(norm_a, splits_a)
    pieces_b = split_at(norm_b, splits_b)
    logger.debug(
        f"{kind.value}: {len(records)} intersections, split into "
        f"{len(pieces_a)} + {len(pieces_b)} pieces"
    )

    classes_a = classify(pieces_a, pieces_b, norm_b, tolerance)
    classes_b = classify(pieces_b, pieces_a, norm_a, tolerance)
    selected = select(kind, pieces_a, classes_a, pieces_b, classes_b)

    loops = []
    for loop in stitch(selected, tolerance):
        if abs(_loop_area(loop)) < EPSILON:
            logger.warning(f"Dropping degenerate loop of {len(loop)} pieces")
            continue
        loops.append(loop)
    if not loops:
        return []

    result = Path.from_beziers(loops, fill_rule=path_a.fill_rule)
    components = result.split_into_components()
    logger.debug(
        f"{kind.value}: {len(loops)} loops in {len(components)} components"
    )
    return components


def union(path_a: Path, path_b: Path, **kwargs) -> List[Path]:
    return boolean_op(path_a, path_b, BooleanOp.UNION, **kwargs)


def intersection(path_a: Path, path_b: Path, **kwargs) -> List[Path]:
    return boolean_op(path_a, path_b, BooleanOp.INTERSECTION, **kwargs)


def difference(path_a: Path, path_b: Path, **kwargs) -> List[Path]:
    """The part of path A that is not covered by path B."""
    return boolean_op(path_a, path_b, BooleanOp.DIFFERENCE, **kwargs)
