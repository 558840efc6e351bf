from __future__ import annotations
import logging
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from ...config import EPSILON, FLATTEN_TOLERANCE, LENGTH_SAMPLES
from ..errors import PreconditionError
from . import analysis
from .commands import (
    DRAWING_COMMANDS,
    ArcToCommand,
    ClosePathCommand,
    Command,
    CurveToCommand,
    LineToCommand,
    MoveToCommand,
    MovingCommand,
    QuadToCommand,
    approximate_length,
    bezier_pieces,
    bounding_box as command_bbox,
    command_from_dict,
    evaluate,
    split,
    tangent_at,
)
from .primitives import BBox, Point, is_point_in_polygon, polygon_signed_area

if TYPE_CHECKING:
    from ..matrix import AffineTransform
    from .intersect import IntersectionRecord

logger = logging.getLogger(__name__)

T_Path = TypeVar("T_Path", bound="Path")


class FillRule(Enum):
    NONZERO = "nonzero"
    EVENODD = "evenodd"


class Path:
    """
    An ordered sequence of path commands plus a fill rule.

    The first command is always a MoveToCommand. Every later command
    starts where the previous one ended; the builder methods maintain this,
    so callers should not edit command fields in place.

    Builder methods modify the path in place and return it, so calls can
    be chained. All engine operations (transform, boolean operations,
    morphing) leave their inputs untouched and return new paths.
    """

    def __init__(
        self, fill_rule: Union[FillRule, str] = FillRule.NONZERO
    ) -> None:
        self.commands: List[Command] = []
        self.fill_rule = FillRule(fill_rule)
        self.last_move_to: Optional[Point] = None

    def __iter__(self) -> Iterator[Command]:
        return iter(self.commands)

    def __len__(self) -> int:
        return len(self.commands)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Path):
            return NotImplemented
        return (
            self.fill_rule == other.fill_rule
            and self.commands == other.commands
        )

    def __repr__(self) -> str:
        return f"Path({self.to_text()!r}, fill_rule={self.fill_rule.value!r})"

    def copy(self: T_Path) -> T_Path:
        """
        Creates a copy of the path. Commands are never mutated after
        construction, so they are shared.
        """
        new_path = self.__class__(self.fill_rule)
        new_path.commands = list(self.commands)
        new_path.last_move_to = self.last_move_to
        return new_path

    def is_empty(self) -> bool:
        return not self.commands

    @property
    def closed(self) -> bool:
        """True if the path has geometry and every subpath is closed."""
        ranges = analysis.get_subpath_ranges(self.commands)
        if not ranges:
            return False
        return all(
            analysis.is_subpath_closed(self.commands, start, stop)
            for start, stop in ranges
        )

    @property
    def current_point(self) -> Optional[Point]:
        for cmd in reversed(self.commands):
            if isinstance(cmd, MovingCommand):
                return cmd.end
        return None

    # -- building -----------------------------------------------------------

    def _start_point_for_drawing(self) -> Point:
        """
        Returns the point the next drawing command starts from. Drawing
        after a close starts a new subpath at the closed subpath's start.
        """
        if not self.commands or self.last_move_to is None:
            raise PreconditionError(
                "Path must start with move_to before drawing"
            )
        last = self.commands[-1]
        if isinstance(last, ClosePathCommand):
            self.commands.append(MoveToCommand(self.last_move_to))
            return self.last_move_to
        current = self.current_point
        assert current is not None
        return current

    def add(self, command: Command) -> Path:
        """
        Appends a prepared command. The command's implicit start is the
        path's current point.
        """
        if isinstance(command, MoveToCommand):
            self.last_move_to = command.end
            self.commands.append(command)
        elif isinstance(command, ClosePathCommand):
            self.close()
        elif isinstance(command, DRAWING_COMMANDS):
            self._start_point_for_drawing()
            self.commands.append(command)
        else:
            raise TypeError(
                f"Unsupported command type: {type(command).__name__}"
            )
        return self

    def move_to(self, x: float, y: float) -> Path:
        self.last_move_to = Point(float(x), float(y))
        self.commands.append(MoveToCommand(self.last_move_to))
        return self

    def line_to(self, x: float, y: float) -> Path:
        self._start_point_for_drawing()
        self.commands.append(LineToCommand((float(x), float(y))))
        return self

    def quad_to(self, cx: float, cy: float, x: float, y: float) -> Path:
        self._start_point_for_drawing()
        self.commands.append(
            QuadToCommand((float(cx), float(cy)), (float(x), float(y)))
        )
        return self

    def curve_to(
        self,
        c1x: float,
        c1y: float,
        c2x: float,
        c2y: float,
        x: float,
        y: float,
    ) -> Path:
        self._start_point_for_drawing()
        self.commands.append(
            CurveToCommand(
                (float(c1x), float(c1y)),
                (float(c2x), float(c2y)),
                (float(x), float(y)),
            )
        )
        return self

    def arc_to(
        self, x1: float, y1: float, x2: float, y2: float, radius: float
    ) -> Path:
        """
        Appends a tangent arc with the semantics of a 2D canvas
        `arcTo(x1, y1, x2, y2, radius)`. See ArcToCommand.
        """
        start = self._start_point_for_drawing()
        self.commands.append(
            ArcToCommand.from_start(
                start, (float(x1), float(y1)), (float(x2), float(y2)), radius
            )
        )
        return self

    def close(self) -> Path:
        """Closes the current subpath back to its start point."""
        if not self.commands or self.last_move_to is None:
            raise PreconditionError("Cannot close an empty path")
        if isinstance(self.commands[-1], ClosePathCommand):
            return self
        self.commands.append(ClosePathCommand(self.last_move_to))
        return self

    close_path = close

    @classmethod
    def from_points(
        cls,
        points: Iterable[Sequence[float]],
        close: bool = True,
        fill_rule: Union[FillRule, str] = FillRule.NONZERO,
    ) -> Path:
        """Creates a polyline (or polygon, if `close`) path."""
        path = cls(fill_rule)
        for i, p in enumerate(points):
            if i == 0:
                path.move_to(p[0], p[1])
            else:
                path.line_to(p[0], p[1])
        if close and not path.is_empty():
            path.close()
        return path

    # -- per-segment queries ------------------------------------------------

    def _drawing_command(self, index: int) -> Command:
        cmd = self.commands[index]
        if not isinstance(cmd, DRAWING_COMMANDS):
            raise PreconditionError(
                f"Command {index} ({type(cmd).__name__}) is not a segment"
            )
        return cmd

    def segment_start(self, index: int) -> Point:
        """The implicit start point of the command at `index`."""
        return analysis.get_command_start_point(self.commands, index)

    def segments(self) -> Iterator[Tuple[int, Command, Point]]:
        """Yields (index, command, start point) for every drawn segment."""
        return analysis.iter_drawing_commands(self.commands)

    def evaluate(self, index: int, t: float) -> Point:
        """The point at parameter t of the segment at `index`."""
        cmd = self._drawing_command(index)
        return evaluate(cmd, self.segment_start(index), t)

    def tangent_at(self, index: int, t: float) -> Tuple[float, float]:
        cmd = self._drawing_command(index)
        return tangent_at(cmd, self.segment_start(index), t)

    def split(self, index: int, t: float) -> Tuple[Command, Command]:
        """Splits the segment at `index` and returns the two halves."""
        cmd = self._drawing_command(index)
        return split(cmd, self.segment_start(index), t)

    def split_segment(self, index: int, t: float) -> Path:
        """Returns a new path in which the segment at `index` is split."""
        first, second = self.split(index, t)
        new_path = self.copy()
        new_path.commands[index : index + 1] = [first, second]
        return new_path

    def segment_bbox(self, index: int) -> BBox:
        cmd = self._drawing_command(index)
        return command_bbox(cmd, self.segment_start(index))

    def segment_length(
        self, index: int, samples: int = LENGTH_SAMPLES
    ) -> float:
        cmd = self._drawing_command(index)
        return approximate_length(cmd, self.segment_start(index), samples)

    def outward_normal_at(
        self, index: int, t: float
    ) -> Optional[Tuple[float, float]]:
        return analysis.get_outward_normal_at(self.commands, index, t)

    # -- whole-path queries -------------------------------------------------

    def rect(self) -> BBox:
        """
        Returns (min_x, min_y, max_x, max_y) over all control points. The
        box always contains the path, but is not tight around curves.
        """
        boxes = [command_bbox(cmd, start) for _, cmd, start in self.segments()]
        if not boxes:
            for cmd in self.commands:
                if isinstance(cmd, MoveToCommand):
                    boxes.append(command_bbox(cmd, cmd.end))
        if not boxes:
            return 0.0, 0.0, 0.0, 0.0
        return (
            min(b[0] for b in boxes),
            min(b[1] for b in boxes),
            max(b[2] for b in boxes),
            max(b[3] for b in boxes),
        )

    bounding_box = rect

    def length(self, samples: int = LENGTH_SAMPLES) -> float:
        return sum(
            approximate_length(cmd, start, samples)
            for _, cmd, start in self.segments()
        )

    def signed_area(self, tolerance: float = FLATTEN_TOLERANCE) -> float:
        """
        Sum of the signed areas of all subpaths. Counter-clockwise
        subpaths count positive, clockwise ones negative.
        """
        return sum(
            analysis.get_subpath_area(self.commands, start, tolerance)
            for start, _ in analysis.get_subpath_ranges(self.commands)
        )

    def area(self, tolerance: float = FLATTEN_TOLERANCE) -> float:
        """
        Enclosed area, assuming holes wind opposite to their outer
        contours, as paths produced by the boolean operations do.
        """
        return abs(self.signed_area(tolerance))

    def get_winding_order(self, segment_index: int) -> str:
        """
        Determines the winding order ('cw', 'ccw', or 'unknown') for the
        subpath containing the command at `segment_index`.
        """
        return analysis.get_path_winding_order(self.commands, segment_index)

    def winding_number(
        self, x: float, y: float, tolerance: float = FLATTEN_TOLERANCE
    ) -> int:
        winding, _ = analysis.winding_number_at(
            self.commands, (x, y), tolerance
        )
        return winding

    def contains_point(
        self, x: float, y: float, tolerance: float = FLATTEN_TOLERANCE
    ) -> bool:
        """Point-in-fill test under the path's fill rule."""
        return analysis.is_point_inside(
            self.commands,
            (x, y),
            evenodd=self.fill_rule == FillRule.EVENODD,
            tolerance=tolerance,
        )

    def get_polygons(
        self, tolerance: float = FLATTEN_TOLERANCE
    ) -> List[List[Point]]:
        """Flattens every subpath into a polygon."""
        return analysis.get_subpath_rings(self.commands, tolerance)

    def to_beziers(self) -> List[List[Tuple[Point, ...]]]:
        """
        Returns the geometry of every subpath as a list of Bezier control
        point tuples. The closing line of a closed subpath is included.
        """
        result: List[List[Tuple[Point, ...]]] = []
        for cmd_index, cmd, start in self.segments():
            if not result or self._starts_subpath(cmd_index):
                result.append([])
            result[-1].extend(bezier_pieces(cmd, start))
        return result

    def _starts_subpath(self, index: int) -> bool:
        previous = self.commands[index - 1] if index > 0 else None
        return isinstance(previous, MoveToCommand)

    # -- transformations ----------------------------------------------------

    def transform(self: T_Path, matrix: "AffineTransform") -> T_Path:
        """
        Returns a new path with every point mapped through the transform.

        Tangent arcs survive similarity transforms with their radius
        scaled. Any other transform would turn the arc into an ellipse, so
        the arc is replaced by its line and cubic approximation.
        """
        keep_arcs = matrix.is_similarity()
        scale = matrix.uniform_scale()
        new_path = self.__class__(self.fill_rule)
        last_point = Point(0.0, 0.0)

        for cmd in self.commands:
            if isinstance(cmd, ArcToCommand) and not keep_arcs:
                for bez in bezier_pieces(cmd, last_point):
                    pts = [matrix.apply_point(p) for p in bez[1:]]
                    if len(pts) == 1:
                        new_path.commands.append(LineToCommand(pts[0]))
                    else:
                        new_path.commands.append(CurveToCommand(*pts))
            else:
                new_path.commands.append(
                    cmd.transformed(matrix.apply_point, scale)
                )
            if isinstance(cmd, MovingCommand):
                last_point = cmd.end

        if self.last_move_to is not None:
            new_path.last_move_to = matrix.apply_point(self.last_move_to)
        logger.debug(f"Transformed path with {len(self.commands)} commands")
        return new_path

    def reversed(self: T_Path) -> T_Path:
        """
        Returns a path tracing the same geometry in the opposite
        direction. Subpath order is kept; tangent arcs are converted to
        their Bezier approximation.
        """
        new_path = self.__class__(self.fill_rule)
        for start, stop in analysis.get_subpath_ranges(self.commands):
            sub = self.commands[start:stop]
            pieces: List[Tuple[Point, ...]] = []
            last_point = sub[0].end
            for cmd in sub[1:]:
                if isinstance(cmd, ClosePathCommand):
                    # The closing line is re-created by close() below.
                    break
                pieces.extend(bezier_pieces(cmd, last_point))
                last_point = cmd.end
            new_path.move_to(*last_point)
            for bez in reversed(pieces):
                new_path._append_bezier(tuple(reversed(bez)))
            if isinstance(sub[-1], ClosePathCommand):
                new_path.close()
        return new_path

    def _append_bezier(self, bez: Sequence[Sequence[float]]) -> None:
        if len(bez) == 2:
            self.line_to(*bez[1])
        elif len(bez) == 3:
            self.quad_to(*bez[1], *bez[2])
        elif len(bez) == 4:
            self.curve_to(*bez[1], *bez[2], *bez[3])
        else:
            raise ValueError(f"Unsupported Bezier degree: {len(bez) - 1}")

    @classmethod
    def from_beziers(
        cls,
        contours: Iterable[Sequence[Sequence[Sequence[float]]]],
        close: bool = True,
        fill_rule: Union[FillRule, str] = FillRule.NONZERO,
    ) -> Path:
        """
        Builds a path from contours given as lists of connected Bezier
        control point tuples. A trailing straight line back to the start
        of a closed contour becomes the close command.
        """
        path = cls(fill_rule)
        for contour in contours:
            if not contour:
                continue
            beziers = list(contour)
            first = beziers[0][0]
            path.move_to(first[0], first[1])
            last = beziers[-1]
            if (
                close
                and len(beziers) > 1
                and len(last) == 2
                and Point.of(last[-1]).is_close(first, EPSILON)
            ):
                beziers = beziers[:-1]
            for bez in beziers:
                path._append_bezier(bez)
            if close:
                path.close()
        return path

    # -- subpaths and components --------------------------------------------

    def split_into_contours(self) -> List[Path]:
        """Splits the path into one path per subpath."""
        contours = []
        for start, stop in analysis.get_subpath_ranges(self.commands):
            contour = self.__class__(self.fill_rule)
            contour.commands = self.commands[start:stop]
            contour.last_move_to = self.commands[start].end
            contours.append(contour)
        return contours

    def _get_valid_contours_data(
        self, contours: List[Path]
    ) -> List[Dict[str, Any]]:
        """Filters degenerate contours and pre-calculates their data."""
        contour_data = []
        for contour in contours:
            # A valid contour must have a move and at least one other command
            if len(contour.commands) < 2:
                continue
            vertices = contour.get_polygons()[0]
            if len(vertices) < 3:
                continue
            contour_data.append(
                {
                    "geo": contour,
                    "vertices": vertices,
                    "probe": _interior_probe(vertices),
                    "area": abs(polygon_signed_area(vertices)),
                    "is_closed": contour.closed,
                }
            )
        return contour_data

    def split_into_components(self) -> List[Path]:
        """
        Analyzes the path and splits it into separate shapes (components).
        A contour nested inside an even number of other contours is an
        outer contour and starts a new component; a contour nested inside
        an odd number is a hole and joins the smallest contour around it.
        For example, a letter 'O' with an outer and inner path is a single
        component.
        """
        if self.is_empty():
            return []

        contour_data = self._get_valid_contours_data(
            self.split_into_contours()
        )
        if not contour_data:
            return []
        if len(contour_data) == 1:
            return [contour_data[0]["geo"].copy()]

        # Build the containment relation.
        count = len(contour_data)
        containers: List[List[int]] = [[] for _ in range(count)]
        for i in range(count):
            for j in range(count):
                if i == j:
                    continue
                data_i, data_j = contour_data[i], contour_data[j]
                if data_j["area"] <= data_i["area"]:
                    continue
                if is_point_in_polygon(data_i["probe"], data_j["vertices"]):
                    containers[i].append(j)

        owner: List[int] = list(range(count))
        for i in range(count):
            if len(containers[i]) % 2 == 1:
                # A hole belongs to the smallest contour around it.
                owner[i] = min(
                    containers[i], key=lambda j: contour_data[j]["area"]
                )

        result_paths: List[Path] = []
        for i in range(count):
            if owner[i] != i:
                continue
            component = self.__class__(self.fill_rule)
            for j in range(count):
                if j == i or owner[j] == i:
                    component.commands.extend(contour_data[j]["geo"].commands)
            component.last_move_to = component.commands[0].end
            result_paths.append(component)
        logger.debug(
            f"Split {count} contours into {len(result_paths)} components"
        )
        return result_paths

    # -- intersections and text ---------------------------------------------

    def intersections_with(self, other: Path) -> List["IntersectionRecord"]:
        from .intersect import intersect

        return intersect(self, other)

    def intersects_with(self, other: Path) -> bool:
        """True if the outlines of both paths touch or cross."""
        return bool(self.intersections_with(other))

    def has_self_intersections(self, fail_on_t_junction: bool = False) -> bool:
        from .intersect import has_self_intersections

        return has_self_intersections(
            self, fail_on_t_junction=fail_on_t_junction
        )

    def to_text(self, precision: Optional[int] = None) -> str:
        """Serializes the path into the path text format."""
        from ...pathencoder.text import TextEncoder

        return TextEncoder(precision=precision).encode(self)

    def to_dict(self) -> Dict[str, Any]:
        """Serializes the Path object to a dictionary."""
        return {
            "commands": [cmd.to_dict() for cmd in self.commands],
            "fill_rule": self.fill_rule.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Path:
        """Deserializes a dictionary into a Path instance."""
        new_path = cls(data.get("fill_rule", FillRule.NONZERO))
        for cmd_data in data.get("commands", []):
            new_path.add(command_from_dict(cmd_data))
        return new_path


def _interior_probe(vertices: Sequence[Point]) -> Point:
    """
    Returns a point just inside the polygon next to the midpoint of its
    longest edge, used to test whether the polygon lies inside another.
    """
    n = len(vertices)
    best = max(
        range(n), key=lambda i: vertices[i].distance_to(vertices[(i + 1) % n])
    )
    a, b = vertices[best], vertices[(best + 1) % n]
    mid = a.lerp(b, 0.5)
    length = a.distance_to(b)
    if length == 0:
        return mid
    # Step towards the interior: left of the edge for a CCW polygon.
    sign = 1.0 if polygon_signed_area(vertices) > 0 else -1.0
    step = min(length * 1e-3, 1e-4)
    nx, ny = -(b.y - a.y) / length * sign, (b.x - a.x) / length * sign
    return Point(mid.x + nx * step, mid.y + ny * step)
