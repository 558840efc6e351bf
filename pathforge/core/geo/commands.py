from __future__ import annotations
import math
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ...config import EPSILON, LENGTH_SAMPLES
from ..errors import PreconditionError
from .bezier import (
    Bezier,
    bezier_derivative,
    bezier_point,
    control_box,
    split_bezier,
)
from .linearize import TangentArc, resolve_tangent_arc, tangent_arc_beziers
from .primitives import BBox, Point, points_bbox

PointMap = Callable[[Point], Point]


class Command:
    """Base for all path commands."""

    def __init__(self, end: Optional[Sequence[float]] = None) -> None:
        self.end: Optional[Point] = None if end is None else Point.of(end)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_dict()})"

    def __eq__(self, other: Any) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.__class__.__name__}

    def transformed(self, fn: PointMap, scale: float = 1.0) -> Command:
        """
        Returns a copy with every stored point mapped through `fn`. `scale`
        is the uniform scale factor of the mapping, used for radii.
        """
        return self.__class__()


class MovingCommand(Command):
    """A command that ends in a well defined point."""

    end: Point  # type: ignore[reportRedeclaration]

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["end"] = tuple(self.end)
        return d

    def transformed(self, fn: PointMap, scale: float = 1.0) -> Command:
        return self.__class__(fn(self.end))


class MoveToCommand(MovingCommand):
    """Starts a new subpath."""

    pass


class LineToCommand(MovingCommand):
    """A straight line to `end`."""

    pass


class ClosePathCommand(MovingCommand):
    """
    Closes the current subpath with a straight line back to its start.

    The builder fills `end` with the subpath's start point, so the close
    command resolves like any other moving command.
    """

    pass


class QuadToCommand(MovingCommand):
    """A quadratic Bezier with one control point."""

    def __init__(
        self, control: Sequence[float], end: Sequence[float]
    ) -> None:
        super().__init__(end)
        self.control = Point.of(control)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["control"] = tuple(self.control)
        return d

    def transformed(self, fn: PointMap, scale: float = 1.0) -> Command:
        return QuadToCommand(fn(self.control), fn(self.end))


class CurveToCommand(MovingCommand):
    """A cubic Bezier with two control points."""

    def __init__(
        self,
        control1: Sequence[float],
        control2: Sequence[float],
        end: Sequence[float],
    ) -> None:
        super().__init__(end)
        self.control1 = Point.of(control1)
        self.control2 = Point.of(control2)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["control1"] = tuple(self.control1)
        d["control2"] = tuple(self.control2)
        return d

    def transformed(self, fn: PointMap, scale: float = 1.0) -> Command:
        return CurveToCommand(
            fn(self.control1), fn(self.control2), fn(self.end)
        )


class ArcToCommand(MovingCommand):
    """
    A canvas-style tangent arc.

    Starting from the current point, a straight line runs towards
    `through1` until it touches a circle of `radius` that is tangent to both
    the line start->through1 and the line through1->through2. The arc then
    follows the circle to its second tangent point, which is `end`.

    If the arc is degenerate (zero radius, coincident or collinear points)
    the command is a straight line to `through1`, which then is `end`.
    """

    def __init__(
        self,
        through1: Sequence[float],
        through2: Sequence[float],
        radius: float,
        end: Sequence[float],
    ) -> None:
        super().__init__(end)
        self.through1 = Point.of(through1)
        self.through2 = Point.of(through2)
        self.radius = float(radius)

    @classmethod
    def from_start(
        cls,
        start: Sequence[float],
        through1: Sequence[float],
        through2: Sequence[float],
        radius: float,
    ) -> ArcToCommand:
        """Creates the command, computing its end point from `start`."""
        if radius < 0:
            raise PreconditionError(f"Arc radius must be >= 0, got {radius}")
        arc = resolve_tangent_arc(start, through1, through2, radius)
        end = through1 if arc is None else arc.tangent2
        return cls(through1, through2, radius, end)

    def resolve(self, start: Sequence[float]) -> Optional[TangentArc]:
        return resolve_tangent_arc(
            start, self.through1, self.through2, self.radius
        )

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["through1"] = tuple(self.through1)
        d["through2"] = tuple(self.through2)
        d["radius"] = self.radius
        return d

    def transformed(self, fn: PointMap, scale: float = 1.0) -> Command:
        return ArcToCommand(
            fn(self.through1),
            fn(self.through2),
            self.radius * scale,
            fn(self.end),
        )


DRAWING_COMMANDS = (
    LineToCommand,
    QuadToCommand,
    CurveToCommand,
    ArcToCommand,
    ClosePathCommand,
)


def _unknown(cmd: Command) -> TypeError:
    return TypeError(f"Unsupported command type: {type(cmd).__name__}")


def _check_t(t: float) -> None:
    if not 0.0 <= t <= 1.0:
        raise PreconditionError(f"Curve parameter t={t} is outside [0, 1]")


def bezier_pieces(cmd: Command, start: Sequence[float]) -> List[Bezier]:
    """
    Returns the geometry of a command as a list of Bezier control point
    tuples. Moves have no geometry. Tangent arcs yield their lead-in line
    (if any) followed by the cubic approximation of the arc.
    """
    p0 = Point.of(start)
    if isinstance(cmd, MoveToCommand):
        return []
    if isinstance(cmd, (LineToCommand, ClosePathCommand)):
        return [(p0, cmd.end)]
    if isinstance(cmd, QuadToCommand):
        return [(p0, cmd.control, cmd.end)]
    if isinstance(cmd, CurveToCommand):
        return [(p0, cmd.control1, cmd.control2, cmd.end)]
    if isinstance(cmd, ArcToCommand):
        return tangent_arc_beziers(
            p0, cmd.through1, cmd.through2, cmd.radius
        )
    raise _unknown(cmd)


def arc_lead_in_fraction(start: Point, arc: TangentArc) -> float:
    """Share of the parameter range taken by the straight lead-in."""
    lead_in = start.distance_to(arc.tangent1)
    arc_length = arc.radius * abs(arc.sweep)
    return lead_in / (lead_in + arc_length)


def _arc_point(arc: TangentArc, fraction: float) -> Point:
    angle = arc.start_angle + arc.sweep * fraction
    return Point(
        arc.center.x + arc.radius * math.cos(angle),
        arc.center.y + arc.radius * math.sin(angle),
    )


def evaluate(cmd: Command, start: Sequence[float], t: float) -> Point:
    """
    Returns the point at parameter t (0 <= t <= 1) of the command drawn
    from `start`.

    Lines interpolate linearly and Beziers use De Casteljau evaluation.
    Tangent arcs spend the first part of the range on the straight lead-in
    (in proportion to its length) and the rest on the circle, linear in
    angle.

    Raises:
        PreconditionError: if t is outside [0, 1].
    """
    _check_t(t)
    p0 = Point.of(start)
    if isinstance(cmd, MoveToCommand):
        return cmd.end
    if isinstance(cmd, (LineToCommand, ClosePathCommand)):
        return p0.lerp(cmd.end, t)
    if isinstance(cmd, QuadToCommand):
        return bezier_point((p0, cmd.control, cmd.end), t)
    if isinstance(cmd, CurveToCommand):
        return bezier_point((p0, cmd.control1, cmd.control2, cmd.end), t)
    if isinstance(cmd, ArcToCommand):
        arc = cmd.resolve(p0)
        if arc is None:
            return p0.lerp(cmd.through1, t)
        f = arc_lead_in_fraction(p0, arc)
        if t < f:
            return p0.lerp(arc.tangent1, t / f)
        return _arc_point(arc, (t - f) / (1.0 - f))
    raise _unknown(cmd)


def tangent_at(
    cmd: Command, start: Sequence[float], t: float
) -> Tuple[float, float]:
    """
    Returns the normalized direction of travel at parameter t. Falls back
    to (1, 0) where the direction is undefined, e.g. for zero-length
    segments.
    """
    _check_t(t)
    p0 = Point.of(start)
    vec: Tuple[float, float] = (0.0, 0.0)
    if isinstance(cmd, MoveToCommand):
        pass
    elif isinstance(cmd, ArcToCommand):
        arc = cmd.resolve(p0)
        if arc is None:
            vec = (cmd.through1.x - p0.x, cmd.through1.y - p0.y)
        else:
            f = arc_lead_in_fraction(p0, arc)
            if t < f:
                vec = (arc.tangent1.x - p0.x, arc.tangent1.y - p0.y)
            else:
                angle = arc.start_angle + arc.sweep * (t - f) / (1.0 - f)
                sign = 1.0 if arc.sweep > 0 else -1.0
                vec = (-math.sin(angle) * sign, math.cos(angle) * sign)
    elif isinstance(cmd, DRAWING_COMMANDS):
        (bez,) = bezier_pieces(cmd, p0)
        vec = bezier_derivative(bez, t)
    else:
        raise _unknown(cmd)

    norm = math.hypot(vec[0], vec[1])
    if norm < EPSILON:
        return 1.0, 0.0
    return vec[0] / norm, vec[1] / norm


def _split_arc(
    cmd: ArcToCommand, start: Point, t: float
) -> Tuple[Command, Command]:
    arc = cmd.resolve(start)
    if arc is None:
        p = start.lerp(cmd.through1, t)
        return LineToCommand(p), LineToCommand(cmd.through1)

    f = arc_lead_in_fraction(start, arc)
    if t <= f:
        # The remainder starts on the lead-in line and therefore resolves
        # to the very same arc.
        p = start.lerp(arc.tangent1, t / f) if f > 0 else start
        return LineToCommand(p), ArcToCommand(
            cmd.through1, cmd.through2, cmd.radius, cmd.end
        )

    fraction = (t - f) / (1.0 - f)
    p = _arc_point(arc, fraction)
    if fraction >= 1.0:
        return ArcToCommand(
            cmd.through1, cmd.through2, cmd.radius, cmd.end
        ), LineToCommand(cmd.end)

    # Tangent lines of a circular arc meet at distance r*tan(sweep/2)
    # from both of its ends.
    sweep1 = abs(arc.sweep) * fraction
    sweep2 = abs(arc.sweep) - sweep1
    travel_in = (
        cmd.through1.x - arc.tangent1.x,
        cmd.through1.y - arc.tangent1.y,
    )
    travel_len = math.hypot(*travel_in)
    d1 = arc.radius * math.tan(sweep1 / 2.0)
    corner1 = Point(
        arc.tangent1.x + travel_in[0] / travel_len * d1,
        arc.tangent1.y + travel_in[1] / travel_len * d1,
    )
    tx, ty = tangent_at(cmd, start, t)
    d2 = arc.radius * math.tan(sweep2 / 2.0)
    corner2 = Point(p.x + tx * d2, p.y + ty * d2)

    left = ArcToCommand.from_start(start, corner1, p, cmd.radius)
    right = ArcToCommand(corner2, arc.tangent2, cmd.radius, cmd.end)
    left_arc = left.resolve(start)
    if sweep1 > 1e-6 and (
        left_arc is None or not left_arc.tangent1.is_close(arc.tangent1, 1e-6)
    ):
        raise PreconditionError(
            "This tangent arc reverses on its lead-in and cannot be split "
            "into two tangent arcs; convert it to Beziers first"
        )
    left.end = p
    return left, right


def split(
    cmd: Command, start: Sequence[float], t: float
) -> Tuple[Command, Command]:
    """
    Splits the command at t into two commands. The first runs from `start`
    to the point at t, the second from there to the command's end.

    Beziers are split with De Casteljau's algorithm, so both halves trace
    the original curve exactly.

    Raises:
        PreconditionError: if t is outside [0, 1].
    """
    _check_t(t)
    p0 = Point.of(start)
    if isinstance(cmd, MoveToCommand):
        raise PreconditionError("A move command has no extent to split")
    if isinstance(cmd, LineToCommand):
        p = p0.lerp(cmd.end, t)
        return LineToCommand(p), LineToCommand(cmd.end)
    if isinstance(cmd, ClosePathCommand):
        p = p0.lerp(cmd.end, t)
        return LineToCommand(p), ClosePathCommand(cmd.end)
    if isinstance(cmd, QuadToCommand):
        left, right = split_bezier((p0, cmd.control, cmd.end), t)
        return (
            QuadToCommand(left[1], left[2]),
            QuadToCommand(right[1], right[2]),
        )
    if isinstance(cmd, CurveToCommand):
        left, right = split_bezier(
            (p0, cmd.control1, cmd.control2, cmd.end), t
        )
        return (
            CurveToCommand(left[1], left[2], left[3]),
            CurveToCommand(right[1], right[2], right[3]),
        )
    if isinstance(cmd, ArcToCommand):
        return _split_arc(cmd, p0, t)
    raise _unknown(cmd)


def bounding_box(cmd: Command, start: Sequence[float]) -> BBox:
    """
    Returns (min_x, min_y, max_x, max_y) of the command's control points.
    This is not tight for curves, but always contains the curve.
    """
    p0 = Point.of(start)
    if isinstance(cmd, MoveToCommand):
        return points_bbox([cmd.end])
    if isinstance(cmd, ArcToCommand):
        arc = cmd.resolve(p0)
        if arc is None:
            return points_bbox([p0, cmd.through1])
        return points_bbox([p0, arc.tangent1, cmd.through1, arc.tangent2])
    if isinstance(cmd, DRAWING_COMMANDS):
        (bez,) = bezier_pieces(cmd, p0)
        return control_box(bez)
    raise _unknown(cmd)


def approximate_length(
    cmd: Command, start: Sequence[float], samples: int = LENGTH_SAMPLES
) -> float:
    """Approximates the command's length by sampling it as a polyline."""
    p0 = Point.of(start)
    if isinstance(cmd, MoveToCommand):
        return 0.0
    if isinstance(cmd, (LineToCommand, ClosePathCommand)):
        return p0.distance_to(cmd.end)
    if not isinstance(cmd, DRAWING_COMMANDS):
        raise _unknown(cmd)
    samples = max(1, samples)
    length = 0.0
    prev = p0
    for i in range(1, samples + 1):
        pt = evaluate(cmd, p0, i / samples)
        length += prev.distance_to(pt)
        prev = pt
    return length


def command_from_dict(data: Dict[str, Any]) -> Command:
    """Restores a command serialized with `to_dict()`."""
    cmd_type = data.get("type")
    if cmd_type == "MoveToCommand":
        return MoveToCommand(data["end"])
    if cmd_type == "LineToCommand":
        return LineToCommand(data["end"])
    if cmd_type == "ClosePathCommand":
        return ClosePathCommand(data["end"])
    if cmd_type == "QuadToCommand":
        return QuadToCommand(data["control"], data["end"])
    if cmd_type == "CurveToCommand":
        return CurveToCommand(data["control1"], data["control2"], data["end"])
    if cmd_type == "ArcToCommand":
        return ArcToCommand(
            data["through1"], data["through2"], data["radius"], data["end"]
        )
    raise ValueError(f"Unknown command type: {cmd_type}")
