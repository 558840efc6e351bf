# flake8: noqa:F401
from .primitives import Point
from .commands import (
    Command,
    MovingCommand,
    MoveToCommand,
    LineToCommand,
    QuadToCommand,
    CurveToCommand,
    ArcToCommand,
    ClosePathCommand,
)
from .geometry import FillRule, Path
from .intersect import IntersectionRecord, intersect, has_self_intersections
from .boolean import BooleanOp, boolean_op, union, intersection, difference
from .morph import (
    MorphHandle,
    align,
    extract_significant_points,
    interpolate,
    morph,
    smooth_path,
)
from .easing import get_easing

__all__ = [
    "Point",
    "Command",
    "MovingCommand",
    "MoveToCommand",
    "LineToCommand",
    "QuadToCommand",
    "CurveToCommand",
    "ArcToCommand",
    "ClosePathCommand",
    "FillRule",
    "Path",
    "IntersectionRecord",
    "intersect",
    "has_self_intersections",
    "BooleanOp",
    "boolean_op",
    "union",
    "intersection",
    "difference",
    "MorphHandle",
    "align",
    "extract_significant_points",
    "interpolate",
    "morph",
    "smooth_path",
    "get_easing",
]
