"""
pathforge: a 2D vector path geometry toolkit.

Paths made of lines, Bezier curves and tangent arcs, affine transforms,
intersection detection, boolean operations, morphing and a text format.
"""
# flake8: noqa:F401
from .core import (
    AffineTransform,
    NumericDegeneracyError,
    ParseError,
    PathError,
    PreconditionError,
    compose,
)
from .core.geo import (
    BooleanOp,
    FillRule,
    IntersectionRecord,
    MorphHandle,
    Path,
    Point,
    boolean_op,
    difference,
    intersect,
    intersection,
    morph,
    union,
)
from .pathencoder import TextEncoder, parse_text

__version__ = "0.1.0"

__all__ = [
    "AffineTransform",
    "compose",
    "PathError",
    "ParseError",
    "PreconditionError",
    "NumericDegeneracyError",
    "Point",
    "Path",
    "FillRule",
    "IntersectionRecord",
    "intersect",
    "BooleanOp",
    "boolean_op",
    "union",
    "intersection",
    "difference",
    "MorphHandle",
    "morph",
    "TextEncoder",
    "parse_text",
]
