# flake8: noqa:F401
from .errors import (
    PathError,
    ParseError,
    PreconditionError,
    NumericDegeneracyError,
)
from .matrix import AffineTransform, compose

__all__ = [
    "PathError",
    "ParseError",
    "PreconditionError",
    "NumericDegeneracyError",
    "AffineTransform",
    "compose",
]
