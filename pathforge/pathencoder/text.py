import logging
import math
from typing import List, Optional

from ..config import TEXT_PRECISION
from ..core.geo.commands import (
    ArcToCommand,
    ClosePathCommand,
    Command,
    CurveToCommand,
    LineToCommand,
    MoveToCommand,
    QuadToCommand,
)
from ..core.geo.geometry import Path
from .encoder import PathEncoder

logger = logging.getLogger(__name__)


def format_number(value: float, precision: Optional[int] = None) -> str:
    """
    Formats a coordinate for the text format.

    Without a precision the shortest representation that parses back to
    the very same float is used, and integral values are written without
    a fraction. With a precision the value is rounded to that many
    decimals and trailing zeros are dropped.
    """
    value = float(value)
    if not math.isfinite(value):
        return repr(value)
    if precision is None:
        if value.is_integer() and abs(value) < 1e16:
            return str(int(value))
        return repr(value)
    text = f"{value:.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


class TextEncoder(PathEncoder):
    """
    Converts a Path into the path text format: one absolute command per
    segment, separated by spaces, e.g. "M 0 0 L 10 0 Z".
    """

    def __init__(self, precision: Optional[int] = TEXT_PRECISION):
        self.precision = precision

    def encode(self, path: Path) -> str:
        parts: List[str] = []
        for cmd in path.commands:
            parts.append(self._handle_command(cmd))
        logger.debug(f"Encoded {len(parts)} commands as text")
        return " ".join(parts)

    def _fmt(self, *values: float) -> str:
        return " ".join(format_number(v, self.precision) for v in values)

    def _handle_command(self, cmd: Command) -> str:
        """Dispatch command to the matching text form"""
        match cmd:
            case MoveToCommand():
                return f"M {self._fmt(*cmd.end)}"
            case LineToCommand():
                return f"L {self._fmt(*cmd.end)}"
            case QuadToCommand():
                return f"Q {self._fmt(*cmd.control, *cmd.end)}"
            case CurveToCommand():
                return (
                    f"C {self._fmt(*cmd.control1, *cmd.control2, *cmd.end)}"
                )
            case ArcToCommand():
                return (
                    f"A {self._fmt(*cmd.through1, *cmd.through2, cmd.radius)}"
                )
            case ClosePathCommand():
                return "Z"
        raise TypeError(f"Unsupported command type: {type(cmd).__name__}")
