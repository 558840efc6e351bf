"""
Parser for the path text format.

The format is a reduced dialect of the SVG path mini-language:

    M x y            move to                 (2 numbers)
    L x y            line to                 (2 numbers)
    Q cx cy x y      quadratic Bezier        (4 numbers)
    T x y            smooth quadratic        (2 numbers)
    C c1x c1y c2x c2y x y  cubic Bezier      (6 numbers)
    S c2x c2y x y    smooth cubic            (4 numbers)
    A x1 y1 x2 y2 r  tangent arc             (5 numbers)
    Z                close the subpath       (no numbers)

Lowercase letters take coordinates relative to the current point (the
arc radius is never relative). A command letter may be followed by
several groups of numbers; extra groups after a move are lines. H, V and
the SVG elliptical arc form are not supported.
"""
import logging
import re
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple, Union

from ..core.errors import ParseError, PathError
from ..core.geo.geometry import FillRule, Path
from ..core.geo.primitives import Point

logger = logging.getLogger(__name__)

ARITY = {"M": 2, "L": 2, "T": 2, "Q": 4, "S": 4, "C": 6, "A": 5, "Z": 0}

TOKEN_RE = re.compile(
    r"(?P<command>[A-Za-z])"
    r"|(?P<number>[-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?)"
    r"|(?P<separator>[\s,]+)"
    r"|(?P<invalid>.)",
    re.DOTALL,
)


class Token(NamedTuple):
    kind: str
    value: str
    position: int


class ParseState(NamedTuple):
    """
    Everything the parser needs to know about what came before. A new
    state is returned for every command instead of updating fields.
    """

    current: Point = Point(0.0, 0.0)
    subpath_start: Point = Point(0.0, 0.0)
    last_control: Optional[Point] = None
    last_command: Optional[str] = None


def tokenize(text: str) -> Iterator[Token]:
    """
    Splits the text into command and number tokens, each with its
    character offset. Separators are skipped.

    Raises:
        ParseError: for characters that cannot start a token.
    """
    for match in TOKEN_RE.finditer(text):
        kind = match.lastgroup
        if kind == "separator":
            continue
        if kind == "invalid":
            raise ParseError(
                f"Unexpected character {match.group()!r}", match.start()
            )
        yield Token(kind, match.group(), match.start())


def _read_numbers(
    tokens: Sequence[Token], pos: int, command: str, end_position: int
) -> Tuple[List[float], int]:
    arity = ARITY[command.upper()]
    numbers: List[float] = []
    while len(numbers) < arity:
        if pos >= len(tokens) or tokens[pos].kind != "number":
            where = tokens[pos].position if pos < len(tokens) else end_position
            raise ParseError(
                f"Command '{command}' expects {arity} numbers, got "
                f"{len(numbers)}",
                where,
            )
        numbers.append(float(tokens[pos].value))
        pos += 1
    return numbers, pos


def _reflect(state: ParseState, kinds: str) -> Point:
    """
    The first control point of a smooth curve: the previous control
    point mirrored at the current point, or the current point itself if
    the previous command was not of the given kinds.
    """
    if state.last_control is None or state.last_command not in kinds:
        return state.current
    cur, ctrl = state.current, state.last_control
    return Point(2 * cur.x - ctrl.x, 2 * cur.y - ctrl.y)


def _absolute(
    state: ParseState, relative: bool, values: Sequence[float]
) -> List[Point]:
    points = [
        Point(values[i], values[i + 1]) for i in range(0, len(values), 2)
    ]
    if relative:
        cur = state.current
        points = [p.translated(cur.x, cur.y) for p in points]
    return points


def apply_command(
    path: Path, state: ParseState, command: str, values: Sequence[float]
) -> ParseState:
    """
    Appends one command with its numbers to the path and returns the
    resulting parse state.
    """
    kind = command.upper()
    relative = command != kind

    if kind == "Z":
        path.close()
        return ParseState(state.subpath_start, state.subpath_start, None, "Z")

    if kind == "M":
        (end,) = _absolute(state, relative, values)
        path.move_to(*end)
        return ParseState(end, end, None, "M")

    control: Optional[Point] = None
    if kind == "L":
        (end,) = _absolute(state, relative, values)
        path.line_to(*end)
    elif kind == "Q":
        control, end = _absolute(state, relative, values)
        path.quad_to(*control, *end)
    elif kind == "T":
        control = _reflect(state, "QT")
        (end,) = _absolute(state, relative, values)
        path.quad_to(*control, *end)
    elif kind == "C":
        control1, control, end = _absolute(state, relative, values)
        path.curve_to(*control1, *control, *end)
    elif kind == "S":
        control1 = _reflect(state, "CS")
        control, end = _absolute(state, relative, values)
        path.curve_to(*control1, *control, *end)
    elif kind == "A":
        through1, through2 = _absolute(state, relative, values[:4])
        path.arc_to(*through1, *through2, values[4])
    else:
        raise ValueError(f"Unknown command '{command}'")

    current = path.current_point
    assert current is not None
    # A drawing command after Z starts a new subpath at the old start.
    return ParseState(current, state.subpath_start, control, kind)


def parse_text(
    text: str, fill_rule: Union[FillRule, str] = FillRule.NONZERO
) -> Path:
    """
    Parses the path text format into a Path.

    Raises:
        ParseError: for unknown commands, stray numbers, missing numbers,
            a path not starting with a move, or invalid values such as a
            negative arc radius. The error carries the character offset.
    """
    tokens = list(tokenize(text))
    path = Path(fill_rule)
    state = ParseState()
    command: Optional[str] = None
    pos = 0

    while pos < len(tokens):
        token = tokens[pos]
        if token.kind == "command":
            if token.value.upper() not in ARITY:
                raise ParseError(
                    f"Unsupported command '{token.value}'", token.position
                )
            if command is None and token.value.upper() != "M":
                raise ParseError(
                    "Path data must start with a move command",
                    token.position,
                )
            command = token.value
            pos += 1
        elif command is None or command.upper() == "Z":
            raise ParseError(
                f"Unexpected number {token.value!r}", token.position
            )

        values, pos = _read_numbers(tokens, pos, command, len(text))
        try:
            state = apply_command(path, state, command, values)
        except PathError as e:
            raise ParseError(str(e), token.position) from e

        # Further number groups after a move are implicit lines.
        if command == "M":
            command = "L"
        elif command == "m":
            command = "l"

    logger.debug(f"Parsed {len(path.commands)} commands from text")
    return path
