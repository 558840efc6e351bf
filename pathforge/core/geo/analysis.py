from typing import Iterator, List, Optional, Sequence, Tuple

from ...config import FLATTEN_TOLERANCE
from .commands import (
    DRAWING_COMMANDS,
    ClosePathCommand,
    Command,
    MoveToCommand,
    MovingCommand,
    bezier_pieces,
    tangent_at,
)
from .linearize import flatten_bezier
from .primitives import Point, polygon_signed_area, winding_number


def get_command_start_point(commands: Sequence[Command], index: int) -> Point:
    """Finds the start point of the command at the given index."""
    for i in range(index - 1, -1, -1):
        prev_cmd = commands[i]
        if isinstance(prev_cmd, MovingCommand) and prev_cmd.end is not None:
            return prev_cmd.end
    return Point(0.0, 0.0)


def iter_drawing_commands(
    commands: Sequence[Command],
) -> Iterator[Tuple[int, Command, Point]]:
    """Yields (index, command, start point) for every drawing command."""
    current = Point(0.0, 0.0)
    for i, cmd in enumerate(commands):
        if isinstance(cmd, DRAWING_COMMANDS):
            yield i, cmd, current
        if isinstance(cmd, MovingCommand):
            current = cmd.end


def get_subpath_ranges(commands: Sequence[Command]) -> List[Tuple[int, int]]:
    """
    Returns (start, stop) index ranges, one per subpath. Each range starts
    at a MoveToCommand.
    """
    ranges: List[Tuple[int, int]] = []
    start: Optional[int] = None
    for i, cmd in enumerate(commands):
        if isinstance(cmd, MoveToCommand):
            if start is not None:
                ranges.append((start, i))
            start = i
    if start is not None:
        ranges.append((start, len(commands)))
    return ranges


def is_subpath_closed(
    commands: Sequence[Command], start: int, stop: int
) -> bool:
    return stop - start > 1 and isinstance(
        commands[stop - 1], ClosePathCommand
    )


def get_subpath_vertices(
    commands: Sequence[Command],
    start_cmd_index: int,
    tolerance: float = FLATTEN_TOLERANCE,
) -> List[Point]:
    """
    Extracts all 2D vertices for a single continuous subpath starting at a
    given MoveToCommand index, flattening any curves.
    """
    if start_cmd_index >= len(commands):
        return []
    last_pos = commands[start_cmd_index].end or Point(0.0, 0.0)
    vertices: List[Point] = [last_pos]

    for i in range(start_cmd_index + 1, len(commands)):
        cmd = commands[i]
        if isinstance(cmd, MoveToCommand):
            # End of the subpath
            break
        for bez in bezier_pieces(cmd, last_pos):
            vertices.extend(flatten_bezier(bez, tolerance)[1:])
        if isinstance(cmd, MovingCommand):
            last_pos = cmd.end

    # Drop the duplicate start point of explicitly closed rings.
    if len(vertices) > 1 and vertices[-1].is_close(vertices[0], 1e-12):
        vertices.pop()
    return vertices


def get_subpath_rings(
    commands: Sequence[Command], tolerance: float = FLATTEN_TOLERANCE
) -> List[List[Point]]:
    """Flattens every subpath into an implicitly closed polygon."""
    return [
        get_subpath_vertices(commands, start, tolerance)
        for start, _ in get_subpath_ranges(commands)
    ]


def get_subpath_area(
    commands: Sequence[Command],
    start_cmd_index: int,
    tolerance: float = FLATTEN_TOLERANCE,
) -> float:
    """
    Signed area of the subpath starting at the given index. Positive means
    counter-clockwise in a Y-up coordinate system.
    """
    vertices = get_subpath_vertices(commands, start_cmd_index, tolerance)
    if len(vertices) < 3:
        return 0.0
    return polygon_signed_area(vertices)


def get_path_winding_order(
    commands: Sequence[Command], segment_index: int
) -> str:
    """
    Determines winding order ('cw', 'ccw', 'unknown') for the subpath at a
    given index.
    """
    subpath_start_index = -1
    for i in range(segment_index, -1, -1):
        if isinstance(commands[i], MoveToCommand):
            subpath_start_index = i
            break
    if subpath_start_index == -1:
        return "unknown"

    area = get_subpath_area(commands, subpath_start_index)
    # A result of 0 means the path is collinear or self-cancelling.
    if abs(area) < 1e-9:
        return "unknown"
    elif area > 0:
        return "ccw"
    else:
        return "cw"


def get_outward_normal_at(
    commands: Sequence[Command], segment_index: int, t: float
) -> Optional[Tuple[float, float]]:
    """
    Calculates the outward-pointing normal vector for a point on a closed
    path, or None if the winding order cannot be determined.
    """
    cmd = commands[segment_index]
    if not isinstance(cmd, DRAWING_COMMANDS):
        return None
    winding = get_path_winding_order(commands, segment_index)
    if winding == "unknown":
        return None

    start = get_command_start_point(commands, segment_index)
    tx, ty = tangent_at(cmd, start, t)

    # For a CCW path the interior is to the left, so the outward normal is
    # the tangent rotated clockwise.
    if winding == "ccw":
        return (ty, -tx)
    else:  # winding == "cw"
        return (-ty, tx)


def winding_number_at(
    commands: Sequence[Command],
    point: Sequence[float],
    tolerance: float = FLATTEN_TOLERANCE,
) -> Tuple[int, int]:
    """
    Returns (winding number, crossing count) of the path around the point.
    Open subpaths are treated as implicitly closed, like a fill would.
    """
    return winding_number(point, get_subpath_rings(commands, tolerance))


def is_point_inside(
    commands: Sequence[Command],
    point: Sequence[float],
    evenodd: bool = False,
    tolerance: float = FLATTEN_TOLERANCE,
) -> bool:
    """Point-in-fill test under the nonzero or even-odd rule."""
    winding, crossings = winding_number_at(commands, point, tolerance)
    if evenodd:
        return crossings % 2 == 1
    return winding != 0
