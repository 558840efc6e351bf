import math

import pytest

from pathforge.core.errors import PreconditionError
from pathforge.core.geo.commands import (
    ArcToCommand,
    ClosePathCommand,
    CurveToCommand,
    LineToCommand,
    MoveToCommand,
    QuadToCommand,
    approximate_length,
    arc_lead_in_fraction,
    bezier_pieces,
    bounding_box,
    command_from_dict,
    evaluate,
    split,
    tangent_at,
)
from pathforge.core.geo.primitives import Point

START = (5, 15)


@pytest.fixture
def arc():
    """Turns left from (5, 15) over (0, 15) towards (0, 10)."""
    return ArcToCommand.from_start(START, (0, 15), (0, 10), 3)


def test_command_equality_and_repr():
    assert LineToCommand((1, 2)) == LineToCommand((1.0, 2.0))
    assert LineToCommand((1, 2)) != LineToCommand((1, 3))
    assert LineToCommand((1, 2)) != MoveToCommand((1, 2))
    assert repr(LineToCommand((1, 2))) == (
        "LineToCommand({'type': 'LineToCommand', 'end': (1.0, 2.0)})"
    )


def test_command_serialization():
    commands = [
        MoveToCommand((0, 0)),
        LineToCommand((1, 2)),
        QuadToCommand((3, 4), (5, 6)),
        CurveToCommand((1, 1), (2, 2), (3, 3)),
        ArcToCommand((0, 15), (0, 10), 3, (0, 12)),
        ClosePathCommand((0, 0)),
    ]
    for cmd in commands:
        assert command_from_dict(cmd.to_dict()) == cmd
    with pytest.raises(ValueError):
        command_from_dict({"type": "HorizontalLineCommand"})


def test_arc_from_start_resolves_end(arc):
    assert arc.end == pytest.approx((0, 12))
    resolved = arc.resolve(START)
    assert resolved.tangent1 == pytest.approx((3, 15))
    assert resolved.center == pytest.approx((3, 12))
    assert resolved.sweep == pytest.approx(math.pi / 2)


def test_arc_negative_radius():
    with pytest.raises(PreconditionError):
        ArcToCommand.from_start((0, 0), (10, 0), (10, 10), -1)


def test_degenerate_arc_is_a_line():
    # Collinear points
    cmd = ArcToCommand.from_start((0, 0), (10, 0), (20, 0), 5)
    assert cmd.end == (10, 0)
    assert evaluate(cmd, (0, 0), 0.5) == pytest.approx((5, 0))
    assert bezier_pieces(cmd, (0, 0)) == [((0, 0), (10, 0))]


class TestEvaluate:
    def test_line(self):
        cmd = LineToCommand((10, 20))
        assert evaluate(cmd, (0, 0), 0) == (0, 0)
        assert evaluate(cmd, (0, 0), 0.5) == pytest.approx((5, 10))
        assert evaluate(cmd, (0, 0), 1) == (10, 20)

    def test_close(self):
        cmd = ClosePathCommand((0, 0))
        assert evaluate(cmd, (10, 0), 0.25) == pytest.approx((7.5, 0))

    def test_move(self):
        assert evaluate(MoveToCommand((3, 4)), (0, 0), 0.5) == (3, 4)

    def test_quad(self):
        cmd = QuadToCommand((5, 10), (10, 0))
        assert evaluate(cmd, (0, 0), 0.5) == pytest.approx((5, 5))
        assert evaluate(cmd, (0, 0), 1) == pytest.approx((10, 0))

    def test_cubic(self):
        cmd = CurveToCommand((0, 10), (10, 10), (10, 0))
        assert evaluate(cmd, (0, 0), 0.5) == pytest.approx((5, 7.5))

    def test_arc(self, arc):
        f = arc_lead_in_fraction(Point(*START), arc.resolve(START))
        assert f == pytest.approx(2 / (2 + 1.5 * math.pi))
        assert evaluate(arc, START, 0) == pytest.approx(START)
        assert evaluate(arc, START, f / 2) == pytest.approx((4, 15))
        assert evaluate(arc, START, f) == pytest.approx((3, 15))
        assert evaluate(arc, START, 1) == pytest.approx((0, 12))
        # Halfway around the circle
        mid = evaluate(arc, START, f + (1 - f) / 2)
        r = math.sqrt(0.5) * 3
        assert mid == pytest.approx((3 - r, 12 + r))

    @pytest.mark.parametrize("t", [-0.1, 1.1])
    def test_t_out_of_range(self, t):
        with pytest.raises(PreconditionError):
            evaluate(LineToCommand((1, 1)), (0, 0), t)


class TestTangent:
    def test_line(self):
        assert tangent_at(LineToCommand((3, 4)), (0, 0), 0.5) == (
            pytest.approx(0.6),
            pytest.approx(0.8),
        )

    def test_cubic_start_direction(self):
        cmd = CurveToCommand((0, 10), (10, 10), (10, 0))
        assert tangent_at(cmd, (0, 0), 0) == pytest.approx((0, 1))
        assert tangent_at(cmd, (0, 0), 1) == pytest.approx((0, -1))

    def test_arc(self, arc):
        # On the lead-in the arc travels towards -x
        assert tangent_at(arc, START, 0.1) == pytest.approx((-1, 0))
        # At the end it travels straight down
        assert tangent_at(arc, START, 1) == pytest.approx((0, -1))

    def test_zero_length_falls_back(self):
        assert tangent_at(LineToCommand((1, 1)), (1, 1), 0.5) == (1.0, 0.0)
        assert tangent_at(MoveToCommand((1, 1)), (0, 0), 0) == (1.0, 0.0)


class TestSplit:
    def test_line(self):
        left, right = split(LineToCommand((10, 0)), (0, 0), 0.5)
        assert left == LineToCommand((5, 0))
        assert right == LineToCommand((10, 0))

    def test_close_keeps_closing(self):
        left, right = split(ClosePathCommand((0, 0)), (10, 0), 0.5)
        assert isinstance(left, LineToCommand)
        assert isinstance(right, ClosePathCommand)
        assert left.end == (5, 0)

    def test_cubic_halves_trace_the_curve(self):
        cmd = CurveToCommand((0, 10), (10, 10), (10, 0))
        left, right = split(cmd, (0, 0), 0.4)
        p = evaluate(cmd, (0, 0), 0.4)
        assert left.end == pytest.approx(p)
        assert evaluate(left, (0, 0), 0.5) == pytest.approx(
            evaluate(cmd, (0, 0), 0.2)
        )
        assert evaluate(right, left.end, 0.5) == pytest.approx(
            evaluate(cmd, (0, 0), 0.7)
        )

    def test_quad(self):
        cmd = QuadToCommand((5, 10), (10, 0))
        left, right = split(cmd, (0, 0), 0.5)
        assert left.end == pytest.approx((5, 5))
        assert right.end == (10, 0)

    def test_arc_on_lead_in(self, arc):
        f = 2 / (2 + 1.5 * math.pi)
        left, right = split(arc, START, f / 2)
        assert isinstance(left, LineToCommand)
        assert left.end == pytest.approx((4, 15))
        assert isinstance(right, ArcToCommand)
        assert right.resolve(left.end).tangent1 == pytest.approx((3, 15))
        assert right.end == arc.end

    def test_arc_on_circle(self, arc):
        t = 0.8
        p = evaluate(arc, START, t)
        left, right = split(arc, START, t)
        assert isinstance(left, ArcToCommand)
        assert isinstance(right, ArcToCommand)
        assert left.end == pytest.approx(p)
        assert right.end == arc.end
        # Both halves stay on the original circle
        for cmd, start in ((left, START), (right, left.end)):
            resolved = cmd.resolve(start)
            assert resolved.center == pytest.approx((3, 12))
            mid = evaluate(cmd, start, 0.9)
            assert math.dist(mid, (3, 12)) == pytest.approx(3)

    def test_move_cannot_be_split(self):
        with pytest.raises(PreconditionError):
            split(MoveToCommand((0, 0)), (0, 0), 0.5)


def test_bounding_box(arc):
    assert bounding_box(LineToCommand((10, -5)), (0, 0)) == (0, -5, 10, 0)
    assert bounding_box(
        CurveToCommand((0, 10), (10, 10), (10, 0)), (0, 0)
    ) == (0, 0, 10, 10)
    assert bounding_box(arc, START) == pytest.approx((0, 12, 5, 15))


def test_bezier_pieces(arc):
    assert bezier_pieces(MoveToCommand((1, 1)), (0, 0)) == []
    pieces = bezier_pieces(arc, START)
    assert pieces[0] == ((5, 15), pytest.approx((3, 15)))
    assert len(pieces) == 2
    assert pieces[1][-1] == pytest.approx((0, 12))


def test_approximate_length(arc):
    assert approximate_length(LineToCommand((3, 4)), (0, 0)) == 5
    assert approximate_length(arc, START, samples=256) == pytest.approx(
        2 + 1.5 * math.pi, rel=1e-3
    )
