"""
Easing functions mapping a linear progress value t in [0, 1] to an eased
progress value. They follow the usual d3-ease definitions, so they return
0 at t=0 and 1 at t=1 (up to rounding), while elastic and bounce easing
overshoot in between.
"""
import math
from typing import Callable, Dict, Union

from ..errors import PreconditionError

EasingFunction = Callable[[float], float]

_BOUNCE_B1 = 4 / 11
_BOUNCE_B2 = 6 / 11
_BOUNCE_B3 = 8 / 11
_BOUNCE_B4 = 3 / 4
_BOUNCE_B5 = 9 / 11
_BOUNCE_B6 = 10 / 11
_BOUNCE_B7 = 15 / 16
_BOUNCE_B8 = 21 / 22
_BOUNCE_B9 = 63 / 64
_BOUNCE_B0 = 1 / _BOUNCE_B1 / _BOUNCE_B1

_ELASTIC_PERIOD = 0.3 / (2 * math.pi)
_ELASTIC_SHIFT = math.asin(1.0) * _ELASTIC_PERIOD


def linear(t: float) -> float:
    return t


def quad_in_out(t: float) -> float:
    t *= 2
    if t <= 1:
        return t * t / 2
    t -= 1
    return (t * (2 - t) + 1) / 2


def cubic_in_out(t: float) -> float:
    t *= 2
    if t <= 1:
        return t * t * t / 2
    t -= 2
    return (t * t * t + 2) / 2


def circle_in_out(t: float) -> float:
    t *= 2
    if t <= 1:
        return (1 - math.sqrt(max(0.0, 1 - t * t))) / 2
    t -= 2
    return (math.sqrt(max(0.0, 1 - t * t)) + 1) / 2


def bounce_out(t: float) -> float:
    """Decaying bounces towards 1, like a ball dropped on the target."""
    if t < _BOUNCE_B1:
        return _BOUNCE_B0 * t * t
    if t < _BOUNCE_B3:
        t -= _BOUNCE_B2
        return _BOUNCE_B0 * t * t + _BOUNCE_B4
    if t < _BOUNCE_B6:
        t -= _BOUNCE_B5
        return _BOUNCE_B0 * t * t + _BOUNCE_B7
    t -= _BOUNCE_B8
    return _BOUNCE_B0 * t * t + _BOUNCE_B9


def _tpmt(x: float) -> float:
    # 2^(-10x), shifted and scaled so that it is exactly 1 at 0 and 0 at 1.
    return (math.pow(2, -10 * x) - 0.0009765625) * 1.0009775171065494


def elastic_out(t: float) -> float:
    """A damped oscillation around 1 (amplitude 1, period 0.3)."""
    return 1 - _tpmt(t) * math.sin((t + _ELASTIC_SHIFT) / _ELASTIC_PERIOD)


EASING_FUNCTIONS: Dict[str, EasingFunction] = {
    "linear": linear,
    "quad_in_out": quad_in_out,
    "cubic_in_out": cubic_in_out,
    "circle_in_out": circle_in_out,
    "bounce_out": bounce_out,
    "elastic_out": elastic_out,
    # Short names
    "quad": quad_in_out,
    "cubic": cubic_in_out,
    "circle": circle_in_out,
    "bounce": bounce_out,
    "elastic": elastic_out,
}


def get_easing(easing: Union[str, EasingFunction, None]) -> EasingFunction:
    """
    Resolves an easing given by name, as a callable, or None (linear).

    Raises:
        PreconditionError: for unknown names.
    """
    if easing is None:
        return linear
    if callable(easing):
        return easing
    try:
        return EASING_FUNCTIONS[easing]
    except KeyError:
        raise PreconditionError(
            f"Unknown easing '{easing}'. Available: "
            f"{', '.join(sorted(EASING_FUNCTIONS))}"
        )
