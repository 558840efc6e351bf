import math
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from .errors import NumericDegeneracyError
from .geo.primitives import Point


class AffineTransform:
    """
    An immutable 2D affine transform.

    The six coefficients (a, b, c, d, e, f) describe the matrix

        | a  c  e |
        | b  d  f |
        | 0  0  1 |

    which maps a point (x, y) to (a*x + c*y + e, b*x + d*y + f). Uses numpy
    for the underlying calculations.

    Composition order: rightmost transform applied first. For transforms A
    and B, `A @ B` (or `A.compose(B)`) is the transform that applies B and
    then A, so that

        (A @ B).apply_point(p) == A.apply_point(B.apply_point(p))
    """

    __slots__ = ("_m",)

    def __init__(self, data: Any = None):
        """
        Initializes the transform.

        Args:
            data: Can be another AffineTransform, a sequence of six
                  coefficients (a, b, c, d, e, f), a 3x3 list/tuple or
                  numpy array, or None to create the identity.
        """
        if data is None:
            m = np.identity(3, dtype=float)
        elif isinstance(data, AffineTransform):
            m = data._m.copy()
        else:
            try:
                arr = np.array(data, dtype=float)
            except (TypeError, ValueError) as e:
                raise ValueError(f"Could not create transform from data: {e}")
            if arr.shape == (6,):
                a, b, c, d, e, f = arr
                m = np.array([[a, c, e], [b, d, f], [0.0, 0.0, 1.0]])
            elif arr.shape == (3, 3):
                if not np.allclose(arr[2], (0.0, 0.0, 1.0)):
                    raise ValueError(
                        "Last row of an affine matrix must be 0 0 1"
                    )
                m = arr
            else:
                raise ValueError(
                    "Input data must be six coefficients or a 3x3 matrix."
                )
        m.setflags(write=False)
        object.__setattr__(self, "_m", m)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("AffineTransform is immutable")

    @property
    def m(self) -> np.ndarray:
        """A read-only view of the 3x3 matrix."""
        return self._m

    @property
    def coefficients(self) -> Tuple[float, float, float, float, float, float]:
        m = self._m
        return (
            float(m[0, 0]),
            float(m[1, 0]),
            float(m[0, 1]),
            float(m[1, 1]),
            float(m[0, 2]),
            float(m[1, 2]),
        )

    a = property(lambda self: float(self._m[0, 0]))
    b = property(lambda self: float(self._m[1, 0]))
    c = property(lambda self: float(self._m[0, 1]))
    d = property(lambda self: float(self._m[1, 1]))
    e = property(lambda self: float(self._m[0, 2]))
    f = property(lambda self: float(self._m[1, 2]))

    def __matmul__(self, other: "AffineTransform") -> "AffineTransform":
        """
        Composes two transforms: `self @ other` applies `other` first and
        `self` second.
        """
        if not isinstance(other, AffineTransform):
            return NotImplemented
        return AffineTransform(np.dot(self._m, other._m))

    def compose(self, other: "AffineTransform") -> "AffineTransform":
        """Same as `self @ other`: `other` is applied first."""
        return self @ other

    def then(self, other: "AffineTransform") -> "AffineTransform":
        """Returns the transform that applies `self` first, then `other`."""
        return other @ self

    def __eq__(self, other: Any) -> bool:
        """
        Checks for equality between two transforms.

        Uses np.allclose for floating-point comparisons.
        """
        if not isinstance(other, AffineTransform):
            return False
        return bool(np.allclose(self._m, other._m))

    def __hash__(self) -> int:
        return hash(tuple(round(v, 9) for v in self.coefficients))

    def __repr__(self) -> str:
        """Returns a developer-friendly, evaluatable string representation."""
        return f"AffineTransform({list(self.coefficients)})"

    def __copy__(self) -> "AffineTransform":
        return self

    def __deepcopy__(self, memo: dict) -> "AffineTransform":
        return self

    @staticmethod
    def identity() -> "AffineTransform":
        """Returns the identity transform."""
        return AffineTransform()

    def is_identity(self) -> bool:
        return bool(np.allclose(self._m, np.identity(3)))

    @property
    def determinant(self) -> float:
        return float(self.a * self.d - self.b * self.c)

    def is_similarity(self, tolerance: float = 1e-9) -> bool:
        """
        True if the transform preserves shapes: rotation, uniform scale,
        reflection and translation only. Circles stay circles.
        """
        a, b, c, d = self.a, self.b, self.c, self.d
        len_x = math.hypot(a, b)
        len_y = math.hypot(c, d)
        scale = max(len_x, len_y, 1.0)
        orthogonal = abs(a * c + b * d) <= tolerance * scale * scale
        return orthogonal and math.isclose(
            len_x, len_y, rel_tol=tolerance, abs_tol=tolerance
        )

    def uniform_scale(self) -> float:
        """Geometric mean scale factor, sqrt(|det|)."""
        return math.sqrt(abs(self.determinant))

    @staticmethod
    def translation(tx: float, ty: float) -> "AffineTransform":
        """Creates a translation transform."""
        return AffineTransform((1.0, 0.0, 0.0, 1.0, tx, ty))

    def get_translation(self) -> Tuple[float, float]:
        return (self.e, self.f)

    @staticmethod
    def scaling(
        sx: float, sy: float, center: Optional[Sequence[float]] = None
    ) -> "AffineTransform":
        """
        Creates a scaling transform.

        Args:
            sx: Scale factor for the x-axis.
            sy: Scale factor for the y-axis.
            center: Optional (x, y) point to scale around. If None,
                    scales around the origin (0, 0).
        """
        m = AffineTransform((sx, 0.0, 0.0, sy, 0.0, 0.0))
        if center is not None:
            cx, cy = center[0], center[1]
            # Translate to origin, scale, then translate back
            return (
                AffineTransform.translation(cx, cy)
                @ m
                @ AffineTransform.translation(-cx, -cy)
            )
        return m

    def get_scale(self) -> Tuple[float, float]:
        """
        Extracts the scale components (sx, sy) as the lengths of the
        transformed basis vectors. Always positive.
        """
        return math.hypot(self.a, self.b), math.hypot(self.c, self.d)

    @staticmethod
    def rotation(
        angle_deg: float, center: Optional[Sequence[float]] = None
    ) -> "AffineTransform":
        """
        Creates a rotation transform. Positive angles rotate
        counter-clockwise in a Y-up coordinate system.

        Args:
            angle_deg: The rotation angle in degrees.
            center: Optional (x, y) point to rotate around. If None,
                    rotates around the origin (0, 0).
        """
        angle_rad = math.radians(angle_deg)
        c = math.cos(angle_rad)
        s = math.sin(angle_rad)
        m = AffineTransform((c, s, -s, c, 0.0, 0.0))
        if center is not None:
            cx, cy = center[0], center[1]
            return (
                AffineTransform.translation(cx, cy)
                @ m
                @ AffineTransform.translation(-cx, -cy)
            )
        return m

    @staticmethod
    def skewing(ax_deg: float, ay_deg: float) -> "AffineTransform":
        """
        Creates a skew transform. `ax_deg` slants the y-axis towards x,
        `ay_deg` slants the x-axis towards y.
        """
        tx = math.tan(math.radians(ax_deg))
        ty = math.tan(math.radians(ay_deg))
        return AffineTransform((1.0, ty, tx, 1.0, 0.0, 0.0))

    # Chainable builders. Each composes with the new transform on the
    # right, so the most recently added step is applied first.

    def translate(self, tx: float, ty: float) -> "AffineTransform":
        return self @ AffineTransform.translation(tx, ty)

    def rotate(
        self, angle_deg: float, center: Optional[Sequence[float]] = None
    ) -> "AffineTransform":
        return self @ AffineTransform.rotation(angle_deg, center)

    def scale(
        self,
        sx: float,
        sy: Optional[float] = None,
        center: Optional[Sequence[float]] = None,
    ) -> "AffineTransform":
        return self @ AffineTransform.scaling(
            sx, sx if sy is None else sy, center
        )

    def skew(self, ax_deg: float, ay_deg: float) -> "AffineTransform":
        return self @ AffineTransform.skewing(ax_deg, ay_deg)

    def invert(self) -> "AffineTransform":
        """
        Computes the inverse transform.

        Raises:
            NumericDegeneracyError: if the transform is singular, for
                example a scale of zero.
        """
        if abs(self.determinant) < 1e-12:
            raise NumericDegeneracyError(
                f"Cannot invert singular transform {self!r}"
            )
        return AffineTransform(np.linalg.inv(self._m))

    def apply_point(self, point: Sequence[float]) -> Point:
        """Applies the full affine transformation to a 2D point."""
        x, y = point[0], point[1]
        m = self._m
        return Point(
            float(m[0, 0] * x + m[0, 1] * y + m[0, 2]),
            float(m[1, 0] * x + m[1, 1] * y + m[1, 2]),
        )

    def apply_vector(self, vector: Sequence[float]) -> Tuple[float, float]:
        """
        Applies the transformation to a 2D vector, ignoring translation.
        Useful for transforming direction or delta values.
        """
        x, y = vector[0], vector[1]
        m = self._m
        return (
            float(m[0, 0] * x + m[0, 1] * y),
            float(m[1, 0] * x + m[1, 1] * y),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"coefficients": list(self.coefficients)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AffineTransform":
        return cls(data["coefficients"])


def compose(*transforms: AffineTransform) -> AffineTransform:
    """
    Composes any number of transforms. The rightmost transform is applied
    first: compose(A, B, C) applies C, then B, then A.
    """
    result = AffineTransform.identity()
    for t in transforms:
        result = result @ t
    return result
