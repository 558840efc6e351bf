import copy
import math

import numpy as np
import pytest

from pathforge.core.errors import NumericDegeneracyError
from pathforge.core.matrix import AffineTransform, compose


class TestAffineTransform:
    def test_initialization(self):
        # Default initialization should be identity
        m1 = AffineTransform()
        assert m1 == AffineTransform(np.identity(3))
        assert m1.is_identity()

        # Initialization from six coefficients
        m2 = AffineTransform((1, 2, 3, 4, 5, 6))
        assert m2.coefficients == (1, 2, 3, 4, 5, 6)
        assert np.array_equal(
            m2.m, np.array([[1, 3, 5], [2, 4, 6], [0, 0, 1]])
        )

        # Initialization from another transform
        m3 = AffineTransform(m2)
        assert m3 == m2
        assert m3 is not m2

        # Invalid initialization
        with pytest.raises(ValueError):
            AffineTransform([[1, 2], [3, 4]])  # Wrong shape
        with pytest.raises(ValueError):
            AffineTransform([[1, 0, 0], [0, 1, 0], [1, 1, 1]])  # Not affine

    def test_immutability(self):
        m = AffineTransform.translation(1, 2)
        with pytest.raises(AttributeError):
            m.foo = 1  # type: ignore[attr-defined]
        with pytest.raises(ValueError):
            m.m[0, 0] = 5.0

    def test_equality(self):
        m1 = AffineTransform.translation(10, 20)
        m2 = AffineTransform.translation(10, 20)
        m3 = AffineTransform.translation(10, 21)
        assert m1 == m2
        assert m1 != m3
        assert m1 != "not a transform"
        assert hash(m1) == hash(m2)

    def test_copying(self):
        m1 = AffineTransform.rotation(45)
        # Immutable values can be shared by copies
        assert copy.copy(m1) == m1
        assert copy.deepcopy(m1) == m1

    def test_identity(self):
        ident = AffineTransform.identity()
        p = (123, 456)
        assert ident.apply_point(p) == pytest.approx(p)

    def test_translation(self):
        m = AffineTransform.translation(50, -30)
        assert m.apply_point((0, 0)) == pytest.approx((50, -30))
        assert m.apply_point((10, 10)) == pytest.approx((60, -20))
        assert m.get_translation() == (50, -30)

    def test_scaling(self):
        # Scale around origin
        m = AffineTransform.scaling(2, 3)
        assert m.apply_point((10, 10)) == pytest.approx((20, 30))
        assert m.get_scale() == pytest.approx((2, 3))

        # Scale around a center point
        m_center = AffineTransform.scaling(2, 3, center=(10, 10))
        assert m_center.apply_point((10, 10)) == pytest.approx((10, 10))
        assert m_center.apply_point((20, 15)) == pytest.approx((30, 25))

    def test_rotation(self):
        # Rotate around origin
        m90 = AffineTransform.rotation(90)
        assert m90.apply_point((10, 0)) == pytest.approx((0, 10))

        m180 = AffineTransform.rotation(180)
        assert m180.apply_point((10, 0)) == pytest.approx((-10, 0))

        # Rotate around a center point
        m_center = AffineTransform.rotation(90, center=(10, 10))
        assert m_center.apply_point((10, 10)) == pytest.approx((10, 10))
        assert m_center.apply_point((20, 10)) == pytest.approx((10, 20))

    def test_skewing(self):
        m = AffineTransform.skewing(45, 0)
        assert m.apply_point((0, 10)) == pytest.approx((10, 10))
        assert m.apply_point((10, 0)) == pytest.approx((10, 0))

    def test_composition_order(self):
        # The rightmost transform is applied first
        T = AffineTransform.translation(100, 0)
        R = AffineTransform.rotation(90)

        p = (10, 20)
        p_separate = R.apply_point(T.apply_point(p))
        assert (R @ T).apply_point(p) == pytest.approx(p_separate)
        assert R.compose(T).apply_point(p) == pytest.approx(p_separate)
        assert T.then(R).apply_point(p) == pytest.approx(p_separate)
        assert compose(R, T).apply_point(p) == pytest.approx(p_separate)
        # (110, 20) rotated by 90 degrees
        assert p_separate == pytest.approx((-20, 110))

    def test_compose_many(self):
        S = AffineTransform.scaling(2, 2)
        R = AffineTransform.rotation(30)
        T = AffineTransform.translation(-5, 7)
        p = (3, 4)
        expected = S.apply_point(R.apply_point(T.apply_point(p)))
        assert compose(S, R, T).apply_point(p) == pytest.approx(expected)
        assert compose() == AffineTransform.identity()

    def test_chainers(self):
        # Each chained step is applied before the previous ones
        m = AffineTransform.identity().translate(10, 0).scale(2)
        assert m.apply_point((1, 1)) == pytest.approx((12, 2))

        m = AffineTransform.identity().rotate(90).skew(0, 0)
        assert m.apply_point((1, 0)) == pytest.approx((0, 1))

    def test_inversion(self):
        T = AffineTransform.translation(55, -21)
        R = AffineTransform.rotation(33)
        S = AffineTransform.scaling(2, 0.5)

        M = S @ R @ T
        M_inv = M.invert()
        assert M_inv @ M == AffineTransform.identity()

        p_start = (12, 34)
        p_restored = M_inv.apply_point(M.apply_point(p_start))
        assert p_restored == pytest.approx(p_start)

    def test_invert_singular(self):
        with pytest.raises(NumericDegeneracyError):
            AffineTransform.scaling(0, 1).invert()

    def test_apply_vector_ignores_translation(self):
        m = AffineTransform.translation(5, 5) @ AffineTransform.scaling(2, 3)
        assert m.apply_vector((1, 1)) == pytest.approx((2, 3))

    def test_similarity(self):
        assert AffineTransform.rotation(30).scale(3).is_similarity()
        assert AffineTransform.scaling(-2, 2).is_similarity()
        assert not AffineTransform.scaling(2, 1).is_similarity()
        assert not AffineTransform.skewing(20, 0).is_similarity()
        assert AffineTransform.scaling(3, 3).uniform_scale() == (
            pytest.approx(3)
        )
        assert AffineTransform.scaling(2, 3).determinant == pytest.approx(6)

    def test_nan_propagates(self):
        m = AffineTransform.translation(1, 1)
        x, _ = m.apply_point((math.nan, 0))
        assert math.isnan(x)

    def test_serialization(self):
        m = AffineTransform.rotation(12).translate(3, 4)
        restored = AffineTransform.from_dict(m.to_dict())
        assert restored == m
        assert repr(m).startswith("AffineTransform([")
