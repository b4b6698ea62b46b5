import math

import numpy as np
import pytest

from sphereview.core.quaternion import (
    X_AXIS, Y_AXIS, Z_AXIS, Quaternion, multiply, normalize, rotate_vector,
)


def _assert_vec(actual, expected, tol=1e-12):
    assert actual == pytest.approx(expected, abs=tol)


def test_identity_leaves_vectors_unchanged():
    q = Quaternion.identity()
    assert q.as_tuple() == (0.0, 0.0, 0.0, 1.0)
    assert q.rotate_vector((0.3, -0.2, 0.9)) == (0.3, -0.2, 0.9)


def test_quarter_turn_about_z():
    q = Quaternion.from_axis_angle(math.pi / 2, Z_AXIS)
    _assert_vec(q.rotate_vector((1.0, 0.0, 0.0)), (0.0, 1.0, 0.0))
    _assert_vec(q.rotate_vector((0.0, 0.0, 1.0)), (0.0, 0.0, 1.0))


def test_axis_is_normalized():
    a = Quaternion.from_axis_angle(0.7, (0.0, 2.0, 0.0))
    b = Quaternion.from_axis_angle(0.7, Y_AXIS)
    assert a.as_tuple() == pytest.approx(b.as_tuple(), abs=1e-15)
    assert a.norm == pytest.approx(1.0)


@pytest.mark.parametrize("angle, axis", [(0.0, X_AXIS), (1.2, (0.0, 0.0, 0.0))])
def test_degenerate_axis_angle_is_identity(angle, axis):
    assert Quaternion.from_axis_angle(angle, axis) == Quaternion.identity()


def test_product_applies_right_operand_first():
    about_z = Quaternion.from_axis_angle(math.pi / 2, Z_AXIS)
    about_x = Quaternion.from_axis_angle(math.pi / 2, X_AXIS)
    v = (0.0, 1.0, 0.0)

    composed = multiply(about_z, about_x)
    _assert_vec(composed.rotate_vector(v), about_z.rotate_vector(about_x.rotate_vector(v)))
    _assert_vec(composed.rotate_vector(v), (0.0, 0.0, 1.0))

    # Not commutative.
    _assert_vec((about_x * about_z).rotate_vector(v), (-1.0, 0.0, 0.0))


def test_normalize_zero_quaternion_gives_identity(caplog):
    assert normalize(Quaternion(0.0, 0.0, 0.0, 0.0)) == Quaternion.identity()
    assert "degenerate" in caplog.text


def test_normalize_scales_to_unit_length():
    q = Quaternion(1.0, 2.0, 3.0, 4.0).normalized()
    assert q.norm == pytest.approx(1.0)
    assert q.w / q.x == pytest.approx(4.0)


def test_rotation_preserves_length():
    q = Quaternion.from_axis_angle(2.1, (0.3, -0.5, 0.8))
    v = (0.2, 0.4, -1.5)
    assert np.linalg.norm(rotate_vector(q, v)) == pytest.approx(np.linalg.norm(v))


def test_rotation_matrix_matches_rotate_vector():
    q = Quaternion.from_axis_angle(-0.9, (1.0, 1.0, 0.2))
    v = np.array([0.5, -0.1, 0.8])
    _assert_vec(tuple(q.rotation_matrix() @ v), q.rotate_vector(tuple(v)))


def test_conjugate_undoes_rotation():
    q = Quaternion.from_axis_angle(1.1, (0.0, 0.6, 0.8))
    v = (0.1, 0.2, 0.3)
    _assert_vec(q.conjugate().rotate_vector(q.rotate_vector(v)), v)


def test_angle_round_trip():
    assert Quaternion.from_axis_angle(0.8, X_AXIS).angle == pytest.approx(0.8)
    assert Quaternion.identity().angle == 0.0
