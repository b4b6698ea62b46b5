import math

import numpy as np
import pytest

from sphereview.core.sphere_points import SpherePoint, fibonacci_sphere, generate


@pytest.mark.parametrize("count", [1, 2, 7, 100, 1000])
def test_points_are_on_unit_sphere(count):
    points = fibonacci_sphere(count)
    assert points.shape == (count, 3)
    assert np.allclose(np.linalg.norm(points, axis=1), 1.0, atol=1e-12)


@pytest.mark.parametrize("count", [0, -1, -50])
def test_non_positive_count_is_empty(count):
    assert fibonacci_sphere(count).shape == (0, 3)
    assert generate(count) == ()


def test_generation_is_deterministic():
    assert generate(50) == generate(50)


def test_z_descends_evenly():
    count = 10
    z = fibonacci_sphere(count)[:, 2]
    expected = [1.0 - 2.0 * (i + 0.5) / count for i in range(count)]
    assert z == pytest.approx(expected, abs=1e-12)


def test_single_point_lies_on_equator():
    """theta = acos(0) = pi/2 and phi = 0 put the only point at (1, 0, 0)."""
    (point,) = generate(1)
    assert isinstance(point, SpherePoint)
    assert (point.x, point.y, point.z) == pytest.approx((1.0, 0.0, 0.0), abs=1e-12)


def test_first_point_of_four():
    point = generate(4)[0]
    assert point.x == pytest.approx(math.sqrt(1.0 - 0.75 ** 2))
    assert point.y == pytest.approx(0.0, abs=1e-15)
    assert point.z == pytest.approx(0.75)


def test_points_cover_both_hemispheres():
    points = fibonacci_sphere(200)
    assert (points[:, 2] > 0).sum() == 100
    assert abs(points.mean(axis=0)).max() < 0.05
