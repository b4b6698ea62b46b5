"""Even point distribution on the unit sphere (Fibonacci sphere)."""
from __future__ import annotations

import math
from typing import NamedTuple

import numpy as np

GOLDEN_RATIO = (1.0 + math.sqrt(5.0)) / 2.0


class SpherePoint(NamedTuple):
    """Immutable point on the unit sphere."""
    x: float
    y: float
    z: float


def fibonacci_sphere(count: int) -> np.ndarray:
    """
    Generate `count` points spread evenly over the unit sphere.

    Point i lies at polar angle acos(1 - 2(i + 0.5) / count) and at azimuth
    2*pi * frac(i / golden_ratio). The sequence is deterministic, so the same
    index always maps to the same point for a given count.

    :param count: Number of points. Zero or negative gives an empty array.
    :return: Array of shape (count, 3)
    """
    if count <= 0:
        return np.empty((0, 3), dtype=float)

    indices = np.arange(count, dtype=float)
    theta = np.arccos(1.0 - 2.0 * (indices + 0.5) / count)
    phi = 2.0 * np.pi * np.mod(indices / GOLDEN_RATIO, 1.0)

    sin_theta = np.sin(theta)
    return np.column_stack((
        sin_theta * np.cos(phi),
        sin_theta * np.sin(phi),
        np.cos(theta),
    ))


def generate(count: int) -> tuple[SpherePoint, ...]:
    """Return the Fibonacci sphere points as immutable `SpherePoint` values."""
    return tuple(SpherePoint(float(x), float(y), float(z)) for x, y, z in fibonacci_sphere(count))
