"""Minimal unit quaternion used to orient the sphere."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

logger = logging.getLogger(__name__)

Vector3 = Tuple[float, float, float]

X_AXIS: Vector3 = (1.0, 0.0, 0.0)
Y_AXIS: Vector3 = (0.0, 1.0, 0.0)
Z_AXIS: Vector3 = (0.0, 0.0, 1.0)


@dataclass(frozen=True)
class Quaternion:
    """
    Immutable quaternion with vector part (x, y, z) and scalar part w.

    A rotation by `angle` about the unit axis n is stored as
    (n * sin(angle / 2), cos(angle / 2)).

    Composition follows the Hamilton product: ``a * b`` applies ``b`` first,
    then ``a``.
    """
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    @classmethod
    def identity(cls) -> Quaternion:
        return cls(0.0, 0.0, 0.0, 1.0)

    @classmethod
    def from_axis_angle(cls, angle: float, axis: Vector3) -> Quaternion:
        """
        Create a rotation quaternion.

        :param angle: Rotation angle in radians
        :param axis: Rotation axis, normalized here
        :return: Unit quaternion. Zero angle or zero axis gives the identity.
        """
        ax, ay, az = axis
        length = math.sqrt(ax * ax + ay * ay + az * az)
        if angle == 0.0 or length == 0.0:
            return cls.identity()

        half = angle / 2.0
        s = math.sin(half) / length
        return cls(ax * s, ay * s, az * s, math.cos(half))

    @property
    def norm(self) -> float:
        return math.sqrt(self.x ** 2 + self.y ** 2 + self.z ** 2 + self.w ** 2)

    @property
    def angle(self) -> float:
        """Rotation angle in radians, in [0, 2*pi]."""
        w = max(-1.0, min(1.0, self.w))
        return 2.0 * math.acos(w)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.z, self.w

    def conjugate(self) -> Quaternion:
        return Quaternion(-self.x, -self.y, -self.z, self.w)

    def normalized(self) -> Quaternion:
        """
        Return the unit quaternion pointing in the same direction.

        A zero or non-finite quaternion has no direction; it is mapped to the
        identity rather than divided by zero.
        """
        n = self.norm
        if n == 0.0 or not math.isfinite(n):
            logger.warning("Cannot normalize degenerate quaternion %s, using identity.", self)
            return Quaternion.identity()
        return Quaternion(self.x / n, self.y / n, self.z / n, self.w / n)

    def __mul__(self, other: Quaternion) -> Quaternion:
        if not isinstance(other, Quaternion):
            return NotImplemented
        x1, y1, z1, w1 = self.as_tuple()
        x2, y2, z2, w2 = other.as_tuple()
        return Quaternion(
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
        )

    def rotate_vector(self, vector: Vector3) -> Vector3:
        """
        Rotate a 3D vector by this quaternion (q * v * q^-1).

        Uses the expanded form v' = v + 2w(u x v) + 2u x (u x v), where u is
        the vector part. Expects a unit quaternion.
        """
        vx, vy, vz = vector
        ux, uy, uz, w = self.as_tuple()

        # t = 2 * (u x v)
        tx = 2.0 * (uy * vz - uz * vy)
        ty = 2.0 * (uz * vx - ux * vz)
        tz = 2.0 * (ux * vy - uy * vx)

        return (
            vx + w * tx + (uy * tz - uz * ty),
            vy + w * ty + (uz * tx - ux * tz),
            vz + w * tz + (ux * ty - uy * tx),
        )

    def rotation_matrix(self) -> np.ndarray:
        """3x3 rotation matrix equivalent to `rotate_vector`."""
        x, y, z, w = self.as_tuple()
        return np.array([
            [1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - z * w), 2.0 * (x * z + y * w)],
            [2.0 * (x * y + z * w), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - x * w)],
            [2.0 * (x * z - y * w), 2.0 * (y * z + x * w), 1.0 - 2.0 * (x * x + y * y)],
        ], dtype=float)

    def __str__(self) -> str:
        return f"Quaternion(x={self.x:.4f}, y={self.y:.4f}, z={self.z:.4f}, w={self.w:.4f})"


def multiply(a: Quaternion, b: Quaternion) -> Quaternion:
    """Compose two rotations: the result applies `b`, then `a`."""
    return a * b


def normalize(q: Quaternion) -> Quaternion:
    return q.normalized()


def rotate_vector(q: Quaternion, vector: Vector3) -> Vector3:
    return q.rotate_vector(vector)
