"""Projection of the rotated sphere points onto the 2D viewport."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, NamedTuple, Sequence

import numpy as np

from sphereview.core.quaternion import Quaternion, Vector3
from sphereview.core.sphere_points import fibonacci_sphere

logger = logging.getLogger(__name__)

MIN_SCALE = 0.3
OPACITY_OFFSET = 0.1


class Point2D(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True)
class ElementLayout:
    """
    Placement of one element for a single layout pass.

    Attributes:
        index: Element index in the caller's enumeration order
        position: Center of the element on screen
        scale: Uniform scale factor in [0.3, 1.0], larger is nearer
        opacity: Depth-derived opacity, or None when depth opacity is disabled
        stacking_order: Draw order value, equal to `scale`
        front_facing: True for elements on the near hemisphere (depth < 0)
        depth: Rotated z coordinate of the element on the unit sphere
    """
    index: int
    position: Point2D
    scale: float
    opacity: float | None
    stacking_order: float
    front_facing: bool
    depth: float


def _sanitize_radius(radius: float) -> float:
    if not math.isfinite(radius) or radius < 0.0:
        logger.warning("Radius %r clamped to 0.0", radius)
        return 0.0
    return float(radius)


def project_point(
        index: int,
        point: Vector3,
        radius: float,
        viewport_center: tuple[float, float],
        opacity_enabled: bool,
) -> ElementLayout:
    """
    Project an already rotated unit-sphere point.

    :param index: Element index stored in the result
    :param point: Rotated point (x, y, z)
    :param radius: Sphere radius in screen units
    :param viewport_center: Screen position of the sphere center
    :param opacity_enabled: Whether to derive opacity from depth
    """
    x, y, z = (float(c) for c in point)
    cx, cy = viewport_center

    normalized_z = (z + 1.0) / 2.0
    # Rounding can push |z| slightly past 1.
    scale = min(max(1.0 - normalized_z, MIN_SCALE), 1.0)

    return ElementLayout(
        index=index,
        position=Point2D(x * radius + cx, y * radius + cy),
        scale=scale,
        opacity=scale + OPACITY_OFFSET if opacity_enabled else None,
        stacking_order=scale,
        front_facing=z < 0.0,
        depth=z,
    )


def _layout_from_points(
        points: np.ndarray,
        radius: float,
        rotation: Quaternion,
        viewport_center: tuple[float, float],
        opacity_enabled: bool,
) -> tuple[ElementLayout, ...]:
    count = len(points)
    if count == 0:
        return ()

    radius = _sanitize_radius(radius)
    rotated = points @ rotation.rotation_matrix().T

    # Elements are assigned to the generated points in reverse order.
    return tuple(
        project_point(index, rotated[count - 1 - index], radius, viewport_center, opacity_enabled)
        for index in range(count)
    )


def compute_layout(
        element_count: int,
        radius: float,
        rotation: Quaternion,
        viewport_center: tuple[float, float],
        opacity_enabled: bool = True,
) -> tuple[ElementLayout, ...]:
    """
    Compute the placement of every element on the rotated sphere.

    Element k is placed on Fibonacci point (count - 1 - k).

    :param element_count: Number of elements, negative is treated as 0
    :param radius: Sphere radius, negative is treated as 0
    :param rotation: Current sphere orientation
    :param viewport_center: Screen position of the sphere center
    :param opacity_enabled: Whether to derive opacity from depth
    :return: One ElementLayout per element index, in index order
    """
    return _layout_from_points(
        fibonacci_sphere(max(0, element_count)), radius, rotation, viewport_center, opacity_enabled
    )


def draw_order(layouts: Iterable[ElementLayout]) -> list[int]:
    """Element indices sorted back to front by stacking order."""
    return [layout.index for layout in sorted(layouts, key=lambda layout: layout.stacking_order)]


class LayoutEngine:
    """Layout computation with the unrotated points cached per element count."""

    def __init__(self) -> None:
        self._cached_count: int | None = None
        self._cached_points: np.ndarray = np.empty((0, 3), dtype=float)

    def points_for(self, count: int) -> np.ndarray:
        count = max(0, count)
        if count != self._cached_count:
            self._cached_points = fibonacci_sphere(count)
            self._cached_count = count
            logger.debug("Generated %d sphere points", count)
        return self._cached_points

    def compute(
            self,
            element_count: int,
            radius: float,
            rotation: Quaternion,
            viewport_center: tuple[float, float],
            opacity_enabled: bool = True,
    ) -> tuple[ElementLayout, ...]:
        return _layout_from_points(
            self.points_for(element_count), radius, rotation, viewport_center, opacity_enabled
        )


def layouts_equal(a: Sequence[ElementLayout], b: Sequence[ElementLayout], tol: float = 1e-9) -> bool:
    """Compare two layout passes field by field within a tolerance."""
    if len(a) != len(b):
        return False
    for la, lb in zip(a, b):
        if la.index != lb.index or la.front_facing != lb.front_facing:
            return False
        if (la.opacity is None) != (lb.opacity is None):
            return False
        values_a = (la.position.x, la.position.y, la.scale, la.depth, la.opacity or 0.0)
        values_b = (lb.position.x, lb.position.y, lb.scale, lb.depth, lb.opacity or 0.0)
        if any(abs(va - vb) > tol for va, vb in zip(values_a, values_b)):
            return False
    return True
