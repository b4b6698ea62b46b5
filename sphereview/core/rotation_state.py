"""Rotation state management separated from UI concerns."""
from __future__ import annotations

import logging
import math
from typing import Callable

from sphereview.core.quaternion import X_AXIS, Y_AXIS, Quaternion

logger = logging.getLogger(__name__)

DEFAULT_SENSITIVITY = 0.01


def _sanitize_sensitivity(value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid sensitivity %r, using %s", value, DEFAULT_SENSITIVITY)
        return DEFAULT_SENSITIVITY
    if not math.isfinite(value) or value < 0.0:
        logger.warning("Sensitivity %r clamped to 0.0", value)
        return 0.0
    return value


class RotationState:
    """
    Owns the global orientation of the sphere.

    Responsible for:
    - Accumulating pan deltas as rotations about the world X and Y axes.
    - Keeping the stored quaternion at unit length after every update.
    - Callbacks for rotation changes (no layout is triggered from here).
    """

    def __init__(self, sensitivity: float = DEFAULT_SENSITIVITY):
        self._rotation: Quaternion = Quaternion.identity()
        self._sensitivity: float = _sanitize_sensitivity(sensitivity)
        self._on_rotation_changed_callbacks: list[Callable[[Quaternion], None]] = []

    @property
    def current(self) -> Quaternion:
        """Current orientation. Quaternions are immutable, so this is a safe copy."""
        return self._rotation

    @property
    def sensitivity(self) -> float:
        """Radians of rotation per unit of gesture delta."""
        return self._sensitivity

    @sensitivity.setter
    def sensitivity(self, value: float) -> None:
        self._sensitivity = _sanitize_sensitivity(value)

    def apply_delta(self, delta_x: float, delta_y: float, sensitivity: float | None = None) -> Quaternion:
        """
        Rotate the sphere by a 2-axis delta.

        `delta_y` turns the sphere about the world X axis and `delta_x` about
        the world Y axis. The increment is composed Y-then-X and multiplied on
        the left of the accumulated rotation, so a drag in one screen
        direction always looks the same whatever the current orientation.

        :param delta_x: Delta mapped onto the Y axis
        :param delta_y: Delta mapped onto the X axis
        :param sensitivity: Radians per delta unit, defaults to `self.sensitivity`
        :return: New orientation
        """
        if not (math.isfinite(delta_x) and math.isfinite(delta_y)):
            logger.warning("Ignoring non-finite rotation delta: %s, %s", delta_x, delta_y)
            return self._rotation

        s = self._sensitivity if sensitivity is None else _sanitize_sensitivity(sensitivity)
        return self._compose(delta_y * s, delta_x * s)

    def rotate_by(self, x_radians: float, y_radians: float) -> Quaternion:
        """Rotate by angles given directly in radians about the world X and Y axes."""
        return self.apply_delta(y_radians, x_radians, sensitivity=1.0)

    def reset(self) -> None:
        """Reset to the identity orientation."""
        self._set_rotation(Quaternion.identity())
        logger.debug("Rotation reset to identity")

    def add_rotation_changed_callback(self, callback: Callable[[Quaternion], None]) -> None:
        """
        Add a callback for rotation changes.

        Callback signature: callback(rotation: Quaternion) -> None
        """
        self._on_rotation_changed_callbacks.append(callback)

    def remove_rotation_changed_callback(self, callback: Callable[[Quaternion], None]) -> None:
        self._on_rotation_changed_callbacks.remove(callback)

    def _compose(self, rotation_x: float, rotation_y: float) -> Quaternion:
        if rotation_x == 0.0 and rotation_y == 0.0:
            return self._rotation

        quaternion_x = Quaternion.from_axis_angle(rotation_x, X_AXIS)
        quaternion_y = Quaternion.from_axis_angle(rotation_y, Y_AXIS)

        increment = quaternion_y * quaternion_x
        self._set_rotation((increment * self._rotation).normalized())

        logger.debug("Rotation delta: x=%.5f rad, y=%.5f rad", rotation_x, rotation_y)
        return self._rotation

    def _set_rotation(self, rotation: Quaternion) -> None:
        if rotation == self._rotation:
            return
        self._rotation = rotation
        self._notify_rotation_changed()

    def _notify_rotation_changed(self) -> None:
        for callback in self._on_rotation_changed_callbacks:
            try:
                callback(self._rotation)
            except Exception as e:
                logger.exception(f"Error in rotation changed callback: {e}")
