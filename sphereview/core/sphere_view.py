"""Sphere view controller - the host-facing interface of the layout engine."""
from __future__ import annotations

import logging
import math
from typing import Callable, Iterable

from sphereview.core.gestures import GestureAdapter
from sphereview.core.inertia import DecayConfig, InertialDecayController, TickScheduler
from sphereview.core.layout import ElementLayout, LayoutEngine
from sphereview.core.quaternion import Quaternion
from sphereview.core.rotation_state import DEFAULT_SENSITIVITY, RotationState
from sphereview.utils.log_util import log_io

logger = logging.getLogger(__name__)


def _sanitize_length(value: float, name: str) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid %s %r, using 0.0", name, value)
        return 0.0
    if not math.isfinite(value) or value < 0.0:
        logger.warning("%s %r clamped to 0.0", name.capitalize(), value)
        return 0.0
    return value


class SphereViewController:
    """
    Central coordinator of the sphere layout.

    The controller never pushes layouts. Every mutation marks the layout as
    dirty and notifies layout-invalidated callbacks; the host then calls
    `recompute_layout()` and applies the results to its own elements by index.

    Usage:
        controller = SphereViewController(scheduler, element_count=100, viewport_size=(400, 400))
        controller.add_layout_invalidated_callback(host.request_update)
        controller.on_pan_delta(dx, dy)
        layouts = controller.recompute_layout()
    """

    def __init__(self,
                 scheduler: TickScheduler,
                 element_count: int = 0,
                 viewport_size: tuple[float, float] = (0.0, 0.0),
                 radius: float | None = None,
                 sensitivity: float = DEFAULT_SENSITIVITY,
                 opacity_enabled: bool = True,
                 decay_config: DecayConfig | None = None) -> None:
        """
        :param scheduler: Repeating timer facility used for deceleration
        :param element_count: Number of elements on the sphere
        :param viewport_size: (width, height) of the drawing area
        :param radius: Initial radius; defaults to half the viewport width
        :param sensitivity: Radians per unit of pan delta
        :param opacity_enabled: Whether opacity is derived from depth
        :param decay_config: Deceleration constants
        """
        self._element_count = max(0, int(element_count))
        self._viewport_size = (
            _sanitize_length(viewport_size[0], "viewport width"),
            _sanitize_length(viewport_size[1], "viewport height"),
        )
        self._opacity_enabled = bool(opacity_enabled)

        # None means "half the viewport width", recomputed on resize.
        self._home_radius: float | None = None if radius is None else _sanitize_length(radius, "radius")
        self._radius_follows_viewport = radius is None
        self._radius = self._default_radius()

        self.rotation_state = RotationState(sensitivity)
        self.decay = InertialDecayController(self.rotation_state, scheduler, decay_config)
        self.gestures = GestureAdapter(self.rotation_state, self.decay, self._apply_radius, self._radius)

        self._engine = LayoutEngine()
        self._needs_layout = True
        self._on_layout_invalidated_callbacks: list[Callable[[], None]] = []

        self.decay.add_tick_callback(self._invalidate)

        logger.debug("[SphereViewController] Initialized: count=%d radius=%.2f",
                     self._element_count, self._radius)

    # =====================================================
    # Read accessors
    # =====================================================

    @property
    def element_count(self) -> int:
        return self._element_count

    @property
    def radius(self) -> float:
        return self._radius

    @property
    def rotation(self) -> Quaternion:
        return self.rotation_state.current

    @property
    def sensitivity(self) -> float:
        return self.rotation_state.sensitivity

    @property
    def opacity_enabled(self) -> bool:
        return self._opacity_enabled

    @property
    def viewport_size(self) -> tuple[float, float]:
        return self._viewport_size

    @property
    def viewport_center(self) -> tuple[float, float]:
        width, height = self._viewport_size
        return width / 2.0, height / 2.0

    @property
    def is_decelerating(self) -> bool:
        return self.decay.is_running

    @property
    def needs_layout(self) -> bool:
        return self._needs_layout

    @property
    def scroll_enabled(self) -> bool:
        return self.gestures.scroll_enabled

    @property
    def pinch_enabled(self) -> bool:
        return self.gestures.pinch_enabled

    def add_layout_invalidated_callback(self, callback: Callable[[], None]) -> None:
        """
        Add a callback invoked whenever a new layout pass is needed.

        Callback signature: callback() -> None
        """
        self._on_layout_invalidated_callbacks.append(callback)

    def remove_layout_invalidated_callback(self, callback: Callable[[], None]) -> None:
        self._on_layout_invalidated_callbacks.remove(callback)

    # =====================================================
    # Configuration
    # =====================================================

    def set_element_count(self, count: int) -> None:
        if count < 0:
            logger.warning("Element count %r clamped to 0", count)
        self._element_count = max(0, int(count))
        self._invalidate()

    def set_radius(self, radius: float) -> None:
        """Set the radius explicitly and make it the pinch baseline."""
        radius = _sanitize_length(radius, "radius")
        self._radius_follows_viewport = False
        self.gestures.commit_radius(radius)
        self._apply_radius(radius)

    def set_sensitivity(self, sensitivity: float) -> None:
        self.rotation_state.sensitivity = sensitivity
        self._invalidate()

    def set_opacity_adjustment_enabled(self, enabled: bool) -> None:
        self._opacity_enabled = bool(enabled)
        self._invalidate()

    def set_viewport_size(self, width: float, height: float) -> None:
        self._viewport_size = (
            _sanitize_length(width, "viewport width"),
            _sanitize_length(height, "viewport height"),
        )
        if self._radius_follows_viewport:
            radius = self._default_radius()
            self.gestures.commit_radius(radius)
            self._radius = radius
        self._invalidate()

    def set_scroll_enabled(self, enabled: bool) -> None:
        self.gestures.scroll_enabled = bool(enabled)
        if not enabled:
            self.decay.cancel()

    def set_pinch_enabled(self, enabled: bool) -> None:
        self.gestures.pinch_enabled = bool(enabled)

    # =====================================================
    # Gesture ingestion
    # =====================================================

    def on_pan_began(self) -> None:
        self.gestures.pan_began()

    def on_pan_delta(self, dx: float, dy: float) -> None:
        if self.gestures.pan_changed(dx, dy):
            self._invalidate()

    def on_pan_end(self, velocity_x: float, velocity_y: float) -> None:
        self.gestures.pan_ended(velocity_x, velocity_y)

    def on_pinch_began(self) -> None:
        self.gestures.pinch_began()

    def on_pinch_changed(self, scale: float) -> None:
        self.gestures.pinch_changed(scale)

    def on_pinch_end(self, scale: float) -> None:
        self.gestures.pinch_ended(scale)

    # =====================================================
    # Commands
    # =====================================================

    def rotate_by(self, x_radians: float, y_radians: float) -> None:
        """Rotate about the world X and Y axes by angles in radians."""
        self.decay.cancel()
        self.rotation_state.rotate_by(x_radians, y_radians)
        self._invalidate()

    def reset_rotation(self) -> None:
        self.decay.cancel()
        self.rotation_state.reset()
        self._invalidate()

    def reset_zoom(self) -> None:
        """Restore the auto-fit radius, or half the viewport width if never fitted."""
        if self._home_radius is None:
            self._radius_follows_viewport = True
        radius = self._default_radius()
        self.gestures.commit_radius(radius)
        self._apply_radius(radius)

    @log_io(logging.DEBUG)
    def reset_transform(self) -> None:
        """Cancel deceleration and reset rotation and zoom."""
        self.gestures.cancel()
        self.reset_rotation()
        self.reset_zoom()
        logger.info("Sphere transform reset: radius=%.2f", self._radius)

    @log_io(logging.DEBUG)
    def auto_fit_radius(self, viewport_width: float, average_element_size: float) -> float:
        """
        Fit the radius to the viewport from the average element size.

        :param viewport_width: Available width
        :param average_element_size: Mean element width
        :return: New radius
        """
        viewport_width = _sanitize_length(viewport_width, "viewport width")
        average_element_size = _sanitize_length(average_element_size, "average element size")
        if average_element_size == 0.0:
            logger.warning("Cannot auto-fit with average element size 0, using half viewport width")
            radius = viewport_width / 2.0
        else:
            items_fit_in_width = viewport_width / average_element_size
            radius = items_fit_in_width * average_element_size

        self._home_radius = radius
        self._radius_follows_viewport = False
        self.gestures.commit_radius(radius)
        self._apply_radius(radius)
        logger.info("Auto-fit radius: %.2f", radius)
        return radius

    def invalidate_layout(self, element_sizes: Iterable[float]) -> float:
        """Auto-fit the radius to the current viewport from individual element widths."""
        sizes = list(element_sizes)
        average = sum(sizes) / len(sizes) if sizes else 0.0
        return self.auto_fit_radius(self._viewport_size[0], average)

    def recompute_layout(self) -> tuple[ElementLayout, ...]:
        """Compute the placement of every element for the current state."""
        layouts = self._engine.compute(
            self._element_count,
            self._radius,
            self.rotation_state.current,
            self.viewport_center,
            self._opacity_enabled,
        )
        self._needs_layout = False
        return layouts

    # =====================================================
    # Internals
    # =====================================================

    def _default_radius(self) -> float:
        if self._home_radius is not None:
            return self._home_radius
        return self._viewport_size[0] / 2.0

    def _apply_radius(self, radius: float) -> None:
        self._radius = _sanitize_length(radius, "radius")
        self._invalidate()

    def _invalidate(self) -> None:
        self._needs_layout = True
        for callback in self._on_layout_invalidated_callbacks:
            try:
                callback()
            except Exception as e:
                logger.exception(f"Error in layout invalidated callback: {e}")
