"""Gesture adapter - turns pan and pinch samples into rotation and radius changes."""
from __future__ import annotations

import logging
import math
from enum import Enum, auto
from typing import Callable

from sphereview.core.inertia import InertialDecayController
from sphereview.core.rotation_state import RotationState

logger = logging.getLogger(__name__)


class GesturePhase(Enum):
    """Enum for the gesture currently in progress."""
    NONE = auto()
    PANNING = auto()
    PINCHING = auto()


class GestureAdapter:
    """
    Bridges raw gesture samples to the rotation state and sphere radius.

    Pan:
    - began: cancel any running deceleration
    - changed: incremental translation (dx, dy), X is inverted
    - ended: release velocity is handed to the decay controller

    Pinch:
    - began: capture the committed radius as baseline
    - changed: live radius = scale * baseline (not committed)
    - ended: baseline = scale * baseline
    """

    def __init__(self,
                 rotation_state: RotationState,
                 decay_controller: InertialDecayController,
                 set_radius: Callable[[float], None],
                 initial_radius: float = 0.0) -> None:
        self._rotation_state = rotation_state
        self._decay = decay_controller
        self._set_radius = set_radius
        self._committed_radius = max(0.0, initial_radius)
        self._phase = GesturePhase.NONE

        self.scroll_enabled: bool = True
        self.pinch_enabled: bool = True

    @property
    def phase(self) -> GesturePhase:
        return self._phase

    @property
    def committed_radius(self) -> float:
        """Radius baseline that pinch scale factors are applied to."""
        return self._committed_radius

    def commit_radius(self, radius: float) -> None:
        """Reset the pinch baseline, e.g. after reset or auto-fit."""
        self._committed_radius = max(0.0, radius)

    # =====================================================
    # Pan
    # =====================================================

    def pan_began(self) -> bool:
        if not self.scroll_enabled:
            return False
        self._decay.cancel()
        self._phase = GesturePhase.PANNING
        return True

    def pan_changed(self, dx: float, dy: float) -> bool:
        """
        Apply an incremental pan translation.

        :param dx: Horizontal translation since the last sample
        :param dy: Vertical translation since the last sample
        :return: True if the rotation changed and a relayout is needed
        """
        if not self.scroll_enabled:
            return False
        if self._phase is not GesturePhase.PANNING:
            # Samples without a began event still cancel a running fling.
            self.pan_began()

        before = self._rotation_state.current
        self._rotation_state.apply_delta(-dx, dy)
        return self._rotation_state.current != before

    def pan_ended(self, velocity_x: float, velocity_y: float) -> bool:
        """
        Finish the pan and start decelerating.

        :return: True if a deceleration session started
        """
        if not self.scroll_enabled:
            return False
        self._phase = GesturePhase.NONE
        if not (math.isfinite(velocity_x) and math.isfinite(velocity_y)):
            logger.warning("Ignoring non-finite release velocity: %s, %s", velocity_x, velocity_y)
            return False
        return self._decay.start(velocity_x, velocity_y)

    # =====================================================
    # Pinch
    # =====================================================

    def pinch_began(self) -> bool:
        if not self.pinch_enabled:
            return False
        self._phase = GesturePhase.PINCHING
        return True

    def pinch_changed(self, scale: float) -> bool:
        """Preview the radius for the current pinch scale."""
        if not self.pinch_enabled:
            return False
        self._phase = GesturePhase.PINCHING
        self._set_radius(self._scaled_radius(scale))
        return True

    def pinch_ended(self, scale: float) -> bool:
        """Commit the pinch scale to the radius baseline."""
        if not self.pinch_enabled:
            return False
        radius = self._scaled_radius(scale)
        self._committed_radius = radius
        self._set_radius(radius)
        self._phase = GesturePhase.NONE
        logger.debug("Pinch committed: radius=%.2f", radius)
        return True

    def cancel(self) -> None:
        """Forget any gesture in progress and stop deceleration."""
        self._decay.cancel()
        self._phase = GesturePhase.NONE

    def _scaled_radius(self, scale: float) -> float:
        if not math.isfinite(scale) or scale < 0.0:
            logger.warning("Pinch scale %r clamped to 0.0", scale)
            scale = 0.0
        return scale * self._committed_radius
