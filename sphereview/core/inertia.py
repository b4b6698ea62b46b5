"""Inertial deceleration after a pan gesture is released."""
from __future__ import annotations

import itertools
import logging
import weakref
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Protocol

from sphereview.core.rotation_state import RotationState

logger = logging.getLogger(__name__)


class TickScheduler(Protocol):
    """Repeating timer facility provided by the host event loop."""

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> Any:
        """Call `callback` every `interval` seconds until cancelled. Returns a handle."""
        ...

    def cancel(self, handle: Any) -> None:
        """Stop a schedule. Cancelling an unknown or finished handle is a no-op."""
        ...


class DecayState(Enum):
    """Enum for the inertial session lifecycle."""
    IDLE = auto()
    RUNNING = auto()


@dataclass(frozen=True)
class DecayConfig:
    """
    Constants of the deceleration model.

    Attributes:
        deceleration_rate: Base per-tick rate ("fast" scroll deceleration)
        damping_divisor: Extra damping, the per-tick multiplier is rate / divisor
        velocity_scale: Gesture velocity (units/s) divided by this gives per-tick delta
        stop_threshold: Session ends once both velocity components are below this
        tick_interval: Seconds between ticks
    """
    deceleration_rate: float = 0.99
    damping_divisor: float = 1.01
    velocity_scale: float = 100.0
    stop_threshold: float = 0.1
    tick_interval: float = 0.016

    @property
    def multiplier(self) -> float:
        return self.deceleration_rate / self.damping_divisor


def _at_rest(vx: float, vy: float, threshold: float) -> bool:
    return abs(vx) < threshold and abs(vy) < threshold


def ticks_until_rest(velocity_x: float, velocity_y: float,
                     config: DecayConfig = DecayConfig(), max_ticks: int = 100_000) -> int:
    """
    Number of ticks a session started with the given gesture velocity runs.

    Returns 0 when the release velocity is below the stop threshold.
    """
    if _at_rest(velocity_x, velocity_y, config.stop_threshold):
        return 0

    vx = velocity_x / config.velocity_scale
    vy = velocity_y / config.velocity_scale

    multiplier = config.multiplier
    for tick in range(1, max_ticks + 1):
        vx *= multiplier
        vy *= multiplier
        if _at_rest(vx, vy, config.stop_threshold):
            return tick
    return max_ticks


class InertialDecayController:
    """
    Idle -> Running -> Idle state machine issuing decaying rotation deltas.

    Usage:
        controller = InertialDecayController(rotation_state, scheduler)
        controller.add_tick_callback(on_tick)   # host recomputes layout here
        controller.start(velocity_x, velocity_y)
        ...
        controller.cancel()
    """

    def __init__(self,
                 rotation_state: RotationState,
                 scheduler: TickScheduler,
                 config: DecayConfig | None = None) -> None:
        self._rotation_state = rotation_state
        self._scheduler = scheduler
        self.config = config or DecayConfig()

        self._state = DecayState.IDLE
        self._velocity: tuple[float, float] = (0.0, 0.0)
        self._handle: Any = None
        self._session_id = 0
        self._tick_count = 0

        self._on_tick_callbacks: list[Callable[[], None]] = []
        self._on_finished_callbacks: list[Callable[[], None]] = []

    @property
    def state(self) -> DecayState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is DecayState.RUNNING

    @property
    def velocity(self) -> tuple[float, float]:
        """Current per-tick velocity (rotation delta units)."""
        return self._velocity

    @property
    def tick_count(self) -> int:
        """Ticks executed by the current (or last) session."""
        return self._tick_count

    def add_tick_callback(self, callback: Callable[[], None]) -> None:
        """Callback invoked after every tick has rotated the sphere."""
        self._on_tick_callbacks.append(callback)

    def add_finished_callback(self, callback: Callable[[], None]) -> None:
        """Callback invoked when a session comes to rest on its own."""
        self._on_finished_callbacks.append(callback)

    def start(self, velocity_x: float, velocity_y: float) -> bool:
        """
        Start decelerating from a gesture release velocity.

        Any running session is cancelled first.

        :param velocity_x: Horizontal gesture velocity in units per second
        :param velocity_y: Vertical gesture velocity in units per second
        :return: True if a session was started
        """
        self.cancel()

        if _at_rest(velocity_x, velocity_y, self.config.stop_threshold):
            logger.debug("Release velocity (%s, %s) below threshold, no deceleration", velocity_x, velocity_y)
            return False

        self._velocity = (velocity_x / self.config.velocity_scale, velocity_y / self.config.velocity_scale)
        self._tick_count = 0
        self._session_id += 1
        self._state = DecayState.RUNNING
        self._handle = self._schedule(self._session_id)

        logger.debug("Deceleration started: session=%d velocity=(%.3f, %.3f)", self._session_id, *self._velocity)
        return True

    def cancel(self) -> None:
        """Stop the running session immediately. No-op when idle."""
        if self._state is DecayState.IDLE:
            return
        self._stop()
        logger.debug("Deceleration cancelled after %d ticks", self._tick_count)

    def _schedule(self, session_id: int) -> Any:
        controller_ref = weakref.ref(self)
        scheduler = self._scheduler
        handle_holder: list[Any] = []

        def _tick() -> None:
            controller = controller_ref()
            if controller is None or not controller._is_current(session_id):
                # Stale session or controller gone: stop our own timer.
                if handle_holder:
                    scheduler.cancel(handle_holder[0])
                return
            controller._step()

        handle_holder.append(scheduler.schedule_repeating(self.config.tick_interval, _tick))
        return handle_holder[0]

    def _is_current(self, session_id: int) -> bool:
        return self._state is DecayState.RUNNING and session_id == self._session_id

    def _step(self) -> None:
        multiplier = self.config.multiplier
        vx, vy = self._velocity
        vx *= multiplier
        vy *= multiplier
        self._velocity = (vx, vy)
        self._tick_count += 1

        self._rotation_state.apply_delta(-vx, vy)
        self._notify(self._on_tick_callbacks, "tick")

        if _at_rest(vx, vy, self.config.stop_threshold):
            self._stop()
            logger.debug("Deceleration finished after %d ticks", self._tick_count)
            self._notify(self._on_finished_callbacks, "finished")

    def _stop(self) -> None:
        handle, self._handle = self._handle, None
        self._state = DecayState.IDLE
        self._velocity = (0.0, 0.0)
        if handle is not None:
            self._scheduler.cancel(handle)

    @staticmethod
    def _notify(callbacks: list[Callable[[], None]], name: str) -> None:
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.exception(f"Error in deceleration {name} callback: {e}")


class ManualTickScheduler:
    """
    TickScheduler driven by explicit `advance()` calls.

    Useful without an event loop: headless rendering and tests.
    """

    def __init__(self) -> None:
        self._callbacks: dict[int, tuple[float, Callable[[], None]]] = {}
        self._ids = itertools.count(1)

    @property
    def active_count(self) -> int:
        return len(self._callbacks)

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> int:
        handle = next(self._ids)
        self._callbacks[handle] = (interval, callback)
        return handle

    def cancel(self, handle: int) -> None:
        self._callbacks.pop(handle, None)

    def advance(self, ticks: int = 1) -> None:
        """Fire every active callback `ticks` times."""
        for _ in range(ticks):
            for handle in list(self._callbacks):
                entry = self._callbacks.get(handle)
                if entry is not None:
                    entry[1]()

    def run_until_idle(self, max_ticks: int = 100_000) -> int:
        """Advance until nothing is scheduled. Returns the number of ticks run."""
        ticks = 0
        while self._callbacks and ticks < max_ticks:
            self.advance()
            ticks += 1
        return ticks
