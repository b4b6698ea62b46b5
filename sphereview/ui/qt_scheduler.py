"""QTimer-backed tick scheduler for the inertial decay controller."""
from __future__ import annotations

import itertools
import logging
from typing import Callable

from PySide6.QtCore import QObject, QTimer

logger = logging.getLogger(__name__)


class QtTickScheduler(QObject):
    """
    Repeating callbacks on the Qt event loop.

    Each schedule gets its own QTimer so cancelling one handle never affects
    another session. Ticks run on the GUI thread, serialized with input events.
    """

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._timers: dict[int, QTimer] = {}
        self._ids = itertools.count(1)

    @property
    def active_count(self) -> int:
        return len(self._timers)

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> int:
        """
        :param interval: Seconds between calls
        :param callback: Called on every timeout
        :return: Handle for `cancel`
        """
        handle = next(self._ids)
        timer = QTimer(self)
        timer.setInterval(max(1, round(interval * 1000)))
        timer.timeout.connect(callback)
        self._timers[handle] = timer
        timer.start()
        logger.debug("Tick schedule %d started (%d ms)", handle, timer.interval())
        return handle

    def cancel(self, handle: int) -> None:
        timer = self._timers.pop(handle, None)
        if timer is None:
            return
        timer.stop()
        timer.deleteLater()
        logger.debug("Tick schedule %d cancelled", handle)

    def cancel_all(self) -> None:
        for handle in list(self._timers):
            self.cancel(handle)
