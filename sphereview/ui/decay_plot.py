import logging

import numpy as np
import pyqtgraph as pg
from PySide6.QtCore import Qt

from sphereview.core.inertia import InertialDecayController

logger = logging.getLogger(__name__)


class DecayPlotWidget(pg.PlotWidget):
    """
    Plot of the per-tick velocity of the last deceleration session.
    -------------
    - attach(): follow an InertialDecayController
    - record(): append one velocity sample
    - clear_samples(): forget the current curve
    """
    def __init__(self, parent=None, stop_threshold: float = 0.1):
        super().__init__(parent)
        self._samples: list[tuple[float, float]] = []
        self._controller: InertialDecayController | None = None
        self._tick_of_last_sample = 0

        self.plot_item = self.getPlotItem()
        self.plot_item.setLabel("bottom", "Tick")
        self.plot_item.setLabel("left", "Velocity")
        self.plot_item.addLegend()
        self.plot_item.getViewBox().setLimits(xMin=0, yMin=0)

        self._curve_x = self.plot(pen=pg.mkPen(color=(255, 160, 0), width=1), name="|vx|")
        self._curve_y = self.plot(pen=pg.mkPen(color=(80, 180, 255), width=1), name="|vy|")
        self._threshold = pg.InfiniteLine(pos=stop_threshold, angle=0,
                                          pen=pg.mkPen(color=(200, 200, 200), style=Qt.DashLine))
        self.plot_item.addItem(self._threshold)

    @property
    def samples(self) -> list[tuple[float, float]]:
        return list(self._samples)

    def attach(self, controller: InertialDecayController) -> None:
        """Record every tick of `controller`."""
        self._controller = controller
        self._threshold.setValue(controller.config.stop_threshold)
        controller.add_tick_callback(self._on_tick)

    def record(self, vx: float, vy: float) -> None:
        self._samples.append((abs(vx), abs(vy)))
        self._update_curves()

    def clear_samples(self) -> None:
        self._samples.clear()
        self._update_curves()

    def _on_tick(self) -> None:
        controller = self._controller
        # A new session restarts the tick counter.
        if controller.tick_count <= self._tick_of_last_sample:
            self._samples.clear()
        self._tick_of_last_sample = controller.tick_count
        self.record(*controller.velocity)

    def _update_curves(self) -> None:
        data = np.asarray(self._samples, dtype=float).reshape(-1, 2)
        ticks = np.arange(1, len(data) + 1)
        self._curve_x.setData(x=ticks, y=data[:, 0])
        self._curve_y.setData(x=ticks, y=data[:, 1])
