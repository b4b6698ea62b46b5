"""Qt host widget laying out its child widgets on a rotatable sphere."""
from __future__ import annotations

import logging
import time
from collections import deque

from PySide6 import QtCore
from PySide6.QtCore import QEvent, QPointF, QRect, Qt
from PySide6.QtWidgets import QGraphicsOpacityEffect, QWidget

from sphereview.app.app_settings_manager import AppSettingsManager
from sphereview.core.layout import ElementLayout, draw_order
from sphereview.core.sphere_view import SphereViewController
from sphereview.ui.qt_scheduler import QtTickScheduler

logger = logging.getLogger(__name__)

# Angle delta of one wheel notch, mapped to a 10% pinch step.
WHEEL_STEP = 120
WHEEL_ZOOM_PER_STEP = 0.1


class VelocityTracker:
    """Release velocity estimate (units/s) from the most recent pan samples."""

    def __init__(self, window: float = 0.1, max_samples: int = 20) -> None:
        self.window = window
        self._samples: deque[tuple[float, float, float]] = deque(maxlen=max_samples)

    def reset(self) -> None:
        self._samples.clear()

    def add(self, x: float, y: float, timestamp: float | None = None) -> None:
        t = time.monotonic() if timestamp is None else timestamp
        self._samples.append((t, x, y))

    def velocity(self) -> tuple[float, float]:
        if len(self._samples) < 2:
            return 0.0, 0.0
        t_last, x_last, y_last = self._samples[-1]
        first = self._samples[-2]
        for sample in reversed(self._samples):
            if t_last - sample[0] > self.window:
                break
            first = sample
        dt = t_last - first[0]
        if dt <= 0:
            return 0.0, 0.0
        return (x_last - first[1]) / dt, (y_last - first[2]) / dt


class SphereWidget(QWidget):
    """
    Widget placing child elements on a sphere.

    Provides:
    - SphereViewController (self.controller)
    - Pan with mouse drag, pinch with wheel or native zoom gestures
    - Batched layout: invalidations are coalesced into one pass per event loop turn
    - layoutApplied signal with the applied ElementLayout tuple
    """

    layoutApplied = QtCore.Signal(object)

    def __init__(self,
                 settings_manager: AppSettingsManager | None = None,
                 radius: float | None = None,
                 parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setting = settings_manager or AppSettingsManager()
        sphere_cfg = self.setting.sphere

        self.scheduler = QtTickScheduler(self)
        self.controller = SphereViewController(
            self.scheduler,
            viewport_size=(self.width(), self.height()),
            radius=radius,
            sensitivity=sphere_cfg.sensitivity,
            opacity_enabled=sphere_cfg.adjust_alpha,
            decay_config=self.setting.decay_config(),
        )
        self.controller.set_scroll_enabled(sphere_cfg.scroll_enabled)
        self.controller.set_pinch_enabled(sphere_cfg.pinch_enabled)
        self.controller.add_layout_invalidated_callback(self._schedule_layout)

        # Elements are children of the content view, as in a plain container.
        self.content = QWidget(self)
        self._elements: list[QWidget] = []
        self._base_sizes: list[QtCore.QSize] = []
        self._opacity_effects: list[QGraphicsOpacityEffect] = []

        self._layout_pending = False
        self._dragging = False
        self._last_pos: QPointF | None = None
        self._velocity = VelocityTracker()
        self._pinch_scale = 1.0

        self.setAttribute(Qt.WA_AcceptTouchEvents, True)

        logger.debug("[SphereWidget] Initialized.")

    # =====================================================
    # Elements
    # =====================================================

    @property
    def elements(self) -> list[QWidget]:
        return list(self._elements)

    def add_element(self, element: QWidget) -> None:
        """Add a widget to the sphere. Its current size is its full-scale size."""
        element.setParent(self.content)
        element.installEventFilter(self)
        effect = QGraphicsOpacityEffect(element)
        effect.setEnabled(self.controller.opacity_enabled)
        element.setGraphicsEffect(effect)
        element.show()

        self._elements.append(element)
        self._base_sizes.append(element.size())
        self._opacity_effects.append(effect)
        self.controller.set_element_count(len(self._elements))

    def clear_elements(self) -> None:
        for element in self._elements:
            element.removeEventFilter(self)
            element.deleteLater()
        self._elements.clear()
        self._base_sizes.clear()
        self._opacity_effects.clear()
        self.controller.set_element_count(0)

    def invalidate_layout(self) -> float:
        """Fit the radius to the widget from the average element width."""
        return self.controller.invalidate_layout(size.width() for size in self._base_sizes)

    def reset_transform(self) -> None:
        self.controller.reset_transform()

    # =====================================================
    # Layout
    # =====================================================

    def _schedule_layout(self) -> None:
        if self._layout_pending:
            return
        self._layout_pending = True
        QtCore.QTimer.singleShot(0, self.apply_layout)

    def apply_layout(self) -> tuple[ElementLayout, ...]:
        """Pull a layout pass from the controller and apply it to the elements."""
        self._layout_pending = False
        layouts = self.controller.recompute_layout()
        if len(layouts) != len(self._elements):
            logger.warning("Layout count %d does not match %d elements", len(layouts), len(self._elements))
            return layouts

        for layout in layouts:
            self._apply_element_layout(layout)
        for index in draw_order(layouts):
            self._elements[index].raise_()

        self.layoutApplied.emit(layouts)
        return layouts

    def _apply_element_layout(self, layout: ElementLayout) -> None:
        element = self._elements[layout.index]
        base = self._base_sizes[layout.index]

        width = max(1, round(base.width() * layout.scale))
        height = max(1, round(base.height() * layout.scale))
        element.setGeometry(QRect(
            round(layout.position.x - width / 2),
            round(layout.position.y - height / 2),
            width,
            height,
        ))

        effect = self._opacity_effects[layout.index]
        if layout.opacity is None:
            effect.setEnabled(False)
        else:
            effect.setEnabled(True)
            effect.setOpacity(min(layout.opacity, 1.0))

        # Only the near hemisphere takes mouse input.
        element.setAttribute(Qt.WA_TransparentForMouseEvents, not layout.front_facing)

    # =====================================================
    # Qt events
    # =====================================================

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self.content.setGeometry(self.rect())
        self.controller.set_viewport_size(self.width(), self.height())

    def mousePressEvent(self, event) -> None:
        if event.button() == Qt.LeftButton:
            self._begin_pan(event.globalPosition())
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event) -> None:
        if self._dragging:
            self._move_pan(event.globalPosition())
            event.accept()
            return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event) -> None:
        if event.button() == Qt.LeftButton and self._dragging:
            self._end_pan(event.globalPosition())
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def wheelEvent(self, event) -> None:
        steps = event.angleDelta().y() / WHEEL_STEP
        if steps == 0:
            super().wheelEvent(event)
            return
        scale = max(0.0, 1.0 + steps * WHEEL_ZOOM_PER_STEP)
        self.controller.on_pinch_began()
        self.controller.on_pinch_changed(scale)
        self.controller.on_pinch_end(scale)
        event.accept()

    def event(self, event) -> bool:
        if event.type() == QEvent.NativeGesture:
            return self._handle_native_gesture(event)
        return super().event(event)

    def eventFilter(self, obj, event) -> bool:
        """Drags that start on an element still rotate the sphere."""
        if obj in self._elements:
            etype = event.type()
            if etype == QEvent.MouseButtonPress and event.button() == Qt.LeftButton:
                self._begin_pan(event.globalPosition())
            elif etype == QEvent.MouseMove and self._dragging:
                self._move_pan(event.globalPosition())
            elif etype == QEvent.MouseButtonRelease and event.button() == Qt.LeftButton and self._dragging:
                self._end_pan(event.globalPosition())
        return super().eventFilter(obj, event)

    def _handle_native_gesture(self, event) -> bool:
        gesture = event.gestureType()
        if gesture == Qt.NativeGestureType.BeginNativeGesture:
            self._pinch_scale = 1.0
            self.controller.on_pinch_began()
        elif gesture == Qt.NativeGestureType.ZoomNativeGesture:
            self._pinch_scale = max(0.0, self._pinch_scale * (1.0 + event.value()))
            self.controller.on_pinch_changed(self._pinch_scale)
        elif gesture == Qt.NativeGestureType.EndNativeGesture:
            self.controller.on_pinch_end(self._pinch_scale)
            self._pinch_scale = 1.0
        else:
            return False
        event.accept()
        return True

    # =====================================================
    # Pan handling
    # =====================================================

    def _begin_pan(self, pos: QPointF) -> None:
        # A press an element ignores reaches the filter and then mousePressEvent.
        if self._dragging:
            return
        self._dragging = True
        self._last_pos = pos
        self._velocity.reset()
        self._velocity.add(pos.x(), pos.y())
        self.controller.on_pan_began()

    def _move_pan(self, pos: QPointF) -> None:
        dx = pos.x() - self._last_pos.x()
        dy = pos.y() - self._last_pos.y()
        self._last_pos = pos
        self._velocity.add(pos.x(), pos.y())
        self.controller.on_pan_delta(dx, dy)

    def _end_pan(self, pos: QPointF) -> None:
        self._velocity.add(pos.x(), pos.y())
        velocity_x, velocity_y = self._velocity.velocity()
        self._dragging = False
        self._last_pos = None
        self._velocity.reset()
        self.controller.on_pan_end(velocity_x, velocity_y)
