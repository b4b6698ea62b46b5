import copy
import logging

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QLabel, QMainWindow, QSplitter, QWidget

from sphereview.app.app_settings_manager import AppSettingsManager
from sphereview.app.shortcut_manager import ShortcutManager
from sphereview.ui.decay_plot import DecayPlotWidget
from sphereview.ui.sphere_widget import SphereWidget
from sphereview.ui.status import STATUS_FIELDS, StatusField

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Main window: sphere view, deceleration plot and status bar."""

    def __init__(self,
                 settings_mgr: AppSettingsManager | None = None,
                 radius: float | None = None):
        """
        :param settings_mgr: Application settings manager.
        :param radius: Initial sphere radius, half the view width if None.
        """
        super().__init__()
        self.setting = settings_mgr or AppSettingsManager()
        self.setWindowTitle("SphereView")

        self.sphere = SphereWidget(self.setting, radius=radius)
        self.decay_plot = DecayPlotWidget(stop_threshold=self.sphere.controller.decay.config.stop_threshold)
        self.decay_plot.attach(self.sphere.controller.decay)

        splitter = QSplitter(Qt.Vertical)
        splitter.addWidget(self.sphere)
        splitter.addWidget(self.decay_plot)
        splitter.setStretchFactor(0, 4)
        splitter.setStretchFactor(1, 1)
        self.setCentralWidget(splitter)

        # Per-instance copy so windows don't share values.
        self.status_fields: dict[str, StatusField] = {
            k: copy.deepcopy(v) for k, v in STATUS_FIELDS.items()
        }
        self._status_label: dict[str, QLabel] = {}
        self._setup_status_bar()

        self.shortcut_mgr = ShortcutManager(parent=self, settings_manager=self.setting)
        self._register_shortcuts()
        self._setup_menus()

        self.sphere.layoutApplied.connect(self._on_layout_applied)

    def add_elements(self, elements: list[QWidget]) -> None:
        for element in elements:
            self.sphere.add_element(element)

    def _setup_status_bar(self) -> None:
        for key, field in self.status_fields.items():
            label = QLabel(field.text(), self)
            self.statusBar().addPermanentWidget(label)
            self._status_label[key] = label

    def _setup_menus(self) -> None:
        view_menu = self.menuBar().addMenu("&View")
        for action in self.shortcut_mgr.actions():
            view_menu.addAction(action)

    def _register_shortcuts(self) -> None:
        controller = self.sphere.controller
        self.shortcut_mgr.add_callback("reset_transform", controller.reset_transform)
        self.shortcut_mgr.add_callback("reset_rotation", controller.reset_rotation)
        self.shortcut_mgr.add_callback("reset_zoom", controller.reset_zoom)
        self.shortcut_mgr.add_callback("auto_fit", self.sphere.invalidate_layout)
        self.shortcut_mgr.add_callback("toggle_opacity", self.toggle_opacity)

    def toggle_opacity(self) -> None:
        controller = self.sphere.controller
        controller.set_opacity_adjustment_enabled(not controller.opacity_enabled)

    def update_status(self, **kwargs) -> None:
        """Update status fields by key and refresh their labels."""
        for key, value in kwargs.items():
            field = self.status_fields.get(key)
            if field is None:
                continue
            field.value = value
            self._status_label[key].setText(field.text())

    def _on_layout_applied(self, layouts) -> None:
        controller = self.sphere.controller
        self.update_status(
            elements=len(layouts),
            radius=controller.radius,
            rotation=controller.rotation,
            inertia=controller.is_decelerating,
        )
