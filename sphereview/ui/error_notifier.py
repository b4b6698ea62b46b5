from __future__ import annotations

import logging
import time
import traceback
from typing import Optional

from PySide6.QtCore import QObject, Qt, QTimer
from PySide6.QtWidgets import QApplication, QErrorMessage, QMessageBox

from sphereview.app.app_settings_manager import AppSettingsManager

logger = logging.getLogger(__name__)


class ErrorNotifier(QObject):
    """
    Logs errors raised by host callbacks and shows them to the user.

    Identical notifications within `dedup_seconds` are logged but shown only
    once. Dialogs are posted to the GUI thread with a zero-delay timer.
    Singleton; configure once at startup with `configure(settings)`.

    Usage:
    >>> ErrorNotifier.instance().notify("Error", "Something went wrong")
    >>> ErrorNotifier.instance().notify("Warning", "Something might be wrong", severity="warning")
    """
    _instance: Optional[ErrorNotifier] = None

    def __init__(self):
        super().__init__()
        self.dev_mode: bool = False
        self._last_shown: dict[str, float] = {}
        self._suppress_window: QErrorMessage | None = None

    @classmethod
    def instance(cls) -> ErrorNotifier:
        if cls._instance is None:
            cls._instance = ErrorNotifier()
        return cls._instance

    @classmethod
    def configure(cls, settings: AppSettingsManager) -> None:
        cls.instance().dev_mode = settings.dev_mode

    def notify(self,
               title: str,
               msg: str,
               *,
               detail: Optional[str] = None,
               exc_info: Optional[tuple] = None,
               severity: str = "error",
               dedup_seconds: float = 2.0,
               ) -> bool:
        """
        Log and display a notification.

        :return: True if the notification was shown, False if deduplicated
        """
        if exc_info and exc_info[0] is not None:
            logger.error("%s: %s", title, msg, exc_info=exc_info)
        elif severity in ("error", "critical"):
            logger.error("%s: %s", title, msg)
        elif severity == "warning":
            logger.warning("%s: %s", title, msg)
        else:
            logger.info("%s: %s", title, msg)

        now = time.monotonic()
        key = f"{severity}:{title}:{msg}"
        last = self._last_shown.get(key)
        if last is not None and now - last < dedup_seconds:
            return False
        self._last_shown[key] = now

        if detail is None and exc_info and exc_info[0] is not None:
            detail = "".join(traceback.format_exception(*exc_info))

        QTimer.singleShot(0, lambda: self._show(title, msg, detail, severity))
        return True

    def _show(self, title: str, msg: str, detail: Optional[str], severity: str) -> None:
        if severity in ("error", "critical"):
            box = QMessageBox()
            box.setIcon(QMessageBox.Critical if severity == "critical" else QMessageBox.Warning)
            box.setWindowTitle(title)
            box.setText(msg)
            if detail:
                box.setDetailedText(detail)
                if self.dev_mode:
                    box.setTextInteractionFlags(Qt.TextSelectableByMouse)
            box.exec()
        elif severity == "warning":
            if self._suppress_window is None:
                self._suppress_window = QErrorMessage()
            self._suppress_window.showMessage(f"{title}: {msg}")
        else:
            app = QApplication.instance()
            w = app.activeWindow() if app else None
            if w is not None and hasattr(w, "statusBar"):
                w.statusBar().showMessage(f"{title}: {msg}", 5000)
