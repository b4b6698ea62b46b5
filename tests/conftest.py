import os
from pathlib import Path

import pytest

# Qt must render offscreen in CI, set before any Qt import.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QSettings  # noqa: E402


@pytest.fixture
def tmp_settings(tmp_path: Path):
    """Redirect QSettings to a temporary INI folder so tests don't share state."""
    QSettings.setDefaultFormat(QSettings.IniFormat)
    QSettings.setPath(QSettings.IniFormat, QSettings.UserScope, str(tmp_path))
    QSettings.setPath(QSettings.NativeFormat, QSettings.UserScope, str(tmp_path))
    s = QSettings("SphereView.org", "SphereView")
    s.clear()
    yield s
    s.clear()
