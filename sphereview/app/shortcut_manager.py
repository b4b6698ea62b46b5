import json
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from PySide6.QtCore import QSettings
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import QWidget

from sphereview.app.app_settings_manager import AppSettingsManager
from sphereview.ui.error_notifier import ErrorNotifier

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "settings"


class ShortcutManager:
    """
    Keyboard shortcuts for sphere commands.
    --------------------------
    Defaults come from `shortcuts.json`, user overrides from QSettings under
    `shortcuts/*`. Register the handler of a command with `add_callback`.

    Example shortcuts.json:
    {
        "reset_transform": "R",
        "auto_fit": "F"
    }
    --------------------------
    Callback errors are reported through ErrorNotifier. In development run
    mode the error is re-raised after the notification.
    """
    def __init__(self, parent: QWidget, config_path: Path = DEFAULT_CONFIG_PATH,
                 settings_manager: Optional[AppSettingsManager] = None,
                 org_domain: str = "SphereView.org", app_name: str = "SphereView"):
        self.parent = parent
        self.config_path = config_path
        self._shortcut_settings = QSettings(org_domain, app_name)
        self._settings_manager: AppSettingsManager = settings_manager or AppSettingsManager(org_domain, app_name)

        self._actions: dict[str, QAction] = {}
        self._callbacks: dict[str, Callable[[], None]] = {}
        self._default_shortcuts = self._load_default_shortcuts()
        self._shortcuts = dict(self._default_shortcuts)
        self._load_user_overrides()
        self._register_actions()

        logger.debug("ShortcutManager initialized, run mode: %s", self._settings_manager.run_mode.value)

    def _load_default_shortcuts(self) -> dict[str, str]:
        path = self.config_path / "shortcuts.json"
        logger.debug("Loading default shortcuts: %s", path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError) as e:
            logger.error("Error loading %s: %s", path, e)
            return {}
        if not isinstance(data, dict):
            logger.error("Shortcut defaults must be a JSON object: %s", path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _load_user_overrides(self) -> None:
        for cmd, default_seq in self._default_shortcuts.items():
            user_seq = self._shortcut_settings.value(f"shortcuts/{cmd}", default_seq)
            if user_seq:
                self._shortcuts[cmd] = str(user_seq)

    def _register_actions(self) -> None:
        for cmd, seq in self._shortcuts.items():
            action = QAction(cmd.replace("_", " ").title(), self.parent)
            action.setShortcut(QKeySequence(seq))
            action.triggered.connect(lambda checked=False, c=cmd: self._on_action_triggered(c))
            self.parent.addAction(action)
            self._actions[cmd] = action

    def _on_action_triggered(self, cmd: str) -> None:
        cb = self._callbacks.get(cmd)
        if cb is None:
            ErrorNotifier.instance().notify(
                title="Unregistered Shortcut",
                msg=f"Command '{cmd}' is not registered.",
                severity="error",
                dedup_seconds=1.0,
            )
            return

        func_name = getattr(cb, "__qualname__", repr(cb))
        func_module = getattr(cb, "__module__", "")
        logger.info("Shortcut triggered: %s -> %s.%s", cmd, func_module, func_name)
        try:
            cb()
        except Exception:
            ErrorNotifier.instance().notify(
                title="Shortcut Error",
                msg=f"Error in shortcut callback for '{cmd}'",
                exc_info=sys.exc_info(),
                severity="error",
                dedup_seconds=1.0,
            )
            if self._settings_manager.dev_mode:
                raise

    def add_callback(self, command_name: str, callback: Callable[[], None]) -> None:
        """
        Register the handler of a command.
        :param command_name: Command name (e.g., "reset_transform")
        :param callback: Callable without arguments
        """
        if command_name not in self._actions:
            raise KeyError(f"Command '{command_name}' not found in registered actions.")
        self._callbacks[command_name] = callback

    def shortcut_for(self, cmd: str) -> str:
        action = self._actions.get(cmd)
        return action.shortcut().toString() if action else ""

    def update_shortcut(self, cmd: str, new_seq: str) -> bool:
        """Rebind a command. Returns False if the sequence is taken or the command is unknown."""
        normalized = QKeySequence(new_seq).toString()
        if normalized in [a.shortcut().toString() for a in self._actions.values()]:
            return False
        action = self._actions.get(cmd)
        if not action:
            return False
        action.setShortcut(QKeySequence(new_seq))
        self._shortcut_settings.setValue(f"shortcuts/{cmd}", new_seq)
        self._shortcuts[cmd] = new_seq
        return True

    def reset_to_default(self) -> None:
        self._shortcut_settings.remove("shortcuts")
        self._shortcuts = dict(self._default_shortcuts)
        for cmd, action in self._actions.items():
            action.setShortcut(QKeySequence(self._shortcuts[cmd]))

    def actions(self):
        return self._actions.values()
