from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict

from PySide6.QtCore import QSettings

from sphereview.core.inertia import DecayConfig

logger = logging.getLogger(__name__)


class RunMode(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    VERBOSE = "verbose"

    def __str__(self):
        return self.value

    def __repr__(self):
        return self.value


# ----------------------
# Defaults
# ----------------------
DEFAULTS: Dict[str, Any] = {
    "general": {
        "run_mode": RunMode.PRODUCTION.value,
        "logging_level": "INFO",  # "DEBUG", "INFO", "WARNING", "ERROR"
    },
    "sphere": {
        "sensitivity": 0.01,
        "adjust_alpha": True,
        "scroll_enabled": True,
        "pinch_enabled": True,
        "deceleration_rate": 0.99,
        "tick_interval_ms": 16,
    },
}

SECTIONS = ("general", "sphere")


# ---------------------
# Data model
# ---------------------
@dataclass
class GeneralConfig:
    run_mode: RunMode = RunMode.PRODUCTION
    logging_level: str = "INFO"


@dataclass
class SphereConfig:
    sensitivity: float = 0.01
    adjust_alpha: bool = True
    scroll_enabled: bool = True
    pinch_enabled: bool = True
    deceleration_rate: float = 0.99
    tick_interval_ms: int = 16


@dataclass
class AppSettingsData:
    general: GeneralConfig = field(default_factory=GeneralConfig)
    sphere: SphereConfig = field(default_factory=SphereConfig)


# ----------------------
# Validation
# ----------------------
def _truthy(s: str) -> bool:
    return s.strip().lower() in ("1", "true", "yes", "on")


def _validate_run_mode(v: Any) -> RunMode:
    if isinstance(v, RunMode):
        return v
    mode = str(v).strip().lower()
    try:
        return RunMode(mode)
    except ValueError:
        return RunMode(DEFAULTS["general"]["run_mode"])


def _validate_logging_level(v: Any) -> str:
    v = str(v).upper()
    return v if v in ("DEBUG", "INFO", "WARNING", "ERROR") else "INFO"


def _validate_bool(v: Any, default: bool) -> bool:
    # QSettings INI backends hand booleans back as strings.
    if isinstance(v, bool):
        return v
    if v is None:
        return default
    return _truthy(str(v))


def _validate_sensitivity(v: Any) -> float:
    try:
        f = float(v)
    except (TypeError, ValueError):
        return DEFAULTS["sphere"]["sensitivity"]
    return f if (0 < f <= 1) else DEFAULTS["sphere"]["sensitivity"]


def _validate_deceleration_rate(v: Any) -> float:
    try:
        f = float(v)
    except (TypeError, ValueError):
        return DEFAULTS["sphere"]["deceleration_rate"]
    return f if (0 < f < 1) else DEFAULTS["sphere"]["deceleration_rate"]


def _validate_tick_interval(v: Any) -> int:
    try:
        i = int(float(v))
    except (TypeError, ValueError):
        return DEFAULTS["sphere"]["tick_interval_ms"]
    return i if (1 <= i <= 1000) else DEFAULTS["sphere"]["tick_interval_ms"]


# ---------------------
# AppSettingsManager
# ---------------------
class AppSettingsManager:
    """
    Application settings.

    Values start from DEFAULTS and are overridden by QSettings. Every value
    is validated when read; out of range values fall back to the default.
    set_* methods persist to QSettings immediately.
    """

    def __init__(self, org_domain: str = "SphereView.org", app_name: str = "SphereView"):
        self._settings = QSettings(org_domain, app_name)
        self._data = self._load_effective()

    # Read
    @property
    def data(self) -> AppSettingsData:
        return self._data

    @property
    def run_mode(self) -> RunMode:
        return self._data.general.run_mode

    @property
    def dev_mode(self) -> bool:
        return self.run_mode is RunMode.DEVELOPMENT

    @property
    def logging_level(self) -> str:
        return self._data.general.logging_level

    @property
    def sphere(self) -> SphereConfig:
        return self._data.sphere

    def decay_config(self) -> DecayConfig:
        """Deceleration constants for the inertial controller."""
        return DecayConfig(
            deceleration_rate=self._data.sphere.deceleration_rate,
            tick_interval=self._data.sphere.tick_interval_ms / 1000.0,
        )

    # Write
    def set_run_mode(self, v: str | RunMode) -> None:
        mode = _validate_run_mode(v)
        self._settings.setValue("general/run_mode", mode.value)
        self._data.general.run_mode = mode

    def set_logging_level(self, v: str) -> None:
        level = _validate_logging_level(v)
        self._settings.setValue("general/logging_level", level)
        self._data.general.logging_level = level

    def set_sensitivity(self, v: float) -> None:
        value = _validate_sensitivity(v)
        self._settings.setValue("sphere/sensitivity", value)
        self._data.sphere.sensitivity = value

    def set_adjust_alpha(self, v: bool) -> None:
        value = _validate_bool(v, DEFAULTS["sphere"]["adjust_alpha"])
        self._settings.setValue("sphere/adjust_alpha", value)
        self._data.sphere.adjust_alpha = value

    def set_scroll_enabled(self, v: bool) -> None:
        value = _validate_bool(v, DEFAULTS["sphere"]["scroll_enabled"])
        self._settings.setValue("sphere/scroll_enabled", value)
        self._data.sphere.scroll_enabled = value

    def set_pinch_enabled(self, v: bool) -> None:
        value = _validate_bool(v, DEFAULTS["sphere"]["pinch_enabled"])
        self._settings.setValue("sphere/pinch_enabled", value)
        self._data.sphere.pinch_enabled = value

    def set_deceleration_rate(self, v: float) -> None:
        value = _validate_deceleration_rate(v)
        self._settings.setValue("sphere/deceleration_rate", value)
        self._data.sphere.deceleration_rate = value

    def set_tick_interval_ms(self, v: int) -> None:
        value = _validate_tick_interval(v)
        self._settings.setValue("sphere/tick_interval_ms", value)
        self._data.sphere.tick_interval_ms = value

    # Reset
    def reset_all_to_default(self) -> None:
        """Remove every user setting (shortcuts are managed separately)."""
        for section in SECTIONS:
            self._settings.remove(section)
        self._data = self._load_effective()

    def reset_section(self, section: str) -> None:
        """Restore the defaults of a single section."""
        if section not in SECTIONS:
            raise ValueError(f"Invalid section: {section}")
        self._settings.remove(section)
        self._data = self._load_effective()

    def to_dict(self) -> dict[str, Any]:
        data = {
            "general": asdict(self._data.general),
            "sphere": asdict(self._data.sphere),
        }
        data["general"]["run_mode"] = self._data.general.run_mode.value
        return data

    # ---------- internals ---------------
    def _load_effective(self) -> AppSettingsData:
        """Apply QSettings overrides on top of DEFAULTS, validate and build the model."""
        merged = self._apply_qsettings_overrides(DEFAULTS)
        return self._make_model_from(merged)

    def _apply_qsettings_overrides(self, base: dict[str, Any]) -> dict[str, Any]:
        g = dict(base.get("general", {}))
        v = self._settings.value("general/run_mode", None)
        if v is not None:
            g["run_mode"] = _validate_run_mode(v).value
        v = self._settings.value("general/logging_level", None)
        if v is not None:
            g["logging_level"] = _validate_logging_level(v)

        sp = dict(base.get("sphere", {}))
        for key in sp:
            v = self._settings.value(f"sphere/{key}", None)
            if v is not None:
                sp[key] = v

        return {"general": g, "sphere": sp}

    def _make_model_from(self, merged: dict[str, Any]) -> AppSettingsData:
        g = merged.get("general", {})
        sp = merged.get("sphere", {})
        defaults = DEFAULTS["sphere"]
        return AppSettingsData(
            general=GeneralConfig(
                run_mode=_validate_run_mode(g.get("run_mode", DEFAULTS["general"]["run_mode"])),
                logging_level=_validate_logging_level(g.get("logging_level", DEFAULTS["general"]["logging_level"])),
            ),
            sphere=SphereConfig(
                sensitivity=_validate_sensitivity(sp.get("sensitivity", defaults["sensitivity"])),
                adjust_alpha=_validate_bool(sp.get("adjust_alpha"), defaults["adjust_alpha"]),
                scroll_enabled=_validate_bool(sp.get("scroll_enabled"), defaults["scroll_enabled"]),
                pinch_enabled=_validate_bool(sp.get("pinch_enabled"), defaults["pinch_enabled"]),
                deceleration_rate=_validate_deceleration_rate(
                    sp.get("deceleration_rate", defaults["deceleration_rate"])),
                tick_interval_ms=_validate_tick_interval(sp.get("tick_interval_ms", defaults["tick_interval_ms"])),
            ),
        )
