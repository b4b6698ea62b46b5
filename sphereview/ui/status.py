import math
from dataclasses import dataclass
from typing import Any, Callable

from sphereview.core.quaternion import Quaternion


@dataclass
class StatusField:
    """
    A status bar entry: label, format and current value.

    :ivar label: Name shown in front of the value.
    :ivar fmt: Format string used when no formatter is given.
    :ivar formatter: Callable turning the value into text.
    :ivar value: Current value.
    """
    label: str
    fmt: str = "{}"
    formatter: Callable[[Any], str] = None
    value: Any = 0.0

    def __post_init__(self):
        if self.formatter is None:
            self.formatter = lambda v, fmt=self.fmt: fmt.format(v)

    def text(self) -> str:
        return f"{self.label}: {self.formatter(self.value)}"


def format_rotation(rotation: Quaternion) -> str:
    """Rotation angle in degrees about the current axis."""
    if not isinstance(rotation, Quaternion):
        return "-"
    return f"{math.degrees(rotation.angle):.1f}°"


def format_decelerating(running: bool) -> str:
    return "coasting" if running else "idle"


# To add a field, add an entry here and update it from MainWindow.
STATUS_FIELDS = {
    "elements": StatusField(label="Elements", fmt="{:d}", value=0),
    "radius": StatusField(label="Radius", fmt="{:.1f}"),
    "rotation": StatusField(label="Rotation", formatter=format_rotation, value=Quaternion.identity()),
    "inertia": StatusField(label="Inertia", formatter=format_decelerating, value=False),
}
