"""Core components layer - Qt-free sphere layout and rotation engine."""

from sphereview.core.quaternion import Quaternion, multiply, normalize, rotate_vector
from sphereview.core.sphere_points import SpherePoint, fibonacci_sphere, generate
from sphereview.core.rotation_state import RotationState
from sphereview.core.layout import ElementLayout, LayoutEngine, Point2D, compute_layout, draw_order
from sphereview.core.inertia import (
    DecayConfig,
    DecayState,
    InertialDecayController,
    ManualTickScheduler,
    TickScheduler,
    ticks_until_rest,
)
from sphereview.core.gestures import GestureAdapter, GesturePhase
from sphereview.core.sphere_view import SphereViewController

__all__ = [
    "Quaternion",
    "multiply",
    "normalize",
    "rotate_vector",
    "SpherePoint",
    "fibonacci_sphere",
    "generate",
    "RotationState",
    "ElementLayout",
    "LayoutEngine",
    "Point2D",
    "compute_layout",
    "draw_order",
    "DecayConfig",
    "DecayState",
    "InertialDecayController",
    "ManualTickScheduler",
    "TickScheduler",
    "ticks_until_rest",
    "GestureAdapter",
    "GesturePhase",
    "SphereViewController",
]
