"""Interactive sphere layout of 2D elements with inertial rotation."""

__version__ = "0.1.0"
