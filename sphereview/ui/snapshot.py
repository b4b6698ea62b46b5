"""Render a layout pass to an image file with matplotlib (no window needed)."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.patches import Circle  # noqa: E402

from sphereview.core.layout import ElementLayout  # noqa: E402
from sphereview.utils.log_util import log_io  # noqa: E402

logger = logging.getLogger(__name__)

FRONT_COLOR = "#ff9500"
BACK_COLOR = "#a0a0a0"


@log_io(logging.DEBUG)
def render_layout(layouts: Sequence[ElementLayout],
                  viewport_size: tuple[float, float],
                  path: str | Path,
                  element_size: float = 50.0,
                  dpi: int = 100) -> Path:
    """
    Draw each element as a disc, back to front, in screen coordinates.

    :param layouts: One layout pass
    :param viewport_size: (width, height) of the viewport in pixels
    :param path: Output image path, format from the suffix
    :param element_size: Full-scale element diameter
    :return: The written path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    width, height = viewport_size

    fig, ax = plt.subplots(figsize=(max(width, 1) / dpi, max(height, 1) / dpi), dpi=dpi)
    try:
        ax.set_xlim(0, width)
        # Screen y grows downwards.
        ax.set_ylim(height, 0)
        ax.set_aspect("equal")
        ax.axis("off")

        for layout in sorted(layouts, key=lambda item: item.stacking_order):
            alpha = 1.0 if layout.opacity is None else min(layout.opacity, 1.0)
            ax.add_patch(Circle(
                (layout.position.x, layout.position.y),
                radius=element_size * layout.scale / 2.0,
                facecolor=FRONT_COLOR if layout.front_facing else BACK_COLOR,
                alpha=alpha,
                zorder=layout.stacking_order,
            ))

        fig.savefig(path, dpi=dpi)
    finally:
        plt.close(fig)

    logger.info("Layout snapshot written: %s (%d elements)", path, len(layouts))
    return path
