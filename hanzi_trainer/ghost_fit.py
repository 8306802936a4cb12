from __future__ import annotations

import math
from collections.abc import Callable

MIN_FONT_PX = 12
SHRINK_STEP_PX = 2
DEFAULT_PADDING_PX = 16

MeasureWidth = Callable[[str, int], float]


def initial_font_size(box_w: float, box_h: float, padding: float = DEFAULT_PADDING_PX) -> int:
    return max(MIN_FONT_PX, int(math.floor(min(box_w, box_h) - 2 * padding)))


def fit_font_size(
    measure_width: MeasureWidth,
    unit: str,
    box_w: float,
    box_h: float,
    padding: float = DEFAULT_PADDING_PX,
) -> int:
    """Largest font size (in px) at which ``unit`` fits inside the padded box.

    Starts at the padded box side and shrinks in 2px steps, never going
    below the 12px floor.
    """

    size = initial_font_size(box_w, box_h, padding)
    if unit == "":
        return size

    max_w = box_w - 2 * padding
    max_h = box_h - 2 * padding
    while (measure_width(unit, size) > max_w or size > max_h) and size > MIN_FONT_PX:
        size = max(MIN_FONT_PX, size - SHRINK_STEP_PX)
    return size
