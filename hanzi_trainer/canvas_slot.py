from __future__ import annotations

from typing import Protocol

from .ghost_fit import DEFAULT_PADDING_PX, fit_font_size

Point = tuple[float, float]

GHOST_ALPHA = 0.22


class DrawingSurface(Protocol):
    """Rectangular canvas with a freehand ink layer and a faint text overlay."""

    @property
    def size(self) -> tuple[int, int]: ...

    def measure_width(self, text: str, font_px: int) -> float: ...

    def draw_segment(self, start: Point, end: Point) -> None: ...

    def clear_ink(self) -> None: ...

    def show_ghost(self, text: str, font_px: int) -> None: ...

    def hide_ghost(self) -> None: ...


class CanvasSlot:
    """One drawing surface: a ghost overlay behind an ink layer.

    The ghost is always rendered from the current ``ghost_unit`` and
    ``ghost_visible`` inputs. Ink is scratch space only; nothing about a
    stroke is kept beyond the last point of the stroke in progress.
    """

    def __init__(self, surface: DrawingSurface, *, padding: float = DEFAULT_PADDING_PX) -> None:
        self._surface = surface
        self._padding = float(padding)
        self._ghost_unit = ""
        self._ghost_visible = False
        self._ghost_font_px: int | None = None
        self._last_point: Point | None = None
        self._has_ink = False

    @property
    def surface(self) -> DrawingSurface:
        return self._surface

    @property
    def ghost_unit(self) -> str:
        return self._ghost_unit

    @property
    def ghost_visible(self) -> bool:
        return self._ghost_visible

    @property
    def ghost_font_px(self) -> int | None:
        """Font size of the ghost currently shown, or None when hidden."""
        return self._ghost_font_px

    @property
    def has_ink(self) -> bool:
        return self._has_ink

    @property
    def is_drawing(self) -> bool:
        return self._last_point is not None

    def set_ghost(self, unit: str, *, visible: bool) -> None:
        self._ghost_unit = unit
        self._ghost_visible = bool(visible)
        self.render_ghost()

    def render_ghost(self) -> None:
        if not self._ghost_visible or self._ghost_unit == "":
            self._ghost_font_px = None
            self._surface.hide_ghost()
            return
        w, h = self._surface.size
        size = fit_font_size(self._surface.measure_width, self._ghost_unit, w, h, self._padding)
        self._ghost_font_px = size
        self._surface.show_ghost(self._ghost_unit, size)

    def pointer_down(self, pos: Point) -> None:
        self._last_point = (float(pos[0]), float(pos[1]))

    def pointer_move(self, pos: Point) -> None:
        if self._last_point is None:
            return
        point = (float(pos[0]), float(pos[1]))
        self._surface.draw_segment(self._last_point, point)
        self._last_point = point
        self._has_ink = True

    def pointer_up(self) -> None:
        self._last_point = None

    def clear(self) -> None:
        """Erase all ink and abandon any stroke in progress. The ghost is untouched."""
        self._last_point = None
        self._has_ink = False
        self._surface.clear_ink()
