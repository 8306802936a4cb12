from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum

from .canvas_slot import CanvasSlot, DrawingSurface, Point
from .segmenter import segment

SLOT_COUNT = 4


class Direction(StrEnum):
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True, slots=True)
class SlotState:
    """View model for the slot strip (pure data)."""

    active_slot_index: int
    ghost_visible: bool
    display_units: tuple[str, ...]
    ink_present: tuple[bool, ...]


class MultiSlotSurface:
    """Four canvas slots for one card plus the active-slot cursor.

    Slots always exist as a fixed set of four, however many characters the
    current word has. Pointer input goes to the active slot only.
    """

    def __init__(self, surface_factory: Callable[[int], DrawingSurface]) -> None:
        self._slots: tuple[CanvasSlot, ...] = tuple(
            CanvasSlot(surface_factory(i)) for i in range(SLOT_COUNT)
        )
        self._active = 0
        self._ghost_visible = False
        self._units: tuple[str, ...] = tuple(segment("", SLOT_COUNT))

    @property
    def slots(self) -> Sequence[CanvasSlot]:
        return self._slots

    @property
    def active_slot_index(self) -> int:
        return self._active

    @property
    def active_slot(self) -> CanvasSlot:
        return self._slots[self._active]

    @property
    def ghost_visible(self) -> bool:
        return self._ghost_visible

    @property
    def display_units(self) -> tuple[str, ...]:
        return self._units

    def state(self) -> SlotState:
        return SlotState(
            active_slot_index=self._active,
            ghost_visible=self._ghost_visible,
            display_units=self._units,
            ink_present=tuple(slot.has_ink for slot in self._slots),
        )

    def navigate_left(self) -> None:
        self._switch_to((self._active + SLOT_COUNT - 1) % SLOT_COUNT)

    def navigate_right(self) -> None:
        self._switch_to((self._active + 1) % SLOT_COUNT)

    def handle_direction(self, direction: Direction) -> None:
        if direction is Direction.LEFT:
            self.navigate_left()
        elif direction is Direction.RIGHT:
            self.navigate_right()

    def reset_for_new_card(self, front_text: str) -> None:
        self._units = tuple(segment(front_text, SLOT_COUNT))
        self._active = 0
        self._ghost_visible = False
        for slot, unit in zip(self._slots, self._units):
            slot.clear()
            slot.set_ghost(unit, visible=False)

    def set_ghost_visible(self, visible: bool) -> None:
        self._ghost_visible = bool(visible)
        for slot, unit in zip(self._slots, self._units):
            slot.set_ghost(unit, visible=self._ghost_visible)

    def clear_all(self) -> None:
        for slot in self._slots:
            slot.clear()

    def pointer_down(self, pos: Point) -> None:
        self.active_slot.pointer_down(pos)

    def pointer_move(self, pos: Point) -> None:
        self.active_slot.pointer_move(pos)

    def pointer_up(self) -> None:
        self.active_slot.pointer_up()

    def _switch_to(self, index: int) -> None:
        # A stroke never carries over into another slot.
        self.active_slot.pointer_up()
        self._active = index
