from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from hanzi_trainer.multi_slot import SLOT_COUNT, Direction, MultiSlotSurface


@dataclass
class FakeSurface:
    size: tuple[int, int] = (300, 300)
    segments: list[tuple[tuple[float, float], tuple[float, float]]] = field(default_factory=list)
    ghost: tuple[str, int] | None = None

    def measure_width(self, text: str, font_px: int) -> float:
        return float(len(text) * font_px)

    def draw_segment(self, start: tuple[float, float], end: tuple[float, float]) -> None:
        self.segments.append((start, end))

    def clear_ink(self) -> None:
        self.segments.clear()

    def show_ghost(self, text: str, font_px: int) -> None:
        self.ghost = (text, font_px)

    def hide_ghost(self) -> None:
        self.ghost = None


def _build() -> tuple[MultiSlotSurface, list[FakeSurface]]:
    surfaces: list[FakeSurface] = []

    def factory(_index: int) -> FakeSurface:
        s = FakeSurface()
        surfaces.append(s)
        return s

    return MultiSlotSurface(factory), surfaces


def _scribble(multi: MultiSlotSurface) -> None:
    multi.pointer_down((10, 10))
    multi.pointer_move((40, 40))
    multi.pointer_up()


def test_always_four_slots() -> None:
    multi, surfaces = _build()
    assert len(multi.slots) == SLOT_COUNT == 4
    assert len(surfaces) == 4


def test_navigation_wraps_both_ways() -> None:
    multi, _ = _build()
    assert multi.active_slot_index == 0
    multi.navigate_left()
    assert multi.active_slot_index == 3
    multi.navigate_right()
    assert multi.active_slot_index == 0

    for expected in (1, 2, 3, 0, 1):
        multi.navigate_right()
        assert multi.active_slot_index == expected


def test_direction_input_matches_explicit_navigation() -> None:
    a, _ = _build()
    b, _ = _build()
    for d in (Direction.LEFT, Direction.LEFT, Direction.RIGHT, Direction.LEFT):
        a.handle_direction(d)
        if d is Direction.LEFT:
            b.navigate_left()
        else:
            b.navigate_right()
        assert a.active_slot_index == b.active_slot_index


def test_pointer_input_goes_to_active_slot_only() -> None:
    multi, surfaces = _build()
    multi.navigate_right()
    multi.navigate_right()
    _scribble(multi)

    assert multi.state().ink_present == (False, False, True, False)
    assert surfaces[2].segments
    assert not any(s.segments for i, s in enumerate(surfaces) if i != 2)


def test_switching_slot_mid_stroke_ends_the_stroke() -> None:
    multi, surfaces = _build()
    multi.pointer_down((0, 0))
    multi.navigate_right()
    multi.pointer_move((5, 5))
    assert all(not s.segments for s in surfaces)


def test_reset_for_new_card_clears_every_slot_and_returns_to_first() -> None:
    multi, surfaces = _build()
    multi.reset_for_new_card("你好")
    for _ in range(4):
        _scribble(multi)
        multi.navigate_right()
    multi.navigate_right()
    multi.set_ghost_visible(True)
    assert all(multi.state().ink_present)

    multi.reset_for_new_card("汉日词典")

    state = multi.state()
    assert state.ink_present == (False, False, False, False)
    assert state.active_slot_index == 0
    assert state.ghost_visible is False
    assert state.display_units == ("汉", "日", "词", "典")
    assert all(s.ghost is None for s in surfaces)


def test_reveal_shows_ghosts_without_clearing_or_moving() -> None:
    multi, surfaces = _build()
    multi.reset_for_new_card("你")
    multi.navigate_right()
    _scribble(multi)

    multi.set_ghost_visible(True)

    assert multi.active_slot_index == 1
    assert multi.state().ink_present == (False, True, False, False)
    assert surfaces[0].ghost is not None and surfaces[0].ghost[0] == "你"
    # Slots without a unit stay blank.
    assert [s.ghost for s in surfaces[1:]] == [None, None, None]

    multi.set_ghost_visible(False)
    assert surfaces[0].ghost is None
    assert multi.state().ink_present == (False, True, False, False)


@pytest.mark.parametrize("word", ["", "你", "不客气", "一二三四五"])
def test_display_units_always_four(word: str) -> None:
    multi, _ = _build()
    multi.reset_for_new_card(word)
    assert len(multi.display_units) == 4
