"""Pygame UI shell for the Hanzi Trainer.

The practice loop (queue scheduling, slot navigation, reveal/grade phases)
lives in hanzi_trainer/* core modules. This module only renders their
snapshots, owns the pygame-backed drawing surfaces, and forwards input.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import pygame

from .canvas_slot import GHOST_ALPHA, Point
from .config import TrainerConfig
from .multi_slot import SLOT_COUNT, Direction, MultiSlotSurface
from .practice_queue import ItemTag, VocabularyRecord
from .session import Phase, RealClock, SessionController, SessionSnapshot
from .speech import NullSpeaker, OfflineTtsSpeaker, build_speaker
from .vocabulary import load_vocabulary, sample_vocabulary

logger = logging.getLogger(__name__)

WINDOW_SIZE = (960, 640)
TARGET_FPS = 60

INK_COLOR = (17, 24, 39)
INK_WIDTH = 10
GHOST_COLOR = (156, 163, 175)

# Font families with CJK coverage, most common first per platform.
CJK_FONT_CANDIDATES = (
    "notosanscjksc",
    "notosanssc",
    "sourcehansanssc",
    "wenquanyimicrohei",
    "wenquanyizenhei",
    "microsoftyahei",
    "simhei",
    "pingfangsc",
    "heitisc",
    "arialunicodems",
)


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


@dataclass(frozen=True, slots=True)
class MenuItem:
    label: str
    action: Callable[[], None]


class App:
    def __init__(self, surface: pygame.Surface, font: pygame.font.Font) -> None:
        self._surface = surface
        self._font = font
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def font(self) -> pygame.font.Font:
        return self._font

    @property
    def top(self) -> Screen | None:
        return self._screens[-1] if self._screens else None

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def pop(self) -> None:
        # Never pop the last/root screen; root handles its own quit/back behavior.
        if len(self._screens) > 1:
            closed = self._screens.pop()
            close = getattr(closed, "close", None)
            if callable(close):
                close()

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def update(self) -> None:
        update = getattr(self.top, "update", None)
        if callable(update):
            update()

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


_font_path_cache: dict[str, str | None] = {}


def _cjk_font_path() -> str | None:
    if "cjk" not in _font_path_cache:
        path = pygame.font.match_font(list(CJK_FONT_CANDIDATES))
        if path is None:
            logger.warning("No CJK font found; ghost characters may render as boxes")
        _font_path_cache["cjk"] = path
    return _font_path_cache["cjk"]


class PygameInkSurface:
    """DrawingSurface backed by two transparent pygame layers (ghost + ink)."""

    def __init__(self, size: tuple[int, int]) -> None:
        self._size = (int(size[0]), int(size[1]))
        self._ink = pygame.Surface(self._size, pygame.SRCALPHA)
        self._ghost = pygame.Surface(self._size, pygame.SRCALPHA)
        self._fonts: dict[int, pygame.font.Font] = {}

    @property
    def size(self) -> tuple[int, int]:
        return self._size

    @property
    def ink_layer(self) -> pygame.Surface:
        return self._ink

    @property
    def ghost_layer(self) -> pygame.Surface:
        return self._ghost

    def measure_width(self, text: str, font_px: int) -> float:
        return float(self._font(font_px).size(text)[0])

    def draw_segment(self, start: Point, end: Point) -> None:
        a = (int(round(start[0])), int(round(start[1])))
        b = (int(round(end[0])), int(round(end[1])))
        pygame.draw.line(self._ink, INK_COLOR, a, b, INK_WIDTH)
        # Round caps/joins so consecutive segments read as one stroke.
        pygame.draw.circle(self._ink, INK_COLOR, a, INK_WIDTH // 2)
        pygame.draw.circle(self._ink, INK_COLOR, b, INK_WIDTH // 2)

    def clear_ink(self) -> None:
        self._ink.fill((0, 0, 0, 0))

    def show_ghost(self, text: str, font_px: int) -> None:
        self._ghost.fill((0, 0, 0, 0))
        glyph = self._font(font_px).render(text, True, GHOST_COLOR)
        glyph.set_alpha(int(round(255 * GHOST_ALPHA)))
        w, h = self._size
        self._ghost.blit(glyph, glyph.get_rect(center=(w // 2, h // 2)))

    def hide_ghost(self) -> None:
        self._ghost.fill((0, 0, 0, 0))

    def _font(self, font_px: int) -> pygame.font.Font:
        font = self._fonts.get(font_px)
        if font is None:
            font = pygame.font.Font(_cjk_font_path(), int(font_px))
            self._fonts[font_px] = font
        return font


class MenuScreen:
    def __init__(self, app: App, title: str, items: list[MenuItem], *, is_root: bool = False) -> None:
        self._app = app
        self._title = title
        self._items = items
        self._selected = 0
        self._is_root = is_root
        self._title_font = pygame.font.Font(None, 42)
        self._item_font = pygame.font.Font(None, 32)
        self._hint_font = pygame.font.Font(None, 22)
        self._item_hitboxes: list[pygame.Rect] = []

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN:
            self._handle_key(event.key)
            return
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            for idx, rect in enumerate(self._item_hitboxes):
                if rect.collidepoint(event.pos):
                    self._selected = idx
                    self._activate()
                    return

    def _handle_key(self, key: int) -> None:
        if key in (pygame.K_UP, pygame.K_w):
            self._move(-1)
        elif key in (pygame.K_DOWN, pygame.K_s):
            self._move(1)
        elif key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            self._activate()
        elif key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            self._back()

    def _move(self, delta: int) -> None:
        if not self._items:
            return
        self._selected = (self._selected + delta) % len(self._items)

    def _activate(self) -> None:
        if not self._items:
            return
        self._items[self._selected].action()

    def _back(self) -> None:
        if self._is_root:
            self._app.quit()
        else:
            self._app.pop()

    def render(self, surface: pygame.Surface) -> None:
        w, h = surface.get_size()
        surface.fill((248, 250, 252))

        title = self._title_font.render(self._title, True, (17, 24, 39))
        surface.blit(title, title.get_rect(midtop=(w // 2, max(24, h // 8))))

        row_w = min(420, w - 80)
        row_h = 48
        y = max(90, h // 3)
        self._item_hitboxes = []
        for idx, item in enumerate(self._items):
            row = pygame.Rect((w - row_w) // 2, y, row_w, row_h)
            selected = idx == self._selected
            pygame.draw.rect(surface, (59, 130, 246) if selected else (255, 255, 255), row, border_radius=10)
            pygame.draw.rect(surface, (209, 213, 219), row, 1, border_radius=10)
            color = (255, 255, 255) if selected else (31, 41, 55)
            text = self._item_font.render(item.label, True, color)
            surface.blit(text, text.get_rect(center=row.center))
            self._item_hitboxes.append(row)
            y += row_h + 12

        foot = self._hint_font.render("Enter/Space: Select  |  Up/Down: Move  |  Esc: Back", True, (107, 114, 128))
        surface.blit(foot, foot.get_rect(midbottom=(w // 2, h - 12)))


class TrainerScreen:
    """Card view: meaning prompt, four-slot drawing strip, reveal and grade controls.

    Keys: Left/Right switch slot, Space/Enter reveal, C or 1 correct,
    X or 2 incorrect, R restart (when done), Esc back.
    """

    def __init__(
        self,
        app: App,
        *,
        records: list[VocabularyRecord],
        speaker: OfflineTtsSpeaker | NullSpeaker,
        rng: random.Random,
        canvas_px: int = 300,
    ) -> None:
        self._app = app
        self._speaker = speaker
        self._canvas_px = int(canvas_px)
        self._ink_surfaces: list[PygameInkSurface] = []

        def make_surface(_index: int) -> PygameInkSurface:
            s = PygameInkSurface((self._canvas_px, self._canvas_px))
            self._ink_surfaces.append(s)
            return s

        self._controller = SessionController(
            records=records,
            surface=MultiSlotSurface(make_surface),
            speaker=speaker,
            rng=rng,
            clock=RealClock(),
        )

        self._title_font = pygame.font.Font(None, 44)
        self._pron_font = pygame.font.Font(_cjk_font_path(), 30)
        self._small_font = pygame.font.Font(None, 26)
        self._tiny_font = pygame.font.Font(None, 20)

        self._canvas_rect = self._layout_canvas(WINDOW_SIZE)
        self._buttons: dict[str, pygame.Rect] = {}
        self._finger_id: int | None = None

    @property
    def controller(self) -> SessionController:
        return self._controller

    @property
    def canvas_rect(self) -> pygame.Rect:
        return self._canvas_rect

    @property
    def buttons(self) -> dict[str, pygame.Rect]:
        """Clickable control hitboxes, refreshed during render."""
        return dict(self._buttons)

    def close(self) -> None:
        self._speaker.stop()

    def update(self) -> None:
        self._speaker.update()

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN:
            self._handle_key(event.key)
            return

        # Touches also arrive as synthesised mouse events; only count them once.
        if event.type in (pygame.MOUSEBUTTONDOWN, pygame.MOUSEMOTION, pygame.MOUSEBUTTONUP):
            if getattr(event, "touch", False):
                return

        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self._click_button(event.pos):
                return
            self._press(event.pos)
        elif event.type == pygame.MOUSEMOTION:
            if event.buttons[0]:
                self._drag(event.pos)
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self._controller.surface.pointer_up()
        elif event.type in (pygame.FINGERDOWN, pygame.FINGERMOTION, pygame.FINGERUP):
            self._handle_finger(event)
        elif event.type == pygame.WINDOWLEAVE:
            self._controller.surface.pointer_up()

    def _handle_key(self, key: int) -> None:
        c = self._controller
        if key == pygame.K_ESCAPE:
            self._app.pop()
        elif key == pygame.K_LEFT:
            c.surface.handle_direction(Direction.LEFT)
        elif key == pygame.K_RIGHT:
            c.surface.handle_direction(Direction.RIGHT)
        elif key in (pygame.K_SPACE, pygame.K_RETURN, pygame.K_KP_ENTER):
            c.reveal()
        elif key in (pygame.K_c, pygame.K_1):
            c.grade_correct()
        elif key in (pygame.K_x, pygame.K_2):
            c.grade_incorrect()
        elif key == pygame.K_r and c.phase is Phase.DONE:
            c.restart()

    def _handle_finger(self, event: pygame.event.Event) -> None:
        display = pygame.display.get_surface()
        w, h = display.get_size() if display is not None else WINDOW_SIZE
        pos = (int(event.x * w), int(event.y * h))
        if event.type == pygame.FINGERDOWN:
            # One stroke at a time; extra fingers are ignored until it lifts.
            if self._finger_id is not None:
                return
            if not self._click_button(pos):
                self._finger_id = event.finger_id
                self._press(pos)
            return
        if event.finger_id != self._finger_id:
            return
        if event.type == pygame.FINGERMOTION:
            self._drag(pos)
        else:
            self._finger_id = None
            self._controller.surface.pointer_up()

    def _press(self, pos: tuple[int, int]) -> None:
        if self._controller.phase is Phase.DONE:
            return
        if self._canvas_rect.collidepoint(pos):
            self._controller.surface.pointer_down(self._to_canvas(pos))

    def _drag(self, pos: tuple[int, int]) -> None:
        surface = self._controller.surface
        if not self._canvas_rect.collidepoint(pos):
            # Leaving the canvas ends the stroke.
            surface.pointer_up()
            return
        surface.pointer_move(self._to_canvas(pos))

    def _to_canvas(self, pos: tuple[int, int]) -> Point:
        return (float(pos[0] - self._canvas_rect.x), float(pos[1] - self._canvas_rect.y))

    def _click_button(self, pos: tuple[int, int]) -> bool:
        c = self._controller
        actions: dict[str, Callable[[], object]] = {
            "left": lambda: c.surface.handle_direction(Direction.LEFT),
            "right": lambda: c.surface.handle_direction(Direction.RIGHT),
            "reveal": c.reveal,
            "correct": c.grade_correct,
            "incorrect": c.grade_incorrect,
            "restart": c.restart,
        }
        for name, rect in self._buttons.items():
            if rect.collidepoint(pos):
                actions[name]()
                return True
        return False

    def _layout_canvas(self, size: tuple[int, int]) -> pygame.Rect:
        w, _ = size
        return pygame.Rect((w - self._canvas_px) // 2, 150, self._canvas_px, self._canvas_px)

    def render(self, surface: pygame.Surface) -> None:
        snap = self._controller.snapshot()
        surface.fill((248, 250, 252))
        self._canvas_rect = self._layout_canvas(surface.get_size())
        self._buttons = {}

        if snap.phase is Phase.DONE:
            self._render_done(surface, snap)
            return

        w, _ = surface.get_size()
        meaning = self._title_font.render(snap.meaning, True, (17, 24, 39))
        surface.blit(meaning, (32, 28))
        if snap.pronunciation is not None:
            pron = self._pron_font.render(snap.pronunciation, True, (75, 85, 99))
            surface.blit(pron, (32, 72))

        progress = f"{snap.position + 1}/{snap.queue_length}"
        if snap.tag is not None and snap.tag is not ItemTag.NONE:
            progress += "  (review)"
        prog = self._tiny_font.render(progress, True, (107, 114, 128))
        surface.blit(prog, prog.get_rect(topright=(w - 24, 24)))

        self._buttons["reveal"] = self._draw_button(surface, "Check", (32, 108), enabled=snap.phase is Phase.PROMPT)
        if snap.phase is Phase.REVEALED:
            self._buttons["correct"] = self._draw_button(surface, "Correct (C)", (152, 108))
            self._buttons["incorrect"] = self._draw_button(surface, "Wrong (X)", (292, 108))

        self._render_canvas(surface, snap)

    def _render_canvas(self, surface: pygame.Surface, snap: SessionSnapshot) -> None:
        rect = self._canvas_rect
        active = snap.slots.active_slot_index
        pygame.draw.rect(surface, (255, 255, 255), rect, border_radius=16)
        layer = self._ink_surfaces[active]
        surface.blit(layer.ghost_layer, rect.topleft)
        surface.blit(layer.ink_layer, rect.topleft)
        pygame.draw.rect(surface, (209, 213, 219), rect, 1, border_radius=16)

        nav_y = rect.bottom + 12
        self._buttons["left"] = self._draw_button(surface, "<", (rect.x, nav_y))
        self._buttons["right"] = self._draw_button(surface, ">", (rect.right - 44, nav_y))
        label = self._small_font.render(f"{active + 1}/{SLOT_COUNT}", True, (55, 65, 81))
        surface.blit(label, label.get_rect(center=(rect.centerx, nav_y + 18)))

        # Thumbnails of all four slots.
        thumb = 56
        x = rect.right + 24
        for i, layer in enumerate(self._ink_surfaces):
            box = pygame.Rect(x, rect.y + i * (thumb + 10), thumb, thumb)
            pygame.draw.rect(surface, (255, 255, 255), box)
            surface.blit(pygame.transform.smoothscale(layer.ghost_layer, box.size), box.topleft)
            surface.blit(pygame.transform.smoothscale(layer.ink_layer, box.size), box.topleft)
            border = (59, 130, 246) if i == active else (209, 213, 219)
            pygame.draw.rect(surface, border, box, 2 if i == active else 1)

    def _render_done(self, surface: pygame.Surface, snap: SessionSnapshot) -> None:
        w, h = surface.get_size()
        s = snap.summary
        title = self._title_font.render("Done!", True, (17, 24, 39))
        surface.blit(title, title.get_rect(midtop=(w // 2, h // 4)))
        lines = [
            f"Graded: {s.graded}   Correct: {s.correct}   Wrong: {s.incorrect}",
            f"Accuracy: {int(round(s.accuracy * 100))}%   Time: {s.duration_s:.0f}s",
        ]
        y = h // 4 + 60
        for line in lines:
            text = self._small_font.render(line, True, (55, 65, 81))
            surface.blit(text, text.get_rect(midtop=(w // 2, y)))
            y += 32
        self._buttons["restart"] = self._draw_button(surface, "Start Again (R)", (w // 2 - 80, y + 20))

    def _draw_button(
        self,
        surface: pygame.Surface,
        label: str,
        topleft: tuple[int, int],
        *,
        enabled: bool = True,
    ) -> pygame.Rect:
        text = self._small_font.render(label, True, (31, 41, 55) if enabled else (156, 163, 175))
        rect = pygame.Rect(topleft, (max(44, text.get_width() + 24), 36))
        pygame.draw.rect(surface, (255, 255, 255), rect, border_radius=8)
        pygame.draw.rect(surface, (209, 213, 219), rect, 1, border_radius=8)
        surface.blit(text, text.get_rect(center=rect.center))
        return rect


def _load_records(config: TrainerConfig) -> list[VocabularyRecord]:
    if config.vocab_path is None:
        return sample_vocabulary()
    try:
        records = load_vocabulary(config.vocab_path)
    except (OSError, UnicodeDecodeError):
        logger.exception("Could not read vocabulary from %s; using the sample deck", config.vocab_path)
        return sample_vocabulary()
    logger.info("Loaded %d records from %s", len(records), config.vocab_path)
    return records


def _new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    config: TrainerConfig | None = None,
) -> int:
    cfg = config or TrainerConfig.from_env()

    pygame.init()
    pygame.display.set_caption("Hanzi Trainer")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)

    font = pygame.font.Font(None, 36)
    clock = pygame.time.Clock()

    app = App(surface=surface, font=font)
    records = _load_records(cfg)
    speaker = build_speaker()

    def open_practice() -> None:
        seed = cfg.seed if cfg.seed is not None else _new_seed()
        logger.info("Opening practice with seed %d", seed)
        app.push(
            TrainerScreen(
                app,
                records=records,
                speaker=speaker,
                rng=random.Random(seed),
                canvas_px=cfg.canvas_px,
            )
        )

    main_items = [
        MenuItem("Practice", open_practice),
        MenuItem("Quit", app.quit),
    ]
    app.push(MenuScreen(app, "Hanzi Trainer", main_items, is_root=True))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.update()
            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(TARGET_FPS)
    finally:
        speaker.stop()
        pygame.quit()

    return 0
