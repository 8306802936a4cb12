from __future__ import annotations

import logging
import random
import time
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from .multi_slot import MultiSlotSurface, SlotState
from .practice_queue import ItemTag, PracticeQueue, VocabularyRecord
from .speech import Speaker

logger = logging.getLogger(__name__)


class Clock(Protocol):
    """Monotonic clock; injected so session timing is testable."""

    def now(self) -> float: ...


class RealClock:
    def now(self) -> float:
        return time.monotonic()


class Phase(StrEnum):
    PROMPT = "prompt"
    REVEALED = "revealed"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class SessionSummary:
    graded: int
    correct: int
    incorrect: int
    reinserted: int
    duration_s: float
    accuracy: float


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """View model for the UI (pure data)."""

    phase: Phase
    meaning: str
    pronunciation: str | None
    tag: ItemTag | None
    slots: SlotState
    position: int
    queue_length: int
    remaining: int
    summary: SessionSummary


class SessionController:
    """Turn loop: show meaning -> reveal -> self-grade -> next card.

    Grading is only accepted once the answer has been revealed. After every
    grade the slot surface is cleared and re-seeded for whatever is current,
    or the session moves to DONE when the queue is exhausted.
    """

    def __init__(
        self,
        *,
        records: Sequence[VocabularyRecord],
        surface: MultiSlotSurface,
        speaker: Speaker,
        rng: random.Random,
        clock: Clock,
        queue: PracticeQueue | None = None,
    ) -> None:
        self._records = tuple(records)
        self._surface = surface
        self._speaker = speaker
        self._rng = rng
        self._clock = clock
        self._queue = queue if queue is not None else PracticeQueue()

        self._phase = Phase.DONE
        self._started_at_s = 0.0
        self._finished_at_s: float | None = None
        self._correct = 0
        self._incorrect = 0
        self._reinserted = 0

        self.restart()

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def queue(self) -> PracticeQueue:
        return self._queue

    @property
    def surface(self) -> MultiSlotSurface:
        return self._surface

    def restart(self) -> None:
        self._queue.restart(self._records, self._rng)
        self._started_at_s = self._clock.now()
        self._finished_at_s = None
        self._correct = 0
        self._incorrect = 0
        self._reinserted = 0
        logger.info("Session started with %d cards", len(self._queue))
        self._show_current()

    def reveal(self) -> bool:
        """Show ghosts and request pronunciation. Returns True if accepted."""

        if self._phase is not Phase.PROMPT:
            return False
        item = self._queue.current()
        assert item is not None

        self._phase = Phase.REVEALED
        self._surface.set_ghost_visible(True)
        if item.pronunciation.strip() != "":
            self._request_speech(item.pronunciation)
        return True

    def grade_correct(self) -> bool:
        if self._phase is not Phase.REVEALED:
            return False
        self._queue.advance_on_correct()
        self._correct += 1
        self._show_current()
        return True

    def grade_incorrect(self) -> bool:
        if self._phase is not Phase.REVEALED:
            return False
        copies = self._queue.advance_on_incorrect()
        self._incorrect += 1
        if copies is not None:
            self._reinserted += len(copies)
        self._show_current()
        return True

    def summary(self) -> SessionSummary:
        end = self._finished_at_s if self._finished_at_s is not None else self._clock.now()
        graded = self._correct + self._incorrect
        return SessionSummary(
            graded=graded,
            correct=self._correct,
            incorrect=self._incorrect,
            reinserted=self._reinserted,
            duration_s=max(0.0, end - self._started_at_s),
            accuracy=0.0 if graded == 0 else self._correct / graded,
        )

    def snapshot(self) -> SessionSnapshot:
        item = self._queue.current()
        revealed = self._phase is Phase.REVEALED
        return SessionSnapshot(
            phase=self._phase,
            meaning="" if item is None else item.meaning,
            pronunciation=item.pronunciation if (item is not None and revealed) else None,
            tag=None if item is None else item.tag,
            slots=self._surface.state(),
            position=self._queue.position,
            queue_length=len(self._queue),
            remaining=self._queue.remaining,
            summary=self.summary(),
        )

    def _show_current(self) -> None:
        item = self._queue.current()
        if item is None:
            self._surface.reset_for_new_card("")
            self._finished_at_s = self._clock.now()
            self._phase = Phase.DONE
            logger.info("Session finished: %d correct, %d incorrect", self._correct, self._incorrect)
            return
        self._surface.reset_for_new_card(item.front_text)
        self._phase = Phase.PROMPT

    def _request_speech(self, text: str) -> None:
        try:
            self._speaker.speak(text)
        except Exception:
            # Audio is optional; the trainer keeps working without it.
            logger.warning("Pronunciation playback failed for %r", text, exc_info=True)
