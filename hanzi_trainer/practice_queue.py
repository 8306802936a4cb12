from __future__ import annotations

import random
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from enum import StrEnum

SHORT_REINSERT_OFFSET = 4


class ItemTag(StrEnum):
    NONE = "none"
    SCHEDULED_SHORT = "scheduled_short"
    SCHEDULED_END = "scheduled_end"


@dataclass(frozen=True, slots=True)
class VocabularyRecord:
    front_text: str
    pronunciation: str
    meaning: str


@dataclass(frozen=True, slots=True)
class QueueItem:
    item_id: str
    source_id: str
    front_text: str
    pronunciation: str
    meaning: str
    tag: ItemTag = ItemTag.NONE


def new_item_id() -> str:
    return uuid.uuid4().hex


class PracticeQueue:
    """Ordered deck with a cursor, reordered in response to grading.

    - An incorrect grade schedules two more attempts of the same record:
      one about four cards ahead and one at the very end.
    - ``position == len(queue)`` is the exhausted state; only ``restart``
      leaves it.
    - Every mutation swaps in a new item tuple in one assignment, so
      ``current()`` never sees a half-spliced queue.
    """

    def __init__(self, *, id_factory: Callable[[], str] = new_item_id) -> None:
        self._new_id = id_factory
        self._items: tuple[QueueItem, ...] = ()
        self._position = 0

    def __len__(self) -> int:
        return len(self._items)

    @property
    def position(self) -> int:
        return self._position

    @property
    def is_exhausted(self) -> bool:
        return self._position >= len(self._items)

    @property
    def remaining(self) -> int:
        """Items left to practise, the current one included."""
        return len(self._items) - self._position

    def items(self) -> tuple[QueueItem, ...]:
        return self._items

    def current(self) -> QueueItem | None:
        if self.is_exhausted:
            return None
        return self._items[self._position]

    def restart(self, records: Sequence[VocabularyRecord], rng: random.Random) -> None:
        items = [
            QueueItem(
                item_id=self._new_id(),
                source_id=self._new_id(),
                front_text=r.front_text,
                pronunciation=r.pronunciation,
                meaning=r.meaning,
            )
            for r in records
        ]
        rng.shuffle(items)
        self._items = tuple(items)
        self._position = 0

    def advance_on_correct(self) -> None:
        if self.is_exhausted:
            return
        self._position += 1

    def advance_on_incorrect(self) -> tuple[QueueItem, QueueItem] | None:
        """Reinsert the current item and advance. Returns the (short, end) copies."""

        current = self.current()
        if current is None:
            return None

        short = replace(current, item_id=self._new_id(), tag=ItemTag.SCHEDULED_SHORT)
        end = replace(current, item_id=self._new_id(), tag=ItemTag.SCHEDULED_END)

        # Clamp against the length before the end copy is appended.
        items = list(self._items)
        insert_at = min(self._position + SHORT_REINSERT_OFFSET, len(items))
        items.insert(insert_at, short)
        items.append(end)

        self._items = tuple(items)
        self._position += 1
        return short, end
