from __future__ import annotations

import itertools
import random
from collections import Counter

import pytest

from hanzi_trainer.practice_queue import ItemTag, PracticeQueue, VocabularyRecord


def _records(*fronts: str) -> list[VocabularyRecord]:
    return [VocabularyRecord(front_text=f, pronunciation=f"p{f}", meaning=f"m{f}") for f in fronts]


def _queue() -> PracticeQueue:
    counter = itertools.count(1)
    return PracticeQueue(id_factory=lambda: f"id{next(counter)}")


class NoShuffle(random.Random):
    def shuffle(self, x) -> None:  # type: ignore[override]
        return None


def test_restart_builds_one_item_per_record_at_position_zero() -> None:
    records = _records("你", "好", "是", "不", "我")
    q = _queue()
    q.restart(records, random.Random(3))

    assert len(q) == 5
    assert q.position == 0
    assert Counter(i.front_text for i in q.items()) == Counter(r.front_text for r in records)
    assert len({i.item_id for i in q.items()}) == 5
    assert len({i.source_id for i in q.items()}) == 5
    assert all(i.tag is ItemTag.NONE for i in q.items())


def test_restart_order_follows_injected_rng() -> None:
    records = _records(*"一二三四五六七八")
    q = _queue()
    q.restart(records, random.Random(42))

    mirror = [r.front_text for r in records]
    random.Random(42).shuffle(mirror)
    assert [i.front_text for i in q.items()] == mirror


def test_restart_discards_previous_session() -> None:
    q = _queue()
    q.restart(_records("A", "B", "C"), random.Random(1))
    q.advance_on_incorrect()
    q.advance_on_correct()

    q.restart(_records("A", "B", "C"), random.Random(2))
    assert len(q) == 3
    assert q.position == 0
    assert Counter(i.front_text for i in q.items()) == Counter("ABC")


def test_correct_advances_without_structural_change() -> None:
    q = _queue()
    q.restart(_records("A", "B", "C"), NoShuffle())
    before = q.items()

    q.advance_on_correct()

    assert q.items() == before
    assert q.position == 1


def test_incorrect_adds_two_and_advances_one() -> None:
    q = _queue()
    q.restart(_records(*"ABCDEFGH"), NoShuffle())
    q.advance_on_correct()
    graded = q.current()
    assert graded is not None

    old_len, old_pos = len(q), q.position
    copies = q.advance_on_incorrect()

    assert copies is not None
    short, end = copies
    assert len(q) == old_len + 2
    assert q.position == old_pos + 1

    items = q.items()
    assert items[min(old_pos + 4, old_len)] is short
    assert items[-1] is end
    assert short.tag is ItemTag.SCHEDULED_SHORT
    assert end.tag is ItemTag.SCHEDULED_END
    assert short.source_id == end.source_id == graded.source_id
    assert len({short.item_id, end.item_id, graded.item_id}) == 3
    assert (short.front_text, short.pronunciation, short.meaning) == (
        graded.front_text,
        graded.pronunciation,
        graded.meaning,
    )


def test_short_copy_is_clamped_to_length_before_end_append() -> None:
    q = _queue()
    q.restart(_records("A", "B", "C"), NoShuffle())
    q.advance_on_correct()
    q.advance_on_correct()

    q.advance_on_incorrect()

    fronts = [i.front_text for i in q.items()]
    tags = [i.tag for i in q.items()]
    assert fronts == ["A", "B", "C", "C", "C"]
    assert tags[3] is ItemTag.SCHEDULED_SHORT
    assert tags[4] is ItemTag.SCHEDULED_END
    assert q.position == 3


def test_short_copy_lands_four_ahead_in_a_long_deck() -> None:
    q = _queue()
    q.restart(_records(*"ABCDEFGHIJ"), NoShuffle())
    q.advance_on_incorrect()

    fronts = [i.front_text for i in q.items()]
    assert fronts == list("ABCDAEFGHIJA")


def test_all_correct_exhausts_after_k_gradings() -> None:
    q = _queue()
    q.restart(_records(*"ABCD"), random.Random(0))
    for _ in range(4):
        assert not q.is_exhausted
        q.advance_on_correct()
    assert q.is_exhausted
    assert q.current() is None
    assert q.remaining == 0


def test_any_incorrect_delays_exhaustion() -> None:
    q = _queue()
    q.restart(_records(*"ABCD"), random.Random(0))
    q.advance_on_incorrect()
    gradings = 1
    while not q.is_exhausted:
        q.advance_on_correct()
        gradings += 1
    assert gradings == 6


def test_grading_an_exhausted_queue_is_a_no_op() -> None:
    q = _queue()
    q.restart(_records("A"), random.Random(0))
    q.advance_on_correct()
    snapshot = (q.items(), q.position)

    q.advance_on_correct()
    assert q.advance_on_incorrect() is None
    assert (q.items(), q.position) == snapshot


def test_empty_deck_is_immediately_exhausted() -> None:
    q = _queue()
    q.restart([], random.Random(0))
    assert q.is_exhausted
    assert q.current() is None
    assert len(q) == 0


def test_correct_grade_keeps_previously_scheduled_copies() -> None:
    q = _queue()
    q.restart(_records("A", "B"), NoShuffle())
    q.advance_on_incorrect()  # A wrong -> [A, B, A*, A*]
    q.advance_on_correct()  # B
    q.advance_on_correct()  # short copy of A, now right

    remaining = q.items()[q.position :]
    assert [i.front_text for i in remaining] == ["A"]
    assert remaining[0].tag is ItemTag.SCHEDULED_END


def test_readers_never_see_a_partial_splice() -> None:
    q = _queue()
    q.restart(_records(*"ABCDE"), NoShuffle())
    seen = q.items()
    q.advance_on_incorrect()
    assert len(seen) == 5
    assert len(q.items()) == 7


@pytest.mark.parametrize("seed", range(5))
def test_restart_multiset_is_stable_across_seeds(seed: int) -> None:
    records = _records(*"ABCDEF")
    q = _queue()
    q.restart(records, random.Random(seed))
    assert sorted(i.front_text for i in q.items()) == list("ABCDEF")
