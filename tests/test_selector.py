from __future__ import annotations

import random
from collections import Counter

import pytest

from randverse.catalog import Book
from randverse.errors import EmptyPoolError
from randverse.selector import locate_line, select_line, total_lines


class _FixedRandom:
    def __init__(self, *values: int) -> None:
        self.values = list(values)
        self.calls: list[tuple[int, int]] = []

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        return self.values.pop(0)


GENESIS = Book(id=10, name="Genesis", line_count=1533)
EXODUS = Book(id=20, name="Exodus", line_count=1213)
EMPTY = Book(id=15, name="Blank", line_count=0)


def test_select_line_draws_over_whole_pool() -> None:
    rng = _FixedRandom(1534)
    selection = select_line([GENESIS, EXODUS], rng)
    assert rng.calls == [(1, 2746)]
    assert selection.book == EXODUS
    assert selection.local_offset == 1
    assert selection.global_index == 1534
    assert selection.pool_lines == 2746


@pytest.mark.parametrize(
    ("choice", "expected"),
    [(1, (GENESIS, 1)), (1533, (GENESIS, 1533)), (1534, (EXODUS, 1)), (2746, (EXODUS, 1213))],
)
def test_locate_line_boundaries(choice: int, expected: tuple[Book, int]) -> None:
    assert locate_line([GENESIS, EXODUS], choice) == expected


def test_locate_line_skips_empty_books() -> None:
    pool = [EMPTY, GENESIS, EMPTY, EXODUS]
    assert locate_line(pool, 1) == (GENESIS, 1)
    assert locate_line(pool, 1534) == (EXODUS, 1)


def test_locate_line_outside_pool() -> None:
    with pytest.raises(IndexError):
        locate_line([GENESIS], 1534)


@pytest.mark.parametrize("pool", [[], [EMPTY], [EMPTY, EMPTY]])
def test_select_line_empty_pool(pool: list[Book]) -> None:
    with pytest.raises(EmptyPoolError):
        select_line(pool, _FixedRandom())


def test_select_line_stays_within_bounds() -> None:
    rng = random.Random(7)
    pool = [GENESIS, EMPTY, EXODUS]
    for _ in range(2000):
        selection = select_line(pool, rng)
        assert selection.book in (GENESIS, EXODUS)
        assert 1 <= selection.local_offset <= selection.book.line_count


def test_select_line_is_uniform_over_lines() -> None:
    long_book = Book(id=1, name="Long", line_count=3)
    short_book = Book(id=2, name="Short", line_count=1)
    pool = [long_book, short_book]
    rng = random.Random(1234)
    draws = 40000

    counts: Counter[int] = Counter()
    for _ in range(draws):
        selection = select_line(pool, rng)
        start = 0 if selection.book is long_book else long_book.line_count
        counts[start + selection.local_offset] += 1

    assert set(counts) == {1, 2, 3, 4}
    expected = draws / total_lines(pool)
    for index in range(1, 5):
        assert abs(counts[index] - expected) < expected * 0.05


def test_select_line_requires_a_generator() -> None:
    with pytest.raises(TypeError):
        select_line([GENESIS])  # type: ignore[call-arg]
