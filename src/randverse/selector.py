from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from .catalog import Book
from .errors import EmptyPoolError


class RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int: ...


@dataclass(frozen=True, slots=True)
class Selection:
    book: Book
    local_offset: int
    global_index: int
    pool_lines: int


def total_lines(pool: Sequence[Book]) -> int:
    return sum(book.line_count for book in pool)


def locate_line(pool: Sequence[Book], choice: int) -> tuple[Book, int]:
    """Map a 1-based global line index over ``pool`` to ``(book, local_offset)``."""
    cumulative = 0
    for book in pool:
        if choice <= cumulative + book.line_count:
            return book, choice - cumulative
        cumulative += book.line_count
    raise IndexError(f"Line {choice} is outside the pool ({cumulative} lines).")


def select_line(pool: Sequence[Book], rng: RandomSource) -> Selection:
    """Pick one line uniformly at random across every line in ``pool``.

    Longer books are proportionally more likely to be chosen, so each line has
    probability ``1 / total``. Books with no lines are never selected.
    """
    total = total_lines(pool)
    if total <= 0:
        raise EmptyPoolError("No verses available in the selected range.")
    choice = rng.randint(1, total)
    book, offset = locate_line(pool, choice)
    return Selection(book=book, local_offset=offset, global_index=choice, pool_lines=total)


__all__ = ["RandomSource", "Selection", "locate_line", "select_line", "total_lines"]
