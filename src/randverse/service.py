from __future__ import annotations

import random
import threading
from dataclasses import dataclass
from pathlib import Path

from .catalog import Book, Catalog, Translations, _debug_log, load_catalog
from .categories import CategoryInfo, load_categories
from .corpus import CorpusDirectory
from .errors import InvalidCategoryError
from .extract import VerseStream, open_verse_stream
from .selector import RandomSource, select_line


@dataclass(slots=True)
class VerseResult:
    book: Book
    local_offset: int
    lines: VerseStream

    @property
    def book_name(self) -> str:
        return self.book.name

    @property
    def total_lines(self) -> int:
        return self.book.line_count

    def __enter__(self) -> "VerseResult":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.lines.close()


class _LockedRandom:
    """Serialize draws from one generator shared by request threads."""

    def __init__(self, rng: random.Random) -> None:
        self._rng = rng
        self._lock = threading.Lock()

    def randint(self, a: int, b: int) -> int:
        with self._lock:
            return self._rng.randint(a, b)


class VerseService:
    def __init__(
        self,
        catalog: Catalog,
        source: CorpusDirectory,
        rng: RandomSource | None = None,
    ) -> None:
        self.catalog = catalog
        self.source = source
        self.rng: RandomSource = rng if rng is not None else _LockedRandom(random.Random())

    @classmethod
    def from_paths(
        cls,
        corpus_dir: Path,
        categories_path: Path | None = None,
        *,
        seed: int | None = None,
    ) -> "VerseService":
        """Load categories and the catalog; raises on any startup failure."""
        source = CorpusDirectory(Path(corpus_dir).expanduser())
        catalog = load_catalog(source, load_categories(categories_path))
        rng = _LockedRandom(random.Random(seed)) if seed is not None else None
        return cls(catalog, source, rng)

    @property
    def translations(self) -> Translations:
        return self.catalog.translations

    def list_categories(self) -> list[CategoryInfo]:
        return [
            CategoryInfo(key=category.key, label=self.catalog.label(category.key))
            for category in self.catalog.categories
        ]

    def is_valid_category(self, key: str) -> bool:
        return self.catalog.category(key) is not None

    def pool_for(self, key: str | None) -> tuple[Book, ...]:
        if not key:
            return self.catalog.books
        category = self.catalog.category(key)
        if category is None:
            raise InvalidCategoryError(key, self.list_categories())
        return self.catalog.books_in(category)

    def select_verse(self, key: str | None = None) -> VerseResult:
        """Pick a random verse from the category ``key`` (or the whole corpus).

        The returned result holds an open stream positioned at the chosen
        verse; close it (or use it as a context manager) when done.
        """
        pool = self.pool_for(key)
        selection = select_line(pool, self.rng)
        _debug_log(
            f"Selected line {selection.global_index}/{selection.pool_lines} "
            f"-> {selection.book.name} {selection.local_offset}/{selection.book.line_count}"
        )
        stream = open_verse_stream(self.source, selection.book, selection.local_offset)
        return VerseResult(book=selection.book, local_offset=selection.local_offset, lines=stream)


__all__ = ["VerseResult", "VerseService"]
