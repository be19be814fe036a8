from __future__ import annotations

import re
import warnings
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

import yaml

from .categories import Category
from .corpus import CorpusDirectory

FRONTMATTER_START = "---\n"
FRONTMATTER_END = "\n---\n"
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
LABEL_SEPARATOR = " — "

_DEBUG_LOG = False


def set_debug_logging(enabled: bool) -> None:
    global _DEBUG_LOG
    _DEBUG_LOG = enabled


def _debug_log(message: str) -> None:
    if _DEBUG_LOG:
        print(f"[randverse debug] {message}")


class CatalogError(RuntimeError):
    """Raised when the catalog cannot be built at startup."""


class MissingIndexError(CatalogError):
    """Raised when the index resource cannot be read."""


class TranslationsError(CatalogError):
    """Raised when the index front matter is not a valid YAML mapping."""


class MalformedIndexError(ValueError):
    """Raised for a single index record that cannot be parsed."""


@dataclass(frozen=True, slots=True)
class Book:
    id: int
    name: str
    line_count: int

    @property
    def file_name(self) -> str:
        return f"{self.id}.txt.gz"


@dataclass(frozen=True, slots=True)
class Translations:
    language: str = "en"
    invalid_param_title: str = "Invalid parameter"
    invalid_param_message: str = "Invalid category: %s"
    accepted_values_message: str = "Accepted values:"
    no_verses_error: str = "No verses available."
    book_not_found_error: str = "Book not found."
    decompression_error: str = "Could not read verses."
    verse_page_title_format: str = "%s (line %d/%d)"

    _YAML_KEYS = {
        "language": "language",
        "invalidParamTitle": "invalid_param_title",
        "invalidParamMessage": "invalid_param_message",
        "acceptedValuesMessage": "accepted_values_message",
        "noVersesError": "no_verses_error",
        "bookNotFoundError": "book_not_found_error",
        "decompressionError": "decompression_error",
        "versePageTitleFormat": "verse_page_title_format",
    }

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> "Translations":
        values: dict[str, str] = {}
        for yaml_key, attr in cls._YAML_KEYS.items():
            value = payload.get(yaml_key)
            if value is None:
                continue
            values[attr] = str(value)
        return cls(**values)

    def as_payload(self) -> dict[str, str]:
        return {yaml_key: getattr(self, attr) for yaml_key, attr in self._YAML_KEYS.items()}

    def invalid_param(self, key: str) -> str:
        return _safe_format(self.invalid_param_message, (key,))

    def verse_title(self, book: Book, offset: int) -> str:
        return _safe_format(
            self.verse_page_title_format,
            (book.name, offset, book.line_count),
            fallback=f"{book.name} (line {offset}/{book.line_count})",
        )

    def message_for(self, error: Exception) -> str:
        kind = getattr(error, "kind", None)
        if kind == "invalid_category":
            return self.invalid_param(getattr(error, "key", ""))
        if kind == "no_verses":
            return self.no_verses_error
        if kind == "book_not_found":
            return self.book_not_found_error
        if kind == "decompression":
            return self.decompression_error
        return str(error)


def _safe_format(template: str, args: tuple[object, ...], fallback: str | None = None) -> str:
    try:
        return template % args
    except (TypeError, ValueError):
        if fallback is not None:
            return fallback
        return " ".join([template, *(str(arg) for arg in args)])


@dataclass(frozen=True, slots=True)
class Catalog:
    books: tuple[Book, ...]
    categories: tuple[Category, ...] = ()
    translations: Translations = field(default_factory=Translations)
    labels: Mapping[str, str] = field(default_factory=dict)

    def category(self, key: str) -> Category | None:
        for category in self.categories:
            if category.key == key:
                return category
        return None

    def label(self, key: str) -> str:
        return self.labels.get(key, "")

    def books_in(self, category: Category) -> tuple[Book, ...]:
        return resolve_range(self.books, category.low_id, category.high_id)


def build_catalog(
    books: Iterable[Book],
    categories: Iterable[Category] = (),
    translations: Translations | None = None,
) -> Catalog:
    """Assemble an immutable catalog, sorting books by ID and caching category labels."""
    ordered = tuple(sorted(books, key=lambda book: book.id))
    category_list = tuple(categories)
    labels = {
        category.key: range_label(resolve_range(ordered, category.low_id, category.high_id))
        for category in category_list
    }
    return Catalog(
        books=ordered,
        categories=category_list,
        translations=translations or Translations(),
        labels=labels,
    )


def resolve_range(books: Sequence[Book], low_id: int, high_id: int) -> tuple[Book, ...]:
    """Return the contiguous run of ``books`` with ``low_id <= id <= high_id``.

    ``books`` must be sorted by ID; the scan stops at the first ID above
    ``high_id``.
    """
    start: int | None = None
    end = -1
    for index, book in enumerate(books):
        if book.id > high_id:
            break
        if book.id >= low_id:
            if start is None:
                start = index
            end = index
    if start is None:
        return ()
    return tuple(books[start : end + 1])


def range_label(books: Sequence[Book]) -> str:
    if not books:
        return ""
    if len(books) == 1:
        return books[0].name
    return books[0].name + LABEL_SEPARATOR + books[-1].name


def parse_book_record(line: str) -> Book:
    parts = line.split("|")
    if len(parts) != 3:
        raise MalformedIndexError(f"expected 3 fields, got {len(parts)}: {line!r}")
    raw_id, name, raw_count = parts
    if not _INTEGER_RE.fullmatch(raw_id):
        raise MalformedIndexError(f"invalid book id: {raw_id!r}")
    if not _INTEGER_RE.fullmatch(raw_count):
        raise MalformedIndexError(f"invalid line count: {raw_count!r}")
    line_count = int(raw_count)
    if line_count < 0:
        raise MalformedIndexError(f"negative line count: {raw_count!r}")
    return Book(id=int(raw_id), name=name, line_count=line_count)


def split_frontmatter(raw: str) -> tuple[Translations | None, str]:
    if not raw.startswith(FRONTMATTER_START):
        return None, raw
    header, sep, body = raw.partition(FRONTMATTER_END)
    if not sep:
        raise TranslationsError("Index front matter has no closing '---' line.")
    try:
        payload = yaml.load(header, Loader=yaml.BaseLoader)
    except yaml.YAMLError as exc:
        raise TranslationsError(f"Failed to parse translations: {exc}") from exc
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise TranslationsError("Index front matter must be a mapping.")
    return Translations.from_mapping(payload), body


def parse_index(raw: str) -> tuple[Translations, list[Book]]:
    translations, body = split_frontmatter(raw)
    if translations is None:
        warnings.warn(
            "No front matter found in index; using default messages.",
            RuntimeWarning,
            stacklevel=2,
        )
        translations = Translations()
    books: list[Book] = []
    seen: set[int] = set()
    for lineno, line in enumerate(body.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            book = parse_book_record(line)
        except MalformedIndexError as exc:
            _debug_log(f"Skipping index line {lineno}: {exc}")
            continue
        if book.id in seen:
            _debug_log(f"Skipping index line {lineno}: duplicate book id {book.id}")
            continue
        seen.add(book.id)
        books.append(book)
    return translations, books


def load_catalog(source: CorpusDirectory, categories: Iterable[Category] = ()) -> Catalog:
    try:
        raw = source.read_index()
    except (OSError, UnicodeDecodeError) as exc:
        raise MissingIndexError(f"Cannot read index: {exc}") from exc
    translations, books = parse_index(raw)
    catalog = build_catalog(books, categories, translations)
    _debug_log(
        f"Loaded {len(catalog.books)} books "
        f"({sum(book.line_count for book in catalog.books)} lines) from {source}"
    )
    return catalog


__all__ = [
    "Book",
    "Catalog",
    "CatalogError",
    "MalformedIndexError",
    "MissingIndexError",
    "Translations",
    "TranslationsError",
    "build_catalog",
    "load_catalog",
    "parse_book_record",
    "parse_index",
    "range_label",
    "resolve_range",
    "set_debug_logging",
    "split_frontmatter",
]
