from .catalog import (
    Book,
    Catalog,
    CatalogError,
    MissingIndexError,
    Translations,
    TranslationsError,
    build_catalog,
    load_catalog,
    range_label,
    resolve_range,
)
from .categories import Category, CategoryConfigError, CategoryInfo, load_categories
from .corpus import CorpusDirectory
from .errors import (
    ContentOpenError,
    DecompressionError,
    EmptyPoolError,
    ExtractionError,
    InvalidCategoryError,
    VerseError,
)
from .extract import VerseLine, VerseStream, open_verse_stream, read_verses
from .selector import Selection, select_line
from .service import VerseResult, VerseService

__all__ = [
    "Book",
    "Catalog",
    "CatalogError",
    "Category",
    "CategoryConfigError",
    "CategoryInfo",
    "ContentOpenError",
    "CorpusDirectory",
    "DecompressionError",
    "EmptyPoolError",
    "ExtractionError",
    "InvalidCategoryError",
    "MissingIndexError",
    "Selection",
    "Translations",
    "TranslationsError",
    "VerseError",
    "VerseLine",
    "VerseResult",
    "VerseService",
    "VerseStream",
    "build_catalog",
    "load_catalog",
    "load_categories",
    "open_verse_stream",
    "range_label",
    "read_verses",
    "resolve_range",
    "select_line",
]
