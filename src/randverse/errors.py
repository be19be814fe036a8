from __future__ import annotations

from typing import Sequence

from .categories import CategoryInfo


class VerseError(RuntimeError):
    """Base class for per-request failures; ``kind`` names the user-facing message."""

    kind = "error"


class InvalidCategoryError(VerseError):
    """Raised when the requested category key is not configured."""

    kind = "invalid_category"

    def __init__(self, key: str, accepted: Sequence[CategoryInfo] = ()) -> None:
        super().__init__(f"Unknown category: {key!r}")
        self.key = key
        self.accepted = list(accepted)


class EmptyPoolError(VerseError):
    """Raised when the selection pool has no lines at all."""

    kind = "no_verses"


class ExtractionError(VerseError):
    """Raised when a selected verse cannot be read from its book."""


class ContentOpenError(ExtractionError):
    kind = "book_not_found"


class DecompressionError(ExtractionError):
    kind = "decompression"


__all__ = [
    "ContentOpenError",
    "DecompressionError",
    "EmptyPoolError",
    "ExtractionError",
    "InvalidCategoryError",
    "VerseError",
]
