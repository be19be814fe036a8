from __future__ import annotations

import importlib.resources as resources
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

CATEGORIES_FILENAME = "categories.toml"


class CategoryConfigError(RuntimeError):
    """Raised when a categories file cannot be read or validated."""


@dataclass(frozen=True, slots=True)
class Category:
    key: str
    low_id: int
    high_id: int

    def contains(self, book_id: int) -> bool:
        return self.low_id <= book_id <= self.high_id


@dataclass(frozen=True, slots=True)
class CategoryInfo:
    key: str
    label: str


def parse_categories(data: dict[str, Any]) -> list[Category]:
    table = data.get("categories")
    if table is None:
        return []
    if not isinstance(table, dict):
        raise CategoryConfigError("'categories' must be a table of key = [low, high] entries.")
    categories: list[Category] = []
    for key, value in table.items():
        if (
            not isinstance(value, list)
            or len(value) != 2
            or not all(isinstance(item, int) and not isinstance(item, bool) for item in value)
        ):
            raise CategoryConfigError(f"Category {key!r} must be a [low, high] pair of integers.")
        low, high = value
        if low > high:
            raise CategoryConfigError(f"Category {key!r} has low bound {low} above high bound {high}.")
        categories.append(Category(key=key, low_id=low, high_id=high))
    return categories


def load_categories(path: Path | None = None) -> list[Category]:
    """Load category ranges from ``path`` or the packaged default table."""
    try:
        if path is None:
            raw = resources.files("randverse.data").joinpath(CATEGORIES_FILENAME).read_bytes()
        else:
            raw = Path(path).expanduser().read_bytes()
    except OSError as exc:
        raise CategoryConfigError(f"Cannot read categories: {exc}") from exc
    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise CategoryConfigError(f"Invalid categories file: {exc}") from exc
    return parse_categories(data)


__all__ = [
    "Category",
    "CategoryConfigError",
    "CategoryInfo",
    "load_categories",
    "parse_categories",
]
