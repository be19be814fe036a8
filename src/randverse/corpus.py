from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

if TYPE_CHECKING:
    from importlib.resources.abc import Traversable

    from .catalog import Book

INDEX_FILENAME = "index.txt"
CORPUS_DIR_ENV = "RANDVERSE_CORPUS_DIR"
CATEGORIES_ENV = "RANDVERSE_CATEGORIES"
DEFAULT_CORPUS_DIR = Path("~/.local/share/randverse/kjv")


def default_corpus_dir() -> Path:
    override = os.environ.get(CORPUS_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return DEFAULT_CORPUS_DIR.expanduser()


def default_categories_path() -> Path | None:
    override = os.environ.get(CATEGORIES_ENV)
    if override:
        return Path(override).expanduser()
    return None


class CorpusDirectory:
    """Index and gzip book files stored side by side in one directory."""

    def __init__(self, root: "Path | Traversable") -> None:
        self.root = root

    def __repr__(self) -> str:
        return f"CorpusDirectory({str(self.root)!r})"

    def __str__(self) -> str:
        return str(self.root)

    def read_index(self) -> str:
        return self.root.joinpath(INDEX_FILENAME).read_text(encoding="utf-8")

    def open_book(self, book: "Book") -> BinaryIO:
        return self.root.joinpath(book.file_name).open("rb")


__all__ = [
    "CATEGORIES_ENV",
    "CORPUS_DIR_ENV",
    "CorpusDirectory",
    "INDEX_FILENAME",
    "default_categories_path",
    "default_corpus_dir",
]
