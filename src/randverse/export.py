from __future__ import annotations

import gzip
import sqlite3
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import yaml
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn

from .catalog import FRONTMATTER_END, FRONTMATTER_START, Book, Translations
from .corpus import INDEX_FILENAME

BOOKS_QUERY = "SELECT book_number FROM books ORDER BY book_number"
VERSES_QUERY = """
SELECT chapter || ':' || verse || ' ' || COALESCE(text, '')
FROM verses
WHERE book_number = ?
ORDER BY chapter, verse
"""
INDEX_QUERY = """
SELECT books.book_number, long_name, COUNT(*) AS verse_count
FROM verses INNER JOIN books ON verses.book_number = books.book_number
GROUP BY verses.book_number
ORDER BY verses.book_number
"""


class ExportError(RuntimeError):
    """Raised when a MyBible module cannot be exported."""


@dataclass(slots=True)
class ExportResult:
    output_dir: Path
    index_path: Path
    books: list[Book]

    @property
    def total_lines(self) -> int:
        return sum(book.line_count for book in self.books)


def render_index(books: list[Book], translations: Translations | None = None) -> str:
    header = yaml.safe_dump(
        (translations or Translations()).as_payload(),
        allow_unicode=True,
        sort_keys=False,
    )
    records = "".join(f"{book.id}|{book.name}|{book.line_count}\n" for book in books)
    return FRONTMATTER_START + header + FRONTMATTER_END.lstrip("\n") + records


def _write_book(connection: sqlite3.Connection, book_number: int, destination: Path) -> int:
    count = 0
    with gzip.open(destination, "wt", encoding="utf-8", newline="\n") as handle:
        for (line,) in connection.execute(VERSES_QUERY, (book_number,)):
            handle.write(line.replace("\n", " ") + "\n")
            count += 1
    return count


def export_mybible(
    database: Path,
    output_dir: Path,
    *,
    translations: Translations | None = None,
    progress_callback: Callable[[int, int], None] | None = None,
) -> ExportResult:
    """Export a MyBible SQLite module into ``index.txt`` plus one gzip per book."""
    database = Path(database).expanduser()
    if not database.is_file():
        raise ExportError(f"Database not found: {database}")
    output_dir = Path(output_dir).expanduser()
    output_dir.mkdir(parents=True, exist_ok=True)

    try:
        with closing(sqlite3.connect(f"{database.resolve().as_uri()}?mode=ro", uri=True)) as connection:
            book_numbers = [row[0] for row in connection.execute(BOOKS_QUERY)]
            total = len(book_numbers)
            for index, book_number in enumerate(book_numbers, start=1):
                number = int(book_number)
                _write_book(connection, number, output_dir / f"{number}.txt.gz")
                if progress_callback is not None:
                    progress_callback(index, total)
            books = [
                Book(id=int(number), name=str(name), line_count=int(count))
                for number, name, count in connection.execute(INDEX_QUERY)
            ]
    except sqlite3.Error as exc:
        raise ExportError(f"Cannot export {database}: {exc}") from exc

    index_path = output_dir / INDEX_FILENAME
    index_path.write_text(render_index(books, translations), encoding="utf-8")
    return ExportResult(output_dir=output_dir, index_path=index_path, books=books)


def export_with_progress(
    database: Path,
    output_dir: Path,
    *,
    translations: Translations | None = None,
) -> ExportResult:
    console = Console(stderr=True)
    if not console.is_terminal:
        return export_mybible(database, output_dir, translations=translations)
    with Progress(
        TextColumn("{task.description}", justify="left"),
        BarColumn(bar_width=None),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Exporting books", total=None)

        def _update(done: int, total: int) -> None:
            progress.update(task, completed=done, total=total)

        return export_mybible(
            database,
            output_dir,
            translations=translations,
            progress_callback=_update,
        )


__all__ = ["ExportError", "ExportResult", "export_mybible", "export_with_progress", "render_index"]
