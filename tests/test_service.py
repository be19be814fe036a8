from __future__ import annotations

import gzip
import random
import threading
from pathlib import Path

import pytest

from randverse.catalog import Book, build_catalog, load_catalog
from randverse.categories import Category, CategoryInfo
from randverse.corpus import CorpusDirectory
from randverse.errors import ContentOpenError, EmptyPoolError, InvalidCategoryError
from randverse.service import VerseService


def _write_corpus(root: Path, books: list[tuple[int, str, int]]) -> None:
    records = []
    for book_id, name, count in books:
        with gzip.open(root / f"{book_id}.txt.gz", "wt", encoding="utf-8") as handle:
            for verse in range(1, count + 1):
                handle.write(f"1:{verse} {name} verse {verse}\n")
        records.append(f"{book_id}|{name}|{count}")
    (root / "index.txt").write_text(
        "---\nlanguage: en\n---\n" + "\n".join(records) + "\n", encoding="utf-8"
    )


CATEGORIES = [
    Category("pentateuch", 10, 50),
    Category("gospels", 470, 500),
    Category("nowhere", 999, 999),
]


@pytest.fixture
def service(tmp_path: Path) -> VerseService:
    _write_corpus(tmp_path, [(10, "Genesis", 1533), (20, "Exodus", 1213), (470, "Matthew", 300)])
    catalog = load_catalog(CorpusDirectory(tmp_path), CATEGORIES)
    return VerseService(catalog, CorpusDirectory(tmp_path), random.Random(42))


def test_list_categories_in_config_order(service: VerseService) -> None:
    assert service.list_categories() == [
        CategoryInfo("pentateuch", "Genesis — Exodus"),
        CategoryInfo("gospels", "Matthew"),
        CategoryInfo("nowhere", ""),
    ]
    assert service.is_valid_category("gospels")
    assert not service.is_valid_category("apocrypha")


def test_select_verse_stays_in_category(service: VerseService) -> None:
    for _ in range(200):
        with service.select_verse("pentateuch") as result:
            assert result.book_name in {"Genesis", "Exodus"}
            assert 1 <= result.local_offset <= result.total_lines
            first = next(result.lines)
            assert first.token == f"1:{result.local_offset}"
            assert first.text == f"{result.book_name} verse {result.local_offset}"


def test_select_verse_without_category_uses_whole_catalog(service: VerseService) -> None:
    seen = set()
    for _ in range(300):
        with service.select_verse(None) as result:
            seen.add(result.book_name)
    assert seen == {"Genesis", "Exodus", "Matthew"}
    assert service.pool_for("") == service.catalog.books


def test_select_verse_unknown_category(service: VerseService) -> None:
    with pytest.raises(InvalidCategoryError) as excinfo:
        service.select_verse("apocrypha")
    assert excinfo.value.key == "apocrypha"
    assert [info.key for info in excinfo.value.accepted] == ["pentateuch", "gospels", "nowhere"]
    assert service.translations.message_for(excinfo.value) == "Invalid category: apocrypha"


def test_select_verse_empty_category(service: VerseService) -> None:
    with pytest.raises(EmptyPoolError) as excinfo:
        service.select_verse("nowhere")
    assert service.translations.message_for(excinfo.value) == "No verses available."


def test_select_verse_missing_content(tmp_path: Path) -> None:
    catalog = build_catalog([Book(id=10, name="Genesis", line_count=5)], CATEGORIES)
    service = VerseService(catalog, CorpusDirectory(tmp_path), random.Random(1))
    with pytest.raises(ContentOpenError) as excinfo:
        service.select_verse("pentateuch")
    assert service.translations.message_for(excinfo.value) == "Book not found."


def test_from_paths_with_seed_is_reproducible(tmp_path: Path) -> None:
    _write_corpus(tmp_path, [(10, "Genesis", 50), (20, "Exodus", 40)])
    picks = []
    for _ in range(2):
        service = VerseService.from_paths(tmp_path, seed=99)
        with service.select_verse("pentateuch") as result:
            picks.append((result.book_name, result.local_offset))
    assert picks[0] == picks[1]
    assert len(service.list_categories()) == 13


def test_shared_service_handles_concurrent_requests(service: VerseService) -> None:
    errors: list[BaseException] = []

    def _worker() -> None:
        try:
            for _ in range(50):
                with service.select_verse("pentateuch") as result:
                    line = next(result.lines)
                    assert line.token == f"1:{result.local_offset}"
        except BaseException as exc:  # pragma: no cover - reported below
            errors.append(exc)

    threads = [threading.Thread(target=_worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert errors == []
