from __future__ import annotations

from randverse.catalog import Book, Translations, parse_index
from randverse.export import render_index


def test_render_index_round_trips_through_parser() -> None:
    books = [Book(id=10, name="Genesis", line_count=1533), Book(id=730, name="Revelation", line_count=404)]
    text = render_index(books, Translations(language="en", no_verses_error="Nothing: here"))

    assert text.startswith("---\n")
    assert text.endswith("10|Genesis|1533\n730|Revelation|404\n")
    translations, parsed = parse_index(text)
    assert parsed == books
    assert translations.no_verses_error == "Nothing: here"
