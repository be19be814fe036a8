from __future__ import annotations

import gzip
import io
import re
import zlib
from dataclasses import dataclass
from itertools import islice
from typing import BinaryIO, Iterator

from .catalog import Book
from .corpus import CorpusDirectory
from .errors import ContentOpenError, DecompressionError

_TOKEN_BOUNDARY_RE = re.compile(r"\s")
_STREAM_ERRORS = (OSError, EOFError, zlib.error, UnicodeDecodeError)

STATE_OPENED = "opened"
STATE_SKIPPING = "skipping"
STATE_STREAMING = "streaming"
STATE_CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class VerseLine:
    token: str
    text: str

    def render(self) -> str:
        return f"{self.token} {self.text}" if self.token else self.text


def split_verse_line(line: str) -> VerseLine:
    """Split ``"1:1 In the beginning"`` into its verse token and text."""
    parts = _TOKEN_BOUNDARY_RE.split(line, maxsplit=1)
    if len(parts) == 2:
        return VerseLine(token=parts[0], text=parts[1])
    return VerseLine(token="", text=line)


class VerseStream:
    """Forward-only reader over one gzip-compressed book.

    The first ``offset - 1`` records are discarded when the stream is opened
    and the record at ``offset`` is read ahead, so a corrupt archive fails
    before any verse is handed out. Iteration then yields the remaining
    records until the book ends or :meth:`close` is called. Reading the same
    verse again requires opening a new stream.
    """

    def __init__(self, handle: BinaryIO, book: Book, offset: int) -> None:
        if offset < 1:
            handle.close()
            raise ValueError(f"Verse offset must be 1 or greater, got {offset}.")
        self.book = book
        self.offset = offset
        self.state = STATE_OPENED
        self.skipped = 0
        self._raw = handle
        self._text: io.TextIOWrapper | None = io.TextIOWrapper(
            gzip.GzipFile(fileobj=handle, mode="rb"),
            encoding="utf-8",
            newline="\n",
        )
        self._pending: VerseLine | None = None
        try:
            self._skip()
        except BaseException:
            self.close()
            raise

    def __enter__(self) -> "VerseStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[VerseLine]:
        return self

    def __next__(self) -> VerseLine:
        if self._pending is not None:
            pending, self._pending = self._pending, None
            return pending
        if self.state == STATE_CLOSED:
            raise StopIteration
        try:
            line = self._read_record()
        except BaseException:
            self.close()
            raise
        if line is None:
            self.close()
            raise StopIteration
        return split_verse_line(line)

    @property
    def closed(self) -> bool:
        return self.state == STATE_CLOSED

    def close(self) -> None:
        if self.state == STATE_CLOSED:
            return
        self.state = STATE_CLOSED
        self._pending = None
        text, self._text = self._text, None
        try:
            if text is not None:
                text.close()
        finally:
            self._raw.close()

    def _skip(self) -> None:
        self.state = STATE_SKIPPING
        remaining = self.offset - 1
        while remaining > 0:
            if self._read_record() is None:
                # Index claims more lines than the book holds.
                self.state = STATE_STREAMING
                return
            self.skipped += 1
            remaining -= 1
        self.state = STATE_STREAMING
        line = self._read_record()
        if line is not None:
            self._pending = split_verse_line(line)

    def _read_record(self) -> str | None:
        if self._text is None:
            return None
        try:
            line = self._text.readline()
        except _STREAM_ERRORS as exc:
            raise DecompressionError(f"Cannot decompress {self.book.file_name}: {exc}") from exc
        if not line:
            return None
        line = line.removesuffix("\n")
        return line.removesuffix("\r")


def open_verse_stream(source: CorpusDirectory, book: Book, offset: int) -> VerseStream:
    try:
        handle = source.open_book(book)
    except OSError as exc:
        raise ContentOpenError(f"Cannot open {book.file_name}: {exc}") from exc
    return VerseStream(handle, book, offset)


def read_verses(
    source: CorpusDirectory,
    book: Book,
    offset: int,
    limit: int | None = None,
) -> list[VerseLine]:
    with open_verse_stream(source, book, offset) as stream:
        return list(islice(stream, limit))


__all__ = [
    "VerseLine",
    "VerseStream",
    "open_verse_stream",
    "read_verses",
    "split_verse_line",
]
