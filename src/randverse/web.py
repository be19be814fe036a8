from __future__ import annotations

import html
from dataclasses import dataclass
from itertools import islice
from pathlib import Path

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response

from .catalog import Book, Translations
from .categories import CategoryInfo
from .errors import (
    ContentOpenError,
    DecompressionError,
    EmptyPoolError,
    InvalidCategoryError,
    VerseError,
)
from .extract import VerseLine
from .service import VerseService
from .web_assets import FAVICON_SVG, FAVICON_URL


@dataclass(slots=True)
class WebConfig:
    corpus_dir: Path
    categories_path: Path | None = None
    rest: bool = True
    seed: int | None = None


ERROR_STATUS = {
    InvalidCategoryError: 400,
    EmptyPoolError: 400,
    ContentOpenError: 404,
    DecompressionError: 500,
}

VERSE_PAGE_HTML = """<!DOCTYPE html>
<html lang="{language}">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{title}</title>
  <link rel="icon" href="{favicon}">
  <style>
    body {{ background: #fafafa; color: #333; font-family: sans-serif; padding: 1rem; line-height: 1.6; }}
    .verse-num {{ color: #4caf50; font-weight: bold; }}
    .verses p {{ margin: 0.5em 0; }}
  </style>
</head>
<body>
  <h1>{title}</h1>
  <div class="verses">
{verses}
  </div>
</body>
</html>"""

INVALID_PAGE_HTML = """<!DOCTYPE html>
<html lang="{language}">
<head>
  <meta charset="UTF-8">
  <title>{title}</title>
  <link rel="icon" href="{favicon}">
  <style>
    body {{ font-family: sans-serif; background: #fff8f0; color: #333; padding: 2rem; }}
    h1 {{ color: #c0392b; }}
    ul {{ margin-top: 1em; }}
    li {{ margin: 0.5em 0; }}
    code {{ background: #eee; padding: 0.2em 0.4em; }}
  </style>
</head>
<body>
  <h1>{message}</h1>
  <p>{accepted}</p>
  <ul>
{items}
  </ul>
</body>
</html>"""


def _render_verse_line(line: VerseLine) -> str:
    # Verse text is inserted as-is so inline markup from the module survives.
    if line.token:
        return f'    <p><span class="verse-num">{html.escape(line.token)}</span> {line.text}</p>'
    return f"    <p>{html.escape(line.text)}</p>"


def render_verse_page(
    translations: Translations, title: str, lines: list[VerseLine]
) -> str:
    return VERSE_PAGE_HTML.format(
        language=html.escape(translations.language),
        title=html.escape(title),
        favicon=FAVICON_URL,
        verses="\n".join(_render_verse_line(line) for line in lines),
    )


def render_invalid_page(
    translations: Translations, key: str, categories: list[CategoryInfo]
) -> str:
    items = "\n".join(
        f"    <li><code>{html.escape(info.key)}</code> — {html.escape(info.label)}</li>"
        for info in categories
    )
    return INVALID_PAGE_HTML.format(
        language=html.escape(translations.language),
        title=html.escape(translations.invalid_param_title),
        favicon=FAVICON_URL,
        message=html.escape(translations.invalid_param(key)),
        accepted=html.escape(translations.accepted_values_message),
        items=items,
    )


def _status_for(exc: VerseError) -> int:
    for error_type, status in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status
    return 500


def create_app(config: WebConfig, service: VerseService | None = None) -> FastAPI:
    if service is None:
        service = VerseService.from_paths(
            config.corpus_dir,
            config.categories_path,
            seed=config.seed,
        )

    app = FastAPI(title="randverse")
    app.state.config = config
    app.state.service = service
    translations = service.translations

    def _read_selection(narrow: str, single: bool) -> tuple[Book, int, list[VerseLine]]:
        limit = 1 if single else None
        with service.select_verse(narrow or None) as result:
            return result.book, result.local_offset, list(islice(result.lines, limit))

    @app.get("/", response_class=HTMLResponse)
    def index(
        narrow: str = Query(""),
        single: bool = Query(not config.rest),
    ) -> Response:
        try:
            book, offset, lines = _read_selection(narrow, single)
        except InvalidCategoryError as exc:
            return HTMLResponse(
                render_invalid_page(translations, exc.key, exc.accepted),
                status_code=400,
            )
        except VerseError as exc:
            return PlainTextResponse(translations.message_for(exc), status_code=_status_for(exc))
        title = translations.verse_title(book, offset)
        return HTMLResponse(render_verse_page(translations, title, lines))

    @app.get("/api/categories")
    def api_categories() -> JSONResponse:
        return JSONResponse(
            {
                "categories": [
                    {"key": info.key, "label": info.label} for info in service.list_categories()
                ]
            }
        )

    @app.get("/api/verse")
    def api_verse(
        narrow: str = Query(""),
        single: bool = Query(not config.rest),
    ) -> JSONResponse:
        try:
            book, offset, lines = _read_selection(narrow, single)
        except InvalidCategoryError as exc:
            raise HTTPException(
                status_code=400,
                detail={
                    "message": translations.message_for(exc),
                    "accepted": [info.key for info in exc.accepted],
                },
            ) from exc
        except VerseError as exc:
            raise HTTPException(
                status_code=_status_for(exc), detail=translations.message_for(exc)
            ) from exc
        return JSONResponse(
            {
                "book": book.name,
                "offset": offset,
                "total": book.line_count,
                "lines": [{"token": line.token, "text": line.text} for line in lines],
            }
        )

    @app.get("/favicon.svg")
    def favicon() -> Response:
        return Response(FAVICON_SVG, media_type="image/svg+xml")

    return app


__all__ = ["WebConfig", "create_app", "render_invalid_page", "render_verse_page"]
