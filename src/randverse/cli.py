from __future__ import annotations

import argparse
import socket
import sys
from importlib import metadata
from itertools import islice
from pathlib import Path

import tomllib
import uvicorn
from rich.console import Console
from rich.text import Text

from .catalog import CatalogError, Translations, set_debug_logging
from .categories import CategoryConfigError, CategoryInfo
from .corpus import default_categories_path, default_corpus_dir
from .errors import InvalidCategoryError, VerseError
from .export import ExportError, export_with_progress
from .logging_utils import build_uvicorn_log_config
from .service import VerseService
from .web import WebConfig, create_app

EXIT_REQUEST_FAILED = 1
EXIT_STARTUP_FAILED = 2
VERSE_STYLE = "green"


def _read_local_version() -> str | None:
    try:
        pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    except IndexError:  # pragma: no cover - defensive
        return None
    try:
        with pyproject_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return None
    return data.get("project", {}).get("version")


try:
    __version__ = metadata.version("randverse")
except metadata.PackageNotFoundError:
    __version__ = _read_local_version() or "0.0.0+unknown"


def _add_version_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"randverse {__version__}",
    )


def _add_corpus_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--corpus",
        help="Directory holding index.txt and <id>.txt.gz files "
        "(default: $RANDVERSE_CORPUS_DIR or ~/.local/share/randverse/kjv).",
    )
    parser.add_argument(
        "--categories",
        help="TOML file with [categories] ranges (default: $RANDVERSE_CATEGORIES or built-in).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print skipped index records and selection details.",
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Print a random verse. Use `randverse web` to serve it over HTTP.",
    )
    _add_version_flag(ap)
    ap.add_argument(
        "-n",
        "--narrow",
        default="",
        help="Category to narrow to (e.g. ot, nt, gospels). See `randverse categories`.",
    )
    ap.add_argument(
        "-c",
        "--color",
        action="store_true",
        help="Highlight line and verse numbers in green.",
    )
    ap.add_argument(
        "-r",
        "--rest",
        action="store_true",
        help="Keep printing verses until the end of the book.",
    )
    ap.add_argument(
        "--seed",
        type=int,
        help="Seed the random generator for a reproducible pick.",
    )
    _add_corpus_flags(ap)
    return ap


def build_categories_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="List the accepted --narrow categories.")
    _add_version_flag(ap)
    _add_corpus_flags(ap)
    return ap


def build_web_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Serve random verses as HTML pages.")
    _add_version_flag(ap)
    ap.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host interface for the web server (default: 0.0.0.0).",
    )
    ap.add_argument(
        "-p",
        "--port",
        type=int,
        default=1616,
        help="Port for the web server (default: 1616).",
    )
    ap.add_argument(
        "--single",
        action="store_true",
        help="Show only the chosen verse instead of the rest of the book.",
    )
    ap.add_argument(
        "--seed",
        type=int,
        help="Seed the random generator so the verse sequence repeats.",
    )
    _add_corpus_flags(ap)
    return ap


def build_export_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Build a corpus directory from a MyBible .SQLite3 module.",
    )
    _add_version_flag(ap)
    ap.add_argument("database", help="Path to the MyBible SQLite file (e.g. KJV.SQLite3).")
    ap.add_argument(
        "-o",
        "--output",
        help="Output directory (default: $RANDVERSE_CORPUS_DIR or ~/.local/share/randverse/kjv).",
    )
    ap.add_argument(
        "--language",
        default="en",
        help="Language code written to the index front matter (default: en).",
    )
    return ap


def _corpus_dir(args: argparse.Namespace) -> Path:
    if getattr(args, "corpus", None):
        return Path(args.corpus).expanduser()
    return default_corpus_dir()


def _categories_path(args: argparse.Namespace) -> Path | None:
    if getattr(args, "categories", None):
        return Path(args.categories).expanduser()
    return default_categories_path()


def _load_service(args: argparse.Namespace) -> VerseService:
    set_debug_logging(bool(getattr(args, "debug", False)))
    return VerseService.from_paths(
        _corpus_dir(args),
        _categories_path(args),
        seed=getattr(args, "seed", None),
    )


def _print_categories(console: Console, categories: list[CategoryInfo]) -> None:
    for info in categories:
        console.print(Text(f"  {info.key} — {info.label}"), soft_wrap=True)


def _print_invalid_category(
    console: Console, translations: Translations, exc: InvalidCategoryError
) -> None:
    console.print(Text(translations.invalid_param(exc.key)), soft_wrap=True)
    console.print(Text(translations.accepted_values_message), soft_wrap=True)
    _print_categories(console, exc.accepted)


def _run_verse(args: argparse.Namespace) -> int:
    err = Console(stderr=True, highlight=False)
    try:
        service = _load_service(args)
    except (CatalogError, CategoryConfigError) as exc:
        err.print(Text(str(exc)), soft_wrap=True)
        return EXIT_STARTUP_FAILED
    translations = service.translations
    if args.color:
        out = Console(highlight=False, force_terminal=True, color_system="standard", no_color=False)
    else:
        out = Console(highlight=False)
    style = VERSE_STYLE if args.color else ""

    try:
        with service.select_verse(args.narrow or None) as result:
            lines = list(islice(result.lines, None if args.rest else 1))
    except InvalidCategoryError as exc:
        _print_invalid_category(err, translations, exc)
        return EXIT_REQUEST_FAILED
    except VerseError as exc:
        err.print(Text(translations.message_for(exc)), soft_wrap=True)
        return EXIT_REQUEST_FAILED

    header = Text.assemble(
        f"{result.book_name} (line ",
        (str(result.local_offset), style),
        "/",
        (str(result.total_lines), style),
        ")\n",
    )
    out.print(header, soft_wrap=True)
    for line in lines:
        if line.token:
            out.print(Text.assemble((line.token, style), " ", line.text), soft_wrap=True)
        else:
            out.print(Text(line.text), soft_wrap=True)
    return 0


def _run_categories(args: argparse.Namespace) -> int:
    console = Console(highlight=False)
    try:
        service = _load_service(args)
    except (CatalogError, CategoryConfigError) as exc:
        Console(stderr=True, highlight=False).print(Text(str(exc)), soft_wrap=True)
        return EXIT_STARTUP_FAILED
    _print_categories(console, service.list_categories())
    return 0


def _run_export(args: argparse.Namespace) -> int:
    output = Path(args.output).expanduser() if args.output else default_corpus_dir()
    try:
        result = export_with_progress(
            Path(args.database),
            output,
            translations=Translations(language=args.language),
        )
    except ExportError as exc:
        Console(stderr=True, highlight=False).print(Text(str(exc)), soft_wrap=True)
        return EXIT_STARTUP_FAILED
    print(f"Exported {len(result.books)} books ({result.total_lines} verses) to {result.output_dir}")
    print(f"Index: {result.index_path}")
    return 0


def _run_web(args: argparse.Namespace) -> int:
    set_debug_logging(bool(args.debug))
    config = WebConfig(
        corpus_dir=_corpus_dir(args),
        categories_path=_categories_path(args),
        rest=not args.single,
        seed=args.seed,
    )
    try:
        app = create_app(config)
    except (CatalogError, CategoryConfigError) as exc:
        Console(stderr=True, highlight=False).print(Text(str(exc)), soft_wrap=True)
        return EXIT_STARTUP_FAILED
    public_ip = _resolve_local_ip(args.host)
    url = f"http://{public_ip}:{args.port}/?narrow=nt"
    print(f"Serving randverse from {config.corpus_dir}")
    print(f"Web URL: {url}")
    print("Press Ctrl+C to stop.\n")
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level="debug" if args.debug else "info",
        log_config=build_uvicorn_log_config(debug=args.debug),
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] == "web":
        web_args = build_web_parser().parse_args(argv[1:])
        return _run_web(web_args)
    if argv and argv[0] == "categories":
        categories_args = build_categories_parser().parse_args(argv[1:])
        return _run_categories(categories_args)
    if argv and argv[0] == "export":
        export_args = build_export_parser().parse_args(argv[1:])
        return _run_export(export_args)

    args = build_parser().parse_args(argv)
    return _run_verse(args)


def _resolve_local_ip(host: str) -> str:
    if host not in {"", "0.0.0.0"}:
        return host
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            return sock.getsockname()[0]
    except OSError:
        return "127.0.0.1"


if __name__ == "__main__":
    raise SystemExit(main())
