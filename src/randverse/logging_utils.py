from __future__ import annotations

import logging
from copy import copy, deepcopy
from typing import Any
from urllib.parse import parse_qsl, urlsplit

from uvicorn.config import LOGGING_CONFIG
from uvicorn.logging import AccessFormatter

QUIET_PATHS = frozenset({"/favicon.svg", "/favicon.ico"})


def describe_request_target(target: str) -> str:
    """Render ``/api/verse?narrow=%C3%A9vangiles`` as ``/api/verse narrow=évangiles``."""
    parts = urlsplit(target)
    if not parts.query:
        return parts.path or target
    params = parse_qsl(parts.query, keep_blank_values=True, encoding="utf-8", errors="replace")
    if not params:
        return target
    return parts.path + " " + " ".join(f"{key}={value}" for key, value in params)


def _request_target(record: logging.LogRecord) -> str | None:
    args = record.args
    if isinstance(args, tuple) and len(args) == 5 and isinstance(args[2], str):
        return args[2]
    return None


class VerseAccessFormatter(AccessFormatter):
    """Access log lines with the ``narrow``/``single`` query shown decoded."""

    def formatMessage(self, record):  # type: ignore[override]
        target = _request_target(record)
        if target is None:
            return super().formatMessage(record)
        client_addr, method, _, http_version, status_code = record.args
        shown = copy(record)
        shown.args = (client_addr, method, describe_request_target(target), http_version, status_code)
        return super().formatMessage(shown)


class QuietAssetsFilter(logging.Filter):
    """Drop successful favicon hits so the log shows verse requests only."""

    def filter(self, record: logging.LogRecord) -> bool:
        target = _request_target(record)
        if target is None or urlsplit(target).path not in QUIET_PATHS:
            return True
        return record.args[4] >= 400


def build_uvicorn_log_config(*, debug: bool = False) -> dict[str, Any]:
    """Return a uvicorn logging config for ``randverse web``.

    Debug mode raises every uvicorn logger to DEBUG and keeps favicon hits.
    """
    config = deepcopy(LOGGING_CONFIG)
    config["formatters"]["access"]["()"] = "randverse.logging_utils.VerseAccessFormatter"
    access_handler = config["handlers"]["access"]
    if debug:
        for logger in config["loggers"].values():
            logger["level"] = "DEBUG"
    else:
        config.setdefault("filters", {})["quiet_assets"] = {
            "()": "randverse.logging_utils.QuietAssetsFilter"
        }
        access_handler["filters"] = ["quiet_assets"]
    return config


__all__ = [
    "QuietAssetsFilter",
    "VerseAccessFormatter",
    "build_uvicorn_log_config",
    "describe_request_target",
]
