from __future__ import annotations

import logging

import pytest

from randverse.logging_utils import (
    QuietAssetsFilter,
    VerseAccessFormatter,
    build_uvicorn_log_config,
    describe_request_target,
)


def _access_record(path: str, status: int) -> logging.LogRecord:
    return logging.LogRecord(
        name="uvicorn.access",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg='%s - "%s %s HTTP/%s" %d',
        args=("127.0.0.1:5000", "GET", path, "1.1", status),
        exc_info=None,
    )


def test_build_uvicorn_log_config_installs_formatter_and_filter() -> None:
    config = build_uvicorn_log_config()
    assert config["formatters"]["access"]["()"] == "randverse.logging_utils.VerseAccessFormatter"
    assert config["filters"]["quiet_assets"]["()"] == "randverse.logging_utils.QuietAssetsFilter"
    assert config["handlers"]["access"]["filters"] == ["quiet_assets"]
    assert config["loggers"]["uvicorn"]["level"] == "INFO"


def test_build_uvicorn_log_config_debug_levels() -> None:
    config = build_uvicorn_log_config(debug=True)
    assert config["loggers"]["uvicorn"]["level"] == "DEBUG"
    assert config["loggers"]["uvicorn.access"]["level"] == "DEBUG"
    assert "filters" not in config["handlers"]["access"]


@pytest.mark.parametrize(
    ("target", "expected"),
    [
        ("/", "/"),
        ("/api/verse", "/api/verse"),
        ("/?narrow=%C3%A9vangiles", "/ narrow=évangiles"),
        ("/api/verse?narrow=nt&single=true", "/api/verse narrow=nt single=true"),
        ("/?narrow=", "/ narrow="),
    ],
)
def test_describe_request_target(target: str, expected: str) -> None:
    assert describe_request_target(target) == expected


def test_access_formatter_shows_decoded_query() -> None:
    formatter = VerseAccessFormatter(
        fmt='%(client_addr)s - "%(request_line)s" %(status_code)s', use_colors=False
    )
    output = formatter.format(_access_record("/?narrow=%C3%A9vangiles", 400))
    assert "GET / narrow=évangiles HTTP/1.1" in output
    assert "400" in output


def test_quiet_assets_filter_drops_successful_favicon_hits() -> None:
    quiet = QuietAssetsFilter()
    assert not quiet.filter(_access_record("/favicon.svg", 200))
    assert quiet.filter(_access_record("/favicon.svg", 404))
    assert quiet.filter(_access_record("/?narrow=nt", 200))
    plain = logging.LogRecord("uvicorn.error", logging.INFO, __file__, 1, "Started", None, None)
    assert quiet.filter(plain)
