"""Tests for trill.server.terminal_errors — terminal output for 500s."""

import logging

import pytest

from trill.errors import CompileError
from trill.http.request import Request
from trill.server.terminal_errors import (
    format_compact_traceback,
    format_compile_error,
    format_minimal_error,
    log_error,
    strip_ansi,
)


def _request() -> Request:
    return Request.from_asgi({"type": "http", "method": "GET", "path": "/app.js"})


def _raised(exc: Exception) -> Exception:
    try:
        raise exc
    except Exception as caught:
        return caught


class TestStripAnsi:
    def test_removes_colors(self) -> None:
        assert strip_ansi("\x1b[1m\x1b[31mERROR\x1b[0m: bad") == "ERROR: bad"

    def test_removes_hyperlinks(self) -> None:
        text = "\x1b]8;;file:///a.ts\x07a.ts\x1b]8;;\x07:1:2"
        assert strip_ansi(text) == "a.ts:1:2"

    def test_plain_text_unchanged(self) -> None:
        assert strip_ansi("plain") == "plain"


class TestFormatters:
    def test_compile_error_banner(self) -> None:
        out = format_compile_error(CompileError("app.ts:1:4: ERROR"), _request())
        lines = out.splitlines()
        assert lines[0].startswith("-- Compile Error ")
        assert "app.ts:1:4: ERROR" in out
        assert "Request: GET /app.js" in out

    def test_compact_traceback_lists_frames(self) -> None:
        out = format_compact_traceback(_raised(ValueError("bad value")))
        assert out.startswith("ValueError: bad value")
        assert "_raised" in out

    def test_minimal_error_is_one_line(self) -> None:
        out = format_minimal_error(_raised(KeyError("k")))
        assert "\n" not in out
        assert out.startswith("KeyError at ")


class TestLogError:
    def test_compile_error_has_no_traceback(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="trill.server"):
            log_error(CompileError("Expected ;"), _request())
        record = caplog.records[-1]
        assert record.exc_info is None
        assert "500 GET /app.js" in record.getMessage()
        assert "Compile Error" in record.getMessage()

    def test_full_traceback_style(
        self, caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TRILL_TRACEBACK", "full")
        with caplog.at_level(logging.ERROR, logger="trill.server"):
            log_error(_raised(RuntimeError("boom")), _request())
        assert caplog.records[-1].exc_info is not None

    def test_minimal_style(
        self, caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TRILL_TRACEBACK", "minimal")
        with caplog.at_level(logging.ERROR, logger="trill.server"):
            log_error(_raised(RuntimeError("boom")), None)
        message = caplog.records[-1].getMessage()
        assert message.startswith("Server error - RuntimeError at ")
