"""Terminal error formatting for the trill dev server.

Provides structured, human-readable error output for the terminal when a
request fails with a 500. Compile errors already carry the compiler's own
diagnostics, so they are printed under a banner without a traceback::

    -- Compile Error ------------------------------------------------
    app.ts:3:6: ERROR: Expected ";" but found "x"

      Request: GET /app.js
    -----------------------------------------------------------------

Other errors use configurable traceback verbosity (compact/full/minimal)
controlled by the ``TRILL_TRACEBACK`` environment variable.
"""

from __future__ import annotations

import logging
import os
import re
import traceback as _traceback
from typing import TYPE_CHECKING

from trill.errors import CompileError

if TYPE_CHECKING:
    from trill.http.request import Request

logger = logging.getLogger("trill.server")

# Width of the terminal error banner
_BANNER_WIDTH = 65

# CSI sequences (colors, cursor movement) and OSC sequences (hyperlinks)
_ANSI = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)|\x1b[@-Z\\-_]")


def strip_ansi(text: str) -> str:
    """Remove terminal escape sequences from *text*."""
    return _ANSI.sub("", text)


def _is_app_frame(filename: str) -> bool:
    """True if the frame is from the application (not stdlib/site-packages)."""
    if "site-packages" in filename:
        return False
    if filename.startswith("<"):
        return False
    stdlib_prefix = os.path.dirname(os.__file__)
    return not filename.startswith(stdlib_prefix)


def format_compile_error(exc: BaseException, request: Request | None = None) -> str:
    """Format a compile error for terminal display.

    Keeps the compiler's colors: this goes to a terminal, not a browser.
    """
    parts: list[str] = [f"-- Compile Error {'-' * (_BANNER_WIDTH - 17)}", str(exc)]
    if request is not None:
        parts.append("")
        parts.append(f"  Request: {request.method} {request.path}")
    parts.append("-" * _BANNER_WIDTH)
    return "\n".join(parts)


def format_compact_traceback(exc: BaseException) -> str:
    """Format an error with a compact traceback.

    Shows only application frames + error summary, suppressing
    framework internals from anyio and pounce.
    """
    parts: list[str] = []

    tb = exc.__traceback__
    frames = _traceback.extract_tb(tb) if tb else []
    app_frames = [f for f in frames if _is_app_frame(f.filename)]

    # If no app frames, show last 3 frames instead
    display_frames = app_frames if app_frames else frames[-3:]

    parts.append(f"{type(exc).__name__}: {exc}")

    if display_frames:
        parts.append("  Trace (app frames):")
        for frame in display_frames[-5:]:
            parts.append(f"    {frame.filename}:{frame.lineno} in {frame.name}")
            if frame.line:
                parts.append(f"      {frame.line.strip()}")

    return "\n".join(parts)


def format_minimal_error(exc: BaseException) -> str:
    """One-line error summary for minimal verbosity."""
    tb = exc.__traceback__
    frames = _traceback.extract_tb(tb) if tb else []
    last = frames[-1] if frames else None
    location = f" at {last.filename}:{last.lineno}" if last else ""
    return f"{type(exc).__name__}{location}: {exc}"


def log_error(exc: BaseException, request: Request | None = None) -> None:
    """Log an internal error with appropriate formatting.

    Args:
        exc: The exception that caused the 500 error.
        request: The request that triggered the error (optional for
            streaming contexts where a request may not be available).
    """
    prefix = f"500 {request.method} {request.path}" if request is not None else "Server error"

    if isinstance(exc, CompileError):
        logger.error("%s\n%s", prefix, format_compile_error(exc, request))
        return

    traceback_style = os.environ.get("TRILL_TRACEBACK", "compact").lower()

    if traceback_style == "full":
        logger.error(prefix, exc_info=exc)
    elif traceback_style == "minimal":
        logger.error("%s - %s", prefix, format_minimal_error(exc))
    else:
        logger.error("%s\n%s", prefix, format_compact_traceback(exc))
