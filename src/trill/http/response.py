"""Immutable HTTP response types.

The request handler returns one of three shapes and the sender picks the
matching ASGI emission:

- ``Response`` — body held in memory (compiled modules, index, errors)
- ``FileResponse`` — a file streamed from disk verbatim
- ``SSEResponse`` — a long-lived event stream bound to a change listener
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

PLAIN_TEXT = "text/plain; charset=UTF-8"
JAVASCRIPT = "text/javascript"
HTML = "text/html"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response held in memory.

    ``content_type=None`` omits the header entirely.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str | None = HTML
    headers: tuple[tuple[str, str], ...] = ()

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    # -- Body helpers --

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), or None."""
        name = name.lower()
        if name == "content-type":
            return self.content_type
        for key, value in self.headers:
            if key.lower() == name:
                return value
        return None


@dataclass(frozen=True, slots=True)
class FileResponse:
    """A regular file sent verbatim, in chunks, with a known length."""

    path: Path
    size: int
    content_type: str | None = None
    status: int = 200
    headers: tuple[tuple[str, str], ...] = ()
    chunk_size: int = 64 * 1024


@dataclass(frozen=True, slots=True)
class SSEResponse:
    """Sentinel response for the change-notification stream.

    Requires direct ASGI send/receive access, so the handler bypasses
    the normal sender path and hands it to ``handle_sse``.
    """

    listener: Any  # ChangeListener (avoids an import cycle)
