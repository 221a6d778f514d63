"""Immutable HTTP request.

Frozen metadata built once from the ASGI scope. The dev server never
reads request bodies, so there is no body access here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path`` is the percent-decoded path from the ASGI scope, without
    the query string. Header names are lower-cased.
    """

    method: str
    path: str
    query_string: str
    headers: Mapping[str, str]
    client: tuple[str, int] | None

    @property
    def url(self) -> str:
        """Full request URL (path + query string)."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any]) -> Request:
        """Create a Request from an ASGI scope."""
        headers: dict[str, str] = {}
        for name, value in scope.get("headers", ()):
            # First value wins, matching how the router reads headers
            headers.setdefault(name.decode("latin-1").lower(), value.decode("latin-1"))
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope.get("path") or "/",
            query_string=scope.get("query_string", b"").decode("latin-1"),
            headers=MappingProxyType(headers),
            client=tuple(client) if client else None,
        )
