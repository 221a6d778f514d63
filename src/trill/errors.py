"""Trill exception hierarchy.

Shared across the resolver, cache, compiler and request handler so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class TrillError(Exception):
    """Base for all trill-specific errors."""


class ConfigurationError(TrillError):
    """Raised when server configuration is invalid.

    Typically raised by ``ServerConfig.__post_init__`` at startup.
    """


class CompileError(TrillError):
    """The transform step failed or produced no output.

    Never cached. The request handler maps it to a 500 whose body is
    the message with terminal styling stripped.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(TrillError):
    """An error that maps directly to an HTTP status code.

    Raised by the request handler; ``handle_http_error`` turns it into
    a plain-text response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — neither a compiled, static nor index route matched."""

    def __init__(self, detail: str = "Not found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — only GET is served.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(
        self,
        allowed: frozenset[str] = frozenset({"GET"}),
        detail: str = "Method not allowed",
    ) -> None:
        allow_value = ", ".join(sorted(allowed))
        super().__init__(
            status=405,
            detail=detail,
            headers=(("Allow", allow_value),),
        )
