"""Error handling pipeline for trill requests.

Maps HTTPError exceptions and unexpected failures to plain-text
responses. Error bodies never carry terminal escape sequences.
"""

import logging

from trill.errors import HTTPError
from trill.http.request import Request
from trill.http.response import PLAIN_TEXT, Response
from trill.server.terminal_errors import log_error, strip_ansi

logger = logging.getLogger("trill.server")


def handle_http_error(exc: HTTPError, request: Request, *, verbose: bool = False) -> Response:
    """Map an HTTPError (404, 405) to a Response."""
    if verbose:
        logger.info("%d %s", exc.status, request.path)
    else:
        logger.debug("%d %s %s - %s", exc.status, request.method, request.path, exc.detail)

    resp = Response(
        body=exc.detail or f"Error {exc.status}",
        status=exc.status,
        content_type=PLAIN_TEXT,
    )
    for name, value in exc.headers:
        resp = resp.with_header(name, value)
    return resp


def handle_internal_error(exc: Exception, request: Request) -> Response:
    """Handle unexpected exceptions (compile failures included) as 500s.

    The body is the exception message with ANSI styling removed; the
    terminal log keeps it.
    """
    log_error(exc, request)
    message = str(exc) or type(exc).__name__
    return Response(body=strip_ansi(message), status=500, content_type=PLAIN_TEXT)
