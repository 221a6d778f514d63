"""ASGI handler — the per-request state machine of the dev server.

The only component that touches raw ASGI for HTTP requests. Converts the
scope to a ``Request``, classifies it through ``RequestRouter``, and sends
the resulting response back through ASGI ``send()``.

Routing precedence (first match wins):

1. non-GET method → 405
2. the events path → long-lived change stream
3. directory path → index document name appended
4. ignored or non-compiled path → skip to 6
5. resolvable source module → compiled code, ``text/javascript``
6. regular file → served verbatim
7. simple identifier path → index document (+ reload script)
8. otherwise → 404

Anything raised on the way is a 500 with a plain-text message.
"""

import logging
import mimetypes
from typing import TypeAlias

import anyio

from trill._internal.asgi import Receive, Scope, Send
from trill.cache import TransformCache
from trill.config import ServerConfig
from trill.errors import HTTPError, MethodNotAllowed, NotFound
from trill.http.request import Request
from trill.http.response import HTML, JAVASCRIPT, FileResponse, Response, SSEResponse
from trill.realtime.notifier import ChangeNotifier
from trill.realtime.sse import handle_sse
from trill.resolve import PathResolver, is_index_route, rewrite_dir, safe_join, stat_regular
from trill.server.errors import handle_http_error, handle_internal_error
from trill.server.reload import inject_script, render_reload_script
from trill.server.sender import send_file, send_response

logger = logging.getLogger("trill.server")

# Any response shape the router can produce
AnyResponse: TypeAlias = Response | FileResponse | SSEResponse


class RequestRouter:
    """Classify a request and produce its response.

    Holds no per-request state. The cache and notifier are shared with
    the owning ``DevServer``; ``notifier=None`` disables the change
    stream and the reload script.
    """

    __slots__ = ("_cache", "_config", "_notifier", "_reload_script", "_resolver", "_root")

    def __init__(
        self,
        config: ServerConfig,
        *,
        resolver: PathResolver,
        cache: TransformCache,
        notifier: ChangeNotifier | None = None,
    ) -> None:
        self._config = config
        self._root = config.root_path
        self._resolver = resolver
        self._cache = cache
        self._notifier = notifier
        self._reload_script = (
            render_reload_script(config.events_path, config.reload_delay_ms)
            if notifier is not None
            else None
        )

    async def route(self, request: Request) -> AnyResponse:
        """Run the precedence chain for one request.

        Raises:
            MethodNotAllowed: For anything but GET.
            NotFound: When no handler claims the path.
        """
        if request.method != "GET":
            raise MethodNotAllowed()

        path = request.path

        if self._notifier is not None and path == self._config.events_path:
            return SSEResponse(self._notifier.subscribe())

        path = rewrite_dir(path, self._config.index)

        if not self._resolver.is_ignored(path) and self._resolver.is_compiled(path):
            response = await self._compiled(path)
            if response is not None:
                return response

        response = await self._static(path)
        if response is not None:
            return response

        if is_index_route(path):
            return await self._index(path)

        raise NotFound()

    async def _compiled(self, path: str) -> Response | None:
        resolved = await self._resolver.resolve(path)
        if resolved is None:
            return None
        result = await self._cache.get_or_compile(resolved.file, resolved.mtime_ns)
        self._access(resolved.request_path, "(cache)" if result.cached else "(transform)")
        return Response(body=result.code, content_type=JAVASCRIPT)

    async def _static(self, path: str) -> FileResponse | None:
        file = await safe_join(self._root, path)
        stats = await stat_regular(file)
        if file is None or stats is None:
            return None
        content_type, _ = mimetypes.guess_type(file.name)
        self._access(path)
        return FileResponse(path=file, size=stats.st_size, content_type=content_type)

    async def _index(self, path: str) -> Response:
        html = await anyio.Path(self._root / self._config.index).read_text(encoding="utf-8")
        if self._reload_script is not None:
            html = inject_script(html, self._reload_script)
        self._access(path, "(index)")
        return Response(body=html, content_type=HTML)

    def _access(self, path: str, note: str = "") -> None:
        if self._config.verbose:
            logger.info("200 %s%s", path, f" {note}" if note else "")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: RequestRouter,
    verbose: bool = False,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope)

    try:
        response = await router.route(request)
    except HTTPError as exc:
        response = handle_http_error(exc, request, verbose=verbose)
    except Exception as exc:
        response = handle_internal_error(exc, request)

    if isinstance(response, SSEResponse):
        await handle_sse(response.listener, send, receive)
    elif isinstance(response, FileResponse):
        try:
            await send_file(response, send)
        except OSError as exc:
            # The file vanished between stat and open
            await send_response(handle_internal_error(exc, request), send)
    else:
        await send_response(response, send)
