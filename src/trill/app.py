"""The trill dev server application.

``DevServer`` is the ASGI callable. It owns one instance of every
stateful component (compile cache, change notifier, file watcher) and
hands them to the request router; nothing is module-global.
"""

from __future__ import annotations

import logging

from trill._internal.asgi import Receive, Scope, Send
from trill.cache import Transformer, TransformCache
from trill.config import ServerConfig
from trill.realtime.notifier import ChangeNotifier
from trill.resolve import PathResolver
from trill.server.handler import RequestRouter, handle_request
from trill.transform.compiler import Compiler
from trill.watch import FileWatcher

logger = logging.getLogger("trill.server")


class DevServer:
    """Development server: static files, on-request compilation, live reload.

    Usage::

        server = DevServer(ServerConfig(root="site", extensions=(".js", ".ts")))
        server.run()

    Or hand it to any ASGI server as the application object.

    Lifecycle:
        ASGI ``lifespan.startup`` starts the file watcher on the serving
        loop; ``lifespan.shutdown`` stops it and closes every open change
        stream. With ``config.watch`` false there is no watcher, no
        ``/_events`` endpoint and no reload script.
    """

    __slots__ = ("cache", "config", "notifier", "resolver", "router", "watcher")

    def __init__(
        self,
        config: ServerConfig | None = None,
        *,
        transformer: Transformer | None = None,
    ) -> None:
        self.config: ServerConfig = config or ServerConfig()
        self.resolver = PathResolver(self.config)
        self.cache = TransformCache(transformer or Compiler(self.config))
        self.notifier: ChangeNotifier | None = None
        self.watcher: FileWatcher | None = None
        if self.config.watch:
            self.notifier = ChangeNotifier(ping_interval=self.config.ping_interval)
            self.watcher = FileWatcher(self.config.root_path, self.publish)
        self.router = RequestRouter(
            self.config,
            resolver=self.resolver,
            cache=self.cache,
            notifier=self.notifier,
        )

    def publish(self, path: str) -> int:
        """Broadcast a changed file to every open change stream."""
        if self.notifier is None:
            return 0
        if self.config.verbose:
            logger.info("CHANGE /%s", path)
        return self.notifier.publish(path)

    async def startup(self) -> None:
        """Start the file watcher on the running loop."""
        if self.watcher is not None:
            self.watcher.start()

    async def shutdown(self) -> None:
        """Stop the watcher and end open change streams."""
        if self.watcher is not None:
            self.watcher.stop()
        if self.notifier is not None:
            self.notifier.close()

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Serve until interrupted (blocking)."""
        from trill.server.dev import run_dev_server

        run_dev_server(
            self,
            host if host is not None else self.config.host,
            port if port is not None else self.config.port,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI entry point: lifespan and HTTP scopes."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        await handle_request(
            scope,
            receive,
            send,
            router=self.router,
            verbose=self.config.verbose,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol."""
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return
