"""Development server runner.

Starts a pounce ASGI server with the live trill ``DevServer`` object.
Single worker: the compile cache and the change-stream registry live in
this one process.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trill.app import DevServer


def run_dev_server(app: DevServer, host: str, port: int) -> None:
    """Start a pounce server with the given DevServer.

    Pounce's ``run()`` takes an import string, but trill has a live app
    object, so ``pounce.Server`` is used directly with the ASGI callable.
    Pounce's own code reload stays off: browser reload is driven by the
    change stream, and restarting would throw the compile cache away.

    Args:
        app: ASGI callable (trill DevServer instance).
        host: Bind host address.
        port: Bind port number.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=1,
        reload=False,
    )
    Server(config, app).run()
