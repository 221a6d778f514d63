"""Trill — a development server for bundler-free ES modules.

Serves a project's static files, compiles source modules (TypeScript,
JSX) when they are requested, and pushes file changes to open browser
tabs so they reload.

Basic usage::

    from trill import DevServer, ServerConfig

    server = DevServer(ServerConfig(root="site", extensions=(".js", ".ts")))
    server.run()

Or from a shell::

    trill site --ext .js --ext .ts
"""

__version__ = "0.1.0"
__all__ = [
    "ChangeNotifier",
    "CompileError",
    "ConfigurationError",
    "DevServer",
    "HTTPError",
    "MethodNotAllowed",
    "NotFound",
    "PathResolver",
    "ServerConfig",
    "TransformCache",
    "TrillError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import trill`` fast while providing a clean top-level API.
    """
    if name == "DevServer":
        from trill.app import DevServer

        return DevServer

    if name == "ServerConfig":
        from trill.config import ServerConfig

        return ServerConfig

    if name == "PathResolver":
        from trill.resolve import PathResolver

        return PathResolver

    if name == "TransformCache":
        from trill.cache import TransformCache

        return TransformCache

    if name == "ChangeNotifier":
        from trill.realtime.notifier import ChangeNotifier

        return ChangeNotifier

    if name in (
        "CompileError",
        "ConfigurationError",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
        "TrillError",
    ):
        from trill import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
