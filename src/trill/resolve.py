"""Request path → on-disk file resolution.

``PathResolver`` implements extension-transparent module lookup: a request
for ``/app.js`` may be answered by ``app.ts`` (or any other configured
extension) without the browser knowing the authoring extension.

The module-level helpers classify request paths for the router:
directory rewriting, ignore-prefix matching and the index-fallback
pattern.
"""

from __future__ import annotations

import os
import posixpath
import re
import stat
from dataclasses import dataclass
from pathlib import Path

import anyio

from trill.config import ServerConfig

# Paths eligible for the single-page-app index fallback
_INDEX_ROUTE = re.compile(r"^[/\w-]+$", re.ASCII)


@dataclass(frozen=True, slots=True)
class Resolved:
    """A request path resolved to a concrete source file."""

    request_path: str  # the candidate that matched, e.g. "/app.ts"
    file: Path  # absolute path on disk
    mtime_ns: int


def rewrite_dir(path: str, index: str = "index.html") -> str:
    """Map a directory path (trailing slash) to its index document.

    The root path ``/`` is left alone so it reaches the index fallback,
    which is where the reload script is injected.
    """
    if path != "/" and path.endswith("/"):
        return path + index
    return path


def is_index_route(path: str) -> bool:
    """True if *path* only contains letters, digits, ``-``, ``_`` and ``/``."""
    return _INDEX_ROUTE.match(path) is not None


async def safe_join(root: Path, path: str) -> Path | None:
    """Join a URL path onto *root*, or None if it escapes the root.

    Paths the filesystem cannot represent (an embedded NUL) are None too.
    """
    relative = posixpath.normpath("/" + path.lstrip("/")).lstrip("/")
    target = root / relative if relative and relative != "." else root
    try:
        resolved = Path(await anyio.Path(target).resolve())
    except (OSError, ValueError):
        return None
    if not resolved.is_relative_to(root):
        return None
    return target


async def stat_regular(path: Path | None) -> os.stat_result | None:
    """Stat *path* if it is a regular file, else None.

    Any stat failure (missing, permissions, deleted mid-request) is
    treated as absence.
    """
    if path is None:
        return None
    try:
        stats = await anyio.Path(path).stat()
    except (OSError, ValueError):
        return None
    if not stat.S_ISREG(stats.st_mode):
        return None
    return stats


class PathResolver:
    """Resolve request paths across the configured extension aliases.

    Usage::

        resolver = PathResolver(ServerConfig(extensions=(".js", ".ts")))
        resolved = await resolver.resolve("/app.js")  # may find app.ts
    """

    __slots__ = ("_extensions", "_ignore", "_root")

    def __init__(self, config: ServerConfig) -> None:
        self._root = config.root_path
        self._extensions = config.extensions
        # "lib", "/lib" and "lib/" all normalise to "/lib/"
        self._ignore = tuple(
            "/" + prefix.strip("/") + "/" for prefix in config.ignore if prefix.strip("/")
        )

    def is_compiled(self, path: str) -> bool:
        """True if *path* has one of the configured compiled extensions."""
        return posixpath.splitext(path)[1] in self._extensions

    def is_ignored(self, path: str) -> bool:
        """True if *path* starts with any ``/<prefix>/`` of the ignore list.

        Plain string-prefix comparison, not segment-aware beyond the
        trailing slash on the prefix.
        """
        return any(path.startswith(prefix) for prefix in self._ignore)

    def candidates(self, path: str) -> list[str]:
        """Candidate request paths, requested extension first.

        ``/a.js`` with extensions ``(".js", ".ts")`` gives
        ``["/a.js", "/a.ts"]``.
        """
        stem, ext = posixpath.splitext(path)
        ordered = [ext, *(e for e in self._extensions if e != ext)]
        return [stem + e for e in ordered]

    async def resolve(self, path: str) -> Resolved | None:
        """Return the first candidate that exists as a regular file."""
        for candidate in self.candidates(path):
            file = await safe_join(self._root, candidate)
            stats = await stat_regular(file)
            if stats is not None and file is not None:
                return Resolved(request_path=candidate, file=file, mtime_ns=stats.st_mtime_ns)
        return None
