"""Compile cache keyed by file modification time.

An entry is valid only while its stored ``mtime_ns`` equals the file's
current one; any mismatch recompiles and overwrites. Entries never expire
otherwise: the cache lives as long as the server process.

Concurrent misses for the same file and mtime share one in-flight compile
task, so a burst of requests after a save compiles the file exactly once.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TypeAlias

from trill.errors import CompileError

# Reads and transforms one source file; returns module code or None
Transformer: TypeAlias = Callable[[Path], Awaitable[str | None]]


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Compiled output of one resolved file at one modification time."""

    mtime_ns: int
    code: str


@dataclass(frozen=True, slots=True)
class CompileResult:
    """What ``get_or_compile`` hands back to the router."""

    code: str
    cached: bool


class TransformCache:
    """Per-file cache of compiled module code.

    Usage::

        cache = TransformCache(compiler)
        result = await cache.get_or_compile(resolved.file, resolved.mtime_ns)
        result.code, result.cached
    """

    __slots__ = ("_entries", "_inflight", "_transformer", "hits", "misses")

    def __init__(self, transformer: Transformer) -> None:
        self._transformer = transformer
        self._entries: dict[Path, CacheEntry] = {}
        self._inflight: dict[tuple[Path, int], asyncio.Task[str]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, file: object) -> bool:
        return file in self._entries

    def get(self, file: Path) -> CacheEntry | None:
        """The stored entry for *file*, whatever its freshness."""
        return self._entries.get(file)

    async def get_or_compile(self, file: Path, mtime_ns: int) -> CompileResult:
        """Return cached code for *file* at *mtime_ns*, compiling on a miss.

        Raises:
            CompileError: The transformer failed or returned no output.
                Nothing is stored.
        """
        entry = self._entries.get(file)
        if entry is not None and entry.mtime_ns == mtime_ns:
            self.hits += 1
            return CompileResult(code=entry.code, cached=True)

        key = (file, mtime_ns)
        task = self._inflight.get(key)
        if task is None:
            self.misses += 1
            task = asyncio.ensure_future(self._compile(file, mtime_ns))
            self._inflight[key] = task
            task.add_done_callback(lambda done, key=key: self._settle(key, done))

        # shield: a disconnecting client must not cancel a compile
        # other requests are waiting on
        code = await asyncio.shield(task)
        return CompileResult(code=code, cached=False)

    def invalidate(self, file: Path) -> bool:
        """Drop the entry for *file*. Returns True if one existed."""
        return self._entries.pop(file, None) is not None

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    async def _compile(self, file: Path, mtime_ns: int) -> str:
        try:
            code = await self._transformer(file)
        except CompileError:
            raise
        except Exception as exc:
            raise CompileError(str(exc) or type(exc).__name__) from exc
        if code is None:
            msg = f"Transformation of {file.name} produced no output"
            raise CompileError(msg)
        self._entries[file] = CacheEntry(mtime_ns=mtime_ns, code=code)
        return code

    def _settle(self, key: tuple[Path, int], task: asyncio.Task[str]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the failure retrieved; every waiter already re-raises it
        if not task.cancelled():
            task.exception()
