"""Filesystem watcher feeding the change notifier.

A watchdog ``Observer`` thread watches the content root. Each file event
is reduced to a root-relative POSIX path (``"src/app.ts"``) and handed to
the event loop with ``call_soon_threadsafe``, where the callback (usually
``ChangeNotifier.publish``) runs.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger("trill.watch")

# Event kinds that can change what the browser would load
WATCHED_EVENTS = frozenset({"created", "modified", "moved"})

SKIPPED_DIRS = frozenset({"node_modules", "__pycache__"})


def relative_change(root: Path, event: FileSystemEvent) -> str | None:
    """Root-relative path for a file event, or None if it is not reported.

    Directory events, events outside the root, and files below hidden or
    skipped directories are dropped.
    """
    if event.is_directory or event.event_type not in WATCHED_EVENTS:
        return None
    raw = event.dest_path if event.event_type == "moved" else event.src_path
    try:
        relative = Path(os.fsdecode(raw)).resolve().relative_to(root)
    except ValueError:
        return None
    parts = relative.parts
    if not parts:
        return None
    if any(part.startswith(".") or part in SKIPPED_DIRS for part in parts[:-1]):
        return None
    if parts[-1].startswith("."):
        return None
    return relative.as_posix()


class _Handler(FileSystemEventHandler):
    def __init__(self, root: Path, emit: Callable[[str], None]) -> None:
        super().__init__()
        self._root = root
        self._emit = emit

    def on_any_event(self, event: FileSystemEvent) -> None:
        path = relative_change(self._root, event)
        if path is not None:
            self._emit(path)


class FileWatcher:
    """Watch *root* recursively and report changed files on the loop.

    Usage::

        watcher = FileWatcher(config.root_path, notifier.publish)
        watcher.start()  # inside a running event loop
        ...
        watcher.stop()
    """

    __slots__ = ("_observer", "_on_change", "_root")

    def __init__(self, root: Path, on_change: Callable[[str], object]) -> None:
        self._root = root.resolve()
        self._on_change = on_change
        self._observer: Observer | None = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Start the observer thread; callbacks run on *loop*."""
        if self._observer is not None:
            return
        target = loop or asyncio.get_running_loop()

        def emit(path: str) -> None:
            if not target.is_closed():
                target.call_soon_threadsafe(self._on_change, path)

        observer = Observer()
        observer.schedule(_Handler(self._root, emit), str(self._root), recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.debug("Watching %s", self._root)

    def stop(self) -> None:
        """Stop the observer thread and wait for it to exit."""
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=5)
