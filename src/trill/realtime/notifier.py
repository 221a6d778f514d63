"""Change notification fan-out for live reload.

Each open ``/_events`` connection holds one ``ChangeListener``. The
``ChangeNotifier`` keeps the registry of open listeners and broadcasts
file-change events to all of them; every listener also runs its own
keep-alive ping deadline, independent of other connections.

Free-threading safety:
    - The registry is guarded by a Lock; ``publish`` iterates a snapshot
      so listeners may (de)register while a broadcast is in progress.
    - Each listener owns its own ``asyncio.Queue``. ``publish`` must run
      on the event loop thread; the watcher hops there with
      ``call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import AsyncGenerator

from trill.realtime.events import SSEEvent, change_event, ping_event

logger = logging.getLogger("trill.server")


class ChangeListener:
    """Handle bound to one open push connection.

    Lifetime: ``subscribe()`` → ``close()``. Closing is terminal and
    idempotent; it removes the listener from the registry and ends the
    ``events()`` stream, which also ends its ping deadline.
    """

    __slots__ = ("_closed", "_interval", "_notifier", "_queue")

    def __init__(self, notifier: ChangeNotifier, ping_interval: float, maxsize: int = 256) -> None:
        self._notifier = notifier
        self._interval = ping_interval
        self._queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, path: str) -> bool:
        """Queue a change for this connection. False if dropped."""
        if self._closed:
            return False
        try:
            self._queue.put_nowait(path)
        except asyncio.QueueFull:
            # Slow consumer: drop rather than block the broadcast
            logger.debug("Dropping change %s for a slow event stream", path)
            return False
        return True

    def close(self) -> None:
        """Deregister and end the event stream."""
        if self._closed:
            return
        self._closed = True
        self._notifier._discard(self)
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            pass  # the stream checks ``closed`` after every wake-up

    async def events(self) -> AsyncGenerator[SSEEvent, None]:
        """Yield a ping, then changes as they arrive and pings on schedule.

        The listener is closed when the iterator exits for any reason,
        including cancellation on client disconnect.
        """
        loop = asyncio.get_running_loop()
        try:
            yield ping_event()
            deadline = loop.time() + self._interval
            while not self._closed:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    yield ping_event()
                    deadline = loop.time() + self._interval
                    continue
                try:
                    path = await asyncio.wait_for(self._queue.get(), remaining)
                except TimeoutError:
                    continue
                if path is None:
                    break
                yield change_event(path)
        finally:
            self.close()


class ChangeNotifier:
    """Registry of open listeners with broadcast.

    Usage::

        notifier = ChangeNotifier(ping_interval=10.0)
        listener = notifier.subscribe()
        notifier.publish("app.ts")  # every open listener gets it
        listener.close()
    """

    __slots__ = ("_listeners", "_lock", "_ping_interval")

    def __init__(self, *, ping_interval: float = 10.0) -> None:
        self._ping_interval = ping_interval
        self._listeners: set[ChangeListener] = set()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    def subscribe(self) -> ChangeListener:
        """Register a new listener for one push connection."""
        listener = ChangeListener(self, self._ping_interval)
        with self._lock:
            self._listeners.add(listener)
        return listener

    def unsubscribe(self, listener: ChangeListener) -> None:
        """Close *listener*; equivalent to ``listener.close()``."""
        listener.close()

    def publish(self, path: str) -> int:
        """Deliver a change event to every registered listener.

        Returns the number of listeners the event was queued for.
        """
        with self._lock:
            listeners = tuple(self._listeners)
        return sum(listener.deliver(path) for listener in listeners)

    def close(self) -> None:
        """Close every listener so open streams end (server shutdown)."""
        with self._lock:
            listeners = tuple(self._listeners)
        for listener in listeners:
            listener.close()

    def _discard(self, listener: ChangeListener) -> None:
        with self._lock:
            self._listeners.discard(listener)
