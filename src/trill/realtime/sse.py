"""Server-Sent Events protocol over ASGI for the change stream.

Handles the full lifecycle of one ``/_events`` connection: sends
``text/event-stream`` headers, forwards the listener's events as body
chunks, watches for client disconnect, and closes the listener however
the connection ends.
"""

import asyncio
import contextlib
import logging

from trill._internal.asgi import Receive, Send
from trill.realtime.notifier import ChangeListener

logger = logging.getLogger("trill.server")


async def handle_sse(listener: ChangeListener, send: Send, receive: Receive) -> None:
    """Stream *listener*'s events until the client goes away.

    1. Sends ``http.response.start`` with ``text/event-stream`` headers.
    2. Runs two tasks:
       - **Producer**: iterates ``listener.events()`` and sends each event.
       - **Disconnect monitor**: awaits ``http.disconnect`` from the client.
    3. Whichever finishes first cancels the other; the listener is closed
       in every case, so no registry entry or ping deadline survives the
       connection.
    """
    await send(
        {
            "type": "http.response.start",
            "status": 200,
            "headers": [
                (b"content-type", b"text/event-stream"),
                (b"cache-control", b"no-cache"),
                (b"connection", b"keep-alive"),
                (b"x-accel-buffering", b"no"),
            ],
        }
    )

    async def monitor_disconnect() -> None:
        while True:
            message = await receive()
            if message.get("type") == "http.disconnect":
                return

    async def produce_events() -> None:
        events = listener.events()
        try:
            async for event in events:
                try:
                    await send(
                        {
                            "type": "http.response.body",
                            "body": event.encode().encode("utf-8"),
                            "more_body": True,
                        }
                    )
                except (RuntimeError, OSError):
                    break  # Response already closed (client disconnected)
        finally:
            await events.aclose()

    producer_task = asyncio.create_task(produce_events())
    monitor_task = asyncio.create_task(monitor_disconnect())

    try:
        done, _pending = await asyncio.wait(
            {producer_task, monitor_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.error("Event stream failed", exc_info=task.exception())
    finally:
        for task in (producer_task, monitor_task):
            if not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        listener.close()
        with contextlib.suppress(RuntimeError, OSError):
            await send(
                {
                    "type": "http.response.body",
                    "body": b"",
                    "more_body": False,
                }
            )
