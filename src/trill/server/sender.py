"""ASGI response sending — translates trill response types to ASGI messages.

Handles in-memory responses and files streamed verbatim from disk.
"""

import anyio

from trill._internal.asgi import Send
from trill.http.response import FileResponse, Response


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def _raw_headers(
    content_type: str | None,
    headers: tuple[tuple[str, str], ...],
) -> list[tuple[bytes, bytes]]:
    raw: list[tuple[bytes, bytes]] = []
    if content_type is not None:
        raw.append((b"content-type", content_type.encode("latin-1")))
    for name, value in headers:
        raw.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    return raw


async def send_response(response: Response, send: Send) -> None:
    """Translate a Response into ASGI send() calls."""
    raw_headers = _raw_headers(response.content_type, response.headers)
    body = response.body_bytes if _body_allowed(response.status) else b""
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )


async def send_file(response: FileResponse, send: Send) -> None:
    """Stream a file in ``chunk_size`` pieces with a fixed content-length.

    The length is taken from the stat done during routing. Reads stop at
    that length if the file grows mid-stream; if it shrinks the client
    sees a short read, which the next reload fixes.
    """
    # Opened before the response starts so a vanished file can still 500
    fh = await anyio.open_file(response.path, "rb")
    raw_headers = _raw_headers(response.content_type, response.headers)
    raw_headers.append((b"content-length", str(response.size).encode("latin-1")))

    async with fh:
        await send(
            {
                "type": "http.response.start",
                "status": response.status,
                "headers": raw_headers,
            }
        )
        remaining = response.size
        while remaining > 0:
            chunk = await fh.read(min(response.chunk_size, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            await send(
                {
                    "type": "http.response.body",
                    "body": chunk,
                    "more_body": True,
                }
            )

    await send(
        {
            "type": "http.response.body",
            "body": b"",
            "more_body": False,
        }
    )
