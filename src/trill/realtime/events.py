"""SSEEvent — one Server-Sent Event on the wire.

The change stream only ever sends two event names, ``change`` and
``ping``; both are built here so the framing lives in one place.
"""

from dataclasses import dataclass

CHANGE = "change"
PING = "ping"
PING_DATA = "ping!"


@dataclass(frozen=True, slots=True)
class SSEEvent:
    """A single Server-Sent Event."""

    data: str
    event: str | None = None

    def encode(self) -> str:
        """Serialize to SSE wire format."""
        lines: list[str] = []
        if self.event:
            lines.append(f"event: {self.event}")
        lines.extend(f"data: {line}" for line in self.data.split("\n"))
        lines.append("")  # Trailing newline to terminate the event
        return "\n".join(lines) + "\n"


def change_event(path: str) -> SSEEvent:
    """``event: change`` carrying the changed file's path."""
    return SSEEvent(data=path, event=CHANGE)


def ping_event() -> SSEEvent:
    """``event: ping`` keep-alive."""
    return SSEEvent(data=PING_DATA, event=PING)
