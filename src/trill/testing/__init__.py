"""Test helpers for trill servers.

Usage::

    from trill.testing import TestClient

    async with TestClient(server) as client:
        response = await client.get("/app.js")
        assert response.status == 200
"""

from trill.testing.client import TestClient
from trill.testing.sse import SSETestResult, parse_sse_frames

__all__ = [
    "SSETestResult",
    "TestClient",
    "parse_sse_frames",
]
