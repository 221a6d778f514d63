"""Tests for trill.http — Request from ASGI scope, Response transformations."""

from trill.http.request import Request
from trill.http.response import JAVASCRIPT, Response


class TestRequest:
    def test_from_asgi(self) -> None:
        request = Request.from_asgi(
            {
                "type": "http",
                "method": "get",
                "path": "/app.js",
                "query_string": b"v=2",
                "headers": [(b"Accept", b"*/*"), (b"accept", b"text/html")],
                "client": ("127.0.0.1", 5000),
            }
        )
        assert request.method == "GET"
        assert request.path == "/app.js"
        assert request.url == "/app.js?v=2"
        assert request.headers["accept"] == "*/*"
        assert request.client == ("127.0.0.1", 5000)

    def test_empty_path_is_root(self) -> None:
        request = Request.from_asgi({"type": "http", "method": "GET", "path": ""})
        assert request.path == "/"
        assert request.url == "/"
        assert request.client is None


class TestResponse:
    def test_with_header_returns_new_object(self) -> None:
        original = Response("x", content_type=JAVASCRIPT)
        changed = original.with_header("X-One", "1").with_header("X-Two", "2")
        assert original.headers == ()
        assert changed.header("x-two") == "2"
        assert changed.header("content-type") == JAVASCRIPT
        assert changed.header("missing") is None

    def test_body_conversions(self) -> None:
        assert Response("é").body_bytes == "é".encode()
        assert Response(b"\xc3\xa9").text == "é"
