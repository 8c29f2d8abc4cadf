"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
import gzip
import json
import threading
import zlib
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import AsyncMock, MagicMock

import pytest

from rikuesuto.headers import Headers
from rikuesuto.models import Response
from rikuesuto.request import Request


class LocalHandler(BaseHTTPRequestHandler):
    """HTTP handler covering the behaviours the engine tests rely on."""

    def log_message(self, format, *args):
        pass  # Suppress logging

    def _read_body(self) -> bytes:
        length = int(self.headers.get("Content-Length") or 0)
        return self.rfile.read(length) if length else b""

    def _send(self, status: int, body: bytes = b"", headers: dict[str, str] | None = None) -> None:
        self.send_response(status)
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def _dispatch(self):
        body = self._read_body()
        self.server.hits.append((self.command, self.path, dict(self.headers), body))
        path = self.path.split("?", 1)[0]

        if path == "/hello":
            self._send(200, b"hello", {"Content-Type": "text/plain"})
        elif path == "/json":
            self._send(200, b'{"key": "val"}', {"Content-Type": "application/json"})
        elif path == "/json-charset":
            self._send(200, b'{"key": "val"}', {"Content-Type": "application/json; charset=utf-8"})
        elif path == "/json-untyped":
            self._send(200, b'{"key": "val"}')
        elif path == "/bad-json":
            self._send(200, b"{nope", {"Content-Type": "application/json"})
        elif path == "/no-content":
            self.send_response(204)
            self.end_headers()
        elif path == "/created":
            self._send(201, b"created")
        elif path == "/gzip":
            self._send(200, gzip.compress(b"compressed payload"), {"Content-Encoding": "gzip"})
        elif path == "/deflate":
            self._send(200, zlib.compress(b"deflated payload"), {"Content-Encoding": "DEFLATE"})
        elif path == "/br":
            self._send(200, b"not really brotli", {"Content-Encoding": "br"})
        elif path == "/chunked":
            self.send_response(200)
            self.send_header("Transfer-Encoding", "chunked")
            self.end_headers()
            for i in range(5):
                chunk = f"chunk{i}\n".encode()
                self.wfile.write(f"{len(chunk):x}\r\n".encode() + chunk + b"\r\n")
            self.wfile.write(b"0\r\n\r\n")
        elif path.startswith("/redirect/"):
            remaining = int(path.rsplit("/", 1)[1])
            if remaining > 0:
                self._send(302, b"moved", {"Location": f"/redirect/{remaining - 1}"})
            else:
                self._send(200, b"done")
        elif path == "/loop":
            self._send(302, b"looping", {"Location": "/loop"})
        elif path == "/absolute-redirect":
            port = self.server.server_address[1]
            self._send(301, b"", {"Location": f"http://127.0.0.1:{port}/hello"})
        elif path == "/post-redirect":
            self._send(303, b"", {"Location": "/echo"})
        elif path == "/echo":
            payload = {
                "method": self.command,
                "body": body.decode("latin-1"),
                "headers": {k.lower(): v for k, v in self.headers.items()},
                "query": self.path.split("?", 1)[1] if "?" in self.path else "",
            }
            self._send(200, json.dumps(payload).encode(), {"Content-Type": "application/json"})
        elif path == "/bad-headers":
            self.send_response(200)
            self.send_header("Valid-Name", "v1")
            self.send_header("Bad Name!", "v2")
            self.send_header("Another", "v3")
            self.send_header("Content-Length", "0")
            self.end_headers()
        elif path == "/truncated":
            self.send_response(200)
            self.send_header("Content-Length", "100")
            self.end_headers()
            self.wfile.write(b"0123456789")
            self.close_connection = True
        elif path.startswith("/hang/"):
            token = path.rsplit("/", 1)[1]
            # Blocks until the client drops the connection.
            self.rfile.read(1)
            self.server.closed_event(token).set()
        else:
            self._send(404, b"not found")

    do_GET = do_POST = do_PUT = do_DELETE = do_PATCH = do_HEAD = do_OPTIONS = _dispatch


class LocalServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), LocalHandler)
        self.hits: list[tuple[str, str, dict[str, str], bytes]] = []
        self._events: dict[str, threading.Event] = {}
        self._lock = threading.Lock()

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.server_address[1]}"

    def closed_event(self, token: str) -> threading.Event:
        with self._lock:
            return self._events.setdefault(token, threading.Event())


@pytest.fixture(scope="session")
def local_server():
    """Start a local HTTP server for testing."""
    server = LocalServer()
    thread = threading.Thread(target=server.serve_forever)
    thread.daemon = True
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


@pytest.fixture
def http_server(local_server):
    """Base URL of the local server, with the hit log cleared."""
    local_server.hits.clear()
    return local_server.url


class FakeAgent:
    """Agent that replays canned responses over in-memory streams."""

    def __init__(self, *responses: bytes) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, str, int]] = []
        self.writers: list[MagicMock] = []
        self.close = MagicMock()

    async def connect(self, scheme: str, host: str, port: int):
        self.calls.append((scheme, host, port))
        reader = asyncio.StreamReader()
        reader.feed_data(self.responses.pop(0))
        reader.feed_eof()
        writer = MagicMock()
        writer.drain = AsyncMock()
        writer.wait_closed = AsyncMock()
        self.writers.append(writer)
        return reader, writer

    def sent(self, index: int = 0) -> bytes:
        writer = self.writers[index]
        return b"".join(
            chunk for call in writer.writelines.call_args_list for chunk in call.args[0]
        )


@pytest.fixture
def fake_agent():
    """Factory for a FakeAgent loaded with raw HTTP responses."""
    return FakeAgent


@pytest.fixture
def sample_response():
    """Create a sample Response object."""
    response = Response(
        request=Request("http://example.com/data"),
        status_code=200,
        reason="OK",
        http_version="1.1",
        headers=Headers([("Content-Type", "application/json"), ("Content-Length", "13")]),
    )
    response._chunk(b'{"key":"val"}')
    response._freeze()
    return response
