from __future__ import annotations

import asyncio
import ssl
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass, field

from .errors import ProtocolError


class Agent:
    """
    Opens TCP/TLS connections for the request engine.

    The agent is shared between requests and owned by the caller; the engine
    only closes the individual connections it opens.
    """

    def __init__(self, verify: bool = True, ciphers: str | None = None) -> None:
        self.verify = verify
        self.ciphers = ciphers

    def ssl_context(self) -> ssl.SSLContext:
        ctx = ssl.create_default_context()
        if not self.verify:
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
        if self.ciphers:
            try:
                ctx.set_ciphers(self.ciphers)
            except ssl.SSLError:
                # Unsupported suite list for the local OpenSSL build.
                ctx.set_ciphers("DEFAULT")
        try:
            ctx.set_alpn_protocols(["http/1.1"])
        except NotImplementedError:
            pass
        return ctx

    async def connect(
        self, scheme: str, host: str, port: int
    ) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        ssl_ctx = self.ssl_context() if scheme == "https" else None
        return await asyncio.open_connection(
            host,
            port,
            ssl=ssl_ctx,
            server_hostname=host if ssl_ctx else None,
        )


DEFAULT_AGENT = Agent()


@dataclass
class ResponseHead:
    status_code: int
    reason: str
    http_version: str
    raw_headers: list[str] = field(default_factory=list)


def build_request(
    method: str,
    target: str,
    headers: Iterable[tuple[str, str]],
    body: bytes | None = None,
) -> list[bytes]:
    lines = [f"{method} {target} HTTP/1.1\r\n".encode("ascii")]
    for name, value in headers:
        lines.append(f"{name}: {value}\r\n".encode("latin-1"))
    lines.append(b"\r\n")
    if body:
        lines.append(body)
    return lines


async def read_head(reader: asyncio.StreamReader) -> ResponseHead:
    """
    Read the status line and header block of an HTTP/1.1 response.

    Header lines without a colon are skipped; 1xx interim responses are
    consumed and the final response head is returned.
    """
    while True:
        status_line = await reader.readline()
        if not status_line:
            raise ProtocolError("Empty response")
        try:
            parts = status_line.decode("latin-1").strip().split(" ", 2)
            version = parts[0].split("/", 1)[1]
            status_code = int(parts[1])
            reason = parts[2] if len(parts) > 2 else ""
        except (IndexError, ValueError) as exc:
            raise ProtocolError(f"Malformed status line: {status_line!r}") from exc

        raw_headers: list[str] = []
        while True:
            line = await reader.readline()
            if line in (b"\r\n", b"\n", b""):
                break
            name, sep, value = line.partition(b":")
            if not sep:
                continue
            raw_headers.append(name.decode("latin-1").strip())
            raw_headers.append(value.decode("latin-1").strip())

        if 100 <= status_code < 200 and status_code != 101:
            continue
        return ResponseHead(status_code, reason, version, raw_headers)


def _header(raw_headers: list[str], name: str) -> str | None:
    for index in range(0, len(raw_headers) - 1, 2):
        if raw_headers[index].lower() == name:
            return raw_headers[index + 1]
    return None


def has_body(method: str, status_code: int) -> bool:
    if method.upper() == "HEAD":
        return False
    return not (100 <= status_code < 200 or status_code in (204, 304))


async def iter_body(
    reader: asyncio.StreamReader,
    head: ResponseHead,
    method: str,
    chunk_size: int = 65536,
) -> AsyncIterator[bytes]:
    """
    Yield the response body as it arrives.

    Handles chunked transfer encoding, a known content length, or reading
    until the peer closes the connection.
    """
    if not has_body(method, head.status_code):
        return

    transfer_encoding = (_header(head.raw_headers, "transfer-encoding") or "").lower()
    if "chunked" in transfer_encoding:
        async for chunk in _iter_chunked(reader, chunk_size):
            yield chunk
        return

    content_length = _header(head.raw_headers, "content-length")
    if content_length is not None:
        try:
            remaining = int(content_length)
        except ValueError as exc:
            raise ProtocolError(f"Invalid content-length: {content_length!r}") from exc
        while remaining > 0:
            data = await reader.read(min(remaining, chunk_size))
            if not data:
                raise ProtocolError(
                    f"Connection closed with {remaining} bytes of body outstanding"
                )
            remaining -= len(data)
            yield data
        return

    while True:
        data = await reader.read(chunk_size)
        if not data:
            break
        yield data


async def _iter_chunked(reader: asyncio.StreamReader, chunk_size: int) -> AsyncIterator[bytes]:
    while True:
        line = await reader.readline()
        if not line:
            raise ProtocolError("Connection closed inside chunked body")
        try:
            size = int(line.split(b";", 1)[0].strip(), 16)
        except ValueError as exc:
            raise ProtocolError(f"Malformed chunk size: {line!r}") from exc

        if size == 0:
            # Trailers end with an empty line.
            while True:
                trailer = await reader.readline()
                if trailer in (b"\r\n", b"\n", b""):
                    return

        remaining = size
        while remaining > 0:
            data = await reader.read(min(remaining, chunk_size))
            if not data:
                raise ProtocolError("Connection closed inside chunked body")
            remaining -= len(data)
            yield data
        await reader.readexactly(2)


async def close_writer(writer: asyncio.StreamWriter) -> None:
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
