"""
Request execution engine.

Runs one HTTP/1.1 exchange per attempt over a fresh connection, streams the
response body into a ``Response`` and follows redirects by executing a
derived request. A timeout and an abort signal race the exchange; whichever
outcome comes first wins and the connection is closed on every path.
"""

from __future__ import annotations

import asyncio
import inspect
import json as json_lib
import logging
import zlib
from dataclasses import dataclass

from . import __version__
from .blob import Blob
from .compression import DEFAULT_ACCEPT_ENCODING, StreamDecoder, is_supported
from .connection import DEFAULT_AGENT, build_request, close_writer, iter_body, read_head
from .errors import AbortError, NetworkError, ProtocolError, TimeoutError
from .headers import Headers
from .models import Response
from .multipart import FormData
from .request import Request
from .utils import host_header, parse_url

logger = logging.getLogger(__name__)

USER_AGENT = f"Rikuesuto ({__version__}, https://github.com/melike2d/rikuesuto)"

# Hop limit used when redirect following is simply switched on.
DEFAULT_MAX_REDIRECTS = 20

_BODY_ERRORS = (OSError, ProtocolError, asyncio.IncompleteReadError, zlib.error)


@dataclass
class _Redirect:
    location: str


def prepare(request: Request) -> None:
    """Fill in ``user-agent`` and infer ``content-type`` from the body."""
    headers = request.headers
    if not headers.get("user-agent"):
        headers.set("user-agent", USER_AGENT)

    body = request.payload
    if body is not None and not headers.get("content-type"):
        content_type: str | None = None
        if isinstance(body, FormData):
            content_type = body.content_type
        elif isinstance(body, (dict, list)):
            content_type = "application/json"
        if content_type:
            headers.set("content-type", content_type)


async def serialize_body(body: object) -> bytes | None:
    if inspect.isawaitable(body):
        body = await body
    if body is None:
        return None
    if isinstance(body, FormData):
        return body.encode()
    if isinstance(body, Blob):
        return body.data()
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    return json_lib.dumps(body).encode("utf-8")


def wire_headers(request: Request, body: bytes | None) -> list[tuple[str, str]]:
    """
    Headers as sent on the wire: the request's own headers plus the
    connection-level ones this engine manages.
    """
    parsed, _, _, _ = parse_url(request.url)
    headers = request.headers.copy()
    if not headers.has("host"):
        headers.set("host", host_header(parsed))
    if body is not None and not headers.has("content-length"):
        headers.set("content-length", str(len(body)))
    if request.compress_data and not headers.has("accept-encoding"):
        headers.set("accept-encoding", DEFAULT_ACCEPT_ENCODING)
    headers.set("connection", "close")
    return [(name, value) for name, values in headers.raw().items() for value in values]


def redirect_allowed(request: Request) -> bool:
    follow = request.follow_redirects
    if not follow:
        return False
    limit = DEFAULT_MAX_REDIRECTS if follow is True else int(follow)
    return request.redirects < limit


class Exchange:
    """One request/response round trip over its own connection."""

    def __init__(self, request: Request) -> None:
        self.request = request
        self.writer: asyncio.StreamWriter | None = None
        self.response: Response | None = None
        self._closed = False

    async def run(self) -> Response | _Redirect:
        request = self.request
        parsed, host, port, target = parse_url(request.url)
        agent = request.connection_agent or DEFAULT_AGENT

        reader, writer = await agent.connect(parsed.scheme, host, port)
        self.writer = writer
        if self._closed:
            raise ProtocolError("Connection closed before the request was sent")

        body = await serialize_body(request.payload)
        method = request.method_type.value.upper()
        writer.writelines(build_request(method, target, wire_headers(request, body), body))
        await writer.drain()

        head = await read_head(reader)
        headers = Headers.from_raw(head.raw_headers)

        location = headers.get("location")
        if location and redirect_allowed(request):
            return _Redirect(location)

        response = Response(request, head.status_code, head.reason, head.http_version, headers)
        self.response = response

        decoder: StreamDecoder | None = None
        encoding = headers.get("content-encoding")
        if request.compress_data and is_supported(encoding):
            decoder = StreamDecoder(encoding)  # type: ignore[arg-type]

        try:
            async for chunk in iter_body(reader, head, method):
                if decoder is not None:
                    chunk = decoder.decode(chunk)
                if chunk:
                    response._chunk(chunk)
            if decoder is not None:
                response._chunk(decoder.flush())
        except _BODY_ERRORS as exc:
            message = str(exc) or type(exc).__name__
            raise NetworkError(response.status_code, message, request.url) from exc

        response._freeze()
        return response

    def abort(self) -> None:
        """Drop the connection immediately; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self.writer is not None:
            self.writer.close()

    async def close(self) -> None:
        self._closed = True
        if self.writer is not None:
            await close_writer(self.writer)


async def _attempt(request: Request) -> Response | _Redirect:
    loop = asyncio.get_running_loop()
    signal = request.abort_signal
    if signal is not None and signal.aborted:
        raise AbortError()

    timer: asyncio.TimerHandle | None = None
    if request._deadline is not None and request._deadline <= loop.time():
        raise TimeoutError(request.url)

    outcome: asyncio.Future = loop.create_future()
    exchange = Exchange(request)

    def settle(result: object = None, error: BaseException | None = None) -> None:
        if outcome.done():
            return
        if error is not None:
            outcome.set_exception(error)
        else:
            outcome.set_result(result)

    def on_abort() -> None:
        logger.debug("request to %s aborted", request.url)
        exchange.abort()
        settle(error=AbortError())

    def on_timeout() -> None:
        logger.debug("request to %s timed out", request.url)
        exchange.abort()
        settle(error=TimeoutError(request.url))

    def on_done(task: asyncio.Task) -> None:
        if task.cancelled():
            if not outcome.done():
                outcome.cancel()
            return
        error = task.exception()
        if error is not None:
            settle(error=error)
        else:
            settle(result=task.result())

    if request._deadline is not None:
        timer = loop.call_at(request._deadline, on_timeout)
    if signal is not None:
        signal.add_listener(on_abort)

    task = loop.create_task(exchange.run())
    task.add_done_callback(on_done)
    try:
        return await outcome
    finally:
        if timer is not None:
            timer.cancel()
        if signal is not None:
            signal.remove_listener(on_abort)
        if not task.done():
            task.cancel()
            await asyncio.wait([task])
        await exchange.close()


async def execute(request: Request) -> Response:
    """
    Execute ``request`` and return the final response.

    Raises:
        TimeoutError: the deadline passed before the exchange finished
        AbortError: the request's abort signal fired
        NetworkError: the response body failed after the head arrived
        OSError: the connection could not be established
    """
    # Resolved once; redirect hops reuse the stored value.
    if inspect.isawaitable(request.payload):
        request.body(await request.payload)
    prepare(request)
    if request._deadline is None and request.timeout_seconds:
        request._deadline = asyncio.get_running_loop().time() + request.timeout_seconds

    logger.debug(
        "%s %s (redirect #%d)",
        request.method_type.value.upper(),
        request.url,
        request.redirects,
    )
    result = await _attempt(request)
    if isinstance(result, _Redirect):
        follow_up = request.derive(result.location)
        logger.debug("following redirect from %s to %s", request.url, follow_up.url)
        return await execute(follow_up)
    return result
