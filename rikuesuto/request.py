from __future__ import annotations

import enum
from collections.abc import Generator, Mapping
from typing import TYPE_CHECKING, Any

from .abort import AbortSignal
from .connection import Agent
from .headers import Headers, HeadersInit
from .utils import append_query, parse_url, resolve_url

if TYPE_CHECKING:
    from .models import Response


class Method(str, enum.Enum):
    GET = "get"
    POST = "post"
    DELETE = "delete"
    PATCH = "patch"
    PUT = "put"
    HEAD = "head"
    OPTIONS = "options"
    CONNECT = "connect"
    TRACE = "trace"

    @classmethod
    def parse(cls, method: str | Method) -> Method:
        try:
            return cls(str(method.value if isinstance(method, Method) else method).lower())
        except ValueError:
            raise ValueError(f"Unsupported HTTP method: {method!r}") from None


def default_request_options() -> dict[str, Any]:
    """A fresh copy of the default request options."""
    return {
        "method": Method.GET,
        "headers": {},
        "query": {},
        "body": None,
        "timeout": None,
        "follow": False,
        "compress": False,
        "agent": None,
        "signal": None,
    }


class Request:
    """
    Builder for a single HTTP exchange.

    Options are applied on top of ``default_request_options()``; every
    builder method returns the request so calls can be chained before the
    terminal ``exec()`` (or ``await request``).

    Args:
        url: Absolute http(s) URL
        method: HTTP method (default: "get")
        headers: Initial request headers
        query: Query parameters appended to the URL; values may be lists
        body: bytes, str, Blob, FormData, a JSON-serializable dict/list, or an
            awaitable resolving to one of those
        timeout: Deadline in seconds for the whole exchange, redirects included;
            0 or None disables it
        follow: ``True`` to follow redirects, or the maximum number of hops
        compress: Decode gzip/deflate response bodies
        agent: Connection agent; the shared default agent when omitted
        signal: AbortSignal that cancels the request when fired
    """

    def __init__(self, url: str, **options: Any) -> None:
        unknown = set(options) - set(default_request_options())
        if unknown:
            raise TypeError(f"Unknown request option(s): {', '.join(sorted(unknown))}")
        opts = {**default_request_options(), **options}

        parse_url(str(url))
        self._url = str(url)
        self.redirects = 0
        self._deadline: float | None = None

        self._method = Method.parse(opts["method"])
        self._headers = Headers(opts["headers"])
        self._body = opts["body"]
        self._timeout: float | None = opts["timeout"]
        self._follow: bool | int = opts["follow"]
        self._compress: bool = opts["compress"]
        self._agent: Agent | None = opts["agent"]
        self._signal: AbortSignal | None = opts["signal"]

        if opts["query"]:
            self.query(opts["query"])

    @property
    def url(self) -> str:
        return self._url

    @property
    def method_type(self) -> Method:
        return self._method

    @property
    def headers(self) -> Headers:
        return self._headers

    @property
    def payload(self) -> Any:
        return self._body

    @property
    def timeout_seconds(self) -> float | None:
        return self._timeout

    @property
    def follow_redirects(self) -> bool | int:
        return self._follow

    @property
    def compress_data(self) -> bool:
        return self._compress

    @property
    def abort_signal(self) -> AbortSignal | None:
        return self._signal

    @property
    def connection_agent(self) -> Agent | None:
        return self._agent

    def method(self, method: str | Method) -> Request:
        self._method = Method.parse(method)
        return self

    def body(self, value: Any) -> Request:
        self._body = value
        return self

    def timeout(self, seconds: float | None) -> Request:
        self._timeout = seconds
        return self

    def signal(self, signal: AbortSignal | None) -> Request:
        self._signal = signal
        return self

    def query(
        self,
        params: str | Mapping[str, str | list[str]],
        value: str | list[str] | None = None,
    ) -> Request:
        """Append query parameters, either a mapping or a single key/value."""
        if isinstance(params, str):
            if not value:
                raise ValueError(f"Must provide a value for query parameter: {params}")
            self._url = append_query(self._url, [(params, value)])
            return self
        self._url = append_query(self._url, params)
        return self

    def agent(self, agent: Agent) -> Request:
        self._agent = agent
        return self

    def set(self, header: str | HeadersInit, value: str | None = None) -> Request:
        """Append one header, or every pair of a mapping / Headers."""
        if isinstance(header, str):
            if not value:
                raise ValueError(f'You must provide a value for header "{header}"')
            self._headers.append(header, value)
            return self
        for name, values in Headers(header).raw().items():
            for item in values:
                self._headers.append(name, item)
        return self

    def follow(self, count: int | None = None) -> Request:
        """Limit redirects to ``count`` hops, or toggle following when omitted."""
        if count:
            self._follow = count
            return self
        self._follow = not self._follow
        return self

    def compress(self) -> Request:
        self._compress = not self._compress
        return self

    def derive(self, location: str) -> Request:
        """
        Build the follow-up request for a redirect to ``location``.

        Method, headers, body and settings carry over unchanged; the hop
        counter is incremented and the deadline is shared.
        """
        follow_up = Request(
            resolve_url(self._url, location),
            method=self._method,
            headers=self._headers.copy(),
            body=self._body,
            timeout=self._timeout,
            follow=self._follow,
            compress=self._compress,
            agent=self._agent,
            signal=self._signal,
        )
        follow_up.redirects = self.redirects + 1
        follow_up._deadline = self._deadline
        return follow_up

    async def exec(self) -> Response:
        from .engine import execute

        return await execute(self)

    def __await__(self) -> Generator[Any, None, Response]:
        return self.exec().__await__()

    def __repr__(self) -> str:
        return f"<Request [{self._method.value.upper()}] {self._url}>"


def make(url: str, **options: Any) -> Request:
    """Create a new request for ``url``."""
    return Request(url, **options)
