from __future__ import annotations

import logging
from typing import Any

from .engine import USER_AGENT
from .headers import Headers
from .models import Response
from .request import Method, Request
from .utils import parse_url

logger = logging.getLogger(__name__)


def merge_options(defaults: dict[str, Any], options: dict[str, Any]) -> dict[str, Any]:
    """
    Merge per-call options over client defaults into a fresh dict.

    Headers and query parameters are combined rather than replaced, and are
    always copied so no request shares a mutable structure with the defaults.
    """
    merged = {**defaults, **options}
    headers = Headers(defaults.get("headers"))
    for name, values in Headers(options.get("headers")).raw().items():
        headers.set(name, values[0])
        for value in values[1:]:
            headers.append(name, value)
    merged["headers"] = headers

    query: dict[str, Any] = {}
    for source in (defaults.get("query"), options.get("query")):
        if not source:
            continue
        for key, value in source.items():
            query[key] = list(value) if isinstance(value, (list, tuple)) else value
    merged["query"] = query
    return merged


class Client:
    """
    Convenience wrapper that shares a base URL, user agent and default
    options between requests.

    Args:
        base_url: Prefix for relative request paths
        user_agent: Value for the user-agent header (default: USER_AGENT);
            pass an empty string to leave the header to the engine
        defaults: Request options applied to every request; per-call options
            win over them

    Example:
        client = Client(base_url="https://api.example.com", defaults={"timeout": 5})
        response = await client.get("/users", query={"page": "2"})
    """

    def __init__(
        self,
        base_url: str | None = None,
        user_agent: str | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        if base_url is not None:
            parse_url(base_url)
        self.base_url = base_url.rstrip("/") if base_url else None
        self.user_agent = USER_AGENT if user_agent is None else user_agent
        self.defaults: dict[str, Any] = dict(defaults or {})
        self.requests = 0

    def resolve(self, url: str) -> str:
        if not self.base_url or url.startswith(("http://", "https://")):
            return url
        path = url if url.startswith("/") else f"/{url}"
        return f"{self.base_url}{path}"

    def make(self, url: str, **options: Any) -> Request:
        """
        Create a request with the client defaults merged in.

        Returns:
            Request ready to be configured further and executed
        """
        self.requests += 1
        request = Request(self.resolve(url), **merge_options(self.defaults, options))
        logger.debug(
            "#%d request: %s to %s",
            self.requests,
            request.method_type.value.upper(),
            request.url,
        )
        if self.user_agent and not request.headers.has("user-agent"):
            request.set("user-agent", self.user_agent)
        return request

    async def request(self, method: str | Method, url: str, **options: Any) -> Response:
        return await self.make(url, **options).method(method).exec()

    async def get(self, url: str, **options: Any) -> Response:
        return await self.request(Method.GET, url, **options)

    async def post(self, url: str, **options: Any) -> Response:
        return await self.request(Method.POST, url, **options)

    async def delete(self, url: str, **options: Any) -> Response:
        return await self.request(Method.DELETE, url, **options)

    async def patch(self, url: str, **options: Any) -> Response:
        return await self.request(Method.PATCH, url, **options)

    async def put(self, url: str, **options: Any) -> Response:
        return await self.request(Method.PUT, url, **options)

    async def head(self, url: str, **options: Any) -> Response:
        return await self.request(Method.HEAD, url, **options)

    async def options(self, url: str, **options: Any) -> Response:
        return await self.request(Method.OPTIONS, url, **options)

    async def connect(self, url: str, **options: Any) -> Response:
        return await self.request(Method.CONNECT, url, **options)

    async def trace(self, url: str, **options: Any) -> Response:
        return await self.request(Method.TRACE, url, **options)
