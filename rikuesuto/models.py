from __future__ import annotations

import json
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from .blob import Blob
from .errors import ParseError
from .headers import Headers

if TYPE_CHECKING:
    from .request import Request


def _phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


class Response:
    """
    HTTP response whose body buffer fills as chunks arrive.

    The buffer only grows while the response is being received and is frozen
    once the stream ends; the text, JSON and blob views read the frozen bytes.
    """

    def __init__(
        self,
        request: Request,
        status_code: int,
        reason: str,
        http_version: str,
        headers: Headers,
    ) -> None:
        self.request = request
        self.status_code = status_code
        self.reason = reason
        self.http_version = http_version
        self.headers = headers
        self._buf = bytearray()
        self._complete = False

    @property
    def status_text(self) -> str:
        return self.reason or self.status

    @property
    def status(self) -> str:
        return f"{self.status_code} {_phrase(self.status_code)}".rstrip()

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def complete(self) -> bool:
        return self._complete

    @property
    def buffer(self) -> bytes:
        return bytes(self._buf)

    content = buffer

    @property
    def blob(self) -> Blob:
        return Blob([bytes(self._buf)], self.headers.get("content-type") or "")

    def text(self, encoding: str = "utf-8") -> str:
        return self._buf.decode(encoding)

    def json(self) -> Any:
        """
        Parse the body as JSON.

        Returns ``None`` for 204 responses and whenever ``content-type`` is not
        exactly ``application/json``.
        """
        if self.status_code == 204 or self.headers.get("content-type") != "application/json":
            return None
        try:
            return json.loads(self.text())
        except ValueError as exc:
            raise ParseError(f"Invalid JSON body from {self.request.url}: {exc}") from exc

    def _chunk(self, data: bytes) -> Response:
        if self._complete:
            raise RuntimeError("Response body is already complete")
        self._buf += data
        return self

    def _freeze(self) -> None:
        self._complete = True

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}] {len(self._buf)} bytes>"
