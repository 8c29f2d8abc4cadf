from __future__ import annotations


class RikuesutoError(Exception):
    """Base error for Rikuesuto."""


class InvalidHeaderName(RikuesutoError, TypeError):
    """Raised when a header name is not a valid HTTP token."""

    code = "ERR_INVALID_HTTP_TOKEN"

    def __init__(self, name: str) -> None:
        super().__init__(f"Header name must be a valid HTTP token [{name}]")
        self.name = name


class InvalidHeaderValue(RikuesutoError, TypeError):
    """Raised when a header value contains characters outside Latin-1."""

    code = "ERR_INVALID_CHAR"

    def __init__(self, name: str, value: str) -> None:
        super().__init__(f'Invalid character in header content ["{name}"]')
        self.name = name
        self.value = value


class ProtocolError(RikuesutoError):
    """Raised when an HTTP protocol error occurs."""


class NetworkError(RikuesutoError):
    """Raised when the response stream fails after the response has started."""

    def __init__(self, status_code: int, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url

    def __str__(self) -> str:
        return f"HTTPError[{self.status_code}]: {self.args[0]}"


HTTPError = NetworkError


class TimeoutError(RikuesutoError):
    """Raised when a request does not complete before its deadline."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Request to {url} has timed out.")
        self.url = url


class AbortError(RikuesutoError):
    """Raised when the abort signal of a request fires."""

    def __init__(self, message: str = "Signal was aborted.") -> None:
        super().__init__(message)


class ParseError(RikuesutoError, ValueError):
    """Raised when a JSON response body cannot be decoded."""
