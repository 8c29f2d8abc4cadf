__version__ = "0.1.0"

from rikuesuto.abort import AbortController, AbortSignal
from rikuesuto.blob import Blob
from rikuesuto.client import Client
from rikuesuto.connection import Agent
from rikuesuto.engine import DEFAULT_MAX_REDIRECTS, USER_AGENT, execute
from rikuesuto.errors import (
    AbortError,
    HTTPError,
    InvalidHeaderName,
    InvalidHeaderValue,
    NetworkError,
    ParseError,
    ProtocolError,
    RikuesutoError,
    TimeoutError,
)
from rikuesuto.headers import Headers, from_raw_headers
from rikuesuto.models import Response
from rikuesuto.multipart import FormData
from rikuesuto.request import Method, Request, default_request_options, make

__all__ = [
    "__version__",
    "AbortController",
    "AbortSignal",
    "Agent",
    "Blob",
    "Client",
    "DEFAULT_MAX_REDIRECTS",
    "FormData",
    "Headers",
    "Method",
    "Request",
    "Response",
    "USER_AGENT",
    "default_request_options",
    "execute",
    "from_raw_headers",
    "make",
    "AbortError",
    "HTTPError",
    "InvalidHeaderName",
    "InvalidHeaderValue",
    "NetworkError",
    "ParseError",
    "ProtocolError",
    "RikuesutoError",
    "TimeoutError",
]
