from __future__ import annotations

from collections.abc import Iterable, Mapping
from urllib.parse import SplitResult, urlencode, urljoin, urlsplit, urlunsplit


def parse_url(url: str):
    parsed = urlsplit(url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError("Only http and https schemes are supported")
    if not parsed.hostname:
        raise ValueError(f"URL must be absolute: {url!r}")
    host = parsed.hostname
    port = parsed.port or (443 if parsed.scheme == "https" else 80)
    path = parsed.path or "/"
    if parsed.query:
        path = f"{path}?{parsed.query}"
    return parsed, host, port, path


def host_header(parsed: SplitResult) -> str:
    host = parsed.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    default_port = 443 if parsed.scheme == "https" else 80
    if parsed.port and parsed.port != default_port:
        return f"{host}:{parsed.port}"
    return host


def append_query(url: str, params: Mapping[str, object] | Iterable[tuple[str, object]]) -> str:
    """Append ``params`` to the query string of ``url``, keeping existing ones."""
    items = params.items() if isinstance(params, Mapping) else params
    pairs: list[tuple[str, str]] = []
    for key, value in items:
        if isinstance(value, (list, tuple)):
            pairs.extend((key, str(v)) for v in value)
        else:
            pairs.append((key, str(value)))
    if not pairs:
        return url
    parsed = urlsplit(url)
    encoded = urlencode(pairs)
    query = f"{parsed.query}&{encoded}" if parsed.query else encoded
    return urlunsplit((parsed.scheme, parsed.netloc, parsed.path, query, parsed.fragment))


def resolve_url(base: str, location: str) -> str:
    return urljoin(base, location)
