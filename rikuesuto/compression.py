"""
Decompression of gzip and deflate response bodies.

Only ``gzip`` and ``deflate`` are recognized; any other content-encoding is
passed through untouched.
"""

from __future__ import annotations

import zlib

SUPPORTED_ENCODINGS = ("gzip", "deflate")

# Sent when compression is enabled and the caller did not pick one.
DEFAULT_ACCEPT_ENCODING = "gzip, deflate"


def is_supported(content_encoding: str | None) -> bool:
    return (content_encoding or "").strip().lower() in SUPPORTED_ENCODINGS


class StreamDecoder:
    """
    Incremental decoder for a single ``gzip`` or ``deflate`` stream.

    ``deflate`` bodies are accepted both zlib-wrapped and raw; the framing is
    detected from the first bytes received.
    """

    def __init__(self, encoding: str) -> None:
        encoding = encoding.strip().lower()
        if encoding not in SUPPORTED_ENCODINGS:
            raise ValueError(f"Unsupported content-encoding: {encoding}")
        self.encoding = encoding
        self._obj: zlib._Decompress | None = None  # type: ignore[name-defined]
        if encoding == "gzip":
            self._obj = zlib.decompressobj(16 + zlib.MAX_WBITS)
        self._pending = b""

    def _start_deflate(self, data: bytes) -> zlib._Decompress:  # type: ignore[name-defined]
        # A zlib header is 2 bytes: CM=8 in the low nibble and a multiple of 31.
        wrapped = len(data) >= 2 and (data[0] & 0x0F) == 8 and ((data[0] << 8) | data[1]) % 31 == 0
        self._obj = zlib.decompressobj(zlib.MAX_WBITS if wrapped else -zlib.MAX_WBITS)
        return self._obj

    def decode(self, data: bytes) -> bytes:
        obj = self._obj
        if obj is None:
            self._pending += data
            if len(self._pending) < 2:
                return b""
            data, self._pending = self._pending, b""
            obj = self._start_deflate(data)
        return obj.decompress(data)

    def flush(self) -> bytes:
        if self._obj is not None:
            return self._obj.flush()
        if not self._pending:
            return b""
        data, self._pending = self._pending, b""
        obj = self._start_deflate(data)
        return obj.decompress(data) + obj.flush()


def decode_body(body: bytes, content_encoding: str | None) -> bytes:
    """
    Decode a complete response body based on its Content-Encoding header.

    Args:
        body: Raw response body bytes
        content_encoding: Value of Content-Encoding header

    Returns:
        Decoded body bytes, or ``body`` unchanged for unknown encodings
    """
    if not body or not is_supported(content_encoding):
        return body
    decoder = StreamDecoder(content_encoding)  # type: ignore[arg-type]
    return decoder.decode(body) + decoder.flush()
