from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from typing import Union

_NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7e]")

BlobPart = Union["Blob", bytes, bytearray, memoryview, str]


def _normalize_part(part: object) -> Blob | bytes:
    if isinstance(part, Blob):
        return part
    if isinstance(part, bytes):
        return part
    if isinstance(part, (bytearray, memoryview)):
        return bytes(part)
    if isinstance(part, str):
        return part.encode("utf-8")
    return str(part).encode("utf-8")


def _part_size(part: Blob | bytes) -> int:
    return part.size if isinstance(part, Blob) else len(part)


def _clamp(index: int, size: int) -> int:
    if index < 0:
        return max(size + index, 0)
    return min(index, size)


class Blob:
    """
    Immutable binary payload made of one or more byte sources.

    The size is computed when the blob is built; the bytes themselves are
    only read when ``stream()``, ``data()`` or ``text()`` is called.
    """

    def __init__(self, parts: Iterable[BlobPart] = (), type: str = "") -> None:
        self._parts: list[Blob | bytes] = [_normalize_part(p) for p in parts]
        self._size = sum(_part_size(p) for p in self._parts)
        media_type = str(type).lower() if type is not None else ""
        self._type = "" if _NON_PRINTABLE_RE.search(media_type) else media_type

    @property
    def size(self) -> int:
        return self._size

    @property
    def type(self) -> str:
        return self._type

    def slice(self, start: int = 0, end: int | None = None, type: str = "") -> Blob:
        """
        Return a new blob holding the bytes between ``start`` and ``end``.

        Negative indexes count back from the end and out of range values are
        clamped, so this never raises.
        """
        size = self._size
        relative_start = _clamp(start, size)
        relative_end = _clamp(size if end is None else end, size)
        span = max(relative_end - relative_start, 0)

        parts: list[Blob | bytes] = []
        added = 0
        if span:
            for part in self._parts:
                part_size = _part_size(part)
                if relative_start >= part_size:
                    relative_start -= part_size
                    relative_end -= part_size
                    continue

                stop = min(part_size, relative_end)
                if isinstance(part, Blob):
                    chunk: Blob | bytes = part.slice(relative_start, stop)
                else:
                    chunk = part[relative_start:stop]
                parts.append(chunk)
                added += _part_size(chunk)
                relative_start = 0
                relative_end -= part_size
                if added >= span:
                    break

        blob = Blob(type=type)
        blob._parts = parts
        blob._size = span
        return blob

    def stream(self) -> Iterator[bytes]:
        """Yield the blob content chunk by chunk, descending into nested blobs."""
        for part in self._parts:
            if isinstance(part, Blob):
                yield from part.stream()
            else:
                yield part

    def data(self) -> bytes:
        buf = bytearray(self._size)
        offset = 0
        for chunk in self.stream():
            buf[offset:offset + len(chunk)] = chunk
            offset += len(chunk)
        return bytes(buf)

    def text(self) -> str:
        return self.data().decode("utf-8")

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"<Blob size={self._size} type={self._type!r}>"
