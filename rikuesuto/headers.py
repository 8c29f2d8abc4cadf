from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Union

from .errors import InvalidHeaderName, InvalidHeaderValue

_TOKEN_RE = re.compile(r"^[\^`\-\w!#$%&'\"*+.|~]+$", re.ASCII)
_INVALID_VALUE_RE = re.compile(r"[^\t\x20-\x7e\x80-\xff]")


def validate_header_name(name: str) -> None:
    if not isinstance(name, str) or not _TOKEN_RE.match(name):
        raise InvalidHeaderName(str(name))


def validate_header_value(name: str, value: str) -> None:
    if _INVALID_VALUE_RE.search(value):
        raise InvalidHeaderValue(name, value)


def _is_valid(name: str, value: str) -> bool:
    try:
        validate_header_name(name)
        validate_header_value(name, str(value))
    except (InvalidHeaderName, InvalidHeaderValue):
        return False
    return True


class Headers:
    """
    Ordered, case-insensitive multimap of HTTP headers.

    Names are lowercased on insert and every pair is validated before it is
    stored. Repeated names keep all of their values in insertion order;
    ``get`` joins them with ``", "`` while ``get_all`` and ``raw`` expose the
    individual values.
    """

    def __init__(self, init: HeadersInit | None = None) -> None:
        self._pairs: list[tuple[str, str]] = []
        for name, value in _init_pairs(init):
            self.append(name, value)

    @classmethod
    def from_raw(cls, raw: Iterable[str]) -> Headers:
        """
        Build headers from an alternating name/value list, ignoring pairs
        that do not conform to the HTTP grammar.
        """
        flat = list(raw)
        headers = cls()
        for index in range(0, len(flat) - 1, 2):
            name, value = flat[index], flat[index + 1]
            if _is_valid(name, value):
                headers._pairs.append((name.lower(), str(value)))
        return headers

    def append(self, name: str, value: object) -> None:
        value = str(value)
        validate_header_name(name)
        validate_header_value(name, value)
        self._pairs.append((name.lower(), value))

    def set(self, name: str, value: object) -> None:
        value = str(value)
        validate_header_name(name)
        validate_header_value(name, value)
        key = name.lower()
        out: list[tuple[str, str]] = []
        placed = False
        for pair in self._pairs:
            if pair[0] != key:
                out.append(pair)
            elif not placed:
                out.append((key, value))
                placed = True
        if not placed:
            out.append((key, value))
        self._pairs = out

    def delete(self, name: str) -> None:
        validate_header_name(name)
        key = name.lower()
        self._pairs = [pair for pair in self._pairs if pair[0] != key]

    def has(self, name: str) -> bool:
        validate_header_name(name)
        key = name.lower()
        return any(pair[0] == key for pair in self._pairs)

    def get_all(self, name: str) -> list[str]:
        validate_header_name(name)
        key = name.lower()
        return [value for pair_name, value in self._pairs if pair_name == key]

    def get(self, name: str) -> str | None:
        values = self.get_all(name)
        if not values:
            return None
        value = ", ".join(values)
        if name.lower() == "content-encoding":
            value = value.lower()
        return value

    def keys(self) -> list[str]:
        return sorted({name for name, _ in self._pairs})

    def values(self) -> Iterator[str]:
        for name in self.keys():
            yield self.get(name)  # type: ignore[misc]

    def items(self) -> Iterator[tuple[str, str]]:
        for name in self.keys():
            yield name, self.get(name)  # type: ignore[misc]

    def for_each(self, callback: Callable[[str, str, Headers], object]) -> None:
        for name, value in self.items():
            callback(value, name, self)

    def raw(self) -> dict[str, list[str]]:
        """Every header name mapped to its full list of values."""
        return {name: self.get_all(name) for name in self.keys()}

    def copy(self) -> Headers:
        clone = Headers()
        clone._pairs = list(self._pairs)
        return clone

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.keys())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return self.raw() == other.raw()

    def __repr__(self) -> str:
        return f"<Headers {dict(self.items())!r}>"


HeadersInit = Union[Headers, Mapping[str, object], Iterable[Iterable[str]]]


def _init_pairs(init: HeadersInit | None) -> list[tuple[str, object]]:
    if init is None:
        return []
    if isinstance(init, Headers):
        return [(name, value) for name, values in init.raw().items() for value in values]
    if isinstance(init, Mapping):
        return list(init.items())
    if isinstance(init, (str, bytes)) or not isinstance(init, Iterable):
        raise TypeError(
            "Failed to construct 'Headers': expected a mapping or an iterable of name/value pairs"
        )

    pairs: list[tuple[str, object]] = []
    for pair in init:
        if isinstance(pair, (str, bytes)) or not isinstance(pair, Iterable):
            raise TypeError("Each header pair must be an iterable object")
        items = list(pair)
        if len(items) != 2:
            raise TypeError("Each header pair must be a name/value tuple")
        pairs.append((items[0], items[1]))
    return pairs


def from_raw_headers(raw: Iterable[str] | None = None) -> Headers:
    return Headers.from_raw(raw or [])
