from __future__ import annotations

import uuid

from .blob import Blob


def _encode_field(name: str, value: str) -> bytes:
    return (
        f'Content-Disposition: form-data; name="{name}"\r\n\r\n{value}\r\n'.encode()
    )


def _encode_file(name: str, filename: str, content: bytes, content_type: str | None) -> bytes:
    ct = content_type or "application/octet-stream"
    headers = (
        f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
        f"Content-Type: {ct}\r\n\r\n"
    ).encode()
    return headers + content + b"\r\n"


class FormData:
    """
    multipart/form-data body provider.

    Text fields and files are kept in insertion order and encoded with a
    random boundary when the request is sent.
    """

    def __init__(self, boundary: str | None = None) -> None:
        self.boundary = boundary or uuid.uuid4().hex
        self._fields: list[tuple[str, str | bytes, str | None, str | None]] = []

    def append(
        self,
        name: str,
        value: str | bytes | Blob,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> FormData:
        """
        Add a field.

        ``bytes`` and ``Blob`` values are encoded as files; the file name
        defaults to the field name and the content type to the blob type.
        """
        if isinstance(value, Blob):
            content_type = content_type or value.type or None
            value = value.data()
        if isinstance(value, (bytes, bytearray)):
            self._fields.append((name, bytes(value), filename or name, content_type))
        else:
            self._fields.append((name, str(value), filename, content_type))
        return self

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    def get_headers(self) -> dict[str, str]:
        return {"content-type": self.content_type}

    def encode(self) -> bytes:
        body_chunks: list[bytes] = []
        for name, value, filename, content_type in self._fields:
            body_chunks.append(f"--{self.boundary}\r\n".encode("ascii"))
            if isinstance(value, bytes):
                body_chunks.append(_encode_file(name, filename or name, value, content_type))
            elif filename is not None:
                body_chunks.append(_encode_file(name, filename, value.encode(), content_type))
            else:
                body_chunks.append(_encode_field(name, value))
        body_chunks.append(f"--{self.boundary}--\r\n".encode("ascii"))
        return b"".join(body_chunks)

    def __len__(self) -> int:
        return len(self._fields)
