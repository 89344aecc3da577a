"""Request payload variants and multipart encoding.

A call carries one of three payloads: a JSON document (``JsonBody``), a
file upload (``FileUpload``), or nothing (``NO_BODY``).
"""

from __future__ import annotations

import dataclasses
import mimetypes
import os
import secrets
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from gitlab_rest_api.rest.exceptions import FileAccessError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

# Form field used for the file when the caller does not name one
DEFAULT_FILE_FIELD = "file"

CRLF: Final = b"\r\n"


@dataclasses.dataclass(frozen=True)
class JsonBody:
    """A value sent as an application/json request body."""

    data: Any


@dataclasses.dataclass(frozen=True)
class FileUpload:
    """A local file sent as multipart/form-data.

    Attributes:
        path: File on local disk; its base name becomes the upload filename
        field: Form field name for the file
        fields: Extra form fields sent alongside the file
    """

    path: str | os.PathLike[str]
    field: str = DEFAULT_FILE_FIELD
    fields: Mapping[str, Any] = dataclasses.field(default_factory=dict)

    def read(self) -> tuple[str, bytes]:
        """Read the file.

        Returns:
            Tuple of (base name, file content)

        Raises:
            FileAccessError: If the path is not a readable regular file
        """
        path = Path(self.path)
        if not path.is_file() or not os.access(path, os.R_OK):
            raise FileAccessError(str(path))
        try:
            content = path.read_bytes()
        except OSError as e:
            raise FileAccessError(str(path)) from e
        return path.name, content

    def form_fields(self) -> dict[str, str]:
        """Extra form fields as strings, None values dropped."""
        return {
            name: form_value(value) for name, value in self.fields.items() if value is not None
        }


class _NoBody:
    """Marker for a request without a body."""

    _instance: _NoBody | None = None

    def __new__(cls) -> _NoBody:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_BODY"


NO_BODY: Final = _NoBody()

Payload = JsonBody | FileUpload | _NoBody


def form_value(value: Any) -> str:
    """Render a value the way GitLab expects it in a form field."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _quote_param(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', "%22").replace("\r", "%0D").replace("\n", "%0A")


def new_boundary(parts: Iterable[bytes]) -> str:
    """Generate a boundary that occurs in none of the given parts."""
    contents = list(parts)
    while True:
        boundary = secrets.token_hex(16)
        marker = boundary.encode("ascii")
        if not any(marker in content for content in contents):
            return boundary


def encode_multipart(
    field: str,
    filename: str,
    content: bytes,
    fields: Mapping[str, str] | None = None,
) -> tuple[bytes, str]:
    """Build a multipart/form-data body holding one file and some form fields.

    Args:
        field: Form field name for the file
        filename: Filename reported for the file
        content: File content
        fields: Extra form fields, already rendered as strings

    Returns:
        Tuple of (body, Content-Type header value)
    """
    form = [(name, value.encode("utf-8")) for name, value in (fields or {}).items()]
    boundary = new_boundary([content, *(value for _, value in form)])
    delimiter = b"--" + boundary.encode("ascii")
    content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"

    chunks: list[bytes] = []
    for name, value in form:
        chunks += [
            delimiter,
            CRLF,
            f'Content-Disposition: form-data; name="{_quote_param(name)}"'.encode(),
            CRLF,
            CRLF,
            value,
            CRLF,
        ]
    chunks += [
        delimiter,
        CRLF,
        (
            f'Content-Disposition: form-data; name="{_quote_param(field)}"; '
            f'filename="{_quote_param(filename)}"'
        ).encode(),
        CRLF,
        f"Content-Type: {content_type}".encode(),
        CRLF,
        CRLF,
        content,
        CRLF,
        delimiter,
        b"--",
        CRLF,
    ]
    return b"".join(chunks), f"multipart/form-data; boundary={boundary}"
