"""Form bodies: url-encoded fields and multipart uploads.

``Request.form()`` parses through ``parse_form_data``. Url-encoded bodies
use stdlib ``urllib.parse``. ``multipart/form-data`` needs the optional
``python-multipart`` package (``pip install wali[forms]``).
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs

from wali.errors import ConfigurationError, HTTPError

_URLENCODED = "application/x-www-form-urlencoded"
_MULTIPART = "multipart/form-data"


@dataclass(frozen=True, slots=True)
class UploadFile:
    """A file part of a multipart submission, held in memory."""

    field_name: str
    filename: str
    content_type: str
    content: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.content)

    def read(self) -> bytes:
        return self.content

    def save(self, path: str | Path) -> Path:
        """Write the content to *path*. Parent directories must exist."""
        target = Path(path)
        target.write_bytes(self.content)
        return target


class FormData(Mapping[str, str]):
    """Immutable parsed form: string fields plus uploaded files.

    ``__getitem__`` returns the first value for a key. Files are kept
    apart from fields and are reached through ``files``.
    """

    __slots__ = ("_data", "_files")

    def __init__(
        self,
        data: dict[str, list[str]] | None = None,
        files: dict[str, UploadFile] | None = None,
    ) -> None:
        object.__setattr__(self, "_data", data or {})
        object.__setattr__(self, "_files", files or {})

    @property
    def files(self) -> Mapping[str, UploadFile]:
        return self._files

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"FormData(fields={list(self._data)!r}, files={list(self._files)!r})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        return list(self._data.get(key, []))

    def to_dict(self) -> dict[str, str]:
        """First value per field, as a plain dict. Files are not included."""
        return {key: values[0] for key, values in self._data.items() if values}


def parse_form_data(body: bytes, content_type: str | None) -> FormData:
    """Parse *body* according to *content_type*.

    Any content type other than the two form encodings yields an empty
    ``FormData``.

    Raises:
        ConfigurationError: A multipart body arrived but ``python-multipart``
            is not installed.
        HTTPError: 400 for a multipart body that does not parse.
    """
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type == _URLENCODED:
        return FormData(parse_qs(body.decode("utf-8", errors="replace"), keep_blank_values=True))
    if media_type == _MULTIPART:
        return _parse_multipart(body, content_type or "")
    return FormData()


def _parse_multipart(body: bytes, content_type: str) -> FormData:
    try:
        from python_multipart.exceptions import MultipartParseError
        from python_multipart.multipart import MultipartParser, parse_options_header
    except ImportError:
        msg = (
            "Multipart form parsing requires the 'python-multipart' package. "
            "Install it with: pip install wali[forms]"
        )
        raise ConfigurationError(msg) from None

    _, options = parse_options_header(content_type)
    boundary = options.get(b"boundary")
    if not boundary:
        raise HTTPError(status=400, detail="Multipart body without a boundary")

    data: dict[str, list[str]] = {}
    files: dict[str, UploadFile] = {}
    headers: dict[str, str] = {}
    header_field = bytearray()
    header_value = bytearray()
    content = bytearray()

    def on_part_begin() -> None:
        headers.clear()
        content.clear()

    def on_header_field(chunk: bytes, start: int, end: int) -> None:
        header_field.extend(chunk[start:end])

    def on_header_value(chunk: bytes, start: int, end: int) -> None:
        header_value.extend(chunk[start:end])

    def on_header_end() -> None:
        headers[header_field.decode("latin-1").lower()] = header_value.decode("latin-1")
        header_field.clear()
        header_value.clear()

    def on_part_data(chunk: bytes, start: int, end: int) -> None:
        content.extend(chunk[start:end])

    def on_part_end() -> None:
        _, params = parse_options_header(headers.get("content-disposition", ""))
        name = params.get(b"name")
        if name is None:
            return
        field_name = name.decode("utf-8", errors="replace")
        filename = params.get(b"filename")
        if filename is None:
            data.setdefault(field_name, []).append(content.decode("utf-8", errors="replace"))
            return
        files[field_name] = UploadFile(
            field_name=field_name,
            filename=filename.decode("utf-8", errors="replace"),
            content_type=headers.get("content-type", "application/octet-stream"),
            content=bytes(content),
        )

    callbacks: dict[str, Any] = {
        "on_part_begin": on_part_begin,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
        "on_header_end": on_header_end,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
    }
    parser = MultipartParser(boundary, callbacks)
    try:
        parser.write(body)
        parser.finalize()
    except MultipartParseError as exc:
        raise HTTPError(status=400, detail="Malformed multipart body") from exc
    return FormData(data, files)
