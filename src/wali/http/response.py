"""HTTP response sink with send-once semantics.

Handlers and middleware write status, headers and body through a
``Response``; ``send()`` flushes the result to a ``ResponseOutput`` exactly
once. Every later ``send()`` is a no-op, so the dispatcher can guarantee
a flush on every exit path without double-writing.
"""

from __future__ import annotations

import dataclasses
import json as json_module
import mimetypes
import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote

from wali.http.cookies import SetCookie

JSON_TYPE = "application/json"
HTML_TYPE = "text/html; charset=UTF-8"
TEXT_TYPE = "text/plain; charset=UTF-8"

# Characters kept as-is when a redirect target is turned into an ASCII URI.
_URI_SAFE = ":/?#[]@!$&'()*+,;=%~"


@dataclass(frozen=True, slots=True)
class SentResponse:
    """What a ``Response`` flushed: the final status, headers, and body."""

    status: int
    headers: tuple[tuple[str, str], ...]
    body: bytes

    def header(self, name: str, default: str | None = None) -> str | None:
        """First value for *name*, case-insensitive."""
        name_lower = name.lower()
        for key, value in self.headers:
            if key.lower() == name_lower:
                return value
        return default

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")


class ResponseOutput(Protocol):
    """Destination that receives the single flushed response."""

    def write(self, sent: SentResponse) -> None: ...


class BufferedOutput:
    """Keeps the flushed response for the kernel to translate to ASGI."""

    __slots__ = ("sent", "writes")

    def __init__(self) -> None:
        self.sent: SentResponse | None = None
        self.writes = 0

    def write(self, sent: SentResponse) -> None:
        self.sent = sent
        self.writes += 1


def _json_default(value: Any) -> Any:
    """Encode dataclasses and dates; everything else is a TypeError."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, set | frozenset):
        return sorted(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def encode_json(data: Any) -> str:
    """Compact JSON with unescaped unicode and slashes."""
    return json_module.dumps(
        data, ensure_ascii=False, separators=(",", ":"), default=_json_default
    )


def content_disposition(filename: str) -> str:
    """``attachment`` header value for *filename* (RFC 6266).

    ``filename`` carries a printable-ASCII fallback. Names outside that
    range add a UTF-8 ``filename*`` parameter.
    """
    fallback = "".join(
        ch if " " <= ch <= "~" and ch not in '"\\' else "_" for ch in filename
    )
    value = f'attachment; filename="{fallback}"'
    if fallback != filename:
        value += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return value


class Response:
    """A mutable HTTP response that is sent at most once.

    Setters return ``self`` so calls chain::

        response.set_status(201).json({"id": 7})

    No ``Content-Type`` is set by default; ``json()``, ``html()`` and
    ``text()`` set one, ``set_body()`` leaves it alone.
    """

    __slots__ = ("_body", "_cookies", "_headers", "_output", "_sent", "_status", "_touched")

    def __init__(
        self,
        body: str | bytes = b"",
        status: int = 200,
        headers: dict[str, str] | None = None,
        *,
        output: ResponseOutput | None = None,
    ) -> None:
        self._status = status
        self._headers: dict[str, tuple[str, str]] = {}
        for name, value in (headers or {}).items():
            self._headers[name.lower()] = (name, value)
        self._body: str | bytes = body
        self._cookies: list[SetCookie] = []
        self._output: ResponseOutput = output or BufferedOutput()
        self._sent = False
        self._touched = False

    # -- Inspection --

    @property
    def status(self) -> int:
        return self._status

    @property
    def headers(self) -> tuple[tuple[str, str], ...]:
        """Headers in first-set order (cookies excluded)."""
        return tuple(self._headers.values())

    @property
    def cookies(self) -> tuple[SetCookie, ...]:
        return tuple(self._cookies)

    @property
    def body(self) -> str | bytes:
        return self._body

    @property
    def output(self) -> ResponseOutput:
        return self._output

    @property
    def sent(self) -> bool:
        return self._sent

    @property
    def touched(self) -> bool:
        """True once anything was written to this response."""
        return self._touched

    def get_header(self, name: str, default: str | None = None) -> str | None:
        entry = self._headers.get(name.lower())
        return entry[1] if entry is not None else default

    @property
    def content_type(self) -> str | None:
        return self.get_header("Content-Type")

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self._body, str):
            return self._body.encode("utf-8")
        return self._body

    @property
    def body_text(self) -> str:
        """Body as string."""
        if isinstance(self._body, bytes):
            return self._body.decode("utf-8")
        return self._body

    # -- Core setters --

    def set_status(self, status: int) -> Response:
        self._status = status
        self._touched = True
        return self

    def set_header(self, name: str, value: str) -> Response:
        """Set a header, replacing any existing value under the same name."""
        self._headers[name.lower()] = (name, value)
        self._touched = True
        return self

    def remove_header(self, name: str) -> Response:
        self._headers.pop(name.lower(), None)
        return self

    def set_body(self, content: str | bytes) -> Response:
        self._body = content
        self._touched = True
        return self

    def set_cookie(
        self,
        name: str,
        value: str,
        *,
        max_age: int | None = None,
        path: str = "/",
        domain: str | None = None,
        secure: bool = False,
        httponly: bool = True,
        samesite: str | None = "lax",
    ) -> Response:
        self._cookies.append(
            SetCookie(
                name=name,
                value=value,
                max_age=max_age,
                path=path,
                domain=domain,
                secure=secure,
                httponly=httponly,
                samesite=samesite,
            )
        )
        self._touched = True
        return self

    def delete_cookie(self, name: str, path: str = "/") -> Response:
        """Expire a cookie on the client (Max-Age=0)."""
        return self.set_cookie(name, "", max_age=0, path=path)

    # -- Content helpers --

    def json(self, data: Any, status: int | None = None) -> Response:
        """JSON body with ``Content-Type: application/json``."""
        if status is not None:
            self.set_status(status)
        return self.set_header("Content-Type", JSON_TYPE).set_body(encode_json(data))

    def html(self, markup: str) -> Response:
        return self.set_header("Content-Type", HTML_TYPE).set_body(markup)

    def text(self, body: str) -> Response:
        return self.set_header("Content-Type", TEXT_TYPE).set_body(body)

    # -- Special responses --

    def redirect(self, url: str, status: int = 302) -> None:
        """Redirect and send immediately. Later writes never reach the output."""
        if self._sent:
            return
        self.set_status(status).set_header("Location", quote(url, safe=_URI_SAFE)).set_body(b"")
        self.send()

    def download(self, path: str | os.PathLike[str], filename: str | None = None) -> None:
        """Send a file as an attachment, or a 404 if it does not exist."""
        if self._sent:
            return
        file_path = Path(path)
        if not file_path.is_file():
            self.set_status(404).text("File not found").send()
            return

        name = filename or file_path.name
        content = file_path.read_bytes()
        guessed, _ = mimetypes.guess_type(name)
        self.set_status(200)
        self.set_header("Content-Description", "File Transfer")
        self.set_header("Content-Type", "application/octet-stream")
        self.set_header("Content-Disposition", content_disposition(name))
        self.set_header("Content-Length", str(len(content)))
        if guessed:
            self.set_header("X-Content-Type", guessed)
        self.set_body(content)
        self.send()

    # -- Lifecycle --

    def reset(self) -> Response:
        """Drop everything written so far (no effect once sent)."""
        if not self._sent:
            self._status = 200
            self._headers.clear()
            self._cookies.clear()
            self._body = b""
            self._touched = False
        return self

    def adopt(self, other: Response) -> Response:
        """Take over status, headers, cookies and body from *other*."""
        self._status = other._status
        self._headers = dict(other._headers)
        self._cookies = list(other._cookies)
        self._body = other._body
        self._touched = True
        return self

    def snapshot(self) -> SentResponse:
        """The response as it would be flushed right now."""
        headers = [*self._headers.values()]
        headers.extend(("Set-Cookie", cookie.to_header_value()) for cookie in self._cookies)
        return SentResponse(status=self._status, headers=tuple(headers), body=self.body_bytes)

    def send(self) -> None:
        """Flush to the output. Only the first call has any effect."""
        if self._sent:
            return
        self._sent = True
        self._output.write(self.snapshot())

    @contextmanager
    def sending(self) -> Iterator[Response]:
        """Guarantee exactly one ``send()`` when the block exits, however it exits.

        ::

            with response.sending():
                run_handler()
        """
        try:
            yield self
        finally:
            self.send()

    def __repr__(self) -> str:
        state = "sent" if self._sent else "pending"
        return f"<Response {self._status} {state}>"
