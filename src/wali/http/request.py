"""Immutable HTTP request.

Frozen metadata plus the fully-read body. The kernel reads the body from
the ASGI receive channel before dispatch, so every accessor here is
synchronous and safe to call from handlers running in a worker thread.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from wali.http.cookies import parse_cookies
from wali.http.forms import FormData, UploadFile, parse_form_data
from wali.http.headers import Headers
from wali.http.query import QueryParams
from wali.routing.pattern import normalize_path


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path`` is normalized (one leading slash, no trailing slash).
    ``route_params`` holds the positional captures of the matched route
    once the router has resolved it.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: QueryParams = field(default_factory=QueryParams)
    body: bytes = b""
    cookies: Mapping[str, str] = field(default_factory=dict)
    client: tuple[str, int] | None = None
    route_params: tuple[str, ...] = ()

    # Private: parsed body cache (dict contents are mutable even though
    # the field reference is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def is_json(self) -> bool:
        return "application/json" in (self.content_type or "")

    @property
    def url(self) -> str:
        """Path plus query string."""
        if self.query.raw:
            return f"{self.path}?{self.query.raw}"
        return self.path

    def header(self, name: str, default: str | None = None) -> str | None:
        """Case-insensitive header lookup."""
        return self.headers.get(name, default)

    # -- Body access --

    def text(self) -> str:
        """The body decoded as UTF-8."""
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """The parsed JSON body.

        Returns ``{}`` when the content type is not JSON or the body does
        not parse. Parsed once, then cached.
        """
        if "_json" not in self._cache:
            data: Any = {}
            if self.is_json and self.body:
                try:
                    data = json_module.loads(self.body)
                except ValueError:
                    data = {}
            self._cache["_json"] = data
        return self._cache["_json"]

    def form(self) -> FormData:
        """The url-encoded or multipart form body, parsed once.

        Empty for other content types. Multipart bodies need the
        ``forms`` extra.
        """
        if "_form" not in self._cache:
            self._cache["_form"] = parse_form_data(self.body, self.content_type)
        return self._cache["_form"]

    def file(self, key: str) -> UploadFile | None:
        """The uploaded file sent under field *key*, if any."""
        return self.form().files.get(key)

    # -- Merged input --

    def all(self) -> dict[str, Any]:
        """Query, form and JSON input merged; later sources win on key clashes."""
        merged: dict[str, Any] = {**self.query.to_dict(), **self.form().to_dict()}
        data = self.json()
        if isinstance(data, Mapping):
            merged.update(data)
        return merged

    def input(self, key: str, default: Any = None) -> Any:
        """Value for *key* from ``all()``. A missing key or a ``None`` value gives *default*."""
        value = self.all().get(key)
        return default if value is None else value

    def only(self, keys: Iterable[str]) -> dict[str, Any]:
        data = self.all()
        return {key: data[key] for key in keys if key in data}

    def has(self, key: str) -> bool:
        return key in self.all()

    # -- Factories --

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], body: bytes = b"") -> Request:
        """Create a Request from an ASGI scope and the already-read body."""
        headers = Headers.from_asgi(scope.get("headers", ()))
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=normalize_path(scope["path"]),
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            body=body,
            cookies=parse_cookies(headers.get("cookie")),
            client=tuple(client) if client else None,
        )

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | str = b"",
    ) -> Request:
        """Create a Request directly, e.g. for ``App.handle()`` or tests.

        A query string in *path* is split off into ``query``.
        """
        path, _, query_string = path.partition("?")
        header_map = Headers.from_mapping(headers or {})
        return cls(
            method=method.upper(),
            path=normalize_path(path),
            headers=header_map,
            query=QueryParams(query_string),
            body=body.encode("utf-8") if isinstance(body, str) else body,
            cookies=parse_cookies(header_map.get("cookie")),
        )
