"""Request-scoped context via ContextVar.

Provides:
- ``request_var``: The current ``Request`` for this task/thread.
- ``response_var``: The ``Response`` being written for that request.
- ``db_var``: The ``Database`` bound by the app kernel.
- ``config_var``: The ``AppConfig`` of the app serving the request.
- ``g``: A mutable namespace scoped to the current request.

The router sets the request and response around each dispatch; the app
kernel binds the database. Outside a dispatch, the getters raise
``LookupError``.

Thread safety:
    ``ContextVar`` is task-local under asyncio. ``anyio.to_thread`` copies
    the caller's context into the worker thread, so handlers running there
    see the same values. No locks needed.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from wali.config import AppConfig
    from wali.data.database import Database
    from wali.http.request import Request
    from wali.http.response import Response

# -- Request context --

request_var: ContextVar[Request] = ContextVar("wali_request")
"""The current request. Set by the router for the length of a dispatch."""

response_var: ContextVar[Response] = ContextVar("wali_response")
"""The response sink for the current request."""

db_var: ContextVar[Database] = ContextVar("wali_db")
"""The database handle. Bound by the app kernel before dispatch."""

config_var: ContextVar[AppConfig] = ContextVar("wali_config")
"""The serving app's configuration. Bound by the app kernel."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()


def get_response() -> Response:
    """Return the response for the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return response_var.get()


def get_db() -> Database:
    """Return the database bound to the current context.

    Raises ``LookupError`` when no database was configured.
    """
    try:
        return db_var.get()
    except LookupError:
        msg = "No database is bound to the current context; pass db= to App()"
        raise LookupError(msg) from None


def get_config() -> AppConfig:
    """Return the bound app configuration, or the defaults outside an app."""
    try:
        return config_var.get()
    except LookupError:
        from wali.config import AppConfig

        return AppConfig()


@contextmanager
def bind(request: Request, response: Response) -> Iterator[None]:
    """Set the request and response for the enclosed block, then restore."""
    request_token = request_var.set(request)
    response_token = response_var.set(response)
    store_token = g._reset()
    try:
        yield
    finally:
        g._restore(store_token)
        response_var.reset(response_token)
        request_var.reset(request_token)


# -- Request-scoped namespace --


class _RequestGlobals:
    """A mutable namespace scoped to the current request.

    Stores arbitrary attributes via a per-request dict held in a
    ContextVar; ``bind()`` starts every dispatch with an empty one.

    Usage::

        from wali.context import g

        # In a before-hook
        g.user = current_user

        # In a handler
        name = g.user.name
    """

    __slots__ = ("_store",)

    def __init__(self) -> None:
        object.__setattr__(self, "_store", ContextVar("wali_g", default=None))

    def _get_dict(self) -> dict[str, Any]:
        store: ContextVar[dict[str, Any] | None] = object.__getattribute__(self, "_store")
        d = store.get()
        if d is None:
            d = {}
            store.set(d)
        return d

    def _reset(self) -> Any:
        store: ContextVar[dict[str, Any] | None] = object.__getattribute__(self, "_store")
        return store.set({})

    def _restore(self, token: Any) -> None:
        store: ContextVar[dict[str, Any] | None] = object.__getattribute__(self, "_store")
        store.reset(token)

    def __getattr__(self, name: str) -> Any:
        d = self._get_dict()
        try:
            return d[name]
        except KeyError:
            msg = f"'g' has no attribute {name!r} in the current request scope"
            raise AttributeError(msg) from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._get_dict()[name] = value

    def __delattr__(self, name: str) -> None:
        d = self._get_dict()
        try:
            del d[name]
        except KeyError:
            msg = f"'g' has no attribute {name!r} in the current request scope"
            raise AttributeError(msg) from None

    def __contains__(self, name: str) -> bool:
        return name in self._get_dict()

    def get(self, name: str, default: Any = None) -> Any:
        """Get an attribute with a default value."""
        return self._get_dict().get(name, default)

    def __repr__(self) -> str:
        return f"<g {self._get_dict()!r}>"


g = _RequestGlobals()
"""Request-scoped namespace. Stores arbitrary per-request data."""
