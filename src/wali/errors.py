"""Wali exception hierarchy.

Shared across Router, App, controllers, and middleware so every module
raises and catches the same types.
"""

from dataclasses import dataclass
from typing import NoReturn


class WaliError(Exception):
    """Base for all wali-specific errors."""


class ConfigurationError(WaliError):
    """Raised when routes, registries, or app configuration are invalid.

    Typically raised while registering routes, before the first request.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(WaliError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, middleware, or handlers. The dispatcher catches
    these and writes ``status``, ``headers`` and ``detail`` to the response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched the request path under any method."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: the path matches, but only under other methods.

    Carries an ``Allow`` header listing the valid methods, sorted.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "Method Not Allowed") -> None:
        super().__init__(
            status=405,
            detail=detail,
            headers=(("Allow", ", ".join(sorted(allowed))),),
        )

    @property
    def allowed(self) -> frozenset[str]:
        """The methods listed in the ``Allow`` header."""
        value = dict(self.headers)["Allow"]
        return frozenset(m.strip() for m in value.split(",") if m.strip())


class HandlerResolutionError(HTTPError):
    """500: a declared controller or method could not be resolved.

    The detail names the missing identifier. It contains no secrets, so it
    is shown to the client even outside debug mode.
    """

    def __init__(self, detail: str) -> None:
        super().__init__(status=500, detail=detail)


def abort(status: int, detail: str = "", headers: tuple[tuple[str, str], ...] = ()) -> NoReturn:
    """Stop the current request with an HTTP error.

    Usage::

        def show(user_id):
            user = users.find(user_id)
            if user is None:
                abort(404, f"User {user_id} not found")
    """
    if status == 404:
        raise NotFound(detail or "Not Found")
    raise HTTPError(status=status, detail=detail, headers=headers)
