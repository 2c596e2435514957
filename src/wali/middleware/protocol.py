"""Middleware protocol.

A middleware is any object with this shape::

    class RequireToken:
        def before(self, params: tuple[str, ...]) -> bool:
            if get_request().header("authorization") is None:
                get_response().set_status(401).text("Unauthorized")
                return False
            return True

        def after(self) -> None:
            pass

No base class required. Routes and the router reference middleware by
class, zero-argument factory, or registered name; a fresh instance is
built for every dispatch, so instances may keep per-request state.

The current request and response are reachable through
``wali.context.get_request()`` / ``get_response()``.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Middleware(Protocol):
    """Protocol for wali middleware.

    ``before`` returning ``False`` stops the dispatch: later middleware,
    the handler and every after-hook are skipped, and the response is sent
    as the hook left it.
    """

    def before(self, params: tuple[str, ...]) -> bool: ...

    def after(self) -> None: ...


class BaseMiddleware:
    """Convenience base: proceeds on ``before`` and does nothing ``after``.

    Subclass and override only the hook you need.
    """

    def before(self, params: tuple[str, ...]) -> bool:  # noqa: ARG002
        return True

    def after(self) -> None:
        return None
