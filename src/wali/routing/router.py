"""Router: route registration and request dispatch.

Routes are registered during setup and frozen before the first dispatch.
``dispatch`` resolves method and path to one route, runs the before-hooks,
calls the handler, normalizes its return value, runs the after-hooks, and
sends the response exactly once on every exit path.
"""

import dataclasses
import logging
import threading
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from wali import context
from wali.errors import HandlerResolutionError, HTTPError
from wali.errors import MethodNotAllowed as MethodNotAllowedError
from wali.errors import NotFound as NotFoundError
from wali.http.request import Request
from wali.http.response import JSON_TYPE, Response, encode_json
from wali.middleware.pipeline import MiddlewarePipeline
from wali.middleware.protocol import Middleware
from wali.routing.outcome import (
    DispatchOutcome,
    Handled,
    InternalError,
    MethodNotAllowed,
    NotFound,
    ShortCircuited,
)
from wali.routing.pattern import normalize_path
from wali.routing.registry import Registry, UnknownName
from wali.routing.route import (
    ControllerHandler,
    FunctionHandler,
    HandlerRef,
    MiddlewareRef,
    Route,
    RouteMatch,
    to_handler_ref,
)
from wali.routing.table import RouteTable
from wali.server.errors import write_http_error, write_internal_error

logger = logging.getLogger("wali.routing")

ANY_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


def apply_result(response: Response, result: Any) -> None:
    """Write a handler's return value into *response*.

    - ``Response``: taken over as-is.
    - mapping, list, tuple, or dataclass instance: JSON body.
    - ``str`` / ``bytes``: raw body, content type untouched.
    - anything else (including ``None``): nothing.
    """
    if result is None:
        return
    if isinstance(result, Response):
        if result is not response:
            response.adopt(result)
        return
    if isinstance(result, Mapping | list | tuple) or (
        dataclasses.is_dataclass(result) and not isinstance(result, type)
    ):
        response.set_header("Content-Type", JSON_TYPE).set_body(encode_json(result))
        return
    if isinstance(result, str | bytes):
        response.set_body(result)
        return
    logger.debug("Ignoring handler return value of type %s", type(result).__name__)


class Router:
    """Route registration and dispatch.

    Usage::

        router = Router()
        router.get("/", home)
        router.get("/users/{id}", (UserController, "show"), before=[RequireToken])
        router.post("/users", "UserController@store")
        router.before(CORSMiddleware)

        outcome = router.dispatch(request, response)

    Controllers and middleware referenced by name are looked up in
    ``router.controllers`` and ``router.middleware`` at dispatch time.
    """

    __slots__ = (
        "_after",
        "_before",
        "_freeze_lock",
        "_frozen",
        "controllers",
        "middleware",
        "pipeline",
        "table",
    )

    def __init__(self) -> None:
        self.table = RouteTable()
        self.controllers: Registry[Any] = Registry("controller")
        self.middleware: Registry[Middleware] = Registry("middleware")
        self.pipeline = MiddlewarePipeline(self.middleware)
        self._before: list[MiddlewareRef] = []
        self._after: list[MiddlewareRef] = []
        self._frozen = False
        self._freeze_lock = threading.Lock()

    # -- Registration --

    def add(
        self,
        method: str,
        template: str,
        handler: Any,
        *,
        before: Sequence[MiddlewareRef] = (),
        after: Sequence[MiddlewareRef] = (),
    ) -> Route:
        """Register *handler* for *method* and *template*.

        *handler* may be a callable, a ``(controller, "method")`` pair, a
        ``"Controller@method"`` string, or a ``HandlerRef``.
        """
        return self.table.register(method, template, to_handler_ref(handler), before, after)

    def get(self, template: str, handler: Any, **hooks: Sequence[MiddlewareRef]) -> Route:
        return self.add("GET", template, handler, **hooks)

    def post(self, template: str, handler: Any, **hooks: Sequence[MiddlewareRef]) -> Route:
        return self.add("POST", template, handler, **hooks)

    def put(self, template: str, handler: Any, **hooks: Sequence[MiddlewareRef]) -> Route:
        return self.add("PUT", template, handler, **hooks)

    def patch(self, template: str, handler: Any, **hooks: Sequence[MiddlewareRef]) -> Route:
        return self.add("PATCH", template, handler, **hooks)

    def delete(self, template: str, handler: Any, **hooks: Sequence[MiddlewareRef]) -> Route:
        return self.add("DELETE", template, handler, **hooks)

    def options(self, template: str, handler: Any, **hooks: Sequence[MiddlewareRef]) -> Route:
        return self.add("OPTIONS", template, handler, **hooks)

    def match(
        self,
        methods: Iterable[str],
        template: str,
        handler: Any,
        **hooks: Sequence[MiddlewareRef],
    ) -> list[Route]:
        """Register the same handler under several methods."""
        return [self.add(method, template, handler, **hooks) for method in methods]

    def any(self, template: str, handler: Any, **hooks: Sequence[MiddlewareRef]) -> list[Route]:
        """Register under GET, POST, PUT, PATCH, DELETE and OPTIONS."""
        return self.match(ANY_METHODS, template, handler, **hooks)

    def route(
        self,
        template: str,
        *,
        methods: Iterable[str] = ("GET",),
        before: Sequence[MiddlewareRef] = (),
        after: Sequence[MiddlewareRef] = (),
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a function handler via decorator.

        ::

            @router.route("/users/{id}", methods=["GET", "HEAD"])
            def show_user(user_id):
                ...
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            for method in methods:
                self.add(method, template, func, before=before, after=after)
            return func

        return decorator

    def before(self, ref: MiddlewareRef) -> MiddlewareRef:
        """Add a global before-hook; runs ahead of every route's own hooks."""
        self._check_not_frozen()
        self._before.append(ref)
        return ref

    def after(self, ref: MiddlewareRef) -> MiddlewareRef:
        """Add a global after-hook; runs once every route's own hooks are done."""
        self._check_not_frozen()
        self._after.append(ref)
        return ref

    # -- Freezing --

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Freeze routes and registries. Thread-safe with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self.table.freeze()
            self.controllers.freeze()
            self.middleware.freeze()
            self._frozen = True
            logger.debug("Router frozen with %d routes", len(self.table))

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot add middleware after the router is frozen."
            raise RuntimeError(msg)

    # -- Dispatch --

    def dispatch(
        self, request: Request, response: Response, *, debug: bool = False
    ) -> DispatchOutcome:
        """Resolve *request* to one route and write the result into *response*.

        The response is sent exactly once before this returns, whatever
        the outcome. ``debug`` puts the traceback into 500 bodies.
        """
        self.freeze()
        path = normalize_path(request.path)
        match = self.table.first_match(request.method, path)
        if match is not None:
            request = dataclasses.replace(request, path=path, route_params=match.params)

        with context.bind(request, response), response.sending():
            return self._run(request, response, match, debug)

    def _run(
        self,
        request: Request,
        response: Response,
        match: RouteMatch | None,
        debug: bool,
    ) -> DispatchOutcome:
        if match is None:
            allowed = self.table.methods_matching_path(request.path)
            if allowed:
                write_http_error(response, MethodNotAllowedError(allowed), request)
                return MethodNotAllowed(allowed)
            write_http_error(response, NotFoundError(), request)
            return NotFound()

        route = match.route
        try:
            if not self.pipeline.run_before((*self._before, *route.before), match.params):
                if not response.touched:
                    logger.warning(
                        "Before-hook vetoed %s %s without writing a response",
                        request.method,
                        request.path,
                    )
                return ShortCircuited()

            apply_result(response, self._call(route.handler, match.params))
            self.pipeline.run_after((*route.after, *self._after))
        except HandlerResolutionError as exc:
            logger.error("%s %s: %s", request.method, request.path, exc.detail)
            write_http_error(response, exc, request)
            return InternalError(exc)
        except HTTPError as exc:
            write_http_error(response, exc, request)
            return Handled(response)
        except Exception as exc:
            write_internal_error(response, exc, request, debug=debug)
            return InternalError(exc)
        return Handled(response)

    def _call(self, handler: HandlerRef, params: tuple[str, ...]) -> Any:
        if isinstance(handler, FunctionHandler):
            return handler.func(*params)
        return self._resolve_method(handler)(*params)

    def _resolve_method(self, handler: ControllerHandler) -> Callable[..., Any]:
        """Build a fresh controller and return the bound action method."""
        factory = handler.controller
        if isinstance(factory, str):
            try:
                factory = self.controllers.resolve(factory)
            except UnknownName as exc:
                raise HandlerResolutionError(str(exc)) from exc

        controller = factory()
        method = getattr(controller, handler.method, None)
        if not callable(method):
            name = getattr(factory, "__name__", repr(factory))
            msg = f"Method {handler.method!r} not found on {name}"
            raise HandlerResolutionError(msg)
        return method
