"""Route table: ordered, per-method route storage.

Routes are registered during setup and frozen before the first dispatch.
Registration order is match priority: the first route whose template
accepts the path wins, so a later duplicate is never reached.
"""

import logging
from collections.abc import Iterator, Sequence

from wali.routing.pattern import normalize_path
from wali.routing.route import HandlerRef, MiddlewareRef, Route, RouteMatch

logger = logging.getLogger("wali.routing")


class RouteTable:
    """Mapping of HTTP method to an ordered sequence of routes.

    Usage::

        table = RouteTable()
        table.register("GET", "/users/{id}", FunctionHandler(show_user))
        table.freeze()
        match = table.first_match("GET", "/users/42")
        match.params  # ("42",)
    """

    __slots__ = ("_frozen", "_routes")

    def __init__(self) -> None:
        self._routes: dict[str, list[Route]] = {}
        self._frozen = False

    def register(
        self,
        method: str,
        template: str,
        handler: HandlerRef,
        before: Sequence[MiddlewareRef] = (),
        after: Sequence[MiddlewareRef] = (),
    ) -> Route:
        """Append a route under *method*. Must be called before freeze()."""
        if self._frozen:
            msg = "Cannot add routes after the route table is frozen."
            raise RuntimeError(msg)

        route = Route(
            method=method,
            template=template,
            handler=handler,
            before=tuple(before),
            after=tuple(after),
        )
        bucket = self._routes.setdefault(route.method, [])
        if any(existing.template == route.template for existing in bucket):
            logger.debug(
                "Route %s %s is shadowed by an earlier registration", route.method, route.template
            )
        bucket.append(route)
        return route

    def freeze(self) -> None:
        """Freeze the table. No more routes can be added."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def routes_for(self, method: str) -> tuple[Route, ...]:
        """Routes registered under *method*, in priority order."""
        return tuple(self._routes.get(method.upper(), ()))

    @property
    def methods(self) -> tuple[str, ...]:
        """Every method with at least one route, in first-registration order."""
        return tuple(self._routes)

    def first_match(self, method: str, path: str) -> RouteMatch | None:
        """Return the first route under *method* that accepts *path*."""
        path = normalize_path(path)
        for route in self._routes.get(method.upper(), ()):
            result = route.pattern.match(path)
            if result.matched:
                return RouteMatch(route=route, params=result.params)
        return None

    def methods_matching_path(self, path: str) -> frozenset[str]:
        """Every method that has a route accepting *path*.

        Independent of the requested method; used for ``Allow`` reporting,
        never for picking the route to run.
        """
        path = normalize_path(path)
        return frozenset(
            method
            for method, routes in self._routes.items()
            if any(route.pattern.match(path).matched for route in routes)
        )

    def __iter__(self) -> Iterator[Route]:
        for routes in self._routes.values():
            yield from routes

    def __len__(self) -> int:
        return sum(len(routes) for routes in self._routes.values())
