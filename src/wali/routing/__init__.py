"""Routing: route templates, the per-method route table, and dispatch.

Routes are registered during setup and frozen before the first dispatch.
"""

__all__ = [
    "ControllerHandler",
    "FunctionHandler",
    "Registry",
    "Route",
    "RouteTable",
    "Router",
    "compile_template",
    "normalize_path",
]


def __getattr__(name: str) -> object:
    """Lazy imports; ``wali.http`` imports the pattern helpers from here."""
    if name == "Router":
        from wali.routing.router import Router

        return Router

    if name == "RouteTable":
        from wali.routing.table import RouteTable

        return RouteTable

    if name == "Registry":
        from wali.routing.registry import Registry

        return Registry

    if name in ("ControllerHandler", "FunctionHandler", "Route"):
        from wali.routing import route as _route

        return getattr(_route, name)

    if name in ("compile_template", "normalize_path"):
        from wali.routing import pattern as _pattern

        return getattr(_pattern, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
