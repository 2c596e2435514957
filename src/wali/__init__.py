"""Wali: a micro web-application skeleton.

Routing with ``{name}`` placeholders, before/after middleware, controllers,
a fluent SQL builder, and an ASGI kernel.

Basic usage::

    from wali import App, Router

    router = Router()

    @router.route("/")
    def index():
        return {"hello": "world"}

    app = App(router)  # serve with any ASGI server

Controllers and models::

    from wali import Controller
    from wali.data import Model

    class Users(Model):
        table = "users"

    class UserController(Controller):
        def show(self, user_id):
            user = Users().find(user_id)
            return self.success(user) if user else self.error("Not found", 404)

    router.get("/users/{id}", (UserController, "show"))
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Controller",
    "HTTPError",
    "HandlerResolutionError",
    "MethodNotAllowed",
    "Middleware",
    "NotFound",
    "Request",
    "Response",
    "Router",
    "WaliError",
    "abort",
    "g",
    "get_db",
    "get_request",
    "get_response",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wali`` fast while providing a clean top-level API.
    """
    if name == "App":
        from wali.app import App

        return App

    if name == "AppConfig":
        from wali.config import AppConfig

        return AppConfig

    if name == "Controller":
        from wali.controller import Controller

        return Controller

    if name == "Router":
        from wali.routing.router import Router

        return Router

    if name == "Request":
        from wali.http.request import Request

        return Request

    if name == "Response":
        from wali.http.response import Response

        return Response

    if name == "Middleware":
        from wali.middleware.protocol import Middleware

        return Middleware

    if name in ("g", "get_db", "get_request", "get_response"):
        from wali import context as _ctx

        return getattr(_ctx, name)

    if name in (
        "ConfigurationError",
        "HTTPError",
        "HandlerResolutionError",
        "MethodNotAllowed",
        "NotFound",
        "WaliError",
        "abort",
    ):
        from wali import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
