"""Route, handler references, and RouteMatch frozen dataclasses."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from wali.errors import ConfigurationError
from wali.routing.pattern import Pattern, compile_template

# A middleware reference: a class, a zero-argument factory, or a registry name
type MiddlewareRef = type | Callable[[], Any] | str


@dataclass(frozen=True, slots=True)
class FunctionHandler:
    """A plain callable, invoked with the captured path params."""

    func: Callable[..., Any]

    @property
    def label(self) -> str:
        return getattr(self.func, "__qualname__", repr(self.func))


@dataclass(frozen=True, slots=True)
class ControllerHandler:
    """A controller/method pair, resolved when the route is dispatched.

    ``controller`` is a class or a name registered in the controller
    registry. Nothing is looked up at registration time, so controllers
    may be registered after their routes.
    """

    controller: type | str
    method: str

    @property
    def label(self) -> str:
        name = self.controller if isinstance(self.controller, str) else self.controller.__name__
        return f"{name}@{self.method}"


type HandlerRef = FunctionHandler | ControllerHandler


def to_handler_ref(action: Any) -> HandlerRef:
    """Normalize the accepted handler spellings into a HandlerRef.

    Accepted forms::

        show_user                    # callable
        (UserController, "show")     # class + method name
        ("users", "show")            # registry name + method name
        "UserController@show"        # registry name + method name
    """
    if isinstance(action, FunctionHandler | ControllerHandler):
        return action
    if isinstance(action, str):
        controller, sep, method = action.partition("@")
        if not sep or not controller or not method:
            msg = f"Handler string {action!r} must look like 'Controller@method'."
            raise ConfigurationError(msg)
        return ControllerHandler(controller, method)
    if isinstance(action, tuple | list):
        if len(action) != 2 or not isinstance(action[1], str):
            msg = f"Controller handler must be a (controller, 'method') pair, got {action!r}."
            raise ConfigurationError(msg)
        controller, method = action
        if not isinstance(controller, type | str):
            msg = f"Controller must be a class or a registered name, got {controller!r}."
            raise ConfigurationError(msg)
        return ControllerHandler(controller, method)
    if callable(action):
        return FunctionHandler(action)
    msg = f"Unsupported route handler: {action!r}"
    raise ConfigurationError(msg)


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Created by ``RouteTable.register()``; the template is compiled once,
    at creation.
    """

    method: str
    template: str
    handler: HandlerRef
    before: tuple[MiddlewareRef, ...] = ()
    after: tuple[MiddlewareRef, ...] = ()
    pattern: Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pattern", compile_template(self.template))
        object.__setattr__(self, "template", self.pattern.template)
        object.__setattr__(self, "method", self.method.upper())


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route lookup."""

    route: Route
    params: tuple[str, ...]
