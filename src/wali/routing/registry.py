"""Name → factory registries for controllers and middleware.

Routes may refer to a controller or middleware by a stable name instead of
the class itself. The name is looked up here at dispatch time, so the
registry can be filled in any order during setup; it is frozen together
with the route table.
"""

from collections.abc import Callable, Iterator
from typing import Any

from wali.errors import ConfigurationError


class UnknownName(LookupError):  # noqa: N818
    """Raised by ``Registry.resolve`` for a name that was never registered."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"{kind.capitalize()} {name!r} is not registered")
        self.kind = kind
        self.name = name


class Registry[T]:
    """A name → factory table.

    Factories are zero-argument callables; a class is its own factory.

    Usage::

        controllers = Registry[Controller]("controller")
        controllers.register("users", UserController)
        controllers.resolve("users")  # -> UserController
    """

    __slots__ = ("_factories", "_frozen", "kind")

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._factories: dict[str, Callable[[], T]] = {}
        self._frozen = False

    def register(self, name: str, factory: Callable[[], T]) -> None:
        """Bind *name* to *factory*. Rebinding a name is a configuration error."""
        if self._frozen:
            msg = f"Cannot register {self.kind} {name!r} after the registry is frozen."
            raise RuntimeError(msg)
        if not callable(factory):
            msg = f"{self.kind.capitalize()} {name!r} must be a class or callable, got {factory!r}."
            raise ConfigurationError(msg)
        if name in self._factories:
            msg = f"{self.kind.capitalize()} {name!r} is already registered."
            raise ConfigurationError(msg)
        self._factories[name] = factory

    def __call__(self, name: str | None = None) -> Callable[[Any], Any]:
        """Decorator form of :meth:`register`; defaults to the class name.

        ::

            @controllers()
            class UserController(Controller): ...
        """

        def decorator(factory: Any) -> Any:
            self.register(name or factory.__name__, factory)
            return factory

        return decorator

    def resolve(self, name: str) -> Callable[[], T]:
        """Return the factory for *name* or raise :class:`UnknownName`."""
        try:
            return self._factories[name]
        except KeyError:
            raise UnknownName(self.kind, name) from None

    def freeze(self) -> None:
        self._frozen = True

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __iter__(self) -> Iterator[str]:
        return iter(self._factories)

    def __len__(self) -> int:
        return len(self._factories)
