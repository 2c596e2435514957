"""Before/after middleware execution.

Every hook runs strictly in list order on the calling thread. Instances
are created per call and never reused across requests.
"""

import logging
from collections.abc import Sequence

from wali.errors import HandlerResolutionError
from wali.middleware.protocol import Middleware
from wali.routing.registry import Registry, UnknownName
from wali.routing.route import MiddlewareRef

logger = logging.getLogger("wali.routing")


class MiddlewarePipeline:
    """Runs before-hooks with short-circuit and after-hooks in order.

    Usage::

        pipeline = MiddlewarePipeline(registry)
        if pipeline.run_before([Auth, "audit"], ("42",)):
            ...  # call the handler
            pipeline.run_after(["audit"])
    """

    __slots__ = ("registry",)

    def __init__(self, registry: Registry[Middleware] | None = None) -> None:
        self.registry: Registry[Middleware] = registry or Registry("middleware")

    def instantiate(self, ref: MiddlewareRef) -> Middleware:
        """Build a fresh middleware instance from a class, factory, or name."""
        if isinstance(ref, str):
            try:
                factory = self.registry.resolve(ref)
            except UnknownName as exc:
                raise HandlerResolutionError(str(exc)) from exc
        else:
            factory = ref
        instance = factory()
        if not callable(getattr(instance, "before", None)) or not callable(
            getattr(instance, "after", None)
        ):
            msg = f"Middleware {_label(ref)} must define before(params) and after()"
            raise HandlerResolutionError(msg)
        return instance

    def run_before(self, refs: Sequence[MiddlewareRef], params: tuple[str, ...]) -> bool:
        """Run ``before(params)`` on each middleware until one returns False."""
        for ref in refs:
            if self.instantiate(ref).before(params) is False:
                logger.debug("Middleware %s vetoed the request", _label(ref))
                return False
        return True

    def run_after(self, refs: Sequence[MiddlewareRef]) -> None:
        """Run ``after()`` on each middleware. A raising hook stops the rest."""
        for ref in refs:
            self.instantiate(ref).after()


def _label(ref: MiddlewareRef) -> str:
    if isinstance(ref, str):
        return repr(ref)
    return getattr(ref, "__qualname__", repr(ref))
