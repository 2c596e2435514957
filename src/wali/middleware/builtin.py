"""Built-in middleware: CORS.

A before-hook that answers preflight requests and adds CORS headers to
the response of every other cross-origin request.
"""

import functools
from collections.abc import Callable
from dataclasses import dataclass

from wali.context import get_request, get_response
from wali.http.response import Response


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS middleware configuration.

    All fields have secure defaults (nothing is allowed).
    Override what you need::

        CORSConfig(
            allow_origins=("https://example.com",),
            allow_methods=("GET", "POST"),
        )
    """

    allow_origins: tuple[str, ...] = ()
    allow_methods: tuple[str, ...] = ("GET", "HEAD", "OPTIONS")
    allow_headers: tuple[str, ...] = ()
    expose_headers: tuple[str, ...] = ()
    allow_credentials: bool = False
    max_age: int = 600  # 10 minutes


class CORSMiddleware:
    """Standards-compliant CORS middleware.

    Handles:
    - Preflight ``OPTIONS`` requests (204 with CORS headers, handler skipped)
    - Actual requests (CORS headers added before the handler runs)
    - Credential support (``Access-Control-Allow-Credentials``)
    - Wildcard origins (``"*"``) when credentials are disabled

    Preflight requests only reach the hook when an ``OPTIONS`` route
    matches the path, e.g. one registered with ``router.any()``.

    Usage::

        router.before(CORSMiddleware.configure(CORSConfig(
            allow_origins=("https://example.com",),
            allow_methods=("GET", "POST", "PUT"),
            allow_headers=("Content-Type", "Authorization"),
        )))
    """

    __slots__ = ("config",)

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()

    @classmethod
    def configure(cls, config: CORSConfig) -> Callable[[], "CORSMiddleware"]:
        """A zero-argument factory bound to *config*, usable as a middleware ref."""
        return functools.partial(cls, config)

    def _is_allowed_origin(self, origin: str) -> bool:
        """Check if the origin is in the allow list."""
        if "*" in self.config.allow_origins:
            return True
        return origin in self.config.allow_origins

    def _add_cors_headers(self, response: Response, origin: str) -> None:
        cfg = self.config

        # Origin header
        if "*" in cfg.allow_origins and not cfg.allow_credentials:
            response.set_header("Access-Control-Allow-Origin", "*")
        else:
            response.set_header("Access-Control-Allow-Origin", origin)
            response.set_header("Vary", "Origin")

        if cfg.allow_credentials:
            response.set_header("Access-Control-Allow-Credentials", "true")

        if cfg.expose_headers:
            response.set_header("Access-Control-Expose-Headers", ", ".join(cfg.expose_headers))

    def _preflight(self, response: Response, origin: str, request_method: str | None) -> None:
        cfg = self.config
        response.set_status(204).set_body(b"")
        self._add_cors_headers(response, origin)

        if request_method:
            response.set_header("Access-Control-Allow-Methods", ", ".join(cfg.allow_methods))

        if cfg.allow_headers:
            response.set_header("Access-Control-Allow-Headers", ", ".join(cfg.allow_headers))

        response.set_header("Access-Control-Max-Age", str(cfg.max_age))

    def before(self, params: tuple[str, ...]) -> bool:  # noqa: ARG002
        request = get_request()
        origin = request.header("origin")

        # No Origin header, or an origin we do not serve: not our business
        if origin is None or not self._is_allowed_origin(origin):
            return True

        response = get_response()
        if request.method == "OPTIONS":
            self._preflight(response, origin, request.header("access-control-request-method"))
            return False

        self._add_cors_headers(response, origin)
        return True

    def after(self) -> None:
        return None
