"""Security headers middleware: X-Frame-Options, X-Content-Type-Options, Referrer-Policy.

Adds common security headers to HTML responses per HTML Living Standard
recommendations (clickjacking, MIME sniffing, referrer leakage).

Headers are applied only to text/html responses. JSON, plain text and
downloads are left alone.
"""

import functools
from collections.abc import Callable
from dataclasses import dataclass

from wali.context import get_response
from wali.http.response import Response


@dataclass(frozen=True, slots=True)
class SecurityHeadersConfig:
    """Configuration for security headers.

    All values are applied as-is. Use standard header values.
    """

    x_frame_options: str = "DENY"
    x_content_type_options: str = "nosniff"
    referrer_policy: str = "strict-origin-when-cross-origin"
    content_security_policy: str | None = (
        "default-src 'self'; base-uri 'self'; frame-ancestors 'none'; object-src 'none'"
    )
    strict_transport_security: str | None = None


def _is_html_response(response: Response) -> bool:
    """True if response is HTML and should receive security headers."""
    return (response.content_type or "").startswith("text/html")


def _add_headers(response: Response, config: SecurityHeadersConfig) -> None:
    (
        response.set_header("X-Frame-Options", config.x_frame_options)
        .set_header("X-Content-Type-Options", config.x_content_type_options)
        .set_header("Referrer-Policy", config.referrer_policy)
    )
    if config.content_security_policy:
        response.set_header("Content-Security-Policy", config.content_security_policy)
    if config.strict_transport_security:
        response.set_header("Strict-Transport-Security", config.strict_transport_security)


class SecurityHeadersMiddleware:
    """Add security headers to HTML responses.

    An after-hook, so it sees the content type the handler chose:
    - X-Frame-Options: prevents clickjacking
    - X-Content-Type-Options: prevents MIME sniffing
    - Referrer-Policy: controls referrer leakage

    Usage::

        from wali.middleware import SecurityHeadersMiddleware

        router.after(SecurityHeadersMiddleware)

    Or with custom config::

        router.after(SecurityHeadersMiddleware.configure(SecurityHeadersConfig(
            x_frame_options="SAMEORIGIN",
        )))
    """

    __slots__ = ("config",)

    def __init__(self, config: SecurityHeadersConfig | None = None) -> None:
        self.config = config or SecurityHeadersConfig()

    @classmethod
    def configure(cls, config: SecurityHeadersConfig) -> Callable[[], "SecurityHeadersMiddleware"]:
        """A zero-argument factory bound to *config*, usable as a middleware ref."""
        return functools.partial(cls, config)

    def before(self, params: tuple[str, ...]) -> bool:  # noqa: ARG002
        return True

    def after(self) -> None:
        response = get_response()
        if _is_html_response(response):
            _add_headers(response, self.config)
