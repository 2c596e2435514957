"""Error responses for wali requests.

Maps HTTPError exceptions and unexpected failures onto the request's
``Response`` sink, using sensible plain-text defaults.
"""

import html
import logging
import traceback

from wali.errors import HTTPError
from wali.http.request import Request
from wali.http.response import Response

logger = logging.getLogger("wali.server")

INTERNAL_ERROR_BODY = "Internal Server Error"


def write_http_error(response: Response, exc: HTTPError, request: Request) -> None:
    """Replace whatever was written so far with the error's status and detail."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    response.reset().set_status(exc.status)
    for name, value in exc.headers:
        response.set_header(name, value)
    response.text(exc.detail or f"Error {exc.status}")


def debug_body(exc: BaseException) -> str:
    """The traceback of *exc* as an escaped HTML ``<pre>`` block."""
    formatted = "".join(traceback.format_exception(exc))
    return f"<pre>{html.escape(formatted)}</pre>"


def write_internal_error(
    response: Response,
    exc: BaseException,
    request: Request,
    *,
    debug: bool,
) -> None:
    """Handle an unexpected exception as a 500."""
    logger.error(
        "500 %s %s", request.method, request.path, exc_info=(type(exc), exc, exc.__traceback__)
    )

    response.reset().set_status(500)
    if debug:
        response.html(debug_body(exc))
    else:
        response.text(INTERNAL_ERROR_BODY)
