"""ASGI handler: translates ASGI scope/messages to wali types.

The only component that touches raw ASGI for HTTP. Reads the body, builds
a ``Request``, runs the synchronous router in a worker thread, and sends
the flushed response back through ASGI ``send()``.
"""

import functools
import logging
from contextvars import Token
from typing import Any

import anyio.to_thread

from wali._internal.asgi import Receive, Scope, Send
from wali.config import AppConfig
from wali.context import config_var, db_var
from wali.errors import HTTPError
from wali.http.request import Request
from wali.http.response import BufferedOutput, Response, SentResponse
from wali.routing.router import Router
from wali.server.errors import INTERNAL_ERROR_BODY, debug_body, write_http_error
from wali.server.sender import send_response

logger = logging.getLogger("wali.server")


class PayloadTooLarge(HTTPError):  # noqa: N818
    """413: the request body exceeds ``AppConfig.max_content_length``."""

    def __init__(self, limit: int) -> None:
        super().__init__(status=413, detail=f"Payload Too Large (limit {limit} bytes)")


async def read_body(receive: Receive, limit: int) -> bytes:
    """Read the full request body, refusing more than *limit* bytes."""
    chunks: list[bytes] = []
    size = 0
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        chunk = message.get("body", b"")
        if chunk:
            size += len(chunk)
            if size > limit:
                raise PayloadTooLarge(limit)
            chunks.append(chunk)
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


def dispatch_sync(
    router: Router,
    request: Request,
    *,
    config: AppConfig,
    db: Any = None,
) -> SentResponse:
    """Run one request through the router and return what it sent.

    Binds the app configuration and database for the duration. Errors
    that escape the router are logged and become a 500.
    """
    config_token: Token[AppConfig] = config_var.set(config)
    db_token: Token[Any] | None = db_var.set(db) if db is not None else None
    output = BufferedOutput()
    try:
        router.dispatch(request, Response(output=output), debug=config.debug)
    except Exception as exc:
        logger.exception("500 %s %s (escaped dispatch)", request.method, request.path)
        return internal_error_response(exc, debug=config.debug)
    finally:
        if db_token is not None:
            db_var.reset(db_token)
        config_var.reset(config_token)

    if output.sent is None:
        logger.error("%s %s finished without sending a response", request.method, request.path)
        return internal_error_response(None, debug=False)
    return output.sent


def internal_error_response(exc: BaseException | None, *, debug: bool) -> SentResponse:
    """A standalone 500, for failures outside the router's own handling."""
    response = Response(status=500)
    if debug and exc is not None:
        response.html(debug_body(exc))
    else:
        response.text(INTERNAL_ERROR_BODY)
    return response.snapshot()


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    config: AppConfig,
    db: Any = None,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    try:
        body = await read_body(receive, config.max_content_length)
    except PayloadTooLarge as exc:
        response = Response()
        write_http_error(response, exc, Request.from_asgi(scope))
        await send_response(response.snapshot(), send)
        return

    request = Request.from_asgi(scope, body)
    sent = await anyio.to_thread.run_sync(
        functools.partial(dispatch_sync, router, request, config=config, db=db)
    )
    try:
        # Headers are encoded before the first send(), so nothing has gone out yet.
        await send_response(sent, send)
    except UnicodeEncodeError as exc:
        logger.exception("500 %s %s (unencodable response header)", request.method, request.path)
        await send_response(internal_error_response(exc, debug=config.debug), send)
