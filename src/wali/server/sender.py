"""ASGI response sending: translates a flushed response to ASGI messages."""

import logging

from wali._internal.asgi import Send
from wali.http.response import SentResponse

logger = logging.getLogger("wali.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def raw_headers(sent: SentResponse, body: bytes) -> list[tuple[bytes, bytes]]:
    """Encode headers for ASGI and append an exact ``content-length``."""
    encoded: list[tuple[bytes, bytes]] = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in sent.headers
        if name.lower() != "content-length"
    ]
    encoded.append((b"content-length", str(len(body)).encode("latin-1")))
    return encoded


async def send_response(sent: SentResponse, send: Send) -> None:
    """Translate a flushed wali response into ASGI send() calls."""
    body = sent.body if _body_allowed(sent.status) else b""

    await send(
        {
            "type": "http.response.start",
            "status": sent.status,
            "headers": raw_headers(sent, body),
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )
