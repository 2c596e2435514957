"""ASGI callable type aliases used by the kernel and the test client."""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

# Raw ASGI types (matching the ASGI 3.0 interface)
Scope: TypeAlias = MutableMapping[str, Any]
Message: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[Message]]
Send: TypeAlias = Callable[[Message], Awaitable[None]]
ASGIApp: TypeAlias = Callable[[Scope, Receive, Send], Awaitable[None]]
