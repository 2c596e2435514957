"""Middleware: before/after hooks, Protocol-based, no inheritance required.

A middleware is any object with::

    def before(self, params: tuple[str, ...]) -> bool
    def after(self) -> None

Built-in middleware:
    CORSMiddleware -- Cross-Origin Resource Sharing (before-hook)
    SecurityHeadersMiddleware -- X-Frame-Options, nosniff, Referrer-Policy (after-hook)
"""

from wali.middleware.builtin import CORSConfig, CORSMiddleware
from wali.middleware.pipeline import MiddlewarePipeline
from wali.middleware.protocol import BaseMiddleware, Middleware
from wali.middleware.security_headers import (
    SecurityHeadersConfig,
    SecurityHeadersMiddleware,
)

__all__ = [
    "BaseMiddleware",
    "CORSConfig",
    "CORSMiddleware",
    "Middleware",
    "MiddlewarePipeline",
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
]
