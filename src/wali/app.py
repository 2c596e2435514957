"""Wali application kernel.

Wraps a ``Router`` as an ASGI 3.0 application: lifespan handling
(freeze, database connect/close, startup/shutdown hooks) and per-request
dispatch in a worker thread.
"""

import logging
from collections.abc import Callable
from typing import Any

import anyio.to_thread

from wali._internal.asgi import Receive, Scope, Send
from wali._internal.invoke import invoke
from wali.config import AppConfig
from wali.context import db_var
from wali.data.database import Database
from wali.http.request import Request
from wali.http.response import SentResponse
from wali.routing.router import Router
from wali.server.handler import dispatch_sync, handle_request

logger = logging.getLogger("wali.server")

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class App:
    """The wali application.

    Mutable during setup (register hooks on the router and here).
    Frozen at the first request or at lifespan startup, whichever comes
    first.

    Usage::

        router = Router()
        router.get("/", lambda: {"hello": "world"})

        app = App(router, AppConfig.from_env(), db="sqlite:///app.db")

        @app.on_startup
        def schema() -> None:
            get_db().execute_script(SCHEMA)

    Serve ``app`` with any ASGI server, or call ``app.handle(request)``
    directly.
    """

    __slots__ = ("_db", "_shutdown_hooks", "_startup_hooks", "config", "router")

    def __init__(
        self,
        router: Router | None = None,
        config: AppConfig | None = None,
        *,
        db: Database | str | None = None,
    ) -> None:
        self.router = router if router is not None else Router()
        self.config = config or AppConfig()
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []

        # Database: accepts a Database instance or connection URL string.
        if isinstance(db, str):
            self._db: Database | None = Database(db, debug=self.config.debug)
        else:
            self._db = db

        logging.getLogger("wali").setLevel(
            _LOG_LEVELS.get(self.config.log_level.lower(), logging.INFO)
        )

    @property
    def db(self) -> Database | None:
        return self._db

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a startup hook (sync or async). Runs after the database connects."""
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a shutdown hook (sync or async). Runs before the database closes."""
        self._shutdown_hooks.append(func)
        return func

    async def startup(self) -> None:
        """Freeze the router, connect the database, run startup hooks."""
        self.router.freeze()
        token = db_var.set(self._db) if self._db is not None else None
        try:
            if self._db is not None:
                await anyio.to_thread.run_sync(self._db.connect)
            for hook in self._startup_hooks:
                await invoke(hook)
        finally:
            if token is not None:
                db_var.reset(token)
        logger.info("Started with %d routes", len(self.router.table))

    async def shutdown(self) -> None:
        """Run shutdown hooks, then close the database."""
        token = db_var.set(self._db) if self._db is not None else None
        try:
            for hook in self._shutdown_hooks:
                await invoke(hook)
        finally:
            if token is not None:
                db_var.reset(token)
            if self._db is not None:
                self._db.close()

    # -- Direct dispatch --

    def handle(self, request: Request) -> SentResponse:
        """Run one request synchronously and return what was sent.

        No ASGI involved; useful from scripts, workers and tests.
        """
        return dispatch_sync(self.router, request, config=self.config, db=self._db)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles the lifespan scope directly, then delegates HTTP scopes
        to the request handler pipeline. Other scope types are ignored.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self.router.freeze()

        await handle_request(
            scope,
            receive,
            send,
            router=self.router,
            config=self.config,
            db=self._db,
        )

    async def _handle_lifespan(
        self, scope: Scope, receive: Receive, send: Send  # noqa: ARG002
    ) -> None:
        """Run the ASGI lifespan protocol.

        Runs startup/shutdown and signals completion back to the server.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                try:
                    await self.shutdown()
                except Exception as exc:
                    logger.exception("Shutdown failed")
                    await send({"type": "lifespan.shutdown.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.shutdown.complete"})
                return
