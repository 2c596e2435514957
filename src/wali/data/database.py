"""Database access over stdlib ``sqlite3``.

SQL in, dicts out. Not an ORM.

Connection URL format::

    sqlite:///path/to/db.sqlite    # SQLite file
    sqlite:///:memory:             # In-memory SQLite

Handlers run in worker threads, so every method here is synchronous. One
connection is shared by the whole app and serialized with a re-entrant
lock; ``transaction()`` holds that lock for the whole block.

Free-threading safety:
    - ``check_same_thread=False``: calls arrive from anyio's thread pool
    - ``autocommit=True``: single statements commit immediately;
      ``transaction()`` flips to manual mode for its block
    - Transaction membership is tracked per context (ContextVar)
"""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
import time
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, overload

from wali.data.errors import ConnectionError, DataError, DriverNotInstalledError, QueryError

logger = logging.getLogger("wali.data")

# ids of the Database instances with an open transaction() in this context
_open_transactions: ContextVar[frozenset[int]] = ContextVar(
    "wali_db_transactions", default=frozenset()
)

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """Database connection configuration.

    Parsed from a URL string or built from ``DB_*`` environment variables.
    ``debug`` controls whether connection errors carry driver detail.
    """

    url: str
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> DatabaseConfig:
        """Build a config from ``DB_*`` environment variables.

        Recognised keys: ``DB_DRIVER`` (default ``sqlite``), ``DB_NAME``
        (the database file for SQLite, default ``:memory:``), ``DB_HOST``,
        ``DB_USER``, ``DB_PASS``, ``DB_CHARSET``. ``APP_DEBUG`` sets
        ``debug``.
        """
        env = os.environ if environ is None else environ
        driver = env.get("DB_DRIVER", "sqlite").lower()
        name = env.get("DB_NAME", "")
        debug = env.get("APP_DEBUG", "").lower() in _TRUTHY

        if driver == "sqlite":
            return cls(url=f"sqlite:///{name or ':memory:'}", debug=debug)

        host = env.get("DB_HOST", "127.0.0.1")
        user = env.get("DB_USER", "")
        password = env.get("DB_PASS", "")
        charset = env.get("DB_CHARSET", "utf8mb4")
        credentials = f"{user}:{password}@" if user else ""
        url = f"{driver}://{credentials}{host}/{name}?charset={charset}"
        return cls(url=url, debug=debug)


class Database:
    """Synchronous database access.

    Usage::

        db = Database("sqlite:///app.db")

        # Fetch all
        users = db.fetch("SELECT * FROM users WHERE active = ?", True)

        # Fetch one
        user = db.fetch_one("SELECT * FROM users WHERE id = ?", 42)

        # Execute (UPDATE/DELETE), returns rows affected
        db.execute("UPDATE users SET active = ? WHERE id = ?", False, 42)

        # Insert, returns the new row id
        user_id = db.insert("INSERT INTO users (name) VALUES (?)", "Alice")

        # Raw scalar
        count = db.fetch_val("SELECT COUNT(*) FROM users")

        # Transaction (atomic multi-statement)
        with db.transaction():
            db.execute("INSERT INTO users ...", name, email)
            db.execute("INSERT INTO profiles ...", user_id)
    """

    __slots__ = ("_config", "_conn", "_driver", "_lock")

    def __init__(self, url: str, /, *, debug: bool = False) -> None:
        self._config = DatabaseConfig(url=url, debug=debug)
        self._driver = _detect_driver(url)
        self._lock = threading.RLock()
        self._conn: sqlite3.Connection | None = None

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> Database:
        return cls(config.url, debug=config.debug)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Database:
        """Shortcut for ``Database.from_config(DatabaseConfig.from_env())``."""
        return cls.from_config(DatabaseConfig.from_env(environ))

    @property
    def url(self) -> str:
        return self._config.url

    @property
    def connected(self) -> bool:
        return self._conn is not None

    # -- Lifecycle --

    def connect(self) -> None:
        """Open the connection.

        Called automatically on first query. Call explicitly if you want
        to fail fast at startup.
        """
        if self._conn is not None:
            return
        with self._lock:
            if self._conn is not None:
                return
            self._conn = _connect_sqlite(self._config)
            logger.debug("Connected to %s", self._config.url)

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
            logger.debug("Closed %s", self._config.url)

    def __enter__(self) -> Database:
        self.connect()
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    # -- Connection management --

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Yield the connection with exclusive access.

        Inside a ``transaction()`` block the lock is already held by this
        context (RLock), so re-acquiring it is free.
        """
        self.connect()
        with self._lock:
            assert self._conn is not None
            yield self._conn

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Execute multiple statements atomically.

        Commits on clean exit, rolls back on exception. Nesting is
        transparent: an inner ``transaction()`` joins the outer one.

        Usage::

            with db.transaction():
                db.execute("INSERT INTO users ...", name, email)
                db.execute("INSERT INTO profiles ...", user_id)
                # commits here

            with db.transaction():
                db.execute("INSERT INTO users ...", name, email)
                raise ValueError("oops")
                # rolled back
        """
        open_ids = _open_transactions.get()
        if id(self) in open_ids:
            yield
            return

        with self._connection() as conn:
            token = _open_transactions.set(open_ids | {id(self)})
            try:
                conn.autocommit = False
                yield
                conn.commit()
            except BaseException:
                conn.rollback()
                raise
            finally:
                conn.autocommit = True
                _open_transactions.reset(token)

    # -- Query logging --

    def _log_query(self, sql: str, params: Sequence[Any], elapsed: float) -> None:
        if params:
            logger.debug("%6.1fms  %s  params=%r", elapsed * 1000, sql, tuple(params))
        else:
            logger.debug("%6.1fms  %s", elapsed * 1000, sql)

    @contextmanager
    def _run(self, sql: str, params: Sequence[Any]) -> Iterator[sqlite3.Connection]:
        """Connection access with timing, logging, and ``QueryError`` wrapping."""
        t0 = time.perf_counter()
        with self._connection() as conn:
            try:
                yield conn
            except sqlite3.Error as exc:
                raise QueryError(str(exc), sql) from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)

    # -- Public query API --

    def fetch(self, sql: str, /, *params: Any) -> list[dict[str, Any]]:
        """Execute a query and return all rows as dicts.

        Usage::

            users = db.fetch("SELECT * FROM users WHERE active = ?", True)
        """
        with self._run(sql, params) as conn:
            return [dict(row) for row in conn.execute(sql, params).fetchall()]

    def fetch_one(self, sql: str, /, *params: Any) -> dict[str, Any] | None:
        """Execute a query and return the first row, or ``None``."""
        with self._run(sql, params) as conn:
            row = conn.execute(sql, params).fetchone()
            return dict(row) if row is not None else None

    @overload
    def fetch_val(self, sql: str, /, *params: Any) -> Any: ...
    @overload
    def fetch_val[T](self, sql: str, /, *params: Any, as_type: type[T]) -> T | None: ...

    def fetch_val(self, sql: str, /, *params: Any, as_type: type | None = None) -> Any:
        """Execute a query and return the first column of the first row.

        Useful for COUNT, SUM, MAX, etc.

        Usage::

            count = db.fetch_val("SELECT COUNT(*) FROM users", as_type=int)
        """
        with self._run(sql, params) as conn:
            row = conn.execute(sql, params).fetchone()
            if row is None:
                return None
            value = row[0]
            if as_type is not None and value is not None:
                return as_type(value)
            return value

    def execute(self, sql: str, /, *params: Any) -> int:
        """Execute a statement (INSERT/UPDATE/DELETE) and return rows affected."""
        with self._run(sql, params) as conn:
            return conn.execute(sql, params).rowcount

    def insert(self, sql: str, /, *params: Any) -> int:
        """Execute an INSERT and return the new row's id."""
        with self._run(sql, params) as conn:
            return conn.execute(sql, params).lastrowid or 0

    def execute_many(self, sql: str, params_seq: Sequence[Sequence[Any]], /) -> int:
        """Execute a statement for each parameter set; returns total rows affected.

        Usage::

            db.execute_many(
                "INSERT INTO users (name, email) VALUES (?, ?)",
                [("Alice", "a@b.com"), ("Bob", "b@b.com")],
            )
        """
        with self._run(sql, ()) as conn:
            return conn.executemany(sql, params_seq).rowcount

    def execute_script(self, sql: str, /) -> None:
        """Execute multiple SQL statements at once (schema setup, seeds).

        ``executescript`` commits any pending transaction before running.
        """
        with self._run(sql, ()) as conn:
            conn.executescript(sql)

    def __repr__(self) -> str:
        state = "connected" if self._conn is not None else "closed"
        return f"<Database {self._config.url} {state}>"


# =============================================================================
# Driver detection and connection
# =============================================================================


def _detect_driver(url: str) -> str:
    """Detect the database driver from the URL scheme."""
    if url.startswith("sqlite"):
        return "sqlite"
    scheme, sep, _ = url.partition("://")
    if sep and scheme:
        raise DriverNotInstalledError(scheme)
    msg = f"Unsupported database URL: {url!r}. Supported: sqlite:///path"
    raise DataError(msg)


def _parse_sqlite_path(url: str) -> str:
    """Extract the file path from a sqlite:// URL."""
    # sqlite:///path/to/db  ->  path/to/db
    # sqlite:///:memory:    ->  :memory:
    prefix = "sqlite:///"
    if url.startswith(prefix):
        return url[len(prefix) :]
    prefix_short = "sqlite://"
    if url.startswith(prefix_short):
        return url[len(prefix_short) :]
    msg = f"Invalid SQLite URL: {url!r}"
    raise DataError(msg)


def _connect_sqlite(config: DatabaseConfig) -> sqlite3.Connection:
    path = _parse_sqlite_path(config.url)
    try:
        conn = sqlite3.connect(path, autocommit=True, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        # WAL for better concurrent read performance on file databases
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
    except sqlite3.Error as exc:
        logger.error("Database connection to %s failed: %s", config.url, exc)
        detail = str(exc) if config.debug else "Database connection failed"
        raise ConnectionError(detail) from exc
    return conn
