"""Database access for wali.

SQL in, dicts (or dataclasses) out. Not an ORM.

Basic usage::

    from wali.data import Builder, Database, Model

    db = Database("sqlite:///app.db")

    users = db.fetch("SELECT * FROM users WHERE active = ?", True)
    newest = Builder(db, "users").order_by("id", "DESC").first()

    class Users(Model):
        table = "users"

    Users(db).find(42)

SQLite ships with Python; no extra packages are needed.
"""

from wali.context import get_db
from wali.data.builder import Builder
from wali.data.database import Database, DatabaseConfig
from wali.data.errors import (
    ConnectionError,
    DataError,
    DriverNotInstalledError,
    QueryError,
)
from wali.data.model import Model

__all__ = [
    "Builder",
    "ConnectionError",
    "DataError",
    "Database",
    "DatabaseConfig",
    "DriverNotInstalledError",
    "Model",
    "QueryError",
    "get_db",
]
