"""Model base class: table-bound CRUD over the query builder.

A model names its table and, optionally, a dataclass its rows map to::

    @dataclass(frozen=True, slots=True)
    class Todo:
        id: int
        text: str
        done: bool

    class Todos(Model):
        table = "todos"
        record = Todo

    todos = Todos(db)
    todos.insert({"text": "write docs", "done": False})
    todos.find(1)  # Todo(id=1, text='write docs', done=False)

Without ``record`` rows come back as dicts. Inside a request the database
may be omitted; the one bound by the app is used.
"""

from typing import Any, ClassVar

from wali.context import get_db
from wali.data._mapping import map_row, map_rows
from wali.data.builder import Builder
from wali.data.database import Database
from wali.errors import ConfigurationError


class Model:
    """Base class for table-bound models."""

    table: ClassVar[str] = ""
    primary_key: ClassVar[str] = "id"
    record: ClassVar[type | None] = None

    __slots__ = ("db",)

    def __init__(self, db: Database | None = None) -> None:
        if not self.table:
            msg = f"{type(self).__name__} must set the 'table' class attribute."
            raise ConfigurationError(msg)
        self.db = db if db is not None else get_db()

    def query(self) -> Builder:
        """A fresh builder for this model's table."""
        return Builder(self.db, self.table)

    def _row(self, row: dict[str, Any] | None) -> Any:
        if row is None or self.record is None:
            return row
        return map_row(self.record, row)

    def find_all(self) -> list[Any]:
        rows = self.query().get()
        if self.record is None:
            return rows
        return map_rows(self.record, rows)

    def find(self, id: int | str) -> Any:  # noqa: A002
        """The row whose primary key equals *id*, or ``None``."""
        return self._row(self.query().where(self.primary_key, id).first())

    def insert(self, data: dict[str, Any]) -> int:
        """Insert a row and return its id."""
        return self.query().insert(data)

    def update(self, id: int | str, data: dict[str, Any]) -> int:  # noqa: A002
        """Update the row with primary key *id*; returns rows affected."""
        return self.query().where(self.primary_key, id).update(data)

    def delete(self, id: int | str) -> int:  # noqa: A002
        """Delete the row with primary key *id*; returns rows affected."""
        return self.query().where(self.primary_key, id).delete()
