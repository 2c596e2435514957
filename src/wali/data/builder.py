"""Immutable query builder for wali.data.

Accumulates SQL clauses through chaining methods, compiles to a SQL string
+ parameters tuple, and executes via the ``Database`` methods.

Each method returns a new frozen ``Builder``; the original is never
mutated, so a base query can be shared and refined per request.

Usage::

    from wali.data import Builder, Database

    db = Database("sqlite:///app.db")

    todos = (
        Builder(db, "todos")
        .where("done", False)
        .where_if(search, "text", f"%{search}%", "LIKE")
        .order_by("id", "DESC")
        .limit(20)
        .get()
    )

Transparency: ``.sql`` and ``.params`` show exactly what will run.
Table and column names are validated as identifiers; values are always
bound parameters.

Free-threading safety:
    - Frozen dataclass, immutable after creation
    - Tuple accumulators, no shared mutable state
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from wali.data.errors import QueryError

if TYPE_CHECKING:
    from wali.data.database import Database

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?")
_COLUMN = re.compile(
    r"(?:\*|[A-Za-z_][A-Za-z0-9_]*(?:\.(?:\*|[A-Za-z_][A-Za-z0-9_]*))?)"
    r"(?:\s+AS\s+[A-Za-z_][A-Za-z0-9_]*)?",
    re.IGNORECASE,
)
_OPERATORS = frozenset(
    {"=", "!=", "<>", "<", "<=", ">", ">=", "LIKE", "NOT LIKE", "IN", "NOT IN"}
)
_DIRECTIONS = ("ASC", "DESC")


def quote_identifier(name: str) -> str:
    """Return *name* unchanged if it is a plain or ``table.column`` identifier."""
    if not _IDENTIFIER.fullmatch(name):
        msg = f"Invalid SQL identifier: {name!r}"
        raise QueryError(msg)
    return name


def _check_column(column: str) -> str:
    column = column.strip()
    if not _COLUMN.fullmatch(column):
        msg = f"Invalid column expression: {column!r}"
        raise QueryError(msg)
    return column


@dataclass(frozen=True, slots=True)
class Condition:
    """One WHERE term: ``<boolean> field operator ?``."""

    boolean: str
    field: str
    operator: str
    value: Any

    def compile(self) -> tuple[str, tuple[Any, ...]]:
        if self.operator in ("IN", "NOT IN"):
            values = tuple(self.value)
            if not values:
                # IN () is a syntax error; an empty set matches nothing
                return ("1 = 0" if self.operator == "IN" else "1 = 1"), ()
            placeholders = ", ".join("?" for _ in values)
            return f"{self.field} {self.operator} ({placeholders})", values
        return f"{self.field} {self.operator} ?", (self.value,)


@dataclass(frozen=True, slots=True)
class Builder:
    """Immutable SELECT/INSERT/UPDATE/DELETE builder bound to one table.

    Construct with a database and a table name, chain methods to add
    clauses, then execute via ``get()``, ``first()``, ``count()``, etc.

    Every method returns a new ``Builder``; the original is unchanged.
    """

    db: Database
    table: str
    _columns: tuple[str, ...] = ("*",)
    _wheres: tuple[Condition, ...] = ()
    _order: tuple[str, ...] = ()
    _limit: int | None = None
    _offset: int | None = None

    def __post_init__(self) -> None:
        quote_identifier(self.table)

    # -- Building --

    def select(self, *fields: str | Iterable[str]) -> Builder:
        """Set which columns to SELECT. Default is ``*``.

        ::

            builder.select("id", "name")
            builder.select(["id", "name AS label"])
        """
        columns: list[str] = []
        for item in fields:
            if isinstance(item, str):
                columns.append(_check_column(item))
            else:
                columns.extend(_check_column(column) for column in item)
        return replace(self, _columns=tuple(columns) or ("*",))

    def where(self, field: str, value: Any, operator: str = "=") -> Builder:
        """Add an ``AND`` condition.

        ::

            builder.where("done", False).where("id", 10, ">")
            # WHERE done = ? AND id > ?
        """
        return self._add_condition("AND", field, value, operator)

    def or_where(self, field: str, value: Any, operator: str = "=") -> Builder:
        """Add an ``OR`` condition."""
        return self._add_condition("OR", field, value, operator)

    def where_if(self, condition: object, field: str, value: Any, operator: str = "=") -> Builder:
        """Add a WHERE condition only if *condition* is truthy.

        ::

            Builder(db, "todos")
                .where_if(status, "done", status == "done")
                .where_if(search, "text", f"%{search}%", "LIKE")
        """
        if not condition:
            return self
        return self.where(field, value, operator)

    def order_by(self, field: str, direction: str = "ASC") -> Builder:
        """Append an ORDER BY term. Directions other than ASC/DESC become ASC."""
        direction = direction.upper()
        if direction not in _DIRECTIONS:
            direction = "ASC"
        return replace(self, _order=(*self._order, f"{quote_identifier(field)} {direction}"))

    def limit(self, n: int) -> Builder:
        return replace(self, _limit=int(n))

    def offset(self, n: int) -> Builder:
        return replace(self, _offset=int(n))

    def _add_condition(self, boolean: str, field: str, value: Any, operator: str) -> Builder:
        operator = " ".join(operator.upper().split())
        if operator not in _OPERATORS:
            msg = f"Unsupported operator: {operator!r}"
            raise QueryError(msg)
        if operator in ("IN", "NOT IN") and (
            isinstance(value, str | bytes) or not isinstance(value, Iterable)
        ):
            msg = f"{operator} needs a sequence of values, got {value!r}"
            raise QueryError(msg)
        condition = Condition(boolean, quote_identifier(field), operator, value)
        return replace(self, _wheres=(*self._wheres, condition))

    # -- Compilation --

    def _compile_where(self) -> tuple[str, tuple[Any, ...]]:
        clauses: list[str] = []
        params: list[Any] = []
        for index, condition in enumerate(self._wheres):
            clause, values = condition.compile()
            clauses.append(clause if index == 0 else f"{condition.boolean} {clause}")
            params.extend(values)
        if not clauses:
            return "", ()
        return " WHERE " + " ".join(clauses), tuple(params)

    @property
    def sql(self) -> str:
        """The exact SELECT that ``get()`` will run."""
        where, _ = self._compile_where()
        sql = f"SELECT {', '.join(self._columns)} FROM {self.table}{where}"
        if self._order:
            sql += " ORDER BY " + ", ".join(self._order)
        if self._limit is not None:
            sql += f" LIMIT {self._limit}"
        if self._offset is not None:
            if self._limit is None:
                # SQLite only accepts OFFSET after a LIMIT
                sql += " LIMIT -1"
            sql += f" OFFSET {self._offset}"
        return sql

    @property
    def params(self) -> tuple[Any, ...]:
        """The bound WHERE parameters, in order."""
        return self._compile_where()[1]

    # -- Execution --

    def get(self) -> list[dict[str, Any]]:
        """Execute and return all matching rows."""
        return self.db.fetch(self.sql, *self.params)

    def first(self) -> dict[str, Any] | None:
        """Execute with ``LIMIT 1`` and return the row, or ``None``."""
        limited = self.limit(1)
        return self.db.fetch_one(limited.sql, *limited.params)

    def count(self) -> int:
        """Count all matching rows.

        Ignores ``select()``, ``order_by()``, ``limit()``, and ``offset()``.
        """
        where, params = self._compile_where()
        sql = f"SELECT COUNT(*) AS total FROM {self.table}{where}"
        return self.db.fetch_val(sql, *params, as_type=int) or 0

    def exists(self) -> bool:
        """Check if at least one matching row exists."""
        where, params = self._compile_where()
        sql = f"SELECT 1 FROM {self.table}{where} LIMIT 1"
        return self.db.fetch_val(sql, *params) is not None

    def insert(self, data: Mapping[str, Any]) -> int:
        """Insert one row and return its id."""
        if not data:
            msg = f"Cannot insert an empty row into {self.table}"
            raise QueryError(msg)
        fields = ", ".join(quote_identifier(field) for field in data)
        placeholders = ", ".join("?" for _ in data)
        sql = f"INSERT INTO {self.table} ({fields}) VALUES ({placeholders})"
        return self.db.insert(sql, *data.values())

    def insert_many(self, rows: Sequence[Mapping[str, Any]]) -> int:
        """Insert several rows sharing the first row's columns; returns rows inserted."""
        if not rows:
            return 0
        columns = list(rows[0])
        fields = ", ".join(quote_identifier(field) for field in columns)
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {self.table} ({fields}) VALUES ({placeholders})"
        return self.db.execute_many(sql, [tuple(row[c] for c in columns) for row in rows])

    def update(self, data: Mapping[str, Any]) -> int:
        """Update matching rows (every row without a WHERE); returns rows affected."""
        if not data:
            return 0
        assignments = ", ".join(f"{quote_identifier(field)} = ?" for field in data)
        where, params = self._compile_where()
        sql = f"UPDATE {self.table} SET {assignments}{where}"
        return self.db.execute(sql, *data.values(), *params)

    def delete(self) -> int:
        """Delete matching rows (every row without a WHERE); returns rows affected."""
        where, params = self._compile_where()
        return self.db.execute(f"DELETE FROM {self.table}{where}", *params)
