"""Tests for wali.data.builder: SQL compilation and execution."""

import pytest

from wali.data import Builder, Database, QueryError

SCHEMA = """
CREATE TABLE todos (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    text TEXT NOT NULL,
    done INTEGER NOT NULL DEFAULT 0
);
"""


@pytest.fixture
def db():
    database = Database("sqlite:///:memory:")
    database.execute_script(SCHEMA)
    yield database
    database.close()


@pytest.fixture
def todos(db: Database) -> Builder:
    builder = Builder(db, "todos")
    builder.insert_many(
        [
            {"text": "write docs", "done": 0},
            {"text": "ship it", "done": 1},
            {"text": "write tests", "done": 0},
        ]
    )
    return builder


class TestCompilation:
    def test_default_select(self, db: Database) -> None:
        builder = Builder(db, "todos")
        assert builder.sql == "SELECT * FROM todos"
        assert builder.params == ()

    def test_full_select(self, db: Database) -> None:
        builder = (
            Builder(db, "users")
            .select("a", "b")
            .where("x", 1)
            .where("y", 2, ">")
            .order_by("id", "desc")
            .limit(10)
            .offset(20)
        )
        assert builder.sql == (
            "SELECT a, b FROM users WHERE x = ? AND y > ? ORDER BY id DESC LIMIT 10 OFFSET 20"
        )
        assert builder.params == (1, 2)

    def test_or_where(self, db: Database) -> None:
        builder = Builder(db, "t").where("a", 1).or_where("b", 2)
        assert builder.sql == "SELECT * FROM t WHERE a = ? OR b = ?"

    def test_first_condition_boolean_dropped(self, db: Database) -> None:
        assert Builder(db, "t").or_where("a", 1).sql == "SELECT * FROM t WHERE a = ?"

    def test_where_if(self, db: Database) -> None:
        builder = Builder(db, "t").where_if("", "a", 1).where_if("yes", "b", 2)
        assert builder.sql == "SELECT * FROM t WHERE b = ?"
        assert builder.params == (2,)

    def test_in(self, db: Database) -> None:
        builder = Builder(db, "t").where("id", [1, 2, 3], "in")
        assert builder.sql == "SELECT * FROM t WHERE id IN (?, ?, ?)"
        assert builder.params == (1, 2, 3)

    def test_empty_in(self, db: Database) -> None:
        assert Builder(db, "t").where("id", [], "IN").sql == "SELECT * FROM t WHERE 1 = 0"
        assert Builder(db, "t").where("id", (), "NOT IN").sql == "SELECT * FROM t WHERE 1 = 1"

    def test_in_requires_sequence(self, db: Database) -> None:
        with pytest.raises(QueryError, match="needs a sequence"):
            Builder(db, "t").where("id", "1,2", "IN")

    def test_operator_normalized(self, db: Database) -> None:
        builder = Builder(db, "t").where("name", "a%", "not   like")
        assert builder.sql == "SELECT * FROM t WHERE name NOT LIKE ?"

    def test_unsupported_operator(self, db: Database) -> None:
        with pytest.raises(QueryError, match="Unsupported operator"):
            Builder(db, "t").where("a", 1, "; DROP TABLE t")

    def test_bad_direction_becomes_asc(self, db: Database) -> None:
        assert Builder(db, "t").order_by("id", "sideways").sql == "SELECT * FROM t ORDER BY id ASC"

    def test_offset_without_limit(self, db: Database) -> None:
        assert Builder(db, "t").offset(5).sql == "SELECT * FROM t LIMIT -1 OFFSET 5"

    def test_select_iterable_and_alias(self, db: Database) -> None:
        builder = Builder(db, "t").select(["id", "name AS label", "t.*"])
        assert builder.sql == "SELECT id, name AS label, t.* FROM t"

    def test_empty_select_is_star(self, db: Database) -> None:
        assert Builder(db, "t").select().sql == "SELECT * FROM t"

    @pytest.mark.parametrize("name", ["users; DROP", "1abc", "a b", ""])
    def test_invalid_table(self, db: Database, name: str) -> None:
        with pytest.raises(QueryError, match="Invalid SQL identifier"):
            Builder(db, name)

    def test_invalid_column(self, db: Database) -> None:
        with pytest.raises(QueryError, match="Invalid column expression"):
            Builder(db, "t").select("id; DELETE FROM t")

    def test_invalid_where_field(self, db: Database) -> None:
        with pytest.raises(QueryError):
            Builder(db, "t").where("a = 1 OR 1", 1)

    def test_immutable(self, db: Database) -> None:
        base = Builder(db, "t")
        filtered = base.where("a", 1)
        assert base.sql == "SELECT * FROM t"
        assert filtered is not base


class TestExecution:
    def test_get(self, todos: Builder) -> None:
        rows = todos.where("done", 0).order_by("id").get()
        assert [row["text"] for row in rows] == ["write docs", "write tests"]

    def test_first(self, todos: Builder) -> None:
        row = todos.order_by("id", "DESC").first()
        assert row is not None
        assert row["text"] == "write tests"

    def test_first_none(self, todos: Builder) -> None:
        assert todos.where("id", 99).first() is None

    def test_count_ignores_limit(self, todos: Builder) -> None:
        assert todos.limit(1).count() == 3
        assert todos.where("done", 1).count() == 1

    def test_exists(self, todos: Builder) -> None:
        assert todos.where("text", "ship%", "LIKE").exists()
        assert not todos.where("text", "nothing").exists()

    def test_like(self, todos: Builder) -> None:
        assert todos.where("text", "write%", "LIKE").count() == 2

    def test_in_execution(self, todos: Builder) -> None:
        assert todos.where("id", [1, 3], "IN").count() == 2
        assert todos.where("id", [], "IN").count() == 0

    def test_limit_offset(self, todos: Builder) -> None:
        rows = todos.select("id").order_by("id").limit(1).offset(1).get()
        assert rows == [{"id": 2}]

    def test_insert(self, db: Database) -> None:
        assert Builder(db, "todos").insert({"text": "new"}) == 1

    def test_insert_empty(self, db: Database) -> None:
        with pytest.raises(QueryError, match="empty row"):
            Builder(db, "todos").insert({})

    def test_insert_many_empty(self, db: Database) -> None:
        assert Builder(db, "todos").insert_many([]) == 0

    def test_update(self, todos: Builder) -> None:
        assert todos.where("done", 0).update({"done": 1}) == 2
        assert todos.where("done", 1).count() == 3

    def test_update_empty(self, todos: Builder) -> None:
        assert todos.update({}) == 0

    def test_delete(self, todos: Builder) -> None:
        assert todos.where("id", 2).delete() == 1
        assert todos.count() == 2

    def test_delete_all(self, todos: Builder) -> None:
        assert todos.delete() == 3
