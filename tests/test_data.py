"""Tests for wren.data.Database against a temporary SQLite file."""

import logging

import pytest

from wren.data import ConnectionError, Database, DataError, QueryError
from wren.data.database import parse_sqlite_path
from wren.data.errors import DriverNotInstalledError


@pytest.fixture
async def db(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'test.db'}")
    await database.connect()
    await database.execute_script(
        """
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT UNIQUE,
            active INTEGER DEFAULT 1
        );
        """
    )
    yield database
    await database.disconnect()


class TestParseUrl:
    def test_sqlite_url(self) -> None:
        assert parse_sqlite_path("sqlite:///app.db") == "app.db"

    def test_memory(self) -> None:
        assert parse_sqlite_path("sqlite:///:memory:") == ":memory:"

    def test_bare_path(self) -> None:
        assert parse_sqlite_path("data/app.db") == "data/app.db"

    def test_unsupported_scheme(self) -> None:
        with pytest.raises(DriverNotInstalledError, match="postgresql"):
            parse_sqlite_path("postgresql://localhost/app")

    def test_driver_error_is_data_error(self) -> None:
        with pytest.raises(DataError):
            Database("mysql://localhost/app")


class TestLifecycle:
    async def test_connect_and_disconnect(self, tmp_path) -> None:
        database = Database(str(tmp_path / "life.db"))
        assert not database.is_connected
        await database.connect()
        assert database.is_connected
        await database.disconnect()
        assert not database.is_connected

    async def test_context_manager(self) -> None:
        async with Database("sqlite:///:memory:") as database:
            assert database.is_connected
            assert await database.fetch_val("SELECT 1 + 1") == 2
        assert not database.is_connected

    async def test_lazy_connect_on_first_query(self) -> None:
        database = Database("sqlite:///:memory:")
        assert await database.fetch_val("SELECT 42") == 42
        await database.disconnect()

    async def test_unreachable_file(self, tmp_path) -> None:
        database = Database(str(tmp_path / "missing" / "dir" / "app.db"))
        with pytest.raises(ConnectionError):
            await database.connect()
        assert not database.is_connected


class TestRawQueries:
    async def test_insert_returns_id(self, db: Database) -> None:
        first = await db.insert("INSERT INTO users (name) VALUES (?)", "Ann")
        second = await db.insert("INSERT INTO users (name) VALUES (?)", "Bo")
        assert (first, second) == (1, 2)

    async def test_fetch_all_dicts(self, db: Database) -> None:
        await db.insert("INSERT INTO users (name, email) VALUES (?, ?)", "Ann", "a@x.io")
        rows = await db.fetch_all("SELECT id, name, email FROM users")
        assert rows == [{"id": 1, "name": "Ann", "email": "a@x.io"}]

    async def test_fetch_one_none(self, db: Database) -> None:
        assert await db.fetch_one("SELECT * FROM users WHERE id = ?", 99) is None

    async def test_execute_rowcount(self, db: Database) -> None:
        await db.execute_many(
            "INSERT INTO users (name) VALUES (?)", [("a",), ("b",), ("c",)]
        )
        changed = await db.execute("UPDATE users SET active = 0 WHERE name != ?", "a")
        assert changed == 2

    async def test_query_error_message(self, db: Database) -> None:
        with pytest.raises(QueryError) as exc_info:
            await db.fetch_all("SELECT * FROM no_such_table")
        assert str(exc_info.value).startswith("Query failed:")
        assert "no_such_table" in str(exc_info.value)

    async def test_constraint_violation(self, db: Database) -> None:
        await db.insert("INSERT INTO users (name, email) VALUES (?, ?)", "a", "same@x.io")
        with pytest.raises(QueryError):
            await db.insert("INSERT INTO users (name, email) VALUES (?, ?)", "b", "same@x.io")

    async def test_echo_logs_queries(self, tmp_path, caplog) -> None:
        database = Database(str(tmp_path / "echo.db"), echo=True)
        with caplog.at_level(logging.INFO, logger="wren.data"):
            await database.fetch_val("SELECT ?", 7)
        await database.disconnect()
        assert any("SELECT ?" in record.getMessage() for record in caplog.records)


class TestTableBuilder:
    async def test_insert_then_first(self, db: Database) -> None:
        new_id = await db.table("users").insert({"name": "Ann", "email": "ann@x.io"})
        row = await db.table("users").where("id", new_id).first()
        assert row is not None
        assert row["name"] == "Ann"
        assert row["email"] == "ann@x.io"
        assert row["active"] == 1

    async def test_get_ordered_and_paginated(self, db: Database) -> None:
        for name in ("c", "a", "b", "d"):
            await db.table("users").insert({"name": name})
        rows = await db.table("users").select("name").order_by("name").paginate(2, per_page=2).get()
        assert rows == [{"name": "c"}, {"name": "d"}]

    async def test_count_and_exists(self, db: Database) -> None:
        await db.table("users").insert({"name": "a", "active": 1})
        await db.table("users").insert({"name": "b", "active": 0})
        assert await db.table("users").count() == 2
        assert await db.table("users").where("active", 1).count() == 1
        assert await db.table("users").where("name", "b").exists()
        assert not await db.table("users").where("name", "zzz").exists()

    async def test_update_reports_change(self, db: Database) -> None:
        new_id = await db.table("users").insert({"name": "a"})
        assert await db.table("users").where("id", new_id).update({"name": "z"})
        assert not await db.table("users").where("id", 999).update({"name": "z"})
        row = await db.table("users").where("id", new_id).first()
        assert row["name"] == "z"

    async def test_delete_reports_change(self, db: Database) -> None:
        new_id = await db.table("users").insert({"name": "a"})
        assert await db.table("users").where("id", new_id).delete()
        assert not await db.table("users").where("id", new_id).delete()

    async def test_first_on_empty_table(self, db: Database) -> None:
        assert await db.table("users").first() is None


class TestTransaction:
    async def test_commit(self, db: Database) -> None:
        async with db.transaction():
            await db.table("users").insert({"name": "a"})
            await db.table("users").insert({"name": "b"})
        assert await db.table("users").count() == 2

    async def test_rollback_on_error(self, db: Database) -> None:
        with pytest.raises(RuntimeError):
            async with db.transaction():
                await db.table("users").insert({"name": "a"})
                raise RuntimeError("abort")
        assert await db.table("users").count() == 0

    async def test_nested_joins_outer(self, db: Database) -> None:
        with pytest.raises(RuntimeError):
            async with db.transaction():
                async with db.transaction():
                    await db.table("users").insert({"name": "inner"})
                raise RuntimeError("abort")
        assert await db.table("users").count() == 0
