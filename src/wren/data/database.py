"""Async database handle.

SQLite via stdlib ``sqlite3`` + ``anyio``. Rows come back as plain dicts.

Connection URL format::

    sqlite:///path/to/db.sqlite    # SQLite file
    sqlite:///:memory:             # In-memory SQLite
    path/to/db.sqlite              # Bare path (treated as SQLite)

A ``Database`` is constructed explicitly and handed to the app, which
shares it with every request through ``ctx.db``. There is no
process-wide singleton.

Concurrency:
    - One SQLite connection per ``Database``, serialized with an ``anyio.Lock``
    - The connection owned by ``transaction()`` is tracked per task
      (ContextVar), so calls inside the block reuse it
"""

import logging
import sqlite3
import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

import anyio

from wren.data import _sqlite
from wren.data.errors import ConnectionError, DataError, DriverNotInstalledError, QueryError

if TYPE_CHECKING:
    from wren.data.query import Query

logger = logging.getLogger("wren.data")

# Set inside transaction(); query methods reuse this connection.
_current_conn: ContextVar[Any] = ContextVar("wren_db_conn")


def _in_transaction() -> bool:
    try:
        _current_conn.get()
        return True
    except LookupError:
        return False


def parse_sqlite_path(url: str) -> str:
    """Extract the file path from a database URL.

    ``sqlite:///app.db`` -> ``app.db``, ``sqlite:///:memory:`` ->
    ``:memory:``. URLs with any other scheme raise
    ``DriverNotInstalledError``; bare paths are returned unchanged.
    """
    for prefix in ("sqlite:///", "sqlite://"):
        if url.startswith(prefix):
            return url[len(prefix) :]
    if "://" in url:
        scheme = url.split("://", 1)[0]
        msg = f"No driver bundled for {scheme!r} URLs. Supported: sqlite:///path"
        raise DriverNotInstalledError(msg)
    return url


class Database:
    """Async database access.

    Usage::

        db = Database("sqlite:///app.db")

        rows = await db.fetch_all("SELECT * FROM users WHERE active = ?", True)
        row = await db.fetch_one("SELECT * FROM users WHERE id = ?", 42)
        count = await db.fetch_val("SELECT COUNT(*) FROM users")
        new_id = await db.insert("INSERT INTO users (name) VALUES (?)", "Alice")

        # Fluent builder bound to this database
        users = await db.table("users").where("active", 1).order_by("name").get()

        # Transaction (atomic multi-statement)
        async with db.transaction():
            await db.execute("UPDATE accounts SET balance = balance - ? WHERE id = ?", 10, 1)
            await db.execute("UPDATE accounts SET balance = balance + ? WHERE id = ?", 10, 2)
    """

    __slots__ = ("_conn", "_conn_lock", "_echo", "_path", "_stmt_lock", "url")

    def __init__(self, url: str, /, *, echo: bool = False) -> None:
        self.url = url
        self._path = parse_sqlite_path(url)
        self._echo = echo
        # anyio locks are created lazily, once an event loop exists
        self._conn_lock: anyio.Lock | None = None
        self._stmt_lock: anyio.Lock | None = None
        self._conn: _sqlite.AsyncConnection | None = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    # -- Connection management --

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[_sqlite.AsyncConnection]:
        """Yield the connection, serialized against other tasks.

        Inside a ``transaction()`` block the transaction's connection is
        reused without re-acquiring the lock.
        """
        try:
            conn = _current_conn.get()
        except LookupError:
            pass
        else:
            yield conn
            return

        await self.connect()
        if self._stmt_lock is None:
            self._stmt_lock = anyio.Lock()
        async with self._stmt_lock:
            assert self._conn is not None
            yield self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Execute multiple statements atomically.

        Commits on clean exit, rolls back on exception. Nested calls join
        the outer transaction.
        """
        if _in_transaction():
            yield
            return

        async with self._connection() as conn:
            token = _current_conn.set(conn)
            try:
                conn.autocommit = False
                yield
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise
            finally:
                conn.autocommit = True
                _current_conn.reset(token)

    # -- Echo / query logging --

    def _log_query(self, sql: str, params: Sequence[Any], elapsed: float) -> None:
        if not self._echo:
            return
        param_str = f"  params={tuple(params)!r}" if params else ""
        logger.info("%6.1fms  %s%s", elapsed * 1000, sql, param_str)

    @asynccontextmanager
    async def _statement(self, sql: str, params: Sequence[Any]) -> AsyncIterator[_sqlite.AsyncConnection]:
        """Run a statement block: acquire, wrap driver errors, log timing."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                yield conn
            except sqlite3.Error as exc:
                logger.debug("Query failed: %s (%s)", exc, sql)
                raise QueryError(f"Query failed: {exc}") from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)

    # -- Public query API --

    async def fetch_all(self, sql: str, /, *params: Any) -> list[dict[str, Any]]:
        """Execute a query and return every row as a dict."""
        async with self._statement(sql, params) as conn:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
            columns = [desc[0] for desc in cursor.description]
            return [dict(zip(columns, row, strict=True)) for row in rows]

    async def fetch_one(self, sql: str, /, *params: Any) -> dict[str, Any] | None:
        """Execute a query and return the first row, or ``None``."""
        async with self._statement(sql, params) as conn:
            cursor = await conn.execute(sql, params)
            row = await cursor.fetchone()
            if row is None:
                return None
            columns = [desc[0] for desc in cursor.description]
            return dict(zip(columns, row, strict=True))

    async def fetch_val(self, sql: str, /, *params: Any) -> Any:
        """Execute a query and return the first column of the first row.

        Useful for COUNT, SUM, MAX, etc.
        """
        async with self._statement(sql, params) as conn:
            cursor = await conn.execute(sql, params)
            row = await cursor.fetchone()
            if row is None:
                return None
            return row[0]

    async def execute(self, sql: str, /, *params: Any) -> int:
        """Execute a statement (INSERT/UPDATE/DELETE) and return rows affected."""
        async with self._statement(sql, params) as conn:
            cursor = await conn.execute(sql, params)
            return cursor.rowcount

    async def insert(self, sql: str, /, *params: Any) -> int:
        """Execute an INSERT and return the new row id."""
        async with self._statement(sql, params) as conn:
            cursor = await conn.execute(sql, params)
            return int(cursor.lastrowid or 0)

    async def execute_many(self, sql: str, params_seq: Sequence[Sequence[Any]], /) -> int:
        """Execute a statement for each parameter set. Returns total rows affected."""
        async with self._statement(sql, params_seq) as conn:
            cursor = await conn.executemany(sql, params_seq)
            return cursor.rowcount

    async def execute_script(self, sql: str, /) -> None:
        """Execute several SQL statements at once (schema setup, seeds)::

            await db.execute_script('''
                CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT);
                CREATE INDEX idx_users_name ON users(name);
            ''')
        """
        async with self._statement(sql, ()) as conn:
            await conn.executescript(sql)

    def table(self, name: str) -> "Query":
        """Start a fluent query against *name*, bound to this database."""
        from wren.data.query import Query

        return Query(name, db=self)

    # -- Lifecycle --

    async def connect(self) -> None:
        """Open the connection.

        Called automatically on first query. The app calls it per request
        so a broken database surfaces before routing. Raises
        ``ConnectionError`` when the database cannot be opened.
        """
        if self._conn is not None:
            return
        if self._conn_lock is None:
            self._conn_lock = anyio.Lock()
        async with self._conn_lock:
            if self._conn is not None:
                return
            try:
                conn = await _sqlite.connect(self._path)
                await conn.execute("PRAGMA foreign_keys=ON")
            except sqlite3.Error as exc:
                raise ConnectionError(str(exc)) from exc
            self._conn = conn
        logger.debug("Connected to %s", self.url)

    async def disconnect(self) -> None:
        """Close the connection."""
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        await conn.close()

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.disconnect()


def require_db(db: "Database | None") -> "Database":
    """Return *db*, or raise ``DataError`` when nothing is bound."""
    if db is None:
        msg = "Query is not bound to a database. Use db.table(name) or Query(name, db=db)."
        raise DataError(msg)
    return db
