"""Async SQLite wrapper using stdlib sqlite3 + anyio.

Runs every blocking sqlite3 call in a worker thread via ``anyio.to_thread``.

    - ``check_same_thread=False``: calls may land on different pool threads
    - ``autocommit=True``: individual statements commit immediately;
      ``Database.transaction()`` flips to manual mode for its block
"""

import sqlite3
from collections.abc import Callable, Sequence
from typing import Any

import anyio


def _run_sync(func: Callable[..., Any], *args: Any) -> Any:
    """Run a blocking call in an anyio worker thread."""
    return anyio.to_thread.run_sync(func, *args)


class AsyncCursor:
    """Async wrapper around ``sqlite3.Cursor``."""

    __slots__ = ("_cursor",)

    def __init__(self, cursor: sqlite3.Cursor) -> None:
        self._cursor = cursor

    @property
    def description(self) -> Any:
        return self._cursor.description

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount

    @property
    def lastrowid(self) -> int | None:
        return self._cursor.lastrowid

    async def fetchall(self) -> list[Any]:
        return await _run_sync(self._cursor.fetchall)

    async def fetchone(self) -> Any:
        return await _run_sync(self._cursor.fetchone)


class AsyncConnection:
    """Async wrapper around ``sqlite3.Connection``."""

    __slots__ = ("_conn",)

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    @property
    def autocommit(self) -> bool:
        return bool(self._conn.autocommit)

    @autocommit.setter
    def autocommit(self, value: bool) -> None:
        self._conn.autocommit = value

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> AsyncCursor:
        cursor = await _run_sync(lambda: self._conn.execute(sql, params))
        return AsyncCursor(cursor)

    async def executemany(self, sql: str, params_seq: Sequence[Sequence[Any]]) -> AsyncCursor:
        cursor = await _run_sync(lambda: self._conn.executemany(sql, params_seq))
        return AsyncCursor(cursor)

    async def executescript(self, sql: str) -> None:
        """Execute several statements at once.

        ``executescript`` commits any pending transaction first and does
        not honor ``autocommit`` mode.
        """
        await _run_sync(lambda: self._conn.executescript(sql))

    async def commit(self) -> None:
        await _run_sync(self._conn.commit)

    async def rollback(self) -> None:
        await _run_sync(self._conn.rollback)

    async def close(self) -> None:
        await _run_sync(self._conn.close)


async def connect(path: str) -> AsyncConnection:
    """Open an async SQLite connection in autocommit mode."""
    conn = await _run_sync(
        lambda: sqlite3.connect(path, autocommit=True, check_same_thread=False)
    )
    return AsyncConnection(conn)
