"""Async data access for wren.

SQL in, dicts out. Not an ORM.

Basic usage::

    from wren.data import Database

    db = Database("sqlite:///app.db")

    rows = await db.fetch_all("SELECT * FROM users WHERE active = ?", True)
    user = await db.table("users").where("id", 42).first()

SQLite is the only bundled driver (stdlib ``sqlite3`` on ``anyio``
worker threads).
"""

from wren.data.database import Database
from wren.data.errors import ConnectionError, DataError, DriverNotInstalledError, QueryError
from wren.data.query import Query

__all__ = [
    "ConnectionError",
    "DataError",
    "Database",
    "DriverNotInstalledError",
    "Query",
    "QueryError",
]
