"""Immutable query builder for wren.data.

Accumulates SQL clauses through chaining methods, renders to a SQL string
+ parameters tuple, and executes through a bound ``Database``.

Each method returns a new frozen ``Query``; the original is never mutated.
Same pattern as ``Response.with_*()`` but for SQL.

Usage::

    users = await (
        db.table("users")
        .select("id", "email")
        .where("active", 1)
        .where_if(search, "email", search)
        .order_by("id", "desc")
        .paginate(page, per_page=20)
        .get()
    )

    new_id = await db.table("users").insert({"email": "a@b.com"})
    await db.table("users").where("id", new_id).update({"active": 0})

Identifiers (table, columns, keys) are reduced to ``[A-Za-z0-9_]`` before
they reach the SQL text (select lists also keep ``.`` and ``*``). Values
always travel as bound parameters.

Transparency: ``.sql`` and ``.params`` show exactly what ``get()`` runs.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from wren.data.database import require_db
from wren.data.errors import DataError

if TYPE_CHECKING:
    from wren.data.database import Database

_IDENTIFIER_STRIP = re.compile(r"[^A-Za-z0-9_]")
_COLUMN_STRIP = re.compile(r"[^A-Za-z0-9_.*]")

OPERATORS = frozenset({"=", "!=", "<>", "<", "<=", ">", ">=", "LIKE", "NOT LIKE"})


def sanitize_identifier(name: str) -> str:
    """Strip everything outside ``[A-Za-z0-9_]``.

    ``"users;DROP TABLE x"`` -> ``"usersDROPTABLEx"``. Raises ``DataError``
    when nothing is left.
    """
    cleaned = _IDENTIFIER_STRIP.sub("", str(name))
    if not cleaned:
        msg = f"Invalid identifier: {name!r}"
        raise DataError(msg)
    return cleaned


def sanitize_column(name: str) -> str:
    """Like ``sanitize_identifier`` but keeps ``.`` and ``*`` for select lists."""
    cleaned = _COLUMN_STRIP.sub("", str(name))
    if not cleaned:
        msg = f"Invalid column: {name!r}"
        raise DataError(msg)
    return cleaned


def normalize_operator(operator: str) -> str:
    """Upper-case and collapse whitespace; reject anything not allowed."""
    op = " ".join(str(operator).split()).upper()
    if op not in OPERATORS:
        allowed = ", ".join(sorted(OPERATORS))
        msg = f"Unsupported operator {operator!r}. Allowed: {allowed}"
        raise DataError(msg)
    return op


@dataclass(frozen=True, slots=True)
class Query:
    """Immutable query builder over a single table.

    Construct with a table name (and optionally a ``Database``), chain
    methods to add clauses, then run a terminal: ``get()``, ``first()``,
    ``count()``, ``exists()``, ``insert()``, ``update()``, ``delete()``.

    Every method returns a new ``Query``; the original is unchanged.
    """

    table: str
    db: Database | None = field(default=None, repr=False, compare=False)
    _columns: tuple[str, ...] = ()
    _wheres: tuple[tuple[str, Any], ...] = ()
    _order: tuple[str, str] | None = None
    _limit: int | None = None
    _offset: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "table", sanitize_identifier(self.table))

    # ── Building ─────────────────────────────────────────────────────────

    def select(self, *columns: str) -> Query:
        """Set which columns to SELECT. No columns keeps ``*``.

        ::

            db.table("users").select("id", "users.email")
        """
        if not columns:
            return self
        return replace(self, _columns=tuple(sanitize_column(c) for c in columns))

    def where(self, field_name: str, value: Any) -> Query:
        """Add ``field = ?``. Multiple predicates are ANDed."""
        return self.where_op(field_name, "=", value)

    def where_op(self, field_name: str, operator: str, value: Any) -> Query:
        """Add ``field <operator> ?`` with an explicit operator.

        ::

            db.table("users").where_op("age", ">=", 18)
            # WHERE age >= ?
        """
        fragment = f"{sanitize_identifier(field_name)} {normalize_operator(operator)} ?"
        return replace(self, _wheres=(*self._wheres, (fragment, value)))

    def where_all(self, conditions: Mapping[str, Any]) -> Query:
        """Add one equality predicate per mapping entry, in order."""
        query = self
        for key, value in conditions.items():
            query = query.where(key, value)
        return query

    def where_if(self, condition: object, field_name: str, value: Any) -> Query:
        """Add ``field = ?`` only if *condition* is truthy.

        For dynamic filters without ``if`` blocks::

            db.table("posts")
                .where_if(author, "author_id", author)
                .where_if(status, "status", status)
        """
        if not condition:
            return self
        return self.where(field_name, value)

    def order_by(self, field_name: str, direction: str = "ASC") -> Query:
        """Set ORDER BY. Direction is ``DESC`` only for (any-case) "desc"."""
        dir_ = "DESC" if str(direction).strip().upper() == "DESC" else "ASC"
        return replace(self, _order=(sanitize_identifier(field_name), dir_))

    def limit(self, n: int) -> Query:
        """Set LIMIT. Negative values raise ``ValueError``."""
        return replace(self, _limit=_non_negative("limit", n))

    def offset(self, n: int) -> Query:
        """Set OFFSET. Negative values raise ``ValueError``."""
        return replace(self, _offset=_non_negative("offset", n))

    def paginate(self, page: int, per_page: int = 10) -> Query:
        """Set LIMIT/OFFSET for a 1-based *page*. Pages below 1 become 1.

        ::

            db.table("posts").paginate(3, per_page=20)  # LIMIT 20 OFFSET 40
        """
        page = max(1, int(page))
        per_page = int(per_page)
        return self.limit(per_page).offset((page - 1) * per_page)

    # ── Rendering ────────────────────────────────────────────────────────

    @property
    def _where_sql(self) -> str:
        if not self._wheres:
            return ""
        return " WHERE " + " AND ".join(fragment for fragment, _ in self._wheres)

    @property
    def sql(self) -> str:
        """The exact SELECT that ``get()`` runs."""
        columns = ", ".join(self._columns) if self._columns else "*"
        sql = f"SELECT {columns} FROM {self.table}{self._where_sql}"
        if self._order is not None:
            sql += f" ORDER BY {self._order[0]} {self._order[1]}"
        if self._limit is not None:
            sql += f" LIMIT {self._limit}"
        if self._offset is not None:
            sql += f" OFFSET {self._offset}"
        return sql

    @property
    def params(self) -> tuple[Any, ...]:
        """The bound WHERE parameters, in order."""
        return tuple(value for _, value in self._wheres)

    @property
    def count_sql(self) -> str:
        """``SELECT COUNT(*)`` honoring WHERE only."""
        return f"SELECT COUNT(*) FROM {self.table}{self._where_sql}"

    def insert_sql(self, data: Mapping[str, Any]) -> tuple[str, tuple[Any, ...]]:
        """Render an INSERT for *data*: ``(sql, params)``."""
        if not data:
            msg = "insert() needs at least one column."
            raise DataError(msg)
        columns = ", ".join(sanitize_identifier(k) for k in data)
        placeholders = ", ".join("?" for _ in data)
        sql = f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders})"
        return sql, tuple(data.values())

    def update_sql(self, data: Mapping[str, Any]) -> tuple[str, tuple[Any, ...]]:
        """Render an UPDATE for *data*: SET params first, then WHERE params."""
        if not data:
            msg = "update() needs at least one column."
            raise DataError(msg)
        assignments = ", ".join(f"{sanitize_identifier(k)} = ?" for k in data)
        sql = f"UPDATE {self.table} SET {assignments}{self._where_sql}"
        return sql, (*data.values(), *self.params)

    @property
    def delete_sql(self) -> str:
        return f"DELETE FROM {self.table}{self._where_sql}"

    # ── Execution ────────────────────────────────────────────────────────

    async def get(self) -> list[dict[str, Any]]:
        """Execute and return every matching row."""
        return await require_db(self.db).fetch_all(self.sql, *self.params)

    async def first(self) -> dict[str, Any] | None:
        """Execute with LIMIT 1 and return the row, or ``None``."""
        query = self.limit(1)
        return await require_db(self.db).fetch_one(query.sql, *query.params)

    async def count(self) -> int:
        """Count matching rows. Ignores select, order, limit and offset."""
        result = await require_db(self.db).fetch_val(self.count_sql, *self.params)
        return int(result or 0)

    async def exists(self) -> bool:
        """Check if at least one matching row exists."""
        sql = f"SELECT 1 FROM {self.table}{self._where_sql} LIMIT 1"
        return await require_db(self.db).fetch_val(sql, *self.params) is not None

    async def insert(self, data: Mapping[str, Any]) -> int:
        """Insert one row and return its new id."""
        sql, params = self.insert_sql(data)
        return await require_db(self.db).insert(sql, *params)

    async def update(self, data: Mapping[str, Any]) -> bool:
        """Update matching rows. True if any row was affected."""
        sql, params = self.update_sql(data)
        return await require_db(self.db).execute(sql, *params) > 0

    async def delete(self) -> bool:
        """Delete matching rows. True if any row was affected."""
        return await require_db(self.db).execute(self.delete_sql, *self.params) > 0


def _non_negative(name: str, n: int) -> int:
    value = int(n)
    if value < 0:
        msg = f"{name} must be >= 0, got {value}"
        raise ValueError(msg)
    return value
