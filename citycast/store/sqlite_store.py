"""Local record store backed by SQLite, used for development and tests."""

import logging
import re
import sqlite3
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from citycast.store.base import TABLES, Filters, Order, RecordStore, Row
from citycast.store.database import connect, run_migrations
from citycast.store.errors import StoreError

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")
UNIQUE_VIOLATION = "23505"
# TEXT columns holding timestamps; ordered by time value, not by string
TIMESTAMP_COLUMNS = frozenset({"recorded_at", "created_at", "updated_at"})


class SqliteStore(RecordStore):
    """Runs the record store contract against a local SQLite file.

    Queries execute synchronously inside the coroutine; the database is
    local so no call blocks long enough to matter to the event loop.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @classmethod
    def open(cls, db_path: str | Path) -> "SqliteStore":
        conn = connect(db_path)
        applied = run_migrations(conn)
        if applied:
            logger.info("Applied migrations: %s", ", ".join(applied))
        return cls(conn)

    async def select(
        self,
        table: str,
        filters: Filters | None = None,
        order: Order | None = None,
        limit: int | None = None,
        columns: str = "*",
    ) -> list[Row]:
        where, params = _where(filters)
        sql = f"SELECT {_columns(columns)} FROM {_table(table)}{where}"
        if order is not None:
            direction = "DESC" if order.descending else "ASC"
            sql += f" ORDER BY {_order_key(order.column)} {direction}, rowid ASC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))
        rows = self._execute(sql, params).fetchall()
        return [dict(r) for r in rows]

    async def insert(self, table: str, values: Mapping[str, Any]) -> Row:
        data = dict(values)
        data.setdefault("id", str(uuid.uuid4()))
        cols = ", ".join(_identifier(c) for c in data)
        marks = ", ".join("?" for _ in data)
        self._execute(
            f"INSERT INTO {_table(table)} ({cols}) VALUES ({marks})",
            list(data.values()),
        )
        self.conn.commit()
        row = self._execute(
            f"SELECT * FROM {_table(table)} WHERE id = ?", [data["id"]]
        ).fetchone()
        return dict(row)

    async def delete(self, table: str, filters: Filters) -> int:
        if not filters:
            raise StoreError(f"Refusing unfiltered delete on {table}")
        where, params = _where(filters)
        cursor = self._execute(f"DELETE FROM {_table(table)}{where}", params)
        self.conn.commit()
        return cursor.rowcount

    async def update(
        self, table: str, filters: Filters, values: Mapping[str, Any]
    ) -> list[Row]:
        if not filters:
            raise StoreError(f"Refusing unfiltered update on {table}")
        sets = ", ".join(f"{_identifier(c)} = ?" for c in values)
        where, params = _where(filters)
        self._execute(
            f"UPDATE {_table(table)} SET {sets}{where}",
            [*values.values(), *params],
        )
        self.conn.commit()
        return await self.select(table, filters)

    async def aclose(self) -> None:
        self.conn.close()

    def _execute(self, sql: str, params: list) -> sqlite3.Cursor:
        try:
            return self.conn.execute(sql, params)
        except sqlite3.IntegrityError as e:
            self.conn.rollback()
            code = UNIQUE_VIOLATION if "UNIQUE" in str(e) else None
            logger.error("SQLite constraint failed: %s", e)
            raise StoreError(f"Constraint violation: {e}", code=code) from e
        except sqlite3.Error as e:
            self.conn.rollback()
            logger.error("SQLite query failed: %s -> %s", sql, e)
            raise StoreError(f"Query failed: {e}") from e


def _identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise StoreError(f"Invalid column name: {name!r}")
    return name


def _order_key(column: str) -> str:
    column = _identifier(column)
    if column in TIMESTAMP_COLUMNS:
        return f"julianday({column})"
    return column


def _table(name: str) -> str:
    if name not in TABLES:
        raise StoreError(f"Unknown table: {name!r}")
    return name


def _columns(columns: str) -> str:
    if columns.strip() == "*":
        return "*"
    return ", ".join(_identifier(c.strip()) for c in columns.split(","))


def _where(filters: Filters | None) -> tuple[str, list]:
    if not filters:
        return "", []
    clauses = [f"{_identifier(c)} = ?" for c in filters]
    return " WHERE " + " AND ".join(clauses), list(filters.values())
