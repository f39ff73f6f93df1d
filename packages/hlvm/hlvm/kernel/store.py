"""Kernel — Synchronous SQLite row store.

Holds the two tables the kernel owns: ``custom_properties`` and
``shortcuts``.  Every call runs to completion on the calling thread before
returning, so namespace interceptors never suspend between the persistence
write and the in-memory write.  The connection runs in autocommit mode; an
``upsert`` is durable and visible to ``get`` as soon as it returns.

The database file is shared with other subsystems (env settings, module
storage).  The store creates and touches only its own tables.
"""

from __future__ import annotations

import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Union

from hlvm.exceptions import StoreError
from hlvm.logging import get_logger

log = get_logger(__name__)

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS custom_properties (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    type        TEXT NOT NULL,
    updated_at  INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS shortcuts (
    name        TEXT PRIMARY KEY,
    path        TEXT NOT NULL,
    created_at  INTEGER NOT NULL,
    updated_at  INTEGER NOT NULL
);
"""


def now_ms() -> int:
    """Current wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


def from_ms(value: int) -> datetime:
    """Convert a stored millisecond timestamp to an aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


class Table(str, Enum):
    CUSTOM_PROPERTIES = "custom_properties"
    SHORTCUTS = "shortcuts"


@dataclass(frozen=True)
class CustomPropertyRow:
    key: str
    value: str
    type: str
    updated_at: int


@dataclass(frozen=True)
class ShortcutRow:
    name: str
    path: str
    created_at: int
    updated_at: int


Row = Union[CustomPropertyRow, ShortcutRow]

# table -> (primary key column, row class, upsert SQL)
_TABLES: dict[Table, tuple[str, type, str]] = {
    Table.CUSTOM_PROPERTIES: (
        "key",
        CustomPropertyRow,
        """INSERT INTO custom_properties (key, value, type, updated_at)
           VALUES (:key, :value, :type, :updated_at)
           ON CONFLICT(key) DO UPDATE SET
             value=excluded.value,
             type=excluded.type,
             updated_at=excluded.updated_at""",
    ),
    Table.SHORTCUTS: (
        "name",
        ShortcutRow,
        """INSERT INTO shortcuts (name, path, created_at, updated_at)
           VALUES (:name, :path, :created_at, :updated_at)
           ON CONFLICT(name) DO UPDATE SET
             path=excluded.path,
             updated_at=excluded.updated_at""",
    ),
}


class KernelStore:
    """Synchronous SQLite store for custom properties and shortcuts.

    Usage::

        store = KernelStore(Path("~/.local/share/HLVM/HLVM.sqlite"))
        store.open()
        store.create_schema()
        store.upsert(Table.CUSTOM_PROPERTIES, "counter",
                     CustomPropertyRow("counter", "42", "int", now_ms()))
        row = store.get(Table.CUSTOM_PROPERTIES, "counter")
    """

    def __init__(self, db_path: Path | str, journal_mode: str = "wal") -> None:
        self._db_path = db_path if str(db_path) == ":memory:" else Path(db_path).expanduser()
        self._journal_mode = journal_mode
        self._conn: sqlite3.Connection | None = None

    @property
    def path(self) -> str:
        return str(self._db_path)

    @property
    def connection(self) -> sqlite3.Connection:
        """The shared connection, for subsystems that keep their own tables."""
        if self._conn is None:
            raise StoreError("KernelStore is not open", context={"path": self.path})
        return self._conn

    def open(self) -> None:
        if self._conn is not None:
            return
        try:
            if isinstance(self._db_path, Path):
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
            # isolation_level=None → autocommit; each statement is its own transaction.
            self._conn = sqlite3.connect(str(self._db_path), isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute(f"PRAGMA journal_mode={self._journal_mode}")
        except (OSError, sqlite3.Error) as exc:
            raise StoreError(
                f"KernelStore open failed: {exc}", context={"path": self.path}
            ) from exc
        log.debug("store_opened", path=self.path)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def create_schema(self) -> None:
        """Create both kernel tables if absent.  Safe to call repeatedly."""
        with self._errors("create_schema"):
            self.connection.executescript(_SCHEMA_SQL)

    # ------------------------------------------------------------------
    # Row operations
    # ------------------------------------------------------------------

    def upsert(self, table: Table, key: str, row: Row) -> None:
        pk, row_cls, sql = self._table(table)
        if not isinstance(row, row_cls):
            raise TypeError(f"{table.value} expects {row_cls.__name__}, got {type(row).__name__}")
        params = dict(vars(row))
        if params[pk] != key:
            raise ValueError(f"Row key {params[pk]!r} does not match {key!r}")
        with self._errors("upsert", table=table, key=key):
            self.connection.execute(sql, params)

    def get(self, table: Table, key: str) -> Row | None:
        pk, row_cls, _ = self._table(table)
        with self._errors("get", table=table, key=key):
            cursor = self.connection.execute(
                f"SELECT * FROM {table.value} WHERE {pk}=?", (key,)
            )
            record = cursor.fetchone()
        return row_cls(**dict(record)) if record is not None else None

    def delete(self, table: Table, key: str) -> bool:
        """Delete a row.  Returns True if a row was removed."""
        pk, _, _ = self._table(table)
        with self._errors("delete", table=table, key=key):
            cursor = self.connection.execute(
                f"DELETE FROM {table.value} WHERE {pk}=?", (key,)
            )
        return bool(cursor.rowcount)

    def list_all(self, table: Table) -> list[Row]:
        pk, row_cls, _ = self._table(table)
        with self._errors("list_all", table=table):
            cursor = self.connection.execute(
                f"SELECT * FROM {table.value} ORDER BY {pk}"
            )
            records = cursor.fetchall()
        return [row_cls(**dict(r)) for r in records]

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    @staticmethod
    def _table(table: Table) -> tuple[str, type, str]:
        try:
            return _TABLES[Table(table)]
        except (KeyError, ValueError) as exc:
            raise StoreError(f"Unknown kernel table: {table!r}") from exc

    @contextmanager
    def _errors(self, operation: str, table: Table | None = None, key: str | None = None) -> Iterator[None]:
        """Translate ``sqlite3.Error`` into ``StoreError``."""
        try:
            yield
        except sqlite3.Error as exc:
            context: dict[str, Any] = {"path": self.path}
            if table is not None:
                context["table"] = table.value
            if key is not None:
                context["key"] = key
            log.error("store_operation_failed", operation=operation, error=str(exc), **context)
            raise StoreError(f"KernelStore {operation} failed: {exc}", context=context) from exc
