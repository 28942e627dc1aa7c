from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Generator, List, Optional, Sequence, Union

from .models import Priority, TodoEntity, TodoNotFoundError
from .repositories import PATCHABLE_FIELDS, Repository
from .schemas import TodoCreate, TodoUpdate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    text: str = "text"
    completed: str = "completed"
    created_at: str = "created_at"
    due_date: str = "due_date"
    priority: str = "priority"
    category: str = "category"
    sort_order: str = "sort_order"


_COLS = _Cols()

# Columns added after the first schema revision (id, text, completed, created_at).
_MIGRATED_COLUMNS = (
    (_COLS.due_date, "TEXT NULL"),
    (_COLS.priority, f"TEXT NOT NULL DEFAULT '{Priority.MEDIUM.value}'"),
    (_COLS.category, "TEXT NULL"),
    (_COLS.sort_order, "INTEGER NOT NULL DEFAULT 0"),
)


def _parse_dt(value: Union[str, int, float, None]) -> Optional[datetime]:
    if value is None:
        return None
    # Rows written by the first schema revision hold unix epoch seconds.
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value)
    return datetime.fromisoformat(value)


def _format_dt(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# SQLite INTEGER PRIMARY KEY is a signed 64-bit value.
_MIN_ROWID = -(2**63)
_MAX_ROWID = 2**63 - 1


def _storable_id(todo_id: int) -> bool:
    """Ids outside the int64 range cannot exist in the table."""
    return _MIN_ROWID <= todo_id <= _MAX_ROWID


class SQLiteRepository(Repository):
    """
    SQLite repository implementing the Repository interface.

    Each operation opens its own connection; the context manager commits on
    success and rolls back on error.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()
        logger.info("SQLiteRepository ready db=%s", self._db_path)

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path, detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_COLS.text} TEXT NOT NULL,
                    {_COLS.completed} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.created_at} TEXT NOT NULL
                )
                """
            )

            # Bring older databases up to date: add missing columns only.
            cols = {row["name"] for row in conn.execute(f"PRAGMA table_info({_COLS.table})")}
            for name, decl in _MIGRATED_COLUMNS:
                if name in cols:
                    continue
                conn.execute(f"ALTER TABLE {_COLS.table} ADD COLUMN {name} {decl}")
                logger.info("SQLiteRepository migration: added column %s", name)
                if name == _COLS.sort_order:
                    # Existing rows keep their creation order.
                    conn.execute(f"UPDATE {_COLS.table} SET {_COLS.sort_order} = {_COLS.id}")

            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_sort_order "
                f"ON {_COLS.table}({_COLS.sort_order}, {_COLS.id})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": int(row[_COLS.id]),
            "text": str(row[_COLS.text]),
            "completed": bool(row[_COLS.completed]),
            "created_at": _parse_dt(row[_COLS.created_at]),  # type: ignore[typeddict-item]
            "due_date": _parse_dt(row[_COLS.due_date]),
            "priority": str(row[_COLS.priority]),
            "category": row[_COLS.category],
            "sort_order": int(row[_COLS.sort_order]),
        }

    def _fetch(self, conn: sqlite3.Connection, todo_id: int) -> Optional[TodoEntity]:
        if not _storable_id(todo_id):
            return None
        row = conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,)).fetchone()
        return self._row_to_entity(row) if row else None

    def _fetch_all(self, conn: sqlite3.Connection) -> List[TodoEntity]:
        rows = conn.execute(
            f"SELECT * FROM {_COLS.table} ORDER BY {_COLS.sort_order} ASC, {_COLS.id} ASC"
        ).fetchall()
        return [self._row_to_entity(r) for r in rows]

    def list(self) -> List[TodoEntity]:
        with self._conn() as conn:
            return self._fetch_all(conn)

    def create(self, data: TodoCreate) -> TodoEntity:
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.text}, {_COLS.completed}, {_COLS.created_at},
                    {_COLS.due_date}, {_COLS.priority}, {_COLS.category}, {_COLS.sort_order})
                VALUES (?, 0, ?, ?, ?, ?,
                    (SELECT COALESCE(MAX({_COLS.sort_order}), -1) + 1 FROM {_COLS.table}))
                """,
                (
                    data.text,
                    datetime.now().isoformat(),
                    _format_dt(data.due_date),
                    data.priority.value,
                    data.category,
                ),
            )
            created = self._fetch(conn, cur.lastrowid)
            assert created is not None
            logger.info("Created todo id=%s sort_order=%s", created["id"], created["sort_order"])
            return created

    def get(self, todo_id: int) -> Optional[TodoEntity]:
        with self._conn() as conn:
            return self._fetch(conn, todo_id)

    def toggle(self, todo_id: int) -> Optional[TodoEntity]:
        if not _storable_id(todo_id):
            return None
        with self._conn() as conn:
            cur = conn.execute(
                f"UPDATE {_COLS.table} SET {_COLS.completed} = 1 - {_COLS.completed} WHERE {_COLS.id} = ?",
                (todo_id,),
            )
            if cur.rowcount == 0:
                return None
            toggled = self._fetch(conn, todo_id)
        if toggled is not None:
            logger.info("Toggled todo id=%s completed=%s", todo_id, toggled["completed"])
        return toggled

    def update(self, todo_id: int, data: TodoUpdate) -> Optional[TodoEntity]:
        changes: Dict[str, Any] = {}
        for field in PATCHABLE_FIELDS:
            if field not in data.model_fields_set:
                continue
            value = getattr(data, field)
            if field == "due_date":
                value = _format_dt(value)
            elif field == "priority":
                value = value.value
            changes[getattr(_COLS, field)] = value

        if not _storable_id(todo_id):
            return None
        with self._conn() as conn:
            if not changes:
                return self._fetch(conn, todo_id)
            assignments = ", ".join(f"{col} = ?" for col in changes)
            cur = conn.execute(
                f"UPDATE {_COLS.table} SET {assignments} WHERE {_COLS.id} = ?",
                [*changes.values(), todo_id],
            )
            if cur.rowcount == 0:
                return None
            updated = self._fetch(conn, todo_id)
        logger.info("Updated todo id=%s fields=%s", todo_id, ",".join(sorted(changes)))
        return updated

    def reorder(self, ids: Sequence[int]) -> List[TodoEntity]:
        with self._conn() as conn:
            # Take the write lock before validating so the check and the
            # updates see the same rows.
            conn.execute("BEGIN IMMEDIATE")
            if ids:
                lookup = [i for i in ids if _storable_id(i)]
                found = set()
                if lookup:
                    placeholders = ", ".join("?" for _ in lookup)
                    found = {
                        row[_COLS.id]
                        for row in conn.execute(
                            f"SELECT {_COLS.id} FROM {_COLS.table} WHERE {_COLS.id} IN ({placeholders})",
                            lookup,
                        )
                    }
                missing = [i for i in ids if i not in found]
                if missing:
                    raise TodoNotFoundError(missing)
                conn.executemany(
                    f"UPDATE {_COLS.table} SET {_COLS.sort_order} = ? WHERE {_COLS.id} = ?",
                    [(position, todo_id) for position, todo_id in enumerate(ids)],
                )
            logger.info("Reordered %d todos", len(ids))
            return self._fetch_all(conn)

    def delete(self, todo_id: int) -> bool:
        if not _storable_id(todo_id):
            return False
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,))
            removed = cur.rowcount > 0
        if removed:
            logger.info("Deleted todo id=%s", todo_id)
        return removed
