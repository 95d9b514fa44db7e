# src/focus_desk/storage/sqlite_backend.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
from pathlib import Path
from typing import Any

from ..core.errors import PersistenceError
from ..core.ports import ExecuteResult, Params

logger = logging.getLogger(__name__)


class SQLiteBackingStore:
    """
    SQLite implementation of the BackingStore port.

    The schema is intentionally simple and migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each statement opens its own SQLite connection
    - async calls run the statement in a worker thread (asyncio.to_thread)

    Foreign keys are switched on for every connection: the multi-level task
    delete relies on tasks.parent_id ON DELETE CASCADE.
    """

    def __init__(self, db_path: str | Path = "focus_desk.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("SQLiteBackingStore ready db=%s tasks=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS "groups" (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    color TEXT NOT NULL DEFAULT '#42b983',
                    sort_order INTEGER NOT NULL DEFAULT 0,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """
            )

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    content TEXT NOT NULL,
                    completed BOOLEAN NOT NULL DEFAULT 0,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("SQLiteBackingStore migration: added column tasks.%s", name)

            add_col("due_date", "TEXT")
            add_col("expected_completion_time", "TEXT")
            add_col("reminder_time", "TEXT")
            add_col("parent_id", "INTEGER REFERENCES tasks(id) ON DELETE CASCADE")
            add_col("group_id", 'INTEGER REFERENCES "groups"(id) ON DELETE SET NULL')

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_parent ON tasks(parent_id)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_group ON tasks(group_id)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due ON tasks(due_date)")

            conn.commit()
        finally:
            conn.close()

    def _execute_sync(self, statement: str, params: Params) -> ExecuteResult:
        conn = self._get_conn()
        try:
            cur = conn.execute(statement, tuple(params))
            conn.commit()
            return ExecuteResult(last_insert_id=cur.lastrowid, rows_affected=cur.rowcount)
        finally:
            conn.close()

    def _select_sync(self, statement: str, params: Params) -> list[dict[str, Any]]:
        conn = self._get_conn()
        try:
            cur = conn.execute(statement, tuple(params))
            return [dict(r) for r in cur.fetchall()]
        finally:
            conn.close()

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)
        finally:
            conn.close()

    async def execute(self, statement: str, params: Params = ()) -> ExecuteResult:
        try:
            return await asyncio.to_thread(self._execute_sync, statement, params)
        except sqlite3.Error as exc:
            logger.debug("SQL failed: %s params=%r", statement.strip(), params, exc_info=True)
            raise PersistenceError(str(exc), statement=statement) from exc

    async def select(self, statement: str, params: Params = ()) -> list[dict[str, Any]]:
        try:
            return await asyncio.to_thread(self._select_sync, statement, params)
        except sqlite3.Error as exc:
            logger.debug("SQL select failed: %s params=%r", statement.strip(), params, exc_info=True)
            raise PersistenceError(str(exc), statement=statement) from exc
