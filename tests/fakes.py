# tests/fakes.py

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from focus_desk.core.errors import PersistenceError
from focus_desk.core.ports import ExecuteResult


def task_row(
    id: int,
    content: str | None = None,
    *,
    completed: int = 0,
    due_date: str | None = None,
    parent_id: int | None = None,
    group_id: int | None = None,
) -> dict[str, Any]:
    return {
        "id": id,
        "content": content or f"task {id}",
        "completed": completed,
        "due_date": due_date,
        "expected_completion_time": None,
        "reminder_time": None,
        "parent_id": parent_id,
        "group_id": group_id,
    }


def group_row(id: int, name: str, sort_order: int, color: str = "#42b983") -> dict[str, Any]:
    return {"id": id, "name": name, "color": color, "sort_order": sort_order, "created_at": None}


@dataclass
class FakeBackingStore:
    """
    In-memory BackingStore used for store unit tests.

    It does not interpret SQL: reads return the seeded rows, writes are
    recorded in `calls` so tests can assert on statements and parameters.
    `fail_when(sql, params)` returning True makes that write raise.
    """

    task_rows: list[dict[str, Any]] = field(default_factory=list)
    group_rows: list[dict[str, Any]] = field(default_factory=list)
    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    fail_when: Callable[[str, tuple[Any, ...]], bool] | None = None
    next_id: int = 100

    async def execute(self, statement: str, params=()) -> ExecuteResult:
        params = tuple(params)
        self.calls.append((statement, params))
        if self.fail_when is not None and self.fail_when(statement, params):
            raise PersistenceError("fake store rejected the statement", statement=statement)
        if statement.lstrip().upper().startswith("INSERT"):
            self.next_id += 1
            return ExecuteResult(last_insert_id=self.next_id, rows_affected=1)
        return ExecuteResult(last_insert_id=None, rows_affected=1)

    async def select(self, statement: str, params=()) -> list[dict[str, Any]]:
        if "FROM tasks" in statement:
            return sorted((dict(r) for r in self.task_rows), key=lambda r: r["id"], reverse=True)
        if '"groups"' in statement:
            return sorted(
                (dict(r) for r in self.group_rows), key=lambda r: (r["sort_order"], r["id"])
            )
        return []

    def statements(self, prefix: str) -> list[tuple[str, tuple[Any, ...]]]:
        return [c for c in self.calls if c[0].lstrip().upper().startswith(prefix.upper())]


class AlwaysFailingStore(FakeBackingStore):
    """Every write is rejected."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(fail_when=lambda _sql, _params: True, **kwargs)


class GatedBackingStore(FakeBackingStore):
    """Writes block until `gate` is set, to observe the mirror mid-flight."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.gate = asyncio.Event()
        self.started = asyncio.Event()

    async def execute(self, statement: str, params=()) -> ExecuteResult:
        self.started.set()
        await self.gate.wait()
        return await super().execute(statement, params)


class GatedFailingUpdateStore(FakeBackingStore):
    """UPDATEs block until `gate` is set and are then rejected; other writes pass."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(fail_when=lambda sql, _params: sql.startswith("UPDATE"), **kwargs)
        self.gate = asyncio.Event()
        self.started = asyncio.Event()

    async def execute(self, statement: str, params=()) -> ExecuteResult:
        if statement.startswith("UPDATE"):
            self.started.set()
            await self.gate.wait()
        return await super().execute(statement, params)
