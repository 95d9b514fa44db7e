# src/focus_desk/tasks/task_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

DEFAULT_GROUP_COLOR = "#42b983"


def _opt_str(raw: Any) -> str | None:
    if raw is None:
        return None
    s = str(raw)
    return s if s else None


def _opt_id(raw: Any) -> int | None:
    # 0 is never a valid rowid, treat it like NULL.
    if raw is None or raw == "" or raw == 0:
        return None
    return int(raw)


def date_key(value: str | date | datetime | None) -> str | None:
    """Normalize a date-ish value to the stored 'YYYY-MM-DD' form."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    s = str(value).strip()
    return s or None


@dataclass(slots=True)
class TaskNode:
    """
    One task in the mirror.

    `children` is owned by this node: a node lives in exactly one parent's
    children list or in the root list. There is no back-pointer to the parent.
    `expanded` is view state only and never persisted.
    """

    id: int
    content: str
    completed: bool = False

    due_date: str | None = None
    expected_completion_time: str | None = None
    reminder_time: str | None = None

    parent_id: int | None = None
    group_id: int | None = None

    children: list[TaskNode] = field(default_factory=list)
    expanded: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> TaskNode:
        return cls(
            id=int(row["id"]),
            content=str(row.get("content") or ""),
            completed=bool(row.get("completed")),
            due_date=_opt_str(row.get("due_date")),
            expected_completion_time=_opt_str(row.get("expected_completion_time")),
            reminder_time=_opt_str(row.get("reminder_time")),
            parent_id=_opt_id(row.get("parent_id")),
            group_id=_opt_id(row.get("group_id")),
        )

    def has_incomplete_children(self) -> bool:
        return any(not c.completed for c in self.children)


@dataclass(slots=True)
class TaskGroup:
    id: int
    name: str
    color: str = DEFAULT_GROUP_COLOR
    sort_order: int = 0
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> TaskGroup:
        return cls(
            id=int(row["id"]),
            name=str(row.get("name") or ""),
            color=str(row.get("color") or DEFAULT_GROUP_COLOR),
            sort_order=int(row.get("sort_order") or 0),
            created_at=_opt_str(row.get("created_at")),
        )
