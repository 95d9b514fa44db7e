# src/focus_desk/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task store depends on a Protocol instead of a concrete database so the
SQLite backend can be swapped for an in-memory fake in tests.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

Row = Mapping[str, Any]
Params = Sequence[Any]


@dataclass(slots=True, frozen=True)
class ExecuteResult:
    """What a write statement reports back."""

    last_insert_id: int | None = None
    rows_affected: int = 0


class BackingStore(Protocol):
    """
    Relational store consumed by TodoStore / GroupRegistry.

    Both calls may fail; failures must surface as PersistenceError so the
    mutation protocol can roll the mirror back.
    """

    async def execute(self, statement: str, params: Params = ()) -> ExecuteResult: ...

    async def select(self, statement: str, params: Params = ()) -> list[Row]: ...
