# src/focus_desk/tasks/mutations.py

from __future__ import annotations

"""
Optimistic apply / rollback.

Every write to the mirror goes through here:
- snapshot the fields about to change,
- write the new values to the in-memory object right away,
- await the persistence statement,
- on failure put the snapshot back and raise PersistenceError.

The rollback restores the captured values, never a recomputed one.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

from ..core.errors import PersistenceError
from ..core.ports import BackingStore, ExecuteResult, Params

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class Snapshot:
    target: Any
    values: dict[str, Any]

    @classmethod
    def capture(cls, target: Any, fields: Iterable[str]) -> Snapshot:
        return cls(target=target, values={f: getattr(target, f) for f in fields})

    def restore(self) -> None:
        for name, value in self.values.items():
            setattr(self.target, name, value)


async def commit_or_rollback(
    pending: Awaitable[T],
    rollback: Callable[[], None],
    *,
    action: str,
    statement: str | None = None,
) -> T:
    """
    Await the persistence half of a two-phase mutation.

    The speculative half has already been applied by the caller; `rollback`
    undoes it if `pending` fails.
    """
    try:
        return await pending
    except Exception as exc:
        rollback()
        logger.warning("%s failed; mirror rolled back: %s", action, exc)
        if isinstance(exc, PersistenceError):
            raise
        raise PersistenceError(f"{action} failed", statement=statement) from exc


async def apply_optimistic(
    backend: BackingStore,
    target: Any,
    changes: Mapping[str, Any],
    statement: str,
    params: Params,
    *,
    action: str,
) -> ExecuteResult:
    """Field-level mutation: set `changes` on `target`, persist, roll back on failure."""
    snapshot = Snapshot.capture(target, changes.keys())
    for name, value in changes.items():
        setattr(target, name, value)

    return await commit_or_rollback(
        backend.execute(statement, params),
        snapshot.restore,
        action=action,
        statement=statement,
    )
