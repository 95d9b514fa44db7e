# src/focus_desk/tasks/group_registry.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from ..core.errors import PersistenceError, ValidationError
from ..core.ports import BackingStore
from .mutations import apply_optimistic, commit_or_rollback
from .task_models import DEFAULT_GROUP_COLOR, TaskGroup

logger = logging.getLogger(__name__)

# "groups" is a keyword in recent SQLite versions, keep it quoted.
SELECT_GROUPS_SQL = (
    'SELECT id, name, color, sort_order, created_at FROM "groups" ORDER BY sort_order ASC, id ASC'
)


class GroupRegistry:
    """
    Flat, ordered list of task groups.

    Same optimistic discipline as the task tree, without hierarchy. Deleting a
    group never touches tasks here; the store's ON DELETE SET NULL detaches them.
    """

    def __init__(self, backend: BackingStore, *, default_color: str = DEFAULT_GROUP_COLOR) -> None:
        self._backend = backend
        self._default_color = default_color
        self._groups: list[TaskGroup] = []

    # ---- reads ----

    def items(self) -> list[TaskGroup]:
        return list(self._groups)

    def get(self, group_id: int) -> TaskGroup | None:
        for g in self._groups:
            if g.id == group_id:
                return g
        return None

    def __len__(self) -> int:
        return len(self._groups)

    def clear(self) -> None:
        self._groups = []

    async def load(self) -> list[TaskGroup]:
        rows = await self._backend.select(SELECT_GROUPS_SQL)
        self._groups = [TaskGroup.from_row(r) for r in rows]
        logger.info("Groups loaded: %d", len(self._groups))
        return self.items()

    # ---- writes ----

    async def add_group(self, name: str, color: str | None = None) -> TaskGroup | None:
        clean = (name or "").strip()
        if not clean:
            return None

        color = color or self._default_color
        next_order = max((g.sort_order for g in self._groups), default=-1) + 1

        sql = 'INSERT INTO "groups" (name, color, sort_order) VALUES (?, ?, ?)'
        result = await self._backend.execute(sql, (clean, color, next_order))
        if result.last_insert_id is None:
            raise PersistenceError("store did not return an id for the new group", statement=sql)

        group = TaskGroup(
            id=int(result.last_insert_id),
            name=clean,
            color=color,
            sort_order=next_order,
            created_at=datetime.now().isoformat(timespec="seconds"),
        )
        self._groups.append(group)
        logger.debug("Group added id=%s name=%s order=%s", group.id, clean, next_order)
        return group

    async def update_group(
        self,
        group_id: int,
        *,
        name: str | None = None,
        color: str | None = None,
    ) -> bool:
        """Rename and/or recolor. None keeps the current value; a blank name is refused."""
        group = self.get(group_id)
        if group is None:
            return False

        new_name = group.name if name is None else name.strip()
        if not new_name:
            return False
        new_color = group.color if color is None else color

        await apply_optimistic(
            self._backend,
            group,
            {"name": new_name, "color": new_color},
            'UPDATE "groups" SET name = ?, color = ? WHERE id = ?',
            (new_name, new_color, group.id),
            action=f"update group {group.id}",
        )
        return True

    async def delete_group(self, group_id: int) -> bool:
        group = self.get(group_id)
        if group is None:
            return False

        position = self._groups.index(group)
        self._groups = [g for g in self._groups if g.id != group_id]

        def rollback() -> None:
            self._groups.insert(min(position, len(self._groups)), group)

        await commit_or_rollback(
            self._backend.execute('DELETE FROM "groups" WHERE id = ?', (group_id,)),
            rollback,
            action=f"delete group {group_id}",
        )
        logger.debug("Group deleted id=%s", group_id)
        return True

    def _resolve_order(self, ordered: Iterable[TaskGroup | int]) -> list[TaskGroup]:
        by_id = {g.id: g for g in self._groups}
        ids = [item.id if isinstance(item, TaskGroup) else int(item) for item in ordered]
        if len(ids) != len(by_id) or set(ids) != set(by_id):
            raise ValidationError(
                "reorder needs every group exactly once",
                details={"given": ids, "known": sorted(by_id)},
            )
        return [by_id[i] for i in ids]

    async def reorder(self, ordered: Iterable[TaskGroup | int]) -> bool:
        """
        Apply a full new order: sort_order becomes the position (0..n-1).

        The mirror changes first; then one UPDATE per group. If one of them
        fails, the previous order is restored in memory and the rows already
        written are put back on a best-effort basis before re-raising.
        """
        new_order = self._resolve_order(ordered)

        prev_list = list(self._groups)
        prev_sort = {g.id: g.sort_order for g in prev_list}

        for pos, group in enumerate(new_order):
            group.sort_order = pos
        self._groups = new_order

        sql = 'UPDATE "groups" SET sort_order = ? WHERE id = ?'
        written: list[TaskGroup] = []

        def rollback() -> None:
            # Only the reordered groups go back; groups added or deleted while
            # the writes were in flight keep their current state.
            for g in new_order:
                g.sort_order = prev_sort[g.id]
            current = {g.id for g in self._groups}
            restored = [g for g in prev_list if g.id in current]
            added = [g for g in self._groups if g.id not in prev_sort]
            self._groups = restored + added

        for group in new_order:
            try:
                await commit_or_rollback(
                    self._backend.execute(sql, (group.sort_order, group.id)),
                    rollback,
                    action=f"reorder group {group.id}",
                    statement=sql,
                )
            except PersistenceError:
                await self._compensate(written, prev_sort)
                raise
            written.append(group)

        logger.debug("Groups reordered: %s", [g.id for g in new_order])
        return True

    async def _compensate(self, written: list[TaskGroup], prev_sort: dict[int, int]) -> None:
        sql = 'UPDATE "groups" SET sort_order = ? WHERE id = ?'
        for group in written:
            try:
                await self._backend.execute(sql, (prev_sort[group.id], group.id))
            except Exception:
                logger.exception("Could not restore sort_order for group id=%s", group.id)
